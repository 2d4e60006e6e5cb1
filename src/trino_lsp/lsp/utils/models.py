"""
Data models for the parsing/formatting service responses.

The service answers every request with the same envelope: the formatted
SQL (absent when the text does not parse), completion suggestions for the
end of the text, and the parse error when there is one.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from lsprotocol import types


@dataclass
class ParseError:
    """
    A syntax error reported by the parsing service.

    Attributes:
        message: Parser error message
        row: 1-based line of the error
        column: 0-based column of the error
    """
    message: str
    row: int
    column: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParseError":
        return cls(
            message=str(data.get("message") or "Unknown parse error"),
            row=int(data.get("row") or 1),
            column=int(data.get("column") or 0),
        )

    def to_position(self) -> types.Position:
        """Convert the service's 1-based row into a zero-based LSP position."""
        return types.Position(line=max(self.row - 1, 0), character=max(self.column, 0))


@dataclass
class ParseResponse:
    """
    Result of a single call to the parsing/formatting service.

    Attributes:
        formatted_sql: Reformatted text, or None when parsing failed
        suggestions: Completion suggestions for the end of the text
        auto_suggestions: Grammar-driven suggestions, when requested
        parse_error: The parse error, or None when the text parsed
    """
    formatted_sql: Optional[str] = None
    suggestions: List[str] = field(default_factory=list)
    auto_suggestions: Optional[List[str]] = None
    parse_error: Optional[ParseError] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParseResponse":
        """
        Build a response from the service's JSON body.

        Raises:
            ValueError: If the body is not a JSON object
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

        parse_error = data.get("parse_error")
        auto_suggestions = data.get("auto_suggestions")
        return cls(
            formatted_sql=data.get("formatted_sql"),
            suggestions=[str(s) for s in data.get("suggestions") or []],
            auto_suggestions=[str(s) for s in auto_suggestions] if auto_suggestions is not None else None,
            parse_error=ParseError.from_dict(parse_error) if parse_error else None,
        )

    def has_error(self) -> bool:
        return self.parse_error is not None

    def all_suggestions(self) -> List[str]:
        """Suggestions followed by auto suggestions, without duplicates."""
        seen = set()
        result = []
        for suggestion in self.suggestions + (self.auto_suggestions or []):
            if suggestion not in seen:
                seen.add(suggestion)
                result.append(suggestion)
        return result
