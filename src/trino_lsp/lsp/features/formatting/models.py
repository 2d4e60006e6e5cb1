"""
Data model for the reconciliation engine.

DiffOp is a tagged variant (Equal | Insert | Delete) rather than an
(opcode, text) pair, so dispatching on it is an isinstance check.
Positions, ranges and edits reuse the lsprotocol types that the protocol
layer hands to the editor.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from lsprotocol import types


@dataclass(frozen=True)
class Equal:
    """Text present, unchanged, in both buffers."""
    text: str


@dataclass(frozen=True)
class Insert:
    """Text present only in the candidate buffer."""
    text: str


@dataclass(frozen=True)
class Delete:
    """Text present only in the original buffer."""
    text: str


DiffOp = Union[Equal, Insert, Delete]


def original_text(ops: List[DiffOp]) -> str:
    """Rebuild the original buffer from an alignment."""
    return "".join(op.text for op in ops if not isinstance(op, Insert))


def candidate_text(ops: List[DiffOp]) -> str:
    """Rebuild the candidate buffer from an alignment."""
    return "".join(op.text for op in ops if not isinstance(op, Delete))


def position_key(position: types.Position) -> tuple:
    """Sort key ordering positions by line, then character."""
    return (position.line, position.character)


@dataclass
class EditBatch:
    """
    Ordered, non-overlapping edits computed against one document snapshot.

    Attributes:
        edits: TextEdits in original-buffer coordinates, sorted by start
        version: Version token of the snapshot the edits target
        uri: Optional URI of the document the snapshot belongs to
    """
    edits: List[types.TextEdit] = field(default_factory=list)
    version: Optional[int] = None
    uri: Optional[str] = None

    def __len__(self) -> int:
        return len(self.edits)

    def __iter__(self):
        return iter(self.edits)

    def is_empty(self) -> bool:
        """True when applying the batch would leave the document unchanged."""
        return not self.edits

    def is_stale(self, current_version: Optional[int]) -> bool:
        """
        Check whether the batch targets a snapshot other than the live one.

        A batch without a version token cannot be checked and is never stale.
        """
        if self.version is None:
            return False
        return self.version != current_version

    def apply(self, original: str, mapper=None) -> str:
        """
        Apply every edit simultaneously to the original text.

        All ranges are resolved against the original buffer before any edit
        is applied, so no re-offsetting happens between edits.

        Args:
            original: The text the batch was computed against
            mapper: Optional CoordinateMapper already built for ``original``

        Returns:
            The edited text
        """
        if mapper is None:
            # Imported here to keep models free of a module-level cycle
            from .coordinate_mapper import CoordinateMapper
            mapper = CoordinateMapper(original)

        pieces = []
        cursor = 0
        for edit in self.edits:
            start = mapper.position_to_offset(edit.range.start)
            end = mapper.position_to_offset(edit.range.end)
            pieces.append(original[cursor:start])
            pieces.append(edit.new_text)
            cursor = end
        pieces.append(original[cursor:])
        return "".join(pieces)

    def to_dict(self) -> dict:
        """Plain-data form used by the CLI's JSON output."""
        return {
            "uri": self.uri,
            "version": self.version,
            "edits": [
                {
                    "range": {
                        "start": {"line": e.range.start.line, "character": e.range.start.character},
                        "end": {"line": e.range.end.line, "character": e.range.end.character},
                    },
                    "newText": e.new_text,
                }
                for e in self.edits
            ],
        }
