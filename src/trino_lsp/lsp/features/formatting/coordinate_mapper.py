"""
Offset to line/column mapping for a single text snapshot.

The mapper scans its buffer once and records where every line starts. A
``\\r\\n`` pair is one line break, and so is a lone ``\\r`` or ``\\n``.
Columns are counted in the units of the selected position encoding:
code points for ``utf-32`` (the default), UTF-16 code units for
``utf-16`` (the LSP default) and bytes for ``utf-8``.
"""

from bisect import bisect_right
from typing import List

from lsprotocol import types

from .errors import InvalidInputError, InvalidOffsetError

UTF8 = "utf-8"
UTF16 = "utf-16"
UTF32 = "utf-32"

SUPPORTED_ENCODINGS = (UTF8, UTF16, UTF32)


def _char_units(char: str, encoding: str) -> int:
    """Number of encoding units a single code point occupies."""
    if encoding == UTF32:
        return 1
    code_point = ord(char)
    if encoding == UTF16:
        return 2 if code_point > 0xFFFF else 1
    if code_point < 0x80:
        return 1
    if code_point < 0x800:
        return 2
    if code_point < 0x10000:
        return 3
    return 4


class CoordinateMapper:
    """Converts offsets into one buffer to positions in that buffer and back."""

    def __init__(self, text: str, position_encoding: str = UTF32):
        """
        Build the line-start table for ``text``.

        Args:
            text: The buffer whose coordinates are mapped
            position_encoding: Column unit, one of utf-8, utf-16 or utf-32

        Raises:
            InvalidInputError: If text is not a string or the encoding is unknown
        """
        if not isinstance(text, str):
            raise InvalidInputError(f"Buffer must be a string, got {type(text).__name__}")
        if position_encoding not in SUPPORTED_ENCODINGS:
            raise InvalidInputError(f"Unsupported position encoding: {position_encoding}")

        self.text = text
        self.position_encoding = position_encoding
        self.line_starts = self._scan_line_starts(text)
        # Offset where each line's content ends, excluding its line break
        self._content_ends = self._scan_content_ends()

    @staticmethod
    def _scan_line_starts(text: str) -> List[int]:
        line_starts = [0]
        length = len(text)
        index = 0
        while index < length:
            char = text[index]
            if char == "\r":
                if index + 1 < length and text[index + 1] == "\n":
                    index += 1
                line_starts.append(index + 1)
            elif char == "\n":
                line_starts.append(index + 1)
            index += 1
        return line_starts

    def _scan_content_ends(self) -> List[int]:
        content_ends = []
        for line, start in enumerate(self.line_starts):
            if line + 1 < len(self.line_starts):
                end = self.line_starts[line + 1] - 1
                if end > start and self.text[end] == "\n" and self.text[end - 1] == "\r":
                    end -= 1
                content_ends.append(end)
            else:
                content_ends.append(len(self.text))
        return content_ends

    @property
    def line_count(self) -> int:
        return len(self.line_starts)

    def offset_to_position(self, offset: int) -> types.Position:
        """
        Resolve a character offset to a zero-based line/column position.

        Args:
            offset: Offset in [0, len(text)]; len(text) is the end of document

        Returns:
            Position of the offset

        Raises:
            InvalidOffsetError: If the offset is outside the buffer

        Example:
            For "a\\nb", offset 2 is Position(line=1, character=0)
        """
        if not isinstance(offset, int) or offset < 0 or offset > len(self.text):
            raise InvalidOffsetError(offset, len(self.text))

        line = bisect_right(self.line_starts, offset) - 1
        line_start = self.line_starts[line]
        if self.position_encoding == UTF32:
            character = offset - line_start
        else:
            character = sum(
                _char_units(char, self.position_encoding)
                for char in self.text[line_start:offset]
            )
        return types.Position(line=line, character=character)

    def position_to_offset(self, position: types.Position) -> int:
        """
        Resolve a position to an offset the way an editor does.

        Lines past the end resolve to the end of the buffer and columns past
        the end of a line are clamped to the line's content, so a position
        can never address the inside of a line break.
        """
        if position.line < 0 or position.character < 0:
            raise InvalidOffsetError(-1, len(self.text))
        if position.line >= self.line_count:
            return len(self.text)

        line_start = self.line_starts[position.line]
        content_end = self._content_ends[position.line]
        if self.position_encoding == UTF32:
            return min(line_start + position.character, content_end)

        units = 0
        offset = line_start
        while offset < content_end and units < position.character:
            units += _char_units(self.text[offset], self.position_encoding)
            offset += 1
        return offset

    def end_position(self) -> types.Position:
        """Position immediately after the last character of the buffer."""
        return self.offset_to_position(len(self.text))
