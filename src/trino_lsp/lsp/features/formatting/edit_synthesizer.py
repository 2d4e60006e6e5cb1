"""
Turn a DiffOp alignment into TextEdits anchored in the original buffer.

The synthesizer walks the alignment once, keeping a cursor into the
original buffer. Equal and Delete ops advance the cursor, Insert ops do
not. Consecutive edit ops with no Equal between them share a cursor
position and are emitted as a single replace-style edit.
"""

import logging
from typing import Iterable, List, Optional

from lsprotocol import types

from .coordinate_mapper import CoordinateMapper
from .errors import InvalidInputError
from .models import Delete, DiffOp, EditBatch, Equal, Insert

logger = logging.getLogger(__name__)


class _PendingEdit:
    """Edit being accumulated from a run of Delete/Insert ops."""

    def __init__(self, start: int):
        self.start = start
        self.end = start
        self.new_text = ""


def _widen_over_crlf(pending: _PendingEdit, text: str) -> None:
    # Editors cannot address the gap between \r and \n, so an endpoint
    # there grows to cover the pair and re-emits the covered character.
    if 0 < pending.start < len(text) and text[pending.start - 1] == "\r" and text[pending.start] == "\n":
        pending.start -= 1
        pending.new_text = "\r" + pending.new_text
    if 0 < pending.end < len(text) and text[pending.end - 1] == "\r" and text[pending.end] == "\n":
        pending.end += 1
        pending.new_text += "\n"


def _to_text_edit(pending: _PendingEdit, mapper: CoordinateMapper) -> types.TextEdit:
    _widen_over_crlf(pending, mapper.text)
    return types.TextEdit(
        range=types.Range(
            start=mapper.offset_to_position(pending.start),
            end=mapper.offset_to_position(pending.end),
        ),
        new_text=pending.new_text,
    )


def synthesize(
    diff_ops: Iterable[DiffOp],
    mapper: CoordinateMapper,
    version: Optional[int] = None,
    uri: Optional[str] = None,
) -> EditBatch:
    """
    Build the edit batch for an alignment.

    Args:
        diff_ops: Alignment between the mapper's buffer and the candidate
        mapper: Coordinate mapper built for the original buffer
        version: Version token of the original snapshot
        uri: Optional document URI, carried on the batch

    Returns:
        EditBatch with edits sorted by start and pairwise non-overlapping

    Raises:
        InvalidInputError: If an element of diff_ops is not a DiffOp
        InvalidOffsetError: If the alignment runs past the original buffer
    """
    edits: List[types.TextEdit] = []
    cursor = 0
    pending: Optional[_PendingEdit] = None

    for op in diff_ops:
        if not isinstance(op, (Equal, Insert, Delete)):
            raise InvalidInputError(f"Unknown diff operation: {op!r}")
        if not op.text:
            continue

        if isinstance(op, Equal):
            if pending is not None:
                edits.append(_to_text_edit(pending, mapper))
                pending = None
            cursor += len(op.text)
        elif isinstance(op, Delete):
            if pending is None:
                pending = _PendingEdit(cursor)
            cursor += len(op.text)
            pending.end = cursor
        else:
            if pending is None:
                pending = _PendingEdit(cursor)
            pending.new_text += op.text

    if pending is not None:
        edits.append(_to_text_edit(pending, mapper))

    # An alignment longer than the original buffer fails here
    mapper.offset_to_position(cursor)

    logger.debug(f"Synthesized {len(edits)} edits from alignment covering {cursor} characters")
    return EditBatch(edits=edits, version=version, uri=uri)
