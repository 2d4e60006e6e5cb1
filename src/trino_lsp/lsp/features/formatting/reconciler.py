"""
Reconciliation pipeline: diff, synthesize, verify.

``reconcile`` is the single entry point the formatting feature and the CLI
use. The batch it returns has been checked by applying it to the original
text; a batch that fails the check is never returned.
"""

import logging
from typing import Optional

from .coordinate_mapper import UTF32, CoordinateMapper
from .diff_engine import DiffEngine
from .edit_synthesizer import synthesize
from .errors import InvalidInputError, InvariantViolationError
from .models import EditBatch, position_key

logger = logging.getLogger(__name__)


def verify_batch(batch: EditBatch, mapper: CoordinateMapper, candidate: str) -> None:
    """
    Check that a batch is ordered, non-overlapping and produces the candidate.

    Raises:
        InvariantViolationError: If any check fails
    """
    previous_end = None
    for index, edit in enumerate(batch.edits):
        start = position_key(edit.range.start)
        end = position_key(edit.range.end)
        if start > end:
            raise InvariantViolationError(f"Edit {index} has an inverted range {start} > {end}")
        if previous_end is not None and start < previous_end:
            raise InvariantViolationError(
                f"Edit {index} starting at {start} overlaps the previous edit ending at {previous_end}"
            )
        previous_end = end

    result = batch.apply(mapper.text, mapper)
    if result != candidate:
        raise InvariantViolationError(
            f"Applying {len(batch)} edits produced {len(result)} characters, "
            f"expected {len(candidate)}"
        )


def reconcile(
    original: str,
    candidate: str,
    version: Optional[int] = None,
    uri: Optional[str] = None,
    engine: Optional[DiffEngine] = None,
    position_encoding: str = UTF32,
) -> EditBatch:
    """
    Compute the edits that turn ``original`` into ``candidate``.

    Args:
        original: Text of the document snapshot being edited
        candidate: Replacement text, e.g. the formatter's output
        version: Version token of the snapshot, carried on the batch
        uri: Optional document URI, carried on the batch
        engine: DiffEngine to use; a default one is created when omitted
        position_encoding: Column unit of the returned positions

    Returns:
        Verified EditBatch in original-document coordinates

    Raises:
        InvalidInputError: If either text is not a string
        InvariantViolationError: If the synthesized edits fail verification
    """
    if not isinstance(original, str):
        raise InvalidInputError(f"Original text must be a string, got {type(original).__name__}")
    if not isinstance(candidate, str):
        raise InvalidInputError(f"Candidate text must be a string, got {type(candidate).__name__}")

    engine = engine or DiffEngine()
    diff_ops = engine.diff(original, candidate)
    mapper = CoordinateMapper(original, position_encoding)
    batch = synthesize(diff_ops, mapper, version=version, uri=uri)
    verify_batch(batch, mapper, candidate)

    logger.debug(f"Reconciled {uri or 'buffer'} (version {version}) into {len(batch)} edits")
    return batch
