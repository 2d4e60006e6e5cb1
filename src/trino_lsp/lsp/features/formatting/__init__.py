"""Formatting feature and the text reconciliation engine behind it."""

from .coordinate_mapper import UTF8, UTF16, UTF32, CoordinateMapper
from .diff_engine import DiffEngine, diff
from .edit_synthesizer import synthesize
from .errors import (
    DiffEngineFailure,
    InvalidInputError,
    InvalidOffsetError,
    InvariantViolationError,
    ReconciliationError,
)
from .formatting import FormattingService, full_document_edit, register_formatting
from .models import Delete, DiffOp, EditBatch, Equal, Insert
from .reconciler import reconcile, verify_batch

__all__ = [
    "UTF8",
    "UTF16",
    "UTF32",
    "CoordinateMapper",
    "DiffEngine",
    "diff",
    "synthesize",
    "DiffEngineFailure",
    "InvalidInputError",
    "InvalidOffsetError",
    "InvariantViolationError",
    "ReconciliationError",
    "FormattingService",
    "full_document_edit",
    "register_formatting",
    "Delete",
    "DiffOp",
    "EditBatch",
    "Equal",
    "Insert",
    "reconcile",
    "verify_batch",
]
