"""
Error taxonomy for the reconciliation engine.

All errors derive from ReconciliationError so the protocol layer can
discard a failed reconciliation with a single except clause.
"""


class ReconciliationError(Exception):
    """Base class for errors raised while turning a diff into edits."""
    pass


class InvalidInputError(ReconciliationError):
    """Raised when a buffer argument is missing or is not text."""
    pass


class InvalidOffsetError(ReconciliationError):
    """Raised when an offset lies outside [0, len(buffer)]."""

    def __init__(self, offset: int, length: int):
        self.offset = offset
        self.length = length
        super().__init__(f"Offset {offset} is outside buffer range [0, {length}]")


class DiffEngineFailure(ReconciliationError):
    """Raised when the diff algorithm exceeds its resource bound."""
    pass


class InvariantViolationError(ReconciliationError):
    """Raised when a synthesized edit batch does not reproduce the candidate text."""
    pass
