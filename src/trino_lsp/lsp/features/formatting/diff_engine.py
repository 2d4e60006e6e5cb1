"""
Character-level diff engine for the formatting feature.

Alignments come from diff-match-patch: common prefix and suffix trimming,
Myers bisection under a wall-clock deadline, and a line-granularity pass
for large spans whose replaced line runs are re-diffed per character.

Two behaviours differ from the library defaults:

- An expired deadline is not absorbed per sub-problem. The whole diff falls
  back to a single Delete + Insert pair for the changed span, framed by the
  common prefix and suffix, and the fallback is logged.
- Semantic cleanup only absorbs an equality that is strictly shorter than
  the edits on both of its sides. The library also absorbs ties, which
  turns ``a,b`` -> ``a, b`` style reformatting into replacements of whole
  identifiers.
"""

import logging
import sys
import time
from typing import List

from diff_match_patch import diff_match_patch

from .errors import DiffEngineFailure, InvalidInputError
from .models import Delete, DiffOp, Equal, Insert

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 1.0
DEFAULT_LINE_MODE_THRESHOLD = 100

_now = time.time

_OPS = {
    diff_match_patch.DIFF_EQUAL: Equal,
    diff_match_patch.DIFF_INSERT: Insert,
    diff_match_patch.DIFF_DELETE: Delete,
}


class _Matcher(diff_match_patch):
    """diff_match_patch with a configurable line-mode threshold and a hard deadline."""

    def __init__(self, timeout: float, line_mode_threshold: int):
        super().__init__()
        self.Diff_Timeout = timeout
        self.line_mode_threshold = line_mode_threshold

    def diff_compute(self, text1, text2, checklines, deadline):
        if (checklines
                and len(text1) > self.line_mode_threshold
                and len(text2) > self.line_mode_threshold
                and text1 not in text2 and text2 not in text1):
            return self.diff_lineMode(text1, text2, deadline)
        return super().diff_compute(text1, text2, False, deadline)

    def diff_halfMatch(self, text1, text2):
        # Half-match trades minimality for speed
        return None

    def diff_bisect(self, text1, text2, deadline):
        diffs = super().diff_bisect(text1, text2, deadline)
        expired = [(self.DIFF_DELETE, text1), (self.DIFF_INSERT, text2)]
        if diffs == expired and time.time() > deadline:
            raise DiffEngineFailure(
                f"Diff of {len(text1)}x{len(text2)} characters exceeded its time limit"
            )
        return diffs

    def diff_cleanupSemanticStrict(self, diffs):
        """
        Absorb equalities strictly shorter than the edits on both sides,
        then move edits onto natural boundaries and extract overlaps.
        Modifies ``diffs`` in place.
        """
        changes = False
        equalities = []
        last_equality = None
        pointer = 0
        insertions_before = deletions_before = 0
        insertions_after = deletions_after = 0
        while pointer < len(diffs):
            op, text = diffs[pointer]
            if op == self.DIFF_EQUAL:
                equalities.append(pointer)
                insertions_before, insertions_after = insertions_after, 0
                deletions_before, deletions_after = deletions_after, 0
                last_equality = text
            else:
                if op == self.DIFF_INSERT:
                    insertions_after += len(text)
                else:
                    deletions_after += len(text)
                if (last_equality
                        and len(last_equality) < max(insertions_before, deletions_before)
                        and len(last_equality) < max(insertions_after, deletions_after)):
                    index = equalities.pop()
                    diffs.insert(index, (self.DIFF_DELETE, last_equality))
                    diffs[index + 1] = (self.DIFF_INSERT, last_equality)
                    if equalities:
                        equalities.pop()
                    pointer = equalities[-1] if equalities else -1
                    insertions_before = deletions_before = 0
                    insertions_after = deletions_after = 0
                    last_equality = None
                    changes = True
            pointer += 1

        if changes:
            self.diff_cleanupMerge(diffs)
        self.diff_cleanupSemanticLossless(diffs)
        self._extract_overlaps(diffs)

    def _extract_overlaps(self, diffs):
        """<del>abcxxx</del><ins>xxxdef</ins> becomes <del>abc</del>xxx<ins>def</ins>."""
        pointer = 1
        while pointer < len(diffs):
            (previous_op, deletion), (op, insertion) = diffs[pointer - 1], diffs[pointer]
            if previous_op == self.DIFF_DELETE and op == self.DIFF_INSERT:
                overlap1 = self.diff_commonOverlap(deletion, insertion)
                overlap2 = self.diff_commonOverlap(insertion, deletion)
                if overlap1 >= overlap2:
                    if overlap1 and (overlap1 >= len(deletion) / 2.0 or overlap1 >= len(insertion) / 2.0):
                        diffs[pointer - 1:pointer + 1] = [
                            (self.DIFF_DELETE, deletion[:len(deletion) - overlap1]),
                            (self.DIFF_EQUAL, insertion[:overlap1]),
                            (self.DIFF_INSERT, insertion[overlap1:]),
                        ]
                        pointer += 1
                elif overlap2 >= len(deletion) / 2.0 or overlap2 >= len(insertion) / 2.0:
                    diffs[pointer - 1:pointer + 1] = [
                        (self.DIFF_INSERT, insertion[:len(insertion) - overlap2]),
                        (self.DIFF_EQUAL, deletion[:overlap2]),
                        (self.DIFF_DELETE, deletion[overlap2:]),
                    ]
                    pointer += 1
                pointer += 1
            pointer += 1


class DiffEngine:
    """
    Computes DiffOp alignments between two buffers.

    Attributes:
        timeout: Seconds allowed for one diff before falling back; 0 disables
        line_mode_threshold: Minimum span length (in characters, on both
            sides) for the line-granularity pre-pass to run
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT,
                 line_mode_threshold: int = DEFAULT_LINE_MODE_THRESHOLD):
        self.timeout = timeout
        self.line_mode_threshold = line_mode_threshold

    def diff(self, original: str, candidate: str) -> List[DiffOp]:
        """
        Align two buffers.

        Args:
            original: The buffer being edited
            candidate: The buffer the edits must produce

        Returns:
            DiffOps whose Equal+Delete texts rebuild ``original`` and whose
            Equal+Insert texts rebuild ``candidate``

        Raises:
            InvalidInputError: If either argument is not a string
        """
        if not isinstance(original, str) or not isinstance(candidate, str):
            raise InvalidInputError(
                f"Diff arguments must be strings, got {type(original).__name__} "
                f"and {type(candidate).__name__}"
            )

        matcher = _Matcher(self.timeout, self.line_mode_threshold)
        deadline = _now() + self.timeout if self.timeout > 0 else sys.maxsize

        try:
            diffs = matcher.diff_main(original, candidate, True, deadline)
        except DiffEngineFailure as e:
            diffs = self._replacement(matcher, original, candidate)
            logger.warning(f"{e}; falling back to a single replacement")

        matcher.diff_cleanupSemanticStrict(diffs)
        return to_ops(diffs)

    @staticmethod
    def _replacement(matcher: _Matcher, original: str, candidate: str) -> list:
        """One Delete + Insert pair for everything between the common prefix and suffix."""
        prefix = matcher.diff_commonPrefix(original, candidate)
        suffix = matcher.diff_commonSuffix(original[prefix:], candidate[prefix:])
        diffs = [
            (matcher.DIFF_EQUAL, original[:prefix]),
            (matcher.DIFF_DELETE, original[prefix:len(original) - suffix]),
            (matcher.DIFF_INSERT, candidate[prefix:len(candidate) - suffix]),
            (matcher.DIFF_EQUAL, original[len(original) - suffix:]),
        ]
        return [(op, text) for op, text in diffs if text]


def to_ops(diffs: list) -> List[DiffOp]:
    """Convert diff-match-patch ``(op, text)`` tuples to DiffOps, dropping empty ones."""
    return [_OPS[op](text) for op, text in diffs if text]


def cleanup_semantic(ops: List[DiffOp]) -> List[DiffOp]:
    """
    Reshape an alignment for readability.

    An equality strictly shorter than the edits on both of its sides is
    absorbed into them. Ties keep the equality, so a formatter adding a
    space before a one-character identifier still yields a pure insertion.
    """
    codes = {Equal: diff_match_patch.DIFF_EQUAL, Insert: diff_match_patch.DIFF_INSERT,
             Delete: diff_match_patch.DIFF_DELETE}
    diffs = [(codes[type(op)], op.text) for op in ops]
    _Matcher(DEFAULT_TIMEOUT, DEFAULT_LINE_MODE_THRESHOLD).diff_cleanupSemanticStrict(diffs)
    return to_ops(diffs)


def diff(original: str, candidate: str, timeout: float = DEFAULT_TIMEOUT) -> List[DiffOp]:
    """Align two buffers with a default-configured DiffEngine."""
    return DiffEngine(timeout=timeout).diff(original, candidate)
