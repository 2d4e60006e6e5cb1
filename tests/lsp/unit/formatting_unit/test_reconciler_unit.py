import random
import time

import pytest
from lsprotocol import types

from trino_lsp.lsp.features.formatting import reconciler
from trino_lsp.lsp.features.formatting.coordinate_mapper import UTF8, UTF16, UTF32, CoordinateMapper
from trino_lsp.lsp.features.formatting.diff_engine import DEFAULT_TIMEOUT, DiffEngine
from trino_lsp.lsp.features.formatting.errors import InvalidInputError, InvariantViolationError
from trino_lsp.lsp.features.formatting.models import EditBatch, position_key
from trino_lsp.lsp.features.formatting.reconciler import reconcile, verify_batch

LOCALIZED_ORIGINAL = "SELECT a,b FROM t"
LOCALIZED_CANDIDATE = "SELECT a, b\nFROM t"

# Line breaks of every kind, multi-byte and astral characters
FRAGMENTS = ["SELECT", "a", "b", "x", " ", ",", "'", "\n", "\r\n", "\r", "é", "ß", "\U0001F600", "\U00020000"]

PAIRS = [
    ("", ""),
    ("", "SELECT 1"),
    ("SELECT 1", ""),
    (LOCALIZED_ORIGINAL, LOCALIZED_CANDIDATE),
    ("select a,b from t where x=1", "SELECT\n  a,\n  b\nFROM t\nWHERE x = 1"),
    ("SELECT a\r\nFROM t\r\n", "SELECT a\nFROM t\n"),
    ("SELECT a\nFROM t", "SELECT a\r\nFROM t"),
    ("SELECT '\U0001F600' AS e", "SELECT\n  '\U0001F600' AS e"),
    ("a\rb\rc", "a\nb\nc"),
    ("WITH x AS (SELECT 1) SELECT * FROM x", "WITH\n  x AS (\n    SELECT 1\n  )\nSELECT *\nFROM x"),
]


def random_text(rng, max_pieces=12):
    return "".join(rng.choice(FRAGMENTS) for _ in range(rng.randint(0, max_pieces)))


def mutate(rng, text):
    """Insert, delete or replace a few code points; may split CRLF pairs."""
    pieces = list(text)
    for _ in range(rng.randint(1, 4)):
        action = rng.choice(("insert", "delete", "replace"))
        if action == "insert" or not pieces:
            pieces.insert(rng.randint(0, len(pieces)), rng.choice(FRAGMENTS))
        elif action == "delete":
            del pieces[rng.randrange(len(pieces))]
        else:
            pieces[rng.randrange(len(pieces))] = rng.choice(FRAGMENTS)
    return "".join(pieces)


@pytest.mark.parametrize("original,candidate", PAIRS)
def test_applying_batch_reproduces_candidate(engine, original, candidate):
    batch = reconcile(original, candidate, engine=engine)
    assert batch.apply(original) == candidate


@pytest.mark.parametrize("original,candidate", PAIRS)
def test_edits_are_ordered_and_disjoint(engine, original, candidate):
    batch = reconcile(original, candidate, engine=engine)
    for previous, current in zip(batch.edits, batch.edits[1:]):
        assert position_key(previous.range.end) <= position_key(current.range.start)


@pytest.mark.parametrize("original,candidate", PAIRS)
def test_reconciling_result_again_is_a_no_op(engine, original, candidate):
    batch = reconcile(original, candidate, engine=engine)
    assert reconcile(batch.apply(original), candidate, engine=engine).is_empty()


def test_localized_change_yields_two_small_edits(engine):
    batch = reconcile(LOCALIZED_ORIGINAL, LOCALIZED_CANDIDATE, version=7, engine=engine)

    assert [(position_key(e.range.start), position_key(e.range.end), e.new_text) for e in batch] == [
        ((0, 9), (0, 9), " "),
        ((0, 10), (0, 11), "\n"),
    ]
    assert batch.version == 7


def test_identical_text_has_no_edits(engine):
    batch = reconcile("SELECT 1", "SELECT 1", version=2, engine=engine)
    assert batch.is_empty()
    assert batch.version == 2


def test_empty_original_inserts_everything(engine):
    batch = reconcile("", "SELECT 1", engine=engine)
    assert len(batch) == 1
    edit = batch.edits[0]
    assert position_key(edit.range.start) == (0, 0)
    assert position_key(edit.range.end) == (0, 0)
    assert edit.new_text == "SELECT 1"


def test_empty_candidate_deletes_everything(engine):
    batch = reconcile("SELECT\n1", "", engine=engine)
    assert len(batch) == 1
    edit = batch.edits[0]
    assert position_key(edit.range.start) == (0, 0)
    assert position_key(edit.range.end) == (1, 1)
    assert edit.new_text == ""


def test_crlf_to_lf_never_splits_the_pair(engine):
    batch = reconcile("SELECT a\r\nFROM t", "SELECT a\nFROM t", engine=engine)

    assert len(batch) == 1
    edit = batch.edits[0]
    assert position_key(edit.range.start) == (0, 8)
    assert position_key(edit.range.end) == (1, 0)
    assert edit.new_text == "\n"


def test_utf16_positions(engine):
    original = "SELECT '\U0001F600',x"
    batch = reconcile(original, "SELECT '\U0001F600', x", engine=engine, position_encoding=UTF16)

    assert len(batch) == 1
    # The emoji occupies two UTF-16 code units
    assert position_key(batch.edits[0].range.start) == (0, 12)
    assert batch.apply(original, CoordinateMapper(original, UTF16)) == "SELECT '\U0001F600', x"


@pytest.mark.parametrize("encoding", [UTF8, UTF16, UTF32])
def test_random_edits_round_trip(engine, encoding):
    rng = random.Random(20240611)

    for _ in range(1000):
        original = random_text(rng)
        candidate = mutate(rng, original) if rng.random() < 0.8 else random_text(rng)

        batch = reconcile(original, candidate, engine=engine, position_encoding=encoding)
        mapper = CoordinateMapper(original, encoding)
        result = batch.apply(original, mapper)

        assert result == candidate, (original, candidate)
        for previous, current in zip(batch.edits, batch.edits[1:]):
            assert position_key(previous.range.end) <= position_key(current.range.start)
        assert reconcile(result, candidate, engine=engine, position_encoding=encoding).is_empty()


def test_large_document_cost_stays_local():
    lines = [f"SELECT col_{i} FROM t_{i}" for i in range(20000)]
    original = "\n".join(lines)
    lines[100] = "SELECT  col_100 FROM t_100"
    lines[19900] = "SELECT col_19900\nFROM t_19900"
    candidate = "\n".join(lines)

    started = time.perf_counter()
    batch = reconcile(original, candidate, engine=DiffEngine())
    elapsed = time.perf_counter() - started

    assert [(edit.range.start.line, edit.new_text) for edit in batch] == [(100, " "), (19900, "\n")]
    assert elapsed < DEFAULT_TIMEOUT


def test_many_small_changes(engine):
    original = "".join(f"SELECT col_{i} FROM t_{i}\n" for i in range(50))
    candidate = "".join(f"SELECT col_{i}\nFROM t_{i}\n" for i in range(50))

    batch = reconcile(original, candidate, engine=engine)

    assert len(batch) == 50
    assert all(edit.new_text == "\n" for edit in batch)
    assert [edit.range.start.line for edit in batch] == list(range(50))


def test_batch_staleness():
    batch = reconcile("a", "b", version=3)
    assert not batch.is_stale(3)
    assert batch.is_stale(4)
    assert not reconcile("a", "b").is_stale(4)


def test_uri_is_carried():
    batch = reconcile("a", "b", uri="file:///tmp/q.sql")
    assert batch.uri == "file:///tmp/q.sql"
    assert batch.to_dict()["uri"] == "file:///tmp/q.sql"


def test_to_dict_shape():
    assert reconcile("a,b", "a, b", version=1).to_dict() == {
        "uri": None,
        "version": 1,
        "edits": [
            {
                "range": {"start": {"line": 0, "character": 2}, "end": {"line": 0, "character": 2}},
                "newText": " ",
            }
        ],
    }


def test_non_string_input_is_rejected():
    with pytest.raises(InvalidInputError):
        reconcile(None, "abc")
    with pytest.raises(InvalidInputError):
        reconcile("abc", 42)


def test_broken_batch_fails_verification(monkeypatch):
    def bad_synthesize(diff_ops, mapper, version=None, uri=None):
        edit = types.TextEdit(
            range=types.Range(start=types.Position(line=0, character=0), end=types.Position(line=0, character=0)),
            new_text="oops",
        )
        return EditBatch(edits=[edit], version=version, uri=uri)

    monkeypatch.setattr(reconciler, "synthesize", bad_synthesize)

    with pytest.raises(InvariantViolationError):
        reconcile("SELECT 1", "SELECT 2")


def test_overlapping_edits_fail_verification():
    mapper = CoordinateMapper("abcdef")
    first = types.TextEdit(
        range=types.Range(start=types.Position(line=0, character=0), end=types.Position(line=0, character=3)),
        new_text="",
    )
    second = types.TextEdit(
        range=types.Range(start=types.Position(line=0, character=2), end=types.Position(line=0, character=4)),
        new_text="",
    )

    with pytest.raises(InvariantViolationError, match="overlaps"):
        verify_batch(EditBatch(edits=[first, second]), mapper, "ef")


def test_inverted_range_fails_verification():
    mapper = CoordinateMapper("abc")
    edit = types.TextEdit(
        range=types.Range(start=types.Position(line=0, character=2), end=types.Position(line=0, character=1)),
        new_text="",
    )

    with pytest.raises(InvariantViolationError, match="inverted"):
        verify_batch(EditBatch(edits=[edit]), mapper, "abc")
