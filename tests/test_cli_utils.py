import json
import logging

import click
import pytest

from trino_lsp.cli.utils import (
    configure_logging,
    get_env_flag,
    output_error,
    output_json,
    read_text,
    render_batch,
)
from trino_lsp.lsp.features.formatting import reconcile


def test_get_env_flag(monkeypatch):
    monkeypatch.setenv("TRINO_LSP_TEST_FLAG", "Yes")
    assert get_env_flag("TRINO_LSP_TEST_FLAG")

    monkeypatch.setenv("TRINO_LSP_TEST_FLAG", "0")
    assert not get_env_flag("TRINO_LSP_TEST_FLAG", default=True)

    monkeypatch.delenv("TRINO_LSP_TEST_FLAG")
    assert get_env_flag("TRINO_LSP_TEST_FLAG", default=True)


def test_configure_logging_levels(monkeypatch):
    configure_logging()
    assert logging.getLogger().level == logging.WARNING

    monkeypatch.setenv("TRINO_LSP_DEBUG", "1")
    configure_logging()
    assert logging.getLogger().level == logging.DEBUG
    assert len(logging.getLogger().handlers) == 1


def test_read_text_keeps_line_breaks(tmp_path):
    path = tmp_path / "query.sql"
    path.write_bytes(b"SELECT 1\r\nFROM t\rWHERE x")

    assert read_text(str(path)) == "SELECT 1\r\nFROM t\rWHERE x"


def test_output_json_envelope(capsys):
    output_json({"edits": []})

    assert json.loads(capsys.readouterr().out) == {"status": "ok", "result": {"edits": []}}


def test_render_batch(capsys):
    render_batch(reconcile("a,b", "a, b\n"))

    lines = capsys.readouterr().out.splitlines()
    assert "2 edit(s)" in lines[0]
    assert lines[1:] == ['   0:2-0:2 " "', '   0:3-0:3 "\\n"']


def test_render_empty_batch(capsys):
    render_batch(reconcile("a", "a"))

    assert "No edits needed" in capsys.readouterr().out


def test_output_error_json_aborts(capsys):
    with pytest.raises(click.Abort):
        output_error(ValueError("bad input"), json_output=True, debug=True)

    payload = json.loads(capsys.readouterr().out)
    assert payload["status"] == "error"
    assert payload["error"] == "bad input"
    assert payload["type"] == "ValueError"


def test_output_error_text_goes_to_stderr(capsys):
    with pytest.raises(click.Abort):
        output_error(ValueError("bad input"))

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Error: bad input" in captured.err
