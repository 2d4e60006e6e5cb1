"""Shared helpers for the trino-lsp commands: logging, file IO and output."""

import json
import logging
import os
import traceback
from typing import Any

import click

from trino_lsp.lsp.features.formatting import EditBatch

DEBUG_ENV_VAR = "TRINO_LSP_DEBUG"


def get_env_flag(env_var: str, default: bool = False) -> bool:
    """True when ``env_var`` is "1", "true" or "yes" (any case); ``default`` when unset."""
    value = os.environ.get(env_var, "").lower()
    return value in ("1", "true", "yes") if value else default


def configure_logging(debug: bool = False) -> None:
    """Route every logger to one stderr handler.

    DEBUG with ``--debug`` or ``TRINO_LSP_DEBUG``, WARNING otherwise. The
    lsp command speaks the protocol on stdout, so nothing is logged there.
    """
    level = logging.DEBUG if debug or get_env_flag(DEBUG_ENV_VAR) else logging.WARNING

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level)

    # pygls and httpx loggers may have been configured before us
    for name in list(logging.root.manager.loggerDict):
        logging.getLogger(name).setLevel(level)


def read_text(path: str) -> str:
    # newline="" keeps \r\n and \r intact
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def render_batch(batch: EditBatch) -> None:
    """Print one line per edit: range, then the replacement text as a JSON string."""
    if batch.is_empty():
        click.echo(click.style("✅ No edits needed", fg="green"))
        return

    click.echo(click.style(f"✏️  {len(batch)} edit(s)", fg="cyan", bold=True))
    for edit in batch:
        start, end = edit.range.start, edit.range.end
        click.echo(
            f"   {start.line}:{start.character}-{end.line}:{end.character} "
            f"{json.dumps(edit.new_text)}"
        )


def output_json(result: Any) -> None:
    """Print a successful result inside the ``{"status": "ok"}`` envelope."""
    click.echo(json.dumps({"status": "ok", "result": result}, indent=2, default=str))


def output_error(error: Exception, json_output: bool = False, debug: bool = False) -> None:
    """Report an error as JSON or on stderr, then abort the command.

    Raises:
        click.Abort: Always
    """
    if json_output:
        payload = {"status": "error", "error": str(error)}
        if debug:
            payload["type"] = type(error).__name__
            payload["traceback"] = traceback.format_exc()
        click.echo(json.dumps(payload, indent=2))
    else:
        click.echo(f"Error: {error}", err=True)
        if debug:
            click.echo(f"\nTraceback:\n{traceback.format_exc()}", err=True)

    raise click.Abort()
