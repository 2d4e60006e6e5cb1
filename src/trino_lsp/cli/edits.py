from pathlib import Path

import click

from trino_lsp.cli.utils import configure_logging, output_error, output_json, read_text, render_batch
from trino_lsp.config.server_config import load_server_config
from trino_lsp.lsp.features.formatting import (
    UTF8,
    UTF16,
    UTF32,
    DiffEngine,
    reconcile,
)


@click.command(name="edits")
@click.argument("original", type=click.Path(exists=True, dir_okay=False))
@click.argument("candidate", type=click.Path(exists=True, dir_okay=False))
@click.option("--encoding", type=click.Choice([UTF8, UTF16, UTF32]), default=UTF32,
              help="Unit used for character positions (defaults to utf-32)")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def edits(original: str, candidate: str, encoding: str, json_output: bool, debug: bool):
    """Show the minimal edits that turn ORIGINAL into CANDIDATE.

    Positions are zero-based lines and columns in ORIGINAL. Every edit batch
    is verified by applying it before it is printed.

    \b
    Examples:
        trino-lsp edits query.sql formatted.sql
        trino-lsp edits query.sql formatted.sql --encoding utf-16 --json-output
    """
    configure_logging(debug)

    try:
        config = load_server_config()
        engine = DiffEngine(
            timeout=config["diff"]["timeout"],
            line_mode_threshold=config["diff"]["line_mode_threshold"],
        )

        original_text = read_text(original)
        candidate_text = read_text(candidate)

        batch = reconcile(
            original_text,
            candidate_text,
            uri=Path(original).resolve().as_uri(),
            engine=engine,
            position_encoding=encoding,
        )

        if json_output:
            output_json(batch.to_dict())
        else:
            render_batch(batch)

    except Exception as e:
        output_error(e, json_output, debug)
