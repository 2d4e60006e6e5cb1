import asyncio
from pathlib import Path
from typing import Optional

import click

from trino_lsp.cli.utils import configure_logging, output_error, output_json, read_text, render_batch
from trino_lsp.config.server_config import load_server_config
from trino_lsp.lsp.features.formatting import DiffEngine, reconcile
from trino_lsp.lsp.utils.parse_client import ParseServiceClient


@click.command(name="format")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--service-url", help="URL of the parse service endpoint (overrides the config file)")
@click.option("--write", is_flag=True, help="Write the formatted text back to FILE")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def format_file(file: str, service_url: Optional[str], write: bool, json_output: bool, debug: bool):
    """Format a SQL file through the parse service.

    Prints the edits the language server would send for FILE, or with
    --write replaces the file's content with the formatted text.

    \b
    Examples:
        trino-lsp format query.sql
        trino-lsp format query.sql --write
        trino-lsp format query.sql --json-output
    """
    configure_logging(debug)

    try:
        config = load_server_config()
        client = ParseServiceClient(
            url=service_url or config["service"]["url"],
            timeout=config["service"]["timeout"],
        )
        engine = DiffEngine(
            timeout=config["diff"]["timeout"],
            line_mode_threshold=config["diff"]["line_mode_threshold"],
        )

        original = read_text(file)
        response = asyncio.run(client.parse(original))

        if response.formatted_sql is None:
            if response.has_error():
                error = response.parse_error
                raise click.ClickException(
                    f"Cannot format {file}: {error.message} (line {error.row}, column {error.column})"
                )
            raise click.ClickException(f"Parse service returned no formatted text for {file}")

        batch = reconcile(
            original,
            response.formatted_sql,
            uri=Path(file).resolve().as_uri(),
            engine=engine,
        )

        if write:
            if not batch.is_empty():
                with open(file, "w", encoding="utf-8", newline="") as f:
                    f.write(response.formatted_sql)
            if json_output:
                output_json({"file": file, "changed": not batch.is_empty(), "edits": len(batch)})
            else:
                click.echo(f"{click.style('✅ Formatted', fg='green')} {file} ({len(batch)} edit(s))")
        elif json_output:
            output_json(batch.to_dict())
        else:
            render_batch(batch)

    except Exception as e:
        output_error(e, json_output, debug)
