import click

from trino_lsp.cli.edits import edits
from trino_lsp.cli.format import format_file
from trino_lsp.cli.lsp import lsp


@click.group(invoke_without_command=True)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Trino LSP CLI"""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(lsp)
cli.add_command(edits)
cli.add_command(format_file)


if __name__ == "__main__":
    cli()
