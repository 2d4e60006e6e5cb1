import click
import signal
from typing import Optional
from trino_lsp.lsp.server import TrinoLSPServer
from trino_lsp.cli.utils import output_error, configure_logging
from trino_lsp.config.server_config import load_server_config


@click.command(name="lsp")
@click.option("--port", type=int, help="Port number for LSP server (defaults to 3000)")
@click.option("--host", default="localhost", help="Host to bind to when using TCP mode (defaults to localhost)")
@click.option("--tcp", is_flag=True, help="Use TCP instead of stdio for LSP communication")
@click.option("--service-url", help="URL of the parse service endpoint (overrides the config file)")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def lsp(port: Optional[int], host: str, tcp: bool, service_url: Optional[str], debug: bool):
    """Start the Trino LSP server.

    The server provides diagnostics, completion and formatting for SQL
    documents. Parsing and formatting are delegated to an external parse
    service; formatting results are sent to the editor as minimal edits.

    By default, the server uses stdio for communication (suitable for IDE integration).
    Use --tcp flag for testing or when stdio communication is not suitable.

    \b
    Examples:
        trino-lsp lsp                     # Start LSP server using stdio
        trino-lsp lsp --tcp               # Start LSP server using TCP on localhost:3000
        trino-lsp lsp --tcp --port 4000   # Start LSP server using TCP on localhost:4000
        trino-lsp lsp --service-url http://parser:4567/v1/parse
        trino-lsp lsp --debug             # Start with detailed debug logging
    """
    configure_logging(debug)

    try:
        config = load_server_config()
        if service_url:
            config["service"]["url"] = service_url

        final_port = port or 3000

        def signal_handler(signum, frame):
            raise KeyboardInterrupt()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        server = TrinoLSPServer(config=config, port=final_port)

        if tcp:
            click.echo(f"Starting Trino LSP server on {host}:{final_port}")
            server.start(host=host, use_tcp=True)
        else:
            server.start(host=host, use_tcp=False)

    except KeyboardInterrupt:
        click.echo("\nLSP server stopped", err=True)
    except Exception as e:
        output_error(e, json_output=False, debug=debug)
