"""
LSP server implementation for trino-lsp.

Key Components:
- TrinoLSPServer: Language server wiring the features to a parse service
- Feature modules: completion, diagnostics and formatting
- Formatting engine: diff, coordinate mapping and edit synthesis

Usage Example:
    from trino_lsp.config.server_config import load_server_config
    from trino_lsp.lsp import TrinoLSPServer

    server = TrinoLSPServer(config=load_server_config())
    server.start()
"""

from .server import TrinoLSPServer, ServerInitializationState

from .features.completion import register_completion
from .features.diagnostics import register_diagnostics
from .features.formatting import register_formatting, reconcile

from .utils import DocumentEventCoordinator, ParseServiceClient

__all__ = [
    "TrinoLSPServer",
    "ServerInitializationState",
    "register_completion",
    "register_diagnostics",
    "register_formatting",
    "reconcile",
    "DocumentEventCoordinator",
    "ParseServiceClient",
]
