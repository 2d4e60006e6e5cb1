import logging
import uuid
from typing import Optional

from pygls.server import LanguageServer
from lsprotocol import types

from trino_lsp.config.types import ServerConfig

from .features.completion import register_completion
from .features.diagnostics import DiagnosticsService, register_diagnostics
from .features.formatting import DiffEngine, FormattingService, register_formatting
from .utils.document_event_coordinator import DocumentEventCoordinator
from .utils.parse_client import ParseServiceClient
from .utils.settings import DocumentSettingsCache, LanguageServerSettings

logger = logging.getLogger(__name__)


class ServerInitializationState:
    """Tracks the initialization state of the LSP server components."""

    def __init__(self):
        self.parse_client_ready = False
        self.features_registered = False
        self.initialization_errors = []

    def add_error(self, component: str, error: Exception):
        """Add an initialization error for tracking."""
        self.initialization_errors.append((component, str(error)))
        logger.error(f"Initialization error in {component}: {error}")

    def is_ready_for_features(self) -> bool:
        return self.parse_client_ready

    def get_error_summary(self) -> str:
        """Get a summary of initialization errors."""
        if not self.initialization_errors:
            return "No initialization errors"

        return f"Initialization errors: {'; '.join([f'{comp}: {err}' for comp, err in self.initialization_errors])}"


class TrinoLSPServer:
    """
    LSP Server for SQL documents backed by an external parsing service.

    The server provides:
    - Diagnostics for parse errors reported by the service
    - Completion from the service's suggestions
    - Formatting as minimal edits reconciled against the document snapshot

    Client settings (the ``trinoLsp`` section) are cached per document and
    dropped whenever the client reports a configuration change.
    """

    def __init__(self, config: ServerConfig, port: Optional[int] = None):
        """
        Initialize the server.

        Args:
            config: Server configuration loaded from the config file
            port: Port number for TCP mode
        """
        self.config = config
        self.port = port or 3000

        self.parse_client: Optional[ParseServiceClient] = None
        self.diff_engine = DiffEngine(
            timeout=config["diff"]["timeout"],
            line_mode_threshold=config["diff"]["line_mode_threshold"],
        )
        self.settings_cache = DocumentSettingsCache(
            LanguageServerSettings(
                max_number_of_problems=config["diagnostics"]["max_number_of_problems"]
            )
        )
        self.ls = LanguageServer('trino-lsp', 'v0.1.0')
        self.document_coordinator = DocumentEventCoordinator()

        self.diagnostics_service: Optional[DiagnosticsService] = None
        self.formatting_service: Optional[FormattingService] = None

        self.init_state = ServerInitializationState()

        self._setup_server()

        logger.info(f"Trino LSP Server initialized, parse service at {config['service']['url']}")
        logger.info(self.init_state.get_error_summary())

    def _setup_server(self):
        """Register protocol handlers, create the parse client, then the features."""
        self._register_handlers()

        try:
            self._setup_parse_client()
            self.init_state.parse_client_ready = True
        except Exception as e:
            self.init_state.add_error("Parse Client", e)

        if self.init_state.is_ready_for_features():
            self._initialize_features()
        else:
            logger.warning("Parse client not ready - language features are unavailable")

    def _setup_parse_client(self):
        service = self.config["service"]
        self.parse_client = ParseServiceClient(
            url=service["url"],
            timeout=service["timeout"],
            include_auto_suggestions=service["include_auto_suggestions"],
        )
        logger.info("Parse service client created successfully")

    def _initialize_features(self):
        try:
            self._register_features()
            self.init_state.features_registered = True
            logger.info("LSP features initialized successfully")
        except Exception as e:
            self.init_state.add_error("Feature Registration", e)

    def _register_handlers(self):
        """Register LSP protocol handlers."""

        @self.ls.feature(types.INITIALIZED)
        async def initialized(ls: LanguageServer, params: types.InitializedParams):
            """Record client capabilities and subscribe to configuration changes."""
            logger.info("LSP: Server initialized successfully")
            self.settings_cache.update_client_capabilities(ls.client_capabilities)

            workspace = getattr(ls.client_capabilities, "workspace", None)
            if workspace and workspace.workspace_folders:
                logger.info("LSP: Client supports workspace folders")

            if self.settings_cache.has_configuration_capability:
                try:
                    await ls.register_capability_async(
                        types.RegistrationParams(
                            registrations=[
                                types.Registration(
                                    id=str(uuid.uuid4()),
                                    method=types.WORKSPACE_DID_CHANGE_CONFIGURATION,
                                )
                            ]
                        )
                    )
                except Exception as e:
                    logger.warning(f"Client rejected configuration change registration: {e}")

        @self.ls.feature(types.WORKSPACE_DID_CHANGE_CONFIGURATION)
        async def did_change_configuration(ls: LanguageServer, params: types.DidChangeConfigurationParams):
            """Reset cached settings and revalidate every open document."""
            logger.info("LSP: Configuration changed")
            if self.settings_cache.has_configuration_capability:
                self.settings_cache.clear()
            else:
                self.settings_cache.update_global(params.settings)

            if self.diagnostics_service:
                await self.diagnostics_service.revalidate_all()

        @self.ls.feature(types.WORKSPACE_DID_CHANGE_WATCHED_FILES)
        def did_change_watched_files(ls: LanguageServer, params: types.DidChangeWatchedFilesParams):
            logger.info(f"LSP: {len(params.changes)} watched file change(s) received")

        @self.ls.feature(types.SHUTDOWN)
        def shutdown(params=None):
            """Handle LSP shutdown request."""
            logger.info("LSP: Handling shutdown request")
            self._cleanup_resources()
            return None

        @self.ls.feature(types.EXIT)
        def exit_handler(params=None):
            """Handle exit notification."""
            logger.info("LSP: Server exiting")

    def _register_features(self):
        """
        Register LSP features with the server.

        Diagnostics subscribe to document events through the coordinator,
        which registers the notifications once every subscriber is known.

        Raises:
            RuntimeError: If no features could be registered
        """
        if not self.parse_client:
            raise RuntimeError("Cannot register features: parse client not initialized")

        logger.info("LSP: Registering features...")

        feature_results = {
            'completion': False,
            'diagnostics': False,
            'formatting': False,
        }

        try:
            register_completion(self.ls, self.parse_client)
            feature_results['completion'] = True
            logger.info("LSP: Completion feature registered")
        except Exception as e:
            self.init_state.add_error("Completion Feature", e)

        try:
            self.diagnostics_service = register_diagnostics(
                self.ls,
                self.parse_client,
                self.document_coordinator,
                settings_cache=self.settings_cache,
                source=self.config["diagnostics"]["source"],
            )
            self.document_coordinator.register_with_server(self.ls)
            feature_results['diagnostics'] = True
            logger.info("LSP: Diagnostics feature registered")
        except Exception as e:
            self.init_state.add_error("Diagnostics Feature", e)

        try:
            self.formatting_service = register_formatting(self.ls, self.parse_client, self.diff_engine)
            feature_results['formatting'] = True
            logger.info("LSP: Formatting feature registered")
        except Exception as e:
            self.init_state.add_error("Formatting Feature", e)

        registered_count = sum(feature_results.values())
        total_features = len(feature_results)

        logger.info(f"LSP: Feature registration completed - {registered_count}/{total_features} features registered")

        if registered_count == 0:
            raise RuntimeError("No LSP features could be registered - server cannot provide language support")

    def _cleanup_resources(self):
        """Release document handlers and cached settings."""
        logger.info("Cleaning up LSP server resources...")

        try:
            if self.document_coordinator:
                self.document_coordinator.clear_handlers()
        except Exception as e:
            logger.error(f"Error clearing document handlers: {e}")

        self.settings_cache.clear()
        logger.info("LSP server resource cleanup completed")

    def start(self, host: str = "localhost", use_tcp: bool = False):
        """Start the LSP server

        Args:
            host: Host to bind to when using TCP (default: localhost)
            use_tcp: Whether to use TCP instead of stdio
        """
        logger.info("Starting Trino LSP Server...")

        try:
            if use_tcp:
                logger.info(f"Starting LSP TCP server on {host}:{self.port}...")
                self.ls.start_tcp(host, self.port)
                logger.info("LSP TCP server finished")
            else:
                logger.info("Starting LSP IO server...")
                self.ls.start_io()
                logger.info("LSP IO server finished")
        except KeyboardInterrupt:
            logger.info("Received shutdown signal")
        except BrokenPipeError:
            logger.info("Broken pipe - client disconnected")
        except EOFError:
            logger.info("EOF - no more input from client")
        except Exception as e:
            logger.error(f"Error in LSP server: {e}")
            import traceback
            logger.error(traceback.format_exc())
        finally:
            self.shutdown()

    def shutdown(self):
        """Shutdown the LSP server and cleanup resources"""
        logger.info("Shutting down Trino LSP Server...")
        self._cleanup_resources()
