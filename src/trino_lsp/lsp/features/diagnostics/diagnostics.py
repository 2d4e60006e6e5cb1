"""Main diagnostics functionality for the LSP server."""

import logging
from typing import Dict, List, Optional, Tuple

from lsprotocol import types
from pygls.server import LanguageServer

from trino_lsp.lsp.utils.document_event_coordinator import DocumentEventCoordinator
from trino_lsp.lsp.utils.models import ParseResponse
from trino_lsp.lsp.utils.parse_client import ParseServiceClient, ParseServiceError
from trino_lsp.lsp.utils.settings import DEFAULT_MAX_NUMBER_OF_PROBLEMS, DocumentSettingsCache

logger = logging.getLogger(__name__)

DEFAULT_DIAGNOSTICS_SOURCE = "Query Engine"


class DiagnosticsService:
    """Validates documents through the parse service and publishes the errors."""

    def __init__(
        self,
        parse_client: ParseServiceClient,
        settings_cache: Optional[DocumentSettingsCache] = None,
        source: str = DEFAULT_DIAGNOSTICS_SOURCE,
    ):
        self._parse_client = parse_client
        self._settings_cache = settings_cache or DocumentSettingsCache()
        self._source = source
        self._diagnostics: Dict[str, Tuple[int, List[types.Diagnostic]]] = {}
        self._server: Optional[LanguageServer] = None

    def set_server(self, server: LanguageServer) -> None:
        """Set the server instance for reading documents and publishing diagnostics."""
        self._server = server

    async def handle_document_open(self, params: types.DidOpenTextDocumentParams) -> None:
        await self.validate_document(params.text_document.uri)

    async def handle_document_change(self, params: types.DidChangeTextDocumentParams) -> None:
        await self.validate_document(params.text_document.uri)

    def handle_document_close(self, params: types.DidCloseTextDocumentParams) -> None:
        """Forget the document and clear its diagnostics in the client."""
        uri = params.text_document.uri
        self._diagnostics.pop(uri, None)
        self._settings_cache.forget(uri)
        if self._server:
            self._server.publish_diagnostics(uri, [])

    async def validate_document(self, document_uri: str) -> None:
        """
        Validate the current snapshot of a document and publish the result.

        The result is dropped when the document changed while the service was
        answering; the newer change triggers its own validation.
        """
        if not self._server:
            logger.error("Server not set - cannot validate documents")
            return

        document = self._server.workspace.get_text_document(document_uri)
        version = document.version
        settings = await self._settings_cache.get(self._server, document_uri)

        diagnostics = await self.collect_diagnostics(
            document_uri,
            document.source,
            max_problems=settings.max_number_of_problems,
        )

        current = self._server.workspace.get_text_document(document_uri)
        if current.version != version:
            logger.debug(
                f"Dropping diagnostics for {document_uri} version {version}; "
                f"document is now at version {current.version}"
            )
            return
        self._diagnostics[document_uri] = (version, diagnostics)
        self.publish_diagnostics(document_uri)

    async def revalidate_all(self) -> None:
        """Validate every open document, e.g. after a configuration change."""
        if not self._server:
            return
        for uri in list(self._server.workspace.text_documents.keys()):
            await self.validate_document(uri)

    async def parse_document(
        self,
        document_uri: str,
        document_source: str,
        document_version: int,
        max_problems: int = DEFAULT_MAX_NUMBER_OF_PROBLEMS,
    ) -> None:
        """
        Ask the parse service about a document and store its diagnostics.

        Args:
            document_uri: URI of the document
            document_source: Full text of the document
            document_version: Version of the document
            max_problems: Upper bound on stored diagnostics
        """
        diagnostics = await self.collect_diagnostics(document_uri, document_source, max_problems)
        self._diagnostics[document_uri] = (document_version, diagnostics)

    async def collect_diagnostics(
        self,
        document_uri: str,
        document_source: str,
        max_problems: int = DEFAULT_MAX_NUMBER_OF_PROBLEMS,
    ) -> List[types.Diagnostic]:
        """Ask the parse service about a document; a failing service reports nothing."""
        try:
            response = await self._parse_client.parse(document_source)
        except ParseServiceError as e:
            logger.error(f"Error validating document {document_uri}: {e}")
            return []

        return self.build_diagnostics(response)[:max_problems]

    def build_diagnostics(self, response: ParseResponse) -> List[types.Diagnostic]:
        """Translate a service response into LSP diagnostics."""
        if not response.has_error():
            return []

        position = response.parse_error.to_position()
        return [
            types.Diagnostic(
                message=response.parse_error.message,
                severity=types.DiagnosticSeverity.Error,
                range=types.Range(start=position, end=position),
                source=self._source,
            )
        ]

    def get_diagnostics(self, document_uri: str) -> Tuple[int, List[types.Diagnostic]]:
        """
        Get diagnostics for a document.

        Returns:
            Tuple of (version, diagnostics); (0, []) for unknown documents
        """
        return self._diagnostics.get(document_uri, (0, []))

    def publish_diagnostics(self, document_uri: str) -> None:
        if not self._server:
            logger.error("Server not set - cannot publish diagnostics")
            return

        version, diagnostics = self.get_diagnostics(document_uri)
        self._server.publish_diagnostics(
            uri=document_uri,
            diagnostics=diagnostics,
            version=version,
        )


def register_diagnostics(
    server: LanguageServer,
    parse_client: ParseServiceClient,
    coordinator: DocumentEventCoordinator,
    settings_cache: Optional[DocumentSettingsCache] = None,
    source: str = DEFAULT_DIAGNOSTICS_SOURCE,
) -> DiagnosticsService:
    """
    Register diagnostics with the LSP server.

    The service subscribes to document events through the coordinator
    instead of registering the notifications itself.

    Args:
        server: The language server instance
        parse_client: Client for the parse service
        coordinator: Document event coordinator shared by all features
        settings_cache: Per-session settings cache
        source: Source label shown on every diagnostic

    Returns:
        The diagnostics service instance
    """
    try:
        service = DiagnosticsService(parse_client, settings_cache, source)
        service.set_server(server)
        coordinator.register_handler(service)

        logger.info("Diagnostics functionality registered successfully")
        return service

    except Exception as e:
        logger.error(f"Error registering diagnostics functionality: {e}")
        raise
