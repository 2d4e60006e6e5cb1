"""Document formatting for the LSP server."""

import logging
from typing import List, Optional

from lsprotocol import types
from pygls.server import LanguageServer

from trino_lsp.lsp.utils.parse_client import ParseServiceClient, ParseServiceError

from .coordinate_mapper import SUPPORTED_ENCODINGS, UTF16, CoordinateMapper
from .diff_engine import DiffEngine
from .errors import InvariantViolationError, ReconciliationError
from .models import EditBatch
from .reconciler import reconcile

logger = logging.getLogger(__name__)


class FormattingService:
    """
    Formats documents through the parse service.

    The service's output is never sent as a whole-document replacement;
    it is reconciled against the snapshot it was computed from, so the
    editor receives the smallest edits that produce the formatted text.
    """

    def __init__(self, parse_client: ParseServiceClient, diff_engine: Optional[DiffEngine] = None):
        self._parse_client = parse_client
        self._diff_engine = diff_engine or DiffEngine()
        self._server: Optional[LanguageServer] = None

    def set_server(self, server: LanguageServer) -> None:
        self._server = server

    def position_encoding(self) -> str:
        """Column unit negotiated with the client, UTF-16 unless stated otherwise."""
        capabilities = getattr(self._server, "server_capabilities", None) if self._server else None
        encoding = getattr(capabilities, "position_encoding", None)
        encoding = getattr(encoding, "value", encoding)
        if encoding in SUPPORTED_ENCODINGS:
            return encoding
        return UTF16

    async def format_document(self, params: types.DocumentFormattingParams) -> Optional[List[types.TextEdit]]:
        """
        Compute formatting edits for the current snapshot of a document.

        Returns:
            The edits, or None when nothing should be applied
        """
        if not self._server:
            logger.error("Server not set - cannot format documents")
            return None

        uri = params.text_document.uri
        document = self._server.workspace.get_text_document(uri)
        original = document.source
        version = document.version

        try:
            response = await self._parse_client.parse(original)
        except ParseServiceError as e:
            logger.error(f"Error formatting document {uri}: {e}")
            return None

        if response.formatted_sql is None:
            logger.info(f"No formatted text for {uri}; the document does not parse")
            return None

        batch = self.compute_edits(original, response.formatted_sql, version=version, uri=uri)
        if batch is None:
            return None

        current = self._server.workspace.get_text_document(uri)
        if batch.is_stale(current.version):
            logger.info(
                f"Discarding formatting edits for {uri}: computed for version {batch.version}, "
                f"document is at version {current.version}"
            )
            return None

        logger.debug(f"Returning {len(batch)} formatting edits for {uri}")
        return batch.edits

    def compute_edits(
        self,
        original: str,
        formatted: str,
        version: Optional[int] = None,
        uri: Optional[str] = None,
    ) -> Optional[EditBatch]:
        """
        Reconcile the formatted text against the original snapshot.

        A batch that fails verification is replaced by a single edit covering
        the whole document; any other engine failure yields None.
        """
        encoding = self.position_encoding()
        try:
            return reconcile(
                original,
                formatted,
                version=version,
                uri=uri,
                engine=self._diff_engine,
                position_encoding=encoding,
            )
        except InvariantViolationError as e:
            logger.error(f"Formatting edits for {uri} failed verification, replacing whole document: {e}")
            return full_document_edit(original, formatted, encoding, version=version, uri=uri)
        except ReconciliationError as e:
            logger.error(f"Could not compute formatting edits for {uri}: {e}")
            return None


def full_document_edit(
    original: str,
    formatted: str,
    position_encoding: str = UTF16,
    version: Optional[int] = None,
    uri: Optional[str] = None,
) -> EditBatch:
    """Single edit replacing all of ``original`` with ``formatted``."""
    mapper = CoordinateMapper(original, position_encoding)
    edit = types.TextEdit(
        range=types.Range(start=types.Position(line=0, character=0), end=mapper.end_position()),
        new_text=formatted,
    )
    return EditBatch(edits=[edit], version=version, uri=uri)


def register_formatting(
    server: LanguageServer,
    parse_client: ParseServiceClient,
    diff_engine: Optional[DiffEngine] = None,
) -> FormattingService:
    """
    Register document formatting with the LSP server.

    Args:
        server: The language server instance
        parse_client: Client for the parse service
        diff_engine: Engine used to align original and formatted text

    Returns:
        The formatting service instance
    """
    service = FormattingService(parse_client, diff_engine)
    service.set_server(server)

    @server.feature(types.TEXT_DOCUMENT_FORMATTING)
    async def formatting(ls: LanguageServer, params: types.DocumentFormattingParams):
        return await service.format_document(params)

    logger.info("Formatting functionality registered successfully")
    return service
