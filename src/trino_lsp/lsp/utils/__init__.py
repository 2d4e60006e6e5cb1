"""LSP utility modules for trino-lsp."""

from .document_event_coordinator import DocumentEventCoordinator
from .models import ParseError, ParseResponse
from .parse_client import ParseServiceClient, ParseServiceError
from .settings import DocumentSettingsCache, LanguageServerSettings

__all__ = [
    "DocumentEventCoordinator",
    "ParseError",
    "ParseResponse",
    "ParseServiceClient",
    "ParseServiceError",
    "DocumentSettingsCache",
    "LanguageServerSettings",
]
