import pytest
from unittest.mock import AsyncMock, Mock

from trino_lsp.lsp.features.diagnostics.diagnostics import DiagnosticsService
from trino_lsp.lsp.utils.models import ParseResponse
from trino_lsp.lsp.utils.settings import DocumentSettingsCache


@pytest.fixture
def parse_client():
    client = Mock()
    client.parse = AsyncMock(return_value=ParseResponse(formatted_sql="SELECT 1"))
    return client


@pytest.fixture
def mock_server():
    document = Mock()
    document.source = "SELECT 1"
    document.version = 1
    server = Mock()
    server.workspace.get_text_document.return_value = document
    return server


@pytest.fixture
def diagnostics_service(parse_client, mock_server):
    service = DiagnosticsService(parse_client, DocumentSettingsCache())
    service.set_server(mock_server)
    return service
