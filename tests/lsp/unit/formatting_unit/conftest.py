import pytest
from unittest.mock import AsyncMock, Mock

from trino_lsp.lsp.features.formatting.diff_engine import DiffEngine
from trino_lsp.lsp.features.formatting.formatting import FormattingService
from trino_lsp.lsp.utils.models import ParseResponse

LOCALIZED_ORIGINAL = "SELECT a,b FROM t"
LOCALIZED_CANDIDATE = "SELECT a, b\nFROM t"


@pytest.fixture
def engine():
    """Engine without a deadline, so results never depend on machine speed."""
    return DiffEngine(timeout=0)


def make_document(source: str, version: int = 1):
    document = Mock()
    document.source = source
    document.version = version
    return document


@pytest.fixture
def mock_server():
    server = Mock()
    server.server_capabilities = None
    server.workspace.get_text_document.return_value = make_document(LOCALIZED_ORIGINAL, 3)
    return server


@pytest.fixture
def parse_client():
    client = Mock()
    client.parse = AsyncMock(return_value=ParseResponse(formatted_sql=LOCALIZED_CANDIDATE))
    return client


@pytest.fixture
def formatting_service(parse_client, mock_server, engine):
    service = FormattingService(parse_client, engine)
    service.set_server(mock_server)
    return service
