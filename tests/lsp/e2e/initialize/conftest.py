import sys

import pytest_lsp
from lsprotocol.types import (
    ClientCapabilities,
    InitializeParams,
)
from pytest_lsp import ClientServerConfig, LanguageClient

# Nothing listens here, so every call to the parse service fails fast
UNREACHABLE_SERVICE_URL = "http://127.0.0.1:9/v1/parse"


@pytest_lsp.fixture(
    config=ClientServerConfig(
        server_command=[sys.executable, "-m", "trino_lsp", "lsp", "--service-url", UNREACHABLE_SERVICE_URL],
    ),
)
async def client(lsp_client: LanguageClient):
    params = InitializeParams(capabilities=ClientCapabilities())
    lsp_client.initialize_result = await lsp_client.initialize_session(params)

    yield

    await lsp_client.shutdown_session()
