from unittest.mock import AsyncMock

import pytest
from lsprotocol import types

from trino_lsp.config.server_config import load_server_config
from trino_lsp.lsp.server import ServerInitializationState, TrinoLSPServer


@pytest.fixture
def server():
    return TrinoLSPServer(config=load_server_config())


def test_all_features_registered(server):
    assert server.init_state.parse_client_ready
    assert server.init_state.features_registered
    assert server.init_state.get_error_summary() == "No initialization errors"

    features = server.ls.lsp.fm.features
    for method in (
        types.TEXT_DOCUMENT_COMPLETION,
        types.COMPLETION_ITEM_RESOLVE,
        types.TEXT_DOCUMENT_FORMATTING,
        types.TEXT_DOCUMENT_DID_OPEN,
        types.TEXT_DOCUMENT_DID_CHANGE,
        types.TEXT_DOCUMENT_DID_CLOSE,
        types.WORKSPACE_DID_CHANGE_CONFIGURATION,
        types.WORKSPACE_DID_CHANGE_WATCHED_FILES,
    ):
        assert method in features, f"{method} should be registered"


def test_config_flows_into_components():
    config = load_server_config()
    config["diff"]["timeout"] = 0
    config["diagnostics"]["max_number_of_problems"] = 7

    server = TrinoLSPServer(config=config, port=4000)

    assert server.port == 4000
    assert server.diff_engine.timeout == 0
    assert server.settings_cache.global_settings.max_number_of_problems == 7
    assert server.parse_client.url == config["service"]["url"]


def test_invalid_service_url_disables_features():
    config = load_server_config()
    config["service"]["url"] = ""

    server = TrinoLSPServer(config=config)

    assert not server.init_state.parse_client_ready
    assert not server.init_state.features_registered
    assert "Parse Client" in server.init_state.get_error_summary()


async def test_configuration_change_resets_settings(server):
    server.diagnostics_service.revalidate_all = AsyncMock()
    handler = server.ls.lsp.fm.features[types.WORKSPACE_DID_CHANGE_CONFIGURATION]

    await handler(types.DidChangeConfigurationParams(settings={"trinoLsp": {"maxNumberOfProblems": 2}}))

    assert server.settings_cache.global_settings.max_number_of_problems == 2
    server.diagnostics_service.revalidate_all.assert_awaited_once()


def test_shutdown_clears_handlers(server):
    assert server.document_coordinator.get_handler_count() == 1

    server.shutdown()

    assert server.document_coordinator.get_handler_count() == 0


def test_initialization_state_tracks_errors():
    state = ServerInitializationState()
    assert not state.is_ready_for_features()

    state.add_error("Parse Client", ValueError("bad url"))

    assert state.get_error_summary() == "Initialization errors: Parse Client: bad url"
