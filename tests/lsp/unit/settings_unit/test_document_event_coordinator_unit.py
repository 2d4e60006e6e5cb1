import pytest
from lsprotocol import types
from pygls.server import LanguageServer

from trino_lsp.lsp.utils.document_event_coordinator import DocumentEventCoordinator


class RecordingHandler:
    def __init__(self):
        self.events = []

    def handle_document_open(self, params):
        self.events.append(("open", params))

    async def handle_document_change(self, params):
        self.events.append(("change", params))


class FailingHandler:
    def handle_document_open(self, params):
        raise RuntimeError("boom")


def test_register_and_unregister():
    coordinator = DocumentEventCoordinator()
    handler = RecordingHandler()

    coordinator.register_handler(handler)
    coordinator.register_handler(handler)
    assert coordinator.get_handler_count() == 1

    assert coordinator.unregister_handler(handler) is True
    assert coordinator.unregister_handler(handler) is False
    assert coordinator.get_handler_count() == 0


def test_none_handler_is_rejected():
    with pytest.raises(ValueError):
        DocumentEventCoordinator().register_handler(None)


async def test_events_reach_sync_and_async_handlers():
    coordinator = DocumentEventCoordinator()
    handler = RecordingHandler()
    coordinator.register_handler(handler)

    await coordinator.distribute_event("handle_document_open", "open-params")
    await coordinator.distribute_event("handle_document_change", "change-params")
    await coordinator.distribute_event("handle_document_close", "close-params")

    assert handler.events == [("open", "open-params"), ("change", "change-params")]


async def test_failing_handler_does_not_block_others():
    coordinator = DocumentEventCoordinator()
    handler = RecordingHandler()
    coordinator.register_handler(FailingHandler())
    coordinator.register_handler(handler)

    await coordinator.distribute_event("handle_document_open", "params")

    assert handler.events == [("open", "params")]


def test_register_with_server_requires_handlers():
    with pytest.raises(RuntimeError):
        DocumentEventCoordinator().register_with_server(LanguageServer("test-server", "v1"))


def test_register_with_server_registers_document_notifications():
    server = LanguageServer("test-server", "v1")
    coordinator = DocumentEventCoordinator()
    coordinator.register_handler(RecordingHandler())

    coordinator.register_with_server(server)
    coordinator.register_with_server(server)

    assert coordinator.is_registered_with_server
    for method in (types.TEXT_DOCUMENT_DID_OPEN, types.TEXT_DOCUMENT_DID_CHANGE, types.TEXT_DOCUMENT_DID_CLOSE):
        assert method in server.lsp.fm.features


def test_clear_handlers():
    coordinator = DocumentEventCoordinator()
    coordinator.register_handler(RecordingHandler())
    coordinator.clear_handlers()
    assert coordinator.get_handler_count() == 0
