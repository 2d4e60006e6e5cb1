"""
Document Event Coordinator - single registration point for document events.

Text document notifications can only be registered once with a pygls
server. The coordinator registers open, change and close once and fans
each event out to every subscribed handler. The diagnostics service is
the subscriber today; its close handler also drops the document's
cached settings.

Handlers may be plain or ``async`` methods; coroutines are awaited in
registration order. A failing handler is logged and does not stop the
others from receiving the event.
"""

import inspect
import logging
from threading import Lock
from typing import List, Protocol

from lsprotocol import types
from pygls.server import LanguageServer

logger = logging.getLogger(__name__)


class DocumentEventHandler(Protocol):
    """
    Interface for document event subscribers.

    Every method is optional; the coordinator only calls the ones a handler
    defines.
    """

    def handle_document_open(self, params: types.DidOpenTextDocumentParams) -> None:
        """Called when a document is opened in the editor."""
        ...

    def handle_document_change(self, params: types.DidChangeTextDocumentParams) -> None:
        """Called after the server's copy of a document has been updated."""
        ...

    def handle_document_close(self, params: types.DidCloseTextDocumentParams) -> None:
        """Called when a document is closed in the editor."""
        ...


class DocumentEventCoordinator:
    """
    Distributes document events from the LSP server to feature handlers.

    Thread Safety:
    - Handler registration and removal are guarded by a lock
    - Events are distributed to a snapshot of the handler list
    """

    def __init__(self):
        self._handlers: List[DocumentEventHandler] = []
        self._registered_with_server = False
        self._handler_lock = Lock()
        self._registration_lock = Lock()

    def register_handler(self, handler: DocumentEventHandler) -> None:
        """
        Subscribe a handler. Handlers are called in registration order.

        Raises:
            ValueError: If handler is None
        """
        if handler is None:
            raise ValueError("Handler cannot be None")

        with self._handler_lock:
            if handler in self._handlers:
                logger.warning(f"Handler {type(handler).__name__} is already registered")
                return

            self._handlers.append(handler)
            logger.info(f"Registered document event handler: {type(handler).__name__}")

    def unregister_handler(self, handler: DocumentEventHandler) -> bool:
        """
        Unsubscribe a handler.

        Returns:
            True if handler was found and removed, False otherwise
        """
        with self._handler_lock:
            try:
                self._handlers.remove(handler)
                logger.info(f"Unregistered document event handler: {type(handler).__name__}")
                return True
            except ValueError:
                logger.warning(f"Handler {type(handler).__name__} was not registered")
                return False

    def get_handler_count(self) -> int:
        with self._handler_lock:
            return len(self._handlers)

    @property
    def is_registered_with_server(self) -> bool:
        return self._registered_with_server

    def register_with_server(self, server: LanguageServer) -> None:
        """
        Register the document notifications with the server.

        Only the first call registers; later calls are ignored with a warning.

        Raises:
            ValueError: If server is None
            RuntimeError: If no handlers are registered
        """
        if server is None:
            raise ValueError("Server cannot be None")

        with self._registration_lock:
            if self._registered_with_server:
                logger.warning("Document events already registered with server")
                return

            if self.get_handler_count() == 0:
                raise RuntimeError("Cannot register with server: no handlers registered")

            self._register_server_events(server)
            self._registered_with_server = True

            logger.info(f"Document events registered with server for {self.get_handler_count()} handlers")

    def _register_server_events(self, server: LanguageServer) -> None:

        @server.feature(types.TEXT_DOCUMENT_DID_OPEN)
        async def did_open(ls: LanguageServer, params: types.DidOpenTextDocumentParams):
            await self.distribute_event("handle_document_open", params)

        @server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
        async def did_change(ls: LanguageServer, params: types.DidChangeTextDocumentParams):
            await self.distribute_event("handle_document_change", params)

        @server.feature(types.TEXT_DOCUMENT_DID_CLOSE)
        async def did_close(ls: LanguageServer, params: types.DidCloseTextDocumentParams):
            await self.distribute_event("handle_document_close", params)

    async def distribute_event(self, method_name: str, params) -> None:
        """
        Call ``method_name`` on every handler that defines it.

        Args:
            method_name: Name of the handler method to call
            params: Event parameters to pass to handlers
        """
        with self._handler_lock:
            handlers_copy = self._handlers.copy()

        for handler in handlers_copy:
            method = getattr(handler, method_name, None)
            if not callable(method):
                continue
            try:
                result = method(params)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Error in {method_name} handler {type(handler).__name__}: {e}")

    def clear_handlers(self) -> None:
        """Remove every handler; used during server shutdown."""
        with self._handler_lock:
            handler_count = len(self._handlers)
            self._handlers.clear()
            logger.info(f"Cleared {handler_count} document event handlers")
