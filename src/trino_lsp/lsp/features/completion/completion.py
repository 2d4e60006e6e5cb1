from lsprotocol import types
from pygls.server import LanguageServer
from typing import List, Optional
import logging

from trino_lsp.lsp.utils.models import ParseResponse
from trino_lsp.lsp.utils.parse_client import ParseServiceClient, ParseServiceError

logger = logging.getLogger(__name__)


def build_completion_items(response: ParseResponse) -> List[types.CompletionItem]:
    """Turn the service's suggestions into plain-text completion items."""
    return [
        types.CompletionItem(
            label=suggestion,
            kind=types.CompletionItemKind.Text,
            data=1,
        )
        for suggestion in response.all_suggestions()
        if suggestion.strip()
    ]


def register_completion(server: LanguageServer, parse_client: ParseServiceClient):
    """
    Register completion functionality with the LSP server.

    The service suggests continuations for the end of the text it is given,
    so the whole document is sent regardless of the cursor position.

    Args:
        server: The language server instance
        parse_client: Client for the parse service
    """

    completion_options = types.CompletionOptions(
        trigger_characters=['.', ' '],
        resolve_provider=True,
    )

    @server.feature(types.TEXT_DOCUMENT_COMPLETION, completion_options)
    async def completions(ls: LanguageServer, params: types.CompletionParams) -> Optional[types.CompletionList]:
        """Provide completions for the given text document position."""
        logger.debug(f"Completion request received for {params.text_document.uri} at position {params.position}")

        try:
            document = ls.workspace.get_text_document(params.text_document.uri)
            response = await parse_client.parse(document.source)
        except ParseServiceError as e:
            logger.error(f"Error in completion handler: {e}")
            return None

        items = build_completion_items(response)
        logger.debug(f"Returning CompletionList with {len(items)} items")
        return types.CompletionList(is_incomplete=False, items=items)

    @server.feature(types.COMPLETION_ITEM_RESOLVE)
    def completion_resolve(ls: LanguageServer, item: types.CompletionItem) -> types.CompletionItem:
        """Suggestions carry no extra detail; items resolve to themselves."""
        return item
