"""
Per-session cache of client-side settings.

Clients that support ``workspace/configuration`` are asked for the
``trinoLsp`` section once per document and the answer is cached until the
document closes or the configuration changes. Other clients share one set
of global settings, updated from ``workspace/didChangeConfiguration``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from lsprotocol import types
from pygls.server import LanguageServer

logger = logging.getLogger(__name__)

SETTINGS_SECTION = "trinoLsp"
DEFAULT_MAX_NUMBER_OF_PROBLEMS = 1000


@dataclass
class LanguageServerSettings:
    """Settings the client can change at runtime."""
    max_number_of_problems: int = DEFAULT_MAX_NUMBER_OF_PROBLEMS

    @classmethod
    def from_client(cls, data: Any, defaults: Optional["LanguageServerSettings"] = None) -> "LanguageServerSettings":
        """
        Build settings from a client payload, keeping defaults for missing keys.

        Args:
            data: The ``trinoLsp`` section as sent by the client, or None
            defaults: Settings used for anything the payload leaves out
        """
        defaults = defaults or cls()
        if not isinstance(data, dict):
            return cls(max_number_of_problems=defaults.max_number_of_problems)

        max_problems = data.get("maxNumberOfProblems", defaults.max_number_of_problems)
        try:
            max_problems = int(max_problems)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid maxNumberOfProblems setting: {max_problems!r}")
            max_problems = defaults.max_number_of_problems
        return cls(max_number_of_problems=max(max_problems, 0))


class DocumentSettingsCache:
    """Resolves and caches settings for open documents."""

    def __init__(self, defaults: Optional[LanguageServerSettings] = None):
        self._defaults = defaults or LanguageServerSettings()
        self._global_settings = self._defaults
        self._document_settings: Dict[str, LanguageServerSettings] = {}
        self.has_configuration_capability = False

    @property
    def global_settings(self) -> LanguageServerSettings:
        return self._global_settings

    def update_client_capabilities(self, capabilities: Optional[types.ClientCapabilities]) -> None:
        """Record whether the client answers ``workspace/configuration`` requests."""
        workspace = getattr(capabilities, "workspace", None) if capabilities else None
        self.has_configuration_capability = bool(workspace and workspace.configuration)
        logger.debug(f"Client configuration capability: {self.has_configuration_capability}")

    async def get(self, server: LanguageServer, uri: str) -> LanguageServerSettings:
        """
        Get the settings for a document.

        Args:
            server: Server used to send the configuration request
            uri: URI of the document

        Returns:
            Cached, freshly fetched, or global settings
        """
        if not self.has_configuration_capability:
            return self._global_settings

        cached = self._document_settings.get(uri)
        if cached is not None:
            return cached

        try:
            result = await server.get_configuration_async(
                types.WorkspaceConfigurationParams(
                    items=[types.ConfigurationItem(scope_uri=uri, section=SETTINGS_SECTION)]
                )
            )
        except Exception as e:
            logger.warning(f"Could not fetch settings for {uri}: {e}")
            return self._global_settings

        settings = LanguageServerSettings.from_client(result[0] if result else None, self._defaults)
        self._document_settings[uri] = settings
        return settings

    def update_global(self, payload: Any) -> None:
        """Replace the global settings from a didChangeConfiguration payload."""
        section = payload.get(SETTINGS_SECTION) if isinstance(payload, dict) else None
        self._global_settings = LanguageServerSettings.from_client(section, self._defaults)

    def forget(self, uri: str) -> None:
        """Drop the cached settings of a closed document."""
        self._document_settings.pop(uri, None)

    def clear(self) -> None:
        """Drop every cached document setting."""
        self._document_settings.clear()
