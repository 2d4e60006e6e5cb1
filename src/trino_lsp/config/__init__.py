"""Configuration loading for trino-lsp."""

from .server_config import load_server_config
from .types import ServerConfig

__all__ = ["load_server_config", "ServerConfig"]
