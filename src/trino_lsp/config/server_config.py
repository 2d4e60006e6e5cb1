import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, cast

import yaml
from jsonschema import ValidationError, validate

from trino_lsp.config.references import interpolate_all
from trino_lsp.config.types import ServerConfig

logger = logging.getLogger(__name__)

__all__ = ["load_server_config", "default_config_path"]

CONFIG_ENV_VAR = "TRINO_LSP_CONFIG"
SERVICE_URL_ENV_VAR = "TRINO_LSP_SERVICE_URL"

DEFAULT_SERVICE_URL = "http://localhost:4567/v1/parse"


def default_config_path() -> Path:
    return Path(os.environ.get(CONFIG_ENV_VAR, Path.home() / ".trino-lsp" / "config.yml"))


def _apply_defaults(config: Dict[str, Any]) -> ServerConfig:
    """Apply default values to the server config"""
    config = config.copy()

    if "version" not in config:
        config["version"] = 1

    service = dict(config.get("service") or {})
    service.setdefault("url", DEFAULT_SERVICE_URL)
    service.setdefault("timeout", 10.0)
    service.setdefault("include_auto_suggestions", False)
    config["service"] = service

    diff = dict(config.get("diff") or {})
    diff.setdefault("timeout", 1.0)
    diff.setdefault("line_mode_threshold", 100)
    config["diff"] = diff

    diagnostics = dict(config.get("diagnostics") or {})
    diagnostics.setdefault("max_number_of_problems", 1000)
    diagnostics.setdefault("source", "Query Engine")
    config["diagnostics"] = diagnostics

    return cast(ServerConfig, config)


def load_server_config(path: Optional[Path] = None, resolve_refs: bool = True) -> ServerConfig:
    """Load the server configuration from ~/.trino-lsp/config.yml or TRINO_LSP_CONFIG.

    A missing default file means built-in defaults. A path given explicitly,
    or through TRINO_LSP_CONFIG, must exist.

    Values may reference the environment or local files:
        service:
          url: ${PARSE_SERVICE_URL}
        diagnostics:
          source: file://source-label.txt

    TRINO_LSP_SERVICE_URL, when set, overrides service.url.

    Args:
        path: Explicit config file path
        resolve_refs: Whether to resolve ${ENV_VAR} and file:// references

    Returns:
        The validated server configuration

    Raises:
        FileNotFoundError: If an explicitly requested config file doesn't exist
        ValueError: If the config is invalid or a reference cannot be resolved
    """
    explicit = path is not None or CONFIG_ENV_VAR in os.environ
    path = Path(path) if path is not None else default_config_path()
    logger.debug(f"Looking for server config at: {path}")

    if not path.exists():
        if explicit:
            raise FileNotFoundError(f"Trino LSP config not found at {path}")
        logger.debug(f"Trino LSP config not found at {path}, using defaults")
        config: Dict[str, Any] = {}
    else:
        with open(path) as f:
            config = yaml.safe_load(f) or {}
            logger.debug(f"Loaded server config from file: {config}")

        if not isinstance(config, dict):
            raise ValueError(f"Invalid server config: expected a mapping in {path}")

        if resolve_refs:
            config = interpolate_all(config)

    service_url = os.environ.get(SERVICE_URL_ENV_VAR)
    if service_url:
        config = config.copy()
        config["service"] = {**(config.get("service") or {}), "url": service_url}

    validated_config = _apply_defaults(config)
    logger.debug(f"Config after applying defaults: {validated_config}")

    schema_path = Path(__file__).parent / "config_schemas" / "trino-lsp-config-schema-1.json"
    with open(schema_path) as schema_file:
        schema = json.load(schema_file)

    try:
        validate(instance=validated_config, schema=schema)
    except ValidationError as e:
        raise ValueError(f"Invalid server config: {e.message}")

    return validated_config
