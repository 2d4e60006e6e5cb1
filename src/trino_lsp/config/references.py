"""
External reference handling for configuration values.

Two kinds of references are resolved:
- ``${ENV_VAR}`` anywhere in a string, replaced by the variable's value
- ``file://path`` as a whole value, replaced by the file's stripped content
"""
import logging
import os
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

ENV_VAR_PATTERN = re.compile(r'\${([A-Za-z0-9_]+)}')
FILE_URL_PATTERN = re.compile(r'file://(.+)')


def is_external_reference(value: Any) -> bool:
    """Check if a value contains any external reference."""
    if not isinstance(value, str):
        return False
    return value.startswith('file://') or ENV_VAR_PATTERN.search(value) is not None


def resolve_env_var(value: str) -> str:
    """Resolve environment variable references in a string.

    Args:
        value: String potentially containing ${ENV_VAR} references

    Returns:
        String with all environment variables resolved

    Raises:
        ValueError: If an environment variable is not set
    """
    matches = ENV_VAR_PATTERN.findall(value)
    if not matches:
        return value

    result = value
    for env_var in matches:
        if env_var not in os.environ:
            raise ValueError(f"Environment variable {env_var} is not set")
        result = result.replace(f"${{{env_var}}}", os.environ[env_var])

    return result


def resolve_file_url(file_url: str) -> str:
    """Resolve a file:// URL to the content of a local file.

    Relative paths (file://dir/file) are taken from the current directory,
    absolute ones are written file:///dir/file.

    Raises:
        ValueError: If the URL is malformed or the file cannot be read
        FileNotFoundError: If the file does not exist
    """
    match = FILE_URL_PATTERN.match(file_url)
    if not match:
        raise ValueError(f"Invalid file URL format: '{file_url}'. Expected format: file://path/to/file")

    file_path_str = match.group(1)
    if file_path_str.startswith('/'):
        file_path = Path(file_path_str)
    else:
        file_path = Path.cwd() / file_path_str

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    if not file_path.is_file():
        raise ValueError(f"Path is not a file: {file_path}")

    try:
        content = file_path.read_text(encoding='utf-8').strip()
    except OSError as e:
        raise ValueError(f"Error reading file '{file_path}': {e}")

    if not content:
        logger.warning(f"File '{file_path}' is empty")
    return content


def resolve_value(value: str) -> str:
    if value.startswith('file://'):
        return resolve_file_url(value)
    return resolve_env_var(value)


def interpolate_all(config: Any) -> Any:
    """Recursively resolve every external reference in a configuration structure."""
    if isinstance(config, str) and is_external_reference(config):
        return resolve_value(config)
    elif isinstance(config, dict):
        return {k: interpolate_all(v) for k, v in config.items()}
    elif isinstance(config, list):
        return [interpolate_all(item) for item in config]
    else:
        return config
