"""
Global pytest configuration and fixtures.
"""

import os

import pytest


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep every test away from the user's ~/.trino-lsp/config.yml.

    HOME points into the test's temporary directory and the config and
    service URL environment overrides are cleared.
    """
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for env_var in ("TRINO_LSP_CONFIG", "TRINO_LSP_SERVICE_URL", "TRINO_LSP_DEBUG"):
        monkeypatch.delenv(env_var, raising=False)
    yield
