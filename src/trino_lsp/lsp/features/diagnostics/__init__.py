"""Diagnostics feature for the LSP server."""

from .diagnostics import DiagnosticsService, register_diagnostics

__all__ = ["DiagnosticsService", "register_diagnostics"]
