from .completion import build_completion_items, register_completion

__all__ = ["build_completion_items", "register_completion"]
