"""Run-modes for the bleperiph CLI."""

from importlib import import_module as _imp

__all__ = ["serve", "tree"]


def __getattr__(name):
    # Modes pull in GLib; only import them when asked for
    if name in __all__:
        return _imp(f"{__name__}.{name}")
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
