"""Ledger persistence modules, loaded on first attribute access.

``user`` is the identity store, ``session_request`` the request ledger and
``session`` the session ledger.
"""

from importlib import import_module

__all__ = ["user", "session_request", "session"]


def __getattr__(name):
    if name in __all__:
        return import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
