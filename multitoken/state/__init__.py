"""
multitoken.state — state subsystem (storage, journal, events).

The common symbols are lazily re-exported from their submodules on first
access to keep import-time overhead low and avoid circulars.

Submodules:
- storage:  base key/value view and per-contract storage handles
- journal:  journaling writes, deployments and events; checkpoints
- events:   Event records and sink backends
"""

from __future__ import annotations

from importlib import import_module as _imp
from typing import Any, Dict, Tuple

# Map of public attributes → (submodule, symbol)
_exports: Dict[str, Tuple[str, str]] = {
    "StorageView": ("storage", "StorageView"),
    "ContractStorage": ("storage", "ContractStorage"),
    "Journal": ("journal", "Journal"),
    "Event": ("events", "Event"),
    "EventRecord": ("events", "EventRecord"),
    "EventSink": ("events", "EventSink"),
    "InMemoryEventSink": ("events", "InMemoryEventSink"),
    "JsonlEventSink": ("events", "JsonlEventSink"),
    "NullEventSink": ("events", "NullEventSink"),
}

__all__ = tuple(_exports.keys())


def __getattr__(name: str) -> Any:
    """
    Lazy attribute loader to avoid import-time dependency tangles.
    """
    if name in _exports:
        submod, symbol = _exports[name]
        mod = _imp(f"{__name__}.{submod}")
        return getattr(mod, symbol)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:  # pragma: no cover
    return sorted(list(globals().keys()) + list(__all__))
