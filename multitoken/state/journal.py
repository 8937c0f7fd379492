"""
multitoken.state.journal — journaling writes, checkpoints, revert/commit.

A deterministic, in-memory write journal layered over a StorageView and a
deployment table. It supports nested checkpoints via a stack of overlays.
Writes go to the top overlay; reads consult overlays from top → base.
`commit()` merges the top overlay into the next layer (or the base state if
it's the last layer). `revert()` discards the top overlay.

Each overlay also buffers the events emitted while it was on top, so a
reverted checkpoint drops its events together with its writes. Events reach
the caller only when the outermost checkpoint is applied to base.

Intended usage
--------------
    j = Journal(base_storage, base_code)
    j.begin()
    j.storage_set(addr, ("bal", ident, alice), 10)
    j.emit(event)
    j.commit()                      # apply to parent/base
    for ev in j.drain_events():     # events committed to base, in order
        sink.append(ev)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, MutableMapping, Optional, Tuple

from .storage import StorageKey, StorageView, is_empty_value, key_order


class _Deleted:
    __slots__ = ()

    def __repr__(self) -> str:  # pragma: no cover - debug aid
        return "<deleted>"


_DELETED = _Deleted()


def _b(x: bytes | bytearray | memoryview, *, name: str) -> bytes:
    if not isinstance(x, (bytes, bytearray, memoryview)):
        raise TypeError(f"{name} must be bytes-like")
    return bytes(x)


# =============================================================================
# Overlay model
# =============================================================================


@dataclass
class _Overlay:
    """
    A single journal layer.

    - `storage`: staged storage changes. `_DELETED` marks a deletion.
    - `code`: contracts deployed in this layer.
    - `events`: events emitted while this layer was on top.
    """

    storage: Dict[bytes, Dict[StorageKey, Any]] = field(default_factory=dict)
    code: Dict[bytes, Any] = field(default_factory=dict)
    events: List[Any] = field(default_factory=list)

    def storage_get_local(self, addr: bytes, key: StorageKey) -> Any:
        m = self.storage.get(addr)
        if m is None:
            return None
        return m.get(key, None)

    def storage_set_local(self, addr: bytes, key: StorageKey, value: Any) -> None:
        self.storage.setdefault(addr, {})[key] = value


# =============================================================================
# Journal
# =============================================================================


class Journal:
    """
    A copy-on-write write journal with nested checkpoints.

    Parameters
    ----------
    storage : StorageView
        The base storage view.
    code : MutableMapping[bytes, Any]
        The base deployment table (address → contract object).

    API highlights
    --------------
    - begin() / commit() / revert()
    - storage_get(), storage_set(), storage_items()
    - code_at(), deploy()
    - emit(), drain_events()
    """

    def __init__(
        self,
        storage: Optional[StorageView] = None,
        code: Optional[MutableMapping[bytes, Any]] = None,
    ) -> None:
        self._base_storage = storage if storage is not None else StorageView()
        self._base_code: MutableMapping[bytes, Any] = code if code is not None else {}
        self._committed_events: List[Any] = []
        # Start with a single empty overlay for convenience.
        self._layers: List[_Overlay] = [_Overlay()]

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def begin(self) -> int:
        """Start a new checkpoint. Returns the new depth marker (int)."""
        self._layers.append(_Overlay())
        return len(self._layers)

    def commit(self) -> None:
        """
        Commit the top overlay into its parent, or into the base state when it
        is the root layer.
        """
        top = self._layers.pop()
        if self._layers:
            self._merge_layers(self._layers[-1], top)
        else:
            self._apply_to_base(top)
            self._layers.append(_Overlay())

    def revert(self) -> None:
        """Discard the top overlay (or clear it if it's the root)."""
        if len(self._layers) > 1:
            self._layers.pop()
        else:
            self._layers[0] = _Overlay()

    def commit_to(self, marker: int) -> None:
        """Commit repeatedly until the current depth equals `marker`."""
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.commit()

    def revert_to(self, marker: int) -> None:
        """Revert repeatedly until the current depth equals `marker`."""
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.revert()

    # --------------------------------------------------------------------- #
    # Storage API
    # --------------------------------------------------------------------- #

    def storage_get(self, address: bytes, key: StorageKey, default: Any = None) -> Any:
        """Read storage with overlay precedence. Returns `default` if absent."""
        addr = _b(address, name="address")
        for layer in reversed(self._layers):
            local = layer.storage_get_local(addr, key)
            if local is _DELETED:
                return default
            if local is not None:
                return local
        return self._base_storage.get(addr, key, default=default)

    def storage_set(self, address: bytes, key: StorageKey, value: Any) -> None:
        """Stage a storage write in the top overlay. Empty values are deletions."""
        addr = _b(address, name="address")
        self._layers[-1].storage_set_local(
            addr, key, _DELETED if is_empty_value(value) else value
        )

    def storage_items(self, address: bytes) -> Iterator[Tuple[StorageKey, Any]]:
        """
        Iterate visible (key, value) for an address with overlay precedence.
        Stable order by key. Deletions in overlays are respected.
        """
        addr = _b(address, name="address")
        visible: Dict[StorageKey, Any] = dict(self._base_storage.items(addr))
        for layer in self._layers:
            m = layer.storage.get(addr)
            if not m:
                continue
            for k, v in m.items():
                if v is _DELETED:
                    visible.pop(k, None)
                else:
                    visible[k] = v
        for k in sorted(visible, key=key_order):
            yield k, visible[k]

    # --------------------------------------------------------------------- #
    # Deployment table
    # --------------------------------------------------------------------- #

    def code_at(self, address: bytes) -> Optional[Any]:
        addr = _b(address, name="address")
        for layer in reversed(self._layers):
            if addr in layer.code:
                return layer.code[addr]
        return self._base_code.get(addr)

    def deploy(self, address: bytes, contract: Any) -> None:
        """
        Stage a deployment. Callers check occupancy first; this raises
        ValueError if the address already holds code.
        """
        addr = _b(address, name="address")
        if self.code_at(addr) is not None:
            raise ValueError("address already holds code")
        self._layers[-1].code[addr] = contract

    # --------------------------------------------------------------------- #
    # Events
    # --------------------------------------------------------------------- #

    def emit(self, event: Any) -> None:
        self._layers[-1].events.append(event)

    def drain_events(self) -> List[Any]:
        """Return and forget events committed to base since the last drain."""
        out, self._committed_events = self._committed_events, []
        return out

    # --------------------------------------------------------------------- #
    # Internal merge/apply
    # --------------------------------------------------------------------- #

    @staticmethod
    def _merge_layers(dst: _Overlay, src: _Overlay) -> None:
        for addr, writes in src.storage.items():
            dst.storage.setdefault(addr, {}).update(writes)
        dst.code.update(src.code)
        dst.events.extend(src.events)

    def _apply_to_base(self, layer: _Overlay) -> None:
        for addr, writes in layer.storage.items():
            for k, v in writes.items():
                if v is _DELETED:
                    self._base_storage.delete(addr, k)
                else:
                    self._base_storage.set(addr, k, v)
        self._base_code.update(layer.code)
        self._committed_events.extend(layer.events)


__all__ = ["Journal"]
