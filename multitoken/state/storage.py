"""
multitoken.state.storage — per-contract storage (key/value)

A minimal, deterministic key/value view keyed by contract address (`bytes`)
and a storage key. Keys are hashable tuples (e.g. ``("bal", id, account)``);
values are plain Python values (ints, bools, frozen records).

Design goals
------------
- Pure Python, no I/O; deterministic semantics.
- "Zero means absent": storing ``0``, ``False``, ``b""`` or ``None`` deletes the
  key, so iteration only ever yields live entries.
- Ordered iteration by key (``repr`` based) for stable exports.

Typical usage
-------------
    sv = StorageView()
    sv.set(addr, ("bal", 7, alice), 100)
    sv.get(addr, ("bal", 7, alice))        # 100
    sv.delete(addr, ("bal", 7, alice))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import (Any, Dict, Hashable, Iterator, MutableMapping, Optional,
                    Tuple)

StorageKey = Tuple[Hashable, ...]


def _as_address(x: bytes | bytearray | memoryview, *, name: str = "address") -> bytes:
    if not isinstance(x, (bytes, bytearray, memoryview)):
        raise TypeError(f"{name} must be bytes-like")
    return bytes(x)


def _as_key(key: object) -> StorageKey:
    if not isinstance(key, tuple) or not key:
        raise TypeError("storage key must be a non-empty tuple")
    return key


def is_empty_value(v: Any) -> bool:
    """Canonical 'absent' values; writing one of these deletes the key."""
    return v is None or (isinstance(v, (int, bytes)) and not v)


def key_order(k: StorageKey) -> Tuple[str, ...]:
    return tuple(x.hex() if isinstance(x, bytes) else f"{x!r:>80}" for x in k)


@dataclass
class StorageView:
    """
    Base (committed) storage.

    Parameters
    ----------
    backend :
        Optional external mapping ``{address: {key: value}}``. If not provided,
        an internal dict is used.
    """

    backend: Optional[MutableMapping[bytes, Dict[StorageKey, Any]]] = None
    _store: MutableMapping[bytes, Dict[StorageKey, Any]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._store = self.backend if self.backend is not None else {}

    # ------------------------------ core ops --------------------------------

    def get(self, address: bytes, key: StorageKey, default: Any = None) -> Any:
        addr_b = _as_address(address)
        return self._store.get(addr_b, {}).get(_as_key(key), default)

    def set(self, address: bytes, key: StorageKey, value: Any) -> None:
        """Set value for (address, key). A canonical empty value deletes the key."""
        addr_b = _as_address(address)
        key = _as_key(key)
        if is_empty_value(value):
            self.delete(addr_b, key)
            return
        self._store.setdefault(addr_b, {})[key] = value

    def delete(self, address: bytes, key: StorageKey) -> bool:
        """Delete (address, key). Returns True if a key existed and was removed."""
        addr_b = _as_address(address)
        bucket = self._store.get(addr_b)
        if bucket is None:
            return False
        removed = bucket.pop(_as_key(key), None) is not None
        if not bucket:
            self._store.pop(addr_b, None)
        return removed

    # ------------------------------ iteration -------------------------------

    def items(self, address: bytes) -> Iterator[Tuple[StorageKey, Any]]:
        bucket = self._store.get(_as_address(address), {})
        for k in sorted(bucket, key=key_order):
            yield k, bucket[k]


class ContractStorage:
    """
    Storage handle bound to one contract address on a journal.

    Contracts read and write through this handle; every write lands in the
    journal's top overlay and is undone if the enclosing operation reverts.
    """

    __slots__ = ("_journal", "address")

    def __init__(self, journal: "Journal", address: bytes) -> None:  # noqa: F821
        self._journal = journal
        self.address = _as_address(address)

    def get(self, *key: Hashable, default: Any = 0) -> Any:
        return self._journal.storage_get(self.address, key, default)

    def set(self, *key_and_value: Any) -> None:
        *key, value = key_and_value
        self._journal.storage_set(self.address, tuple(key), value)

    def scan(self, *prefix: Hashable) -> Iterator[Tuple[StorageKey, Any]]:
        """Visible entries whose key starts with `prefix`, in stable order."""
        n = len(prefix)
        for k, v in self._journal.storage_items(self.address):
            if k[:n] == prefix:
                yield k, v


__all__ = ["StorageKey", "StorageView", "ContractStorage", "is_empty_value", "key_order"]
