"""
multitoken.state.events — ledger events and pluggable event sinks.

Contracts emit `Event`s into the host journal; once the enclosing operation
commits, the host appends them to an `EventSink` in emission order. Three
backends ship here:

- InMemoryEventSink: fast, test/dev friendly; keeps all events in RAM.
- JsonlEventSink: append-only JSONL file; durable and simple to operate.
- NullEventSink: no-op sink for setups that ignore events.

Ordering: each appended record gets a strictly increasing `seq`.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from typing import (Any, Dict, Iterable, List, Mapping, Optional, Protocol,
                    runtime_checkable)

# Event names
CREATED = "Created"
METADATA_SET = "MetadataSet"
OWNERSHIP_TRANSFERRED = "OwnershipTransferred"
OPERATOR_SET = "OperatorSet"
APPROVAL = "Approval"
TRANSFER = "Transfer"


def _b2h(b: bytes) -> str:
    return "0x" + b.hex()


def _h2b(h: str) -> bytes:
    if not isinstance(h, str):
        raise TypeError("expected hex string")
    if h.startswith(("0x", "0X")):
        h = h[2:]
    return bytes.fromhex(h)


def _encode_arg(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return {"hex": _b2h(bytes(v))}
    if isinstance(v, int) and not isinstance(v, bool) and v.bit_length() > 53:
        # JSON numbers are not safe past 2**53 in most readers.
        return {"int": str(v)}
    return v


def _decode_arg(v: Any) -> Any:
    if isinstance(v, dict):
        if "hex" in v:
            return _h2b(v["hex"])
        if "int" in v:
            return int(v["int"])
    return v


# =============================================================================
# Public data model
# =============================================================================


@dataclass(frozen=True)
class Event:
    """
    A single emitted event.

    Fields
    ------
    emitter : bytes
        Address of the emitting contract (ledger or proxy).
    name : str
        Event name, e.g. ``"Transfer"``.
    args : Mapping[str, Any]
        Named arguments in declaration order.
    """

    emitter: bytes
    name: str
    args: Mapping[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.args[key]

    def to_json(self) -> Dict[str, Any]:
        return {
            "emitter": _b2h(self.emitter),
            "name": self.name,
            "args": {k: _encode_arg(v) for k, v in self.args.items()},
        }

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> "Event":
        return cls(
            emitter=_h2b(obj["emitter"]),
            name=str(obj["name"]),
            args={k: _decode_arg(v) for k, v in dict(obj.get("args", {})).items()},
        )


@dataclass(frozen=True)
class EventRecord:
    seq: int
    event: Event

    @property
    def name(self) -> str:
        return self.event.name

    @property
    def emitter(self) -> bytes:
        return self.event.emitter

    @property
    def args(self) -> Mapping[str, Any]:
        return self.event.args


def _matches(rec: EventRecord, emitter: Optional[bytes], name: Optional[str]) -> bool:
    if emitter is not None and rec.emitter != emitter:
        return False
    if name is not None and rec.name != name:
        return False
    return True


# =============================================================================
# Sink interface
# =============================================================================


@runtime_checkable
class EventSink(Protocol):
    def append(self, event: Event) -> EventRecord:
        """Append a single committed event. Returns the stored record."""

    def get_logs(
        self,
        *,
        emitter: Optional[bytes] = None,
        name: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        """Iterate matching records in ascending `seq` order."""

    def flush(self) -> None:
        """Force persistence, if applicable."""

    def close(self) -> None:
        """Release resources (files, buffers)."""


# =============================================================================
# In-memory sink
# =============================================================================


class InMemoryEventSink(EventSink):
    """A simple, thread-safe in-memory sink. Suitable for tests and the CLI demo."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: List[EventRecord] = []

    def append(self, event: Event) -> EventRecord:
        with self._lock:
            rec = EventRecord(seq=len(self._records), event=event)
            self._records.append(rec)
        return rec

    def get_logs(
        self,
        *,
        emitter: Optional[bytes] = None,
        name: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        with self._lock:
            matched = [r for r in self._records if _matches(r, emitter, name)]
        return matched if limit is None else matched[:limit]

    def events(self) -> List[Event]:
        with self._lock:
            return [r.event for r in self._records]

    def flush(self) -> None:
        return

    def close(self) -> None:
        with self._lock:
            self._records.clear()


# =============================================================================
# JSONL sink (durable)
# =============================================================================


class JsonlEventSink(EventSink):
    """
    Append-only JSONL sink. Each line is one record:

        {"seq": 3, "emitter": "0x…", "name": "Transfer", "args": {...}}

    Byte-string arguments are written as ``{"hex": "0x…"}`` and integers wider
    than 53 bits as ``{"int": "…"}``.
    """

    def __init__(self, path: str) -> None:
        self._path = str(path)
        os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)
        self._fh = open(self._path, "a+", encoding="utf-8", buffering=1)  # line-buffered
        self._lock = threading.RLock()
        self._log = logging.getLogger(__name__)
        self._fh.seek(0)
        self._seq = sum(1 for line in self._fh if line.strip())

    def append(self, event: Event) -> EventRecord:
        with self._lock:
            rec = EventRecord(seq=self._seq, event=event)
            obj = {"seq": rec.seq, **event.to_json()}
            self._fh.write(json.dumps(obj, separators=(",", ":")) + "\n")
            self._seq += 1
        return rec

    def get_logs(
        self,
        *,
        emitter: Optional[bytes] = None,
        name: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        out: List[EventRecord] = []
        with self._lock:
            self._fh.flush()
            self._fh.seek(0)
            for line in self._fh:
                if not line.strip():
                    continue
                try:
                    obj = json.loads(line)
                    rec = EventRecord(seq=int(obj["seq"]), event=Event.from_json(obj))
                except (ValueError, KeyError, TypeError) as e:
                    self._log.warning("Skipping malformed event line: %s (%r)", line[:120], e)
                    continue
                if _matches(rec, emitter, name):
                    out.append(rec)
                    if limit is not None and len(out) >= limit:
                        break
        return out

    def flush(self) -> None:
        with self._lock:
            self._fh.flush()
            os.fsync(self._fh.fileno())

    def close(self) -> None:
        with self._lock:
            if not self._fh.closed:
                self._fh.flush()
                self._fh.close()


# =============================================================================
# Null sink
# =============================================================================


class NullEventSink(EventSink):
    """A sink that drops everything."""

    def __init__(self) -> None:
        self._seq = 0

    def append(self, event: Event) -> EventRecord:
        rec = EventRecord(seq=self._seq, event=event)
        self._seq += 1
        return rec

    def get_logs(
        self,
        *,
        emitter: Optional[bytes] = None,
        name: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        return []

    def flush(self) -> None:
        return

    def close(self) -> None:
        return


__all__ = [
    "CREATED",
    "METADATA_SET",
    "OWNERSHIP_TRANSFERRED",
    "OPERATOR_SET",
    "APPROVAL",
    "TRANSFER",
    "Event",
    "EventRecord",
    "EventSink",
    "InMemoryEventSink",
    "JsonlEventSink",
    "NullEventSink",
]
