"""
multitoken.host — the explicit environment every contract runs in.

A `Host` owns:
  • the journal (storage overlays, deployment table, buffered events)
  • the event sink committed events are flushed to
  • the configuration (registry address, chain discriminator, limits)
  • one re-entrant lock serializing public operations

Every public mutating call runs inside `Host.atomic(op)`: a journal checkpoint
that commits on success and reverts on any exception. The outermost atomic
scope applies the changes to base state and flushes the operation's events to
the sink; nested scopes (a ledger call into a proxy or an external token) only
merge into their parent, so a failure anywhere rolls back everything the
operation touched: balances, deployments and events.

`Contract` is the base class for anything deployed on a host (the ledger
itself, proxy tokens, in-process external tokens). It binds a storage handle
to its address and emits events through the journal.
"""

from __future__ import annotations

import functools
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar

from . import logging as mlog
from .config import MultiTokenConfig, get_config
from .errors import DeploymentFailed, LedgerError
from .identity import require_address
from .state.events import (Event, EventRecord, EventSink, InMemoryEventSink,
                           JsonlEventSink)
from .state.journal import Journal
from .state.storage import ContractStorage

log = mlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def reads_state(fn: F) -> F:
    """Run a contract read method under its host's `read()` scope."""

    @functools.wraps(fn)
    def wrapper(self: "Contract", *args: Any, **kwargs: Any) -> Any:
        with self.host.read():
            return fn(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


def _default_sink(cfg: MultiTokenConfig) -> EventSink:
    if cfg.event_log_path is not None:
        return JsonlEventSink(str(cfg.event_log_path))
    return InMemoryEventSink()


class Host:
    """
    Journaled in-process execution environment.

    Parameters
    ----------
    config : MultiTokenConfig | None
        Defaults to the process-wide `get_config()`.
    sink : EventSink | None
        Defaults to a JSONL sink when `config.event_log_path` is set, else an
        in-memory sink.
    """

    def __init__(
        self,
        config: Optional[MultiTokenConfig] = None,
        *,
        sink: Optional[EventSink] = None,
    ) -> None:
        self.config = config or get_config()
        self.journal = Journal()
        self.sink = sink if sink is not None else _default_sink(self.config)
        self._lock = threading.RLock()
        mlog.ensure_configured(self.config)

    @property
    def chain_id(self) -> int:
        return self.config.chain_id

    # ------------------------------------------------------------------ #
    # Atomic operations
    # ------------------------------------------------------------------ #

    @contextmanager
    def atomic(self, op: str, **fields: Any) -> Iterator[None]:
        """
        Run the body as one all-or-nothing operation.

        Re-entrant: nested scopes become nested checkpoints of the outer one.
        """
        with self._lock, mlog.trace_scope(op=op, **fields):
            marker = self.journal.begin()
            outermost = marker == 2
            try:
                yield
            except BaseException as e:
                self.journal.revert_to(marker - 1)
                code = e.code if isinstance(e, LedgerError) else type(e).__name__
                log.debug("operation reverted", extra={"code": code, "depth": marker})
                raise
            self.journal.commit_to(marker - 1)
            if outermost:
                self.journal.commit()
                committed = self.journal.drain_events()
                for ev in committed:
                    self.sink.append(ev)
                log.debug("operation committed", extra={"events": len(committed)})

    @contextmanager
    def read(self) -> Iterator[None]:
        """
        Hold the operation lock for the duration of a read, so another thread
        never observes the uncommitted overlays of an operation in flight.
        Re-entrant from inside an operation on the same thread.
        """
        with self._lock:
            yield

    # ------------------------------------------------------------------ #
    # Deployments
    # ------------------------------------------------------------------ #

    def deploy(self, address: bytes, contract: "Contract") -> "Contract":
        """Materialize `contract` at `address`; DeploymentFailed if occupied."""
        addr = require_address(address, name="deployment address")
        if self.journal.code_at(addr) is not None:
            raise DeploymentFailed("address already occupied", address=addr)
        self.journal.deploy(addr, contract)
        log.debug("deployed", extra={"address": addr, "kind": type(contract).__name__})
        return contract

    def contract_at(self, address: bytes) -> Optional["Contract"]:
        with self.read():
            return self.journal.code_at(address)

    # ------------------------------------------------------------------ #
    # Events
    # ------------------------------------------------------------------ #

    def logs(self, *, emitter: Optional[bytes] = None, name: Optional[str] = None) -> List[EventRecord]:
        with self.read():
            return list(self.sink.get_logs(emitter=emitter, name=name))

    def events(self, *, emitter: Optional[bytes] = None, name: Optional[str] = None) -> List[Event]:
        return [r.event for r in self.logs(emitter=emitter, name=name)]

    def close(self) -> None:
        self.sink.close()


class Contract:
    """
    Base for objects deployed on a host.

    Subclasses keep all mutable state in `self.storage` so that it is
    journaled; plain attributes are reserved for immutable configuration.
    """

    def __init__(self, host: Host, address: bytes) -> None:
        self.host = host
        self.address = require_address(address, name="contract address")
        self.storage = ContractStorage(host.journal, self.address)

    def emit(self, name: str, **args: Any) -> None:
        self.host.journal.emit(Event(emitter=self.address, name=name, args=dict(args)))

    def atomic(self, op: str, **fields: Any):
        return self.host.atomic(op, **fields)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} at 0x{self.address.hex()}>"


def export_state(host: Host, address: bytes) -> Dict[Any, Any]:
    """Visible storage of one contract (committed plus pending writes)."""
    with host.read():
        return dict(host.journal.storage_items(address))


__all__ = ["Host", "Contract", "export_state", "reads_state"]
