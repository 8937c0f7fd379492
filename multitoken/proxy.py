"""
multitoken.proxy — single-asset projection of native identifiers.

A native asset's supply is partitioned between the ledger and its proxy
token: `tokenize` moves units out of the ledger into the proxy, `untokenize`
moves them back. A unit is never on both sides, so

    ledger.total_supply(id) + proxy.total_supply() == circulating_supply(id)

is unchanged by either direction.

The proxy lives at ``predict_proxy_address(id)``, which for native ids is the
identifier itself. Only the ledger (the bridge) may mint or burn it; its
name, symbol and decimals are read live from the registry so metadata never
drifts between the two views.
"""

from __future__ import annotations

from typing import Optional

from .errors import DeploymentFailed, OnlyNative, ProxyMissing, Unauthorized
from .host import Contract, reads_state
from .identity import (create2_address, predict_proxy_address,
                       proxy_code_hash, require_address, require_identifier)
from .ledger import LedgerStore
from .registry import AssetRegistry
from .token import FungibleToken


class ProxyToken(FungibleToken):
    """Single-asset token mirroring one native identifier."""

    def __init__(self, ledger: Contract, registry: AssetRegistry, ident: int) -> None:
        super().__init__(ledger.host, predict_proxy_address(ident), name="", symbol="")
        self.ledger_address = ledger.address
        self.ident = ident
        self._registry = registry

    @reads_state
    def name(self) -> str:
        return self._registry.name(self.ident)

    @reads_state
    def symbol(self) -> str:
        return self._registry.symbol(self.ident)

    @reads_state
    def decimals(self) -> int:
        return self._registry.decimals(self.ident)

    def _require_bridge(self, caller: bytes) -> None:
        if caller != self.ledger_address:
            raise Unauthorized("only the ledger bridge may mint or burn the proxy", caller=caller)

    def bridge_mint(self, caller: bytes, to: bytes, amount: int) -> None:
        self._require_bridge(caller)
        with self.atomic("proxy.mint", asset=self.address):
            self._mint(to, amount)

    def bridge_burn(self, caller: bytes, frm: bytes, amount: int) -> None:
        self._require_bridge(caller)
        with self.atomic("proxy.burn", asset=self.address):
            self._burn(frm, amount)


class ProxyBridge:
    def __init__(self, contract: Contract, ledger: LedgerStore, registry: AssetRegistry) -> None:
        self._c = contract
        self._s = contract.storage
        self._ledger = ledger
        self._registry = registry

    def _require_native(self, ident: int) -> int:
        ident = require_identifier(ident)
        if not self._registry.is_native(ident):
            raise OnlyNative(id=ident)
        return ident

    def proxy_of(self, ident: int) -> Optional[ProxyToken]:
        addr = self._s.get("proxy", require_identifier(ident), default=None)
        if addr is None:
            return None
        return self._c.host.contract_at(addr)

    def _require_proxy(self, ident: int) -> ProxyToken:
        proxy = self.proxy_of(ident)
        if proxy is None:
            raise ProxyMissing(id=ident)
        return proxy

    def create_proxy(self, caller: bytes, ident: int) -> bytes:
        require_address(caller, name="caller")
        ident = self._require_native(ident)
        rec = self._registry.stored_record(ident)
        addr = predict_proxy_address(ident)
        expected = create2_address(self._c.address, rec.salt, proxy_code_hash())
        if expected != addr:
            raise DeploymentFailed("predicted proxy address does not match identifier", address=addr)
        self._c.host.deploy(addr, ProxyToken(self._c, self._registry, ident))
        self._s.set("proxy", ident, addr)
        return addr

    def tokenize(self, caller: bytes, ident: int, amount: int) -> None:
        caller = require_address(caller, name="caller")
        ident = self._require_native(ident)
        proxy = self._require_proxy(ident)
        self._ledger.burn(caller, caller, ident, amount)
        proxy.bridge_mint(self._c.address, caller, amount)

    def untokenize(self, caller: bytes, ident: int, amount: int) -> None:
        caller = require_address(caller, name="caller")
        ident = self._require_native(ident)
        proxy = self._require_proxy(ident)
        proxy.bridge_burn(self._c.address, caller, amount)
        self._ledger.mint(caller, caller, ident, amount)

    def circulating_supply(self, ident: int) -> int:
        proxy = self.proxy_of(ident)
        on_proxy = proxy.total_supply() if proxy is not None else 0
        return self._ledger.total_supply(ident) + on_proxy


__all__ = ["ProxyToken", "ProxyBridge"]
