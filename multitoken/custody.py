"""
multitoken.custody — custodial wrap controller for external assets.

`wrap` pulls units of an external single-asset token into the ledger's
custody and credits the same amount of ``external_id(asset)``; `unwrap`
debits first, then releases custody. Both directions verify the custody
delta, so a token that moves a different amount than requested (fee on
transfer, rebasing) fails the whole operation instead of leaving the ledger
under-collateralized.

Invariant: total_supply(external_id(asset)) <= custody_balance(asset).

The same custody account also holds basket reserves; see `CustodyVault`
below, which the basket controller reuses for its pulls and releases.
"""

from __future__ import annotations

from .errors import LedgerError, OnlyExternal, TransferFailed
from .host import Contract
from .identity import external_id, require_address
from .ledger import LedgerStore
from .registry import AssetRegistry
from .token import ExternalAsset
from .u256 import require_amount


class CustodyVault:
    """Moves external assets in and out of the ledger's custody, checking deltas."""

    def __init__(self, contract: Contract) -> None:
        self._c = contract

    def token(self, asset: bytes) -> ExternalAsset:
        asset = require_address(asset, name="asset")
        target = self._c.host.contract_at(asset)
        if target is None or target is self._c or not isinstance(target, ExternalAsset):
            raise TransferFailed("no single-asset token deployed at address", asset=asset)
        return target

    def balance(self, asset: bytes) -> int:
        return self.token(asset).balance_of(self._c.address)

    def pull(self, asset: bytes, frm: bytes, amount: int) -> None:
        token = self.token(asset)
        before = token.balance_of(self._c.address)
        try:
            ok = token.transfer_from(self._c.address, frm, self._c.address, amount)
        except LedgerError as e:
            raise TransferFailed("custody pull failed", asset=asset, reason=e.code) from e
        if not ok:
            raise TransferFailed("custody pull returned false", asset=asset)
        received = token.balance_of(self._c.address) - before
        if received != amount:
            raise TransferFailed("custody pull delivered a different amount", asset=asset, expected=amount, received=received)

    def release(self, asset: bytes, to: bytes, amount: int) -> None:
        token = self.token(asset)
        before = token.balance_of(self._c.address)
        try:
            ok = token.transfer(self._c.address, to, amount)
        except LedgerError as e:
            raise TransferFailed("custody release failed", asset=asset, reason=e.code) from e
        if not ok:
            raise TransferFailed("custody release returned false", asset=asset)
        sent = before - token.balance_of(self._c.address)
        if sent != amount:
            raise TransferFailed("custody release moved a different amount", asset=asset, expected=amount, sent=sent)


class WrapController:
    def __init__(self, contract: Contract, ledger: LedgerStore, registry: AssetRegistry, vault: CustodyVault) -> None:
        self._c = contract
        self._ledger = ledger
        self._registry = registry
        self._vault = vault

    def _require_external(self, asset: bytes) -> int:
        asset = require_address(asset, name="asset")
        ident = external_id(asset)
        if asset == self._c.address or self._registry.exists(ident):
            raise OnlyExternal(id=ident)
        return ident

    def wrap(self, caller: bytes, asset: bytes, amount: int) -> int:
        caller = require_address(caller, name="caller")
        ident = self._require_external(asset)
        require_amount(amount)
        self._vault.pull(asset, caller, amount)
        self._ledger.mint(caller, caller, ident, amount)
        return ident

    def unwrap(self, caller: bytes, asset: bytes, amount: int) -> int:
        caller = require_address(caller, name="caller")
        ident = self._require_external(asset)
        self._ledger.burn(caller, caller, ident, amount)
        self._vault.release(asset, caller, amount)
        return ident

    def custody_balance(self, asset: bytes) -> int:
        return self._vault.balance(asset)


__all__ = ["CustodyVault", "WrapController"]
