"""
multitoken.basket — composite assets backed by fixed reserve ratios.

A basket is issued once with a list of reserve assets and ratios. The
issuance size fixes the basket's `unit`: ``ratios[i]`` units of reserve ``i``
back ``unit`` basket units, so every later issuance or redemption of
``amount`` moves ``amount * ratios[i] // unit`` of reserve ``i``. Division
truncates toward zero in both directions; the remainder stays in custody.

Each basket keeps its own reserve table at ("reserve", id, asset), counting
what was pulled for it and not yet released. Releases draw only from that
table, so basket rounding can never consume custody that backs wrapped
supply of the same asset or another basket.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .config import MultiTokenConfig
from .custody import CustodyVault
from .errors import InvalidArgument, InvalidMetadata, OnlyBasket, TransferFailed
from .host import Contract
from .identity import (basket_salt, derive_basket_id, proxy_code_hash,
                       require_address, require_identifier)
from .ledger import LedgerStore
from .registry import AssetRecord, AssetRegistry, require_text
from .u256 import add, mul_div_down, require_amount


@dataclass(frozen=True)
class BasketRecord:
    reserves: Tuple[Tuple[bytes, int], ...]
    unit: int

    @property
    def assets(self) -> Tuple[bytes, ...]:
        return tuple(a for a, _ in self.reserves)

    def share(self, amount: int) -> Tuple[Tuple[bytes, int], ...]:
        """Reserve amounts corresponding to `amount` basket units."""
        return tuple((a, mul_div_down(amount, r, self.unit)) for a, r in self.reserves)

    def to_dict(self) -> dict:
        return {
            "unit": str(self.unit),
            "reserves": [{"asset": "0x" + a.hex(), "ratio": str(r)} for a, r in self.reserves],
        }


class BasketController:
    def __init__(
        self,
        contract: Contract,
        ledger: LedgerStore,
        registry: AssetRegistry,
        vault: CustodyVault,
        config: MultiTokenConfig,
    ) -> None:
        self._c = contract
        self._s = contract.storage
        self._ledger = ledger
        self._registry = registry
        self._vault = vault
        self._cfg = config

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def basket_of(self, ident: int) -> Optional[BasketRecord]:
        return self._s.get("basket", require_identifier(ident), default=None)

    def _require_basket(self, ident: int) -> BasketRecord:
        rec = self.basket_of(ident)
        if rec is None or not rec.reserves:
            raise OnlyBasket(id=ident)
        return rec

    def reserve_balance(self, ident: int, asset: bytes) -> int:
        return self._s.get("reserve", require_identifier(ident), require_address(asset, name="asset"))

    def predict_id(self, name: str, symbol: str) -> int:
        return derive_basket_id(name, symbol, self._c.address, proxy_code_hash(), self._cfg.chain_id)

    # ------------------------------------------------------------------
    # Issuance / redemption
    # ------------------------------------------------------------------

    def issue_basket(
        self,
        caller: bytes,
        recipient: bytes,
        issued_supply: int,
        name: str,
        symbol: str,
        uri: str,
        reserve_assets: Sequence[bytes],
        ratios: Sequence[int],
    ) -> int:
        caller = require_address(caller, name="caller")
        recipient = require_address(recipient, name="recipient")
        limit = self._cfg.limits.max_string_bytes
        require_text(name, field="name", limit=limit)
        require_text(symbol, field="symbol", limit=limit, allow_empty=False)
        require_text(uri, field="uri", limit=limit, allow_empty=False)

        assets = [require_address(a, name="reserve asset") for a in reserve_assets]
        ratios = list(ratios)
        if not assets:
            raise InvalidMetadata("basket needs at least one reserve asset")
        if len(assets) != len(ratios):
            raise InvalidMetadata("reserve_assets and ratios differ in length", assets=len(assets), ratios=len(ratios))
        if len(assets) > self._cfg.limits.max_reserves:
            raise InvalidMetadata("too many reserve assets", limit=self._cfg.limits.max_reserves)
        if len(set(assets)) != len(assets):
            raise InvalidMetadata("duplicate reserve asset")
        for r in ratios:
            if require_amount(r, name="ratio") == 0:
                raise InvalidArgument("ratio must be positive")
        if require_amount(issued_supply, name="issued_supply") == 0:
            raise InvalidArgument("issued_supply must be positive")

        ident = self.predict_id(name, symbol)
        record = BasketRecord(reserves=tuple(zip(assets, ratios)), unit=issued_supply)
        self._registry.put_record(
            ident,
            AssetRecord(
                name=name, symbol=symbol, uri=uri, owner=None, native=False,
                salt=basket_salt(name, symbol, self._cfg.chain_id),
            ),
        )
        self._s.set("basket", ident, record)
        self._pull_share(ident, record, caller, issued_supply)
        self._ledger.mint(caller, recipient, ident, issued_supply)
        return ident

    def issue_more(self, caller: bytes, ident: int, amount: int) -> None:
        caller = require_address(caller, name="caller")
        record = self._require_basket(require_identifier(ident))
        require_amount(amount)
        self._pull_share(ident, record, caller, amount)
        self._ledger.mint(caller, caller, ident, amount)

    def redeem_basket(self, caller: bytes, ident: int, amount: int) -> None:
        caller = require_address(caller, name="caller")
        record = self._require_basket(require_identifier(ident))
        self._ledger.burn(caller, caller, ident, amount)
        for asset, owed in record.share(amount):
            held = self._s.get("reserve", ident, asset)
            if owed > held:
                raise TransferFailed("basket reserve exhausted", id=ident, asset=asset, owed=owed, held=held)
            self._s.set("reserve", ident, asset, held - owed)
            if owed:
                self._vault.release(asset, caller, owed)

    # ------------------------------------------------------------------

    def _pull_share(self, ident: int, record: BasketRecord, frm: bytes, amount: int) -> None:
        for asset, owed in record.share(amount):
            if owed:
                self._vault.pull(asset, frm, owed)
            self._s.set("reserve", ident, asset, add(self._s.get("reserve", ident, asset), owed))


__all__ = ["BasketRecord", "BasketController"]
