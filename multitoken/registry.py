"""
multitoken.registry — per-identifier metadata, creation and owner governance.

Records are stored at ("rec", id) under the ledger address and are never
deleted. Native records carry an owner; basket records are written by the
basket controller with ``native=False`` and no owner. External identifiers
have no stored record: `record_of` synthesizes one from the external asset
deployed at the identifier's address.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .config import MultiTokenConfig
from .errors import AlreadyCreated, InvalidMetadata, Unauthorized
from .host import Contract
from .identity import (derive_native_id, id_to_address, proxy_code_hash,
                       require_address, require_identifier, salt_for)
from .ledger import LedgerStore
from .state.events import CREATED, METADATA_SET, OWNERSHIP_TRANSFERRED
from .token import ExternalAsset
from .u256 import require_amount


@dataclass(frozen=True)
class AssetRecord:
    name: str
    symbol: str
    uri: str
    owner: Optional[bytes]
    native: bool
    salt: bytes = b""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "uri": self.uri,
            "owner": "0x" + self.owner.hex() if self.owner else None,
            "native": self.native,
            "salt": "0x" + self.salt.hex(),
        }


def require_text(value: object, *, field: str, limit: int, allow_empty: bool = True) -> str:
    """Validate a metadata string: type, non-emptiness, UTF-8 size."""
    if not isinstance(value, str):
        raise InvalidMetadata(f"{field} must be a string")
    if not allow_empty and not value:
        raise InvalidMetadata(f"{field} must not be empty")
    if len(value.encode("utf-8")) > limit:
        raise InvalidMetadata(f"{field} exceeds {limit} bytes")
    return value


class AssetRegistry:
    def __init__(self, contract: Contract, ledger: LedgerStore, config: MultiTokenConfig) -> None:
        self._c = contract
        self._s = contract.storage
        self._ledger = ledger
        self._cfg = config

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def exists(self, ident: int) -> bool:
        return self._s.get("rec", require_identifier(ident), default=None) is not None

    def stored_record(self, ident: int) -> Optional[AssetRecord]:
        return self._s.get("rec", require_identifier(ident), default=None)

    def put_record(self, ident: int, record: AssetRecord) -> None:
        if self.exists(ident):
            raise AlreadyCreated(id=ident)
        self._s.set("rec", ident, record)
        self._c.emit(CREATED, id=ident)

    def external_asset(self, ident: int) -> Optional[ExternalAsset]:
        """The single-asset token deployed at `ident`'s address, if any."""
        target = self._c.host.contract_at(id_to_address(ident))
        if target is None or target is self._c or not isinstance(target, ExternalAsset):
            return None
        return target

    def record_of(self, ident: int) -> AssetRecord:
        rec = self.stored_record(ident)
        if rec is not None:
            return rec
        asset = self.external_asset(ident)
        if asset is None:
            return AssetRecord(name="", symbol="", uri="", owner=None, native=False)
        return AssetRecord(name=asset.name(), symbol=asset.symbol(), uri="", owner=None, native=False)

    def is_native(self, ident: int) -> bool:
        rec = self.stored_record(ident)
        return rec is not None and rec.native

    def predict_id(self, name: str, symbol: str) -> int:
        return derive_native_id(name, symbol, self._c.address, proxy_code_hash())

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def name(self, ident: int) -> str:
        return self.record_of(ident).name

    def symbol(self, ident: int) -> str:
        return self.record_of(ident).symbol

    def decimals(self, ident: int) -> int:
        if self.exists(ident):
            return self._cfg.default_decimals
        asset = self.external_asset(ident)
        return asset.decimals() if asset is not None else self._cfg.default_decimals

    def token_uri(self, ident: int) -> str:
        return self.record_of(ident).uri

    def owner_of(self, ident: int) -> Optional[bytes]:
        return self.record_of(ident).owner

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, caller: bytes, name: str, symbol: str, uri: str, owner: bytes, supply: int) -> int:
        caller = require_address(caller, name="caller")
        limit = self._cfg.limits.max_string_bytes
        require_text(name, field="name", limit=limit)
        require_text(symbol, field="symbol", limit=limit, allow_empty=False)
        require_text(uri, field="uri", limit=limit, allow_empty=False)
        owner = require_address(owner, name="owner")
        require_amount(supply, name="supply")

        ident = self.predict_id(name, symbol)
        self.put_record(
            ident,
            AssetRecord(name=name, symbol=symbol, uri=uri, owner=owner, native=True, salt=salt_for(name, symbol)),
        )
        self._ledger.mint(caller, owner, ident, supply)
        return ident

    def _require_owner(self, caller: bytes, ident: int) -> AssetRecord:
        rec = self.stored_record(ident)
        if rec is None or rec.owner is None or rec.owner != caller:
            raise Unauthorized("caller is not the owner", caller=caller, id=ident)
        return rec

    def set_metadata(self, caller: bytes, ident: int, uri: str) -> None:
        caller = require_address(caller, name="caller")
        ident = require_identifier(ident)
        rec = self._require_owner(caller, ident)
        require_text(uri, field="uri", limit=self._cfg.limits.max_string_bytes, allow_empty=False)
        self._s.set("rec", ident, replace(rec, uri=uri))
        self._c.emit(METADATA_SET, id=ident)

    def transfer_ownership(self, caller: bytes, ident: int, new_owner: bytes) -> None:
        caller = require_address(caller, name="caller")
        ident = require_identifier(ident)
        rec = self._require_owner(caller, ident)
        new_owner = require_address(new_owner, name="new_owner")
        self._s.set("rec", ident, replace(rec, owner=new_owner))
        self._c.emit(OWNERSHIP_TRANSFERRED, id=ident, previous=caller, owner=new_owner)

    def mint(self, caller: bytes, to: bytes, ident: int, amount: int) -> None:
        caller = require_address(caller, name="caller")
        ident = require_identifier(ident)
        self._require_owner(caller, ident)
        self._ledger.mint(caller, to, ident, amount)

    def burn(self, caller: bytes, ident: int, amount: int) -> None:
        caller = require_address(caller, name="caller")
        self._ledger.burn(caller, caller, require_identifier(ident), amount)


__all__ = ["AssetRecord", "AssetRegistry", "require_text"]
