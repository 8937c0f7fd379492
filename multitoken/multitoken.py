"""
multitoken.multitoken — the public multi-asset ledger contract.

`MultiToken` is the one contract callers talk to. It is deployed on a `Host`
at the configured registry address and wires together the components that
share its storage:

    LedgerStore       balances, allowances, operators, supplies
    AssetRegistry     native records, metadata, ownership
    ProxyBridge       tokenize / untokenize against per-asset proxies
    WrapController    custodial wrap / unwrap of external tokens
    BasketController  proportional multi-reserve baskets

Every mutating method runs as one `Host.atomic` operation: either all of its
table updates, deployments, external token movements and events land, or
none do.

Example
-------
    host = Host()
    mt = MultiToken(host)
    ident = mt.create(alice, "Test", "TST", "ipfs://meta", alice, 1_000_000)
    mt.transfer(alice, bob, ident, 10)
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from .basket import BasketController, BasketRecord
from .custody import CustodyVault, WrapController
from .host import Contract, Host, reads_state
from .ledger import LedgerStore, SupplyAudit
from .proxy import ProxyBridge, ProxyToken
from .registry import AssetRecord, AssetRegistry

INTERFACE_ID_ERC165 = 0x01FFC9A7
INTERFACE_ID_MULTI_ASSET = 0x0F632FB3

SUPPORTED_INTERFACES = frozenset({INTERFACE_ID_ERC165, INTERFACE_ID_MULTI_ASSET})


class MultiToken(Contract):
    def __init__(self, host: Host, address: Optional[bytes] = None) -> None:
        super().__init__(host, address if address is not None else host.config.registry_address)
        self.ledger = LedgerStore(self)
        self.registry = AssetRegistry(self, self.ledger, host.config)
        self.bridge = ProxyBridge(self, self.ledger, self.registry)
        self.vault = CustodyVault(self)
        self.wraps = WrapController(self, self.ledger, self.registry, self.vault)
        self.baskets = BasketController(self, self.ledger, self.registry, self.vault, host.config)
        with host.atomic("deploy", asset=self.address):
            host.deploy(self.address, self)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @staticmethod
    def supports_interface(tag: int) -> bool:
        return tag in SUPPORTED_INTERFACES

    # ------------------------------------------------------------------
    # Ledger reads
    # ------------------------------------------------------------------

    @reads_state
    def balance_of(self, account: bytes, ident: int) -> int:
        return self.ledger.balance_of(account, ident)

    @reads_state
    def total_supply(self, ident: int) -> int:
        return self.ledger.total_supply(ident)

    @reads_state
    def allowance(self, owner: bytes, spender: bytes, ident: int) -> int:
        return self.ledger.allowance(owner, spender, ident)

    @reads_state
    def is_operator(self, owner: bytes, operator: bytes) -> bool:
        return self.ledger.is_operator(owner, operator)

    @reads_state
    def holders(self, ident: int) -> Dict[bytes, int]:
        return self.ledger.holders(ident)

    @reads_state
    def audit(self, ident: int) -> SupplyAudit:
        return self.ledger.audit(ident)

    @reads_state
    def export(self, ident: Optional[int] = None) -> Dict[str, Any]:
        return self.ledger.export(ident)

    # ------------------------------------------------------------------
    # Registry reads
    # ------------------------------------------------------------------

    @reads_state
    def name(self, ident: int) -> str:
        return self.registry.name(ident)

    @reads_state
    def symbol(self, ident: int) -> str:
        return self.registry.symbol(ident)

    @reads_state
    def decimals(self, ident: int) -> int:
        return self.registry.decimals(ident)

    @reads_state
    def token_uri(self, ident: int) -> str:
        return self.registry.token_uri(ident)

    @reads_state
    def owner_of(self, ident: int) -> Optional[bytes]:
        return self.registry.owner_of(ident)

    @reads_state
    def record_of(self, ident: int) -> AssetRecord:
        return self.registry.record_of(ident)

    @reads_state
    def is_native(self, ident: int) -> bool:
        return self.registry.is_native(ident)

    def predict_id(self, name: str, symbol: str) -> int:
        return self.registry.predict_id(name, symbol)

    # ------------------------------------------------------------------
    # Bridge / custody / basket reads
    # ------------------------------------------------------------------

    @reads_state
    def proxy_of(self, ident: int) -> Optional[ProxyToken]:
        return self.bridge.proxy_of(ident)

    @reads_state
    def circulating_supply(self, ident: int) -> int:
        return self.bridge.circulating_supply(ident)

    @reads_state
    def custody_balance(self, asset: bytes) -> int:
        return self.wraps.custody_balance(asset)

    @reads_state
    def basket_of(self, ident: int) -> Optional[BasketRecord]:
        return self.baskets.basket_of(ident)

    @reads_state
    def reserve_balance(self, ident: int, asset: bytes) -> int:
        return self.baskets.reserve_balance(ident, asset)

    def predict_basket_id(self, name: str, symbol: str) -> int:
        return self.baskets.predict_id(name, symbol)

    # ------------------------------------------------------------------
    # Ledger mutations
    # ------------------------------------------------------------------

    def transfer(self, caller: bytes, receiver: bytes, ident: int, amount: int) -> bool:
        with self.atomic("transfer", caller=caller):
            return self.ledger.transfer(caller, receiver, ident, amount)

    def transfer_from(self, caller: bytes, sender: bytes, receiver: bytes, ident: int, amount: int) -> bool:
        with self.atomic("transfer_from", caller=caller):
            return self.ledger.transfer_from(caller, sender, receiver, ident, amount)

    def approve(self, caller: bytes, spender: bytes, ident: int, amount: int) -> bool:
        with self.atomic("approve", caller=caller):
            return self.ledger.approve(caller, spender, ident, amount)

    def set_operator(self, caller: bytes, operator: bytes, approved: bool) -> bool:
        with self.atomic("set_operator", caller=caller):
            return self.ledger.set_operator(caller, operator, approved)

    # ------------------------------------------------------------------
    # Registry mutations
    # ------------------------------------------------------------------

    def create(self, caller: bytes, name: str, symbol: str, uri: str, owner: bytes, supply: int) -> int:
        with self.atomic("create", caller=caller):
            return self.registry.create(caller, name, symbol, uri, owner, supply)

    def set_metadata(self, caller: bytes, ident: int, uri: str) -> None:
        with self.atomic("set_metadata", caller=caller, asset=ident):
            self.registry.set_metadata(caller, ident, uri)

    def transfer_ownership(self, caller: bytes, ident: int, new_owner: bytes) -> None:
        with self.atomic("transfer_ownership", caller=caller, asset=ident):
            self.registry.transfer_ownership(caller, ident, new_owner)

    def mint(self, caller: bytes, to: bytes, ident: int, amount: int) -> None:
        with self.atomic("mint", caller=caller, asset=ident):
            self.registry.mint(caller, to, ident, amount)

    def burn(self, caller: bytes, ident: int, amount: int) -> None:
        with self.atomic("burn", caller=caller, asset=ident):
            self.registry.burn(caller, ident, amount)

    # ------------------------------------------------------------------
    # Proxy bridge
    # ------------------------------------------------------------------

    def create_proxy(self, caller: bytes, ident: int) -> bytes:
        with self.atomic("create_proxy", caller=caller, asset=ident):
            return self.bridge.create_proxy(caller, ident)

    def tokenize(self, caller: bytes, ident: int, amount: int) -> None:
        with self.atomic("tokenize", caller=caller, asset=ident):
            self.bridge.tokenize(caller, ident, amount)

    def untokenize(self, caller: bytes, ident: int, amount: int) -> None:
        with self.atomic("untokenize", caller=caller, asset=ident):
            self.bridge.untokenize(caller, ident, amount)

    # ------------------------------------------------------------------
    # Custody
    # ------------------------------------------------------------------

    def wrap(self, caller: bytes, asset: bytes, amount: int) -> int:
        with self.atomic("wrap", caller=caller, asset=asset):
            return self.wraps.wrap(caller, asset, amount)

    def unwrap(self, caller: bytes, asset: bytes, amount: int) -> int:
        with self.atomic("unwrap", caller=caller, asset=asset):
            return self.wraps.unwrap(caller, asset, amount)

    # ------------------------------------------------------------------
    # Baskets
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
        with self.atomic("issue_basket", caller=caller):
            return self.baskets.issue_basket(
                caller, recipient, issued_supply, name, symbol, uri, reserve_assets, ratios
            )

    def issue_more(self, caller: bytes, ident: int, amount: int) -> None:
        with self.atomic("issue_more", caller=caller, asset=ident):
            self.baskets.issue_more(caller, ident, amount)

    def redeem_basket(self, caller: bytes, ident: int, amount: int) -> None:
        with self.atomic("redeem_basket", caller=caller, asset=ident):
            self.baskets.redeem_basket(caller, ident, amount)


__all__ = [
    "INTERFACE_ID_ERC165",
    "INTERFACE_ID_MULTI_ASSET",
    "MultiToken",
]
