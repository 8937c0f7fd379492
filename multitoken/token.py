"""
Single-asset fungible token (ERC-20–like)
=========================================

The token model shared by proxy tokens and by in-process external assets that
the ledger custodies. State lives in host storage so every mutation is
journaled with the operation that caused it.

Highlights
----------
- Explicit `caller` parameters for mutating calls (no ambient sender).
- Events (emitted by the token's own address):
    - "Transfer" {from, to, value}
    - "Approval" {owner, spender, value}
- u256-checked math via `multitoken.u256` (no silent wrap).
- ``MAX_ALLOWANCE`` approvals are never decremented by `transfer_from`.

Public interface
----------------
name() -> str
symbol() -> str
decimals() -> int
total_supply() -> int
balance_of(account) -> int
allowance(owner, spender) -> int
transfer(caller, to, amount) -> bool
approve(caller, spender, amount) -> bool
transfer_from(caller, owner, to, amount) -> bool

`MintableToken` adds an owner-gated `mint(caller, to, amount)` and a
self-service `burn(caller, amount)`.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .errors import InsufficientBalance, Unauthorized
from .host import Contract, Host, reads_state
from .identity import ZERO_ADDRESS, require_address
from .u256 import MAX_ALLOWANCE, add, require_amount, sub

EVT_TRANSFER = "Transfer"
EVT_APPROVAL = "Approval"


@runtime_checkable
class ExternalAsset(Protocol):
    """What the custody layer needs from a single-asset token."""

    def name(self) -> str: ...

    def symbol(self) -> str: ...

    def decimals(self) -> int: ...

    def balance_of(self, account: bytes) -> int: ...

    def transfer(self, caller: bytes, to: bytes, amount: int) -> bool: ...

    def transfer_from(self, caller: bytes, owner: bytes, to: bytes, amount: int) -> bool: ...


class FungibleToken(Contract):
    def __init__(self, host: Host, address: bytes, name: str, symbol: str, decimals: int = 18) -> None:
        super().__init__(host, address)
        self._name = name
        self._symbol = symbol
        self._decimals = int(decimals)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def name(self) -> str:
        return self._name

    def symbol(self) -> str:
        return self._symbol

    def decimals(self) -> int:
        return self._decimals

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @reads_state
    def total_supply(self) -> int:
        return self.storage.get("supply")

    @reads_state
    def balance_of(self, account: bytes) -> int:
        return self.storage.get("bal", require_address(account, name="account", allow_zero=True))

    @reads_state
    def allowance(self, owner: bytes, spender: bytes) -> int:
        return self.storage.get(
            "allow",
            require_address(owner, name="owner", allow_zero=True),
            require_address(spender, name="spender", allow_zero=True),
        )

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def transfer(self, caller: bytes, to: bytes, amount: int) -> bool:
        with self.atomic("token.transfer", asset=self.address):
            self._move(require_address(caller, name="caller"), require_address(to, name="to"), amount)
        return True

    def approve(self, caller: bytes, spender: bytes, amount: int) -> bool:
        caller = require_address(caller, name="caller")
        spender = require_address(spender, name="spender")
        require_amount(amount)
        with self.atomic("token.approve", asset=self.address):
            self.storage.set("allow", caller, spender, amount)
            self.emit(EVT_APPROVAL, owner=caller, spender=spender, value=amount)
        return True

    def transfer_from(self, caller: bytes, owner: bytes, to: bytes, amount: int) -> bool:
        caller = require_address(caller, name="caller")
        owner = require_address(owner, name="owner")
        to = require_address(to, name="to")
        require_amount(amount)
        with self.atomic("token.transfer_from", asset=self.address):
            if caller != owner:
                allowed = self.storage.get("allow", owner, caller)
                if allowed < amount:
                    raise Unauthorized("allowance exceeded", allowance=allowed, amount=amount)
                if allowed != MAX_ALLOWANCE:
                    self.storage.set("allow", owner, caller, allowed - amount)
            self._move(owner, to, amount)
        return True

    # ------------------------------------------------------------------
    # Internals (callers hold an atomic scope)
    # ------------------------------------------------------------------

    def _move(self, frm: bytes, to: bytes, amount: int) -> None:
        require_amount(amount)
        bal = self.storage.get("bal", frm)
        if bal < amount:
            raise InsufficientBalance(balance=bal, amount=amount)
        self.storage.set("bal", frm, bal - amount)
        self.storage.set("bal", to, add(self.storage.get("bal", to), amount))
        self.emit(EVT_TRANSFER, **{"from": frm, "to": to, "value": amount})

    def _mint(self, to: bytes, amount: int) -> None:
        require_amount(amount)
        to = require_address(to, name="to")
        self.storage.set("supply", add(self.total_supply(), amount))
        self.storage.set("bal", to, add(self.storage.get("bal", to), amount))
        self.emit(EVT_TRANSFER, **{"from": ZERO_ADDRESS, "to": to, "value": amount})

    def _burn(self, frm: bytes, amount: int) -> None:
        require_amount(amount)
        bal = self.storage.get("bal", frm)
        if bal < amount:
            raise InsufficientBalance(balance=bal, amount=amount)
        self.storage.set("bal", frm, bal - amount)
        self.storage.set("supply", sub(self.total_supply(), amount))
        self.emit(EVT_TRANSFER, **{"from": frm, "to": ZERO_ADDRESS, "value": amount})


class MintableToken(FungibleToken):
    """A plain external asset: one owner may mint, holders may burn their own."""

    def __init__(
        self,
        host: Host,
        address: bytes,
        name: str,
        symbol: str,
        decimals: int = 18,
        *,
        owner: bytes,
    ) -> None:
        super().__init__(host, address, name, symbol, decimals)
        self.owner = require_address(owner, name="owner")

    def mint(self, caller: bytes, to: bytes, amount: int) -> bool:
        if require_address(caller, name="caller") != self.owner:
            raise Unauthorized("only the token owner may mint")
        with self.atomic("token.mint", asset=self.address):
            self._mint(to, amount)
        return True

    def burn(self, caller: bytes, amount: int) -> bool:
        caller = require_address(caller, name="caller")
        with self.atomic("token.burn", asset=self.address):
            self._burn(caller, amount)
        return True


__all__ = ["EVT_TRANSFER", "EVT_APPROVAL", "ExternalAsset", "FungibleToken", "MintableToken"]
