"""
multitoken.ledger — the shared balance/allowance/operator tables.

Storage layout (all under the ledger contract's address)
--------------------------------------------------------
("bal", id, account)            -> int   balance
("supply", id)                  -> int   total supply
("allow", owner, spender, id)   -> int   allowance (MAX_ALLOWANCE = unlimited)
("op", owner, operator)         -> bool  operator approval (all ids)

Zero values are never stored, so scanning ("bal", id) yields exactly the
holders of `id`.

Primitives (`credit`, `debit`, `move`, `spend_allowance`) emit nothing; the
user-facing operations and the `mint`/`burn` helpers emit the events. Callers
hold an atomic host scope around every mutation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import InsufficientBalance, Unauthorized
from .host import Contract
from .identity import ZERO_ADDRESS, require_address, require_identifier
from .state.events import APPROVAL, OPERATOR_SET, TRANSFER
from .u256 import MAX_ALLOWANCE, add, require_amount


@dataclass(frozen=True)
class SupplyAudit:
    """Result of reconciling one identifier's balances against its supply."""

    ident: int
    total_supply: int
    balance_sum: int
    holders: Dict[bytes, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.total_supply == self.balance_sum


class LedgerStore:
    def __init__(self, contract: Contract) -> None:
        self._c = contract
        self._s = contract.storage

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def balance_of(self, account: bytes, ident: int) -> int:
        return self._s.get("bal", require_identifier(ident), require_address(account, name="account", allow_zero=True))

    def total_supply(self, ident: int) -> int:
        return self._s.get("supply", require_identifier(ident))

    def allowance(self, owner: bytes, spender: bytes, ident: int) -> int:
        return self._s.get(
            "allow",
            require_address(owner, name="owner", allow_zero=True),
            require_address(spender, name="spender", allow_zero=True),
            require_identifier(ident),
        )

    def is_operator(self, owner: bytes, operator: bytes) -> bool:
        return bool(
            self._s.get(
                "op",
                require_address(owner, name="owner", allow_zero=True),
                require_address(operator, name="operator", allow_zero=True),
                default=False,
            )
        )

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def credit(self, account: bytes, ident: int, amount: int) -> None:
        """Add `amount` to balance and total supply (a mint without the event)."""
        require_amount(amount)
        self._s.set("supply", ident, add(self._s.get("supply", ident), amount))
        self._s.set("bal", ident, account, add(self._s.get("bal", ident, account), amount))

    def debit(self, account: bytes, ident: int, amount: int) -> None:
        """Remove `amount` from balance and total supply (a burn without the event)."""
        require_amount(amount)
        bal = self._s.get("bal", ident, account)
        if bal < amount:
            raise InsufficientBalance(account=account, id=ident, balance=bal, amount=amount)
        self._s.set("bal", ident, account, bal - amount)
        # supply >= bal >= amount by conservation
        self._s.set("supply", ident, self._s.get("supply", ident) - amount)

    def move(self, sender: bytes, receiver: bytes, ident: int, amount: int) -> None:
        require_amount(amount)
        bal = self._s.get("bal", ident, sender)
        if bal < amount:
            raise InsufficientBalance(account=sender, id=ident, balance=bal, amount=amount)
        self._s.set("bal", ident, sender, bal - amount)
        self._s.set("bal", ident, receiver, add(self._s.get("bal", ident, receiver), amount))

    def spend_allowance(self, owner: bytes, spender: bytes, ident: int, amount: int) -> None:
        allowed = self._s.get("allow", owner, spender, ident)
        if allowed < amount:
            raise Unauthorized("allowance exceeded", owner=owner, spender=spender, id=ident, allowance=allowed)
        if allowed != MAX_ALLOWANCE:
            self._s.set("allow", owner, spender, ident, allowed - amount)

    # ------------------------------------------------------------------
    # Evented supply changes (used by registry, bridge, custody, baskets)
    # ------------------------------------------------------------------

    def mint(self, agent: bytes, to: bytes, ident: int, amount: int) -> None:
        to = require_address(to, name="to")
        self.credit(to, ident, amount)
        self._transfer_event(agent, ZERO_ADDRESS, to, ident, amount)

    def burn(self, agent: bytes, frm: bytes, ident: int, amount: int) -> None:
        self.debit(frm, ident, amount)
        self._transfer_event(agent, frm, ZERO_ADDRESS, ident, amount)

    # ------------------------------------------------------------------
    # User operations
    # ------------------------------------------------------------------

    def transfer(self, caller: bytes, receiver: bytes, ident: int, amount: int) -> bool:
        caller = require_address(caller, name="caller")
        receiver = require_address(receiver, name="receiver")
        ident = require_identifier(ident)
        self.move(caller, receiver, ident, amount)
        self._transfer_event(caller, caller, receiver, ident, amount)
        return True

    def transfer_from(self, caller: bytes, sender: bytes, receiver: bytes, ident: int, amount: int) -> bool:
        """
        Move `amount` of `ident` from `sender` to `receiver` on `caller`'s
        authority: the sender itself, an operator of the sender, or a spender
        with enough allowance (unlimited allowances are left untouched).
        """
        caller = require_address(caller, name="caller")
        sender = require_address(sender, name="sender")
        receiver = require_address(receiver, name="receiver")
        ident = require_identifier(ident)
        require_amount(amount)
        if caller != sender and not self.is_operator(sender, caller):
            self.spend_allowance(sender, caller, ident, amount)
        self.move(sender, receiver, ident, amount)
        self._transfer_event(caller, sender, receiver, ident, amount)
        return True

    def approve(self, caller: bytes, spender: bytes, ident: int, amount: int) -> bool:
        caller = require_address(caller, name="caller")
        spender = require_address(spender, name="spender")
        ident = require_identifier(ident)
        require_amount(amount)
        self._s.set("allow", caller, spender, ident, amount)
        self._c.emit(APPROVAL, owner=caller, spender=spender, id=ident, amount=amount)
        return True

    def set_operator(self, caller: bytes, operator: bytes, approved: bool) -> bool:
        caller = require_address(caller, name="caller")
        operator = require_address(operator, name="operator")
        self._s.set("op", caller, operator, bool(approved))
        self._c.emit(OPERATOR_SET, owner=caller, operator=operator, approved=bool(approved))
        return True

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def holders(self, ident: int) -> Dict[bytes, int]:
        """Non-zero balances of `ident`, keyed by account."""
        ident = require_identifier(ident)
        return {k[2]: v for k, v in self._s.scan("bal", ident)}

    def audit(self, ident: int) -> SupplyAudit:
        held = self.holders(ident)
        return SupplyAudit(
            ident=ident,
            total_supply=self.total_supply(ident),
            balance_sum=sum(held.values()),
            holders=held,
        )

    def identifiers(self) -> List[int]:
        """Every identifier that currently has supply."""
        return [k[1] for k, _ in self._s.scan("supply")]

    def export(self, ident: Optional[int] = None) -> Dict[str, Any]:
        """
        JSON-friendly dump of the tables (addresses as 0x-hex, ids and amounts
        as decimal strings so u256 values survive any JSON reader).
        """
        ids = [ident] if ident is not None else self.identifiers()
        out: Dict[str, Any] = {"supplies": {}, "balances": {}, "allowances": [], "operators": []}
        for i in ids:
            out["supplies"][str(i)] = str(self.total_supply(i))
            out["balances"][str(i)] = {"0x" + a.hex(): str(v) for a, v in self.holders(i).items()}
        for k, v in self._s.scan("allow"):
            _, owner, spender, i = k
            if ident is None or i == ident:
                out["allowances"].append(
                    {"owner": "0x" + owner.hex(), "spender": "0x" + spender.hex(), "id": str(i), "amount": str(v)}
                )
        for k, _ in self._s.scan("op"):
            out["operators"].append({"owner": "0x" + k[1].hex(), "operator": "0x" + k[2].hex()})
        return out

    # ------------------------------------------------------------------

    def _transfer_event(self, agent: bytes, frm: bytes, to: bytes, ident: int, amount: int) -> None:
        self._c.emit(TRANSFER, agent=agent, **{"from": frm}, to=to, id=ident, amount=amount)


__all__ = ["LedgerStore", "SupplyAudit"]
