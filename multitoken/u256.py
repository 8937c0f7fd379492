"""
multitoken.u256
===============

Checked unsigned-integer helpers for ledger amounts.

Every amount handled by the engine (balances, supplies, allowances, ratios)
lives in the closed interval [0, 2**256 - 1]. Python ints never wrap, so the
bound is enforced explicitly: leaving the domain is a hard failure
(`ArithmeticOverflow`), and an underflow on a balance debit is reported by the
caller as `InsufficientBalance` before it gets here.

Conventions
-----------
- All operations are integer-only; bools are rejected as amounts.
- `require_amount` validates inputs at the API boundary (`InvalidArgument`).
- `add` / `sub` / `mul_div_down` validate both inputs and results.
"""

from __future__ import annotations

from typing import Final

from .errors import ArithmeticOverflow, InvalidArgument

U256_MAX: Final[int] = 2**256 - 1

#: Allowance sentinel meaning "unlimited"; never decremented by spending.
MAX_ALLOWANCE: Final[int] = U256_MAX


def is_u256(n: object) -> bool:
    return isinstance(n, int) and not isinstance(n, bool) and 0 <= n <= U256_MAX


def require_amount(n: object, *, name: str = "amount") -> int:
    """Return `n` if it is a u256 integer, else raise InvalidArgument."""
    if not is_u256(n):
        raise InvalidArgument(f"{name} must be an integer in [0, 2**256-1]", value=repr(n))
    return n  # type: ignore[return-value]


def add(x: int, y: int) -> int:
    """Checked add: raise on overflow."""
    s = x + y
    if s > U256_MAX:
        raise ArithmeticOverflow("u256 add overflow", x=x, y=y)
    return s


def sub(x: int, y: int) -> int:
    """Checked sub: raise on underflow (y > x)."""
    if y > x:
        raise ArithmeticOverflow("u256 sub underflow", x=x, y=y)
    return x - y


def mul_div_down(x: int, y: int, d: int) -> int:
    """floor((x*y)/d); the intermediate product is exact, the result range-checked."""
    if d <= 0:
        raise InvalidArgument("divisor must be positive", divisor=d)
    q = (x * y) // d
    if q > U256_MAX:
        raise ArithmeticOverflow("u256 mul_div overflow", x=x, y=y, d=d)
    return q


__all__ = [
    "U256_MAX",
    "MAX_ALLOWANCE",
    "is_u256",
    "require_amount",
    "add",
    "sub",
    "mul_div_down",
]
