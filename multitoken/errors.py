"""
multitoken.errors — typed failures surfaced by the ledger engine.

Every rejected operation raises exactly one of these. The host reverts the
operation's journal checkpoint before the exception reaches the caller, so a
raised error always means "no state change".

Hierarchy
---------
LedgerError (base)
 ├─ InvalidMetadata     : empty symbol/uri, reserve/ratio length mismatch
 ├─ AlreadyCreated      : identifier collision on creation
 ├─ Unauthorized        : not the owner, or no allowance/operator right
 ├─ OnlyExternal        : wrap/unwrap on a registered (native/basket) id
 ├─ OnlyNative          : proxy operations on a non-native id
 ├─ InsufficientBalance : debit beyond available balance
 ├─ OnlyBasket          : basket operation on a non-basket id
 ├─ DeploymentFailed    : address occupied / prediction mismatch
 ├─ ProxyMissing        : tokenize/untokenize before create_proxy
 ├─ TransferFailed      : custody pull/release failed or was short
 ├─ ArithmeticOverflow  : u256 overflow
 └─ InvalidArgument     : malformed amount or address

This module imports nothing from the rest of the package so it can be used
from the lowest layers (u256, journal) without cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


def _jsonable(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    if isinstance(v, (list, tuple)):
        return [_jsonable(x) for x in v]
    if isinstance(v, dict):
        return {str(k): _jsonable(x) for k, x in v.items()}
    if v is None or isinstance(v, (bool, int, float, str)):
        return v
    return str(v)


@dataclass(eq=False)
class LedgerError(Exception):
    """
    Base ledger error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code (e.g. 'UNAUTHORIZED').
        data:    Optional structured details, JSON-safe after `to_dict()`.
    """
    message: str = "ledger error"
    code: str = "LEDGER_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({_jsonable(self.data)})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for logs and CLI output."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = _jsonable(self.data)
        return out


class InvalidMetadata(LedgerError):
    """
    A required string field is empty, or list arguments do not line up.

    Examples: empty symbol or uri on create, empty uri on set_metadata,
    `len(reserve_assets) != len(ratios)` on basket issuance.
    """
    def __init__(self, message: str = "invalid metadata", **data: Any):
        super().__init__(message=message, code="INVALID_METADATA", data=data or None)


class AlreadyCreated(LedgerError):
    """A record already exists at the derived identifier."""
    def __init__(self, message: str = "identifier already created", **data: Any):
        super().__init__(message=message, code="ALREADY_CREATED", data=data or None)


class Unauthorized(LedgerError):
    """
    Caller may not perform the operation.

    Raised for owner-gated calls by a non-owner, and for delegated transfers
    where the caller is neither an operator nor holds enough allowance.
    """
    def __init__(self, message: str = "unauthorized", **data: Any):
        super().__init__(message=message, code="UNAUTHORIZED", data=data or None)


class OnlyExternal(LedgerError):
    """Wrap/unwrap attempted on an identifier registered in this ledger."""
    def __init__(self, message: str = "identifier is not external", **data: Any):
        super().__init__(message=message, code="ONLY_EXTERNAL", data=data or None)


class OnlyNative(LedgerError):
    """Proxy operation attempted on an identifier that is not native."""
    def __init__(self, message: str = "identifier is not native", **data: Any):
        super().__init__(message=message, code="ONLY_NATIVE", data=data or None)


class InsufficientBalance(LedgerError):
    """A debit exceeds the available balance (ledger or proxy side)."""
    def __init__(self, message: str = "insufficient balance", **data: Any):
        super().__init__(message=message, code="INSUFFICIENT_BALANCE", data=data or None)


class OnlyBasket(LedgerError):
    """Basket operation invoked on a non-basket identifier."""
    def __init__(self, message: str = "identifier is not a basket", **data: Any):
        super().__init__(message=message, code="ONLY_BASKET", data=data or None)


class DeploymentFailed(LedgerError):
    """
    Code could not be materialized at the target address.

    Typical triggers:
      - the address is already occupied (second create_proxy)
      - the recomputed CREATE2 address does not match the identifier
    """
    def __init__(self, message: str = "deployment failed", *, address: Optional[bytes] = None, **data: Any):
        d: Dict[str, Any] = dict(data)
        if address is not None:
            d.setdefault("address", address)
        super().__init__(message=message, code="DEPLOYMENT_FAILED", data=d or None)


class ProxyMissing(LedgerError):
    """Tokenize/untokenize called before the proxy was created."""
    def __init__(self, message: str = "proxy not deployed", **data: Any):
        super().__init__(message=message, code="PROXY_MISSING", data=data or None)


class TransferFailed(LedgerError):
    """
    A custody movement did not go through exactly.

    Covers a missing asset, a pull/release that returned false or raised, and
    a pull that delivered a different amount than requested (fee-on-transfer).
    """
    def __init__(self, message: str = "custody transfer failed", **data: Any):
        super().__init__(message=message, code="TRANSFER_FAILED", data=data or None)


class ArithmeticOverflow(LedgerError):
    """A checked u256 operation left the [0, 2**256-1] domain."""
    def __init__(self, message: str = "u256 overflow", **data: Any):
        super().__init__(message=message, code="ARITHMETIC_OVERFLOW", data=data or None)


class InvalidArgument(LedgerError):
    """An amount or address argument is malformed."""
    def __init__(self, message: str = "invalid argument", **data: Any):
        super().__init__(message=message, code="INVALID_ARGUMENT", data=data or None)


__all__ = [
    "LedgerError",
    "InvalidMetadata",
    "AlreadyCreated",
    "Unauthorized",
    "OnlyExternal",
    "OnlyNative",
    "InsufficientBalance",
    "OnlyBasket",
    "DeploymentFailed",
    "ProxyMissing",
    "TransferFailed",
    "ArithmeticOverflow",
    "InvalidArgument",
]
