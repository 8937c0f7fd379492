"""
multitoken — a multi-asset ledger with content-derived asset identifiers.

Many fungible assets share one set of tables. An asset is native (created
here, owner-governed), external (custodially wrapped) or a basket (backed by
fixed ratios of reserve assets). Native assets can be projected into a
single-asset proxy token and back.

Public symbols are lazily re-exported from their submodules on first access.
"""

from __future__ import annotations

from importlib import import_module as _imp
from typing import Any, Dict, Tuple

from .version import __version__

_exports: Dict[str, Tuple[str, str]] = {
    "MultiToken": ("multitoken", "MultiToken"),
    "INTERFACE_ID_ERC165": ("multitoken", "INTERFACE_ID_ERC165"),
    "INTERFACE_ID_MULTI_ASSET": ("multitoken", "INTERFACE_ID_MULTI_ASSET"),
    "Host": ("host", "Host"),
    "Contract": ("host", "Contract"),
    "FungibleToken": ("token", "FungibleToken"),
    "MintableToken": ("token", "MintableToken"),
    "ExternalAsset": ("token", "ExternalAsset"),
    "ProxyToken": ("proxy", "ProxyToken"),
    "AssetRecord": ("registry", "AssetRecord"),
    "BasketRecord": ("basket", "BasketRecord"),
    "SupplyAudit": ("ledger", "SupplyAudit"),
    "MultiTokenConfig": ("config", "MultiTokenConfig"),
    "load_config": ("config", "load_config"),
    "get_config": ("config", "get_config"),
    "LedgerError": ("errors", "LedgerError"),
    "derive_native_id": ("identity", "derive_native_id"),
    "derive_basket_id": ("identity", "derive_basket_id"),
    "external_id": ("identity", "external_id"),
    "predict_proxy_address": ("identity", "predict_proxy_address"),
    "ZERO_ADDRESS": ("identity", "ZERO_ADDRESS"),
    "MAX_ALLOWANCE": ("u256", "MAX_ALLOWANCE"),
}

__all__ = tuple(["__version__", *_exports.keys()])


def __getattr__(name: str) -> Any:
    if name in _exports:
        submod, symbol = _exports[name]
        return getattr(_imp(f"{__name__}.{submod}"), symbol)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:  # pragma: no cover
    return sorted(list(globals().keys()) + list(__all__))
