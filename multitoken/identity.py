"""
multitoken.identity — identifier and proxy-address derivation.

Pure functions, no state. Identifiers are 160-bit integers so that a native
asset's identifier, read as 20 bytes, *is* the address its single-asset proxy
gets deployed at.

Scheme
------
Native identifiers follow CREATE2-style address prediction:

    salt = keccak256(len(name) || name || len(symbol) || symbol)
    addr = keccak256(0xff || registry || salt || proxy_code_hash)[12:]
    id   = int(addr)

Binding `registry` means two ledgers never derive the same identifier for the
same (name, symbol); binding `proxy_code_hash` means a different proxy image
yields a different identifier space.

Basket identifiers use the same scheme with the salt additionally seeded by a
chain discriminator:

    salt = keccak256(chain_id as u256 || salt(name, symbol))

External identifiers are the external asset's address reinterpreted as an
integer, with no hashing. An external address can only equal a native
identifier if it *is* that identifier's proxy address; wrapping such an
address is rejected by the wrap controller because the identifier is
registered.
"""

from __future__ import annotations

from typing import Final

from .errors import InvalidArgument
from .hashing import keccak256, keccak256_concat, length_prefixed

ADDRESS_LEN: Final[int] = 20
IDENTIFIER_BITS: Final[int] = 160
IDENTIFIER_MAX: Final[int] = 2**IDENTIFIER_BITS - 1

ZERO_ADDRESS: Final[bytes] = b"\x00" * ADDRESS_LEN

#: CREATE2 domain tag.
CREATE2_PREFIX: Final[bytes] = b"\xff"

#: Runtime descriptor of the single-asset proxy implementation. Its hash plays
#: the role of the proxy's init-code hash in address prediction; bump the
#: version when the proxy's observable behaviour changes.
PROXY_RUNTIME_CODE: Final[bytes] = b"multitoken/proxy-token/v1"


def require_address(addr: object, *, name: str = "address", allow_zero: bool = False) -> bytes:
    """
    Return `addr` as immutable bytes if it is a 20-byte address.

    The zero address is reserved for mint/burn in events and is rejected
    unless `allow_zero` is set.
    """
    if not isinstance(addr, (bytes, bytearray)) or len(addr) != ADDRESS_LEN:
        raise InvalidArgument(f"{name} must be {ADDRESS_LEN} bytes", value=repr(addr))
    a = bytes(addr)
    if not allow_zero and a == ZERO_ADDRESS:
        raise InvalidArgument(f"{name} must not be the zero address")
    return a


def require_identifier(ident: object) -> int:
    if not isinstance(ident, int) or isinstance(ident, bool) or not (0 <= ident <= IDENTIFIER_MAX):
        raise InvalidArgument("identifier must be an integer in [0, 2**160-1]", value=repr(ident))
    return ident


def proxy_code_hash(code: bytes = PROXY_RUNTIME_CODE) -> bytes:
    """Content hash of the proxy's executable representation."""
    return keccak256(code)


def salt_for(name: str, symbol: str) -> bytes:
    """32-byte salt over the (name, symbol) pair."""
    if not isinstance(name, str) or not isinstance(symbol, str):
        raise InvalidArgument("name and symbol must be str")
    return keccak256_concat(
        length_prefixed(name.encode("utf-8")),
        length_prefixed(symbol.encode("utf-8")),
    )


def basket_salt(name: str, symbol: str, chain_id: int) -> bytes:
    if not isinstance(chain_id, int) or chain_id < 0:
        raise InvalidArgument("chain_id must be a non-negative integer", value=repr(chain_id))
    return keccak256_concat(chain_id.to_bytes(32, "big"), salt_for(name, symbol))


def create2_address(deployer: bytes, salt: bytes, code_hash: bytes) -> bytes:
    """
    Predict the address materialized by `deployer` for (`salt`, `code_hash`).
    """
    deployer = require_address(deployer, name="deployer", allow_zero=True)
    if len(salt) != 32 or len(code_hash) != 32:
        raise InvalidArgument("salt and code_hash must be 32 bytes")
    return keccak256_concat(CREATE2_PREFIX, deployer, salt, code_hash)[12:]


def address_to_id(addr: bytes) -> int:
    return int.from_bytes(require_address(addr, allow_zero=True), "big")


def id_to_address(ident: int) -> bytes:
    return require_identifier(ident).to_bytes(ADDRESS_LEN, "big")


def derive_native_id(name: str, symbol: str, registry_address: bytes, code_hash: bytes) -> int:
    """Identifier of the native asset (name, symbol) created by `registry_address`."""
    return address_to_id(create2_address(registry_address, salt_for(name, symbol), code_hash))


def derive_basket_id(
    name: str, symbol: str, registry_address: bytes, code_hash: bytes, chain_id: int
) -> int:
    """Identifier of a basket; the chain discriminator keeps unrelated baskets apart."""
    return address_to_id(
        create2_address(registry_address, basket_salt(name, symbol, chain_id), code_hash)
    )


def external_id(asset_address: bytes) -> int:
    """Identity transform: the external asset's address as an identifier."""
    return address_to_id(asset_address)


def predict_proxy_address(ident: int) -> bytes:
    """
    Address at which `create_proxy(ident)` materializes the proxy.

    Native identifiers are CREATE2 predictions under (registry, salt,
    proxy_code_hash), so the proxy address is the identifier itself.
    """
    return id_to_address(ident)


__all__ = [
    "ADDRESS_LEN",
    "IDENTIFIER_BITS",
    "IDENTIFIER_MAX",
    "ZERO_ADDRESS",
    "PROXY_RUNTIME_CODE",
    "require_address",
    "require_identifier",
    "proxy_code_hash",
    "salt_for",
    "basket_salt",
    "create2_address",
    "address_to_id",
    "id_to_address",
    "derive_native_id",
    "derive_basket_id",
    "external_id",
    "predict_proxy_address",
]
