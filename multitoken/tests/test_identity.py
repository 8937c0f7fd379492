from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from multitoken.config import DEFAULT_REGISTRY_ADDRESS
from multitoken.errors import InvalidArgument
from multitoken.hashing import keccak256, length_prefixed
from multitoken.identity import (IDENTIFIER_MAX, address_to_id,
                                 basket_salt, create2_address,
                                 derive_basket_id, derive_native_id,
                                 external_id, id_to_address,
                                 predict_proxy_address, proxy_code_hash,
                                 require_address, salt_for)

REG_A = b"\x11" * 20
REG_B = b"\x22" * 20
CODE = proxy_code_hash()

NAMES = st.text(min_size=0, max_size=24)


def test_keccak_matches_known_vector() -> None:
    # Keccak-256 (pre-NIST padding) of the empty string
    assert keccak256(b"").hex() == "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"


def test_create2_formula() -> None:
    salt = b"\x01" * 32
    expected = keccak256(b"\xff" + REG_A + salt + CODE)[12:]
    assert create2_address(REG_A, salt, CODE) == expected
    assert len(expected) == 20


def test_salt_is_length_prefixed() -> None:
    assert salt_for("ab", "c") == keccak256(length_prefixed(b"ab") + length_prefixed(b"c"))
    # no ambiguous concatenation
    assert salt_for("ab", "c") != salt_for("a", "bc")


def test_native_id_is_deterministic_and_fits_160_bits() -> None:
    a = derive_native_id("Test", "TST", REG_A, CODE)
    b = derive_native_id("Test", "TST", REG_A, CODE)
    assert a == b
    assert 0 <= a <= IDENTIFIER_MAX


def test_native_id_binds_registry_and_code_hash() -> None:
    base = derive_native_id("Test", "TST", REG_A, CODE)
    assert derive_native_id("Test", "TST", REG_B, CODE) != base
    assert derive_native_id("Test", "TST", REG_A, keccak256(b"other-proxy")) != base


def test_proxy_address_equals_native_id() -> None:
    ident = derive_native_id("Test", "TST", REG_A, CODE)
    addr = predict_proxy_address(ident)
    assert addr == create2_address(REG_A, salt_for("Test", "TST"), CODE)
    assert address_to_id(addr) == ident


def test_basket_id_depends_on_chain() -> None:
    one = derive_basket_id("Bundle", "BDL", REG_A, CODE, 1)
    two = derive_basket_id("Bundle", "BDL", REG_A, CODE, 2)
    assert one != two
    assert one != derive_native_id("Bundle", "BDL", REG_A, CODE)
    assert basket_salt("Bundle", "BDL", 1) == keccak256((1).to_bytes(32, "big") + salt_for("Bundle", "BDL"))


def test_external_id_is_identity() -> None:
    asset = bytes(range(20))
    assert external_id(asset) == int.from_bytes(asset, "big")
    assert id_to_address(external_id(asset)) == asset


def test_default_registry_address() -> None:
    assert DEFAULT_REGISTRY_ADDRESS == keccak256(b"multitoken/registry/v1")[12:]


@pytest.mark.parametrize("bad", [b"\x00" * 19, b"\x00" * 21, "0x" + "00" * 20, None, 5])
def test_require_address_rejects_malformed(bad) -> None:
    with pytest.raises(InvalidArgument):
        require_address(bad)


def test_require_address_rejects_zero_unless_allowed() -> None:
    with pytest.raises(InvalidArgument):
        require_address(b"\x00" * 20)
    assert require_address(b"\x00" * 20, allow_zero=True) == b"\x00" * 20


def test_id_to_address_rejects_out_of_range() -> None:
    with pytest.raises(InvalidArgument):
        id_to_address(2**160)
    with pytest.raises(InvalidArgument):
        id_to_address(-1)


@settings(max_examples=60, deadline=None)
@given(n1=NAMES, s1=NAMES, n2=NAMES, s2=NAMES)
def test_distinct_pairs_give_distinct_ids(n1: str, s1: str, n2: str, s2: str) -> None:
    i1 = derive_native_id(n1, s1, REG_A, CODE)
    i2 = derive_native_id(n2, s2, REG_A, CODE)
    assert (i1 == i2) == ((n1, s1) == (n2, s2))


@settings(max_examples=40, deadline=None)
@given(name=NAMES, symbol=NAMES, reg=st.binary(min_size=20, max_size=20))
def test_prediction_roundtrip(name: str, symbol: str, reg: bytes) -> None:
    ident = derive_native_id(name, symbol, reg, CODE)
    assert predict_proxy_address(ident) == create2_address(reg, salt_for(name, symbol), CODE)
