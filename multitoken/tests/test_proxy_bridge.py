"""
Proxy bridge: deployment at the predicted address, tokenize/untokenize
reconciliation, and the proxy's own single-asset behaviour.
"""
from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from multitoken.config import load_config
from multitoken.errors import (DeploymentFailed, InsufficientBalance,
                               OnlyExternal, OnlyNative, ProxyMissing,
                               Unauthorized)
from multitoken.host import Host
from multitoken.identity import ZERO_ADDRESS, id_to_address
from multitoken.multitoken import MultiToken
from multitoken.proxy import ProxyToken
from multitoken.state.events import InMemoryEventSink

ALICE = b"\xaa" * 20


def test_create_proxy_at_identifier_address(mt, native, accounts, host) -> None:
    addr = mt.create_proxy(accounts["bob"], native)
    assert addr == id_to_address(native)
    proxy = mt.proxy_of(native)
    assert isinstance(proxy, ProxyToken)
    assert host.contract_at(addr) is proxy


def test_second_create_proxy_fails(mt, native, accounts) -> None:
    mt.create_proxy(accounts["alice"], native)
    with pytest.raises(DeploymentFailed):
        mt.create_proxy(accounts["alice"], native)


def test_create_proxy_rejects_non_native(mt, accounts, deploy_token) -> None:
    x = deploy_token("X")
    with pytest.raises(OnlyNative):
        mt.create_proxy(accounts["alice"], int.from_bytes(x.address, "big"))
    with pytest.raises(OnlyNative):
        mt.create_proxy(accounts["alice"], 777)


def test_tokenize_requires_proxy(mt, native, accounts) -> None:
    with pytest.raises(ProxyMissing):
        mt.tokenize(accounts["alice"], native, 1)


def test_tokenize_moves_supply_to_proxy(mt, native, accounts, host) -> None:
    alice = accounts["alice"]
    mt.create_proxy(alice, native)
    proxy = mt.proxy_of(native)

    mt.tokenize(alice, native, 300)
    assert mt.balance_of(alice, native) == 999_700
    assert mt.total_supply(native) == 999_700
    assert proxy.balance_of(alice) == 300
    assert proxy.total_supply() == 300
    assert mt.circulating_supply(native) == 1_000_000

    proxy_events = host.events(emitter=proxy.address)
    assert proxy_events[-1].name == "Transfer"
    assert proxy_events[-1].args == {"from": ZERO_ADDRESS, "to": alice, "value": 300}


def test_tokenize_round_trip_is_noop(mt, native, accounts) -> None:
    alice = accounts["alice"]
    mt.create_proxy(alice, native)
    proxy = mt.proxy_of(native)
    before = (mt.balance_of(alice, native), proxy.balance_of(alice), mt.total_supply(native))
    mt.tokenize(alice, native, 12_345)
    mt.untokenize(alice, native, 12_345)
    assert (mt.balance_of(alice, native), proxy.balance_of(alice), mt.total_supply(native)) == before


def test_tokenize_insufficient_balance(mt, native, accounts) -> None:
    bob = accounts["bob"]
    mt.create_proxy(bob, native)
    with pytest.raises(InsufficientBalance):
        mt.tokenize(bob, native, 1)


def test_untokenize_insufficient_proxy_balance(mt, native, accounts) -> None:
    alice, bob = accounts["alice"], accounts["bob"]
    mt.create_proxy(alice, native)
    mt.tokenize(alice, native, 10)
    with pytest.raises(InsufficientBalance):
        mt.untokenize(bob, native, 1)
    with pytest.raises(InsufficientBalance):
        mt.untokenize(alice, native, 11)
    assert mt.proxy_of(native).balance_of(alice) == 10


def test_proxy_is_a_full_token(mt, native, accounts) -> None:
    alice, bob, carol = accounts["alice"], accounts["bob"], accounts["carol"]
    mt.create_proxy(alice, native)
    proxy = mt.proxy_of(native)
    mt.tokenize(alice, native, 100)

    proxy.transfer(alice, bob, 40)
    proxy.approve(bob, carol, 15)
    proxy.transfer_from(carol, bob, carol, 15)
    assert proxy.balance_of(bob) == 25
    assert proxy.balance_of(carol) == 15

    # bob untokenizes proxy units he received directly
    mt.untokenize(bob, native, 25)
    assert mt.balance_of(bob, native) == 25
    assert mt.circulating_supply(native) == 1_000_000


def test_proxy_metadata_is_read_live(mt, native, accounts, config) -> None:
    alice = accounts["alice"]
    mt.create_proxy(alice, native)
    proxy = mt.proxy_of(native)
    assert (proxy.name(), proxy.symbol(), proxy.decimals()) == ("Test", "TST", config.default_decimals)


def test_only_bridge_can_mint_proxy(mt, native, accounts) -> None:
    alice = accounts["alice"]
    mt.create_proxy(alice, native)
    proxy = mt.proxy_of(native)
    with pytest.raises(Unauthorized):
        proxy.bridge_mint(alice, alice, 1)
    with pytest.raises(Unauthorized):
        proxy.bridge_burn(alice, alice, 1)
    assert proxy.total_supply() == 0


def test_wrapping_a_proxy_is_rejected(mt, native, accounts) -> None:
    alice = accounts["alice"]
    addr = mt.create_proxy(alice, native)
    mt.tokenize(alice, native, 5)
    with pytest.raises(OnlyExternal):
        mt.wrap(alice, addr, 5)


@settings(max_examples=40, deadline=None)
@given(
    start=st.integers(min_value=0, max_value=10**30),
    steps=st.lists(st.tuples(st.booleans(), st.integers(min_value=0, max_value=10**30)), max_size=12),
)
def test_circulating_supply_invariant(start: int, steps) -> None:
    host = Host(load_config(env={}), sink=InMemoryEventSink())
    mt = MultiToken(host)
    alice = ALICE
    ident = mt.create(alice, "Prop", "PRP", "uri", alice, start)
    mt.create_proxy(alice, ident)
    proxy = mt.proxy_of(ident)

    for forward, amount in steps:
        try:
            if forward:
                mt.tokenize(alice, ident, amount)
            else:
                mt.untokenize(alice, ident, amount)
        except InsufficientBalance:
            pass
        assert mt.total_supply(ident) + proxy.total_supply() == start
        assert mt.balance_of(alice, ident) == mt.total_supply(ident)
        assert proxy.balance_of(alice) == proxy.total_supply()
