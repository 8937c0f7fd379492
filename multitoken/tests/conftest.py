# -*- coding: utf-8 -*-
"""
multitoken.tests.conftest
=========================

Pytest fixtures for the ledger engine.

- A fresh in-memory `Host` and a `MultiToken` deployed on it per test.
- Deterministic accounts derived from tags via SHA3-256 (stable across runs).
- External single-asset tokens deployed on the same host, so their state is
  journaled with the ledger's and reverts together with it.
- A fee-on-transfer token for the custody delta checks.

Usage (inside a test file):
    def test_flow(mt, accounts, deploy_token):
        alice = accounts["alice"]
        x = deploy_token("X", balances={alice: 1_000})
        x.approve(alice, mt.address, 1_000)
        mt.wrap(alice, x.address, 1_000)
"""
from __future__ import annotations

import hashlib
import logging
import os
from typing import Callable, Dict, Mapping, Optional

import pytest

from multitoken.config import MultiTokenConfig, load_config
from multitoken.host import Host
from multitoken.multitoken import MultiToken
from multitoken.state.events import InMemoryEventSink
from multitoken.token import MintableToken
from multitoken.u256 import add

os.environ.setdefault("PYTHONHASHSEED", "0")


def _det_address(tag: str) -> bytes:
    """Stable 20-byte address from a tag."""
    return hashlib.sha3_256(tag.encode("utf-8")).digest()[:20]


class FeeOnTransferToken(MintableToken):
    """Skims `fee_bps` of every transfer to a fee sink; custody must reject it."""

    def __init__(self, *args, fee_bps: int = 100, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.fee_bps = fee_bps
        self.fee_sink = _det_address("fee-sink")

    def _move(self, frm: bytes, to: bytes, amount: int) -> None:
        fee = amount * self.fee_bps // 10_000
        super()._move(frm, to, amount)
        if fee:
            self.storage.set("bal", to, self.storage.get("bal", to) - fee)
            self.storage.set("bal", self.fee_sink, add(self.storage.get("bal", self.fee_sink), fee))


class FalseReturningToken(MintableToken):
    """Reports failure by returning False instead of raising."""

    def transfer_from(self, caller: bytes, owner: bytes, to: bytes, amount: int) -> bool:
        return False


@pytest.fixture(autouse=True)
def _reset_multitoken_logger():
    """Each test starts with an unconfigured ``multitoken`` logger."""
    yield
    logger = logging.getLogger("multitoken")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def accounts() -> Dict[str, bytes]:
    return {tag: _det_address(tag) for tag in ("alice", "bob", "carol", "dave", "mallory")}


@pytest.fixture
def config() -> MultiTokenConfig:
    return load_config(env={})


@pytest.fixture
def sink() -> InMemoryEventSink:
    return InMemoryEventSink()


@pytest.fixture
def host(config: MultiTokenConfig, sink: InMemoryEventSink) -> Host:
    return Host(config, sink=sink)


@pytest.fixture
def mt(host: Host) -> MultiToken:
    return MultiToken(host)


@pytest.fixture
def deploy_token(host: Host, accounts: Dict[str, bytes]) -> Callable[..., MintableToken]:
    """
    Factory: deploy an external token at a deterministic address and mint the
    requested starting balances (token owner is "dave").
    """

    def _deploy(
        symbol: str,
        *,
        balances: Optional[Mapping[bytes, int]] = None,
        decimals: int = 18,
        cls: type = MintableToken,
        **kwargs,
    ) -> MintableToken:
        owner = accounts["dave"]
        token = cls(host, _det_address(f"token:{symbol}"), f"Token {symbol}", symbol, decimals, owner=owner, **kwargs)
        with host.atomic("deploy", asset=token.address):
            host.deploy(token.address, token)
        for holder, amount in (balances or {}).items():
            token.mint(owner, holder, amount)
        return token

    return _deploy


@pytest.fixture
def native(mt: MultiToken, accounts: Dict[str, bytes]) -> int:
    """The reference native asset: ("Test", "TST"), 1_000_000 to alice."""
    alice = accounts["alice"]
    return mt.create(alice, "Test", "TST", "ipfs://test", alice, 1_000_000)
