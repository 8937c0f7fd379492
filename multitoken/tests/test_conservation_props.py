"""
Property tests: random operation sequences never break supply conservation
or the custody backing of wrapped and basket assets.

Every generated step is allowed to fail; a failed step must leave the ledger
and the external tokens exactly as they were, and after every step:
  • total_supply(id) == Σ balance_of(a, id)           for every touched id
  • total_supply(id) + proxy supply == created + minted - burned (native)
  • custody of X == total_supply(external_id(X)) + basket reserve of X
"""
from __future__ import annotations

from typing import Dict, List, Tuple

from hypothesis import given, settings
from hypothesis import strategies as st

from multitoken.config import load_config
from multitoken.errors import LedgerError
from multitoken.host import Host, export_state
from multitoken.identity import external_id
from multitoken.multitoken import MultiToken
from multitoken.state.events import NullEventSink
from multitoken.token import MintableToken

ACCOUNTS = [bytes([i]) * 20 for i in range(1, 5)]
TOKEN_OWNER = b"\x77" * 20
X_ADDR = b"\x55" * 20
Y_ADDR = b"\x56" * 20

account = st.integers(min_value=0, max_value=len(ACCOUNTS) - 1)
amount = st.integers(min_value=0, max_value=2_000)

KINDS = (
    "transfer",
    "approve",
    "transfer_from",
    "mint",
    "burn",
    "tokenize",
    "untokenize",
    "create_proxy",
    "wrap",
    "unwrap",
    "issue_more",
    "redeem_basket",
)

op = st.tuples(st.sampled_from(KINDS), account, account, amount)


def _setup() -> Tuple[Host, MultiToken, Dict[str, int]]:
    host = Host(load_config(env={}), sink=NullEventSink())
    mt = MultiToken(host)
    owner = ACCOUNTS[0]
    ident = mt.create(owner, "Prop", "PRP", "uri", owner, 5_000)
    for acct in ACCOUNTS[1:]:
        mt.transfer(owner, acct, ident, 1_000)
    mt.create_proxy(owner, ident)

    for addr, sym in ((X_ADDR, "EXT"), (Y_ADDR, "WHY")):
        token = MintableToken(host, addr, f"Token {sym}", sym, 18, owner=TOKEN_OWNER)
        with host.atomic("deploy", asset=addr):
            host.deploy(addr, token)
        for acct in ACCOUNTS:
            token.mint(TOKEN_OWNER, acct, 10_000)
            token.approve(acct, mt.address, 10**9)

    # each basket unit is backed by 3 X and 2 Y
    basket = mt.issue_basket(owner, owner, 100, "Prop Basket", "PBK", "uri", [X_ADDR, Y_ADDR], [300, 200])
    ids = {"native": ident, "wrapped": external_id(X_ADDR), "basket": basket}
    return host, mt, ids


def _apply(mt: MultiToken, ids: Dict[str, int], step) -> None:
    kind, i, j, n = step
    a, b = ACCOUNTS[i], ACCOUNTS[j]
    ident = ids["native"]
    if kind == "transfer":
        mt.transfer(a, b, ident, n)
    elif kind == "approve":
        mt.approve(a, b, ident, n)
    elif kind == "transfer_from":
        # b spends a's balance
        mt.transfer_from(b, a, b, ident, n)
    elif kind == "mint":
        # only ACCOUNTS[0] owns the native asset
        mt.mint(a, b, ident, n)
    elif kind == "burn":
        mt.burn(a, ident, n)
    elif kind == "tokenize":
        mt.tokenize(a, ident, n)
    elif kind == "untokenize":
        mt.untokenize(a, ident, n)
    elif kind == "create_proxy":
        # proxy already exists for the native id; the others are not native
        mt.create_proxy(a, (ident, ids["wrapped"], ids["basket"])[j % 3])
    elif kind == "wrap":
        mt.wrap(a, X_ADDR, n)
    elif kind == "unwrap":
        mt.unwrap(a, X_ADDR, n)
    elif kind == "issue_more":
        mt.issue_more(a, ids["basket"], n)
    else:
        mt.redeem_basket(a, ids["basket"], n)


def _snapshot(host: Host, mt: MultiToken) -> tuple:
    return tuple(export_state(host, addr) for addr in (mt.address, X_ADDR, Y_ADDR))


@settings(max_examples=60, deadline=None)
@given(steps=st.lists(op, max_size=25))
def test_random_sequences_conserve_supply(steps: List[tuple]) -> None:
    host, mt, ids = _setup()
    ident, wrapped, basket = ids["native"], ids["wrapped"], ids["basket"]
    issued = 5_000

    for step in steps:
        before = _snapshot(host, mt)
        try:
            _apply(mt, ids, step)
        except LedgerError:
            assert _snapshot(host, mt) == before
        else:
            assert step[0] != "create_proxy"
            if step[0] == "mint":
                assert step[1] == 0
                issued += step[3]
            elif step[0] == "burn":
                issued -= step[3]

        proxy = mt.proxy_of(ident)
        for i in (ident, wrapped, basket):
            assert mt.audit(i).ok
        assert mt.total_supply(ident) + proxy.total_supply() == issued
        assert sum(proxy.balance_of(a) for a in ACCOUNTS) == proxy.total_supply()
        assert mt.custody_balance(X_ADDR) == mt.total_supply(wrapped) + mt.reserve_balance(basket, X_ADDR)
        assert mt.custody_balance(Y_ADDR) == mt.reserve_balance(basket, Y_ADDR)
        assert mt.reserve_balance(basket, X_ADDR) == 3 * mt.total_supply(basket)
        assert mt.reserve_balance(basket, Y_ADDR) == 2 * mt.total_supply(basket)
