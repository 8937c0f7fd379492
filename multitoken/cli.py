"""
multitoken.cli — command-line helpers for the multi-asset ledger.

Implements:
  - multitoken derive-id      Native identifier and proxy address for (name, symbol)
  - multitoken basket-id      Basket identifier for (name, symbol, chain id)
  - multitoken predict-proxy  Proxy address for an identifier
  - multitoken config         Effective configuration (env + defaults)
  - multitoken demo           Run a create/mint/tokenize/wrap scenario
  - multitoken version        Package version and build metadata

Identifiers are printed both as decimal strings and as 0x-prefixed 20-byte
hex (the identifier read as an address).
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import typer

from . import logging as mlog
from .config import load_config, summary
from .errors import LedgerError
from .hashing import sha3_256
from .host import Host
from .identity import (derive_basket_id, derive_native_id, id_to_address,
                       predict_proxy_address, proxy_code_hash)
from .multitoken import MultiToken
from .state.events import InMemoryEventSink
from .token import MintableToken
from .version import version_metadata

app = typer.Typer(
    name="multitoken",
    add_completion=False,
    no_args_is_help=True,
    help="Derive identifiers and exercise the multi-asset ledger locally.",
)


@app.callback()
def _setup_logging() -> None:
    # MULTITOKEN_LOG_* applies to every command
    mlog.configure_from_config(load_config())


def _pretty(obj: Any) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


def _hex(b: bytes) -> str:
    return "0x" + b.hex()


def _parse_address(value: Optional[str], default: bytes) -> bytes:
    if value is None:
        return default
    s = value[2:] if value.lower().startswith("0x") else value
    try:
        raw = bytes.fromhex(s)
    except ValueError:
        raise typer.BadParameter(f"not a hex address: {value}")
    if len(raw) != 20:
        raise typer.BadParameter("address must be 20 bytes")
    return raw


def _parse_ident(value: str) -> int:
    try:
        n = int(value, 0)
    except ValueError:
        raise typer.BadParameter(f"not an integer: {value}")
    if not (0 <= n < 2**160):
        raise typer.BadParameter("identifier must fit in 160 bits")
    return n


def _ident_json(ident: int) -> Dict[str, str]:
    return {"id": str(ident), "hex": _hex(id_to_address(ident))}


def demo_account(tag: str) -> bytes:
    """Deterministic 20-byte account for demos and fixtures."""
    return sha3_256(tag.encode("utf-8"))[:20]


RegistryOpt = typer.Option(None, "--registry", help="Registry address (0x…); default from config", envvar="MULTITOKEN_REGISTRY_ADDRESS")


@app.command("derive-id")
def derive_id(
    name: str = typer.Argument(..., help="Asset name"),
    symbol: str = typer.Argument(..., help="Asset symbol"),
    registry: Optional[str] = RegistryOpt,
) -> None:
    """Print the native identifier and proxy address for NAME/SYMBOL."""
    reg = _parse_address(registry, load_config().registry_address)
    ident = derive_native_id(name, symbol, reg, proxy_code_hash())
    typer.echo(_pretty({**_ident_json(ident), "proxy": _hex(predict_proxy_address(ident)), "registry": _hex(reg)}))


@app.command("basket-id")
def basket_id(
    name: str = typer.Argument(..., help="Basket name"),
    symbol: str = typer.Argument(..., help="Basket symbol"),
    registry: Optional[str] = RegistryOpt,
    chain_id: Optional[int] = typer.Option(None, "--chain-id", help="Chain discriminator; default from config"),
) -> None:
    """Print the basket identifier for NAME/SYMBOL on a chain."""
    cfg = load_config()
    reg = _parse_address(registry, cfg.registry_address)
    chain = cfg.chain_id if chain_id is None else chain_id
    if chain < 0:
        raise typer.BadParameter("chain id must be non-negative")
    ident = derive_basket_id(name, symbol, reg, proxy_code_hash(), chain)
    typer.echo(_pretty({**_ident_json(ident), "chain_id": chain, "registry": _hex(reg)}))


@app.command("predict-proxy")
def predict_proxy(ident: str = typer.Argument(..., help="Identifier (decimal or 0x…)")) -> None:
    """Print the address create_proxy(IDENT) deploys at."""
    typer.echo(_hex(predict_proxy_address(_parse_ident(ident))))


@app.command("config")
def show_config(
    one_line: bool = typer.Option(False, "--summary", help="Print a one-line summary instead of JSON"),
) -> None:
    """Show the effective configuration."""
    cfg = load_config()
    typer.echo(summary(cfg) if one_line else _pretty(cfg.to_dict()))


@app.command("version")
def version() -> None:
    """Show version and build metadata."""
    typer.echo(_pretty(version_metadata()))


@app.command("demo")
def demo(
    supply: int = typer.Option(1_000_000, "--supply", min=0, help="Initial native supply"),
    wrap_amount: int = typer.Option(1_000, "--wrap", min=0, help="Units of the external token to wrap"),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Engine log level (default: MULTITOKEN_LOG_LEVEL)"
    ),
) -> None:
    """
    Run the reference scenario on a fresh in-memory host and print balances
    and committed events as JSON.
    """
    cfg = load_config(overrides={"event_log_path": None})
    mlog.configure(json=True, level=log_level or cfg.logging.level)
    sink = InMemoryEventSink()
    host = Host(cfg, sink=sink)
    alice, bob = demo_account("alice"), demo_account("bob")

    try:
        mt = MultiToken(host)
        native = mt.create(alice, "Test", "TST", "ipfs://test", alice, supply)
        mt.mint(alice, bob, native, 500)
        proxy = mt.create_proxy(alice, native)
        mt.tokenize(bob, native, 200)

        token = MintableToken(host, demo_account("token-x"), "External X", "X", 6, owner=alice)
        with host.atomic("deploy", asset=token.address):
            host.deploy(token.address, token)
        token.mint(alice, alice, wrap_amount)
        token.approve(alice, mt.address, wrap_amount)
        wrapped = mt.wrap(alice, token.address, wrap_amount)
    except LedgerError as e:
        typer.echo(_pretty(e.to_dict()), err=True)
        raise typer.Exit(1)

    out = {
        "native": {
            **_ident_json(native),
            "proxy": _hex(proxy),
            "total_supply": str(mt.total_supply(native)),
            "circulating_supply": str(mt.circulating_supply(native)),
            "balances": {_hex(a): str(v) for a, v in mt.holders(native).items()},
        },
        "wrapped": {
            **_ident_json(wrapped),
            "decimals": mt.decimals(wrapped),
            "total_supply": str(mt.total_supply(wrapped)),
            "custody": str(mt.custody_balance(token.address)),
        },
        "events": [ev.to_json() for ev in sink.events()],
    }
    typer.echo(_pretty(out))


def main() -> None:  # pragma: no cover - console entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
