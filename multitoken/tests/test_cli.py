from __future__ import annotations

import json
import logging

import pytest
from typer.testing import CliRunner

from multitoken.cli import app, demo_account
from multitoken.config import DEFAULT_REGISTRY_ADDRESS
from multitoken.identity import (derive_basket_id, derive_native_id,
                                 external_id, proxy_code_hash)
from multitoken.version import __version__


@pytest.fixture
def runner(monkeypatch) -> CliRunner:
    for var in (
        "MULTITOKEN_REGISTRY_ADDRESS",
        "MULTITOKEN_CHAIN_ID",
        "MULTITOKEN_EVENT_LOG",
        "MULTITOKEN_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    return CliRunner()


def test_derive_id(runner: CliRunner) -> None:
    result = runner.invoke(app, ["derive-id", "Test", "TST"])
    assert result.exit_code == 0, result.output
    out = json.loads(result.stdout)
    ident = derive_native_id("Test", "TST", DEFAULT_REGISTRY_ADDRESS, proxy_code_hash())
    assert out["id"] == str(ident)
    assert out["hex"] == out["proxy"]
    assert out["registry"] == "0x" + DEFAULT_REGISTRY_ADDRESS.hex()


def test_derive_id_custom_registry(runner: CliRunner) -> None:
    reg = "0x" + "11" * 20
    result = runner.invoke(app, ["derive-id", "Test", "TST", "--registry", reg])
    assert result.exit_code == 0, result.output
    out = json.loads(result.stdout)
    assert out["id"] == str(derive_native_id("Test", "TST", b"\x11" * 20, proxy_code_hash()))


def test_derive_id_bad_registry(runner: CliRunner) -> None:
    result = runner.invoke(app, ["derive-id", "Test", "TST", "--registry", "0x1234"])
    assert result.exit_code != 0


def test_basket_id_chain_option(runner: CliRunner) -> None:
    result = runner.invoke(app, ["basket-id", "Bundle", "BDL", "--chain-id", "5"])
    assert result.exit_code == 0, result.output
    out = json.loads(result.stdout)
    assert out["chain_id"] == 5
    assert out["id"] == str(derive_basket_id("Bundle", "BDL", DEFAULT_REGISTRY_ADDRESS, proxy_code_hash(), 5))


@pytest.mark.parametrize("ident", ["255", "0xff"])
def test_predict_proxy(runner: CliRunner, ident: str) -> None:
    result = runner.invoke(app, ["predict-proxy", ident])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "0x" + "00" * 19 + "ff"


def test_predict_proxy_rejects_out_of_range(runner: CliRunner) -> None:
    result = runner.invoke(app, ["predict-proxy", str(2**160)])
    assert result.exit_code != 0


def test_config_summary(runner: CliRunner) -> None:
    result = runner.invoke(app, ["config", "--summary"], env={"MULTITOKEN_CHAIN_ID": "42"})
    assert result.exit_code == 0, result.output
    assert "chain=42" in result.stdout


def test_config_json(runner: CliRunner) -> None:
    result = runner.invoke(app, ["config"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["chain_id"] == 1


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(app, ["version"], env={"MULTITOKEN_GIT_DESCRIBE": "v0.1.0-test"})
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["version"] == __version__


def test_demo_scenario(runner: CliRunner) -> None:
    result = runner.invoke(app, ["demo", "--supply", "1000", "--wrap", "250"])
    assert result.exit_code == 0, result.output
    out = json.loads(result.stdout)

    native = out["native"]
    assert native["total_supply"] == "1300"
    assert native["circulating_supply"] == "1500"
    assert native["hex"] == native["proxy"]
    assert native["balances"]["0x" + demo_account("bob").hex()] == "300"

    wrapped = out["wrapped"]
    assert wrapped["id"] == str(external_id(demo_account("token-x")))
    assert wrapped["decimals"] == 6
    assert wrapped["total_supply"] == wrapped["custody"] == "250"

    names = [ev["name"] for ev in out["events"]]
    assert names[0] == "Created"
    assert "Approval" in names


def test_log_level_from_environment(runner: CliRunner) -> None:
    result = runner.invoke(app, ["config", "--summary"], env={"MULTITOKEN_LOG_LEVEL": "ERROR"})
    assert result.exit_code == 0, result.output
    assert logging.getLogger("multitoken").level == logging.ERROR
