from __future__ import annotations

from pathlib import Path

import pytest

from multitoken.config import (DEFAULT_REGISTRY_ADDRESS, MultiTokenConfig,
                               load_config, summary)


def test_defaults() -> None:
    cfg = load_config(env={})
    assert cfg == MultiTokenConfig()
    assert cfg.registry_address == DEFAULT_REGISTRY_ADDRESS
    assert cfg.chain_id == 1
    assert cfg.default_decimals == 18
    assert cfg.event_log_path is None
    assert cfg.limits.max_reserves == 16


def test_env_parsing() -> None:
    env = {
        "MULTITOKEN_REGISTRY_ADDRESS": "0x" + "ab" * 20,
        "MULTITOKEN_CHAIN_ID": "0x89",
        "MULTITOKEN_DEFAULT_DECIMALS": "6",
        "MULTITOKEN_EVENT_LOG": "/tmp/mt/events.jsonl",
        "MULTITOKEN_MAX_RESERVES": "4",
        "MULTITOKEN_MAX_STRING_BYTES": "64",
        "MULTITOKEN_LOG_LEVEL": "debug",
        "MULTITOKEN_LOG_FORMAT": "JSON",
    }
    cfg = load_config(env=env)
    assert cfg.registry_address == b"\xab" * 20
    assert cfg.chain_id == 137
    assert cfg.default_decimals == 6
    assert cfg.event_log_path == Path("/tmp/mt/events.jsonl")
    assert (cfg.limits.max_reserves, cfg.limits.max_string_bytes) == (4, 64)
    assert (cfg.logging.level, cfg.logging.format) == ("DEBUG", "json")


def test_overrides_win_over_env() -> None:
    cfg = load_config(env={"MULTITOKEN_CHAIN_ID": "5"}, overrides={"chain_id": 10, "registry_address": b"\x01" * 20})
    assert cfg.chain_id == 10
    assert cfg.registry_address == b"\x01" * 20


@pytest.mark.parametrize(
    "env",
    [
        {"MULTITOKEN_REGISTRY_ADDRESS": "0x1234"},
        {"MULTITOKEN_REGISTRY_ADDRESS": "zz" * 20},
        {"MULTITOKEN_CHAIN_ID": "-1"},
        {"MULTITOKEN_CHAIN_ID": "mainnet"},
        {"MULTITOKEN_DEFAULT_DECIMALS": "78"},
        {"MULTITOKEN_MAX_RESERVES": "0"},
        {"MULTITOKEN_LOG_FORMAT": "xml"},
    ],
)
def test_invalid_values_raise(env) -> None:
    with pytest.raises(ValueError):
        load_config(env=env)


def test_summary_and_to_dict() -> None:
    cfg = load_config(env={})
    line = summary(cfg)
    assert line.startswith("multitoken{")
    assert "0x" + DEFAULT_REGISTRY_ADDRESS.hex() in line
    assert "events=memory" in line

    d = cfg.to_dict()
    assert d["registry_address"] == "0x" + DEFAULT_REGISTRY_ADDRESS.hex()
    assert d["limits"] == {"max_reserves": 16, "max_string_bytes": 4096}
