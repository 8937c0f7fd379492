"""
multitoken.config — runtime configuration for the multi-asset ledger.

This module centralizes knobs for:
  • Identity (the ledger/registry address, chain discriminator for baskets)
  • Defaults (native decimals)
  • Event output (in-memory by default, JSONL file when a path is given)
  • Limits (reserves per basket, metadata string lengths)
  • Logging (level, json/text format)

Configuration may be provided via environment variables. Safe defaults are
chosen so tests and a local `multitoken demo` run work out of the box.

Environment variables (all optional):
  MULTITOKEN_REGISTRY_ADDRESS   -> 0x-prefixed 20-byte hex (default: keccak256("multitoken/registry/v1")[12:])
  MULTITOKEN_CHAIN_ID           -> integer basket discriminator (default: 1)
  MULTITOKEN_DEFAULT_DECIMALS   -> decimals reported for native/basket ids (default: 18)
  MULTITOKEN_EVENT_LOG          -> path to a JSONL event log (default: unset, in-memory)
  MULTITOKEN_MAX_RESERVES       -> max reserve assets per basket (default: 16)
  MULTITOKEN_MAX_STRING_BYTES   -> max UTF-8 bytes for name/symbol/uri (default: 4096)
  MULTITOKEN_LOG_LEVEL          -> DEBUG/INFO/... (default: INFO)
  MULTITOKEN_LOG_FORMAT         -> json/text (default: auto by TTY)

Programmatic usage:
    from multitoken.config import get_config
    cfg = get_config()
    registry = cfg.registry_address
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from .hashing import keccak256

# ----------------------------- helpers -------------------------------------

DEFAULT_REGISTRY_ADDRESS: bytes = keccak256(b"multitoken/registry/v1")[12:]


def _parse_address(value: Union[str, bytes]) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    else:
        s = str(value).strip()
        if s.startswith(("0x", "0X")):
            s = s[2:]
        try:
            raw = bytes.fromhex(s)
        except ValueError as e:
            raise ValueError(f"invalid hex address: {value!r}") from e
    if len(raw) != 20:
        raise ValueError(f"address must be 20 bytes (got {len(raw)})")
    return raw


def _parse_int(value: Union[str, int], *, name: str, minimum: int = 0) -> int:
    try:
        n = int(value, 0) if isinstance(value, str) else int(value)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer (got {value!r})") from e
    if n < minimum:
        raise ValueError(f"{name} must be ≥ {minimum}")
    return n


# ------------------------------ dataclasses ---------------------------------


@dataclass(frozen=True)
class Limits:
    max_reserves: int = 16
    max_string_bytes: int = 4096


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: Optional[str] = None  # None -> decided by TTY detection


@dataclass(frozen=True)
class MultiTokenConfig:
    registry_address: bytes = DEFAULT_REGISTRY_ADDRESS
    chain_id: int = 1
    default_decimals: int = 18
    event_log_path: Optional[Path] = None
    limits: Limits = field(default_factory=Limits)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, object]:
        d = asdict(self)
        d["registry_address"] = "0x" + self.registry_address.hex()
        d["event_log_path"] = str(self.event_log_path) if self.event_log_path else None
        return d


# ------------------------------ loader --------------------------------------


def _validate(cfg: MultiTokenConfig) -> MultiTokenConfig:
    if not (0 <= cfg.default_decimals <= 77):
        raise ValueError("default_decimals must be in [0, 77]")
    if cfg.limits.max_reserves <= 0:
        raise ValueError("max_reserves must be > 0")
    if cfg.limits.max_string_bytes <= 0:
        raise ValueError("max_string_bytes must be > 0")
    if cfg.logging.format not in (None, "json", "text"):
        raise ValueError("log format must be 'json' or 'text'")
    return cfg


def load_config(
    env: Optional[Mapping[str, str]] = None,
    *,
    overrides: Optional[Mapping[str, object]] = None,
) -> MultiTokenConfig:
    """
    Build a MultiTokenConfig from environment and optional overrides.

    Args:
        env: mapping to read variables from (default: os.environ)
        overrides: explicit field overrides; keys support:
          'registry_address', 'chain_id', 'default_decimals', 'event_log_path',
          'max_reserves', 'max_string_bytes', 'log_level', 'log_format'
    """
    env = os.environ if env is None else env
    o = dict(overrides or {})

    registry = _parse_address(
        o.get("registry_address", env.get("MULTITOKEN_REGISTRY_ADDRESS", DEFAULT_REGISTRY_ADDRESS))  # type: ignore[arg-type]
    )
    chain_id = _parse_int(
        o.get("chain_id", env.get("MULTITOKEN_CHAIN_ID", 1)), name="chain_id"  # type: ignore[arg-type]
    )
    decimals = _parse_int(
        o.get("default_decimals", env.get("MULTITOKEN_DEFAULT_DECIMALS", 18)),  # type: ignore[arg-type]
        name="default_decimals",
    )

    raw_log = o.get("event_log_path", env.get("MULTITOKEN_EVENT_LOG"))
    event_log_path = Path(str(raw_log)).expanduser() if raw_log else None

    limits = Limits(
        max_reserves=_parse_int(
            o.get("max_reserves", env.get("MULTITOKEN_MAX_RESERVES", 16)),  # type: ignore[arg-type]
            name="max_reserves",
        ),
        max_string_bytes=_parse_int(
            o.get("max_string_bytes", env.get("MULTITOKEN_MAX_STRING_BYTES", 4096)),  # type: ignore[arg-type]
            name="max_string_bytes",
        ),
    )

    fmt = o.get("log_format", env.get("MULTITOKEN_LOG_FORMAT"))
    log_cfg = LoggingConfig(
        level=str(o.get("log_level", env.get("MULTITOKEN_LOG_LEVEL", "INFO"))).upper(),
        format=str(fmt).strip().lower() if fmt else None,
    )

    return _validate(
        MultiTokenConfig(
            registry_address=registry,
            chain_id=chain_id,
            default_decimals=decimals,
            event_log_path=event_log_path,
            limits=limits,
            logging=log_cfg,
        )
    )


@lru_cache(maxsize=1)
def get_config() -> MultiTokenConfig:
    """
    Cached process-wide config. Hosts built without an explicit config use it.
    """
    return load_config()


# ----------------------------- pretty-print ---------------------------------


def summary(cfg: Optional[MultiTokenConfig] = None) -> str:
    """
    One-line summary of the most important knobs.
    """
    cfg = cfg or get_config()
    return (
        "multitoken{"
        f"registry=0x{cfg.registry_address.hex()}, chain={cfg.chain_id}, "
        f"decimals={cfg.default_decimals}, "
        f"events={cfg.event_log_path or 'memory'}, "
        f"reserves<={cfg.limits.max_reserves}, strings<={cfg.limits.max_string_bytes}B, "
        f"log={cfg.logging.level}/{cfg.logging.format or 'auto'}"
        "}"
    )


__all__ = [
    "DEFAULT_REGISTRY_ADDRESS",
    "Limits",
    "LoggingConfig",
    "MultiTokenConfig",
    "load_config",
    "get_config",
    "summary",
]
