# src/claimdrop/runtime/drop_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from claimdrop.ledger.constants import (
    DECAY_PERCENT_WAD,
    DEFAULT_NAME,
    DEFAULT_SYMBOL,
    DROP_MODES,
    MAX_SUPPLY_WHOLE,
    NETWORK_STEP_INTERVAL_SECONDS,
    TARGET_DURATION_SECONDS,
    TIME_UNIT_SECONDS,
    TOKEN_DECIMALS,
)
from claimdrop.math.wad import WAD
from claimdrop.runtime.errors import ConfigError

Json = Dict[str, Any]


def _as_int(v: Any, default: int, name: str) -> int:
    """Missing -> default. A present value that is not an exact integer is an error."""
    if v is None or (isinstance(v, str) and not v.strip()):
        return int(default)
    # bool is an int subclass; floats lose wad precision.
    if isinstance(v, int) and not isinstance(v, bool):
        return v
    if isinstance(v, str):
        try:
            return int(v.strip(), 10)
        except ValueError:
            pass
    raise ConfigError(f"{name} must be an integer; got: {v!r}")


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


def _as_bool(v: Any, default: bool, name: str) -> bool:
    if v is None:
        return bool(default)
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if not s:
        return bool(default)
    if s in {"1", "true", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "no", "n", "off"}:
        return False
    raise ConfigError(f"{name} must be a boolean; got: {v!r}")


@dataclass(frozen=True)
class DropConfig:
    name: str
    symbol: str
    decimals: int

    # Whole units; scaled by 10**decimals at creation.
    max_supply_whole: int
    only_direct_callers: bool

    start_time: int  # unix seconds
    target_duration: int  # seconds
    network_step_interval: int  # seconds

    # Wad fraction, e.g. 4e16 for 4%.
    decay_percent: int
    time_unit_seconds: int

    mode: str  # "variable" | "fixed"
    claim_amount_whole: int  # fixed mode only

    # Empty -> in-process store.
    db_path: str

    log_level: str

    @property
    def max_supply(self) -> int:
        return int(self.max_supply_whole) * 10 ** int(self.decimals)

    @property
    def claim_amount(self) -> int:
        return int(self.claim_amount_whole) * 10 ** int(self.decimals)

    @property
    def target_end_time(self) -> int:
        return int(self.start_time) + int(self.target_duration)


def validate_drop_config(cfg: DropConfig) -> None:
    """Fail-fast validation of creation-time parameters."""

    if not isinstance(cfg.name, str) or not cfg.name.strip():
        raise ConfigError("name must be a non-empty string")

    if not isinstance(cfg.symbol, str) or not cfg.symbol.strip():
        raise ConfigError("symbol must be a non-empty string")

    if int(cfg.decimals) < 0 or int(cfg.decimals) > 36:
        raise ConfigError(f"decimals must be 0..36; got: {cfg.decimals}")

    if int(cfg.max_supply_whole) <= 0:
        raise ConfigError(f"max_supply must be > 0; got: {cfg.max_supply_whole}")

    if int(cfg.start_time) < 0:
        raise ConfigError(f"start_time must be >= 0; got: {cfg.start_time}")

    mode = str(cfg.mode or "").strip().lower()
    if mode not in DROP_MODES:
        raise ConfigError(f"mode must be one of {DROP_MODES}; got: {cfg.mode!r}")

    if mode == "fixed":
        if int(cfg.claim_amount_whole) <= 0:
            raise ConfigError(f"claim_amount must be > 0; got: {cfg.claim_amount_whole}")
        if int(cfg.max_supply_whole) % int(cfg.claim_amount_whole) != 0:
            raise ConfigError(
                f"max_supply must be a multiple of claim_amount; got: {cfg.max_supply_whole} % {cfg.claim_amount_whole}"
            )
        return

    for name, v in (
        ("target_duration", cfg.target_duration),
        ("network_step_interval", cfg.network_step_interval),
        ("time_unit_seconds", cfg.time_unit_seconds),
    ):
        if int(v) <= 0:
            raise ConfigError(f"{name} must be > 0; got: {v}")

    if int(cfg.decay_percent) <= 0 or int(cfg.decay_percent) >= WAD:
        raise ConfigError(f"decay_percent must be in (0, 1e18); got: {cfg.decay_percent}")

    if cfg.max_supply * int(cfg.network_step_interval) < int(cfg.target_duration):
        # target_units_per_step would truncate to zero and every claim would be a no-op.
        raise ConfigError("max_supply too small for target_duration / network_step_interval")


def default_drop_config() -> DropConfig:
    return DropConfig(
        name=DEFAULT_NAME,
        symbol=DEFAULT_SYMBOL,
        decimals=TOKEN_DECIMALS,
        max_supply_whole=MAX_SUPPLY_WHOLE,
        only_direct_callers=True,
        start_time=0,
        target_duration=TARGET_DURATION_SECONDS,
        network_step_interval=NETWORK_STEP_INTERVAL_SECONDS,
        decay_percent=DECAY_PERCENT_WAD,
        time_unit_seconds=TIME_UNIT_SECONDS,
        mode="variable",
        claim_amount_whole=0,
        db_path="",
        log_level="INFO",
    )


def drop_config_from_mapping(raw: Json, *, base: DropConfig | None = None) -> DropConfig:
    d = base or default_drop_config()
    cfg = DropConfig(
        name=_as_str(raw.get("name"), d.name),
        symbol=_as_str(raw.get("symbol"), d.symbol),
        decimals=_as_int(raw.get("decimals"), d.decimals, "decimals"),
        max_supply_whole=_as_int(raw.get("max_supply"), d.max_supply_whole, "max_supply"),
        only_direct_callers=_as_bool(raw.get("only_direct_callers"), d.only_direct_callers, "only_direct_callers"),
        start_time=_as_int(raw.get("start_time"), d.start_time, "start_time"),
        target_duration=_as_int(raw.get("target_duration"), d.target_duration, "target_duration"),
        network_step_interval=_as_int(raw.get("network_step_interval"), d.network_step_interval, "network_step_interval"),
        decay_percent=_as_int(raw.get("decay_percent"), d.decay_percent, "decay_percent"),
        time_unit_seconds=_as_int(raw.get("time_unit_seconds"), d.time_unit_seconds, "time_unit_seconds"),
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        claim_amount_whole=_as_int(raw.get("claim_amount"), d.claim_amount_whole, "claim_amount"),
        db_path=str(raw.get("db_path") or d.db_path),
        log_level=_as_str(raw.get("log_level"), d.log_level),
    )
    validate_drop_config(cfg)
    return cfg


def read_drop_config_file(path: str) -> DropConfig:
    p = Path(path)
    raw = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ConfigError("drop config must be a JSON object")
    return drop_config_from_mapping(raw)


_ENV_KEYS = {
    "name": "CLAIMDROP_NAME",
    "symbol": "CLAIMDROP_SYMBOL",
    "decimals": "CLAIMDROP_DECIMALS",
    "max_supply": "CLAIMDROP_MAX_SUPPLY",
    "only_direct_callers": "CLAIMDROP_ONLY_DIRECT",
    "start_time": "CLAIMDROP_START_TIME",
    "target_duration": "CLAIMDROP_TARGET_DURATION",
    "network_step_interval": "CLAIMDROP_STEP_INTERVAL",
    "decay_percent": "CLAIMDROP_DECAY_PERCENT",
    "time_unit_seconds": "CLAIMDROP_TIME_UNIT",
    "mode": "CLAIMDROP_MODE",
    "claim_amount": "CLAIMDROP_CLAIM_AMOUNT",
    "db_path": "CLAIMDROP_DB_PATH",
    "log_level": "CLAIMDROP_LOG_LEVEL",
}


def load_drop_config() -> DropConfig:
    """Load config from CLAIMDROP_CONFIG_PATH if set, else defaults + env overrides."""

    path = (os.environ.get("CLAIMDROP_CONFIG_PATH") or "").strip()
    if path:
        return read_drop_config_file(path)

    raw: Json = {}
    for key, env in _ENV_KEYS.items():
        v = os.environ.get(env)
        if v is not None and v.strip():
            raw[key] = v.strip()
    return drop_config_from_mapping(raw)


__all__ = [
    "DropConfig",
    "default_drop_config",
    "drop_config_from_mapping",
    "load_drop_config",
    "read_drop_config_file",
    "validate_drop_config",
]
