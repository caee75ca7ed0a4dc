"""
Flow Viewer configuration.

Loads an optional YAML file, then applies environment overrides.

Schema (all keys optional):
    ws_url: ws://localhost:3000/ws
    futures_symbols: [/ES, /NQ]
    equity_symbols: [SPY, QQQ, AAPL, TSLA]
    reconnect_delay: 3.0
    trade_capacity: 200
    print_capacity: 200
    auto_trade_capacity: 50
    log_level: INFO
    log_file: logs/flow_viewer.log

Environment overrides:
    FLOW_WS_URL, FLOW_RECONNECT_DELAY, FLOW_LOG_LEVEL
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml
from loguru import logger

from .datafeed.codec import DEFAULT_EQUITY_SYMBOLS, DEFAULT_FUTURES_SYMBOLS
from .datafeed.flow_client import DEFAULT_WS_URL, RECONNECT_DELAY_SEC
from .engine.ledger import AUTO_TRADE_CAPACITY, PRINT_CAPACITY, TRADE_CAPACITY

ENV_OVERRIDES = {
    "FLOW_WS_URL": ("ws_url", str),
    "FLOW_RECONNECT_DELAY": ("reconnect_delay", float),
    "FLOW_LOG_LEVEL": ("log_level", str),
}


@dataclass
class FlowConfig:
    """Complete viewer configuration."""
    ws_url: str = DEFAULT_WS_URL
    futures_symbols: list[str] = field(default_factory=lambda: list(DEFAULT_FUTURES_SYMBOLS))
    equity_symbols: list[str] = field(default_factory=lambda: list(DEFAULT_EQUITY_SYMBOLS))
    reconnect_delay: float = RECONNECT_DELAY_SEC
    trade_capacity: int = TRADE_CAPACITY
    print_capacity: int = PRINT_CAPACITY
    auto_trade_capacity: int = AUTO_TRADE_CAPACITY
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self) -> None:
        # YAML may hand back strings or nulls for numeric keys
        try:
            self.reconnect_delay = float(self.reconnect_delay)
            for name in ("trade_capacity", "print_capacity", "auto_trade_capacity"):
                setattr(self, name, int(getattr(self, name)))
        except (TypeError, ValueError) as e:
            raise ValueError(f"invalid numeric setting: {e}") from e

        if self.reconnect_delay < 0:
            raise ValueError(f"reconnect_delay must be >= 0, got {self.reconnect_delay}")
        for name in ("trade_capacity", "print_capacity", "auto_trade_capacity"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

    @classmethod
    def from_dict(cls, data: dict) -> "FlowConfig":
        """Create config from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {sorted(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})


def merge_config_with_env(config_data: dict) -> dict:
    """Environment variables override file settings."""
    merged = dict(config_data)
    for env_var, (key, cast) in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        try:
            merged[key] = cast(value)
        except ValueError:
            logger.warning(f"Ignoring invalid {env_var}={value!r}")
    return merged


def load_config(config_path: Optional[str] = None) -> FlowConfig:
    """
    Load configuration from YAML (if given and present) plus environment.

    Raises:
        ValueError: If the file is not a mapping or values are invalid
    """
    config_data: dict = {}

    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            logger.warning(f"Config file not found: {path}, using defaults")
        else:
            with open(path, "r") as f:
                config_data = yaml.safe_load(f) or {}
            if not isinstance(config_data, dict):
                raise ValueError(f"Config file {path} must contain a mapping")
            logger.info(f"Loaded config from {path}")

    return FlowConfig.from_dict(merge_config_with_env(config_data))


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Route loguru output to stderr, or to a rotating file.

    The TUI owns the terminal, so it should always be given a log file.
    """
    logger.remove()
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            rotation="10 MB",
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        )
    else:
        logger.add(
            sys.stderr,
            level=level,
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        )
