"""Configuration loading for stomata.

Loads settings from TOML config files with sensible defaults.
Search order: explicit --config path → ~/.config/stomata/config.toml → defaults only.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "interval_ms": 1000,
    "clamp_quantile": 0.95,
    "history": {
        "network": 100,
        "single_process": 60,
        "cpu": 60,
    },
    "web3": {
        "rpc_url": "http://localhost:8545",
        "rpc_timeout": 10.0,
    },
}

_DEFAULT_PATH = Path.home() / ".config" / "stomata" / "config.toml"


class ConfigError(ValueError):
    """Raised when a configuration file or value is unusable."""


@dataclass(slots=True, frozen=True)
class DashboardConfig:
    """Validated runtime configuration."""

    interval_ms: int = 1000
    clamp_quantile: float = 0.95
    network_history: int = 100
    single_process_history: int = 60
    cpu_history: int = 60
    rpc_url: str = "http://localhost:8545"
    rpc_timeout: float = 10.0

    @property
    def interval(self) -> float:
        """Refresh interval in seconds."""
        return self.interval_ms / 1000.0

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> DashboardConfig:
        """Build and validate a config from a merged settings dict.

        Raises:
            ConfigError: If a value is missing its expected type or range.
        """
        history = config.get("history", {})
        web3 = config.get("web3", {})
        try:
            result = cls(
                interval_ms=int(config["interval_ms"]),
                clamp_quantile=float(config["clamp_quantile"]),
                network_history=int(history["network"]),
                single_process_history=int(history["single_process"]),
                cpu_history=int(history["cpu"]),
                rpc_url=str(web3["rpc_url"]),
                rpc_timeout=float(web3["rpc_timeout"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"invalid configuration value: {e}") from e

        if result.interval_ms <= 0:
            raise ConfigError(f"interval_ms must be positive, got {result.interval_ms}")
        if not 0.0 < result.clamp_quantile < 1.0:
            raise ConfigError(f"clamp_quantile must be in (0, 1), got {result.clamp_quantile}")
        for name in ("network_history", "single_process_history", "cpu_history"):
            if getattr(result, name) < 1:
                raise ConfigError(f"history size {name} must be at least 1")
        if result.rpc_timeout <= 0:
            raise ConfigError(f"rpc_timeout must be positive, got {result.rpc_timeout}")
        return result


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Merge overlay into base. Nested dicts are merged at the first level only."""
    merged = dict(base)
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration, merging user TOML over defaults.

    Args:
        path: Explicit config file path (from --config). If None, tries the
              default location ~/.config/stomata/config.toml.

    Returns:
        Merged configuration dict.

    Raises:
        ConfigError: If an explicit path doesn't exist or can't be parsed.
    """
    if path is not None:
        if not path.is_file():
            raise ConfigError(f"config file not found: {path}")
        try:
            user_config = tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"invalid TOML in {path}: {e}") from e
        return _deep_merge(DEFAULT_CONFIG, user_config)

    # Try default location silently
    if _DEFAULT_PATH.is_file():
        try:
            user_config = tomllib.loads(_DEFAULT_PATH.read_text(encoding="utf-8"))
            return _deep_merge(DEFAULT_CONFIG, user_config)
        except tomllib.TOMLDecodeError:
            logger.warning("Ignoring invalid TOML in %s", _DEFAULT_PATH)

    return _deep_merge(DEFAULT_CONFIG, {})


def dump_default_config() -> str:
    """Return the default configuration as a TOML string."""
    lines = [
        "# stomata configuration",
        "# Place this file at ~/.config/stomata/config.toml",
        "",
        f"interval_ms = {DEFAULT_CONFIG['interval_ms']}",
        f"clamp_quantile = {DEFAULT_CONFIG['clamp_quantile']}",
        "",
        "[history]",
    ]
    for key, size in DEFAULT_CONFIG["history"].items():
        lines.append(f"{key} = {size}")
    lines.append("")

    web3 = DEFAULT_CONFIG["web3"]
    lines.append("[web3]")
    lines.append(f'rpc_url = "{web3["rpc_url"]}"')
    lines.append(f"rpc_timeout = {web3['rpc_timeout']}")

    return "\n".join(lines) + "\n"
