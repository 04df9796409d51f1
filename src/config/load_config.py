from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


class ConfigError(RuntimeError):
    pass


def _as_int(value: Any, *, key: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"Invalid int for {key}: {value!r}")
    try:
        return int(value)
    except Exception as e:
        raise ConfigError(f"Invalid int for {key}: {value!r}") from e


def _as_float(value: Any, *, key: str) -> float:
    try:
        return float(value)
    except Exception as e:
        raise ConfigError(f"Invalid float for {key}: {value!r}") from e


def _require_positive(value: float, *, key: str) -> None:
    if value <= 0:
        raise ConfigError(f"Invalid {key}: must be > 0, got {value!r}")


@dataclass(frozen=True)
class TimeoutsConfig:
    default_s: int = 30
    min_s: int = 10
    max_s: int = 120

    def contains(self, timeout_s: int) -> bool:
        return self.min_s <= timeout_s <= self.max_s


@dataclass(frozen=True)
class TransportConfig:
    latency_ms: int = 500

    @property
    def latency_s(self) -> float:
        return self.latency_ms / 1000.0


@dataclass(frozen=True)
class CountdownConfig:
    tick_interval_s: float = 1.0


@dataclass(frozen=True)
class TraceConfig:
    max_events: int = 200


@dataclass(frozen=True)
class AppConfig:
    timeouts: TimeoutsConfig = field(default_factory=TimeoutsConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    countdown: CountdownConfig = field(default_factory=CountdownConfig)
    trace: TraceConfig = field(default_factory=TraceConfig)


def default_config_path() -> Path:
    return Path(os.getenv("PLAYGROUND_CONFIG_PATH", "config/default.toml")).expanduser().resolve()


def parse_app_config(raw: dict[str, Any]) -> AppConfig:
    """Build an AppConfig from a parsed TOML document. Missing keys fall back to defaults."""
    defaults = AppConfig()
    timeouts = raw.get("timeouts", {})
    transport = raw.get("transport", {})
    countdown = raw.get("countdown", {})
    trace = raw.get("trace", {})

    cfg = AppConfig(
        timeouts=TimeoutsConfig(
            default_s=_as_int(timeouts.get("default_s", defaults.timeouts.default_s), key="timeouts.default_s"),
            min_s=_as_int(timeouts.get("min_s", defaults.timeouts.min_s), key="timeouts.min_s"),
            max_s=_as_int(timeouts.get("max_s", defaults.timeouts.max_s), key="timeouts.max_s"),
        ),
        transport=TransportConfig(
            latency_ms=_as_int(transport.get("latency_ms", defaults.transport.latency_ms), key="transport.latency_ms"),
        ),
        countdown=CountdownConfig(
            tick_interval_s=_as_float(
                countdown.get("tick_interval_s", defaults.countdown.tick_interval_s),
                key="countdown.tick_interval_s",
            ),
        ),
        trace=TraceConfig(
            max_events=_as_int(trace.get("max_events", defaults.trace.max_events), key="trace.max_events"),
        ),
    )

    t = cfg.timeouts
    _require_positive(t.min_s, key="timeouts.min_s")
    if t.min_s > t.max_s:
        raise ConfigError(f"Invalid timeouts: min_s ({t.min_s}) > max_s ({t.max_s})")
    if not t.contains(t.default_s):
        raise ConfigError(f"Invalid timeouts.default_s: must be in [{t.min_s}..{t.max_s}], got {t.default_s}")
    if cfg.transport.latency_ms < 0:
        raise ConfigError(f"Invalid transport.latency_ms: must be >= 0, got {cfg.transport.latency_ms}")
    _require_positive(cfg.countdown.tick_interval_s, key="countdown.tick_interval_s")
    _require_positive(cfg.trace.max_events, key="trace.max_events")
    return cfg


def load_app_config(path: Path | None = None) -> AppConfig:
    cfg_path = path or default_config_path()
    if not cfg_path.exists():
        raise ConfigError(f"Config file not found: {cfg_path}")

    try:
        import tomllib  # py3.11+
    except Exception as e:
        raise ConfigError("tomllib is required (Python 3.11+).") from e

    try:
        raw = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {cfg_path}: {e}") from e
    return parse_app_config(raw)
