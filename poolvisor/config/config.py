"""
Supervisor configuration.

Configuration is assembled from, in increasing precedence: built-in
defaults, an optional YAML file, environment variables and explicit
overrides (CLI flags). The result is an immutable SupervisorConfig that
stays read-only for the life of the supervisor.

Environment Variable Override Format:
    POOLVISOR_<KEY>=value          e.g. POOLVISOR_WORKERS=4
    POOLVISOR_LOG_<KEY>=value      e.g. POOLVISOR_LOG_LEVEL=debug
    WORKER_COUNT=value             same as POOLVISOR_WORKERS
"""

from __future__ import annotations

import os
import signal
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from ..exceptions import ConfigError
from ..log import LogConfig
from .constants import (
    ADVANCE_POLICIES,
    DEFAULT_BACKLOG,
    DEFAULT_CAPACITY_CHECK_INTERVAL,
    DEFAULT_GRACE_PERIOD,
    DEFAULT_KILL_SIGNAL,
    DEFAULT_WORKERS,
    ENV_PREFIX,
    LEGACY_WORKER_COUNT_ENV,
    MAX_CONFIG_SIZE_BYTES,
)


def _convert_env_value(value: str) -> bool | int | float | str | list[Any] | None:
    """
    Convert environment variable string to appropriate type.

    Args:
        value: Environment variable value as string

    Returns:
        Converted value with appropriate type
    """
    if value.lower() in ("null", "none", ""):
        return None

    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    # Comma-separated lists
    if "," in value:
        return [_convert_env_value(v.strip()) for v in value.split(",")]

    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        pass

    return value


def _check_file_size(path: Path) -> None:
    """Refuse oversized config files."""
    size = path.stat().st_size
    if size > MAX_CONFIG_SIZE_BYTES:
        raise ConfigError(
            "configuration file too large",
            path=str(path),
            size=size,
            limit=MAX_CONFIG_SIZE_BYTES,
        )


def load_yaml(path: str | Path) -> dict[str, Any]:
    """
    Load a YAML config file into a plain dict.

    Raises:
        ConfigError: If the file is missing, too large, malformed, or not a mapping
    """
    p = Path(path).expanduser().resolve()
    if not p.is_file():
        raise ConfigError("configuration file not found", path=str(p))
    _check_file_size(p)

    with open(p) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError("invalid YAML", path=str(p), error=str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("configuration root must be a mapping", path=str(p))
    return data


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """
    Collect overrides from the environment.

    Returns:
        Nested dict of overrides, e.g. {"workers": 4, "log": {"level": "debug"}}
    """
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}

    legacy = environ.get(LEGACY_WORKER_COUNT_ENV)
    if legacy is not None and legacy != "":
        overrides["workers"] = _convert_env_value(legacy)

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        name = key[len(ENV_PREFIX) :].lower()
        if name.startswith("log_"):
            overrides.setdefault("log", {})[name[len("log_") :]] = _convert_env_value(
                value
            )
        else:
            overrides[name] = _convert_env_value(value)
    return overrides


def _merge(base: dict[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
    """Merge `update` into a copy of `base`, one level deep for the log section."""
    merged = dict(base)
    for key, value in update.items():
        if key == "log" and isinstance(value, Mapping):
            merged["log"] = {**(merged.get("log") or {}), **value}
        else:
            merged[key] = value
    return merged


def _as_int(key: str, value: Any, minimum: int = 0) -> int:
    if isinstance(value, bool):
        raise ConfigError("expected an integer", key=key, value=value)
    try:
        result = int(value)
    except (TypeError, ValueError):
        raise ConfigError("expected an integer", key=key, value=value) from None
    if result < minimum:
        raise ConfigError(f"must be >= {minimum}", key=key, value=value)
    return result


def _as_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigError("expected a number", key=key, value=value)
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise ConfigError("expected a number", key=key, value=value) from None
    if result < 0:
        raise ConfigError("must be >= 0", key=key, value=value)
    return result


def resolve_signal(name: str | int) -> signal.Signals:
    """
    Resolve a signal name ("SIGKILL", "term") or number to signal.Signals.

    Raises:
        ConfigError: If the signal is unknown
    """
    if isinstance(name, int) and not isinstance(name, bool):
        try:
            return signal.Signals(name)
        except ValueError:
            raise ConfigError("unknown signal", signal=name) from None
    text = str(name).upper()
    if not text.startswith("SIG"):
        text = "SIG" + text
    try:
        return signal.Signals[text]
    except KeyError:
        raise ConfigError("unknown signal", signal=name) from None


def _as_list(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    return (str(value),)


@dataclass(frozen=True)
class SupervisorConfig:
    """
    Immutable supervisor configuration.

    Attributes:
        workers: Target Count, the desired number of Ready-or-Starting workers
        grace_period: Seconds a draining worker gets before forced termination
        capacity_check_interval: Seconds between periodic capacity checks (0 disables)
        advance_on: "ready" (any readiness advances a rolling restart) or
            "replacement" (only workers spawned after the current drain began)
        kill_signal: Signal sent on grace-period expiry
        target: Worker entry point as "module:attr"
        bind: Shared listener address "host:port"
        backlog: Shared listener backlog
        start_method: multiprocessing start method (None = platform default)
        pidfile: Where to write the supervisor pid
        watch: Paths whose modification triggers a rolling restart
        log: Logging configuration
    """

    workers: int = DEFAULT_WORKERS
    grace_period: float = DEFAULT_GRACE_PERIOD
    capacity_check_interval: float = DEFAULT_CAPACITY_CHECK_INTERVAL
    advance_on: str = "ready"
    kill_signal: signal.Signals = field(
        default_factory=lambda: resolve_signal(DEFAULT_KILL_SIGNAL)
    )
    target: str | None = None
    bind: str | None = None
    backlog: int = DEFAULT_BACKLOG
    start_method: str | None = None
    pidfile: str | None = None
    watch: tuple[str, ...] = ()
    log: LogConfig = field(default_factory=LogConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> SupervisorConfig:
        """
        Build and validate a config from a plain mapping.

        Raises:
            ConfigError: On unknown keys or invalid values
        """
        data = dict(data or {})
        known = {f.name for f in fields(cls)} | {"grace_period_ms"}
        unknown = set(data) - known
        if unknown:
            raise ConfigError("unknown settings", keys=",".join(sorted(unknown)))

        kwargs: dict[str, Any] = {}
        if data.get("workers") is not None:
            kwargs["workers"] = _as_int("workers", data["workers"])
        if data.get("grace_period_ms") is not None:
            kwargs["grace_period"] = (
                _as_float("grace_period_ms", data["grace_period_ms"]) / 1000.0
            )
        if data.get("grace_period") is not None:
            kwargs["grace_period"] = _as_float("grace_period", data["grace_period"])
        if data.get("capacity_check_interval") is not None:
            kwargs["capacity_check_interval"] = _as_float(
                "capacity_check_interval", data["capacity_check_interval"]
            )
        if data.get("advance_on") is not None:
            advance_on = str(data["advance_on"]).lower()
            if advance_on not in ADVANCE_POLICIES:
                raise ConfigError(
                    "invalid advance policy",
                    key="advance_on",
                    value=data["advance_on"],
                    allowed=",".join(ADVANCE_POLICIES),
                )
            kwargs["advance_on"] = advance_on
        if data.get("kill_signal") is not None:
            kwargs["kill_signal"] = resolve_signal(data["kill_signal"])
        for key in ("target", "bind", "start_method", "pidfile"):
            if data.get(key) is not None:
                kwargs[key] = str(data[key])
        target = kwargs.get("target")
        if target is not None:
            module, sep, attr = target.partition(":")
            if not sep or not module or not attr:
                raise ConfigError("target must look like module:attr", target=target)
        if data.get("backlog") is not None:
            kwargs["backlog"] = _as_int("backlog", data["backlog"], minimum=1)
        if "watch" in data:
            kwargs["watch"] = _as_list(data["watch"])

        log = data.get("log")
        if log is not None and not isinstance(log, Mapping):
            raise ConfigError("log section must be a mapping")
        kwargs["log"] = LogConfig.from_dict(dict(log) if log else None)

        return cls(**kwargs)

    @classmethod
    def load(
        cls,
        path: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
        overrides: Mapping[str, Any] | None = None,
    ) -> SupervisorConfig:
        """
        Assemble config from file, environment and explicit overrides.

        Args:
            path: Optional YAML file
            environ: Environment mapping (defaults to os.environ)
            overrides: Highest-precedence values (None values are ignored)

        Returns:
            Validated SupervisorConfig
        """
        data: dict[str, Any] = load_yaml(path) if path is not None else {}
        data = _merge(data, env_overrides(environ))
        if overrides:
            data = _merge(data, {k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(data)
