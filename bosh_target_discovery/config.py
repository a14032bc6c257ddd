"""Frozen dataclasses for configuration and YAML loader with env-var interpolation."""

from __future__ import annotations

import os
import re
import types
import typing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .discovery.filters import CidrFilter, ProcessFilter
from .exceptions import ConfigError

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")
_CONFIG_MAP_KEY_PATTERN = re.compile(r"^[-._a-zA-Z0-9]+$")


def _interpolate_env(value: str) -> str:
    """Replace ${ENV_VAR} placeholders with environment variable values."""

    def _replace(match: re.Match) -> str:
        env_key = match.group(1)
        env_val = os.environ.get(env_key)
        if env_val is None:
            raise ConfigError(f"Environment variable '{env_key}' is not set")
        return env_val

    return _ENV_PATTERN.sub(_replace, value)


def _walk_and_interpolate(obj: Any) -> Any:
    """Recursively interpolate env vars in strings throughout a nested structure."""
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(v) for v in obj]
    return obj


@dataclass(frozen=True)
class BoshConfig:
    url: str = ""
    username: str = ""
    password: str = ""
    ca_cert: str = ""  # path to a CA bundle; empty = system trust store
    verify_ssl: bool = True
    timeout: int = 30
    task_poll_interval_seconds: float = 1.0
    task_timeout_seconds: int = 300


@dataclass(frozen=True)
class MetricsConfig:
    namespace: str = "bosh"
    environment: str = ""
    bosh_name: str = ""  # empty = name reported by the director's /info
    bosh_uuid: str = ""  # empty = uuid reported by the director's /info


@dataclass(frozen=True)
class FiltersConfig:
    deployments: list[str] = field(default_factory=list)
    azs: list[str] = field(default_factory=list)
    cidrs: list[str] = field(default_factory=lambda: ["0.0.0.0/0"])
    processes: list[str] = field(default_factory=list)
    queued_tasks_limit: int = 0  # 0 disables the queued-task circuit breaker


@dataclass(frozen=True)
class KubernetesConfig:
    namespace: str = ""
    config_map: str = ""  # empty = publish to service_discovery.filename instead


@dataclass(frozen=True)
class ServiceDiscoveryConfig:
    filename: str = "/tmp/bosh_target_groups.json"
    kubernetes: KubernetesConfig = field(default_factory=KubernetesConfig)

    @property
    def config_map_key(self) -> str:
        """Key under which the target groups are stored inside the ConfigMap."""
        return os.path.basename(self.filename)

    @property
    def uses_config_map(self) -> bool:
        return bool(self.kubernetes.config_map)


@dataclass(frozen=True)
class PollingConfig:
    interval_seconds: int = 30
    jitter_seconds: int = 5
    max_backoff_seconds: int = 300
    backoff_base_seconds: int = 5


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "json"  # "json" or "text"


@dataclass(frozen=True)
class AppConfig:
    bosh: BoshConfig = field(default_factory=BoshConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    filters: FiltersConfig = field(default_factory=FiltersConfig)
    service_discovery: ServiceDiscoveryConfig = field(default_factory=ServiceDiscoveryConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _get_dataclass_type(ft: Any) -> type | None:
    """Return the underlying dataclass type from a type annotation (handles Optional/X|None)."""
    if isinstance(ft, type) and hasattr(ft, "__dataclass_fields__"):
        return ft
    if isinstance(ft, types.UnionType):
        args = [a for a in ft.__args__ if a is not type(None)]
        if len(args) == 1 and isinstance(args[0], type) and hasattr(args[0], "__dataclass_fields__"):
            return args[0]
    origin = getattr(ft, "__origin__", None)
    if origin is typing.Union:
        args = [a for a in ft.__args__ if a is not type(None)]
        if len(args) == 1 and isinstance(args[0], type) and hasattr(args[0], "__dataclass_fields__"):
            return args[0]
    return None


def _build_nested(cls: type, data: dict[str, Any]) -> Any:
    """Construct a frozen dataclass, recursively building nested dataclass fields."""
    if not isinstance(data, dict):
        return data
    field_types = typing.get_type_hints(cls)
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in field_types:
            continue
        dc_type = _get_dataclass_type(field_types[key])
        if dc_type is not None:
            # A bare `section:` in YAML loads as None and means "all defaults"
            if value is None:
                value = {}
            if not isinstance(value, dict):
                raise ConfigError(f"Section '{key}' must be a mapping, got {type(value).__name__}")
            kwargs[key] = _build_nested(dc_type, value)
        else:
            kwargs[key] = value
    return cls(**kwargs)


def load_config(path: str | Path) -> AppConfig:
    """Load and validate configuration from a YAML file."""
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ConfigError("Configuration file must be a YAML mapping")

    raw = _walk_and_interpolate(raw)
    config = _build_nested(AppConfig, raw)
    _validate(config)
    return config


def _validate(config: AppConfig) -> None:
    """Validate configuration values."""
    if not config.bosh.url:
        raise ConfigError("bosh.url is required (e.g. https://10.0.0.6:25555)")

    filters = config.filters
    for name in ("deployments", "azs", "cidrs", "processes"):
        if not isinstance(getattr(filters, name), list):
            raise ConfigError(f"filters.{name} must be a list")

    if not isinstance(filters.queued_tasks_limit, int) or filters.queued_tasks_limit < 0:
        raise ConfigError("filters.queued_tasks_limit must be an integer >= 0")

    if not filters.cidrs:
        raise ConfigError("filters.cidrs must contain at least one network range")
    # Filter constructors reject malformed CIDRs and process patterns
    CidrFilter(filters.cidrs)
    ProcessFilter(filters.processes)

    sd = config.service_discovery
    if not sd.filename:
        raise ConfigError("service_discovery.filename must not be empty")

    if sd.uses_config_map:
        if not sd.kubernetes.namespace:
            raise ConfigError("service_discovery.kubernetes.namespace is required when config_map is set")
        if not _CONFIG_MAP_KEY_PATTERN.match(sd.config_map_key):
            raise ConfigError(
                f"service_discovery.filename basename '{sd.config_map_key}' is not a valid ConfigMap key"
            )

    if config.polling.interval_seconds < 5:
        raise ConfigError("polling.interval_seconds must be >= 5")

    if config.logging.format not in ("json", "text"):
        raise ConfigError("logging.format must be 'json' or 'text'")
