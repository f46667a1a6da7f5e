"""
Adapter errors and configuration objects for emberlite.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Mapping


class AdapterError(RuntimeError):
    """Base error for adapter-related failures."""


class AdapterConfigurationError(AdapterError):
    """Raised when configuration or required dependencies are invalid."""


class AdapterConnectionError(AdapterError):
    """Raised when establishing or using a connection fails."""


class QueryError(AdapterError):
    """Raised when the engine rejects a statement."""

    def __init__(self, message: str, *, sql: str | None = None) -> None:
        super().__init__(message)
        self.sql = sql


class PoolError(AdapterError):
    """Raised when the pool is used inconsistently."""


class PoolTimeoutError(PoolError):
    """Raised when no connection became available within the acquire timeout."""


class PoolClosedError(PoolError):
    """Raised when acquiring from a pool that has been shut down."""


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: str, *, key: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise AdapterConfigurationError(f"Invalid boolean value for '{key}': {value!r}")


def _parse_float(value: str, *, key: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise AdapterConfigurationError(f"Invalid float value for '{key}': {value!r}") from exc


def _parse_int(value: str, *, key: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise AdapterConfigurationError(f"Invalid integer value for '{key}': {value!r}") from exc


@dataclass
class ConnectionConfig:
    """
    Location of the database file plus driver options.
    """

    filename: str
    timeout: float | None = None
    source: str | None = None

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a config from a ``sqlite:///path`` style URL.
        """

        return cls(filename=cls._normalize_path(url), **kwargs)

    @classmethod
    def from_env(cls, env_var: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a config from an environment variable containing a URL or path.
        """

        value = os.getenv(env_var)
        if not value:
            raise AdapterConfigurationError(f"Environment variable {env_var} is not set")
        return cls.from_url(value, source=env_var, **kwargs)

    def descriptive_label(self) -> str:
        if self.source:
            return f"{self.source} ({self.filename})"
        return self.filename

    @staticmethod
    def _normalize_path(url: str) -> str:
        if url == "sqlite:///:memory:":
            return ":memory:"
        prefix = "sqlite:///"
        if url.startswith(prefix):
            return url[len(prefix) :]
        return url


@dataclass
class PoolConfig:
    """
    Pool sizing and eviction settings. Durations are in milliseconds.
    """

    max_connections: int = 10
    min_connections: int = 2
    idle_timeout_ms: float = 30000
    acquire_timeout_ms: float | None = None
    reap_interval_ms: float = 1000
    enabled: bool = True

    def __post_init__(self) -> None:
        if self.max_connections < 1:
            raise AdapterConfigurationError("max_connections must be at least 1")
        if self.min_connections < 0:
            raise AdapterConfigurationError("min_connections cannot be negative")
        if self.min_connections > self.max_connections:
            raise AdapterConfigurationError("min_connections cannot exceed max_connections")

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> "PoolConfig":
        """
        Build a config from loosely typed settings such as env or ini values.
        """

        known = {f.name: f for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in settings.items():
            if key not in known:
                raise AdapterConfigurationError(f"Unknown pool setting '{key}'")
            if value is None or not isinstance(value, str):
                values[key] = value
            elif key == "enabled":
                values[key] = _parse_bool(value, key=key)
            elif key.endswith("_connections"):
                values[key] = _parse_int(value, key=key)
            else:
                values[key] = _parse_float(value, key=key)
        return cls(**values)
