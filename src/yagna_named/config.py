"""Configuration for yagna-named."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from yagna_named._constants import (
    API_URL,
    CACHE_FILE_NAME,
    COLLECT_TIMEOUT,
    DEFAULT_SUBNETS,
    DEMAND_EXPIRATION,
    MAX_EVENTS,
    POLL_TIMEOUT,
)
from yagna_named.exceptions import NamedConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_list(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


def default_datadir() -> Path:
    """Default yagna data directory (``$XDG_DATA_HOME/yagna``)."""
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / "yagna"


@dataclasses.dataclass(frozen=True)
class NamedConfig:
    """Runtime configuration.

    Parameters
    ----------
    appkey : str
        yagna application key used as bearer token for the REST API.
    api_url : str
        Base URL of the yagna REST API.
    datadir : Path
        Directory holding the name cache file.
    json_output : bool
        Print decorated command output as JSON instead of a table.
    cache_file : str
        File name of the cache inside ``datadir``.
    subnets : tuple of str
        Market subnets scanned by the collector.
    collect_timeout : float
        Seconds a single discovery pass listens to the market.
    poll_timeout : float
        Long-poll timeout for the market events endpoint.
    max_events : int
        Maximum events returned by a single poll.
    demand_expiration : float
        Lifetime in seconds of the demands published by the scanner.
    """

    appkey: str
    api_url: str = API_URL
    datadir: Path = dataclasses.field(default_factory=default_datadir)
    json_output: bool = False
    cache_file: str = CACHE_FILE_NAME
    subnets: tuple[str, ...] = DEFAULT_SUBNETS
    collect_timeout: float = COLLECT_TIMEOUT
    poll_timeout: float = POLL_TIMEOUT
    max_events: int = MAX_EVENTS
    demand_expiration: float = DEMAND_EXPIRATION

    def __post_init__(self) -> None:
        if not self.appkey or not self.appkey.strip():
            raise NamedConfigError("yagna app key is required (set YAGNA_APPKEY or pass --appkey)")
        if not self.subnets:
            raise NamedConfigError("At least one subnet must be configured")
        if self.collect_timeout <= 0:
            raise NamedConfigError(f"collect_timeout must be positive, got {self.collect_timeout}")
        object.__setattr__(self, "datadir", Path(self.datadir).expanduser())
        object.__setattr__(self, "api_url", self.api_url.rstrip("/"))

    @property
    def cache_path(self) -> Path:
        """Full path of the name cache file."""
        return self.datadir / self.cache_file

    @classmethod
    def from_env(cls, **overrides: Any) -> NamedConfig:
        """Create configuration from environment variables.

        Reads ``YAGNA_APPKEY``, ``YAGNA_API_URL``, ``YAGNA_DATADIR`` and
        ``YAGNA_JSON_OUTPUT`` (the variables yagna itself uses) plus the
        optional ``YAGNA_NAMED_*`` tuning variables.  Keyword arguments
        whose value is not ``None`` take precedence over the environment.
        """
        env = os.environ
        overrides = {key: value for key, value in overrides.items() if value is not None}

        _ENV_CONFIG_MAP = {
            "YAGNA_APPKEY": "appkey",
            "YAGNA_API_URL": "api_url",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        datadir_env = env.get("YAGNA_DATADIR") or env.get("YAGNA_DATA_DIR")
        if datadir_env:
            config_kwargs["datadir"] = Path(datadir_env)

        if "json_output" not in overrides:
            config_kwargs["json_output"] = _env_bool(env.get("YAGNA_JSON_OUTPUT"), False)

        subnets_env = env.get("YAGNA_NAMED_SUBNETS")
        if subnets_env is not None and "subnets" not in overrides:
            config_kwargs["subnets"] = _env_list(subnets_env)

        try:
            timeout_env = env.get("YAGNA_NAMED_COLLECT_TIMEOUT")
            if timeout_env is not None and "collect_timeout" not in overrides:
                config_kwargs["collect_timeout"] = float(timeout_env)

            poll_env = env.get("YAGNA_NAMED_POLL_TIMEOUT")
            if poll_env is not None and "poll_timeout" not in overrides:
                config_kwargs["poll_timeout"] = float(poll_env)
        except ValueError as exc:
            raise NamedConfigError(f"Invalid numeric setting: {exc}") from exc

        config_kwargs.update(overrides)
        config_kwargs.setdefault("appkey", "")

        return cls(**config_kwargs)
