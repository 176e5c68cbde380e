#!/usr/bin/env python3
"""
Exporter Configuration
Immutable settings established once at startup, from flags and an optional YAML file
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple, Union
from urllib.parse import urlparse

import yaml

from .exceptions import ValidationError
from .fetchers.release_fetcher import DEFAULT_API_URL
from .fetchers.version_probe import DEFAULT_BINARY_ARGS

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

RPC_SCHEMES = ("http", "https", "tcp")

# option name -> ExporterConfig field
OPTION_FIELDS = {
    "listen_address": "listen_address",
    "metrics_path": "metrics_path",
    "log_level": "log_level",
    "json": "json_logs",
    "local_tendermint_rpc": "local_rpc",
    "remote_tendermint_rpc": "remote_rpc",
    "binary_path": "binary_path",
    "binary_args": "binary_args",
    "github_org": "github_org",
    "github_repo": "github_repo",
    "github_token": "github_token",
    "github_api_url": "github_api_url",
}


@dataclass(frozen=True)
class ExporterConfig:
    """Read-only exporter settings shared by every scrape"""
    local_rpc: str = "http://localhost:26657"
    listen_address: str = ":9500"
    metrics_path: str = "/metrics"
    remote_rpc: Optional[str] = None
    binary_path: Optional[str] = None
    binary_args: Tuple[str, ...] = DEFAULT_BINARY_ARGS
    github_org: Optional[str] = None
    github_repo: Optional[str] = None
    github_token: Optional[str] = None
    github_api_url: str = DEFAULT_API_URL
    log_level: str = "info"
    json_logs: bool = False

    def __post_init__(self):
        _validate_rpc_url("local-tendermint-rpc", self.local_rpc)
        if self.remote_rpc is not None:
            _validate_rpc_url("remote-tendermint-rpc", self.remote_rpc)
        if not self.metrics_path.startswith("/"):
            raise ValidationError(f"metrics-path must start with '/': {self.metrics_path!r}")
        if self.log_level.lower() not in LOG_LEVELS:
            raise ValidationError(
                f"unknown log-level {self.log_level!r}, expected one of: {', '.join(sorted(LOG_LEVELS))}"
            )
        _split_listen_address(self.listen_address)

    @property
    def remote_configured(self) -> bool:
        return self.remote_rpc is not None

    @property
    def release_configured(self) -> bool:
        return self.github_org is not None and self.github_repo is not None

    @property
    def version_configured(self) -> bool:
        return self.binary_path is not None

    @property
    def listen_host(self) -> str:
        return _split_listen_address(self.listen_address)[0]

    @property
    def listen_port(self) -> int:
        return _split_listen_address(self.listen_address)[1]

    @property
    def logging_level(self) -> int:
        return LOG_LEVELS[self.log_level.lower()]

    @classmethod
    def from_options(cls, **options: Any) -> "ExporterConfig":
        """
        Build a config from CLI option names (`local_tendermint_rpc`, `json`, ...).

        Empty strings become None, `binary_args` may be a string or a list.
        Options that are None are left at their defaults.
        """
        values: Dict[str, Any] = {}
        for option, value in options.items():
            field_name = OPTION_FIELDS.get(option)
            if field_name is None:
                raise ValidationError(f"unknown option: {option}")
            if value is None:
                continue
            values[field_name] = value

        for optional in ("remote_rpc", "binary_path", "github_org", "github_repo", "github_token"):
            if optional in values:
                values[optional] = _none_if_blank(values[optional])

        if "local_rpc" in values and not str(values["local_rpc"]).strip():
            raise ValidationError("local-tendermint-rpc is required")
        if "binary_args" in values:
            values["binary_args"] = _split_args(values["binary_args"])
        if "json_logs" in values:
            values["json_logs"] = _as_bool(values["json_logs"])
        for text_field in ("local_rpc", "listen_address", "metrics_path", "log_level", "github_api_url"):
            if text_field in values:
                values[text_field] = str(values[text_field]).strip()

        return cls(**values)


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a YAML config file keyed by flag names.

    Dashes and underscores are interchangeable in keys. The result is keyed
    by option name, ready for ExporterConfig.from_options.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise ValidationError(f"could not read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ValidationError(f"invalid YAML in config file {path}: {e}") from e

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValidationError(f"config file {path} must contain a mapping")

    options = {}
    for key, value in raw.items():
        option = str(key).replace("-", "_")
        if option not in OPTION_FIELDS:
            raise ValidationError(f"unknown key in config file {path}: {key}")
        options[option] = value
    return options


def _validate_rpc_url(name: str, url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme not in RPC_SCHEMES or not parsed.netloc:
        raise ValidationError(f"{name} must be an http(s):// or tcp:// URL, got {url!r}")


def _split_listen_address(address: str) -> Tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValidationError(f"listen-address must be [host]:port, got {address!r}")
    try:
        port_number = int(port)
    except ValueError:
        raise ValidationError(f"listen-address has a non-numeric port: {address!r}") from None
    if not 1 <= port_number <= 65535:
        raise ValidationError(f"listen-address port out of range: {address!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, port_number


def _split_args(value: Union[str, Sequence[str]]) -> Tuple[str, ...]:
    if isinstance(value, str):
        return tuple(value.split())
    return tuple(str(arg) for arg in value)


def _none_if_blank(value: Any) -> Optional[str]:
    text = str(value).strip()
    return text or None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)
