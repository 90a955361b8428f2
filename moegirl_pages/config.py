"""Load client settings from an optional TOML file.

Settings live in ``~/.config/moegirl-pages/config.toml`` unless
``MOEGIRL_CONFIG_FILE`` points elsewhere. Every key is optional; a missing
file yields the defaults.

.. code-block:: toml

    [client]
    api_endpoint = "https://zh.moegirl.org.cn/api.php"
    user_agent = "moegirl-pages/0.1"
    timeout = 15.0
    retries = 3

    [cache]
    ttl = 1800
"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ
from pathlib import Path

import tomlkit

from ._constants import (
    DEFAULT_API_ENDPOINT,
    DEFAULT_CACHE_TTL,
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
)
from .errors import ConfigError

DEFAULT_CONFIG_PATH = Path(
    os.getenv(
        "MOEGIRL_CONFIG_FILE",
        Path.home() / ".config" / "moegirl-pages" / "config.toml",
    )
)


@dc.dataclass(slots=True)
class ClientSettings:
    """Resolved settings for the API client and the page cache."""

    api_endpoint: str = DEFAULT_API_ENDPOINT
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    cache_ttl: float = DEFAULT_CACHE_TTL


def _as_dict(table: typ.Any) -> dict[str, typ.Any]:
    return {k: v for k, v in table.items()} if table else {}


def _positive_float(value: object, *, key: str, path: Path) -> float:
    try:
        number = float(typ.cast("typ.Any", value))
    except (TypeError, ValueError) as exc:
        msg = f"Expected a number for '{key}' in {path}, got {value!r}"
        raise ConfigError(msg) from exc
    if number <= 0:
        msg = f"'{key}' in {path} must be positive, got {number}"
        raise ConfigError(msg)
    return number


def _retry_count(value: object, *, path: Path) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        msg = f"'client.retries' in {path} must be a non-negative integer, got {value!r}"
        raise ConfigError(msg)
    return int(value)


def load_settings(path: Path = DEFAULT_CONFIG_PATH) -> ClientSettings:
    """Return settings from ``path``, falling back to defaults.

    Parameters
    ----------
    path : Path, optional
        TOML file to read; defaults to ``DEFAULT_CONFIG_PATH``.

    Returns
    -------
    ClientSettings
        Defaults overridden by whatever keys the file provides.

    Raises
    ------
    ConfigError
        If the file is not valid TOML or a value has the wrong type.
    """
    if not path.exists():
        return ClientSettings()
    try:
        data = tomlkit.parse(path.read_text(encoding="utf-8"))
    except tomlkit.exceptions.ParseError as exc:
        msg = f"Could not parse config file {path}: {exc}"
        raise ConfigError(msg) from exc

    client = _as_dict(data.get("client"))
    cache = _as_dict(data.get("cache"))
    settings = ClientSettings()
    if "api_endpoint" in client:
        settings.api_endpoint = str(client["api_endpoint"]).strip()
    if "user_agent" in client:
        settings.user_agent = str(client["user_agent"]).strip()
    if "timeout" in client:
        settings.timeout = _positive_float(client["timeout"], key="client.timeout", path=path)
    if "retries" in client:
        settings.retries = _retry_count(client["retries"], path=path)
    if "ttl" in cache:
        settings.cache_ttl = _positive_float(cache["ttl"], key="cache.ttl", path=path)
    if not settings.api_endpoint:
        msg = f"'client.api_endpoint' in {path} cannot be empty"
        raise ConfigError(msg)
    return settings


__all__ = ["DEFAULT_CONFIG_PATH", "ClientSettings", "load_settings"]
