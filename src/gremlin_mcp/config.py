"""Configuration resolution and credential lookup.

gremlin-mcp keeps no persistent state of its own.  The effective
:class:`~gremlin_mcp.models.ServerConfig` is assembled at startup by
:func:`resolve_config` from, in order of precedence (high to low):

    1. CLI flags (``--base-url``, ``--max-retries``, ``--no-cache``)
    2. Environment variables (``GREMLIN_MCP_*``)
    3. A JSON config file (``--config`` or ``GREMLIN_MCP_CONFIG``)
    4. Defaults

The API key is deliberately *not* part of the resolved config.  The config
only records a credential source descriptor (``env:GREMLIN_API_KEY`` by
default) and :func:`resolve_credential` reads it whenever a request is
about to be sent, so rotating the key does not require a restart.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from gremlin_mcp.exceptions import ConfigError
from gremlin_mcp.models import ServerConfig

_ENV_PREFIX = "GREMLIN_MCP_"
_CONFIG_ENV = f"{_ENV_PREFIX}CONFIG"

# env var suffix -> (section, field)
_ENV_FIELDS: dict[str, tuple[Optional[str], str]] = {
    "BASE_URL": (None, "base_url"),
    "API_KEY_SOURCE": (None, "api_key_source"),
    "MAX_RETRIES": ("request", "max_retries"),
    "TIMEOUT": ("request", "timeout"),
    "RETRY_BACKOFF": ("request", "retry_backoff"),
    "CACHE_TTL": ("cache", "ttl_seconds"),
    "CACHE_MAX_ENTRIES": ("cache", "max_entries"),
}

_TRUTHY = {"1", "true", "yes", "on"}


# --- Config file ---


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load a JSON config file.

    Args:
        path: Path to a JSON object with the same shape as
            :class:`~gremlin_mcp.models.ServerConfig`.

    Returns:
        The parsed JSON object.

    Raises:
        ConfigError: If the file is missing, unreadable, not JSON, or not a
            JSON object.
    """
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise ConfigError(f"Config file not found: {file_path}")
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid config file {file_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config file {file_path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def _set_field(data: dict[str, Any], section: Optional[str], field: str, value: Any) -> None:
    target = data if section is None else data.setdefault(section, {})
    target[field] = value


def _apply_env(data: dict[str, Any]) -> None:
    for suffix, (section, field) in _ENV_FIELDS.items():
        value = os.environ.get(f"{_ENV_PREFIX}{suffix}")
        if value:
            _set_field(data, section, field, value)
    no_cache = os.environ.get(f"{_ENV_PREFIX}NO_CACHE")
    if no_cache and no_cache.strip().lower() in _TRUTHY:
        _set_field(data, "cache", "enabled", False)


def resolve_config(
    config_path: Optional[str] = None,
    cli_base_url: Optional[str] = None,
    cli_max_retries: Optional[int] = None,
    cli_no_cache: bool = False,
) -> ServerConfig:
    """Resolve the effective configuration with the full precedence chain.

    Args:
        config_path: Explicit config file; falls back to ``GREMLIN_MCP_CONFIG``.
        cli_base_url: ``--base-url`` override.
        cli_max_retries: ``--max-retries`` override.
        cli_no_cache: ``--no-cache`` flag; disables the response cache.

    Returns:
        The validated :class:`~gremlin_mcp.models.ServerConfig`.

    Raises:
        ConfigError: If the config file is invalid or a value fails validation
            (e.g. ``GREMLIN_MCP_MAX_RETRIES=0``).
    """
    data: dict[str, Any] = {}

    # 3. Config file
    path = config_path or os.environ.get(_CONFIG_ENV)
    if path:
        data = load_config_file(path)

    # 2. Environment
    _apply_env(data)

    # 1. CLI flags
    if cli_base_url is not None:
        data["base_url"] = cli_base_url
    if cli_max_retries is not None:
        _set_field(data, "request", "max_retries", cli_max_retries)
    if cli_no_cache:
        _set_field(data, "cache", "enabled", False)

    try:
        config = ServerConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

    config.base_url = config.base_url.rstrip("/")
    return config


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Args:
        source: The source descriptor string.

    Returns:
        The resolved credential string.

    Raises:
        ConfigError: If the source can't be resolved or yields an empty value.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if not value:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            value = path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc
        if not value:
            raise ConfigError(f"Credential file is empty: {path} (source: {source})")
        return value

    raise ConfigError(f"Unknown credential source format: {source}")
