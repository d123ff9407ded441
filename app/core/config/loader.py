"""
Configuration loader — builds ``AppConfig`` from the environment.

Sources, lowest precedence first:
    1. optional YAML file (``config_file`` or ``SERVICE_TEMPLATE_CONFIG``)
    2. ``.env`` file in the working directory
    3. process environment (or the ``environ`` mapping passed in)

Environment keys use the ``SERVICE_TEMPLATE__`` prefix with ``__`` as the
nesting separator::

    SERVICE_TEMPLATE__DATABASE_URL
    SERVICE_TEMPLATE__SERVER_PORT
    SERVICE_TEMPLATE__DATABASE__TIMEOUT
    SERVICE_TEMPLATE__CORS_CONFIG__ALLOWED_ORIGINS   (comma-separated)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from app.core.config.settings import AppConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "SERVICE_TEMPLATE"
ENV_SEPARATOR = "__"
CONFIG_FILE_VAR = "SERVICE_TEMPLATE_CONFIG"


class ConfigError(Exception):
    """Raised when service configuration is invalid or missing."""


def read_env_file(path: Path) -> dict[str, str]:
    """Parse a ``KEY=value`` file, ignoring comments and blank lines."""
    values: dict[str, str] = {}
    if not path.is_file():
        return values
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line.startswith("export "):
                line = line[len("export "):].lstrip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                # Strip surrounding quotes
                if (
                    len(value) >= 2
                    and value[0] == value[-1]
                    and value[0] in ('"', "'")
                ):
                    value = value[1:-1]
                values[key] = value
    return values


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def _nest(env: Mapping[str, str]) -> dict[str, Any]:
    """Turn prefixed flat keys into a nested dict of lower-case field names."""
    prefix = ENV_PREFIX + ENV_SEPARATOR
    nested: dict[str, Any] = {}
    for key, value in env.items():
        if not key.startswith(prefix):
            continue
        parts = [p.lower() for p in key[len(prefix):].split(ENV_SEPARATOR) if p]
        if not parts:
            continue
        node = nested
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value
    return nested


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    environ: Mapping[str, str] | None = None,
    env_file: Path | str | None = ".env",
    config_file: Path | str | None = None,
) -> AppConfig:
    """Load and validate service configuration.

    Args:
        environ: Environment mapping (default: ``os.environ``).
        env_file: Optional dotenv file; missing files are ignored.
        config_file: Optional YAML file. Falls back to the path in
            ``SERVICE_TEMPLATE_CONFIG`` when not given.

    Returns:
        Validated AppConfig.

    Raises:
        ConfigError: If a source cannot be read or validation fails.
    """
    env: dict[str, str] = {}
    if env_file is not None:
        env.update(read_env_file(Path(env_file)))
    env.update(os.environ if environ is None else environ)

    data: dict[str, Any] = {}
    config_path = config_file or env.get(CONFIG_FILE_VAR)
    if config_path:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        logger.debug("Loading config file %s", path)
        data = _read_config_file(path)

    data = _merge(data, _nest(env))

    try:
        config = AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid service configuration: {e}") from e

    logger.info(
        "Configuration loaded (database=%s, listen=%s:%d)",
        config.database_url,
        config.server_host,
        config.server_port,
    )
    return config
