"""Config Loader - Loads connector settings from YAML.

Handles ${ENV_VAR} substitution so that tokens and passwords can stay out of
the file. Example:

    url: https://sonar.example.com
    token: ${SONAR_TOKEN}
    user_agent: my-tool/1.0
    proxy: http://proxy.example.com:3128
    proxy_login: ${PROXY_USER}
    proxy_password: ${PROXY_PASSWORD}
    connect_timeout_ms: 5000
    read_timeout_ms: 30000
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ws_connector.connector import HttpConnector
from ws_connector.errors import ConfigurationError
from ws_connector.models import ConnectorSettings

logger = logging.getLogger(__name__)

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def load_connector_settings(config_path: Path) -> ConnectorSettings:
    """Load connector settings from YAML with ${ENV_VAR} substitution.

    ``token`` is accepted as an alternative to ``login``/``password``: it is
    stored as the login with no password.
    """
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigurationError("Config file must be a YAML mapping")

    raw_config = _substitute_env_vars(raw_config)

    if "token" in raw_config:
        if "login" in raw_config or "password" in raw_config:
            raise ConfigurationError("Config file must not set both 'token' and 'login'/'password'")
        raw_config["login"] = raw_config.pop("token")

    try:
        settings = ConnectorSettings.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config structure: {e}") from e

    logger.debug("Loaded connector settings from %s", config_path)
    return settings


def connector_from_config(config_path: Path) -> HttpConnector:
    """Load settings from YAML and build a connector."""
    return HttpConnector.from_settings(load_connector_settings(config_path))


def _substitute_env_vars(data: Any) -> Any:
    """Recursively substitute ${ENV_VAR} patterns in strings within data."""
    if isinstance(data, str):
        return _substitute_string(data)
    elif isinstance(data, dict):
        return {k: _substitute_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars(item) for item in data]
    return data


def _substitute_string(s: str) -> str:
    """Substitute ${ENV_VAR} patterns. Raises ConfigurationError if env var is not set."""

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigurationError(f"Environment variable '{var_name}' is not set")
        return value

    return _ENV_VAR_PATTERN.sub(replacer, s)
