"""Connection configuration for the Targetprocess API.

Configuration precedence (first source that yields a configuration wins):
1. Environment variables ``TP_DOMAIN`` and ``TP_TOKEN`` (both required)
2. ``config/targetprocess.json`` next to the installed package

Environment variables always win when both are set. Pass ``use_env=False``
(the ``--config`` CLI flag) to force the file.

Example config/targetprocess.json:
    {
      "domain": "example.tpondemand.com",
      "credentials": {"token": "<personal access token>"}
    }
"""

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from targetprocess_mcp.errors import ConfigurationError

logger = logging.getLogger(__name__)

DOMAIN_ENV = "TP_DOMAIN"
TOKEN_ENV = "TP_TOKEN"

# Resolved from this module, not the working directory
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "targetprocess.json"

MISSING_CONFIG_MESSAGE = (
    f"No configuration found. Please set environment variables ({DOMAIN_ENV} and {TOKEN_ENV}) "
    "or create config/targetprocess.json"
)
MISSING_TOKEN_MESSAGE = (
    "Configuration must provide a Personal Access Token (credentials.token). See "
    "https://www.ibm.com/docs/en/targetprocess/tp-dev-hub/saas?topic=v1-authentication for details."
)
MISSING_DOMAIN_MESSAGE = (
    f"Configuration must provide a domain (set 'domain' in the config file or {DOMAIN_ENV})"
)


class Credentials(BaseModel):
    """API credentials."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(..., min_length=1, description="Personal Access Token")


class TargetProcessConfig(BaseModel):
    """Validated connection configuration.

    Attributes:
        domain: Targetprocess host, e.g. ``example.tpondemand.com``
        credentials: Access credentials
    """

    model_config = ConfigDict(frozen=True)

    domain: str = Field(..., min_length=1, description="Targetprocess domain")
    credentials: Credentials


def _config_from_env(environ: Mapping[str, str]) -> TargetProcessConfig | None:
    domain = environ.get(DOMAIN_ENV)
    token = environ.get(TOKEN_ENV)
    if not (domain and token):
        return None
    return TargetProcessConfig(domain=domain, credentials=Credentials(token=token))


def _read_config_file(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        msg = f"Error parsing config file: {e}"
        raise ConfigurationError(msg) from e


def load_config(
    config_path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    use_env: bool = True,
) -> TargetProcessConfig:
    """Resolve the connection configuration.

    Args:
        config_path: Config file to fall back to (defaults to ``DEFAULT_CONFIG_PATH``)
        environ: Environment mapping (defaults to ``os.environ``)
        use_env: Whether ``TP_DOMAIN``/``TP_TOKEN`` may be used at all

    Returns:
        TargetProcessConfig: Validated configuration

    Raises:
        ConfigurationError: If no source yields a valid configuration
    """
    environ = os.environ if environ is None else environ

    if use_env:
        config = _config_from_env(environ)
        if config is not None:
            logger.debug("Using configuration from %s/%s", DOMAIN_ENV, TOKEN_ENV)
            return config

    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not path.is_file():
        logger.error(MISSING_CONFIG_MESSAGE)
        raise ConfigurationError(MISSING_CONFIG_MESSAGE)

    data = _read_config_file(path)
    if not isinstance(data, dict):
        msg = f"Error parsing config file: expected a JSON object, got {type(data).__name__}"
        raise ConfigurationError(msg)

    credentials = data.get("credentials")
    if not isinstance(credentials, dict) or not credentials.get("token"):
        raise ConfigurationError(MISSING_TOKEN_MESSAGE)

    domain = data.get("domain") or environ.get(DOMAIN_ENV)
    if not domain:
        raise ConfigurationError(MISSING_DOMAIN_MESSAGE)

    try:
        config = TargetProcessConfig.model_validate({**data, "domain": domain})
    except ValidationError as e:
        msg = f"Error parsing config file: {e}"
        raise ConfigurationError(msg) from e

    logger.debug("Using configuration from %s", path)
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "Credentials",
    "TargetProcessConfig",
    "load_config",
]
