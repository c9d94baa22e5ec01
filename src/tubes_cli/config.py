"""CLI configuration management.

Two kinds of configuration:

- CLIConfig: tuning knobs (stack wait timeout, poll interval, bosh.io URL)
  stored in ~/.tubes/config.yaml with environment variable overrides.
- AWSConfig: region, credentials and endpoint overrides, supplied per
  invocation through flags or the standard AWS environment variables.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .shared.logging import get_logger
from .shared.paths import CONFIG_FILE

log = get_logger(__name__)

# Default values
DEFAULT_WAIT_TIMEOUT = 300
DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_BOSHIO_URL = "https://bosh.io"

# Environment variable mappings
ENV_VARS = {
    "wait_timeout": "TUBES_WAIT_TIMEOUT",
    "poll_interval": "TUBES_POLL_INTERVAL",
    "boshio_url": "TUBES_BOSHIO_URL",
}

ENDPOINTS_ENV_VAR = "TUBES_AWS_ENDPOINTS"

_CONVERTERS = {
    "wait_timeout": int,
    "poll_interval": float,
    "boshio_url": str,
}

# Values outside these ranges are rejected like unparseable ones
_VALIDATORS = {
    "wait_timeout": lambda value: value >= 0,
    "poll_interval": lambda value: value > 0,
}


@dataclass
class CLIConfig:
    """CLI configuration."""

    wait_timeout: int = DEFAULT_WAIT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    boshio_url: str = DEFAULT_BOSHIO_URL

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")

    def as_dict(self) -> dict[str, Any]:
        return {key: getattr(self, key) for key in _CONVERTERS}


def _convert(key: str, raw: Any) -> Any:
    value = _CONVERTERS[key](raw)
    valid = _VALIDATORS.get(key)
    if valid is not None and not valid(value):
        raise ValueError(f"{key} out of range: {value}")
    return value


def get_config_path() -> Path:
    """Get the CLI config file path.

    Returns:
        Path to ~/.tubes/config.yaml
    """
    return CONFIG_FILE


def load_config() -> CLIConfig:
    """Load CLI configuration.

    Precedence (highest to lowest):
    1. Environment variables
    2. Config file (~/.tubes/config.yaml)
    3. Defaults

    Unreadable config files, files that are not a mapping, and unparseable
    or out-of-range values (wait_timeout below 0, poll_interval of 0 or
    less) are skipped with a warning; the lower-precedence value stays in
    effect.

    Returns:
        CLIConfig with values and sources
    """
    config = CLIConfig()
    sources: dict[str, str] = {key: "default" for key in _CONVERTERS}

    config_path = get_config_path()
    if config_path.exists():
        try:
            with open(config_path) as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            log.warning("ignoring unreadable config file", path=str(config_path), error=str(e))
            file_config = {}

        if not isinstance(file_config, dict):
            log.warning(
                "ignoring unreadable config file",
                path=str(config_path),
                error=f"expected a mapping, got {type(file_config).__name__}",
            )
            file_config = {}

        for key in _CONVERTERS:
            if key in file_config:
                try:
                    setattr(config, key, _convert(key, file_config[key]))
                    sources[key] = "config file"
                except (TypeError, ValueError):
                    log.warning("ignoring invalid config value", key=key, value=file_config[key])

    for key, env_var in ENV_VARS.items():
        raw = os.environ.get(env_var)
        if not raw:
            continue
        try:
            setattr(config, key, _convert(key, raw))
            sources[key] = "environment"
        except ValueError:
            log.warning("ignoring invalid environment value", env_var=env_var, value=raw)

    config._sources = sources
    return config


@dataclass
class AWSConfig:
    """Credentials and endpoints for the AWS client."""

    region: str = ""
    access_key: str = ""
    secret_key: str = ""
    endpoint_overrides: dict[str, str] = field(default_factory=dict)

    def missing_fields(self) -> list[str]:
        """Names of required fields that are empty."""
        return [
            name for name in ("region", "access_key", "secret_key") if not getattr(self, name)
        ]


def parse_endpoint_overrides(raw: str | None) -> dict[str, str]:
    """Parse a JSON object mapping AWS service name to endpoint URL.

    Args:
        raw: JSON string, e.g. '{"ec2": "http://localhost:4566"}'

    Returns:
        Mapping of service name to URL (empty if raw is empty)

    Raises:
        ValueError: If raw is not a JSON object of strings
    """
    if not raw:
        return {}

    try:
        overrides = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid endpoint overrides: {e}") from e

    if not isinstance(overrides, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in overrides.items()
    ):
        raise ValueError("invalid endpoint overrides: expected a JSON object of strings")

    return overrides
