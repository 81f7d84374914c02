"""
Configuration loading.

Static tables (repo to section map, tracked and ignored repositories) come
from an optional TOML file; tokens and the account usually come from the
environment. Command-line values override both.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .exceptions import ConfigError, MissingTokenError
from .models import SyncConfig

logger = logging.getLogger(__name__)


def read_config_file(path: Path | str) -> dict[str, Any]:
    """
    Read a TOML config file into a plain dict.

    Args:
        path: Path to the TOML file

    Returns:
        Parsed key/value pairs

    Raises:
        ConfigError: If the file is missing or not valid TOML
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(
            f"Config file not found: {path}",
            "Pass --config with the path to an existing TOML file",
        )

    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    logger.debug(f"Loaded config from {path}: {sorted(data)}")
    return data


def load_config(path: Path | str | None = None, **overrides: Any) -> SyncConfig:
    """
    Build a SyncConfig from a config file and explicit overrides.

    Overrides whose value is None are ignored so that unset CLI options
    don't clobber values from the file.

    Args:
        path: Optional TOML config file
        **overrides: Field values taking precedence over the file

    Returns:
        Validated, frozen SyncConfig

    Raises:
        ConfigError: If the file is unreadable or values are invalid
        MissingTokenError: If either API token is missing
    """
    data: dict[str, Any] = read_config_file(path) if path is not None else {}
    data.update({k: v for k, v in overrides.items() if v is not None})

    if not data.get("github_token"):
        raise MissingTokenError("GitHub", "GITHUB_TOKEN")
    if not data.get("todoist_token"):
        raise MissingTokenError("Todoist", "TODOIST_TOKEN")
    if not data.get("account"):
        raise ConfigError(
            "GitHub account not configured",
            "Set 'account' in the config file or pass --account",
        )

    try:
        return SyncConfig.model_validate(data)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {errors}") from e
