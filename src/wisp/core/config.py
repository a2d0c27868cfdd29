"""
Run configuration for the Wisp interpreter.

Settings come from the ``[run]`` table of ``wisp.toml``; the
``WISP_LOG_LEVEL`` environment variable overrides the configured log level.

Example ``wisp.toml``:

    [run]
    log_level = "DEBUG"
    recursion_limit = 20000
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

from wisp.core.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "wisp.toml"
LOG_LEVEL_ENV_VAR = "WISP_LOG_LEVEL"

_DEFAULT_LOG_LEVEL = "WARNING"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class RunConfig:
    """Interpreter settings."""

    log_level: str = _DEFAULT_LOG_LEVEL
    recursion_limit: int = 10_000  # Deeply recursive programs need more than Python's default


def normalize_log_level(value: str) -> str:
    """Upper-case a level name, falling back to the default for unknown names."""
    level = value.strip().upper()
    if level in _LOG_LEVELS:
        return level
    logger.warning(
        "Unknown log level '%s'. Valid values: %s. Defaulting to %s.",
        value,
        ", ".join(_LOG_LEVELS),
        _DEFAULT_LOG_LEVEL,
    )
    return _DEFAULT_LOG_LEVEL


def load_config(path: Path | None = None) -> RunConfig:
    """
    Load run configuration.

    Args:
        path: Explicit config file; defaults to ``wisp.toml`` in the current
            directory. A missing file yields the defaults.

    Returns:
        RunConfig with environment overrides applied

    Raises:
        ConfigError: If the file is not valid TOML or has bad values
    """
    if path is None:
        path = Path.cwd() / CONFIG_FILENAME

    data: dict = {}
    if path.exists():
        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    else:
        logger.debug("No config file at %s, using defaults", path)

    run_data = data.get("run", {})
    config = RunConfig()

    if "log_level" in run_data:
        config.log_level = normalize_log_level(str(run_data["log_level"]))

    if "recursion_limit" in run_data:
        limit = run_data["recursion_limit"]
        if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
            raise ConfigError(f"run.recursion_limit must be a positive integer, got {limit!r}")
        config.recursion_limit = limit

    env_level = os.environ.get(LOG_LEVEL_ENV_VAR, "")
    if env_level.strip():
        config.log_level = normalize_log_level(env_level)

    return config
