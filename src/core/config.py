"""Runtime configuration model for AmpMix.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_LOGS_DIR,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    SUPPORTED_FILE_ORDERS,
    SUPPORTED_MODES,
    SUPPORTED_REGIONS,
)
from core.errors import ConfigError
from core.types import ImportCredentials, MigrationConfig


@dataclass(frozen=True)
class RuntimeConfig:
    """Validated runtime configuration.

    Attributes:
        logs_dir: Directory receiving persisted result logs.
        max_retries: Retry budget for one import request.
        request_timeout: Per-request timeout in seconds.
    """

    logs_dir: Path
    max_retries: int
    request_timeout: int

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ConfigError: If environment values are invalid.
        """
        logs_dir_value = os.getenv("AMPMIX_LOGS_DIR", str(DEFAULT_LOGS_DIR))
        max_retries = _parse_non_negative_int(
            "AMPMIX_MAX_RETRIES", os.getenv("AMPMIX_MAX_RETRIES", str(DEFAULT_MAX_RETRIES))
        )
        request_timeout = _parse_non_negative_int(
            "AMPMIX_REQUEST_TIMEOUT",
            os.getenv("AMPMIX_REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT_SECONDS)),
        )
        return cls(
            logs_dir=Path(logs_dir_value).expanduser().resolve(),
            max_retries=max_retries,
            request_timeout=request_timeout,
        )


def credentials_from_env() -> ImportCredentials | None:
    """Read Mixpanel credentials from ``MP_SECRET``, ``MP_TOKEN`` and ``MP_PROJECT``.

    Returns:
        Credentials when all three variables are set, else None.
    """
    secret = os.getenv("MP_SECRET")
    token = os.getenv("MP_TOKEN")
    project = os.getenv("MP_PROJECT")
    if not (secret and token and project):
        return None
    return ImportCredentials(secret=secret, token=token, project=project)


def validate_migration_config(config: MigrationConfig) -> None:
    """Check a migration config before any work starts.

    Args:
        config: Invocation configuration.

    Raises:
        ConfigError: If credentials, region, mode or ordering are invalid.
    """
    missing = [name for name in ("secret", "token", "project") if not getattr(config, name)]
    if missing:
        raise ConfigError(
            f"Missing Mixpanel credentials: {', '.join(missing)}. "
            "Pass them explicitly or set MP_SECRET, MP_TOKEN and MP_PROJECT."
        )
    if config.region not in SUPPORTED_REGIONS:
        raise ConfigError(
            f"Unsupported region '{config.region}'. Supported regions: {SUPPORTED_REGIONS}."
        )
    if config.mode not in SUPPORTED_MODES:
        raise ConfigError(f"Unsupported mode '{config.mode}'. Supported modes: {SUPPORTED_MODES}.")
    ordering = config.file_ordering
    for policy in (ordering.events, ordering.profiles, ordering.per_file):
        if policy not in SUPPORTED_FILE_ORDERS:
            raise ConfigError(
                f"Unsupported file order '{policy}'. Supported orders: {SUPPORTED_FILE_ORDERS}."
            )
    if not config.custom_user_id:
        raise ConfigError("custom_user_id must be a non-empty field name.")


def _parse_non_negative_int(name: str, raw_value: str) -> int:
    """Parse a non-negative integer environment value.

    Args:
        name: Environment variable name for error context.
        raw_value: Raw string from environment.

    Returns:
        Parsed integer.

    Raises:
        ConfigError: If value is not a non-negative integer.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise ConfigError(
            f"Invalid {name} value: expected integer, got '{raw_value}'. "
            f"Set {name} to a numeric value."
        ) from error
    if value < 0:
        raise ConfigError(f"Invalid {name} value: expected >= 0, got {value}.")
    return value
