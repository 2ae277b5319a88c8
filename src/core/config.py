"""Runtime configuration model for Cohost.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_DATA_ROOT,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_GC_KEEP,
    DEFAULT_IPFS_API_URL,
    DEFAULT_LOCK_TIMEOUT_SECONDS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    SUPPORTED_LOG_LEVELS,
)
from core.errors import CohostConfigError


@dataclass(frozen=True)
class CohostConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local directory holding the snapshot registry.
        ipfs_api_url: Base URL of the IPFS node HTTP RPC API.
        request_timeout: Seconds allowed for one node API request.
        fetch_timeout: Seconds the node may spend retrieving content during sync.
        lock_timeout: Seconds to wait for the registry lock.
        gc_keep: Snapshots kept per domain when gc runs without a count.
        log_level: Minimum structured log level.
    """

    data_root: Path
    ipfs_api_url: str
    request_timeout: float
    fetch_timeout: float
    lock_timeout: float
    gc_keep: int
    log_level: str

    @classmethod
    def from_env(cls) -> "CohostConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            CohostConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("COHOST_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        api_url = os.getenv("COHOST_IPFS_API_URL", DEFAULT_IPFS_API_URL)
        log_level = os.getenv("COHOST_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().lower()
        if log_level not in SUPPORTED_LOG_LEVELS:
            raise CohostConfigError(
                f"Invalid COHOST_LOG_LEVEL value: got '{log_level}'. "
                f"Use one of: {', '.join(SUPPORTED_LOG_LEVELS)}."
            )
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            ipfs_api_url=parse_api_url(api_url),
            request_timeout=_parse_seconds(
                "COHOST_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT_SECONDS
            ),
            fetch_timeout=_parse_seconds("COHOST_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT_SECONDS),
            lock_timeout=_parse_seconds("COHOST_LOCK_TIMEOUT", DEFAULT_LOCK_TIMEOUT_SECONDS),
            gc_keep=_parse_gc_keep(os.getenv("COHOST_GC_KEEP", str(DEFAULT_GC_KEEP))),
            log_level=log_level,
        )


def parse_api_url(raw_value: str, source: str = "COHOST_IPFS_API_URL") -> str:
    """Validate and normalize the node API base URL.

    Args:
        raw_value: Raw string from environment or command line.
        source: Setting name used in error messages.

    Returns:
        URL without trailing slash.

    Raises:
        CohostConfigError: If the value is not an http(s) URL.
    """
    value = raw_value.strip().rstrip("/")
    if not value.startswith(("http://", "https://")):
        raise CohostConfigError(
            f"Invalid {source} value: expected http(s) URL, got '{raw_value}'. "
            "Point it at the node RPC API, e.g. http://127.0.0.1:5001."
        )
    return value


def _parse_seconds(env_name: str, default_value: float) -> float:
    """Parse a positive duration in seconds.

    Args:
        env_name: Environment variable name.
        default_value: Value used when the variable is unset.

    Returns:
        Parsed duration.

    Raises:
        CohostConfigError: If value is not a positive number.
    """
    raw_value = os.getenv(env_name)
    if raw_value is None:
        return default_value
    try:
        seconds = float(raw_value)
    except ValueError as error:
        raise CohostConfigError(
            f"Invalid {env_name} value: expected seconds, got '{raw_value}'. "
            f"Set {env_name} to a positive number."
        ) from error
    if seconds <= 0:
        raise CohostConfigError(
            f"Invalid {env_name} value: expected a positive number, got '{raw_value}'."
        )
    return seconds


def _parse_gc_keep(raw_value: str) -> int:
    """Parse the default gc retention count.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed non-negative integer.

    Raises:
        CohostConfigError: If value is not a non-negative integer.
    """
    try:
        keep = int(raw_value)
    except ValueError as error:
        raise CohostConfigError(
            "Invalid COHOST_GC_KEEP value: "
            f"expected integer, got '{raw_value}'. "
            "Set COHOST_GC_KEEP to the number of snapshots kept per domain."
        ) from error
    if keep < 0:
        raise CohostConfigError(
            f"Invalid COHOST_GC_KEEP value: expected zero or more, got '{raw_value}'."
        )
    return keep
