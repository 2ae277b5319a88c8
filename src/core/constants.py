"""Core constants used across Cohost modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path("~/.cohost")
DEFAULT_IPFS_API_URL = "http://127.0.0.1:5001"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60.0
DEFAULT_FETCH_TIMEOUT_SECONDS = 30.0
DEFAULT_LOCK_TIMEOUT_SECONDS = 30.0
DEFAULT_GC_KEEP = 1
DEFAULT_LOG_LEVEL = "warning"
SUPPORTED_LOG_LEVELS = ("debug", "info", "warning", "error")
REGISTRY_FILE_NAME = "registry.json"
REGISTRY_LOCK_SUFFIX = ".lock"
REGISTRY_FORMAT_VERSION = 1
IPFS_API_PATH = "/api/v0"
MAX_DOMAIN_LENGTH = 253
MAX_DOMAIN_LABEL_LENGTH = 63
