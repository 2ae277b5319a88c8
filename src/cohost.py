"""Public SDK surface for Cohost.

This module provides a stable import path for library users.
It re-exports the client, engine and typed result models.
"""

from __future__ import annotations

from core.config import CohostConfig
from core.errors import (
    CohostConfigError,
    CohostError,
    CohostImportError,
    CohostNotFoundError,
    CohostRegistryError,
    CohostStoreUnavailableError,
    CohostTimeoutError,
    CohostValidationError,
)
from core.types import (
    AddResult,
    DomainFailure,
    GcReport,
    ImportedContent,
    RemoveResult,
    Snapshot,
    SyncReport,
)
from engine.cohost_client import CohostClient
from engine.cohost_engine import CohostEngine
from store.content_store import ContentStore
from store.ipfs_http_store import IpfsHttpStore
from store.snapshot_registry import SnapshotRegistry

__all__ = [
    "AddResult",
    "CohostClient",
    "CohostConfig",
    "CohostConfigError",
    "CohostEngine",
    "CohostError",
    "CohostImportError",
    "CohostNotFoundError",
    "CohostRegistryError",
    "CohostStoreUnavailableError",
    "CohostTimeoutError",
    "CohostValidationError",
    "ContentStore",
    "DomainFailure",
    "GcReport",
    "ImportedContent",
    "IpfsHttpStore",
    "RemoveResult",
    "Snapshot",
    "SnapshotRegistry",
    "SyncReport",
]
