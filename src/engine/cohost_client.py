"""Python SDK entry point for cohosting.

This module wires configuration, the snapshot registry and the storage
node adapter into a ready engine with an explicit open/close lifecycle.
"""

from __future__ import annotations

from core.config import CohostConfig
from core.errors import CohostRegistryError
from engine.cohost_engine import CohostEngine
from store.content_store import ContentStore
from store.ipfs_http_store import IpfsHttpStore
from store.snapshot_registry import SnapshotRegistry


class CohostClient:
    """Primary SDK entry point for cohost workflows."""

    def __init__(
        self,
        config: CohostConfig | None = None,
        store: ContentStore | None = None,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            store: Optional content store; an IPFS HTTP adapter otherwise.
        """
        self._config = config or CohostConfig.from_env()
        self._store = store
        self._owned_store: IpfsHttpStore | None = None
        self._registry = SnapshotRegistry(self._config.data_root, self._config.lock_timeout)
        self._engine: CohostEngine | None = None

    @property
    def config(self) -> CohostConfig:
        return self._config

    @property
    def engine(self) -> CohostEngine:
        """Engine bound to the open registry.

        Raises:
            CohostRegistryError: If the client has not been opened.
        """
        if self._engine is None:
            raise CohostRegistryError("Cohost client is closed. Use it as a context manager.")
        return self._engine

    def open(self) -> "CohostClient":
        """Open the registry and build the engine."""
        if self._engine is not None:
            return self
        self._registry.open()
        if self._store is None:
            self._owned_store = IpfsHttpStore(
                self._config.ipfs_api_url,
                request_timeout=self._config.request_timeout,
                fetch_timeout=self._config.fetch_timeout,
            )
        self._engine = CohostEngine(
            self._registry,
            self._store or self._owned_store,
            default_keep=self._config.gc_keep,
        )
        return self

    def close(self) -> None:
        """Close the registry and any store adapter this client created."""
        self._engine = None
        self._registry.close()
        if self._owned_store is not None:
            self._owned_store.close()
            self._owned_store = None

    def describe_store(self) -> str:
        """Return the store adapter's provider description."""
        store = self._store or self._owned_store
        if store is None:
            raise CohostRegistryError("Cohost client is closed. Use it as a context manager.")
        return store.describe()

    def __enter__(self) -> "CohostClient":
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()
