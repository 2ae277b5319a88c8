"""Snapshot registry.

This module persists the mapping from cohosted domain to its ordered
snapshot history. Every mutation commits atomically before returning, and
an inter-process file lock serializes writers across CLI invocations.
"""

from __future__ import annotations

import copy
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from filelock import FileLock, Timeout

from core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS, REGISTRY_FILE_NAME, REGISTRY_LOCK_SUFFIX
from core.domain_names import normalize_domain
from core.errors import CohostNotFoundError, CohostRegistryError, CohostValidationError
from core.logging_config import get_logger
from core.types import Snapshot
from store.registry_io import read_registry_file, write_registry_file

_LOGGER = get_logger(__name__)


class SnapshotRegistry:
    """Durable domain to snapshot-history mapping.

    The registry must be opened before use and closed afterwards; it also
    works as a context manager. Snapshot lists are ordered oldest first.
    """

    def __init__(
        self,
        data_root: Path,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    ) -> None:
        """Create a closed registry rooted at ``data_root``.

        Args:
            data_root: Directory holding the registry document.
            lock_timeout: Seconds to wait for the inter-process lock.
        """
        self._path = data_root / REGISTRY_FILE_NAME
        self._lock_timeout = lock_timeout
        self._file_lock: FileLock | None = None
        self._domains: dict[str, list[Snapshot]] = {}
        self._pending: dict[str, list[Snapshot]] | None = None

    @property
    def path(self) -> Path:
        """Location of the registry document."""
        return self._path

    @property
    def is_open(self) -> bool:
        return self._file_lock is not None

    def open(self) -> "SnapshotRegistry":
        """Open the registry and load the current document.

        Returns:
            This registry, for chaining.

        Raises:
            CohostRegistryError: If the document is corrupt or the lock times out.
        """
        if self._file_lock is not None:
            return self
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file_lock = FileLock(str(self._path) + REGISTRY_LOCK_SUFFIX)
        try:
            with self.exclusive():
                pass
        except CohostRegistryError:
            self._file_lock = None
            raise
        return self

    def close(self) -> None:
        """Close the registry, releasing any lock still held."""
        if self._file_lock is None:
            return
        self._file_lock.release(force=True)
        self._file_lock = None
        self._pending = None

    def __enter__(self) -> "SnapshotRegistry":
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Hold the inter-process registry lock for the block.

        The lock is re-entrant. The outermost acquisition reloads the
        document so changes committed by other processes are visible.

        Raises:
            CohostRegistryError: If the registry is closed or the lock times out.
        """
        file_lock = self._require_open()
        try:
            file_lock.acquire(timeout=self._lock_timeout)
        except Timeout as error:
            raise CohostRegistryError(
                f"Timed out after {self._lock_timeout}s waiting for registry lock "
                f"{file_lock.lock_file}. Another cohost process may be running."
            ) from error
        try:
            if file_lock.lock_counter == 1:
                self._domains = read_registry_file(self._path)
            yield
        finally:
            file_lock.release()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group mutations into one atomic commit.

        Nothing is written when the block raises, and the in-memory state
        rolls back to what it was before the block. Nested transactions join
        the outermost one.
        """
        with self.exclusive():
            if self._pending is not None:
                yield
                return
            self._pending = copy.deepcopy(self._domains)
            try:
                yield
                write_registry_file(self._path, self._pending)
                self._domains = self._pending
            finally:
                self._pending = None

    def get(self, domain: str) -> tuple[Snapshot, ...]:
        """Return a domain's snapshots, oldest first; empty when unknown."""
        key = normalize_domain(domain)
        with self.exclusive():
            return tuple(self._view().get(key, ()))

    def latest(self, domain: str) -> Snapshot | None:
        """Return the newest snapshot of a domain, if any."""
        snapshots = self.get(domain)
        return snapshots[-1] if snapshots else None

    def list_domains(self) -> tuple[str, ...]:
        """Return domains with at least one snapshot, in insertion order."""
        with self.exclusive():
            return tuple(domain for domain, snapshots in self._view().items() if snapshots)

    def referenced_content_ids(self) -> set[str]:
        """Return every content id referenced by any snapshot."""
        with self.exclusive():
            return {
                snapshot.content_id
                for snapshots in self._view().values()
                for snapshot in snapshots
            }

    def domains_referencing(self, content_id: str) -> tuple[str, ...]:
        """Return domains with at least one snapshot carrying ``content_id``."""
        with self.exclusive():
            return tuple(
                domain
                for domain, snapshots in self._view().items()
                if any(snapshot.content_id == content_id for snapshot in snapshots)
            )

    def append(self, domain: str, snapshot: Snapshot) -> None:
        """Append a snapshot as the domain's newest.

        Args:
            domain: Domain name.
            snapshot: Snapshot to record.

        Raises:
            CohostValidationError: If the snapshot repeats the newest content id
                or has a negative size.
        """
        key = normalize_domain(domain)
        if snapshot.size < 0:
            raise CohostValidationError(
                f"Invalid snapshot size {snapshot.size} for '{key}': expected zero or more."
            )
        with self.transaction():
            snapshots = self._require_pending().setdefault(key, [])
            if snapshots and snapshots[-1].content_id == snapshot.content_id:
                raise CohostValidationError(
                    f"Snapshot {snapshot.content_id} is already the newest for '{key}'. "
                    "Unchanged content must not be appended twice."
                )
            snapshots.append(snapshot)
        _LOGGER.debug("registry_appended", domain=key, content_id=snapshot.content_id)

    def remove_domain(self, domain: str) -> None:
        """Delete all snapshots of a domain; a no-op when the domain is absent."""
        key = normalize_domain(domain)
        with self.transaction():
            self._require_pending().pop(key, None)

    def remove_snapshot(self, domain: str, content_id: str) -> Snapshot:
        """Remove the oldest snapshot of ``domain`` carrying ``content_id``.

        Args:
            domain: Domain name.
            content_id: Content id of the snapshot to remove.

        Returns:
            The removed snapshot.

        Raises:
            CohostNotFoundError: If no such snapshot exists.
        """
        key = normalize_domain(domain)
        with self.transaction():
            pending = self._require_pending()
            snapshots = pending.get(key, [])
            for index, snapshot in enumerate(snapshots):
                if snapshot.content_id == content_id:
                    del snapshots[index]
                    if not snapshots:
                        del pending[key]
                    return snapshot
            raise CohostNotFoundError(
                f"Snapshot {content_id} not found for '{key}'. "
                "Use ls to list the domain's snapshots."
            )

    def _view(self) -> dict[str, list[Snapshot]]:
        return self._pending if self._pending is not None else self._domains

    def _require_pending(self) -> dict[str, list[Snapshot]]:
        if self._pending is None:
            raise CohostRegistryError("Registry mutation attempted outside a transaction.")
        return self._pending

    def _require_open(self) -> FileLock:
        if self._file_lock is None:
            raise CohostRegistryError(
                f"Registry at {self._path} is closed. Open it before reading or writing."
            )
        return self._file_lock
