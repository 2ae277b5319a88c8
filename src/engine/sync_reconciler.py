"""Registry and pin-set reconciliation.

Drift between the registry and the store's pins comes from interrupted
operations or pins changed outside cohost. Tracked content missing from the
pin set is pinned again, or dropped from the registry when it can no longer
be retrieved. Untracked pins are then released.
"""

from __future__ import annotations

from core.errors import CohostImportError, CohostTimeoutError
from core.logging_config import get_logger
from core.types import DroppedSnapshot, SyncReport
from store.content_store import ContentStore
from store.snapshot_registry import SnapshotRegistry

_LOGGER = get_logger(__name__)


def reconcile(
    registry: SnapshotRegistry,
    store: ContentStore,
    dry_run: bool = False,
) -> SyncReport:
    """Repair drift between the registry and the store pin set.

    Missing pins are handled before orphans are released. A dry run lists
    the missing ids under ``repinned`` without probing recoverability.

    Args:
        registry: Open snapshot registry.
        store: Content store adapter.
        dry_run: Report planned work without changing anything.

    Returns:
        Reconciliation summary.

    Raises:
        CohostTimeoutError: If the node stalls while restoring a pin.
    """
    with registry.exclusive():
        wanted = registry.referenced_content_ids()
        pinned = store.list_pinned()
        missing = sorted(wanted - pinned)
        orphans = sorted(pinned - wanted)
        if dry_run:
            return SyncReport(
                repinned=tuple(missing),
                dropped=(),
                reclaimed=tuple(orphans),
                dry_run=True,
            )
        repinned: list[str] = []
        dropped: list[DroppedSnapshot] = []
        for content_id in missing:
            if _restore_pin(store, content_id):
                repinned.append(content_id)
            else:
                dropped.extend(_drop_content(registry, content_id))
        for content_id in orphans:
            store.unpin(content_id)
            _LOGGER.info("orphan_unpinned", content_id=content_id)
    _LOGGER.info(
        "sync_completed",
        repinned=len(repinned),
        dropped=len(dropped),
        reclaimed=len(orphans),
    )
    return SyncReport(
        repinned=tuple(repinned),
        dropped=tuple(dropped),
        reclaimed=tuple(orphans),
    )


def _restore_pin(store: ContentStore, content_id: str) -> bool:
    """Pin tracked content again, returning False when it is unrecoverable.

    ``CohostTimeoutError`` propagates and leaves the snapshot registered.
    """
    try:
        store.fetch(content_id)
        store.pin(content_id)
    except CohostTimeoutError:
        raise
    except CohostImportError as error:
        _LOGGER.warning("content_unrecoverable", content_id=content_id, error=str(error))
        return False
    _LOGGER.info("content_repinned", content_id=content_id)
    return True


def _drop_content(registry: SnapshotRegistry, content_id: str) -> list[DroppedSnapshot]:
    """Remove every snapshot carrying ``content_id`` in one commit."""
    dropped: list[DroppedSnapshot] = []
    with registry.transaction():
        for domain in registry.domains_referencing(content_id):
            for snapshot in registry.get(domain):
                if snapshot.content_id == content_id:
                    removed = registry.remove_snapshot(domain, content_id)
                    dropped.append(DroppedSnapshot(domain=domain, snapshot=removed))
    for item in dropped:
        _LOGGER.warning(
            "snapshot_dropped",
            domain=item.domain,
            content_id=content_id,
            created_at=item.snapshot.created_at.isoformat(),
        )
    return dropped
