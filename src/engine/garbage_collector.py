"""Retention-based garbage collection of snapshot history."""

from __future__ import annotations

from collections import Counter

from core.errors import CohostValidationError
from core.logging_config import get_logger
from core.types import CollectedSnapshot, GcReport
from store.content_store import ContentStore
from store.snapshot_registry import SnapshotRegistry

_LOGGER = get_logger(__name__)


def parse_retention(value: int | str | None, default_keep: int) -> int:
    """Validate a retention count.

    Args:
        value: Count as int, decimal string (raw CLI input) or None.
        default_keep: Count used when ``value`` is None.

    Returns:
        Non-negative retention count.

    Raises:
        CohostValidationError: If the value is negative or not an integer.
    """
    if value is None:
        return default_keep
    if isinstance(value, bool):
        raise CohostValidationError(f"Invalid retention count {value!r}: expected an integer.")
    if isinstance(value, int):
        keep = value
    elif isinstance(value, str):
        try:
            keep = int(value.strip())
        except ValueError as error:
            raise CohostValidationError(
                f"Invalid retention count '{value}': expected a whole number like 2."
            ) from error
    else:
        raise CohostValidationError(f"Invalid retention count {value!r}: expected an integer.")
    if keep < 0:
        raise CohostValidationError(
            f"Invalid retention count {keep}: expected zero or more snapshots to keep."
        )
    return keep


def collect_garbage(
    registry: SnapshotRegistry,
    store: ContentStore,
    keep: int,
    dry_run: bool = False,
) -> GcReport:
    """Keep the newest ``keep`` snapshots per domain and prune the rest.

    Content ids are unpinned only when no surviving snapshot references
    them; all unpins happen before the registry commit.

    Args:
        registry: Open snapshot registry.
        store: Content store adapter.
        keep: Snapshots retained per domain.
        dry_run: Report planned work without changing anything.

    Returns:
        Collection summary.
    """
    with registry.exclusive():
        reference_counts: Counter[str] = Counter()
        collected: list[CollectedSnapshot] = []
        for domain in registry.list_domains():
            snapshots = registry.get(domain)
            reference_counts.update(snapshot.content_id for snapshot in snapshots)
            excess = len(snapshots) - keep
            if excess > 0:
                collected.extend(
                    CollectedSnapshot(domain=domain, snapshot=snapshot)
                    for snapshot in snapshots[:excess]
                )
        reference_counts.subtract(item.snapshot.content_id for item in collected)
        releasable = tuple(
            content_id
            for content_id in dict.fromkeys(item.snapshot.content_id for item in collected)
            if reference_counts[content_id] <= 0
        )
        if dry_run or not collected:
            return GcReport(
                keep=keep,
                collected=tuple(collected),
                unpinned=releasable,
                dry_run=dry_run,
            )
        for content_id in releasable:
            store.unpin(content_id)
        with registry.transaction():
            for item in collected:
                registry.remove_snapshot(item.domain, item.snapshot.content_id)
    for item in collected:
        _LOGGER.info(
            "snapshot_collected",
            domain=item.domain,
            content_id=item.snapshot.content_id,
            created_at=item.snapshot.created_at.isoformat(),
        )
    return GcReport(keep=keep, collected=tuple(collected), unpinned=releasable)
