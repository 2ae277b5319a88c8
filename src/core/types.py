"""Shared typed models.

This module defines immutable data models used by the registry,
store adapters, engine operations and the CLI to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from core.errors import CohostError


@dataclass(frozen=True)
class Snapshot:
    """One immutable historical version of a domain's published content.

    Attributes:
        content_id: Content address of the published tree.
        size: Cumulative size of the tree in bytes.
        created_at: UTC timestamp of when the snapshot was recorded.
    """

    content_id: str
    size: int
    created_at: datetime


@dataclass(frozen=True)
class ImportedContent:
    """Content identifier and size reported by the store for a domain.

    Attributes:
        content_id: Content address of the domain's current tree.
        cumulative_size: Cumulative size of the tree in bytes.
    """

    content_id: str
    cumulative_size: int


@dataclass(frozen=True)
class AddResult:
    """Outcome of cohosting one domain.

    Attributes:
        domain: Normalized domain name.
        content_id: Content address of the newest snapshot.
        cumulative_size: Size of the newest snapshot in bytes.
        is_new: Whether a new snapshot was recorded by this call.
    """

    domain: str
    content_id: str
    cumulative_size: int
    is_new: bool


@dataclass(frozen=True)
class RemoveResult:
    """Outcome of no longer cohosting one domain.

    Attributes:
        domain: Normalized domain name.
        removed_snapshots: Number of registry snapshots deleted.
        unpinned: Content ids released from the store.
    """

    domain: str
    removed_snapshots: int
    unpinned: tuple[str, ...]


@dataclass(frozen=True)
class DomainFailure:
    """Per-domain failure reported alongside sibling successes.

    Attributes:
        domain: Domain as supplied by the caller.
        error: Typed failure for this domain.
    """

    domain: str
    error: CohostError


@dataclass(frozen=True)
class DroppedSnapshot:
    """Registry snapshot removed because its content was unrecoverable."""

    domain: str
    snapshot: Snapshot


@dataclass(frozen=True)
class SyncReport:
    """Summary of one registry/pin-set reconciliation.

    Attributes:
        repinned: Tracked ids that were missing and pinned again.
        dropped: Snapshots removed because their content was unrecoverable.
        reclaimed: Untracked ids that were unpinned.
        dry_run: Whether the report describes planned rather than applied work.
    """

    repinned: tuple[str, ...]
    dropped: tuple[DroppedSnapshot, ...]
    reclaimed: tuple[str, ...]
    dry_run: bool = False


@dataclass(frozen=True)
class CollectedSnapshot:
    """Snapshot pruned by garbage collection."""

    domain: str
    snapshot: Snapshot


@dataclass(frozen=True)
class GcReport:
    """Summary of one retention pass.

    Attributes:
        keep: Snapshots retained per domain.
        collected: Snapshots removed from the registry, oldest first per domain.
        unpinned: Content ids released from the store.
        dry_run: Whether the report describes planned rather than applied work.
    """

    keep: int
    collected: tuple[CollectedSnapshot, ...]
    unpinned: tuple[str, ...]
    dry_run: bool = False
