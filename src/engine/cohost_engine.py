"""Cohost engine operations.

This module composes the snapshot registry and a content store into the
add, rm, ls, sync and gc operations. Multi-domain operations return one
result per domain so a failing domain never aborts its siblings.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Sequence

from core.constants import DEFAULT_GC_KEEP
from core.domain_names import normalize_domain
from core.errors import (
    CohostImportError,
    CohostNotFoundError,
    CohostValidationError,
)
from core.logging_config import get_logger
from core.types import AddResult, DomainFailure, GcReport, RemoveResult, Snapshot, SyncReport
from engine.garbage_collector import collect_garbage, parse_retention
from engine.sync_reconciler import reconcile
from store.content_store import ContentStore
from store.snapshot_registry import SnapshotRegistry

_LOGGER = get_logger(__name__)
_DOMAIN_ERRORS = (CohostImportError, CohostNotFoundError, CohostValidationError)


class CohostEngine:
    """Snapshot lifecycle manager for cohosted domains.

    ``CohostStoreUnavailableError`` and registry errors always propagate,
    since no domain can make progress without the store or the registry.
    """

    def __init__(
        self,
        registry: SnapshotRegistry,
        store: ContentStore,
        default_keep: int = DEFAULT_GC_KEEP,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Create an engine over an open registry and a store adapter.

        Args:
            registry: Open snapshot registry.
            store: Content store adapter.
            default_keep: Snapshots kept per domain when gc gets no count.
            clock: Optional UTC clock used for snapshot timestamps.
        """
        self._registry = registry
        self._store = store
        self._default_keep = default_keep
        self._clock = clock or _utc_now

    def add(self, domains: Sequence[str]) -> tuple[AddResult | DomainFailure, ...]:
        """Snapshot and pin the current content of each domain.

        Args:
            domains: Domain names, processed in order.

        Returns:
            One result or failure per input domain.

        Raises:
            CohostStoreUnavailableError: If the store cannot be reached.
        """
        outcomes: list[AddResult | DomainFailure] = []
        for domain in domains:
            try:
                outcomes.append(self._add_domain(domain))
            except _DOMAIN_ERRORS as error:
                _LOGGER.info("domain_add_failed", domain=domain, error=str(error))
                outcomes.append(DomainFailure(domain=domain, error=error))
        return tuple(outcomes)

    def refresh(self) -> tuple[AddResult | DomainFailure, ...]:
        """Re-run add for every cohosted domain."""
        return self.add(self._registry.list_domains())

    def rm(self, domains: Sequence[str]) -> tuple[RemoveResult | DomainFailure, ...]:
        """Stop cohosting each domain, unpinning content nobody else references.

        Args:
            domains: Domain names, processed in order.

        Returns:
            One result or failure per input domain.

        Raises:
            CohostStoreUnavailableError: If the store cannot be reached.
        """
        outcomes: list[RemoveResult | DomainFailure] = []
        for domain in domains:
            try:
                outcomes.append(self._remove_domain(domain))
            except _DOMAIN_ERRORS as error:
                _LOGGER.info("domain_remove_failed", domain=domain, error=str(error))
                outcomes.append(DomainFailure(domain=domain, error=error))
        return tuple(outcomes)

    def ls(
        self,
        domains: Sequence[str] | None = None,
        strict: bool = False,
    ) -> tuple[str, ...] | dict[str, tuple[str, ...]]:
        """List cohosted domains, or snapshot ids for the given domains.

        Args:
            domains: Optional domains to inspect.
            strict: Raise for unknown domains instead of returning no ids.

        Returns:
            Domain names when ``domains`` is empty, otherwise a mapping of
            normalized domain to content ids ordered oldest first.
        """
        if not domains:
            return self.list_domains()
        return {
            normalize_domain(domain): tuple(
                snapshot.content_id for snapshot in self.snapshots(domain, strict=strict)
            )
            for domain in domains
        }

    def list_domains(self) -> tuple[str, ...]:
        """Return cohosted domains in the order they were first added."""
        return self._registry.list_domains()

    def snapshots(self, domain: str, strict: bool = False) -> tuple[Snapshot, ...]:
        """Return a domain's snapshots, oldest first.

        Raises:
            CohostNotFoundError: If ``strict`` and the domain is unknown.
        """
        snapshots = self._registry.get(domain)
        if strict and not snapshots:
            raise CohostNotFoundError(
                f"Domain '{normalize_domain(domain)}' is not cohosted. "
                "Run ls without arguments to list cohosted domains."
            )
        return snapshots

    def sync(self, dry_run: bool = False) -> SyncReport:
        """Reconcile the registry with the store's pin set."""
        return reconcile(self._registry, self._store, dry_run=dry_run)

    def gc(self, keep: int | str | None = None, dry_run: bool = False) -> GcReport:
        """Prune each domain's history down to the newest ``keep`` snapshots.

        Raises:
            CohostValidationError: If ``keep`` is negative or not a number.
        """
        retention = parse_retention(keep, self._default_keep)
        return collect_garbage(self._registry, self._store, retention, dry_run=dry_run)

    def _add_domain(self, raw_domain: str) -> AddResult:
        """Import, compare and record one domain."""
        domain = normalize_domain(raw_domain)
        imported = self._store.import_content(domain)
        if imported.cumulative_size < 0:
            raise CohostImportError(
                f"Store reported negative size {imported.cumulative_size} for '{domain}'."
            )
        with self._registry.exclusive():
            latest = self._registry.latest(domain)
            if latest is not None and latest.content_id == imported.content_id:
                _LOGGER.info("snapshot_unchanged", domain=domain, content_id=latest.content_id)
                return AddResult(
                    domain=domain,
                    content_id=latest.content_id,
                    cumulative_size=latest.size,
                    is_new=False,
                )
            self._store.pin(imported.content_id)
            snapshot = Snapshot(
                content_id=imported.content_id,
                size=imported.cumulative_size,
                created_at=self._clock(),
            )
            self._registry.append(domain, snapshot)
        _LOGGER.info(
            "snapshot_added",
            domain=domain,
            content_id=snapshot.content_id,
            size=snapshot.size,
        )
        return AddResult(
            domain=domain,
            content_id=snapshot.content_id,
            cumulative_size=snapshot.size,
            is_new=True,
        )

    def _remove_domain(self, raw_domain: str) -> RemoveResult:
        """Unpin and forget one domain."""
        domain = normalize_domain(raw_domain)
        with self._registry.exclusive():
            snapshots = self._registry.get(domain)
            if not snapshots:
                raise CohostNotFoundError(
                    f"Domain '{domain}' is not cohosted. "
                    "Run ls without arguments to list cohosted domains."
                )
            unpinned: list[str] = []
            for content_id in dict.fromkeys(snapshot.content_id for snapshot in snapshots):
                shared_with = [
                    other
                    for other in self._registry.domains_referencing(content_id)
                    if other != domain
                ]
                if shared_with:
                    continue
                self._store.unpin(content_id)
                unpinned.append(content_id)
            self._registry.remove_domain(domain)
        _LOGGER.info(
            "domain_removed",
            domain=domain,
            removed_snapshots=len(snapshots),
            unpinned=len(unpinned),
        )
        return RemoveResult(
            domain=domain,
            removed_snapshots=len(snapshots),
            unpinned=tuple(unpinned),
        )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
