"""Maintenance command wiring for Cohost CLI: sync and gc."""

from __future__ import annotations

import argparse
from typing import Any

from cli.output import make_emitter, report_failure
from core.types import DomainFailure
from engine.cohost_client import CohostClient


def add_sync_command(subparsers: Any) -> None:
    """Register sync subcommand."""
    parser = subparsers.add_parser(
        "sync",
        help="Repair drift between cohosted snapshots and the node's pins",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Re-add every cohosted domain before reconciling",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report drift without pinning, unpinning or dropping snapshots",
    )


def add_gc_command(subparsers: Any) -> None:
    """Register gc subcommand."""
    parser = subparsers.add_parser("gc", help="Keep only the newest n snapshots per domain")
    parser.add_argument(
        "keep",
        nargs="?",
        default=None,
        help="Snapshots to keep per domain (default: COHOST_GC_KEEP, 1)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be collected without changing anything",
    )


def run_sync_command(client: CohostClient, args: argparse.Namespace) -> int:
    """Optionally refresh every domain, then reconcile pins."""
    emit = make_emitter(args.silent)
    exit_code = 0
    if args.refresh and not args.dry_run:
        for outcome in client.engine.refresh():
            if isinstance(outcome, DomainFailure):
                report_failure(outcome)
                exit_code = 1
                continue
            status = "new" if outcome.is_new else "unchanged"
            emit(f"{outcome.domain}\t{outcome.content_id}\t{status}")
    report = client.engine.sync(dry_run=args.dry_run)
    for content_id in report.repinned:
        emit(f"repinned\t{content_id}")
    for item in report.dropped:
        emit(f"dropped\t{item.domain}\t{item.snapshot.content_id}")
    for content_id in report.reclaimed:
        emit(f"reclaimed\t{content_id}")
    emit(
        f"repinned={len(report.repinned)}\tdropped={len(report.dropped)}"
        f"\treclaimed={len(report.reclaimed)}\tdry_run={str(report.dry_run).lower()}"
    )
    return exit_code


def run_gc_command(client: CohostClient, args: argparse.Namespace) -> int:
    """Prune snapshot history and print a summary."""
    emit = make_emitter(args.silent)
    report = client.engine.gc(args.keep, dry_run=args.dry_run)
    for item in report.collected:
        emit(
            f"collected\t{item.domain}\t{item.snapshot.content_id}\t"
            f"{item.snapshot.created_at.isoformat()}"
        )
    emit(
        f"keep={report.keep}\tcollected={len(report.collected)}"
        f"\tunpinned={len(report.unpinned)}\tdry_run={str(report.dry_run).lower()}"
    )
    return 0
