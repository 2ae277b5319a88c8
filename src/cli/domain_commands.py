"""Domain command wiring for Cohost CLI: add, rm and ls."""

from __future__ import annotations

import argparse
from typing import Any

from cli.output import make_emitter, report_failure
from core.types import AddResult, DomainFailure
from engine.cohost_client import CohostClient


def add_add_command(subparsers: Any) -> None:
    """Register add subcommand."""
    parser = subparsers.add_parser("add", help="Cohost the current content of domains")
    parser.add_argument("domains", nargs="+", help="Domains publishing a DNSLink record")


def add_rm_command(subparsers: Any) -> None:
    """Register rm subcommand."""
    parser = subparsers.add_parser("rm", help="Stop cohosting domains")
    parser.add_argument("domains", nargs="+", help="Cohosted domains to remove")


def add_ls_command(subparsers: Any) -> None:
    """Register ls subcommand."""
    parser = subparsers.add_parser("ls", help="List cohosted domains or their snapshots")
    parser.add_argument("domains", nargs="*", help="Domains whose snapshots to list")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when a listed domain is not cohosted",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Include snapshot size and creation time",
    )


def run_add_command(client: CohostClient, args: argparse.Namespace) -> int:
    """Cohost each domain and print one line per domain plus a total."""
    emit = make_emitter(args.silent)
    outcomes = client.engine.add(args.domains)
    width = max(len(domain) for domain in args.domains)
    total_size = 0
    succeeded = 0
    for outcome in outcomes:
        if isinstance(outcome, DomainFailure):
            report_failure(outcome, width)
            continue
        total_size += outcome.cumulative_size
        succeeded += 1
        emit(_format_add_result(outcome, width))
    emit(f"total_size={total_size}\tdomains={succeeded}")
    return _exit_code(outcomes)


def run_rm_command(client: CohostClient, args: argparse.Namespace) -> int:
    """Remove each domain and print what was released."""
    emit = make_emitter(args.silent)
    outcomes = client.engine.rm(args.domains)
    for outcome in outcomes:
        if isinstance(outcome, DomainFailure):
            report_failure(outcome)
            continue
        emit(
            f"{outcome.domain}\tremoved_snapshots={outcome.removed_snapshots}"
            f"\tunpinned={len(outcome.unpinned)}"
        )
    return _exit_code(outcomes)


def run_ls_command(client: CohostClient, args: argparse.Namespace) -> int:
    """List domains, or the snapshots of the given domains."""
    emit = make_emitter(args.silent)
    if not args.domains:
        for domain in client.engine.list_domains():
            emit(domain)
        return 0
    for domain in args.domains:
        snapshots = client.engine.snapshots(domain, strict=args.strict)
        emit(f"{domain}\tsnapshots={len(snapshots)}")
        for snapshot in snapshots:
            if args.verbose:
                emit(
                    f"  {snapshot.content_id}\t{snapshot.size}\t"
                    f"{snapshot.created_at.isoformat()}"
                )
            else:
                emit(f"  {snapshot.content_id}")
    return 0


def _format_add_result(result: AddResult, width: int) -> str:
    status = "new" if result.is_new else "unchanged"
    return (
        f"{result.domain.ljust(width)}\t{result.content_id}\t"
        f"{result.cumulative_size}\t{status}"
    )


def _exit_code(outcomes: tuple[object, ...]) -> int:
    """Return 1 when any domain failed, otherwise 0."""
    return 1 if any(isinstance(outcome, DomainFailure) for outcome in outcomes) else 0
