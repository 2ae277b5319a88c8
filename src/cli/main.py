"""Cohost CLI entry points.
This module exposes the add, rm, ls, sync and gc commands.
It maps argparse commands onto engine calls and exit codes.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
import sys
from pathlib import Path
from typing import Sequence

from cli.domain_commands import (
    add_add_command,
    add_ls_command,
    add_rm_command,
    run_add_command,
    run_ls_command,
    run_rm_command,
)
from cli.maintenance_commands import (
    add_gc_command,
    add_sync_command,
    run_gc_command,
    run_sync_command,
)
from cli.output import make_emitter, report_fatal
from core.config import CohostConfig, parse_api_url
from core.errors import CohostError
from core.logging_config import configure_logging
from engine.cohost_client import CohostClient

_COMMAND_HANDLERS = {
    "add": run_add_command,
    "rm": run_rm_command,
    "ls": run_ls_command,
    "sync": run_sync_command,
    "gc": run_gc_command,
}
_OPTIONS_WITH_VALUES = ("--data-root", "--api-url")


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="cohost",
        description="Cohost websites on your IPFS node",
        epilog="Example: cohost docs.ipfs.io cid.ipfs.io",
    )
    parser.add_argument("--data-root", help="Override COHOST_DATA_ROOT for this command")
    parser.add_argument("--api-url", help="Override COHOST_IPFS_API_URL for this command")
    parser.add_argument(
        "--silent",
        "-s",
        action="store_true",
        help="Just do your job: print errors only",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_add_command(subparsers)
    add_rm_command(subparsers)
    add_ls_command(subparsers)
    add_sync_command(subparsers)
    add_gc_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Cohost CLI.

    Bare domains are treated as ``add`` arguments.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    arguments = list(sys.argv[1:] if argv is None else argv)
    if not arguments:
        parser.print_help()
        return 0
    args = parser.parse_args(_with_default_command(arguments))
    handler = _COMMAND_HANDLERS.get(args.command)
    if handler is None:
        parser.error(f"Unsupported command: {args.command}")
        return 2
    try:
        config = _build_config(args.data_root, args.api_url)
        configure_logging(config.log_level)
        with _build_client(config) as client:
            make_emitter(args.silent)(f"provider={client.describe_store()}")
            return handler(client, args)
    except CohostError as error:
        report_fatal(error)
        return 1


def _build_config(data_root: str | None, api_url: str | None) -> CohostConfig:
    """Build config with optional command-line overrides.

    Args:
        data_root: Optional registry directory override.
        api_url: Optional node API URL override.

    Returns:
        Validated config.
    """
    config = CohostConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    if api_url:
        config = replace(config, ipfs_api_url=parse_api_url(api_url, source="--api-url"))
    return config


def _build_client(config: CohostConfig) -> CohostClient:
    """Build the SDK client used by every command."""
    return CohostClient(config)


def _with_default_command(arguments: list[str]) -> list[str]:
    """Insert ``add`` before the first positional when it is not a command."""
    index = 0
    while index < len(arguments):
        token = arguments[index]
        if token in _OPTIONS_WITH_VALUES:
            index += 2
            continue
        if token.startswith("-"):
            index += 1
            continue
        if token not in _COMMAND_HANDLERS:
            return arguments[:index] + ["add"] + arguments[index:]
        return arguments
    return arguments
