"""Terminal output helpers for Cohost CLI commands."""

from __future__ import annotations

import sys
from typing import Callable

from core.types import DomainFailure


def make_emitter(silent: bool) -> Callable[[str], None]:
    """Return a stdout line printer that honours ``--silent``."""
    if silent:
        return lambda line: None
    return lambda line: print(line)


def report_failure(failure: DomainFailure, width: int = 0) -> None:
    """Print one per-domain failure line to stderr."""
    print(f"{failure.domain.ljust(width)}\terror={failure.error}", file=sys.stderr)


def report_fatal(message: object) -> None:
    """Print the single message for a run-ending failure."""
    print(f"error={message}", file=sys.stderr)
