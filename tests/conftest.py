"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path


def pytest_sessionstart() -> None:
    """Add src and test helpers to sys.path and keep logs quiet during tests."""
    tests_root = Path(__file__).resolve().parent
    for import_path in (tests_root.parent / "src", tests_root):
        if str(import_path) not in sys.path:
            sys.path.insert(0, str(import_path))
    from core.logging_config import configure_logging

    configure_logging("error")
