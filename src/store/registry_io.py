"""Registry document persistence helpers.

This module isolates JSON encoding and atomic file replacement.
It keeps the registry focused on snapshot bookkeeping.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Sequence

from core.constants import REGISTRY_FORMAT_VERSION
from core.errors import CohostRegistryError
from core.types import Snapshot


def read_registry_file(registry_path: Path) -> dict[str, list[Snapshot]]:
    """Read the registry document, returning an empty mapping when absent.

    Args:
        registry_path: Registry JSON path.

    Returns:
        Mapping of domain to snapshots ordered oldest first.

    Raises:
        CohostRegistryError: If the document is unreadable or malformed.
    """
    if not registry_path.exists():
        return {}
    try:
        payload = json.loads(registry_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as error:
        raise CohostRegistryError(
            f"Failed to parse registry at {registry_path}: {error.msg}. "
            "Restore the file from backup or remove it and re-add your domains."
        ) from error
    except OSError as error:
        raise CohostRegistryError(f"Failed to read registry at {registry_path}: {error}.") from error
    if not isinstance(payload, dict) or not isinstance(payload.get("domains"), dict):
        raise CohostRegistryError(
            f"Failed to parse registry at {registry_path}: "
            "expected JSON object with a 'domains' mapping."
        )
    version = payload.get("format_version")
    if version != REGISTRY_FORMAT_VERSION:
        raise CohostRegistryError(
            f"Unsupported registry format version {version!r} at {registry_path}; "
            f"expected {REGISTRY_FORMAT_VERSION}."
        )
    domains: dict[str, list[Snapshot]] = {}
    for domain, entries in payload["domains"].items():
        if not isinstance(entries, list):
            raise CohostRegistryError(
                f"Invalid registry entry for '{domain}' at {registry_path}: expected a list."
            )
        domains[str(domain)] = [_snapshot_from_dict(registry_path, item) for item in entries]
    return domains


def write_registry_file(
    registry_path: Path,
    domains: Mapping[str, Sequence[Snapshot]],
) -> None:
    """Atomically replace the registry document.

    The payload goes to a temporary sibling file which is fsynced and then
    renamed over the target, so readers see either the old or new document.

    Args:
        registry_path: Registry JSON path.
        domains: Mapping of domain to snapshots ordered oldest first.

    Raises:
        CohostRegistryError: If the write fails.
    """
    payload = {
        "format_version": REGISTRY_FORMAT_VERSION,
        "domains": {
            domain: [snapshot_to_dict(snapshot) for snapshot in snapshots]
            for domain, snapshots in domains.items()
            if snapshots
        },
    }
    tmp_path: Path | None = None
    try:
        registry_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=str(registry_path.parent), prefix=f".{registry_path.name}.", suffix=".tmp"
        )
        tmp_path = Path(tmp_name)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(json.dumps(payload, indent=2) + "\n")
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, registry_path)
        tmp_path = None
    except OSError as error:
        raise CohostRegistryError(
            f"Failed to write registry at {registry_path}: {error}. "
            "The previous registry contents were left in place."
        ) from error
    finally:
        if tmp_path is not None:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
    with contextlib.suppress(OSError):
        _fsync_directory(registry_path.parent)


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    """Serialize one snapshot to a JSON-compatible dictionary."""
    return {
        "content_id": snapshot.content_id,
        "size": snapshot.size,
        "created_at": snapshot.created_at.isoformat(),
    }


def _snapshot_from_dict(registry_path: Path, payload: object) -> Snapshot:
    """Deserialize one snapshot entry.

    Args:
        registry_path: Registry path, used in error messages.
        payload: Raw JSON value.

    Returns:
        Typed snapshot.

    Raises:
        CohostRegistryError: If the entry is malformed.
    """
    try:
        if not isinstance(payload, dict):
            raise TypeError("expected object")
        created_at = datetime.fromisoformat(str(payload["created_at"]))
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        size = int(payload["size"])
        if size < 0:
            raise ValueError(f"negative size {size}")
        return Snapshot(
            content_id=str(payload["content_id"]),
            size=size,
            created_at=created_at,
        )
    except (KeyError, TypeError, ValueError) as error:
        raise CohostRegistryError(
            f"Invalid snapshot entry in registry at {registry_path}: {error}."
        ) from error


def _fsync_directory(directory: Path) -> None:
    """Flush a directory entry so a rename survives power loss."""
    if os.name != "posix":
        return
    dir_fd = os.open(str(directory), os.O_RDONLY)
    try:
        os.fsync(dir_fd)
    finally:
        os.close(dir_fd)
