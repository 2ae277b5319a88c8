"""Unit tests for registry document IO."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from core.errors import CohostRegistryError
from core.types import Snapshot
from store.registry_io import read_registry_file, write_registry_file


def _snapshot() -> Snapshot:
    return Snapshot(
        content_id="bafy-root",
        size=123,
        created_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )


def test_read_registry_file_returns_empty_when_missing(tmp_path) -> None:
    """A missing document means an empty registry."""
    assert read_registry_file(tmp_path / "registry.json") == {}


def test_write_registry_file_persists_versioned_document(tmp_path) -> None:
    """Written documents should carry the format version and entries."""
    registry_path = tmp_path / "registry.json"

    write_registry_file(registry_path, {"a.com": [_snapshot()]})
    payload = json.loads(registry_path.read_text(encoding="utf-8"))

    assert payload["format_version"] == 1
    assert payload["domains"]["a.com"][0]["size"] == 123


def test_write_registry_file_leaves_no_temp_files(tmp_path) -> None:
    """Atomic replacement should not leave temporary siblings behind."""
    registry_path = tmp_path / "registry.json"

    write_registry_file(registry_path, {"a.com": [_snapshot()]})
    write_registry_file(registry_path, {})

    assert sorted(path.name for path in tmp_path.iterdir()) == ["registry.json"]


def test_write_registry_file_skips_empty_domains(tmp_path) -> None:
    """Domains without snapshots should not be persisted."""
    registry_path = tmp_path / "registry.json"

    write_registry_file(registry_path, {"a.com": [], "b.com": [_snapshot()]})

    assert list(read_registry_file(registry_path)) == ["b.com"]


def test_written_document_reads_back(tmp_path) -> None:
    """Snapshots should survive a write and read unchanged."""
    registry_path = tmp_path / "registry.json"
    write_registry_file(registry_path, {"a.com": [_snapshot()]})

    assert read_registry_file(registry_path) == {"a.com": [_snapshot()]}


def test_read_registry_file_rejects_unknown_format_version(tmp_path) -> None:
    """Documents written by an unknown format version should fail loudly."""
    registry_path = tmp_path / "registry.json"
    registry_path.write_text(json.dumps({"format_version": 99, "domains": {}}), encoding="utf-8")

    with pytest.raises(CohostRegistryError):
        read_registry_file(registry_path)

    assert True


def test_read_registry_file_rejects_negative_size(tmp_path) -> None:
    """Malformed snapshot entries should raise a registry error."""
    registry_path = tmp_path / "registry.json"
    entry = {"content_id": "bafy", "size": -1, "created_at": "2024-01-01T00:00:00+00:00"}
    registry_path.write_text(
        json.dumps({"format_version": 1, "domains": {"a.com": [entry]}}),
        encoding="utf-8",
    )

    with pytest.raises(CohostRegistryError):
        read_registry_file(registry_path)

    assert True


def test_write_registry_file_keeps_old_document_when_fsync_fails(
    tmp_path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A write that fails before the rename should not touch the target."""
    registry_path = tmp_path / "registry.json"
    write_registry_file(registry_path, {"a.com": [_snapshot()]})
    before = registry_path.read_text(encoding="utf-8")

    def failing_fsync(fd: int) -> None:
        raise OSError("I/O error")

    monkeypatch.setattr("store.registry_io.os.fsync", failing_fsync)
    with pytest.raises(CohostRegistryError):
        write_registry_file(registry_path, {})

    assert registry_path.read_text(encoding="utf-8") == before
    assert sorted(path.name for path in tmp_path.iterdir()) == ["registry.json"]
