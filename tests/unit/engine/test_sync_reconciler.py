"""Unit tests for registry and pin-set reconciliation."""

from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest

from core.errors import CohostTimeoutError
from core.types import Snapshot
from engine.cohost_engine import CohostEngine
from engine.sync_reconciler import reconcile
from store.ipfs_http_store import IpfsHttpStore
from store.snapshot_registry import SnapshotRegistry
from fake_content_store import FakeContentStore


def _engine_with_domain(tmp_path) -> tuple[CohostEngine, FakeContentStore]:
    store = FakeContentStore()
    store.publish("a.com", "X", 100)
    engine = CohostEngine(SnapshotRegistry(tmp_path).open(), store)
    engine.add(["a.com"])
    return engine, store


def test_sync_repins_missing_recoverable_content(tmp_path) -> None:
    """Tracked content unpinned out-of-band should be pinned again."""
    engine, store = _engine_with_domain(tmp_path)
    store.pinned.discard("X")

    report = engine.sync()

    assert report.repinned == ("X",)
    assert "X" in store.list_pinned()
    assert engine.ls(["a.com"]) == {"a.com": ("X",)}


def test_sync_drops_unrecoverable_snapshot(tmp_path) -> None:
    """Tracked content that cannot be retrieved should be dropped from the registry."""
    engine, store = _engine_with_domain(tmp_path)
    store.pinned.discard("X")
    store.unrecoverable.add("X")

    report = engine.sync()

    assert [item.snapshot.content_id for item in report.dropped] == ["X"]
    assert engine.ls() == ()


def test_sync_drops_only_the_unrecoverable_snapshots(tmp_path) -> None:
    """Other snapshots of the same domain should survive a drop."""
    engine, store = _engine_with_domain(tmp_path)
    store.publish("a.com", "Z", 120)
    engine.add(["a.com"])
    store.pinned.discard("X")
    store.unrecoverable.add("X")

    engine.sync()

    assert engine.ls(["a.com"]) == {"a.com": ("Z",)}


def test_sync_keeps_snapshot_when_repin_times_out(tmp_path) -> None:
    """A stalled pin should abort sync without dropping the snapshot."""
    engine, store = _engine_with_domain(tmp_path)
    store.pinned.discard("X")
    store.slow.add("X")

    with pytest.raises(CohostTimeoutError):
        engine.sync()

    assert engine.ls(["a.com"]) == {"a.com": ("X",)}


def test_sync_keeps_snapshot_when_node_pin_times_out(tmp_path) -> None:
    """A fetchable id whose pin/add times out on the node should stay registered."""
    registry = SnapshotRegistry(tmp_path).open()
    registry.append("a.com", Snapshot("X", 100, datetime(2024, 1, 1, tzinfo=timezone.utc)))

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/v0/pin/ls":
            return httpx.Response(200, json={"Keys": {}})
        if request.url.path == "/api/v0/block/get":
            return httpx.Response(200, content=b"root-block")
        if request.url.path == "/api/v0/pin/add":
            raise httpx.ReadTimeout("timed out", request=request)
        return httpx.Response(404)

    client = httpx.Client(
        base_url="http://node.test:5001/api/v0",
        transport=httpx.MockTransport(handler),
    )
    store = IpfsHttpStore("http://node.test:5001", client=client)

    with pytest.raises(CohostTimeoutError):
        reconcile(registry, store)

    assert [snapshot.content_id for snapshot in registry.get("a.com")] == ["X"]


def test_sync_unpins_orphaned_content(tmp_path) -> None:
    """Pins not tracked by any domain should be reclaimed."""
    engine, store = _engine_with_domain(tmp_path)
    store.pinned.add("ORPHAN")

    report = engine.sync()

    assert report.reclaimed == ("ORPHAN",)
    assert store.list_pinned() == frozenset({"X"})


def test_sync_is_idempotent(tmp_path) -> None:
    """A second sync without intervening changes should do nothing."""
    engine, store = _engine_with_domain(tmp_path)
    store.pinned.discard("X")
    store.pinned.add("ORPHAN")
    engine.sync()

    second = engine.sync()

    assert second.repinned == ()
    assert second.dropped == ()
    assert second.reclaimed == ()


def test_sync_dry_run_changes_nothing(tmp_path) -> None:
    """A dry run should report drift without touching pins or registry."""
    engine, store = _engine_with_domain(tmp_path)
    store.pinned.discard("X")
    store.pinned.add("ORPHAN")

    report = engine.sync(dry_run=True)

    assert report.dry_run
    assert report.repinned == ("X",)
    assert report.reclaimed == ("ORPHAN",)
    assert store.list_pinned() == frozenset({"ORPHAN"})


def test_sync_leaves_every_registry_id_pinned(tmp_path) -> None:
    """After sync, the registry's ids should all be in the pin set."""
    engine, store = _engine_with_domain(tmp_path)
    store.publish("b.com", "Y", 50)
    engine.add(["b.com"])
    store.pinned.clear()

    engine.sync()

    assert store.list_pinned() == frozenset({"X", "Y"})
