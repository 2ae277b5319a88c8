"""Unit tests for core config parsing."""

from __future__ import annotations

import os

import pytest

from core.config import CohostConfig
from core.errors import CohostConfigError


def test_from_env_reads_data_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve data root from environment."""
    monkeypatch.setenv("COHOST_DATA_ROOT", "./.tmp-cohost")

    config = CohostConfig.from_env()

    assert config.data_root.name == ".tmp-cohost"


def test_from_env_defaults_gc_keep_to_one(monkeypatch: pytest.MonkeyPatch) -> None:
    """Omitted retention should keep only the newest snapshot."""
    monkeypatch.delenv("COHOST_GC_KEEP", raising=False)

    config = CohostConfig.from_env()

    assert config.gc_keep == 1


def test_from_env_strips_trailing_slash_from_api_url(monkeypatch: pytest.MonkeyPatch) -> None:
    """API URL should be stored without a trailing slash."""
    monkeypatch.setenv("COHOST_IPFS_API_URL", "http://node.local:5001/")

    config = CohostConfig.from_env()

    assert config.ipfs_api_url == "http://node.local:5001"


def test_from_env_raises_for_negative_gc_keep(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for a negative retention count."""
    monkeypatch.setenv("COHOST_GC_KEEP", "-1")

    with pytest.raises(CohostConfigError):
        CohostConfig.from_env()

    assert os.getenv("COHOST_GC_KEEP") == "-1"


def test_from_env_raises_for_non_numeric_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for a timeout that is not a number."""
    monkeypatch.setenv("COHOST_REQUEST_TIMEOUT", "soon")

    with pytest.raises(CohostConfigError):
        CohostConfig.from_env()

    assert True


def test_from_env_raises_for_unknown_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should reject log levels outside the supported set."""
    monkeypatch.setenv("COHOST_LOG_LEVEL", "chatty")

    with pytest.raises(CohostConfigError):
        CohostConfig.from_env()

    assert True


def test_from_env_raises_for_non_http_api_url(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should reject API URLs without an http scheme."""
    monkeypatch.setenv("COHOST_IPFS_API_URL", "/ip4/127.0.0.1/tcp/5001")

    with pytest.raises(CohostConfigError):
        CohostConfig.from_env()

    assert True
