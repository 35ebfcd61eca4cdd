"""Shared test fixtures for resteasy.

Provides an isolated XDG environment, a storage helper rooted in
``tmp_path``, and a small recording transport for driving
:class:`~resteasy.client.RestClient` without a network.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from resteasy.models import StorageConfig
from resteasy.storage import StorageHelper


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    directories, and clears all RESTEASY_* environment variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("resteasy.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["RESTEASY_PREVIEW_MODE", "RESTEASY_STORAGE_ROOT"]:
        monkeypatch.delenv(var, raising=False)

    return tmp_path


# ---------------------------------------------------------------------------
# Storage fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def storage(tmp_path: Path) -> StorageHelper:
    """A StorageHelper with every scope under ``tmp_path / "storage"``."""
    helper = StorageHelper(StorageConfig(root=tmp_path / "storage"))
    yield helper
    helper.close()


# ---------------------------------------------------------------------------
# Transport fixture
# ---------------------------------------------------------------------------


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def make_transport() -> Callable[[Callable[[httpx.Request], httpx.Response]], RecordingTransport]:
    """Factory wrapping a request handler in a RecordingTransport."""
    return RecordingTransport


@pytest.fixture
def json_transport() -> Callable[..., RecordingTransport]:
    """Factory for a transport answering every request with the same JSON body."""

    def _make(payload: Any, status_code: int = 200) -> RecordingTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                status_code,
                headers={"content-type": "application/json"},
                content=json.dumps(payload).encode("utf-8"),
            )

        return RecordingTransport(handler)

    return _make
