"""Pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from embedframe.config import clear_settings
from embedframe.messenger import CrossFrameMessenger
from embedframe.observer import MutationStream
from embedframe.protocol import HostOrigin
from tests.helpers import APP_JS, SHELL_HTML, Heights, RecordingTransport


_BUILD_ENV = ("API_ENDPOINT", "GIT_REF", "NODE_ENV", "EMBEDFRAME_CONFIG_FILE")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch):
    """Isolate tests from build variables and cached settings."""
    for name in _BUILD_ENV:
        monkeypatch.delenv(name, raising=False)
    clear_settings()
    yield
    clear_settings()


@pytest.fixture
def transport() -> RecordingTransport:
    """A transport recording (origin, payload) pairs."""
    return RecordingTransport()


@pytest.fixture
def host_origin() -> HostOrigin:
    """Origin of https://example.com/page."""
    return HostOrigin.from_url("https://example.com/page")


@pytest.fixture
def messenger(host_origin: HostOrigin, transport: RecordingTransport) -> CrossFrameMessenger:
    """Messenger restricted to https://example.com."""
    return CrossFrameMessenger(host_origin, transport)


@pytest.fixture
def root() -> MutationStream:
    """Structural change stream of the widget root."""
    return MutationStream("parlezvous-comments")


@pytest.fixture
def heights() -> Heights:
    """Height readers starting at 400px."""
    return Heights()


@pytest.fixture
def dist_dir(tmp_path: Path) -> Path:
    """A build output directory with index.html and app.js."""
    dist = tmp_path / "dist"
    dist.mkdir()
    (dist / "index.html").write_bytes(SHELL_HTML.encode("utf-8"))
    (dist / "app.js").write_bytes(APP_JS.encode("utf-8"))
    return dist
