# tests/conftest.py
"""
Shared fixtures: in-memory store, converter test doubles and a hook recorder.

Each test gets its own recorder instance, so hook deliveries are observed
through an explicit channel instead of process-wide state.
"""

from __future__ import annotations

import threading
import time

import pytest

from thumb_service.thumbnails import HookNotifier, SqliteThumbnailStore, ThumbnailService


class StubFetcher:
    def __init__(self, data: bytes = b"data1") -> None:
        self.data = data
        self.failures: dict[str, Exception] = {}
        self.delay = 0.0
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def fetch_pdf(self, url: str) -> bytes:
        with self._lock:
            self.calls.append(url)
        if self.delay:
            time.sleep(self.delay)
        if url in self.failures:
            raise self.failures[url]
        return self.data


class StubRenderer:
    """Returns its input unchanged unless `result` or `error` is set."""

    def __init__(self) -> None:
        self.result: bytes | None = None
        self.error: Exception | None = None
        self.delay = 0.0
        self.calls: list[bytes] = []
        self._lock = threading.Lock()

    def render_thumbnail(self, pdf: bytes) -> bytes:
        with self._lock:
            self.calls.append(pdf)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return pdf if self.result is None else self.result


class RecordingTransport:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, object]]] = []
        self.fail = False
        self._lock = threading.Lock()

    def post_json(self, url: str, payload: dict[str, object]) -> None:
        with self._lock:
            self.calls.append((url, payload))
        if self.fail:
            raise RuntimeError("hook answered 500 Internal Server Error")

    def wait_for(self, count: int, timeout: float = 5.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            with self._lock:
                if len(self.calls) >= count:
                    return True
            time.sleep(0.01)
        return False


@pytest.fixture
def store():
    target = SqliteThumbnailStore(":memory:")
    target.setup()
    yield target
    target.close()


@pytest.fixture
def fetcher() -> StubFetcher:
    return StubFetcher()


@pytest.fixture
def renderer() -> StubRenderer:
    return StubRenderer()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def make_service(store, fetcher, renderer, transport):
    def _make(**kwargs) -> ThumbnailService:
        kwargs.setdefault("store", store)
        return ThumbnailService(
            fetcher=fetcher,
            renderer=renderer,
            notifier=HookNotifier(transport),
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_pdf() -> bytes:
    fitz = pytest.importorskip("fitz")
    doc = fitz.open()
    page = doc.new_page(width=595, height=842)
    page.insert_text((72, 72), "Thumbnail fixture")
    data = doc.tobytes()
    doc.close()
    return data
