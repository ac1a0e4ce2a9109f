"""
Domain layer for PDF thumbnails.
Provides gateway interfaces, the SQLite store, the outcome notifier and the
service that drives submitted urls through fetch, render and persist, so
front-ends (HTTP or others) can use the same core logic.
"""

from .errors import (
    ConfigError,
    EmptyThumbnailError,
    FetchError,
    RenderError,
    StoreError,
    ThumbnailServiceError,
)
from .interfaces import (
    Document,
    FetchGateway,
    HookData,
    HookTransport,
    InsertResult,
    ProcessOutcome,
    RenderGateway,
    ThumbnailStore,
)
from .notifier import HookNotifier
from .service import ThumbnailService
from .store import SqliteThumbnailStore
