import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path

from .errors import StoreError
from .interfaces import Document, InsertResult, ThumbnailStore

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

# Largest value SQLite accepts for LIMIT and OFFSET.
SQLITE_MAX_INT = 2**63 - 1

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS pdf_thumbnails (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        url TEXT NOT NULL UNIQUE,
        thumbnail TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_pdf_thumbnails_created
    ON pdf_thumbnails (created_at DESC, id DESC)
    """,
    """
    CREATE TABLE IF NOT EXISTS pdf_sources (
        url TEXT PRIMARY KEY REFERENCES pdf_thumbnails (url),
        pdf BLOB NOT NULL
    )
    """,
)

_COLUMNS = "id, url, thumbnail, created_at"


def _utc_stamp(moment: datetime) -> str:
    # Fixed width so lexical order in SQLite equals chronological order.
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _is_unique_violation(err: sqlite3.IntegrityError) -> bool:
    code = getattr(err, "sqlite_errorname", None)
    if code is not None:
        return code in {"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}
    return "UNIQUE constraint failed" in str(err)


class SqliteThumbnailStore(ThumbnailStore):
    """Durable table of processed documents keyed by url.

    A single connection is shared by every caller and serialized with a lock;
    the service calls into the store from worker threads. Pass ":memory:" for
    an ephemeral database that lives as long as the store object.
    """

    def __init__(self, db_path: str) -> None:
        if not db_path:
            raise StoreError("no database path provided")
        if db_path == MEMORY:
            self._path = MEMORY
        else:
            self._path = str(Path(db_path).resolve())
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None
        self._last_stamp = ""

    @property
    def path(self) -> str:
        return self._path

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            try:
                if self._path != MEMORY:
                    Path(self._path).parent.mkdir(parents=True, exist_ok=True)
                self._conn = sqlite3.connect(self._path, check_same_thread=False)
            except (sqlite3.Error, OSError) as e:
                raise StoreError(f"cannot open database {self._path}: {e}") from e
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def setup(self) -> None:
        with self._lock:
            try:
                with self.conn:
                    for statement in _SCHEMA:
                        self.conn.execute(statement)
            except sqlite3.Error as e:
                raise StoreError(f"schema initialization failed: {e}") from e
        logger.debug("Store ready at %s", self._path)

    def exists(self, url: str) -> bool:
        row = self._query_one("SELECT 1 FROM pdf_thumbnails WHERE url = ?", (url,))
        return row is not None

    def insert(self, url: str, thumbnail: str, pdf: bytes | None = None) -> str:
        with self._lock:
            stamp = self._next_stamp()
            try:
                with self.conn:
                    self.conn.execute(
                        "INSERT INTO pdf_thumbnails (url, thumbnail, created_at) VALUES (?, ?, ?)",
                        (url, thumbnail, stamp),
                    )
                    if pdf is not None:
                        self.conn.execute(
                            "INSERT INTO pdf_sources (url, pdf) VALUES (?, ?)",
                            (url, sqlite3.Binary(pdf)),
                        )
            except sqlite3.IntegrityError as e:
                if _is_unique_violation(e):
                    logger.debug("Document for %s already present", url)
                    return InsertResult.DUPLICATE
                raise StoreError(f"insert failed for {url}: {e}") from e
            except sqlite3.Error as e:
                raise StoreError(f"insert failed for {url}: {e}") from e
            self._last_stamp = stamp
        return InsertResult.INSERTED

    def fetch_page(self, start: int = 0, size: int = 0) -> list[Document]:
        sql = f"SELECT {_COLUMNS} FROM pdf_thumbnails ORDER BY created_at DESC, id DESC"
        params: tuple[object, ...] = ()
        if size > 0:
            if start > SQLITE_MAX_INT:
                return []
            sql += " LIMIT ? OFFSET ?"
            params = (min(size, SQLITE_MAX_INT), start)
        return [self._to_document(r) for r in self._query_all(sql, params)]

    def get(self, url: str) -> Document | None:
        row = self._query_one(f"SELECT {_COLUMNS} FROM pdf_thumbnails WHERE url = ?", (url,))
        return self._to_document(row) if row is not None else None

    def get_pdf(self, url: str) -> bytes | None:
        row = self._query_one("SELECT pdf FROM pdf_sources WHERE url = ?", (url,))
        return bytes(row["pdf"]) if row is not None else None

    def count(self) -> int:
        row = self._query_one("SELECT COUNT(*) AS n FROM pdf_thumbnails", ())
        return int(row["n"]) if row is not None else 0

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _next_stamp(self) -> str:
        stamp = _utc_stamp(datetime.now(timezone.utc))
        # Wall clock may step backwards; never hand out an older stamp.
        return max(stamp, self._last_stamp)

    def _query_one(self, sql: str, params: tuple[object, ...]) -> sqlite3.Row | None:
        with self._lock:
            try:
                return self.conn.execute(sql, params).fetchone()
            except sqlite3.Error as e:
                raise StoreError(str(e)) from e

    def _query_all(self, sql: str, params: tuple[object, ...]) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self.conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StoreError(str(e)) from e

    @staticmethod
    def _to_document(row: sqlite3.Row) -> Document:
        return Document(
            id=int(row["id"]),
            url=str(row["url"]),
            thumbnail=str(row["thumbnail"]),
            created_at=str(row["created_at"]),
        )
