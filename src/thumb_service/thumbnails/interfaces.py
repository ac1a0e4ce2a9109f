from dataclasses import dataclass
from typing import Protocol


class InsertResult:
    INSERTED = "inserted"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class Document:
    id: int
    url: str
    thumbnail: str
    created_at: str

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "url": self.url,
            "thumbnail": self.thumbnail,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class HookData:
    """Payload posted to a caller supplied webhook."""

    url: str
    ok: bool
    status_text: str = ""

    def to_dict(self) -> dict[str, object]:
        return {"url": self.url, "ok": self.ok, "statusText": self.status_text}


@dataclass(frozen=True)
class ProcessOutcome:
    url: str
    ok: bool
    status_text: str = ""
    # True when the url was already stored and the pipeline did not run.
    skipped: bool = False


class FetchGateway(Protocol):
    def fetch_pdf(self, url: str) -> bytes:
        """Retrieve the document at url.
        Raises FetchError when the request fails or the response is not successful.
        This is a blocking call; callers should offload to threads if needed.
        """


class RenderGateway(Protocol):
    def render_thumbnail(self, pdf: bytes) -> bytes:
        """Render the first page of the PDF to a compressed raster image.
        May return an empty result; raises RenderError on unreadable input.
        """


class HookTransport(Protocol):
    def post_json(self, url: str, payload: dict[str, object]) -> None:
        ...


class ThumbnailStore(Protocol):
    def setup(self) -> None:
        ...

    def exists(self, url: str) -> bool:
        ...

    def insert(self, url: str, thumbnail: str, pdf: bytes | None = None) -> str:
        ...

    def fetch_page(self, start: int = 0, size: int = 0) -> list[Document]:
        ...

    def get(self, url: str) -> Document | None:
        ...

    def get_pdf(self, url: str) -> bytes | None:
        ...

    def count(self) -> int:
        ...

    def close(self) -> None:
        ...
