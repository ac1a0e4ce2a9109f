import requests

from .errors import FetchError, RenderError
from .interfaces import FetchGateway, HookTransport, RenderGateway


class RequestsPdfFetcher(FetchGateway):
    def __init__(self, *, timeout_sec: float = 30.0, max_bytes: int | None = None) -> None:
        self._timeout = timeout_sec
        self._max_bytes = max_bytes

    def fetch_pdf(self, url: str) -> bytes:
        try:
            with requests.get(url, timeout=self._timeout, stream=True) as resp:
                if not resp.ok:
                    raise FetchError(resp.reason or f"HTTP {resp.status_code}")
                return self._read_body(resp)
        except requests.RequestException as e:
            raise FetchError(str(e)) from e

    def _read_body(self, resp: requests.Response) -> bytes:
        chunks: list[bytes] = []
        size = 0
        CHUNK = 1024 * 1024
        for chunk in resp.iter_content(chunk_size=CHUNK):
            if not chunk:
                continue
            size += len(chunk)
            if self._max_bytes is not None and size > self._max_bytes:
                raise FetchError(f"document exceeds {self._max_bytes} bytes")
            chunks.append(chunk)
        return b"".join(chunks)


class PyMuPdfRenderer(RenderGateway):
    """Render page 1 of a PDF to JPEG with PyMuPDF.

    zoom=0.35 keeps thumbnails small; quality 70 matches what clients of the
    service have always received.
    """

    def __init__(self, *, zoom: float = 0.35, jpeg_quality: int = 70) -> None:
        self._zoom = zoom
        self._quality = jpeg_quality

    def render_thumbnail(self, pdf: bytes) -> bytes:
        import fitz  # pymupdf

        try:
            with fitz.open(stream=pdf, filetype="pdf") as doc:
                if doc.page_count == 0:
                    return b""
                page = doc.load_page(0)
                pix = page.get_pixmap(matrix=fitz.Matrix(self._zoom, self._zoom), alpha=False)
                return pix.tobytes("jpeg", jpg_quality=self._quality)
        except (RuntimeError, ValueError) as e:
            # fitz.FileDataError and friends derive from RuntimeError
            raise RenderError(f"cannot render document: {e}") from e


class RequestsHookTransport(HookTransport):
    def __init__(self, *, timeout_sec: float = 10.0) -> None:
        self._timeout = timeout_sec

    def post_json(self, url: str, payload: dict[str, object]) -> None:
        resp = requests.post(
            url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=self._timeout,
        )
        if not resp.ok:
            raise RuntimeError(f"hook answered {resp.status_code} {resp.reason}")
