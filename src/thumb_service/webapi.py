import asyncio
import base64
import binascii
import logging
import os

from fastapi import APIRouter, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from thumb_service import __version__
from thumb_service.config import Settings, load_settings
from thumb_service.logging_config import configure_logging
from thumb_service.thumbnails import ConfigError, HookNotifier, SqliteThumbnailStore, StoreError, ThumbnailService
from thumb_service.thumbnails.adapters import PyMuPdfRenderer, RequestsHookTransport, RequestsPdfFetcher
from thumb_service.thumbnails.store import SQLITE_MAX_INT

logger = logging.getLogger(__name__)

app = FastAPI(
    title="PDF Thumbnail Service",
    version=os.getenv("THUMB_SERVICE_VERSION", __version__),
    description=(
        "Accepts PDF urls, renders a thumbnail of the first page in the "
        "background and serves stored thumbnails newest first."
    ),
)

router = APIRouter(prefix="/1")

SERVICE: ThumbnailService | None = None


class UploadRequest(BaseModel):
    url: str
    hook: str | None = None


def build_service(settings: Settings) -> ThumbnailService:
    """Wire the store, the converter capabilities and the notifier from settings."""
    store = SqliteThumbnailStore(settings.db_path)
    fetcher = RequestsPdfFetcher(timeout_sec=settings.fetch_timeout_sec, max_bytes=settings.max_pdf_bytes)
    renderer = PyMuPdfRenderer(zoom=settings.thumbnail_zoom, jpeg_quality=settings.jpeg_quality)
    notifier = HookNotifier(RequestsHookTransport(timeout_sec=settings.hook_timeout_sec))
    return ThumbnailService(
        store=store,
        fetcher=fetcher,
        renderer=renderer,
        notifier=notifier,
        workers=settings.workers,
        step_timeout_sec=settings.step_timeout_sec,
        keep_pdf=settings.keep_pdf,
        notify_existing=settings.hook_on_existing,
    )


def _service() -> ThumbnailService:
    if SERVICE is None:
        raise HTTPException(status_code=503, detail={"code": "not_ready", "message": "service not started"})
    return SERVICE


async def _read(fn, *args):
    try:
        return await asyncio.to_thread(fn, *args)
    except StoreError as e:
        logger.exception("Store read failed")
        raise HTTPException(status_code=500, detail={"code": "storage_error", "message": str(e)}) from e


@app.on_event("startup")
async def _startup() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    # Initialize domain service and start workers
    global SERVICE
    SERVICE = build_service(settings)
    await asyncio.to_thread(SERVICE.store.setup)
    await SERVICE.start()
    logger.info("Serving thumbnails from %s", settings.db_path)


@app.on_event("shutdown")
async def _shutdown() -> None:
    global SERVICE
    if SERVICE is not None:
        await SERVICE.stop()
        SERVICE.store.close()
        SERVICE = None


@app.get("/health")
async def health() -> dict[str, object]:
    """Basic health check endpoint."""
    count = await _read(_service().store.count)
    return {"status": "ok", "documents": count}


@router.post("/pdf/upload")
async def upload(req: UploadRequest) -> dict[str, object]:
    """Schedule thumbnail extraction for a PDF url.

    Answers immediately with an empty object; the outcome is only reported to
    the optional hook once the background pipeline finishes.
    """
    _service().submit(req.url, req.hook)
    return {}


@router.get("/pdf/thumbnails")
async def list_thumbnails(
    from_: int = Query(0, alias="from", ge=0, le=SQLITE_MAX_INT),
    size: int = Query(0, ge=0, le=SQLITE_MAX_INT),
) -> JSONResponse:
    """Stored thumbnails, newest first. `size=0` returns every document."""
    docs = await _read(_service().store.fetch_page, from_, size)
    return JSONResponse(content=[d.to_dict() for d in docs])


@router.get("/pdf/thumbnail")
async def get_thumbnail(url: str = Query(...)) -> Response:
    doc = await _read(_service().store.get, url)
    if doc is None:
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": "thumbnail not found"})
    try:
        image = base64.b64decode(doc.thumbnail, validate=True)
    except binascii.Error as e:
        raise HTTPException(status_code=500, detail={"code": "corrupt_thumbnail", "message": str(e)}) from e
    return Response(content=image, media_type="image/jpeg")


@router.get("/pdf/source")
async def get_source(url: str = Query(...)) -> Response:
    pdf = await _read(_service().store.get_pdf, url)
    if pdf is None:
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": "source not retained"})
    return Response(content=pdf, media_type="application/pdf")


app.include_router(router)


def run() -> None:
    """Run the ASGI server using uvicorn.

    DB_PATH and PORT must be set (environment or .env); HOST defaults to 0.0.0.0.
    """
    import uvicorn

    try:
        settings = load_settings()
    except ConfigError as e:
        configure_logging()
        logger.error("%s", e)
        raise SystemExit(1)
    configure_logging(settings.log_level)
    uvicorn.run("thumb_service.webapi:app", host=settings.host, port=settings.port, reload=settings.reload)


if __name__ == "__main__":
    run()
