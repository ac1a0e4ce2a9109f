import asyncio
import base64
import logging
from typing import Callable, TypeVar

from .errors import EmptyThumbnailError, StoreError, ThumbnailServiceError
from .interfaces import FetchGateway, InsertResult, ProcessOutcome, RenderGateway, ThumbnailStore
from .notifier import HookNotifier

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ThumbnailService:
    """Core domain service driving submitted urls through the thumbnail pipeline.

    Each submission runs dedup check -> fetch -> render -> persist -> notify.
    The service is framework-agnostic: `submit` only schedules work on the
    running event loop and returns, so the HTTP layer never waits for a
    pipeline. With `workers=0` every submission is a detached task and there is
    no queue depth limit; with `workers > 0` submissions are queued and drained
    by that many worker loops.
    """

    def __init__(
        self,
        store: ThumbnailStore,
        fetcher: FetchGateway,
        renderer: RenderGateway,
        notifier: HookNotifier,
        *,
        workers: int = 0,
        step_timeout_sec: float | None = None,
        keep_pdf: bool = False,
        notify_existing: bool = False,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._renderer = renderer
        self._notifier = notifier
        self._workers = workers
        self._step_timeout = step_timeout_sec
        self._keep_pdf = keep_pdf
        self._notify_existing = notify_existing
        self._queue: asyncio.Queue[tuple[str, str | None]] = asyncio.Queue()
        self._tasks: list[asyncio.Task] = []
        self._pending: set[asyncio.Task] = set()

    @property
    def store(self) -> ThumbnailStore:
        return self._store

    @property
    def queue(self) -> asyncio.Queue[tuple[str, str | None]]:
        return self._queue

    async def start(self) -> None:
        for i in range(self._workers):
            task = asyncio.create_task(self._worker_loop(f"worker-{i+1}"))
            self._tasks.append(task)

    async def stop(self) -> None:
        """Wait for accepted submissions to finish, then cancel idle workers."""
        await self.drain()
        for t in self._tasks:
            t.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

    async def drain(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        if self._tasks:
            await self._queue.join()

    # API used by the HTTP controller; never blocks on the pipeline
    def submit(self, url: str, hook: str | None = None) -> None:
        if self._workers > 0:
            if not self._tasks:
                raise RuntimeError("service workers are not running; call start() first")
            self._queue.put_nowait((url, hook))
            return
        task = asyncio.create_task(self._run_detached(url, hook))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def process(self, url: str, hook: str | None = None) -> ProcessOutcome:
        """Run the pipeline for one url and report the outcome to the hook.

        Already stored urls return a skipped outcome without fetching and,
        unless `notify_existing` is set, without calling the hook. Storage
        failures other than a duplicate url are reported to the hook and then
        re-raised.
        """
        try:
            if await asyncio.to_thread(self._store.exists, url):
                logger.info("Url [%s] already processed, skipping", url)
                if self._notify_existing:
                    await self._notifier.notify(hook, url, True, "")
                return ProcessOutcome(url=url, ok=True, skipped=True)
            await self._convert(url)
        except StoreError as e:
            await self._notifier.notify(hook, url, False, str(e))
            raise
        except Exception as e:
            status_text = str(e) or e.__class__.__name__
            logger.warning("Failed to process url [%s]: %s", url, status_text)
            outcome = ProcessOutcome(url=url, ok=False, status_text=status_text)
        else:
            logger.info("Url [%s] successfully processed", url)
            outcome = ProcessOutcome(url=url, ok=True)
        await self._notifier.notify(hook, url, outcome.ok, outcome.status_text)
        return outcome

    async def _convert(self, url: str) -> None:
        pdf = await self._step("fetch", self._fetcher.fetch_pdf, url)
        image = await self._step("render", self._renderer.render_thumbnail, pdf)
        if not image:
            raise EmptyThumbnailError()
        thumbnail = base64.b64encode(image).decode("ascii")
        result = await asyncio.to_thread(
            self._store.insert, url, thumbnail, pdf if self._keep_pdf else None
        )
        if result == InsertResult.DUPLICATE:
            logger.info("Url [%s] was stored by a concurrent submission", url)

    async def _step(self, name: str, fn: Callable[..., T], *args: object) -> T:
        """Run a blocking capability in a thread, bounded by the step timeout."""
        call = asyncio.to_thread(fn, *args)
        if self._step_timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self._step_timeout)
        except asyncio.TimeoutError:
            raise ThumbnailServiceError(f"{name} timed out after {self._step_timeout:g}s") from None

    async def _run_detached(self, url: str, hook: str | None) -> None:
        try:
            await self.process(url, hook)
        except Exception:
            logger.exception("Failed to process url [%s]", url)

    async def _worker_loop(self, name: str) -> None:
        while True:
            url, hook = await self._queue.get()
            try:
                await self.process(url, hook)
            except Exception:
                logger.exception("%s: failed to process url [%s]", name, url)
            finally:
                self._queue.task_done()
