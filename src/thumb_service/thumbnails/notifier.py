import asyncio
import logging

from .interfaces import HookData, HookTransport

logger = logging.getLogger(__name__)


class HookNotifier:
    """Best-effort delivery of one outcome report to a caller supplied hook.

    Delivery is attempted exactly once. Failures are logged and never raised,
    so a broken or unreachable hook cannot affect the pipeline that reports to it.
    """

    def __init__(self, transport: HookTransport) -> None:
        self._transport = transport

    async def notify(self, hook: str | None, url: str, ok: bool, status_text: str = "") -> bool:
        if not hook:
            return False
        payload = HookData(url=url, ok=ok, status_text=status_text).to_dict()
        try:
            await asyncio.to_thread(self._transport.post_json, hook, payload)
        except Exception as e:
            logger.error("Calling hook [%s] failed with error %s", hook, e)
            return False
        logger.debug("Hook [%s] notified for %s (ok=%s)", hook, url, ok)
        return True
