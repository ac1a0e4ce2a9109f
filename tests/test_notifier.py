# tests/test_notifier.py
"""
Tests for hook notification.
"""

from __future__ import annotations

import asyncio
import logging

from thumb_service.thumbnails import HookData, HookNotifier


def test_missing_hook_is_a_noop(transport):
    notifier = HookNotifier(transport)

    assert asyncio.run(notifier.notify(None, "url1", True)) is False
    assert asyncio.run(notifier.notify("", "url1", True)) is False
    assert transport.calls == []


def test_posts_url_ok_and_status_text(transport):
    notifier = HookNotifier(transport)

    delivered = asyncio.run(notifier.notify("http://hook", "url1", False, "Not Found"))

    assert delivered is True
    assert transport.calls == [("http://hook", {"url": "url1", "ok": False, "statusText": "Not Found"})]


def test_delivery_failure_is_logged_and_swallowed(transport, caplog):
    transport.fail = True
    notifier = HookNotifier(transport)

    with caplog.at_level(logging.ERROR, logger="thumb_service"):
        delivered = asyncio.run(notifier.notify("http://hook", "url1", True))

    assert delivered is False
    assert len(transport.calls) == 1
    assert "Calling hook [http://hook] failed" in caplog.text


def test_hook_data_uses_wire_names():
    assert HookData(url="u", ok=True).to_dict() == {"url": "u", "ok": True, "statusText": ""}
