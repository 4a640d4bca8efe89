# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Tests for BrowserManager with a mocked Playwright."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from careerscout.core.browser import BrowserManager
from careerscout.exceptions import BrowserError


@pytest.fixture
def playwright():
    page = MagicMock(close=AsyncMock())
    context = MagicMock(new_page=AsyncMock(return_value=page), add_init_script=AsyncMock(), close=AsyncMock())
    browser = MagicMock(new_context=AsyncMock(return_value=context), close=AsyncMock())
    instance = MagicMock(stop=AsyncMock())
    for name in ("chromium", "firefox", "webkit"):
        setattr(instance, name, MagicMock(launch=AsyncMock(return_value=browser)))

    starter = MagicMock()
    starter.start = AsyncMock(return_value=instance)
    with patch("careerscout.core.browser.async_playwright", return_value=starter):
        yield {"instance": instance, "browser": browser, "context": context, "page": page}


class TestBrowserManager:
    @pytest.mark.asyncio
    async def test_lifecycle(self, playwright):
        async with BrowserManager(headless=True) as manager:
            assert manager.page is playwright["page"]
            assert manager.context is playwright["context"]

        launch = playwright["instance"].chromium.launch
        assert launch.await_args.kwargs["headless"] is True
        assert "--disable-blink-features=AutomationControlled" in launch.await_args.kwargs["args"]
        playwright["context"].add_init_script.assert_awaited_once()
        playwright["page"].close.assert_awaited_once()
        playwright["instance"].stop.assert_awaited_once()
        with pytest.raises(BrowserError):
            manager.page

    @pytest.mark.asyncio
    async def test_firefox_without_stealth_args(self, playwright):
        manager = BrowserManager(browser_type="firefox", stealth=False, locale="ko-KR")
        await manager.start()

        assert "args" not in playwright["instance"].firefox.launch.await_args.kwargs
        assert playwright["browser"].new_context.await_args.kwargs["locale"] == "ko-KR"
        playwright["context"].add_init_script.assert_not_awaited()
        await manager.stop()

    @pytest.mark.asyncio
    async def test_unsupported_browser(self, playwright):
        manager = BrowserManager(browser_type="netscape")

        with pytest.raises(BrowserError, match="Unsupported browser type"):
            await manager.start()
        playwright["instance"].stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_launch_failure_is_wrapped(self, playwright):
        playwright["instance"].chromium.launch.side_effect = RuntimeError("executable missing")

        with pytest.raises(BrowserError, match="executable missing"):
            await BrowserManager().start()
