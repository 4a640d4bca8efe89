# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Browser management for CareerScout.

BrowserManager owns the Playwright lifecycle for one crawl: it launches the
browser, creates a context with a desktop viewport and user agent, and opens
the single page the crawler agent drives.
"""

from __future__ import annotations

from typing import Any, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from careerscout.exceptions import BrowserError
from careerscout.utils.logger import logger


class BrowserManager:
    """
    Manages a Playwright browser instance and its lifecycle.

    Attributes:
        headless: Whether the browser runs without a visible window
        browser_type: chromium, firefox or webkit
        launch_options: Additional Playwright launch options

    Example:
        >>> async with BrowserManager(headless=True) as manager:
        ...     executor = PlaywrightToolExecutor(manager.page)
    """

    DEFAULT_USER_AGENT = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    )

    # Chromium flags that hide the most common automation fingerprint
    STEALTH_ARGS = [
        "--disable-blink-features=AutomationControlled",
        "--no-first-run",
        "--no-default-browser-check",
        "--disable-dev-shm-usage",
        "--disable-infobars",
    ]

    def __init__(
        self,
        headless: bool = True,
        browser_type: str = "chromium",
        stealth: bool = True,
        user_agent: Optional[str] = None,
        locale: str = "en-US",
        **launch_options: Any,
    ) -> None:
        self.headless = headless
        self.browser_type = browser_type
        self.stealth = stealth
        self.user_agent = user_agent or self.DEFAULT_USER_AGENT
        self.locale = locale
        self.launch_options = launch_options
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def start(self) -> None:
        """
        Launch the browser and open the initial page.

        Raises:
            BrowserError: If the browser fails to start or the type is unsupported
        """
        try:
            logger.info(f"Starting {self.browser_type} browser (headless={self.headless})")
            self._playwright = await async_playwright().start()

            launchers = {
                "chromium": self._playwright.chromium,
                "firefox": self._playwright.firefox,
                "webkit": self._playwright.webkit,
            }
            launcher = launchers.get(self.browser_type)
            if launcher is None:
                raise BrowserError(f"Unsupported browser type: {self.browser_type}")

            launch_opts = dict(self.launch_options)
            if self.stealth and self.browser_type == "chromium":
                existing_args = launch_opts.get("args", [])
                launch_opts["args"] = list(dict.fromkeys(existing_args + self.STEALTH_ARGS))

            self._browser = await launcher.launch(headless=self.headless, **launch_opts)
            self._context = await self._browser.new_context(
                viewport={"width": 1920, "height": 1080},
                user_agent=self.user_agent,
                locale=self.locale,
            )
            if self.stealth:
                await self._context.add_init_script(
                    "Object.defineProperty(navigator, 'webdriver', {get: () => undefined});"
                )
            self._page = await self._context.new_page()
            logger.info("Browser started successfully")
        except BrowserError:
            await self._close_quietly()
            raise
        except Exception as e:
            logger.error(f"Failed to start browser: {e}")
            await self._close_quietly()
            raise BrowserError(f"Failed to start browser: {e}") from e

    async def stop(self) -> None:
        """
        Close the page, context, browser and Playwright, in that order.

        Raises:
            BrowserError: If cleanup fails
        """
        try:
            logger.info("Stopping browser")
            if self._page:
                await self._page.close()
            if self._context:
                await self._context.close()
            if self._browser:
                await self._browser.close()
            if self._playwright:
                await self._playwright.stop()
            logger.info("Browser stopped successfully")
        except Exception as e:
            logger.error(f"Error stopping browser: {e}")
            raise BrowserError(f"Failed to stop browser: {e}") from e
        finally:
            self._page = self._context = self._browser = self._playwright = None

    async def _close_quietly(self) -> None:
        try:
            await self.stop()
        except BrowserError as e:
            logger.debug(f"Cleanup after failed start: {e}")

    @property
    def page(self) -> Page:
        """The page the agent drives."""
        if not self._page:
            raise BrowserError("No active page. Call start() first.")
        return self._page

    @property
    def context(self) -> BrowserContext:
        if not self._context:
            raise BrowserError("Browser context not initialized. Call start() first.")
        return self._context

    async def __aenter__(self) -> "BrowserManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()
