"""Playwright browser connection and management."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from playwright.async_api import async_playwright, Browser, Page

if TYPE_CHECKING:
    from mts.config.schema import BrowserConfig

logger = logging.getLogger(__name__)


class BrowserManager:
    """Manages a Playwright browser: remote over WebSocket or launched locally."""

    def __init__(self, config: "BrowserConfig"):
        self.config = config
        self._playwright = None
        self._browser: Optional[Browser] = None

    async def connect(self) -> Browser:
        """Connect to the configured browser, launching one if no URL is set."""
        if self._browser:
            return self._browser

        self._playwright = await async_playwright().start()
        browser_type = getattr(self._playwright, self.config.browser)

        if self.config.ws_url:
            logger.info(f"Connecting to Playwright at {self.config.ws_url}")
            self._browser = await browser_type.connect(self.config.ws_url)
        else:
            logger.info(f"Launching {self.config.browser} (headless={self.config.headless})")
            self._browser = await browser_type.launch(headless=self.config.headless)

        logger.info("Connected to Playwright")
        return self._browser

    async def disconnect(self) -> None:
        """Disconnect from Playwright."""
        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.info("Disconnected from Playwright")

    async def new_page(self) -> Page:
        """Create a new page in a fresh context with the configured viewport."""
        if not self._browser:
            await self.connect()

        context = await self._browser.new_context(
            viewport={"width": self.config.width, "height": self.config.height},
            has_touch=True,
        )
        return await context.new_page()

    async def __aenter__(self) -> "BrowserManager":
        """Async context manager entry."""
        try:
            await self.connect()
        except BaseException:
            await self.disconnect()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.disconnect()
