"""
Browser session - isolated Playwright Chromium used for rendered verification.

One session per verification attempt: ``async with BrowserSession(config)``
starts Playwright, launches Chromium, opens a fresh context and page, and
tears all of them down on exit, whatever happened inside the block.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, Route, async_playwright

from backlink_scout.config import ScoutConfig
from backlink_scout.logger import logger

__all__ = ("BLOCKED_RESOURCE_TYPES", "NavigationResult", "BrowserSession")

#: Sub-resources aborted while rendering; the verification tag lives in the markup.
BLOCKED_RESOURCE_TYPES = frozenset({"image", "stylesheet", "font", "media"})

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
]


@dataclass(frozen=True, slots=True)
class NavigationResult:
    url: str
    status: int
    ok: bool


class BrowserSession:
    """Playwright browser scoped to a single verification attempt."""

    def __init__(self, config: ScoutConfig) -> None:
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def __aenter__(self) -> BrowserSession:
        try:
            await self._open()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _open(self) -> None:
        logger.info("Launching headless Chromium")
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.config.headless,
            args=_LAUNCH_ARGS,
            timeout=self.config.render_timeout * 1000,
        )
        self._context = await self._browser.new_context(
            user_agent=random.choice(self.config.user_agents),
            viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
        )
        await self._context.route("**/*", self._route_handler)
        self._page = await self._context.new_page()

    async def _route_handler(self, route: Route) -> None:
        """Abort heavy sub-resources, let everything else through."""
        if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()

    async def navigate(self, url: str) -> Optional[NavigationResult]:
        """Go to *url* and wait for DOMContentLoaded.

        Returns None when the navigation produced no response. Timeouts and
        ``net::ERR_*`` failures propagate as Playwright errors.
        """
        if self._page is None:
            raise RuntimeError("Browser session not opened")
        logger.info("Navigating to %s", url)
        response = await self._page.goto(
            url, wait_until="domcontentloaded", timeout=self.config.render_timeout * 1000
        )
        if response is None:
            return None
        return NavigationResult(url=response.url, status=response.status, ok=response.ok)

    async def content(self) -> str:
        """Fully rendered markup of the current page."""
        if self._page is None:
            raise RuntimeError("Browser session not opened")
        return await self._page.content()

    async def close(self) -> None:
        # each step runs even if an earlier one fails
        try:
            if self._context is not None:
                await self._context.close()
        except Exception as exc:
            logger.debug("Context close failed: %s", exc)
        try:
            if self._browser is not None:
                await self._browser.close()
        except Exception as exc:
            logger.debug("Browser close failed: %s", exc)
        finally:
            if self._playwright is not None:
                await self._playwright.stop()
            self._page = self._context = self._browser = self._playwright = None
            logger.info("Browser closed")
