"""Playwright browser session with stealth applied."""

import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)
from playwright.async_api import Error as PlaywrightError
from playwright_stealth import Stealth  # type: ignore[import-untyped]
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
]


@dataclass
class BrowserConfig:
    """Configuration for the browser session.

    ``storage_state`` points at a Playwright storage-state JSON file holding a
    logged-in marketplace session; it is loaded when the file exists.
    """

    headless: bool = True
    locale: str = "en-US"
    timezone_id: str = "America/Chicago"
    viewport_width: int = 1440
    viewport_height: int = 900
    user_agents: list[str] = field(default_factory=lambda: DEFAULT_USER_AGENTS.copy())
    storage_state: Path | None = None
    navigation_timeout_ms: int = 30000
    max_navigation_attempts: int = 3


class BrowserManager:
    """Owns one Playwright browser and a single context.

    Usage:
        async with BrowserManager(config) as manager:
            page = await manager.open("https://www.carsforsale.com/...")
    """

    def __init__(self, config: BrowserConfig | None = None) -> None:
        self._config = config or BrowserConfig()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._stealth_cm: Any = None
        self._started: bool = False

    async def __aenter__(self) -> "BrowserManager":
        await self._start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self._stop()

    async def _start(self) -> None:
        if self._started:
            return

        stealth = Stealth(
            navigator_languages_override=(self._config.locale, self._config.locale.split("-")[0]),
        )
        self._stealth_cm = stealth.use_async(async_playwright())
        self._playwright = await self._stealth_cm.__aenter__()
        self._browser = await self._playwright.chromium.launch(headless=self._config.headless)
        self._started = True

    async def _stop(self) -> None:
        if not self._started:
            return

        if self._context is not None:
            await self._context.close()
            self._context = None

        if self._browser is not None:
            await self._browser.close()
            self._browser = None

        if self._stealth_cm is not None:
            await self._stealth_cm.__aexit__(None, None, None)
            self._stealth_cm = None
            self._playwright = None

        self._started = False

    async def get_context(self) -> BrowserContext:
        """Get or create the browser context."""
        if not self._started or self._browser is None:
            raise RuntimeError("BrowserManager not started. Use 'async with' context.")

        if self._context is None:
            storage_state = self._config.storage_state
            if storage_state is not None and not storage_state.exists():
                logger.warning("Storage state %s not found, starting logged out", storage_state)
                storage_state = None

            self._context = await self._browser.new_context(
                viewport={
                    "width": self._config.viewport_width,
                    "height": self._config.viewport_height,
                },
                locale=self._config.locale,
                timezone_id=self._config.timezone_id,
                user_agent=random.choice(self._config.user_agents),
                storage_state=str(storage_state) if storage_state else None,
            )
        return self._context

    async def get_page(self) -> Page:
        """Get a new page from the current context."""
        context = await self.get_context()
        return await context.new_page()

    async def open(self, url: str) -> Page:
        """Open ``url`` in a new page, retrying failed navigations."""
        page = await self.get_page()
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(PlaywrightError),
            stop=stop_after_attempt(self._config.max_navigation_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        ):
            with attempt:
                await page.goto(
                    url,
                    wait_until="domcontentloaded",
                    timeout=self._config.navigation_timeout_ms,
                )
        logger.info("Opened %s", url)
        return page

    async def save_storage_state(self, path: Path) -> None:
        """Persist cookies and local storage so a later run stays logged in."""
        context = await self.get_context()
        path.parent.mkdir(parents=True, exist_ok=True)
        await context.storage_state(path=str(path))

    @property
    def is_started(self) -> bool:
        return self._started
