"""Driver session — the one browser a suite run talks to, over Playwright."""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    ElementHandle,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from widgetqa.errors import ElementNotFound
from widgetqa.models.config import DriverConfig

from .locators import Locator

logger = logging.getLogger(__name__)

_READ_VALUE_SCRIPT = "el => (el.value === undefined || el.value === null) ? null : String(el.value)"

_SUBMIT_SCRIPT = """
el => {
    const form = el.form || el;
    if (typeof form.requestSubmit === 'function') {
        form.requestSubmit();
    } else if (typeof form.submit === 'function') {
        form.submit();
    } else {
        throw new Error('Element is not inside a form');
    }
}
"""


async def launch_browser(playwright: Playwright, config: DriverConfig) -> Browser:
    """Launch the configured browser engine."""
    browser_type = getattr(playwright, config.browser)
    return await browser_type.launch(headless=config.headless, **config.launch_options)


async def create_context(browser: Browser, config: DriverConfig) -> BrowserContext:
    """Create a browser context with the configured viewport and timeouts."""
    context_kwargs: dict = {
        "viewport": config.viewport.model_dump(),
    }
    if config.user_agent:
        context_kwargs["user_agent"] = config.user_agent

    context = await browser.new_context(**context_kwargs)
    context.set_default_timeout(config.timeout_ms)
    return context


class DriverSession:
    """A single Playwright page plus the browser that hosts it.

    The session is created unstarted so that widgets can reference it while a
    suite is loading; the runner starts it before navigating.
    """

    def __init__(self, config: DriverConfig | None = None):
        self.config = config or DriverConfig()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @property
    def started(self) -> bool:
        return self._page is not None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Driver session has not been started")
        return self._page

    @property
    def current_url(self) -> str:
        return self._page.url if self._page is not None else ""

    async def start(self) -> None:
        if self.started:
            return
        logger.debug("Launching %s (headless=%s)...", self.config.browser, self.config.headless)
        self._playwright = await async_playwright().start()
        self._browser = await launch_browser(self._playwright, self.config)
        self._context = await create_context(self._browser, self.config)
        self._page = await self._context.new_page()

    async def navigate(self, url: str) -> None:
        await self.start()
        logger.debug("Navigating to %s...", url)
        await self.page.goto(url, wait_until="domcontentloaded", timeout=self.config.timeout_ms)

    async def title(self) -> str:
        return await self.page.title()

    async def locate(self, locator: Locator, wait: bool = True) -> ElementHandle:
        """Find the element matching ``locator`` on the current page.

        With ``wait``, waits up to the configured timeout for the element to be
        attached. Raises ElementNotFound if nothing matches.
        """
        selector = locator.selector
        try:
            if wait:
                element = await self.page.wait_for_selector(
                    selector, state="attached", timeout=self.config.timeout_ms
                )
            else:
                element = await self.page.query_selector(selector)
        except PlaywrightTimeoutError:
            element = None
        except PlaywrightError as e:
            raise ElementNotFound(f"Could not locate {locator}: {e}") from e

        if element is None:
            raise ElementNotFound(f"No element matches {locator}")
        return element

    async def get_text(self, element: ElementHandle) -> str:
        return await element.inner_text()

    async def get_attribute(self, element: ElementHandle, name: str) -> Optional[str]:
        # "value" reads the live property so typed input shows up
        if name == "value":
            return await element.evaluate(_READ_VALUE_SCRIPT)
        return await element.get_attribute(name)

    async def click(self, element: ElementHandle) -> None:
        await element.click(timeout=self.config.timeout_ms)

    async def send_keys(self, element: ElementHandle, text: str) -> None:
        await element.focus()
        await self.page.keyboard.type(text)

    async def submit(self, element: ElementHandle) -> None:
        await element.evaluate(_SUBMIT_SCRIPT)

    async def clear(self, element: ElementHandle) -> None:
        await element.fill("")

    async def close(self) -> None:
        """Tear everything down. Safe to call more than once."""
        if self._context is not None:
            try:
                await self._context.close()
            except PlaywrightError as e:
                logger.warning("Could not close browser context: %s", e)
        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError as e:
                logger.warning("Could not close browser: %s", e)
        if self._playwright is not None:
            await self._playwright.stop()
        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None
        logger.debug("Driver session closed")
