"""
Browser Session

Handles browser launch, per-spec isolated contexts, annotated page
captures and the same-host navigation guard for Playwright-driven spec
execution.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, List, Optional
from urllib.parse import urlparse

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from ..config.settings import BrowserConfig
from ..utils.imaging import draw_cursor
from .errors import BrowserInitError, CrossOriginNavigationError
from .models import Capture
from .session import SessionManager

logger = logging.getLogger(__name__)

MOUSE_TRACKER_SCRIPT = """
(() => {
    let x = 0, y = 0;
    document.addEventListener('mousemove', (e) => {
        x = e.pageX;
        y = e.pageY;
    }, true);
    window.getMousePosition = () => ({ x, y });
})();
"""

GET_MOUSE_POSITION = "() => (window.getMousePosition ? window.getMousePosition() : { x: 0, y: 0 })"


def host_of(url: str) -> str:
    """host[:port] of a URL, the unit the navigation guard compares."""
    return urlparse(url).netloc


class HostGuard:
    """
    Keeps every frame of a page on the host under test.

    Cross-host navigation requests are aborted before they commit; any
    navigation that still lands elsewhere is stopped with ``window.stop()``.
    Either way the violation is recorded so the caller can surface it as
    a recoverable CrossOriginNavigationError.

    Only off-host URLs are routed, so requests to the host under test never
    round-trip through Python. Playwright still disables the HTTP cache for
    a page while any route is registered.
    """

    def __init__(self, page: Page, test_url: str):
        self.page = page
        self.test_url = test_url
        self.allowed_host = host_of(test_url)
        self.violations: List[CrossOriginNavigationError] = []

    def is_allowed(self, url: str) -> bool:
        parsed = urlparse(url)
        if parsed.scheme not in ('http', 'https'):
            return True
        return parsed.netloc == self.allowed_host

    def is_blocked(self, url: str) -> bool:
        return not self.is_allowed(url)

    async def install(self) -> None:
        await self.page.route(self.is_blocked, self._handle_route)
        self.page.on("framenavigated", self._handle_frame_navigated)

    async def _handle_route(self, route) -> None:
        request = route.request
        if request.is_navigation_request() and not self.is_allowed(request.url):
            logger.warning(f"🚫 Blocked navigation to {request.url}")
            self.violations.append(CrossOriginNavigationError(request.url, self.test_url))
            await route.abort("blockedbyclient")
            return
        await route.continue_()

    async def _handle_frame_navigated(self, frame) -> None:
        url = frame.url
        if self.is_allowed(url):
            return
        logger.warning(f"🚫 Stopping frame that navigated to {url}")
        self.violations.append(CrossOriginNavigationError(url, self.test_url))
        try:
            await frame.evaluate("() => window.stop()")
        except Exception as e:
            logger.debug(f"window.stop() failed on {url}: {e}")

    def reset(self) -> None:
        self.violations.clear()

    def take_violation(self) -> Optional[CrossOriginNavigationError]:
        """Return (and clear) the first violation recorded since the last reset."""
        if not self.violations:
            return None
        violation = self.violations[0]
        self.violations.clear()
        return violation


@dataclass
class SpecPage:
    """A page handed to one spec, with the context that owns it."""
    context: BrowserContext
    page: Page
    guard: HostGuard


class BrowserSession:
    """
    Manages the browser process shared by all specs of a run.

    Each spec gets an isolated context (cookies, storage) unless
    ``reuse_context`` is configured, in which case every spec shares one
    context for the lifetime of the session.
    """

    def __init__(self, config: Optional[BrowserConfig] = None, session: Optional[SessionManager] = None,
                 browser: Optional[Browser] = None):
        self.config = config or BrowserConfig()
        self.session = session

        self.playwright = None
        self.browser: Optional[Browser] = browser
        self._owns_browser = browser is None
        self._shared_context: Optional[BrowserContext] = None

    async def start(self) -> 'BrowserSession':
        """Launch chromium unless a browser was passed in."""
        if self.browser is not None:
            return self

        try:
            logger.info("🚀 Launching browser...")
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(
                headless=self.config.headless,
                args=self.config.args
            )
            logger.info("✅ Browser launched")
        except Exception as e:
            logger.error(f"Browser launch failed: {e}")
            await self.stop()
            raise BrowserInitError(f"Could not launch browser: {e}") from e
        return self

    async def stop(self) -> None:
        """Release the shared context and, if we launched it, the browser."""
        try:
            if self._shared_context:
                await self._shared_context.close()
                self._shared_context = None

            if self.browser and self._owns_browser:
                await self.browser.close()
                self.browser = None

            if self.playwright:
                await self.playwright.stop()
                self.playwright = None
        except Exception as e:
            logger.warning(f"Error during browser cleanup: {e}")

    async def __aenter__(self) -> 'BrowserSession':
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def new_context(self) -> BrowserContext:
        if self.browser is None:
            raise BrowserInitError("Browser not started - call start() first")

        options = {
            'viewport': {'width': self.config.viewport_width, 'height': self.config.viewport_height},
            'screen': {'width': self.config.viewport_width, 'height': self.config.viewport_height},
        }
        if self.config.record_video and self.session:
            options['record_video_dir'] = str(self.session.session_dir)
            options['record_video_size'] = {
                'width': self.config.viewport_width,
                'height': self.config.viewport_height,
            }

        context = await self.browser.new_context(**options)
        context.set_default_timeout(self.config.default_timeout_ms)
        return context

    async def _context_for_spec(self) -> BrowserContext:
        if not self.config.reuse_context:
            return await self.new_context()
        if self._shared_context is None:
            self._shared_context = await self.new_context()
        return self._shared_context

    @asynccontextmanager
    async def open(self, test_url: str) -> AsyncIterator[SpecPage]:
        """
        Open a guarded page for one spec.

        The page (and its context, when not shared) is released on every
        exit path.
        """
        context = await self._context_for_spec()
        page = None
        try:
            page = await context.new_page()
            await page.add_init_script(MOUSE_TRACKER_SCRIPT)
            page.on("console", lambda msg: logger.debug(f"[console.{msg.type}] {msg.text}"))

            guard = HostGuard(page, test_url)
            await guard.install()
            yield SpecPage(context=context, page=page, guard=guard)
        finally:
            await self.close(context, page)

    async def close(self, context: BrowserContext, page: Optional[Page] = None) -> None:
        try:
            if context is self._shared_context:
                if page is not None:
                    await page.close()
                return
            await context.close()
        except Exception as e:
            logger.warning(f"Error closing browser context: {e}")

    async def capture(self, page: Page, name: Optional[str] = None) -> Capture:
        """
        Screenshot the page with the cursor drawn in, plus its rendered HTML.

        When a session is attached and ``name`` is given the pair is also
        written to the run directory.
        """
        html = await page.content()
        position = await page.evaluate(GET_MOUSE_POSITION) or {}
        cursor = (position.get('x', 0), position.get('y', 0))

        raw = await page.screenshot()
        screenshot = draw_cursor(raw, cursor)

        path = None
        if self.session and name:
            path = await self.session.save_capture(name, screenshot, html)

        return Capture(screenshot=screenshot, html=html, cursor=cursor, url=page.url, screenshot_path=path)
