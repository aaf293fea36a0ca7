"""Tests for the browser session and the same-host navigation guard."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from autospec.config.settings import BrowserConfig
from autospec.core.browser import BrowserSession, HostGuard, host_of
from autospec.core.errors import BrowserInitError
from autospec.core.session import SessionManager

from ..conftest import TEST_URL


def route_for(url, navigation=True):
    route = MagicMock()
    route.request.url = url
    route.request.is_navigation_request.return_value = navigation
    route.abort = AsyncMock()
    route.continue_ = AsyncMock()
    return route


class TestHostGuard:

    def test_host_of(self):
        assert host_of("http://localhost:3000/todos?x=1") == "localhost:3000"

    def test_is_allowed(self, mock_page):
        guard = HostGuard(mock_page, TEST_URL)
        assert guard.is_allowed("http://localhost:3000/about")
        assert guard.is_allowed("about:blank")
        assert guard.is_allowed("data:text/html,hi")
        assert not guard.is_allowed("https://github.com/")
        assert not guard.is_allowed("http://localhost:4000/")

    @pytest.mark.asyncio
    async def test_install_registers_route_and_listener(self, mock_page):
        guard = HostGuard(mock_page, TEST_URL)
        await guard.install()

        mock_page.route.assert_awaited_once()
        matcher = mock_page.route.await_args.args[0]
        assert matcher("https://github.com/login")
        assert not matcher("http://localhost:3000/app.js")
        mock_page.on.assert_called_once_with("framenavigated", guard._handle_frame_navigated)

    @pytest.mark.asyncio
    async def test_cross_host_navigation_is_aborted(self, mock_page):
        guard = HostGuard(mock_page, TEST_URL)
        route = route_for("https://github.com/login")

        await guard._handle_route(route)

        route.abort.assert_awaited_once_with("blockedbyclient")
        route.continue_.assert_not_called()
        violation = guard.take_violation()
        assert violation.url == "https://github.com/login"
        assert violation.test_url == TEST_URL
        assert guard.take_violation() is None

    @pytest.mark.asyncio
    async def test_same_host_navigation_continues(self, mock_page):
        guard = HostGuard(mock_page, TEST_URL)
        route = route_for("http://localhost:3000/about")

        await guard._handle_route(route)

        route.continue_.assert_awaited_once()
        assert guard.violations == []

    @pytest.mark.asyncio
    async def test_cross_host_subresources_continue(self, mock_page):
        guard = HostGuard(mock_page, TEST_URL)
        route = route_for("https://cdn.example.com/app.js", navigation=False)

        await guard._handle_route(route)

        route.continue_.assert_awaited_once()
        assert guard.violations == []

    @pytest.mark.asyncio
    async def test_frame_that_left_the_host_is_stopped(self, mock_page):
        guard = HostGuard(mock_page, TEST_URL)
        frame = MagicMock()
        frame.url = "https://elsewhere.example/"
        frame.evaluate = AsyncMock()

        await guard._handle_frame_navigated(frame)

        frame.evaluate.assert_awaited_once_with("() => window.stop()")
        assert len(guard.violations) == 1

    @pytest.mark.asyncio
    async def test_same_host_frame_is_left_alone(self, mock_page):
        guard = HostGuard(mock_page, TEST_URL)
        frame = MagicMock()
        frame.url = "http://localhost:3000/next"
        frame.evaluate = AsyncMock()

        await guard._handle_frame_navigated(frame)

        frame.evaluate.assert_not_called()
        assert guard.violations == []


class TestBrowserSession:

    @pytest.mark.asyncio
    async def test_passed_in_browser_is_not_closed(self, mock_browser):
        session = BrowserSession(BrowserConfig(), browser=mock_browser)
        await session.start()
        await session.stop()
        mock_browser.close.assert_not_called()

    @pytest.mark.asyncio
    async def test_new_context_requires_a_started_browser(self):
        with pytest.raises(BrowserInitError):
            await BrowserSession(BrowserConfig()).new_context()

    @pytest.mark.asyncio
    async def test_open_builds_an_isolated_guarded_page(self, mock_browser, mock_context, mock_page):
        session = BrowserSession(BrowserConfig(), browser=mock_browser)

        async with session.open(TEST_URL) as spec_page:
            assert spec_page.page is mock_page
            assert spec_page.guard.allowed_host == "localhost:3000"

        options = mock_browser.new_context.await_args.kwargs
        assert options['viewport'] == {'width': 1024, 'height': 1024}
        assert options['screen'] == {'width': 1024, 'height': 1024}
        assert 'record_video_dir' not in options
        mock_context.set_default_timeout.assert_called_once_with(2500)
        mock_page.add_init_script.assert_awaited_once()
        mock_context.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_context_is_closed_when_the_spec_raises(self, mock_browser, mock_context):
        session = BrowserSession(BrowserConfig(), browser=mock_browser)

        with pytest.raises(RuntimeError):
            async with session.open(TEST_URL):
                raise RuntimeError("spec blew up")

        mock_context.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_each_spec_gets_its_own_context(self, mock_browser):
        session = BrowserSession(BrowserConfig(), browser=mock_browser)
        async with session.open(TEST_URL):
            pass
        async with session.open(TEST_URL):
            pass
        assert mock_browser.new_context.await_count == 2

    @pytest.mark.asyncio
    async def test_shared_context_only_closes_pages(self, mock_browser, mock_context, mock_page):
        session = BrowserSession(BrowserConfig(reuse_context=True), browser=mock_browser)
        async with session.open(TEST_URL):
            pass
        async with session.open(TEST_URL):
            pass

        assert mock_browser.new_context.await_count == 1
        assert mock_page.close.await_count == 2
        mock_context.close.assert_not_called()

        await session.stop()
        mock_context.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_video_goes_into_the_run_directory(self, mock_browser, tmp_path):
        manager = SessionManager(str(tmp_path), run_id="run1")
        session = BrowserSession(BrowserConfig(), session=manager, browser=mock_browser)

        await session.new_context()

        options = mock_browser.new_context.await_args.kwargs
        assert options['record_video_dir'] == str(tmp_path / "run1")

    @pytest.mark.asyncio
    async def test_capture_draws_cursor_and_saves_frames(self, mock_browser, mock_page, tmp_path):
        manager = SessionManager(str(tmp_path), run_id="run1")
        session = BrowserSession(BrowserConfig(), session=manager, browser=mock_browser)

        capture = await session.capture(mock_page, name="screenshot-0-1")

        assert capture.cursor == (10, 12)
        assert capture.url == TEST_URL
        assert capture.screenshot.startswith(b"\x89PNG")
        assert (tmp_path / "run1" / "screenshot-0-1.png").exists()
        assert "<button" in (tmp_path / "run1" / "screenshot-0-1.html").read_text()

    @pytest.mark.asyncio
    async def test_capture_without_name_writes_nothing(self, mock_browser, mock_page, tmp_path):
        manager = SessionManager(str(tmp_path), run_id="run1")
        session = BrowserSession(BrowserConfig(), session=manager, browser=mock_browser)

        capture = await session.capture(mock_page)

        assert capture.screenshot_path is None
        assert list((tmp_path / "run1").iterdir()) == []
