"""Shared fixtures: mocked Playwright pages, browsers and model replies."""

import io
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from autospec.core.models import Capture, PlanActionStep
from autospec.llm.client import Completion

TEST_URL = "http://localhost:3000/"
PAGE_HTML = '<html><body><a href="/about">About</a><button id="go">Go</button></body></html>'


def make_png(size=(16, 16), color="white") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def make_step(action: dict, thought: str = "Next I will act on the page") -> PlanActionStep:
    return PlanActionStep.model_validate({
        "planningThoughtAboutTheActionIWillTake": thought,
        "action": action,
    })


def completion(obj, prompt_tokens: int = 100, completion_tokens: int = 20) -> Completion:
    return Completion(object=obj, prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)


@pytest.fixture
def png() -> bytes:
    return make_png()


@pytest.fixture
def mock_page(png):
    """A Playwright page whose every locator resolves to the same mock element."""
    page = MagicMock()
    page.url = TEST_URL
    page.goto = AsyncMock()
    page.content = AsyncMock(return_value=PAGE_HTML)
    page.evaluate = AsyncMock(return_value={"x": 10, "y": 12})
    page.screenshot = AsyncMock(return_value=png)
    page.route = AsyncMock()
    page.add_init_script = AsyncMock()
    page.close = AsyncMock()
    page.mouse.wheel = AsyncMock()

    element = MagicMock()
    for name in ("hover", "click", "fill", "press"):
        setattr(element, name, AsyncMock())
    page.locator.return_value.nth.return_value = element
    return page


@pytest.fixture
def element(mock_page):
    return mock_page.locator.return_value.nth.return_value


@pytest.fixture
def mock_context(mock_page):
    context = MagicMock()
    context.new_page = AsyncMock(return_value=mock_page)
    context.close = AsyncMock()
    return context


@pytest.fixture
def mock_browser(mock_context):
    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=mock_context)
    browser.close = AsyncMock()
    return browser


@pytest.fixture
def capturing_browser(png):
    """BrowserSession stand-in for code that only needs captures."""
    browser = MagicMock()
    browser.capture = AsyncMock(return_value=Capture(
        screenshot=png, html=PAGE_HTML, cursor=(10, 12), url=TEST_URL,
    ))
    return browser


@pytest.fixture
def mock_model():
    model = MagicMock()
    model.complete = AsyncMock()
    return model
