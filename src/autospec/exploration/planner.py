"""
Spec Planner

Turns a short visual survey of the target site into a bounded, ordered
list of natural-language specs:

1. survey(): breadth-first walk of same-origin links, one annotated
   screenshot per visited page
2. plan(): a single multimodal request asking for ``arrayOfSpecs``

Pre-written specs can be loaded instead with load_specs().
"""

import asyncio
import json
import logging
import sys
from collections import deque
from typing import IO, List, Optional, Set
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup

from ..core.browser import BrowserSession
from ..core.errors import ModelResponseError, PlanValidationError, SpecFileError
from ..core.models import Capture, TestPlan
from ..llm.client import ModelClient, image_part, text_part
from .prompts import PLAN_REQUEST, SYSTEM_PROMPT

logger = logging.getLogger(__name__)


def extract_links(html: str, page_url: str) -> List[str]:
    """Absolute, fragment-free hrefs of every anchor on the page, in document order."""
    soup = BeautifulSoup(html, 'html.parser')
    links = []
    for anchor in soup.find_all('a', href=True):
        href = anchor['href'].strip()
        if not href or href.startswith(('javascript:', 'mailto:', 'tel:')):
            continue
        absolute, _ = urldefrag(urljoin(page_url, href))
        if absolute not in links:
            links.append(absolute)
    return links


def same_origin(url: str, base_url: str) -> bool:
    a, b = urlparse(url), urlparse(base_url)
    return (a.scheme, a.netloc) == (b.scheme, b.netloc)


class SpecPlanner:
    """Surveys a site and asks the model for a test plan."""

    def __init__(self, browser: BrowserSession, model: ModelClient):
        self.browser = browser
        self.model = model
        self.prompt_tokens = 0
        self.completion_tokens = 0

    async def survey(self, page, test_url: str, max_pages: int = 1) -> List[Capture]:
        """
        Breadth-first crawl of same-origin links starting at ``test_url``.

        Args:
            page: Playwright page to drive
            test_url: Where the crawl starts
            max_pages: Upper bound on pages visited (and frames returned)

        Returns:
            One annotated capture per visited page, in visit order
        """
        frames: List[Capture] = []
        queue = deque([test_url])
        seen: Set[str] = {test_url}

        while queue and len(frames) < max_pages:
            url = queue.popleft()
            logger.info(f"🧭 Surveying: {url}")
            try:
                await page.goto(url)
                await asyncio.sleep(0.1)
            except Exception as e:
                logger.warning(f"Survey could not load {url}: {e}")
                continue

            capture = await self.browser.capture(page, name=f"screenshot-{len(frames)}")
            frames.append(capture)

            for link in extract_links(capture.html, capture.url or url):
                if same_origin(link, test_url) and link not in seen:
                    seen.add(link)
                    queue.append(link)

        logger.info(f"📸 Survey captured {len(frames)} page(s)")
        return frames

    async def plan(self, frames: List[Capture], limit: Optional[int] = None) -> List[str]:
        """
        Ask the model for specs describing the surveyed screens.

        Raises:
            PlanValidationError: the reply is not an object whose
                ``arrayOfSpecs`` is an array of strings
        """
        content = [text_part(PLAN_REQUEST)] + [image_part(frame.screenshot) for frame in frames]
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": content},
        ]

        try:
            completion = await self.model.complete(messages, TestPlan)
        except ModelResponseError as e:
            self._count(e.prompt_tokens, e.completion_tokens)
            raise PlanValidationError(f"Test plan response is invalid: {e}") from e

        self._count(completion.prompt_tokens, completion.completion_tokens)
        specs = list(completion.object.array_of_specs)
        if limit is not None:
            specs = specs[:limit]

        logger.info(f"🧠 Planned {len(specs)} spec(s)")
        for i, spec in enumerate(specs, 1):
            logger.info(f"  {i}. {spec}")
        return specs

    async def survey_and_plan(self, page, test_url: str, max_pages: int = 1,
                              limit: Optional[int] = None) -> List[str]:
        frames = await self.survey(page, test_url, max_pages=max_pages)
        if not frames:
            raise PlanValidationError(f"Survey of {test_url} produced no screenshots to plan from")
        return await self.plan(frames, limit=limit)

    def _count(self, prompt_tokens: int, completion_tokens: int) -> None:
        self.prompt_tokens += prompt_tokens
        self.completion_tokens += completion_tokens


def parse_specs(text: str, source: str = "spec file") -> List[str]:
    """Parse a JSON array of spec strings."""
    try:
        specs = json.loads(text)
    except json.JSONDecodeError as e:
        raise SpecFileError(f"{source} is not valid JSON: {e}") from e

    if not isinstance(specs, list):
        raise SpecFileError(f"{source} content is not an array")
    for spec in specs:
        if not isinstance(spec, str):
            raise SpecFileError(f"Spec in {source} is not a string: {spec!r}")
    return specs


def load_specs(spec_file: str, stdin: Optional[IO[str]] = None) -> List[str]:
    """Load specs from a JSON file, or from stdin when ``spec_file`` is ``-``."""
    if spec_file == "-":
        stream = stdin or sys.stdin
        return parse_specs(stream.read(), source="stdin")

    try:
        with open(spec_file, 'r', encoding='utf-8') as f:
            text = f.read()
    except OSError as e:
        raise SpecFileError(f"Could not read spec file {spec_file}: {e}") from e
    return parse_specs(text, source=spec_file)
