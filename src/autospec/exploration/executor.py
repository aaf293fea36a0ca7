"""
Action Execution

Maps a validated action onto Playwright operations. Errors never leave
execute(): they are captured in the ExecutionResult so the agent can hand
them back to the model on the next turn.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from playwright.async_api import Page

from ..core.browser import HostGuard
from ..core.errors import UnknownActionError
from ..core.models import (
    ClickAction,
    ExecutionResult,
    FillAction,
    HardWaitAction,
    HoverAction,
    MarkAsCompleteAction,
    NavigateAction,
    PressAction,
    ScrollAction,
)

logger = logging.getLogger(__name__)


class ActionExecutor:
    """
    Executes one action at a time on a page.

    Args:
        page: Page the spec is driving
        guard: Host guard installed on the page; violations it records
            during an action are reported as that action's error
        settle_delay_ms: Pause after every action before the next capture
    """

    def __init__(self, page: Page, guard: Optional[HostGuard] = None, settle_delay_ms: int = 50):
        self.page = page
        self.guard = guard
        self.settle_delay_ms = settle_delay_ms

        self._handlers: Dict[str, Callable[[Any], Awaitable[None]]] = {
            "hover": self._hover,
            "click": self._click,
            "fill": self._fill,
            "press": self._press,
            "scroll": self._scroll,
            "hardWait": self._hard_wait,
            "navigate": self._navigate,
            "markAsComplete": self._mark_as_complete,
        }

    @property
    def supported_kinds(self):
        return tuple(self._handlers)

    async def execute(self, action: Any) -> ExecutionResult:
        """Run ``action`` and report success or the captured error."""
        start_time = time.time()
        kind = getattr(action, "action", None)

        try:
            handler = self._handlers.get(kind)
            if handler is None:
                raise UnknownActionError(f"Unknown action: {action!r}")

            if self.guard:
                self.guard.reset()
            try:
                await handler(action)
            except Exception as e:
                violation = self.guard.take_violation() if self.guard else None
                if violation:
                    raise violation from e
                raise

            # navigations an action starts are reported on later loop turns
            await asyncio.sleep(self.settle_delay_ms / 1000)
            violation = self.guard.take_violation() if self.guard else None
            if violation:
                raise violation

            return ExecutionResult(success=True, duration=time.time() - start_time)

        except Exception as e:
            logger.error(f"❌ Error executing {kind or 'action'}: {e}")
            return ExecutionResult(success=False, error=e, duration=time.time() - start_time)

    def _locate(self, action):
        return self.page.locator(action.selector).nth(action.nth)

    async def _hover(self, action: HoverAction) -> None:
        await self._locate(action).hover()

    async def _click(self, action: ClickAction) -> None:
        await self._locate(action).click(click_count=action.click_count)

    async def _fill(self, action: FillAction) -> None:
        await self._locate(action).fill(action.text)

    async def _press(self, action: PressAction) -> None:
        await self._locate(action).press(action.key)

    async def _scroll(self, action: ScrollAction) -> None:
        await self.page.mouse.wheel(action.delta_x, action.delta_y)

    async def _hard_wait(self, action: HardWaitAction) -> None:
        await asyncio.sleep(action.milliseconds / 1000)

    async def _navigate(self, action: NavigateAction) -> None:
        await self.page.goto(action.url)

    async def _mark_as_complete(self, action: MarkAsCompleteAction) -> None:
        logger.info(f"Spec marked as complete: {action.reason.value}")
