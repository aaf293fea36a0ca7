"""
Replay Test Generation

Converts the action traces of passed specs into a Playwright test file.
Each action kind maps to the same Playwright operation the executor
performed live, so a replayed test drives the page the same way.

Generation is a pure function of its inputs: no timestamps, no file
writes. Persisting the source is the caller's job.
"""

import json
from typing import Callable, Dict, Iterable, List

from ..core.models import (
    ClickAction,
    FillAction,
    HardWaitAction,
    HoverAction,
    MarkAsCompleteAction,
    NavigateAction,
    PressAction,
    ScrollAction,
    TestResult,
)

INDENT = "  "


def js_string(value: str) -> str:
    """Quote a Python string as a JavaScript string literal."""
    return json.dumps(value, ensure_ascii=False)


def js_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _locator(action) -> str:
    return f"page.locator({js_string(action.selector)}).nth({action.nth})"


def _hover(action: HoverAction) -> str:
    return f"await {_locator(action)}.hover();"


def _click(action: ClickAction) -> str:
    if action.click_count == 1:
        return f"await {_locator(action)}.click();"
    return f"await {_locator(action)}.click({{ clickCount: {action.click_count} }});"


def _fill(action: FillAction) -> str:
    return f"await {_locator(action)}.fill({js_string(action.text)});"


def _press(action: PressAction) -> str:
    return f"await {_locator(action)}.press({js_string(action.key)});"


def _scroll(action: ScrollAction) -> str:
    return f"await page.mouse.wheel({js_number(action.delta_x)}, {js_number(action.delta_y)});"


def _hard_wait(action: HardWaitAction) -> str:
    return f"await page.waitForTimeout({action.milliseconds});"


def _navigate(action: NavigateAction) -> str:
    return f"await page.goto({js_string(action.url)});"


def _mark_as_complete(action: MarkAsCompleteAction) -> str:
    explanation = " ".join(action.explanation_why_spec_complete.split())
    return f"// Spec marked as complete ({action.reason.value}): {explanation}"


STATEMENT_BUILDERS: Dict[str, Callable] = {
    "hover": _hover,
    "click": _click,
    "fill": _fill,
    "press": _press,
    "scroll": _scroll,
    "hardWait": _hard_wait,
    "navigate": _navigate,
    "markAsComplete": _mark_as_complete,
}


def statement_for(action) -> str:
    """One line of test source replaying ``action``."""
    kind = getattr(action, "action", None)
    try:
        builder = STATEMENT_BUILDERS[kind]
    except KeyError:
        raise ValueError(f"No replay statement for action kind {kind!r}") from None
    return builder(action)


def _unique_titles(specs: Iterable[str]) -> List[str]:
    seen: Dict[str, int] = {}
    titles = []
    for spec in specs:
        count = seen.get(spec, 0) + 1
        seen[spec] = count
        titles.append(spec if count == 1 else f"{spec} ({count})")
    return titles


def generate_replay_tests(results: Iterable[TestResult], test_url: str) -> str:
    """
    Build Playwright test source for every passed result.

    Args:
        results: TestResults in the order they should appear
        test_url: URL every test starts from (``beforeEach`` navigation)

    Returns:
        Source text of a ``*.spec.js`` file; failed results are omitted
    """
    passed = [result for result in results if result.passed]

    lines = [
        "import { test } from '@playwright/test';",
        "",
        "test.beforeEach(async ({ page }) => {",
        f"{INDENT}await page.goto({js_string(test_url)});",
        "});",
        "",
    ]

    for title, result in zip(_unique_titles(r.spec for r in passed), passed):
        lines.append(f"test({js_string(title)}, async ({{ page }}) => {{")
        for step in result.actions:
            lines.append(f"{INDENT}{statement_for(step.action)}")
        lines.append("});")
        lines.append("")

    return "\n".join(lines)
