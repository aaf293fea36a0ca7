"""
Action Agent

Drives one spec through the perception-action loop:

    AWAITING_MODEL -> ACTING -> CONTINUE | PASSED | FAILED | MAX_ITERATIONS

Each iteration captures the page, asks the model for one PlanActionStep,
executes it and checks for termination. Execution errors are folded back
into the conversation so the model can correct itself; a reply that
breaks the action schema ends the spec. Exactly one TestResult is
recorded per run() call.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from ..config.settings import AgentConfig
from ..core.browser import BrowserSession, SpecPage
from ..core.errors import ActionSchemaError, stringify_error
from ..core.models import Capture, MarkAsCompleteAction, PlanActionStep, SpecStatus, TestResult
from ..llm.client import ModelClient, image_part, text_part
from ..reporting.results import ResultAggregator
from . import prompts
from .executor import ActionExecutor

logger = logging.getLogger(__name__)


class AgentState(Enum):
    """States of the per-spec loop."""
    AWAITING_MODEL = "awaiting_model"
    ACTING = "acting"
    CONTINUE = "continue"
    PASSED = "passed"
    FAILED = "failed"
    MAX_ITERATIONS = "max_iterations"

    @property
    def is_terminal(self) -> bool:
        return self in (AgentState.PASSED, AgentState.FAILED, AgentState.MAX_ITERATIONS)


class ConversationHistory:
    """Ordered, append-only turns for one spec."""

    def __init__(self, system_prompt: str):
        self._turns: List[Dict[str, Any]] = [{"role": "system", "content": system_prompt}]

    def add_user(self, content) -> None:
        self._turns.append({"role": "user", "content": content})

    def add_assistant(self, content: str) -> None:
        self._turns.append({"role": "assistant", "content": content})

    @property
    def messages(self) -> List[Dict[str, Any]]:
        return list(self._turns)

    def __len__(self) -> int:
        return len(self._turns)


class ActionAgent:
    """
    Runs a single spec to completion.

    Args:
        spec: Natural-language check to verify
        model: Client used for every step request
        browser: Session providing page captures
        aggregator: Where the final TestResult is appended
        config: Loop limits
        spec_id: Position of the spec in the plan
    """

    def __init__(self, spec: str, model: ModelClient, browser: BrowserSession,
                 aggregator: ResultAggregator, config: Optional[AgentConfig] = None, spec_id: int = 0):
        self.spec = spec
        self.model = model
        self.browser = browser
        self.aggregator = aggregator
        self.config = config or AgentConfig()
        self.spec_id = spec_id

        self.state = AgentState.AWAITING_MODEL
        self.history = ConversationHistory(prompts.SYSTEM_PROMPT)
        self.actions_taken: List[PlanActionStep] = []
        self.iterations = 0
        self.total_input_tokens = 0
        self.total_output_tokens = 0
        self.result: Optional[TestResult] = None

    async def run(self, spec_page: SpecPage, test_url: str) -> TestResult:
        """Execute the loop on ``spec_page`` and record the outcome."""
        page = spec_page.page
        executor = ActionExecutor(page, spec_page.guard, settle_delay_ms=self.config.settle_delay_ms)
        logger.info(f"▶️  Spec {self.spec_id}: {self.spec}")

        try:
            await self._open(page, test_url)

            while self.iterations < self.config.max_iterations:
                self.iterations += 1
                self.state = AgentState.AWAITING_MODEL

                capture = await self.browser.capture(page, name=f"screenshot-{self.spec_id}-{self.iterations}")
                logger.info(f"Current mouse position: ({capture.cursor[0]}, {capture.cursor[1]})")
                self.history.add_user(self._observation(capture))

                step = await self.next_step()

                self.state = AgentState.ACTING
                self.history.add_assistant(step.to_json())
                self.actions_taken.append(step)

                outcome = await executor.execute(step.action)
                if not outcome.success:
                    self.history.add_user([text_part(prompts.error_prompt(stringify_error(outcome.error)))])

                if isinstance(step.action, MarkAsCompleteAction):
                    return self._complete(step.action)
                self.state = AgentState.CONTINUE

            self.state = AgentState.MAX_ITERATIONS
            logger.info(f"Spec failed due to max iterations ({self.config.max_iterations})")
            return self._record(SpecStatus.FAILED, f"Max iterations ({self.config.max_iterations}) reached")

        except ActionSchemaError as e:
            self.state = AgentState.FAILED
            logger.error(f"❌ Spec {self.spec_id} aborted, model response did not match the action schema: {e}")
            return self._record(SpecStatus.FAILED, f"Failed to parse model response: {e}")
        except Exception as e:
            self.state = AgentState.FAILED
            logger.error(f"❌ Spec {self.spec_id} aborted: {e}", exc_info=True)
            return self._record(SpecStatus.FAILED, f"Unexpected error: {e}")

    async def next_step(self) -> PlanActionStep:
        """
        Request one PlanActionStep for the conversation so far.

        Raises:
            ActionSchemaError: the reply does not fit the action schema
        """
        try:
            completion = await self.model.complete(self.history.messages, PlanActionStep,
                                                   error_cls=ActionSchemaError)
        except ActionSchemaError as e:
            self._count_tokens(e.prompt_tokens, e.completion_tokens)
            raise

        self._count_tokens(completion.prompt_tokens, completion.completion_tokens)
        return completion.object

    def fail(self, reason: str) -> TestResult:
        """Record a failure for a spec that could not run its loop."""
        self.state = AgentState.FAILED
        return self._record(SpecStatus.FAILED, reason)

    async def _open(self, page, test_url: str) -> None:
        try:
            await page.goto(test_url)
        except Exception as e:
            # The first observation tells the model the page did not load
            logger.warning(f"Initial navigation to {test_url} failed: {e}")
            self.history.add_user([text_part(prompts.error_prompt(stringify_error(e)))])

    def _observation(self, capture: Capture) -> List[Dict[str, Any]]:
        html = capture.html
        if self.config.max_html_chars and len(html) > self.config.max_html_chars:
            html = html[:self.config.max_html_chars]

        x, y = capture.cursor
        return [
            text_part(prompts.step_prompt(self.spec)),
            image_part(capture.screenshot),
            text_part(prompts.html_prompt(html)),
            text_part(prompts.cursor_prompt(x, y)),
            text_part(prompts.url_prompt(capture.url)),
        ]

    def _complete(self, action: MarkAsCompleteAction) -> TestResult:
        if action.reason == SpecStatus.PASSED:
            self.state = AgentState.PASSED
            logger.info(f"✅ Spec {self.spec_id} passed")
            return self._record(SpecStatus.PASSED)

        self.state = AgentState.FAILED
        logger.info(f"Spec {self.spec_id} failed. Reasoning: {action.explanation_why_spec_complete}")
        return self._record(SpecStatus.FAILED, action.explanation_why_spec_complete)

    def _count_tokens(self, prompt_tokens: int, completion_tokens: int) -> None:
        self.total_input_tokens += max(prompt_tokens, 0)
        self.total_output_tokens += max(completion_tokens, 0)

    def _record(self, status: SpecStatus, reason: Optional[str] = None) -> TestResult:
        if self.result is not None:
            return self.result

        self.result = TestResult(
            spec=self.spec,
            status=status,
            actions=tuple(self.actions_taken),
            total_input_tokens=self.total_input_tokens,
            total_output_tokens=self.total_output_tokens,
            reason=reason,
            spec_id=self.spec_id,
        )
        self.aggregator.append(self.result)
        return self.result
