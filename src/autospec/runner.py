"""
Autospec - Spec Execution Pipeline

Runs a complete pass over a target URL:

1. Pre-flight: model name and API key are checked before any browser work
2. Spec source: a single spec, a spec file / stdin, or a survey-driven plan
3. Fan-out: one ActionAgent and isolated browser context per spec, run as
   concurrent tasks with bounded concurrency
4. Reporting: console summary, JSON report and replay test source for the
   passed specs
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import IO, Any, Dict, List, Optional, Tuple

from playwright.async_api import Browser
from rich.console import Console

from .config.settings import RunConfig, describe, ensure_api_key, resolve_model
from .core.browser import BrowserSession
from .core.models import SpecStatus, TestResult
from .core.session import SessionManager
from .exploration.agent import ActionAgent
from .exploration.planner import SpecPlanner, load_specs
from .generators.replay_codegen import generate_replay_tests
from .llm.client import ModelClient
from .reporting.results import ResultAggregator
from .reporting.summary import print_test_results

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Everything a caller needs after a run."""
    run_id: str
    test_url: str
    model_name: str
    specs: List[str]
    results: Tuple[TestResult, ...]
    replay_source: str = ""
    session_dir: Optional[str] = None
    replay_path: Optional[str] = None
    skipped_specs: List[str] = field(default_factory=list)
    planning_input_tokens: int = 0
    planning_output_tokens: int = 0

    @property
    def total_input_tokens(self) -> int:
        return sum(r.total_input_tokens for r in self.results)

    @property
    def total_output_tokens(self) -> int:
        return sum(r.total_output_tokens for r in self.results)

    @property
    def passed_count(self) -> int:
        return sum(1 for r in self.results if r.status == SpecStatus.PASSED)

    @property
    def failed_count(self) -> int:
        return len(self.results) - self.passed_count

    @property
    def all_passed(self) -> bool:
        return all(r.passed for r in self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'runId': self.run_id,
            'testUrl': self.test_url,
            'model': self.model_name,
            'specs': list(self.specs),
            'skippedSpecs': list(self.skipped_specs),
            'testResults': [r.to_dict() for r in self.results],
            'totalInputTokens': self.total_input_tokens,
            'totalOutputTokens': self.total_output_tokens,
            'planningInputTokens': self.planning_input_tokens,
            'planningOutputTokens': self.planning_output_tokens,
            'passed': self.passed_count,
            'failed': self.failed_count,
        }


class SpecRunner:
    """
    Fans specs out over concurrent tasks sharing one browser.

    Results land in the aggregator in completion order. With fail_fast
    set, specs that have not started when a failure is recorded are
    skipped and produce no result.
    """

    def __init__(self, config: RunConfig, browser: BrowserSession, model: ModelClient,
                 aggregator: ResultAggregator):
        self.config = config
        self.browser = browser
        self.model = model
        self.aggregator = aggregator
        self.skipped: List[str] = []

        self._semaphore: Optional[asyncio.Semaphore] = None
        self._stop: Optional[asyncio.Event] = None

    async def run_all(self, specs: List[str]) -> Tuple[TestResult, ...]:
        self._semaphore = asyncio.Semaphore(max(1, self.config.concurrency))
        self._stop = asyncio.Event()

        logger.info(f"🚀 Running {len(specs)} spec(s), up to {self.config.concurrency} at a time")
        await asyncio.gather(*(self.run_spec(spec_id, spec) for spec_id, spec in enumerate(specs)))
        return self.aggregator.snapshot()

    async def run_spec(self, spec_id: int, spec: str) -> Optional[TestResult]:
        async with self._semaphore:
            if self._stop.is_set():
                logger.info(f"⏭️  Skipping spec {spec_id} after an earlier failure: {spec}")
                self.skipped.append(spec)
                return None

            agent = ActionAgent(spec, self.model, self.browser, self.aggregator,
                                config=self.config.agent, spec_id=spec_id)
            try:
                async with self.browser.open(self.config.test_url) as spec_page:
                    result = await agent.run(spec_page, self.config.test_url)
            except Exception as e:
                logger.error(f"❌ Spec {spec_id} could not get a browser page: {e}")
                result = agent.fail(f"Could not open a browser page: {e}")

            if self.config.fail_fast and not result.passed:
                self._stop.set()
            return result


async def resolve_specs(config: RunConfig, browser: BrowserSession, planner: SpecPlanner,
                        stdin: Optional[IO[str]] = None) -> List[str]:
    """Specs for this run, in precedence order: single spec, spec file, survey plan."""
    if config.specific_spec:
        specs = [config.specific_spec]
    elif config.spec_file:
        specs = load_specs(config.spec_file, stdin=stdin)
        logger.info(f"📄 Loaded {len(specs)} spec(s) from {config.spec_file}")
    else:
        async with browser.open(config.test_url) as survey_page:
            specs = await planner.survey_and_plan(
                survey_page.page,
                config.test_url,
                max_pages=config.survey_max_pages,
                limit=config.spec_limit,
            )
    return specs[:config.spec_limit]


async def run(config: RunConfig, browser: Optional[Browser] = None,
              model_client: Optional[ModelClient] = None, stdin: Optional[IO[str]] = None,
              console: Optional[Console] = None) -> RunReport:
    """
    Run the full pipeline for ``config``.

    Args:
        config: Run configuration
        browser: Already-launched Playwright browser to reuse (left open)
        model_client: Pre-built model client; skips the API key check
        stdin: Stream read when ``config.spec_file`` is ``-``
        console: Console for the end-of-run summary

    Returns:
        RunReport with one TestResult per attempted spec

    Raises:
        ConfigurationError, BrowserInitError, PlanValidationError,
        SpecFileError: run-fatal problems, after resources are released
    """
    model_spec = resolve_model(config.model_name)
    if model_client is None:
        api_key = ensure_api_key(config)
        model_client = ModelClient(model_spec, api_key, config.model)

    session = SessionManager(config.trajectories_path)
    session.attach_log_file()
    logger.info(f"Run {session.run_id} configuration: {describe(config)}")

    aggregator = ResultAggregator()
    browser_session = BrowserSession(config.browser, session=session, browser=browser)
    planner = SpecPlanner(browser_session, model_client)
    runner = SpecRunner(config, browser_session, model_client, aggregator)
    specs: List[str] = []
    completed = False

    try:
        await browser_session.start()
        specs = await resolve_specs(config, browser_session, planner, stdin=stdin)
        await runner.run_all(specs)
        logger.info("Test complete")
        completed = True
    finally:
        try:
            await browser_session.stop()

            results = aggregator.snapshot()
            replay_source = generate_replay_tests(results, config.test_url)
            report = RunReport(
                run_id=session.run_id,
                test_url=config.test_url,
                model_name=config.model_name,
                specs=specs,
                results=results,
                replay_source=replay_source,
                session_dir=str(session.session_dir),
                skipped_specs=list(runner.skipped),
                planning_input_tokens=planner.prompt_tokens,
                planning_output_tokens=planner.completion_tokens,
            )
            print_test_results(results, console=console)
            try:
                report.replay_path = await session.save_replay_tests(replay_source)
                await session.save_report(report.to_dict())
            except OSError as e:
                if completed:
                    raise
                # the run-fatal error already in flight is the one to report
                logger.error(f"❌ Could not save run artifacts: {e}")
        finally:
            session.detach_log_file()

    return report
