"""
Autospec command line entry point.
"""

import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.prompt import IntPrompt, Prompt

from . import __version__
from .config.settings import DEFAULT_MODEL, MODEL_REGISTRY, RunConfig
from .core.errors import AutospecError
from .runner import run

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='autospec',
        description='Autospec - AI-driven spec execution with Playwright replay tests',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Survey the page, plan up to 10 specs and run them
  autospec --url https://todomvc.com/examples/react/dist/

  # Run specs from a JSON array file (use - for stdin)
  autospec --url http://localhost:3000 --spec-file specs.json

  # Run a single spec with a visible browser
  autospec --url http://localhost:3000 --spec "Adding a todo shows it in the list" --headed

Run Output:
  trajectories/<runId>/
  ├── combined.log
  ├── screenshot-*.png / *.html
  ├── *.webm
  ├── report.json
  └── successfulTests-<runId>.spec.js
        """
    )

    parser.add_argument('--url', type=str, help='URL of the page under test')
    parser.add_argument('--model', type=str, choices=sorted(MODEL_REGISTRY),
                        help=f'Model to use (default: {DEFAULT_MODEL})')
    parser.add_argument('--spec-limit', type=int,
                        help='Maximum number of specs to run (default: 10)')
    parser.add_argument('--apikey', type=str,
                        help="API key for the model's provider (default: provider env variable)")
    parser.add_argument('--spec-file', type=str,
                        help='JSON file with an array of spec strings, - for stdin')
    parser.add_argument('--spec', type=str, help='Run just this spec')

    parser.add_argument('--fail-fast', action='store_true',
                        help='Skip specs that have not started once one fails')
    parser.add_argument('--max-iterations', type=int,
                        help='Maximum actions per spec (default: 10)')
    parser.add_argument('--concurrency', type=int,
                        help='Maximum specs run at once (default: all, or 1 with --fail-fast)')
    parser.add_argument('--headed', action='store_true',
                        help='Show the browser window')
    parser.add_argument('--no-video', action='store_true',
                        help='Do not record videos of spec runs')
    parser.add_argument('--trajectories-path', type=str,
                        help='Directory for run artifacts (default: ./trajectories)')
    parser.add_argument('--config', type=str,
                        help='YAML configuration file')

    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose logging')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def prompt_for_options(console: Optional[Console] = None) -> Dict[str, Any]:
    """Ask for the run options interactively."""
    console = console or Console()
    console.print("[bold]Autospec[/bold] - no --url given, answer a few questions")

    url = Prompt.ask("URL to test", default="http://localhost:3000", console=console)
    model = Prompt.ask("Model", choices=sorted(MODEL_REGISTRY), default=DEFAULT_MODEL, console=console)
    spec_limit = IntPrompt.ask("Spec limit", default=10, console=console)
    api_key = Prompt.ask("API key (blank to use the environment)", default="",
                         password=True, show_default=False, console=console)
    spec_file = Prompt.ask("Spec file (blank to plan from the page)", default="",
                           show_default=False, console=console)

    return {
        'test_url': url,
        'model_name': model,
        'spec_limit': spec_limit,
        'api_key': api_key or None,
        'spec_file': spec_file or None,
    }


def build_config(args: argparse.Namespace, prompted: Optional[Dict[str, Any]] = None) -> RunConfig:
    """Merge config file, environment, prompts and flags (flags win)."""
    flags = {
        'test_url': args.url,
        'model_name': args.model,
        'spec_limit': args.spec_limit,
        'api_key': args.apikey,
        'spec_file': args.spec_file,
        'specific_spec': args.spec,
        'max_concurrency': args.concurrency,
        'trajectories_path': args.trajectories_path,
    }
    overrides: Dict[str, Any] = dict(prompted or {})
    overrides.update({key: value for key, value in flags.items() if value is not None})
    if args.fail_fast:
        overrides['fail_fast'] = True

    if args.config:
        config = RunConfig.from_yaml(args.config, **overrides)
    else:
        config = RunConfig.from_env(**overrides)

    if args.headed:
        config.browser.headless = False
    if args.no_video:
        config.browser.record_video = False
    if args.max_iterations is not None:
        config.agent.max_iterations = args.max_iterations
        # __post_init__ only validated the value the agent config started with
        config.__post_init__()
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point; returns 0 only when every attempted spec passed."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    try:
        prompted = None if args.url else prompt_for_options()
        config = build_config(args, prompted)
        report = asyncio.run(run(config, stdin=sys.stdin))
    except KeyboardInterrupt:
        print("\n🛑 Run interrupted by user")
        logger.info("Run interrupted by user")
        return 1
    except AutospecError as e:
        logger.error(f"❌ {e}")
        return 1
    except Exception as e:
        logger.error(f"❌ Run failed: {e}", exc_info=True)
        return 1

    logger.info(f"Run {report.run_id}: {report.passed_count} passed, {report.failed_count} failed")
    return 0 if report.all_passed else 1


if __name__ == "__main__":
    sys.exit(main())
