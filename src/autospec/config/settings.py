"""
Run Configuration

Configuration classes for a spec-execution run, the supported model
registry, and the pre-flight checks that must pass before a browser is
launched.
"""

import logging
import os
from dataclasses import dataclass, fields, is_dataclass
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from ..core.errors import ConfigurationError, MissingApiKeyError, ModelConfigurationError

logger = logging.getLogger(__name__)

VIEWPORT_SIZE = 1024


@dataclass(frozen=True)
class ModelSpec:
    """How to reach one supported model through the OpenAI SDK."""
    name: str
    provider_model: str
    api_key_env: str
    base_url: Optional[str] = None
    label: str = ""


MODEL_REGISTRY: Dict[str, ModelSpec] = {
    "gpt-4o": ModelSpec("gpt-4o", "gpt-4o", "OPENAI_API_KEY", label="GPT-4o"),
    "gpt-4o-mini": ModelSpec("gpt-4o-mini", "gpt-4o-mini", "OPENAI_API_KEY", label="GPT-4o mini"),
    "gemini-1.5-flash-latest": ModelSpec(
        "gemini-1.5-flash-latest",
        "gemini-1.5-flash-latest",
        "GOOGLE_GENERATIVE_AI_API_KEY",
        base_url="https://generativelanguage.googleapis.com/v1beta/openai/",
        label="Gemini Flash",
    ),
    "claude-3-haiku": ModelSpec(
        "claude-3-haiku",
        "claude-3-haiku-20240307",
        "ANTHROPIC_API_KEY",
        base_url="https://api.anthropic.com/v1/",
        label="Claude Haiku",
    ),
}

DEFAULT_MODEL = "gpt-4o"


@dataclass
class BrowserConfig:
    """Configuration for browser contexts used by the run."""
    headless: bool = True
    viewport_width: int = VIEWPORT_SIZE
    viewport_height: int = VIEWPORT_SIZE
    default_timeout_ms: int = 2500
    record_video: bool = True
    reuse_context: bool = False
    args: List[str] = None

    def __post_init__(self):
        if self.args is None:
            self.args = ['--no-sandbox', '--disable-dev-shm-usage']


@dataclass
class AgentConfig:
    """Configuration for the per-spec action loop."""
    max_iterations: int = 10
    settle_delay_ms: int = 50
    max_html_chars: int = 0  # 0 = send the full DOM


@dataclass
class ModelConfig:
    """Sampling parameters sent with every model request."""
    temperature: float = 0.0
    max_retries: int = 5
    max_tokens: int = 1000
    seed: int = 0


@dataclass
class RunConfig:
    """Main run configuration."""
    test_url: str = "http://localhost:3000"
    model_name: str = DEFAULT_MODEL
    spec_limit: int = 10
    api_key: Optional[str] = None
    spec_file: Optional[str] = None
    specific_spec: Optional[str] = None
    trajectories_path: str = "./trajectories"
    max_concurrency: Optional[int] = None  # None = every spec at once, or one with fail_fast
    survey_max_pages: int = 1
    fail_fast: bool = False

    browser: BrowserConfig = None
    agent: AgentConfig = None
    model: ModelConfig = None

    def __post_init__(self):
        if self.browser is None:
            self.browser = BrowserConfig()
        if self.agent is None:
            self.agent = AgentConfig()
        if self.model is None:
            self.model = ModelConfig()
        if self.spec_limit < 1:
            raise ConfigurationError(f"spec_limit must be at least 1, got {self.spec_limit}")
        if self.agent.max_iterations < 1:
            raise ConfigurationError(f"max_iterations must be at least 1, got {self.agent.max_iterations}")

    @property
    def concurrency(self) -> int:
        if self.max_concurrency:
            return self.max_concurrency
        # fail-fast only has specs left to skip when they run one at a time
        return 1 if self.fail_fast else self.spec_limit

    @classmethod
    def from_env(cls, **overrides) -> 'RunConfig':
        """Create a config from URL / MODEL / SPEC_LIMIT (and a .env file)."""
        load_dotenv()

        values: Dict[str, Any] = {}
        if os.getenv("URL"):
            values["test_url"] = os.environ["URL"]
        if os.getenv("MODEL"):
            values["model_name"] = os.environ["MODEL"]
        spec_limit = os.getenv("SPEC_LIMIT")
        if spec_limit and spec_limit.isdigit() and int(spec_limit) > 0:
            values["spec_limit"] = int(spec_limit)

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @classmethod
    def from_yaml(cls, config_path: str = "autospec.yml", **overrides) -> 'RunConfig':
        """
        Load configuration from a YAML file.

        Top-level keys mirror the dataclass fields; ``browser``, ``agent``
        and ``model`` are nested mappings. A missing file falls back to the
        environment defaults.
        """
        try:
            with open(config_path, 'r') as file:
                raw = yaml.safe_load(file) or {}
            logger.info(f"Loaded configuration from {config_path}")
        except FileNotFoundError:
            logger.warning(f"No {config_path} found, using defaults")
            return cls.from_env(**overrides)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing {config_path}: {e}")
            raise

        if not isinstance(raw, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping at the top level")

        nested = {
            "browser": BrowserConfig,
            "agent": AgentConfig,
            "model": ModelConfig,
        }
        values = {}
        for key, value in raw.items():
            if key in nested:
                values[key] = _build_dataclass(nested[key], value or {}, config_path)
            elif key in _field_names(cls):
                values[key] = value
            else:
                logger.warning(f"Ignoring unknown configuration key '{key}' in {config_path}")

        return cls.from_env(**{**values, **overrides})


def _field_names(cls) -> List[str]:
    return [f.name for f in fields(cls)]


def _build_dataclass(cls, values: Dict[str, Any], source: str):
    if not isinstance(values, dict):
        raise ConfigurationError(f"'{cls.__name__}' section in {source} must be a mapping")
    unknown = set(values) - set(_field_names(cls))
    if unknown:
        raise ConfigurationError(f"Unknown {cls.__name__} keys in {source}: {', '.join(sorted(unknown))}")
    return cls(**values)


def resolve_model(model_name: str) -> ModelSpec:
    """Look up a model name, failing the run if it is not supported."""
    try:
        return MODEL_REGISTRY[model_name]
    except KeyError:
        raise ModelConfigurationError(model_name, MODEL_REGISTRY.keys()) from None


def ensure_api_key(config: RunConfig) -> str:
    """
    Return the API key for the configured model.

    The explicit ``api_key`` wins; otherwise the provider's environment
    variable is used. Raises MissingApiKeyError when neither is present.
    """
    spec = resolve_model(config.model_name)
    if config.api_key:
        return config.api_key

    key = os.getenv(spec.api_key_env)
    if not key:
        raise MissingApiKeyError(spec.label or spec.name, spec.api_key_env)
    return key


def describe(config: RunConfig) -> Dict[str, Any]:
    """Flatten a config for logging, without secrets."""
    data = {}
    for f in fields(config):
        value = getattr(config, f.name)
        if f.name == "api_key":
            value = "***" if value else None
        elif is_dataclass(value):
            value = {sub.name: getattr(value, sub.name) for sub in fields(value)}
        data[f.name] = value
    return data

