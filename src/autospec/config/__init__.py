"""
Configuration Management

Centralized configuration for autospec runs:
- Browser configuration
- Agent loop limits
- Model sampling parameters and the supported model registry
"""

from .settings import (
    AgentConfig,
    BrowserConfig,
    DEFAULT_MODEL,
    MODEL_REGISTRY,
    ModelConfig,
    ModelSpec,
    RunConfig,
    VIEWPORT_SIZE,
    ensure_api_key,
    resolve_model,
)

__all__ = [
    'AgentConfig', 'BrowserConfig', 'ModelConfig', 'RunConfig',
    'ModelSpec', 'MODEL_REGISTRY', 'DEFAULT_MODEL', 'VIEWPORT_SIZE',
    'ensure_api_key', 'resolve_model',
]
