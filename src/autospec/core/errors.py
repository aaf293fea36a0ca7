"""
Error Taxonomy

Exceptions raised across the spec-execution engine, grouped by how far
their damage reaches:

- Run-fatal: configuration, browser launch, test-plan and spec-file errors
- Spec-fatal: model responses that do not match the action schema
- Recoverable: action execution failures that are folded back into the
  conversation so the model can correct itself
"""

import json
import traceback
from typing import Any


class AutospecError(Exception):
    """Base class for all autospec errors."""


class ConfigurationError(AutospecError):
    """Invalid run configuration, detected before any browser work."""


class ModelConfigurationError(ConfigurationError):
    """Unknown or unsupported model name."""

    def __init__(self, model_name: str, supported: Any = None):
        self.model_name = model_name
        self.supported = list(supported or [])
        message = f"Unsupported model '{model_name}'"
        if self.supported:
            message += f". Choose one of: {', '.join(self.supported)}"
        super().__init__(message)


class MissingApiKeyError(ConfigurationError):
    """No API key was given for the selected model."""

    def __init__(self, model_name: str, env_var: str):
        self.model_name = model_name
        self.env_var = env_var
        super().__init__(
            f"You specified {model_name} as model but did not provide an "
            f"{env_var} API key.\nPlease provide an API key via the --apikey "
            f"flag (e.g. autospec --model {model_name} --apikey YOUR_KEY_HERE) "
            f"or the {env_var} environment variable."
        )


class BrowserInitError(AutospecError):
    """The browser engine could not be launched or connected to."""


class PlanValidationError(AutospecError):
    """The planning response is not an object with an array of string specs."""


class SpecFileError(AutospecError):
    """A spec file (or stdin) did not contain a JSON array of strings."""


class ModelResponseError(AutospecError):
    """The model returned something that could not be used."""

    def __init__(self, message: str, raw: str = "", prompt_tokens: int = 0, completion_tokens: int = 0):
        self.raw = raw
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        super().__init__(message)


class ActionSchemaError(ModelResponseError):
    """A step response violates the closed action schema."""


class ActionExecutionError(AutospecError):
    """An action could not be carried out in the browser."""


class CrossOriginNavigationError(ActionExecutionError):
    """A frame navigated away from the host under test and was stopped."""

    def __init__(self, url: str, test_url: str):
        self.url = url
        self.test_url = test_url
        super().__init__(
            f"Navigation to {url} was stopped because that URL is not on the "
            f"same host as the test URL, {test_url}. Use the navigate action "
            f"to go back to the previous URL and recover from this failure state."
        )


class UnknownActionError(ActionExecutionError):
    """The action kind is outside the supported vocabulary."""


def stringify_error(error: Any) -> str:
    """Render an error for the model: message plus traceback when available."""
    if isinstance(error, BaseException):
        details = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return f"{error}\n{details}".strip()
    if isinstance(error, str):
        return error
    return json.dumps(error, indent=4, default=str)
