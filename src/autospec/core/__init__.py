"""
Core Module

Contract types, errors, browser control and run session management.
"""

from .errors import (
    ActionExecutionError,
    AutospecError,
    BrowserInitError,
    ConfigurationError,
    CrossOriginNavigationError,
    ModelResponseError,
    PlanValidationError,
    SpecFileError,
)
from .models import Action, PlanActionStep, SpecStatus, TestPlan, TestResult
from .session import SessionManager, generate_run_id

__all__ = [
    'Action', 'PlanActionStep', 'SpecStatus', 'TestPlan', 'TestResult',
    'AutospecError', 'ConfigurationError', 'BrowserInitError', 'PlanValidationError',
    'SpecFileError', 'ModelResponseError', 'ActionExecutionError', 'CrossOriginNavigationError',
    'SessionManager', 'generate_run_id',
]
