"""
Autospec - AI-driven spec execution for web applications

Surveys a page, plans natural-language specs, drives a browser with a
multimodal model to verify each one and emits Playwright replay tests
for the specs that passed.
"""

__version__ = "0.3.0"

from .config import RunConfig
from .core.models import SpecStatus, TestResult
from .runner import RunReport, run

__all__ = ['RunConfig', 'RunReport', 'SpecStatus', 'TestResult', 'run', '__version__']
