"""
Test Generation Module

Conversion of passed spec traces into replayable Playwright test files.
"""

from .replay_codegen import (
    STATEMENT_BUILDERS,
    generate_replay_tests,
    statement_for,
)

__all__ = [
    'STATEMENT_BUILDERS',
    'generate_replay_tests',
    'statement_for',
]
