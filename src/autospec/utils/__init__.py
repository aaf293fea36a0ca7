"""
Small helpers shared across the engine.
"""

from .imaging import draw_cursor

__all__ = ['draw_cursor']
