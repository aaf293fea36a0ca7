"""
Model access: structured chat completions validated with pydantic.
"""

from .client import Completion, ModelClient, image_part, text_part

__all__ = ['Completion', 'ModelClient', 'image_part', 'text_part']
