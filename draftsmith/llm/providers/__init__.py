"""Vendor adapters behind the LLMProvider interface.

OpenAI serves chat and cover images; Anthropic serves chat only.
"""

from .anthropic import AnthropicProvider
from .base import LLMProvider
from .openai import OpenAIProvider

__all__ = [
    "AnthropicProvider",
    "LLMProvider",
    "OpenAIProvider",
]
