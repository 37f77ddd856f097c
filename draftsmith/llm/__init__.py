"""LLM provider abstraction layer.

This module provides a vendor-neutral interface for interacting with LLM providers
(OpenAI, Anthropic). Each call targets one provider; failures are not retried.
"""

from .client import LLMClient, get_client, set_client
from .errors import (
    AuthenticationError,
    ContentFilterError,
    InvalidRequestError,
    LLMError,
    ModelNotFoundError,
    ProviderError,
    RateLimitError,
    TimeoutError,
    UnsupportedFeatureError,
)
from .models import ChatMessage, ImageResponse, LLMRequest, LLMResponse, Usage

__all__ = [
    "LLMClient",
    "get_client",
    "set_client",
    "LLMRequest",
    "LLMResponse",
    "ImageResponse",
    "ChatMessage",
    "Usage",
    "LLMError",
    "AuthenticationError",
    "RateLimitError",
    "TimeoutError",
    "InvalidRequestError",
    "ContentFilterError",
    "ProviderError",
    "ModelNotFoundError",
    "UnsupportedFeatureError",
]
