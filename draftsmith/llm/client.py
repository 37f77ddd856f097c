"""High-level LLM client.

Dispatches a request to exactly one named provider. There is no retry,
backoff, or cross-provider fallback: a failed call surfaces to the caller,
who decides whether to re-invoke.
"""

import logging
import os
import uuid

from .errors import LLMError
from .models import ImageResponse, LLMRequest, LLMResponse
from .providers.anthropic import AnthropicProvider
from .providers.base import LLMProvider
from .providers.openai import OpenAIProvider

logger = logging.getLogger(__name__)


class LLMClient:
    """Provider registry and dispatcher.

    Configuration (env vars):
    - LLM_DEFAULT_PROVIDER: Default provider (default: "openai")
    - LLM_TIMEOUT_SECONDS: Request timeout (default: 60)
    """

    DEFAULT_PROVIDER = "openai"
    DEFAULT_TIMEOUT = 60.0

    def __init__(
        self,
        default_provider: str | None = None,
        timeout: float | None = None,
        openai_api_key: str | None = None,
        anthropic_api_key: str | None = None,
    ):
        """Initialize LLM client.

        Args:
            default_provider: Provider used when a call names none.
                Defaults to LLM_DEFAULT_PROVIDER env var.
            timeout: Request timeout in seconds. Defaults to LLM_TIMEOUT_SECONDS env var.
            openai_api_key: OpenAI API key. Defaults to OPENAI_API_KEY env var.
            anthropic_api_key: Anthropic API key. Defaults to ANTHROPIC_API_KEY env var.
        """
        self._default_provider = (
            default_provider
            or os.environ.get("LLM_DEFAULT_PROVIDER", self.DEFAULT_PROVIDER)
        )
        self._timeout = (
            timeout
            if timeout is not None
            else float(os.environ.get("LLM_TIMEOUT_SECONDS", self.DEFAULT_TIMEOUT))
        )

        self._providers: dict[str, LLMProvider] = {
            "openai": OpenAIProvider(api_key=openai_api_key, timeout=self._timeout),
            "anthropic": AnthropicProvider(api_key=anthropic_api_key, timeout=self._timeout),
        }

    @property
    def provider_names(self) -> list[str]:
        """Names of all registered providers."""
        return list(self._providers.keys())

    def has_provider(self, name: str) -> bool:
        """Check whether a provider name is registered."""
        return name in self._providers

    def get_provider(self, name: str) -> LLMProvider:
        """Get a specific provider by name.

        Raises:
            ValueError: If provider name is not recognized.
        """
        if name not in self._providers:
            raise ValueError(f"Unknown provider: {name}. Available: {self.provider_names}")
        return self._providers[name]

    def get_default_provider(self) -> LLMProvider:
        """Get the default provider."""
        return self.get_provider(self._default_provider)

    async def generate(
        self,
        request: LLMRequest,
        provider: str | None = None,
    ) -> LLMResponse:
        """Generate a completion with a single provider.

        Args:
            request: LLM request to send.
            provider: Provider name. Defaults to the default provider.

        Raises:
            ValueError: Unknown provider name.
            LLMError: Any provider failure, unchanged.
        """
        provider_name = provider or self._default_provider
        llm_provider = self.get_provider(provider_name)
        correlation_id = str(uuid.uuid4())

        try:
            response = await llm_provider.generate(request)
        except LLMError as e:
            logger.warning(
                "LLM request failed: %s",
                str(e),
                extra={
                    "correlation_id": correlation_id,
                    "provider": provider_name,
                    "error_type": type(e).__name__,
                },
            )
            raise

        logger.info(
            "LLM request succeeded",
            extra={
                "correlation_id": correlation_id,
                "provider": response.provider,
                "model": response.model,
                "latency_ms": response.latency_ms,
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "finish_reason": response.finish_reason,
            },
        )
        return response

    async def generate_image(
        self,
        prompt: str,
        provider: str | None = None,
    ) -> ImageResponse:
        """Generate an image with a single provider.

        Raises:
            ValueError: Unknown provider name.
            UnsupportedFeatureError: Provider has no image model.
            LLMError: Any other provider failure.
        """
        provider_name = provider or self._default_provider
        llm_provider = self.get_provider(provider_name)

        response = await llm_provider.generate_image(prompt)
        logger.info(
            "Image request succeeded",
            extra={
                "provider": response.provider,
                "model": response.model,
                "latency_ms": response.latency_ms,
            },
        )
        return response


_default_client: LLMClient | None = None


def get_client() -> LLMClient:
    """Get the default LLM client singleton."""
    global _default_client
    if _default_client is None:
        _default_client = LLMClient()
    return _default_client


def set_client(client: LLMClient | None) -> None:
    """Replace the default client (None resets to lazy creation)."""
    global _default_client
    _default_client = client
