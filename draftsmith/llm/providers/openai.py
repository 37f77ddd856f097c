"""OpenAI provider implementation.

Implements the LLMProvider interface for OpenAI's Chat Completions API
and the Images API (DALL-E 3) for course cover images.
"""

import os
import time
from typing import Any

from openai import AsyncOpenAI, APIConnectionError, APIStatusError, APITimeoutError

from ..errors import (
    AuthenticationError,
    ProviderError,
    TimeoutError,
    error_for_status,
    parse_retry_after,
)
from ..models import ImageResponse, LLMRequest, LLMResponse, Usage
from .base import LLMProvider

CONTENT_FILTER_MARKERS = ("content_filter", "safety")


class OpenAIProvider(LLMProvider):
    """OpenAI Chat Completions and Images API provider."""

    SUPPORTED_FEATURES = {
        "images",
        "system_message",
    }

    IMAGE_MODEL = "dall-e-3"
    IMAGE_SIZE = "1024x1024"

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 60.0,
        default_model: str = "gpt-4o",
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key. Defaults to OPENAI_API_KEY env var.
            timeout: Request timeout in seconds.
            default_model: Default model to use if not specified in request.
        """
        self._api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self._timeout = timeout
        self._default_model = default_model
        self._client: AsyncOpenAI | None = None

    @property
    def name(self) -> str:
        """Provider identifier."""
        return "openai"

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-initialized OpenAI client."""
        if self._client is None:
            if not self._api_key:
                raise AuthenticationError(
                    "OpenAI API key not configured. Set OPENAI_API_KEY environment variable.",
                    provider=self.name,
                )
            self._client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout)
        return self._client

    def supports(self, feature: str) -> bool:
        """Check if feature is supported."""
        return feature in self.SUPPORTED_FEATURES

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Send a completion request to OpenAI.

        Raises:
            Various LLMError subclasses based on the error type.
        """
        start_time = time.perf_counter()
        openai_request = self._build_request(request)

        try:
            response = await self.client.chat.completions.create(**openai_request)
            latency_ms = int((time.perf_counter() - start_time) * 1000)
            return self._parse_response(response, latency_ms)

        except APITimeoutError as e:
            raise TimeoutError(
                f"OpenAI request timed out after {self._timeout}s",
                provider=self.name,
            ) from e

        except APIConnectionError as e:
            raise ProviderError(
                f"Failed to connect to OpenAI: {e}",
                provider=self.name,
            ) from e

        except APIStatusError as e:
            self._handle_api_error(e)

    async def generate_image(self, prompt: str) -> ImageResponse:
        """Generate one image with DALL-E 3 and return its hosted URL."""
        start_time = time.perf_counter()

        try:
            response = await self.client.images.generate(
                model=self.IMAGE_MODEL,
                prompt=prompt,
                n=1,
                size=self.IMAGE_SIZE,
                quality="standard",
            )
        except APITimeoutError as e:
            raise TimeoutError(
                f"OpenAI image request timed out after {self._timeout}s",
                provider=self.name,
            ) from e
        except APIConnectionError as e:
            raise ProviderError(
                f"Failed to connect to OpenAI: {e}",
                provider=self.name,
            ) from e
        except APIStatusError as e:
            self._handle_api_error(e)

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        image = response.data[0] if response.data else None

        return ImageResponse(
            url=image.url if image else None,
            model=self.IMAGE_MODEL,
            provider=self.name,
            latency_ms=latency_ms,
            revised_prompt=getattr(image, "revised_prompt", None) if image else None,
        )

    def _build_request(self, request: LLMRequest) -> dict[str, Any]:
        """Convert LLMRequest to OpenAI API format."""
        messages = [
            {"role": msg.role, "content": msg.content}
            for msg in request.messages
        ]

        openai_request: dict[str, Any] = {
            "model": request.model or self._default_model,
            "messages": messages,
            "temperature": request.temperature,
        }

        if request.max_tokens:
            openai_request["max_tokens"] = request.max_tokens

        if request.stop:
            openai_request["stop"] = request.stop

        return openai_request

    def _parse_response(self, response: Any, latency_ms: int) -> LLMResponse:
        """Convert OpenAI response to LLMResponse."""
        choice = response.choices[0]

        return LLMResponse(
            text=choice.message.content,
            finish_reason=choice.finish_reason or "stop",
            usage=Usage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            ),
            model=response.model,
            provider=self.name,
            latency_ms=latency_ms,
            request_id=response.id,
            raw=response.model_dump() if hasattr(response, "model_dump") else None,
        )

    def _handle_api_error(self, error: APIStatusError) -> None:
        """Convert OpenAI API errors to LLMError types."""
        message = str(getattr(error, "message", error))
        response = getattr(error, "response", None)
        raise error_for_status(
            error.status_code,
            message,
            vendor="OpenAI",
            provider=self.name,
            request_id=getattr(error, "request_id", None),
            retry_after=parse_retry_after(response.headers) if response is not None else None,
            filter_markers=CONTENT_FILTER_MARKERS,
        ) from error
