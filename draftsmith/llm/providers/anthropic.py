"""Anthropic provider implementation.

Chat only: the Messages API takes system text as a top-level field and
caps temperature at 1.0. There is no image model, so generate_image is the
base class's UnsupportedFeatureError.
"""

import os
import time
from typing import Any

from anthropic import AsyncAnthropic, APIConnectionError, APIStatusError, APITimeoutError

from ..errors import (
    AuthenticationError,
    ProviderError,
    TimeoutError,
    error_for_status,
    parse_retry_after,
)
from ..models import LLMRequest, LLMResponse, Usage
from .base import LLMProvider

CONTENT_FILTER_MARKERS = ("safety", "harmful")

# Messages API stop reasons, in LLMResponse finish_reason terms
FINISH_REASONS = {
    "end_turn": "stop",
    "stop_sequence": "stop",
    "max_tokens": "length",
}


class AnthropicProvider(LLMProvider):
    """Anthropic Messages API provider."""

    SUPPORTED_FEATURES = frozenset({"system_message"})

    DEFAULT_MAX_TOKENS = 4096
    MAX_TEMPERATURE = 1.0

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 60.0,
        default_model: str = "claude-sonnet-4-5-20250929",
    ):
        self._api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self._timeout = timeout
        self._default_model = default_model
        self._client: AsyncAnthropic | None = None

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def client(self) -> AsyncAnthropic:
        if self._client is None:
            if not self._api_key:
                raise AuthenticationError(
                    "Anthropic API key not configured. Set ANTHROPIC_API_KEY environment variable.",
                    provider=self.name,
                )
            self._client = AsyncAnthropic(api_key=self._api_key, timeout=self._timeout)
        return self._client

    def supports(self, feature: str) -> bool:
        return feature in self.SUPPORTED_FEATURES

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Send one Messages API call.

        Raises:
            LLMError subclass matching the failure; see error_for_status.
        """
        start_time = time.perf_counter()
        try:
            message = await self.client.messages.create(**self._build_request(request))
        except APITimeoutError as e:
            raise TimeoutError(
                f"Anthropic request timed out after {self._timeout}s",
                provider=self.name,
            ) from e
        except APIConnectionError as e:
            raise ProviderError(f"Failed to connect to Anthropic: {e}", provider=self.name) from e
        except APIStatusError as e:
            response = getattr(e, "response", None)
            raise error_for_status(
                e.status_code,
                str(getattr(e, "message", e)),
                vendor="Anthropic",
                provider=self.name,
                request_id=getattr(e, "request_id", None),
                retry_after=parse_retry_after(response.headers) if response is not None else None,
                filter_markers=CONTENT_FILTER_MARKERS,
            ) from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        return self._parse_response(message, latency_ms)

    def _build_request(self, request: LLMRequest) -> dict[str, Any]:
        system = "\n\n".join(m.content for m in request.messages if m.role == "system")
        params: dict[str, Any] = {
            "model": request.model or self._default_model,
            "messages": [
                {"role": m.role, "content": m.content}
                for m in request.messages
                if m.role != "system"
            ],
            "max_tokens": request.max_tokens or self.DEFAULT_MAX_TOKENS,
            "temperature": min(request.temperature, self.MAX_TEMPERATURE),
        }
        if system:
            params["system"] = system
        return params

    def _parse_response(self, message: Any, latency_ms: int) -> LLMResponse:
        texts = [block.text for block in message.content if block.type == "text"]
        usage = message.usage
        return LLMResponse(
            text="\n".join(texts) if texts else None,
            finish_reason=FINISH_REASONS.get(message.stop_reason, message.stop_reason or "stop"),
            usage=Usage(
                prompt_tokens=usage.input_tokens,
                completion_tokens=usage.output_tokens,
                total_tokens=usage.input_tokens + usage.output_tokens,
            ),
            model=message.model,
            provider=self.name,
            latency_ms=latency_ms,
            request_id=message.id,
        )
