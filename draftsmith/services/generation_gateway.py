"""HTTP gateway to the text and image generation endpoints.

The gateway is the only place authoring code talks to the network. One
call is one HTTP request: there is no retry, backoff, or provider
fallback. Failures surface as GatewayError subclasses.

Configuration (env vars):
- GENERATION_ENDPOINT_URL: Base URL of the generation API (default: http://localhost:8000/api/ai)
- GENERATION_PROVIDER: Provider name sent with each request (default: "openai")
- GENERATION_TIMEOUT_SECONDS: Request timeout (default: 60)
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Optional

import httpx

from draftsmith.services.prompt_composer import ComposedPrompt

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Base class for generation gateway failures."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.provider = provider


class GatewayUnreachableError(GatewayError):
    """Network or transport failure, including timeouts."""


class GatewayBadStatusError(GatewayError):
    """The endpoint answered with a non-success status."""

    def __init__(self, message: str, status_code: int, provider: Optional[str] = None):
        super().__init__(message, provider)
        self.status_code = status_code


class GatewayEmptyBodyError(GatewayError):
    """Success status, but no usable text in the body."""


class GenerationGateway:
    """Async client for the generation endpoints."""

    DEFAULT_ENDPOINT = "http://localhost:8000/api/ai"
    DEFAULT_PROVIDER = "openai"
    DEFAULT_TIMEOUT = 60.0

    def __init__(
        self,
        endpoint: str | None = None,
        provider: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the gateway.

        Args:
            endpoint: Base URL. Defaults to GENERATION_ENDPOINT_URL env var.
            provider: Default provider name. Defaults to GENERATION_PROVIDER env var.
            timeout: Request timeout in seconds. Defaults to GENERATION_TIMEOUT_SECONDS env var.
            client: Pre-built httpx client (caller owns its lifecycle).
            transport: Transport for an internally created client (tests).
        """
        self.endpoint = (
            endpoint or os.environ.get("GENERATION_ENDPOINT_URL", self.DEFAULT_ENDPOINT)
        ).rstrip("/")
        self.provider = provider or os.environ.get("GENERATION_PROVIDER", self.DEFAULT_PROVIDER)
        self.timeout = (
            timeout
            if timeout is not None
            else float(os.environ.get("GENERATION_TIMEOUT_SECONDS", self.DEFAULT_TIMEOUT))
        )

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def send(self, prompt: ComposedPrompt, provider: str | None = None) -> str:
        """Send a composed prompt and return the generated text.

        Raises:
            GatewayUnreachableError: Transport failure or timeout.
            GatewayBadStatusError: Non-2xx response.
            GatewayEmptyBodyError: No non-blank "content" or "response" field.
        """
        provider = provider or self.provider
        payload = {
            "messages": [message.model_dump() for message in prompt.to_messages()],
            "provider": provider,
        }
        body = await self._post("/generate", payload, provider, prompt.mode)

        for key in ("content", "response"):
            text = body.get(key)
            if isinstance(text, str) and text.strip():
                return text

        raise GatewayEmptyBodyError("Generation response had no content", provider)

    async def send_image(self, prompt: str, provider: str | None = None) -> str:
        """Request an image and return its URL."""
        provider = provider or self.provider
        body = await self._post(
            "/generate-image",
            {"prompt": prompt, "provider": provider},
            provider,
            "image",
        )

        url = body.get("imageUrl")
        if isinstance(url, str) and url.strip():
            return url

        raise GatewayEmptyBodyError("Image response had no imageUrl", provider)

    async def _post(
        self,
        path: str,
        payload: dict[str, Any],
        provider: str,
        mode: str,
    ) -> dict[str, Any]:
        url = f"{self.endpoint}{path}"
        start_time = time.monotonic()

        try:
            response = await self._client.post(url, json=payload)
        except httpx.HTTPError as e:
            logger.warning(
                "Generation endpoint unreachable: %s",
                e,
                extra={"provider": provider, "mode": mode},
            )
            raise GatewayUnreachableError(f"Could not reach {url}: {e}", provider) from e

        latency_ms = int((time.monotonic() - start_time) * 1000)

        if not response.is_success:
            logger.warning(
                "Generation endpoint returned %d",
                response.status_code,
                extra={"provider": provider, "mode": mode, "latency_ms": latency_ms},
            )
            raise GatewayBadStatusError(
                f"Generation failed with status {response.status_code}",
                status_code=response.status_code,
                provider=provider,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise GatewayEmptyBodyError("Generation response was not JSON", provider) from e

        if not isinstance(body, dict):
            raise GatewayEmptyBodyError("Generation response was not a JSON object", provider)

        logger.info(
            "Generation succeeded",
            extra={"provider": provider, "mode": mode, "latency_ms": latency_ms},
        )
        return body

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
