"""Generation endpoints.

Provides endpoints for:
- POST /ai/generate: Text generation from chat messages
- POST /ai/generate-image: Cover image generation (OpenAI only)

Each request goes to exactly one provider. Provider errors are not retried
here; they propagate to the exception handlers in draftsmith.api.main.
"""

import logging
from typing import Annotated

from fastapi import APIRouter
from pydantic import BaseModel, Field

from draftsmith.api.exceptions import ValidationError
from draftsmith.llm import ChatMessage, LLMClient, LLMRequest, get_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI"])


class GenerateRequest(BaseModel):
    """Request body for text generation."""

    messages: Annotated[list[ChatMessage], Field(min_length=1)]
    provider: str | None = None
    model: str | None = None
    temperature: Annotated[float, Field(ge=0.0, le=2.0)] = 0.7
    max_tokens: int | None = None


class GenerateResponse(BaseModel):
    """Response body for text generation."""

    content: str


class GenerateImageRequest(BaseModel):
    """Request body for image generation."""

    prompt: Annotated[str, Field(min_length=1, max_length=4000)]
    provider: str | None = None


class GenerateImageResponse(BaseModel):
    """Response body for image generation."""

    imageUrl: str


def _resolve_provider(client: LLMClient, provider: str | None) -> str | None:
    if provider is not None and not client.has_provider(provider):
        raise ValidationError(
            f"Unknown provider '{provider}'. Available: {', '.join(client.provider_names)}"
        )
    return provider


@router.post("/generate", response_model=GenerateResponse)
async def generate(request: GenerateRequest) -> GenerateResponse:
    """Generate text with the requested (or default) provider."""
    client = get_client()
    provider = _resolve_provider(client, request.provider)

    llm_request = LLMRequest(
        messages=request.messages,
        model=request.model or "",
        temperature=request.temperature,
        max_tokens=request.max_tokens,
    )
    response = await client.generate(llm_request, provider=provider)
    return GenerateResponse(content=response.text or "")


@router.post("/generate-image", response_model=GenerateImageResponse)
async def generate_image(request: GenerateImageRequest) -> GenerateImageResponse:
    """Generate a cover image. Providers without an image model answer 501."""
    client = get_client()
    provider = _resolve_provider(client, request.provider)

    response = await client.generate_image(request.prompt, provider=provider)
    return GenerateImageResponse(imageUrl=response.url or "")
