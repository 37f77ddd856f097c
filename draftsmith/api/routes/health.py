"""Health check endpoint."""

from fastapi import APIRouter

from draftsmith.api.response import success_response
from draftsmith.llm import get_client

router = APIRouter(tags=["System"])


@router.get("/health")
async def health_check() -> dict:
    """Return service status and the registered generation providers."""
    return success_response({"status": "ok", "providers": get_client().provider_names})
