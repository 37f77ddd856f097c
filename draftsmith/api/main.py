"""FastAPI application setup."""

import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from draftsmith.api.exceptions import ValidationError
from draftsmith.api.response import error_response
from draftsmith.api.routes import ai, health
from draftsmith.llm import (
    AuthenticationError,
    ContentFilterError,
    LLMError,
    TimeoutError,
    UnsupportedFeatureError,
)

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


app = FastAPI(
    title="Draftsmith API",
    description="Generation endpoints for the course and job-application authoring wizards",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.environ.get("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle validation errors."""
    return JSONResponse(
        status_code=400,
        content=error_response("VALIDATION_ERROR", exc.message),
    )


@app.exception_handler(UnsupportedFeatureError)
async def unsupported_feature_handler(request: Request, exc: UnsupportedFeatureError) -> JSONResponse:
    """Handle requests for features the provider lacks (e.g. images)."""
    return JSONResponse(
        status_code=501,
        content=error_response("NOT_IMPLEMENTED", f"Not supported by provider {exc.provider}"),
    )


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Handle missing or rejected provider credentials."""
    return JSONResponse(
        status_code=503,
        content=error_response("AI_NOT_CONFIGURED", "AI provider is not configured."),
    )


@app.exception_handler(TimeoutError)
async def timeout_error_handler(request: Request, exc: TimeoutError) -> JSONResponse:
    """Handle provider timeouts."""
    return JSONResponse(
        status_code=504,
        content=error_response("AI_TIMEOUT", "AI provider timed out. Please try again."),
    )


@app.exception_handler(ContentFilterError)
async def content_filter_handler(request: Request, exc: ContentFilterError) -> JSONResponse:
    """Handle prompts rejected by the provider's content policy."""
    return JSONResponse(
        status_code=422,
        content=error_response("CONTENT_FILTERED", "Request was rejected by the provider's content policy."),
    )


@app.exception_handler(LLMError)
async def llm_error_handler(request: Request, exc: LLMError) -> JSONResponse:
    """Handle any other LLM/AI service errors."""
    return JSONResponse(
        status_code=502,
        content=error_response("AI_SERVICE_ERROR", "AI generation failed. Please try again."),
    )


# Register routes
app.include_router(health.router)
app.include_router(ai.router, prefix="/api")


def run() -> None:
    """Serve the API with uvicorn (HOST / PORT env vars)."""
    import uvicorn

    uvicorn.run(
        "draftsmith.api.main:app",
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8000")),
    )
