"""LLM error hierarchy.

Custom exceptions for vendor LLM operations with provider context.
Mapped to HTTP statuses by the API layer; nothing here is retried.
"""


class LLMError(Exception):
    """Base exception for LLM operations."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        request_id: str | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.request_id = request_id

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.provider:
            parts.append(f"provider={self.provider}")
        if self.request_id:
            parts.append(f"request_id={self.request_id}")
        return " ".join(parts)


class AuthenticationError(LLMError):
    """401/403 - Invalid or missing API key.

    Check API key configuration.
    """

    pass


class RateLimitError(LLMError):
    """429 - Rate limit exceeded.

    The caller decides whether to re-invoke; retry_after is informational.
    """

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        provider: str | None = None,
        request_id: str | None = None,
    ):
        super().__init__(message, provider, request_id)
        self.retry_after = retry_after


class TimeoutError(LLMError):
    """Request exceeded timeout threshold."""

    pass


class InvalidRequestError(LLMError):
    """400 - Malformed request.

    Examples: too many tokens, invalid model parameters.
    """

    pass


class ContentFilterError(LLMError):
    """Response blocked by safety filters."""

    pass


class ProviderError(LLMError):
    """500/502/503 - Provider-side failure or connection problem."""

    pass


class ModelNotFoundError(LLMError):
    """Model identifier not recognized."""

    pass


class UnsupportedFeatureError(LLMError):
    """The provider does not offer the requested capability (e.g. images)."""

    pass


def parse_retry_after(headers) -> float | None:
    """Seconds from a retry-after header, if present and numeric."""
    value = headers.get("retry-after") if headers else None
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def error_for_status(
    status_code: int,
    message: str,
    *,
    vendor: str,
    provider: str,
    request_id: str | None = None,
    retry_after: float | None = None,
    filter_markers: tuple[str, ...] = (),
) -> LLMError:
    """Map a vendor HTTP status to the matching LLMError.

    A 400 whose message contains one of filter_markers is a content
    filter rejection; any other 400 is an invalid request.
    """
    context = {"provider": provider, "request_id": request_id}

    if status_code in (401, 403):
        return AuthenticationError(f"{vendor} rejected credentials: {message}", **context)
    if status_code == 404:
        return ModelNotFoundError(f"Model not found: {message}", **context)
    if status_code == 429:
        return RateLimitError(
            f"{vendor} rate limit exceeded: {message}", retry_after=retry_after, **context
        )
    if status_code == 400:
        lowered = message.lower()
        if any(marker in lowered for marker in filter_markers):
            return ContentFilterError(f"Content blocked by {vendor} safety filters: {message}", **context)
        return InvalidRequestError(f"Invalid request to {vendor}: {message}", **context)
    if status_code >= 500:
        return ProviderError(f"{vendor} server error ({status_code}): {message}", **context)
    return LLMError(f"{vendor} error ({status_code}): {message}", **context)
