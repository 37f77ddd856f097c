"""Abstract base class for LLM providers.

Defines the interface that all LLM providers must implement.
"""

from abc import ABC, abstractmethod

from ..errors import UnsupportedFeatureError
from ..models import ImageResponse, LLMRequest, LLMResponse


class LLMProvider(ABC):
    """Base interface for LLM providers.

    All providers (OpenAI, Anthropic, etc.) must implement this interface
    to ensure consistent behavior across the application.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier: 'openai', 'anthropic', etc."""
        ...

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Send a completion request and return the response.

        Args:
            request: Vendor-neutral LLM request.

        Returns:
            Vendor-neutral LLM response.

        Raises:
            AuthenticationError: Invalid or missing API key.
            RateLimitError: Rate limit exceeded.
            TimeoutError: Request timed out.
            InvalidRequestError: Malformed request.
            ContentFilterError: Response blocked by safety filters.
            ProviderError: Provider-side or connection failure.
        """
        ...

    @abstractmethod
    def supports(self, feature: str) -> bool:
        """Check if provider supports a capability.

        Args:
            feature: Feature name. Supported values:
                - 'images': Image generation
                - 'system_message': Dedicated system role

        Returns:
            True if the feature is supported.
        """
        ...

    async def generate_image(self, prompt: str) -> ImageResponse:
        """Generate a single image for a prompt.

        Raises:
            UnsupportedFeatureError: If the provider has no image model.
        """
        raise UnsupportedFeatureError(
            f"{self.name} does not support image generation",
            provider=self.name,
        )
