"""Provider interface shared by every model backend a debate role can run on."""

from abc import ABC, abstractmethod

from warroom.models import ModelResponse, ProviderRequest


class AIProvider(ABC):
    """One configured model. Stateless apart from its SDK client."""

    # Backends that can ground answers in live web search set this to True
    supports_search: bool = False

    @abstractmethod
    def name(self) -> str:
        """Model key from settings.yaml, e.g. 'gemini_flash'."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        ...

    @abstractmethod
    async def generate(self, request: ProviderRequest) -> ModelResponse:
        """Run one request against the backend.

        Options the backend cannot honour (search, thinking) are ignored.

        Raises:
            InvocationError: On API failure, timeout, or empty response.
        """
        ...
