"""Vision backend base class and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ..errors import ConfigurationError, MissingCredentialsError
from .prompt import CATEGORIES, EXTRACTION_PROMPT, PROMPT_VERSION

if TYPE_CHECKING:
    from ..config import AppConfig
    from ..models import NormalizedImage

MAX_TOKENS = 1000


class VisionBackend(ABC):
    """Sends a receipt image plus the extraction prompt to a vision model.

    One best-effort call per ``extract``; no retries at this layer. Sampling
    temperature is always zero.
    """

    name = "base"
    api_key_env = ""

    def __init__(self, api_key: str = "", model: str = "", max_tokens: int = MAX_TOKENS) -> None:
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens

    @property
    def model(self) -> str:
        return self._model

    def check_credentials(self) -> None:
        if not self._api_key:
            raise MissingCredentialsError(
                f"{self.name} API key is not configured "
                f"(set it in the config file or {self.api_key_env})"
            )

    @abstractmethod
    async def extract(self, image: NormalizedImage) -> str:
        """Return the model's raw text completion for the image.

        Raises:
            MissingCredentialsError: No API key configured (checked before calling).
            ServiceUnavailableError: The call failed.
            EmptyResponseError: The call returned no usable text.
        """
        ...


def create_backend(config: AppConfig) -> VisionBackend:
    """Create a vision backend based on configuration."""
    backend_name = config.vision.backend
    max_tokens = config.vision.max_tokens

    match backend_name:
        case "openai":
            from .gpt import OpenAIVisionBackend

            return OpenAIVisionBackend(
                api_key=config.vision.openai.api_key,
                model=config.vision.openai.model,
                max_tokens=max_tokens,
            )
        case "claude":
            from .claude import ClaudeVisionBackend

            return ClaudeVisionBackend(
                api_key=config.vision.claude.api_key,
                model=config.vision.claude.model,
                max_tokens=max_tokens,
            )
        case "gemini":
            from .gemini import GeminiVisionBackend

            return GeminiVisionBackend(
                api_key=config.vision.gemini.api_key,
                model=config.vision.gemini.model,
                max_tokens=max_tokens,
            )
        case _:
            raise ConfigurationError(
                f"Unknown vision backend: {backend_name!r} "
                f"(choose one of openai / claude / gemini)"
            )


__all__ = [
    "CATEGORIES",
    "EXTRACTION_PROMPT",
    "MAX_TOKENS",
    "PROMPT_VERSION",
    "VisionBackend",
    "create_backend",
]
