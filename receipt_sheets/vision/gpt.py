"""OpenAI chat-completions vision backend for receipt extraction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..errors import EmptyResponseError, ServiceUnavailableError
from . import MAX_TOKENS, VisionBackend
from .prompt import EXTRACTION_PROMPT

if TYPE_CHECKING:
    from ..models import NormalizedImage

logger = logging.getLogger(__name__)


class OpenAIVisionBackend(VisionBackend):
    """Extract receipt data using an OpenAI vision-capable chat model."""

    name = "OpenAI"
    api_key_env = "OPENAI_API_KEY"

    def __init__(
        self,
        api_key: str = "",
        model: str = "gpt-4o-mini",
        max_tokens: int = MAX_TOKENS,
    ) -> None:
        super().__init__(api_key=api_key, model=model, max_tokens=max_tokens)

    async def extract(self, image: NormalizedImage) -> str:
        self.check_credentials()

        try:
            import openai
        except ImportError:
            raise ImportError("openai SDK is required: pip install openai") from None

        logger.info("Calling OpenAI model %s", self._model)
        try:
            async with openai.AsyncOpenAI(api_key=self._api_key) as client:
                response = await client.chat.completions.create(
                    model=self._model,
                    messages=[
                        {
                            "role": "user",
                            "content": [
                                {"type": "text", "text": EXTRACTION_PROMPT},
                                {
                                    "type": "image_url",
                                    "image_url": {"url": image.to_data_url()},
                                },
                            ],
                        }
                    ],
                    max_tokens=self._max_tokens,
                    temperature=0,
                )
        except Exception as e:
            logger.error("OpenAI API error: %s", e)
            raise ServiceUnavailableError(f"Error calling OpenAI API: {e}") from e

        if not response.choices:
            raise EmptyResponseError("OpenAI returned no choices")
        text = response.choices[0].message.content
        if not text or not text.strip():
            raise EmptyResponseError("OpenAI returned empty content")
        return text
