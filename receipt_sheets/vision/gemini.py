"""Gemini API vision backend for receipt extraction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..errors import EmptyResponseError, ServiceUnavailableError
from . import MAX_TOKENS, VisionBackend
from .prompt import EXTRACTION_PROMPT

if TYPE_CHECKING:
    from ..models import NormalizedImage

logger = logging.getLogger(__name__)


class GeminiVisionBackend(VisionBackend):
    """Extract receipt data using Google Gemini's vision capability."""

    name = "Gemini"
    api_key_env = "GEMINI_API_KEY"

    def __init__(
        self,
        api_key: str = "",
        model: str = "gemini-2.0-flash",
        max_tokens: int = MAX_TOKENS,
    ) -> None:
        super().__init__(api_key=api_key, model=model, max_tokens=max_tokens)

    async def extract(self, image: NormalizedImage) -> str:
        self.check_credentials()

        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model)

        parts = [
            {"mime_type": image.mime_type, "data": image.data},
            EXTRACTION_PROMPT,
        ]

        logger.info("Calling Gemini model %s", self._model)
        try:
            response = await model.generate_content_async(
                parts,
                generation_config={
                    "temperature": 0,
                    "max_output_tokens": self._max_tokens,
                },
            )
        except Exception as e:
            logger.error("Gemini API error: %s", e)
            raise ServiceUnavailableError(f"Error calling Gemini API: {e}") from e

        if not response.candidates:
            raise EmptyResponseError("Gemini returned no candidates")
        try:
            text = response.text
        except ValueError as e:
            # .text raises when the candidate carries no text parts
            raise EmptyResponseError(f"Gemini returned no text: {e}") from e
        if not text or not text.strip():
            raise EmptyResponseError("Gemini returned empty text")
        return text
