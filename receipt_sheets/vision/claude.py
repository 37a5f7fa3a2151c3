"""Claude API vision backend for receipt extraction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..errors import EmptyResponseError, ServiceUnavailableError
from . import MAX_TOKENS, VisionBackend
from .prompt import EXTRACTION_PROMPT

if TYPE_CHECKING:
    from ..models import NormalizedImage

logger = logging.getLogger(__name__)


class ClaudeVisionBackend(VisionBackend):
    """Extract receipt data using Claude's vision capability."""

    name = "Anthropic"
    api_key_env = "ANTHROPIC_API_KEY"

    def __init__(
        self,
        api_key: str = "",
        model: str = "claude-sonnet-4-5-20250929",
        max_tokens: int = MAX_TOKENS,
    ) -> None:
        super().__init__(api_key=api_key, model=model, max_tokens=max_tokens)

    async def extract(self, image: NormalizedImage) -> str:
        self.check_credentials()

        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic SDK is required: pip install anthropic"
            ) from None

        content = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": image.mime_type,
                    "data": image.to_base64(),
                },
            },
            {"type": "text", "text": EXTRACTION_PROMPT},
        ]

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        logger.info("Calling Claude model %s", self._model)
        try:
            response = await client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                temperature=0,
                messages=[{"role": "user", "content": content}],
            )
        except Exception as e:
            logger.error("Claude API error: %s", e)
            raise ServiceUnavailableError(f"Error calling Claude API: {e}") from e

        texts = [
            block.text
            for block in (response.content or [])
            if isinstance(getattr(block, "text", None), str)
        ]
        text = "".join(texts)
        if not text.strip():
            raise EmptyResponseError("Claude returned no text content")
        return text
