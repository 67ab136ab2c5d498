"""Text-extraction adapters.

The engine talks to a hosted vision model through ``TextExtractionAdapter``:
one image in, one ``AdapterResponse`` out. Provider failures come back as
``AdapterResponse(success=False, error=...)`` so a batch can keep going.

``LiteLLMVisionAdapter`` is the bundled implementation. Any provider litellm
supports works; set the provider's API key in the environment as usual
(``OPENAI_API_KEY``, ``ANTHROPIC_API_KEY``, ...).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from loguru import logger

from inkwell.core.exceptions import ExtractionError

from .annotator import annotate
from .models import AdapterResponse

if TYPE_CHECKING:
    from inkwell.core.config import Config

EXTRACTION_SYSTEM_PROMPT = """\
Extract text from an image of a journal page.

- Extract all text from the image accurately.
  - Format the text naturally, preserving paragraphs, bullet points, and line breaks.
  - Indicate uncertain words or phrases with [brackets].
  - If the text is completely unreadable, say so.
- Ensure high accuracy by focusing on character recognition and contextual understanding.
"""

EXTRACTION_USER_PROMPT = "Extract all text from this journal page:"


@runtime_checkable
class TextExtractionAdapter(Protocol):
    """Contract for a vision-to-text service."""

    async def submit(self, image_data: str) -> AdapterResponse:
        """Extract text from one image (a data URL or fetchable URL)."""
        ...


def _response_text(response: Any) -> str:
    """Pull message content out of an OpenAI-shaped completion response."""
    choices = getattr(response, "choices", None)
    if not choices:
        logger.warning("Vision response has no choices")
        return ""
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None) if message is not None else None
    if isinstance(content, list):
        return "".join(part.get("text", "") for part in content if isinstance(part, dict))
    return content or ""


class LiteLLMVisionAdapter:
    """Vision extraction through litellm's async completion API."""

    def __init__(self, model: str = "gpt-4.1-nano", max_tokens: int = 1000, **completion_kwargs: Any):
        self.model = model
        self.max_tokens = max_tokens
        self.completion_kwargs = completion_kwargs

    @classmethod
    def from_config(cls, config: Config) -> LiteLLMVisionAdapter:
        return cls(
            model=config.get("extraction.model", "gpt-4.1-nano"),
            max_tokens=config.get_int("extraction.max_tokens", 1000),
        )

    def _messages(self, image_data: str) -> list[dict[str, Any]]:
        return [
            {"role": "system", "content": EXTRACTION_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": EXTRACTION_USER_PROMPT},
                    {"type": "image_url", "image_url": {"url": image_data}},
                ],
            },
        ]

    async def extract_text(self, image_data: str) -> str:
        """Run the completion and return the stripped text.

        Raises:
            ExtractionError: on any provider failure or an empty reply.
        """
        import litellm

        try:
            response = await litellm.acompletion(
                model=self.model,
                messages=self._messages(image_data),
                max_tokens=self.max_tokens,
                **self.completion_kwargs,
            )
        except Exception as e:
            raise ExtractionError(str(e) or type(e).__name__) from e

        text = _response_text(response).strip()
        if not text:
            raise ExtractionError("No text could be extracted.")
        return text

    async def submit(self, image_data: str) -> AdapterResponse:
        if not image_data:
            return AdapterResponse.failure("Image data is required")
        try:
            text = await self.extract_text(image_data)
        except ExtractionError as e:
            logger.warning(f"Vision extraction via {self.model} failed: {e}")
            return AdapterResponse.failure(str(e))
        return AdapterResponse(success=True, text=text, error_ranges=annotate(text))
