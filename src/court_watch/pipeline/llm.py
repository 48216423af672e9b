"""
Extraction service adapter.

The pipeline talks to the AI service through the small ``ExtractionService``
protocol: one prompt (optionally with images) in, one text answer out.
There are no retries; a failed call surfaces as ``ExtractionError`` and the
caller decides what that means for its unit of work.
"""

import base64
from typing import Optional, Protocol, Sequence

from anthropic import AsyncAnthropic, APIError

from court_watch.config import get_settings
from court_watch.core import ConfigurationError, ExtractionError, get_logger

logger = get_logger(__name__)


class ExtractionService(Protocol):
    """Anything that turns a prompt (plus optional page images) into text."""

    async def invoke(
        self, prompt: str, images: Optional[Sequence[bytes]] = None
    ) -> str: ...


class AnthropicExtractionService:
    """
    ``ExtractionService`` backed by the Anthropic Messages API.

    Images are sent as base64 PNG blocks ahead of the text block, so the
    instruction refers to "the page above".

    Example:
        >>> service = AnthropicExtractionService()
        >>> await service.invoke("Summarise this notice: ...")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        client: Optional[AsyncAnthropic] = None,
    ) -> None:
        settings = get_settings().extraction
        self.model = model or settings.model
        self.max_tokens = max_tokens or settings.max_tokens

        if client is not None:
            self._client = client
            return

        api_key = api_key or settings.api_key
        if not api_key:
            raise ConfigurationError(
                "Extraction service API key is not configured",
                details="Set EXTRACTION_API_KEY in the environment or .env",
            )
        self._client = AsyncAnthropic(api_key=api_key)

    @staticmethod
    def _build_content(prompt: str, images: Optional[Sequence[bytes]]) -> list[dict]:
        content: list[dict] = []
        for image in images or ():
            content.append(
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": "image/png",
                        "data": base64.b64encode(image).decode("ascii"),
                    },
                }
            )
        content.append({"type": "text", "text": prompt})
        return content

    async def invoke(
        self, prompt: str, images: Optional[Sequence[bytes]] = None
    ) -> str:
        """
        Send one request and return the concatenated text of the reply.

        Raises:
            ExtractionError: If the API call fails.
        """
        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[
                    {"role": "user", "content": self._build_content(prompt, images)}
                ],
            )
        except APIError as e:
            raise ExtractionError(
                "Extraction service request failed",
                details=f"{type(e).__name__}: {e}",
            ) from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        logger.debug(
            "Extraction service answered %d chars (%d images sent)",
            len(text),
            len(images or ()),
        )
        return text
