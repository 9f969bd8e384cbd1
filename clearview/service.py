"""
Watermark removal through the Gemini image editing model.
"""
from logging import getLogger
from typing import Optional, Protocol

from google import genai
from google.genai import types

from clearview.config import DEFAULT_MODEL
from clearview.errors import RemoteProcessingFailed

logger = getLogger(__name__)

PROMPT = (
    "Remove all watermarks, text overlays, logos, and copyright stamps from this image. "
    "Reconstruct the background seamlessly where the watermarks were removed. Return ONLY the cleaned image."
)
NO_IMAGE_MESSAGE = (
    "The model did not return an image. It might have refused the request or returned text only."
)
FALLBACK_MESSAGE = "Failed to process image with Gemini."


class ImageProcessor(Protocol):
    def remove(self, image: bytes, mime_type: str) -> bytes: ...


def extract_image(response) -> Optional[bytes]:
    """
    Return the first inline image of the first candidate, if any.
    """
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        inline_data = getattr(part, "inline_data", None)
        if inline_data is not None and inline_data.data:
            return inline_data.data
    return None


class WatermarkRemover:
    """
    Sends an image to Gemini together with the removal instruction and returns the edited image.
    """

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_MODEL, client=None):
        self.api_key = api_key
        self.model = model
        self._client = client

    @property
    def client(self):
        # Created on first use, so that the app starts without credentials.
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def _contents(self, image: bytes, mime_type: str):
        return [types.Part.from_bytes(data=image, mime_type=mime_type), PROMPT]

    def remove(self, image: bytes, mime_type: str) -> bytes:
        try:
            response = self.client.models.generate_content(model=self.model, contents=self._contents(image, mime_type))
        except Exception as e:
            logger.exception("Gemini API error")
            raise RemoteProcessingFailed(str(e) or FALLBACK_MESSAGE, details=type(e).__name__) from e
        result = extract_image(response)
        if result is None:
            logger.warning("Gemini returned no image for a %s input of %d bytes.", mime_type, len(image))
            raise RemoteProcessingFailed(NO_IMAGE_MESSAGE)
        logger.info("Gemini returned a cleaned image of %d bytes.", len(result))
        return result
