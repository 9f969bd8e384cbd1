"""
Image resources as they are handed to the comparison viewer.
"""
import io
import warnings
from typing import Optional

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, Field


class ImageResource(BaseModel):
    """
    An addressable raster image. The src is anything the browser can load, typically a server url or a data uri.
    """

    src: str = Field(min_length=1)
    mime_type: str = "image/png"
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def aspect_ratio(self) -> Optional[float]:
        if not self.width or not self.height:
            return None
        return self.width / self.height


class ComparisonPair(BaseModel):
    before: ImageResource
    after: ImageResource


# Pillow reports broken files through several exception types; the decompression bomb ones are not OSErrors.
_decode_errors = (
    UnidentifiedImageError,
    OSError,
    SyntaxError,
    Image.DecompressionBombError,
    Image.DecompressionBombWarning,
)


def read_dimensions(data: bytes) -> tuple[int, int]:
    """
    Natural (width, height) of an encoded image. The image is decoded in full, so truncated files and images that
    exceed Pillow's pixel limit are rejected too. Raises ValueError if the bytes are not a decodable image.
    """
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", Image.DecompressionBombWarning)
            with Image.open(io.BytesIO(data)) as image:
                image.load()
                return image.size
    except _decode_errors as e:
        raise ValueError(f"Unable to decode image: {e}") from e
