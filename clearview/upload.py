"""
Validation of uploaded files, as delivered by dcc.Upload in the form "data:<mime type>;base64,<payload>".
"""
import base64
import binascii
import re
from logging import getLogger

from pydantic import BaseModel

from clearview.config import DEFAULT_ALLOWED_TYPES, DEFAULT_MAX_UPLOAD_BYTES
from clearview.errors import FileTooLarge, InvalidFileType, UnreadableImage
from clearview.images import read_dimensions

logger = getLogger(__name__)

_data_uri_pattern = re.compile(r"^data:(?P<mime_type>[^;,]+);base64,(?P<payload>.+)$", re.DOTALL)


class UploadedImage(BaseModel):
    data: bytes
    mime_type: str
    width: int
    height: int
    filename: str | None = None


def parse_data_uri(contents: str) -> tuple[str, str]:
    """
    Split a base64 data uri into (mime type, base64 payload).
    """
    match = _data_uri_pattern.match(contents or "")
    if match is None:
        raise UnreadableImage("Failed to process image format.")
    return match.group("mime_type").strip().lower(), match.group("payload")


def validate_upload(
    contents: str,
    filename: str | None = None,
    allowed_types=DEFAULT_ALLOWED_TYPES,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> UploadedImage:
    """
    Check the mime type against the allow list and the decoded size against the limit, then decode the image to learn
    its dimensions. Raises InvalidFileType, FileTooLarge or UnreadableImage.
    """
    mime_type, payload = parse_data_uri(contents)
    if mime_type not in allowed_types:
        raise InvalidFileType("Please upload a valid image file (JPEG, PNG, WEBP).", details=mime_type)
    # Checked on the encoded length first, so that huge payloads are never decoded.
    if len(payload) * 3 // 4 > max_bytes + 2:
        raise FileTooLarge(_too_large_message(max_bytes))
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise UnreadableImage("Error reading file.", details=str(e)) from e
    if len(data) > max_bytes:
        raise FileTooLarge(_too_large_message(max_bytes), details=f"{len(data)} bytes")
    try:
        width, height = read_dimensions(data)
    except ValueError as e:
        raise UnreadableImage("Error reading file.", details=str(e)) from e
    logger.info(
        "Accepted upload %s (%s, %dx%d, %d bytes).", filename or "<unnamed>", mime_type, width, height, len(data)
    )
    return UploadedImage(data=data, mime_type=mime_type, width=width, height=height, filename=filename)


def format_size(size: int) -> str:
    """
    Human readable size, e.g. 5MB, 1.5MB, 512KB or 100 bytes.
    """
    if size >= 1024 * 1024:
        return f"{round(size / (1024 * 1024), 1):g}MB"
    if size >= 1024:
        return f"{round(size / 1024, 1):g}KB"
    return f"{size} bytes"


def _too_large_message(max_bytes: int) -> str:
    return f"File size too large. Please upload an image under {format_size(max_bytes)}."
