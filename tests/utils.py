import base64
import io
import random
import struct
import zlib

from PIL import Image


def make_image(size=(40, 20), fmt="PNG", color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_noise_image(size=(64, 64), fmt="PNG") -> bytes:
    """
    Random pixels, so that the encoded body is large and compresses poorly.
    """
    pixels = random.Random(0).randbytes(size[0] * size[1] * 3)
    buffer = io.BytesIO()
    Image.frombytes("RGB", size, pixels).save(buffer, format=fmt)
    return buffer.getvalue()


def _png_chunk(kind: bytes, body: bytes) -> bytes:
    return struct.pack(">I", len(body)) + kind + body + struct.pack(">I", zlib.crc32(kind + body))


def make_png_header(width: int, height: int) -> bytes:
    """
    A tiny, well formed PNG that declares the given dimensions but carries no pixel data.
    """
    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", b"")
        + _png_chunk(b"IEND", b"")
    )


def make_data_uri(data: bytes, mime_type="image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode()}"
