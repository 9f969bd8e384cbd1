import uuid
from logging import getLogger
from typing import Optional

from flask import Flask, Response, abort
from flask_caching.backends import FileSystemCache

from clearview.images import ImageResource

logger = getLogger(__name__)


class ImageStore(FileSystemCache):
    """
    Keeps image bytes on the server, so that only keys travel to the browser. Images are addressed by url via the
    route registered with `register_route`.
    """

    def __init__(self, cache_dir="clearview_cache", default_timeout=24 * 3600, url_prefix="/images", **kwargs):
        super().__init__(cache_dir, default_timeout=default_timeout, **kwargs)
        self.url_prefix = url_prefix.rstrip("/")

    def put(self, data: bytes, mime_type: str, width=None, height=None, key: Optional[str] = None) -> str:
        key = str(uuid.uuid4()) if key is None else key
        if not self.set(key, dict(data=data, mime_type=mime_type, width=width, height=height)):
            raise OSError(f"Unable to write image {key} to {self._path}")
        logger.debug("Stored image %s (%s, %d bytes).", key, mime_type, len(data))
        return key

    def fetch(self, key: Optional[str]) -> Optional[dict]:
        if not key:
            return None
        return self.get(key)

    def stash(self, contents: str) -> str:
        """
        Park a raw upload until it has been validated.
        """
        key = f"pending-{uuid.uuid4()}"
        if not self.set(key, contents):
            raise OSError(f"Unable to write upload {key} to {self._path}")
        return key

    def take(self, key: Optional[str]):
        if not key:
            return None
        value = self.get(key)
        self.delete(key)
        return value

    def url(self, key: str) -> str:
        return f"{self.url_prefix}/{key}"

    def resource(self, key: str) -> Optional[ImageResource]:
        """
        ImageResource pointing at a stored image, or None if the key is unknown (or expired).
        """
        entry = self.fetch(key)
        if entry is None:
            return None
        return ImageResource(
            src=self.url(key), mime_type=entry["mime_type"], width=entry["width"], height=entry["height"]
        )

    def register_route(self, server: Flask):
        def serve_image(key):
            entry = self.fetch(key)
            if entry is None:
                abort(404)
            return Response(entry["data"], mimetype=entry["mime_type"])

        server.add_url_rule(f"{self.url_prefix}/<key>", "clearview_image", serve_image)
