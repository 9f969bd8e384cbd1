"""
Application configuration. Values are read from environment variables, the module level constants are the fallbacks.
"""
import os

from pydantic import BaseModel, Field

DEFAULT_MODEL = "gemini-2.5-flash-image"
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024
DEFAULT_ALLOWED_TYPES = ("image/jpeg", "image/png", "image/webp")
DEFAULT_CACHE_DIR = "clearview_cache"
DEFAULT_LOG_LEVEL = "INFO"


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    api_key: str | None = None
    model: str = DEFAULT_MODEL
    max_upload_bytes: int = Field(default=DEFAULT_MAX_UPLOAD_BYTES, gt=0)
    allowed_types: list[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_TYPES))
    cache_dir: str = DEFAULT_CACHE_DIR
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """
        Build settings from environment variables. Unset variables keep their defaults.
        """
        environ = os.environ if environ is None else environ
        values = {}
        api_key = environ.get("GEMINI_API_KEY") or environ.get("API_KEY")
        if api_key:
            values["api_key"] = api_key
        if "CLEARVIEW_MODEL" in environ:
            values["model"] = environ["CLEARVIEW_MODEL"]
        if "CLEARVIEW_MAX_UPLOAD_BYTES" in environ:
            values["max_upload_bytes"] = int(environ["CLEARVIEW_MAX_UPLOAD_BYTES"])
        if "CLEARVIEW_ALLOWED_TYPES" in environ:
            values["allowed_types"] = _split(environ["CLEARVIEW_ALLOWED_TYPES"])
        if "CLEARVIEW_CACHE_DIR" in environ:
            values["cache_dir"] = environ["CLEARVIEW_CACHE_DIR"]
        if "CLEARVIEW_LOG_LEVEL" in environ:
            values["log_level"] = environ["CLEARVIEW_LOG_LEVEL"].upper()
        return cls(**values)
