"""
Page level state of the application and the transitions between its statuses.

The state is kept in the browser (a dcc.Store) as a plain dict; images are referenced by their key in the
ImageStore. All transitions are pure functions, they return a new state.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class AppStatus(str, Enum):
    IDLE = "IDLE"
    UPLOADING = "UPLOADING"
    PREVIEWING = "PREVIEWING"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class AppState(BaseModel):
    status: AppStatus = AppStatus.IDLE
    original_key: Optional[str] = None
    processed_key: Optional[str] = None
    mime_type: Optional[str] = None
    # Raw upload waiting to be validated.
    pending_key: Optional[str] = None
    filename: Optional[str] = None
    # Upload rejections are shown inline in the uploader.
    upload_error: Optional[str] = None
    # Processing failures are shown in the error view.
    error: Optional[str] = None
    # Incremented whenever a new result is shown, so that the viewer is remounted.
    generation: int = 0

    @classmethod
    def load(cls, data: Optional[dict]) -> "AppState":
        return cls() if not data else cls.model_validate(data)

    def dump(self) -> dict:
        return self.model_dump(mode="json")

    @property
    def has_image(self) -> bool:
        return self.original_key is not None


def start_upload(state: AppState, pending_key: str, filename: Optional[str] = None) -> AppState:
    return AppState(
        status=AppStatus.UPLOADING, pending_key=pending_key, filename=filename, generation=state.generation
    )


def accept_upload(state: AppState, key: str, mime_type: str) -> AppState:
    return AppState(status=AppStatus.PREVIEWING, original_key=key, mime_type=mime_type, generation=state.generation)


def reject_upload(state: AppState, message: str) -> AppState:
    return AppState(status=AppStatus.IDLE, upload_error=message, generation=state.generation)


def start_processing(state: AppState) -> AppState:
    if not state.has_image:
        return state
    return state.model_copy(update=dict(status=AppStatus.PROCESSING, processed_key=None, error=None))


def finish_processing(state: AppState, processed_key: str) -> AppState:
    return state.model_copy(
        update=dict(status=AppStatus.SUCCESS, processed_key=processed_key, error=None, generation=state.generation + 1)
    )


def fail_processing(state: AppState, message: str) -> AppState:
    return state.model_copy(update=dict(status=AppStatus.ERROR, error=message or "Something went wrong"))


def back(state: AppState) -> AppState:
    """
    Return from the error view to the preview of the selected image.
    """
    status = AppStatus.PREVIEWING if state.has_image else AppStatus.IDLE
    return state.model_copy(update=dict(status=status, error=None))


def reset(state: AppState) -> AppState:
    return AppState(generation=state.generation)
