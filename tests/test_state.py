from clearview.state import (
    AppState,
    AppStatus,
    accept_upload,
    back,
    fail_processing,
    finish_processing,
    reject_upload,
    reset,
    start_processing,
    start_upload,
)


def test_load_default():
    assert AppState.load(None) == AppState()
    assert AppState.load({}).status == AppStatus.IDLE


def test_dump_roundtrip():
    state = AppState(status=AppStatus.SUCCESS, original_key="a", processed_key="b", mime_type="image/png")
    data = state.dump()
    assert data["status"] == "SUCCESS"
    assert AppState.load(data) == state


def test_upload_flow():
    state = start_upload(AppState(upload_error="old"), "pending-1", "photo.png")
    assert state.status == AppStatus.UPLOADING
    assert state.upload_error is None
    assert state.pending_key == "pending-1"
    state = accept_upload(state, "key", "image/png")
    assert state.status == AppStatus.PREVIEWING
    assert state.original_key == "key"
    assert state.pending_key is None


def test_reject_upload():
    state = reject_upload(start_upload(AppState(), "pending-1"), "Nope")
    assert state.status == AppStatus.IDLE
    assert state.upload_error == "Nope"
    assert not state.has_image


def test_processing_flow():
    state = start_processing(accept_upload(AppState(), "key", "image/png"))
    assert state.status == AppStatus.PROCESSING
    done = finish_processing(state, "result")
    assert done.status == AppStatus.SUCCESS
    assert done.processed_key == "result"
    assert done.generation == state.generation + 1


def test_start_processing_requires_image():
    assert start_processing(AppState()).status == AppStatus.IDLE


def test_error_back_and_retry():
    state = fail_processing(start_processing(accept_upload(AppState(), "key", "image/png")), "Refused")
    assert state.status == AppStatus.ERROR
    assert state.error == "Refused"
    assert back(state).status == AppStatus.PREVIEWING
    assert back(state).error is None
    retry = start_processing(state)
    assert retry.status == AppStatus.PROCESSING
    assert retry.original_key == "key"


def test_fail_processing_default_message():
    assert fail_processing(AppState(original_key="key"), "").error == "Something went wrong"


def test_reset_keeps_generation():
    state = finish_processing(start_processing(accept_upload(AppState(), "key", "image/png")), "result")
    cleared = reset(state)
    assert cleared.status == AppStatus.IDLE
    assert not cleared.has_image
    assert cleared.generation == state.generation
