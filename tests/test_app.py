import base64
import json
import logging
import os
from contextvars import copy_context

import pytest
from dash import no_update
from dash._callback_context import context_value
from dash._utils import AttributeDict
from dash.exceptions import PreventUpdate

from clearview import viewer
from clearview.app import STATE_ID, STORAGE_MESSAGE, WORKSPACE_ID, Controller, create_app
from clearview.config import Settings
from clearview.errors import RemoteProcessingFailed
from clearview.state import AppState, AppStatus
from tests.utils import make_data_uri, make_image, make_noise_image, make_png_header

# region Test utils/stubs


class FakeRemover:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def remove(self, image, mime_type):
        self.calls.append((image, mime_type))
        if self.error is not None:
            raise self.error
        return self.result


def _prop_id(component_id, prop):
    return f"{json.dumps(component_id, sort_keys=True, separators=(',', ':'))}.{prop}"


def _trigger(func, prop_id, value, *args):
    def run_callback():
        context_value.set(
            AttributeDict(**{"triggered_inputs": [{"prop_id": prop_id, "value": value}], "updated_props": {}})
        )
        return func(*args)

    return copy_context().run(run_callback)


def _act(controller, action, data, value=1):
    prop_id = _prop_id({"type": "cv-action", "action": action}, "n_clicks")
    return _trigger(controller.act, prop_id, value, [value], [], [], data)


def _upload(controller, contents, data, filename="photo.png"):
    prop_id = _prop_id({"type": "cv-upload", "index": 0}, "contents")
    return _trigger(controller.act, prop_id, contents, [], [contents], [filename], data)


@pytest.fixture
def processed():
    return make_image(size=(40, 20), color=(10, 200, 10))


@pytest.fixture
def controller(images, processed):
    return Controller(Settings(), images, FakeRemover(result=processed))


def _failing_put(*args, **kwargs):
    raise OSError("disk full")


def _previewing(controller, png_bytes):
    data, _ = _upload(controller, make_data_uri(png_bytes), AppState().dump())
    return controller.work(data)


# endregion


def test_upload_accepted(controller, png_bytes):
    data, download = _upload(controller, make_data_uri(png_bytes), AppState().dump())
    assert download is no_update
    assert data["status"] == AppStatus.UPLOADING
    assert data["filename"] == "photo.png"
    data = controller.work(data)
    assert data["status"] == AppStatus.PREVIEWING
    assert data["mime_type"] == "image/png"
    assert controller.images.fetch(data["original_key"])["data"] == png_bytes


def test_upload_rejected(controller):
    contents = "data:text/plain;base64," + base64.b64encode(b"hello").decode()
    data, _ = _upload(controller, contents, AppState().dump())
    data = controller.work(data)
    assert data["status"] == AppStatus.IDLE
    assert data["upload_error"] == "Please upload a valid image file (JPEG, PNG, WEBP)."


def test_upload_too_large(images, png_bytes):
    controller = Controller(Settings(max_upload_bytes=10), images, FakeRemover())
    data = _previewing(controller, png_bytes)
    assert data["status"] == AppStatus.IDLE
    assert data["upload_error"].startswith("File size too large.")


def test_process_success(controller, png_bytes, processed):
    data = _previewing(controller, png_bytes)
    data, _ = _act(controller, "process", data)
    assert data["status"] == AppStatus.PROCESSING
    data = controller.work(data)
    assert data["status"] == AppStatus.SUCCESS
    assert data["generation"] == 1
    assert controller.remover.calls == [(png_bytes, "image/png")]
    result = controller.images.resource(data["processed_key"])
    assert (result.width, result.height) == (40, 20)
    assert controller.images.fetch(data["processed_key"])["data"] == processed


def test_process_failure_back_and_retry(images, png_bytes, processed):
    remover = FakeRemover(error=RemoteProcessingFailed("The model did not return an image."))
    controller = Controller(Settings(), images, remover)
    data = _previewing(controller, png_bytes)
    data, _ = _act(controller, "process", data)
    data = controller.work(data)
    assert data["status"] == AppStatus.ERROR
    assert data["error"] == "The model did not return an image."
    back, _ = _act(controller, "back", data)
    assert back["status"] == AppStatus.PREVIEWING
    # No automatic retry, the user asks for it.
    assert len(remover.calls) == 1
    remover.error, remover.result = None, processed
    data, _ = _act(controller, "retry", data)
    assert data["status"] == AppStatus.PROCESSING
    assert controller.work(data)["status"] == AppStatus.SUCCESS


def test_download(controller, png_bytes, processed):
    data = _previewing(controller, png_bytes)
    data = controller.work(_act(controller, "process", data)[0])
    state, payload = _act(controller, "download", data)
    assert state is no_update
    assert base64.b64decode(payload["content"]) == processed
    assert payload["filename"].startswith("clearview-cleaned-")
    assert payload["filename"].endswith(".png")


def test_reset(controller, png_bytes):
    data = _previewing(controller, png_bytes)
    data, _ = _act(controller, "reset", data)
    assert data["status"] == AppStatus.IDLE
    assert data["original_key"] is None


def test_new_components_do_not_trigger(controller):
    with pytest.raises(PreventUpdate):
        _act(controller, "process", AppState().dump(), value=None)


def test_process_without_image(controller):
    with pytest.raises(PreventUpdate):
        _act(controller, "process", AppState().dump())


def test_work_ignores_settled_states(controller):
    for status in [AppStatus.IDLE, AppStatus.PREVIEWING, AppStatus.SUCCESS, AppStatus.ERROR]:
        with pytest.raises(PreventUpdate):
            controller.work(AppState(status=status).dump())


def test_upload_huge_declared_dimensions(controller):
    data = _previewing(controller, make_png_header(30000, 30000))
    assert data["status"] == AppStatus.IDLE
    assert data["upload_error"] == "Error reading file."


def test_upload_truncated_image(controller):
    noise = make_noise_image()
    data = _previewing(controller, noise[: len(noise) // 2])
    assert data["status"] == AppStatus.IDLE
    assert data["upload_error"] == "Error reading file."


def test_upload_storage_failure(controller, png_bytes, monkeypatch):
    monkeypatch.setattr(controller.images, "put", _failing_put)
    data = _previewing(controller, png_bytes)
    assert data["status"] == AppStatus.IDLE
    assert data["upload_error"] == "Error reading file."


def test_process_storage_failure(controller, png_bytes, monkeypatch):
    data = _previewing(controller, png_bytes)
    data, _ = _act(controller, "process", data)
    monkeypatch.setattr(controller.images, "put", _failing_put)
    data = controller.work(data)
    assert data["status"] == AppStatus.ERROR
    assert data["error"] == STORAGE_MESSAGE
    assert data["original_key"] is not None


def test_process_undecodable_result(images, png_bytes):
    controller = Controller(Settings(), images, FakeRemover(result=make_png_header(30000, 30000)))
    data = _previewing(controller, png_bytes)
    data = controller.work(_act(controller, "process", data)[0])
    assert data["status"] == AppStatus.SUCCESS
    result = controller.images.resource(data["processed_key"])
    assert (result.width, result.height) == (None, None)


def test_process_expired_image(controller):
    data = AppState(status=AppStatus.PROCESSING, original_key="gone", mime_type="image/png").dump()
    data = controller.work(data)
    assert data["status"] == AppStatus.ERROR


def test_create_app(tmp_path, images):
    app = create_app(Settings(), remover=FakeRemover(), images=images, assets_folder=str(tmp_path / "assets"))
    try:
        assert os.path.isfile(tmp_path / "assets" / "dash_clientside_clearview.js")
        callback_outputs = " ".join(app.callback_map)
        assert WORKSPACE_ID in callback_outputs
        assert STATE_ID in callback_outputs
        assert viewer.OVERLAY_ID in callback_outputs
        assert viewer.ACK_ID in callback_outputs
        response = app.server.test_client().get("/images/missing")
        assert response.status_code == 404
    finally:
        logger = logging.getLogger("clearview")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
