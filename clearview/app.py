import datetime
import logging
from logging import getLogger
from typing import Optional

from dash import ALL, Dash, Input, Output, State, ctx, dcc, html, no_update
from dash.exceptions import PreventUpdate
from more_itertools import first

from clearview import viewer, views
from clearview.config import Settings
from clearview.download import send_image
from clearview.errors import ClearViewError, RemoteProcessingFailed
from clearview.images import read_dimensions
from clearview.logging import ActivityLogHandler
from clearview.service import ImageProcessor, WatermarkRemover
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
from clearview.store import ImageStore
from clearview.upload import validate_upload

logger = getLogger(__name__)

STATE_ID = "cv-app-state"
WORKSPACE_ID = "cv-workspace"
DOWNLOAD_ID = "cv-download"

STORAGE_MESSAGE = "The cleaned image could not be saved. Please try again."


def create_layout(settings: Settings, log_handler: ActivityLogHandler) -> html.Div:
    header = html.Header(
        html.Div(
            [
                html.Div([html.Div("✦", className="cv-logo"), html.Span("ClearView AI", className="cv-brand")]),
                html.Div(f"Powered by {settings.model}", className="cv-powered-by"),
            ],
            className="cv-header-inner",
        ),
        className="cv-header",
    )
    footer = html.Footer(
        html.Div(
            [
                html.P(f"© {datetime.date.today().year} ClearView AI. All rights reserved."),
                html.Div([html.A("Privacy Policy", href="#"), html.A("Terms of Service", href="#")]),
            ],
            className="cv-footer-inner",
        ),
        className="cv-footer",
    )
    return html.Div(
        [
            header,
            html.Main(
                [
                    html.Div(id=WORKSPACE_ID, className="cv-workspace"),
                    html.Div(log_handler.embed(), className="cv-activity"),
                ],
                className="cv-main",
            ),
            footer,
            dcc.Store(id=STATE_ID, data=AppState().dump()),
            dcc.Download(id=DOWNLOAD_ID),
        ],
        className="cv-app",
    )


class Controller:
    """
    Callbacks of the host application. User actions only move the state; the slow work (validating an upload, calling
    the model) happens in `work`, which reacts to the state it finds.
    """

    def __init__(self, settings: Settings, images: ImageStore, remover: ImageProcessor):
        self.settings = settings
        self.images = images
        self.remover = remover

    def act(self, action_clicks, upload_contents, upload_filenames, data):
        trigger = ctx.triggered_id
        if trigger is None:
            raise PreventUpdate
        # Buttons and uploads that were just added to the layout report an empty value.
        value = ctx.triggered[0]["value"]
        if not value:
            raise PreventUpdate
        state = AppState.load(data)
        if trigger["type"] == views.UPLOAD_ID["type"]:
            filename = first(upload_filenames or [], default=None)
            logger.info("Received %s.", filename or "an image")
            return start_upload(state, self.images.stash(value), filename).dump(), no_update
        action = trigger["action"]
        if action in ("process", "retry"):
            if not state.has_image:
                raise PreventUpdate
            logger.info("Removing watermarks...")
            return start_processing(state).dump(), no_update
        if action == "back":
            return back(state).dump(), no_update
        if action == "reset":
            return reset(state).dump(), no_update
        if action == "download":
            return no_update, self.download(state)
        raise PreventUpdate

    def download(self, state: AppState):
        entry = self.images.fetch(state.processed_key)
        if entry is None:
            logger.warning("The processed image is no longer available.")
            raise PreventUpdate
        return send_image(entry["data"], entry["mime_type"])

    def work(self, data):
        state = AppState.load(data)
        if state.status == AppStatus.UPLOADING:
            return self.validate(state).dump()
        if state.status == AppStatus.PROCESSING:
            return self.process(state).dump()
        raise PreventUpdate

    def validate(self, state: AppState) -> AppState:
        contents = self.images.take(state.pending_key)
        if contents is None:
            return reject_upload(state, "Error reading file.")
        try:
            upload = validate_upload(
                contents,
                state.filename,
                allowed_types=self.settings.allowed_types,
                max_bytes=self.settings.max_upload_bytes,
            )
        except ClearViewError as e:
            logger.warning("Upload rejected: %s", e.message)
            return reject_upload(state, e.message)
        try:
            key = self.images.put(upload.data, upload.mime_type, upload.width, upload.height)
        except OSError:
            logger.exception("Unable to store the upload.")
            return reject_upload(state, "Error reading file.")
        return accept_upload(state, key, upload.mime_type)

    def process(self, state: AppState) -> AppState:
        entry = self.images.fetch(state.original_key)
        if entry is None:
            logger.error("Processing failed: %s", views.EXPIRED_MESSAGE)
            return fail_processing(state, views.EXPIRED_MESSAGE)
        try:
            result = self.remover.remove(entry["data"], entry["mime_type"])
        except RemoteProcessingFailed as e:
            logger.error("Processing failed: %s", e.message)
            return fail_processing(state, e.message)
        try:
            width, height = read_dimensions(result)
        except ValueError:
            width, height = None, None
        try:
            key = self.images.put(result, entry["mime_type"], width, height)
        except OSError:
            logger.exception("Unable to store the processed image.")
            return fail_processing(state, STORAGE_MESSAGE)
        logger.info("Watermarks removed.")
        return finish_processing(state, key)

    def render(self, data):
        return views.render(AppState.load(data), self.images)

    def register(self, app: Dash):
        app.callback(
            Output(STATE_ID, "data", allow_duplicate=True),
            Output(DOWNLOAD_ID, "data"),
            Input({"type": views.ACTION_TYPE, "action": ALL}, "n_clicks"),
            Input({"type": views.UPLOAD_ID["type"], "index": ALL}, "contents"),
            State({"type": views.UPLOAD_ID["type"], "index": ALL}, "filename"),
            State(STATE_ID, "data"),
            prevent_initial_call=True,
        )(self.act)
        app.callback(
            Output(STATE_ID, "data", allow_duplicate=True),
            Input(STATE_ID, "data"),
            prevent_initial_call=True,
        )(self.work)
        app.callback(Output(WORKSPACE_ID, "children"), Input(STATE_ID, "data"))(self.render)


def create_app(
    settings: Optional[Settings] = None,
    remover: Optional[ImageProcessor] = None,
    images: Optional[ImageStore] = None,
    **kwargs,
) -> Dash:
    settings = Settings.from_env() if settings is None else settings
    images = ImageStore(settings.cache_dir) if images is None else images
    remover = WatermarkRemover(api_key=settings.api_key, model=settings.model) if remover is None else remover
    app = Dash(__name__, title="ClearView AI", suppress_callback_exceptions=True, **kwargs)
    images.register_route(app.server)
    log_handler = ActivityLogHandler()
    log_handler.setup_logger("clearview", level=logging.getLevelName(settings.log_level))
    app.layout = create_layout(settings, log_handler)
    Controller(settings, images, remover).register(app)
    viewer.register_callbacks(app)
    return app
