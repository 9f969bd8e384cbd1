"""
One rendering function per page status. The table of renderers must cover every AppStatus, which is checked when
the module is imported.
"""
from typing import Callable

from dash import dcc, html
from dash.development.base_component import Component

from clearview import viewer
from clearview.images import ComparisonPair
from clearview.state import AppState, AppStatus
from clearview.store import ImageStore

UPLOAD_ID = {"type": "cv-upload", "index": 0}
ACTION_TYPE = "cv-action"
EXPIRED_MESSAGE = "The image is no longer available. Please upload it again."


def action_button(label: str, action: str, variant: str = "primary", **kwargs) -> html.Button:
    return html.Button(
        label, id={"type": ACTION_TYPE, "action": action}, className=f"cv-button cv-button-{variant}", **kwargs
    )


def hero() -> html.Div:
    return html.Div(
        [
            html.H1(["Remove Watermarks", html.Br(), html.Span("Like Magic", className="cv-accent")]),
            html.P(
                "Upload your image and let our AI restore the background, removing text overlays, logos, "
                "and stamps instantly."
            ),
        ],
        className="cv-hero",
    )


def uploader(error: str | None = None, busy: bool = False) -> html.Div:
    children = [
        dcc.Upload(
            html.Div(
                [
                    html.H3("Upload your image"),
                    html.P(["Drag & drop or click to browse.", html.Br(), "Supports JPEG, PNG, WEBP."]),
                    html.Span("Select File", className="cv-button cv-button-secondary"),
                ]
            ),
            id=UPLOAD_ID,
            accept="image/*",
            multiple=False,
            disabled=busy,
            className="cv-uploader" + (" cv-busy" if busy else ""),
        )
    ]
    if error:
        children.append(html.Div(error, className="cv-upload-error", role="alert"))
    return html.Div(children, className="cv-uploader-container")


def spinner(title: str, subtitle: str) -> html.Div:
    return html.Div(
        [html.Div(className="cv-spinner"), html.H3(title), html.P(subtitle)],
        className="cv-processing",
    )


# region Renderers


def render_idle(state: AppState, images: ImageStore) -> list[Component]:
    return [hero(), uploader(state.upload_error)]


def render_uploading(state: AppState, images: ImageStore) -> list[Component]:
    return [hero(), uploader(busy=True), spinner("Reading your image...", "Checking the file before upload")]


def render_previewing(state: AppState, images: ImageStore) -> list[Component]:
    original = images.resource(state.original_key)
    if original is None:
        return [hero(), uploader(EXPIRED_MESSAGE)]
    return [
        html.Div(html.Img(src=original.src, alt="Original", className="cv-preview-image"), className="cv-preview"),
        html.Div(
            [
                action_button("Change Image", "reset", variant="outline"),
                action_button("Remove Watermark", "process"),
            ],
            className="cv-actions",
        ),
    ]


def render_processing(state: AppState, images: ImageStore) -> list[Component]:
    return [spinner("Cleaning your image...", "AI is analyzing and reconstructing the background")]


def _feature(title: str, text: str) -> html.Div:
    return html.Div([html.H4(title), html.P(text)], className="cv-feature")


def render_success(state: AppState, images: ImageStore) -> list[Component]:
    original = images.resource(state.original_key)
    processed = images.resource(state.processed_key)
    if original is None or processed is None:
        return [hero(), uploader(EXPIRED_MESSAGE)]
    return [
        html.Div(
            [
                html.H2("Result"),
                html.Div(
                    [
                        action_button("Start Over", "reset", variant="outline"),
                        action_button("Download HD", "download"),
                    ],
                    className="cv-actions",
                ),
            ],
            className="cv-result-header",
        ),
        # Keyed by generation, so that every new result mounts a fresh slider.
        html.Div(
            viewer.render(ComparisonPair(before=original, after=processed)),
            key=f"viewer-{state.generation}",
            className="cv-viewer-container",
        ),
        html.Div(
            [
                _feature("Seamless Removal", "Watermarks and overlays completely erased."),
                _feature("Inpainting", "Background content intelligently reconstructed."),
                _feature("High Quality", "Preserves original image details."),
            ],
            className="cv-features",
        ),
    ]


def render_error(state: AppState, images: ImageStore) -> list[Component]:
    message = state.error or "We couldn't process this image. Please try again with a different file."
    return [
        html.Div(
            [
                html.H3("Processing Failed"),
                html.P(message),
                html.Div(
                    [action_button("Back", "back", variant="outline"), action_button("Try Again", "retry")],
                    className="cv-actions",
                ),
            ],
            className="cv-error",
            role="alert",
        )
    ]


# endregion

renderers: dict[AppStatus, Callable[[AppState, ImageStore], list[Component]]] = {
    AppStatus.IDLE: render_idle,
    AppStatus.UPLOADING: render_uploading,
    AppStatus.PREVIEWING: render_previewing,
    AppStatus.PROCESSING: render_processing,
    AppStatus.SUCCESS: render_success,
    AppStatus.ERROR: render_error,
}

_missing = set(AppStatus) - set(renderers)
if _missing:
    raise RuntimeError(f"No renderer for status {', '.join(sorted(s.value for s in _missing))}")


def render(state: AppState, images: ImageStore) -> list[Component]:
    return renderers[state.status](state, images)
