"""
Dash rendering of the before/after comparison slider and the callbacks that drive it.

The after image is the base layer. The before image is drawn on top of it and clipped to the left `position` percent
of the viewport, anchored top left and cropped rather than stretched, so the seam at the divider stays aligned.
"""
from logging import getLogger
from typing import Optional

from dash import Dash, Input, Output, State, dcc, html, no_update
from dash.exceptions import PreventUpdate
from pydantic import ValidationError

from clearview.images import ComparisonPair, ImageResource
from clearview.javascript import bridge
from clearview.slider import ComparisonSlider, DocumentEvents, PointerBatch, PointerEvent, SliderState

logger = getLogger(__name__)

VIEWPORT_ID = "cv-viewport"
OVERLAY_ID = "cv-overlay"
DIVIDER_ID = "cv-divider"
SLIDER_STATE_ID = "cv-slider-state"
POINTER_ID = "cv-pointer"
BRIDGE_ID = "cv-bridge"
ACK_ID = "cv-bridge-ack"

DIVIDER_CLASS = "clearview-divider"
MIN_HEIGHT = 300
MAX_WIDTH = 896


# region Styles


def viewport_style(after: ImageResource) -> dict:
    style = {
        "position": "relative",
        "width": "100%",
        "overflow": "hidden",
        "userSelect": "none",
        "touchAction": "none",
        "cursor": "ew-resize",
    }
    ratio = after.aspect_ratio
    if ratio is None:
        # Dimensions unknown until the image loads.
        style["minHeight"] = f"{MIN_HEIGHT}px"
    else:
        style["aspectRatio"] = f"{after.width} / {after.height}"
    return style


def overlay_style(position: float) -> dict:
    return {
        "position": "absolute",
        "top": 0,
        "left": 0,
        "width": "100%",
        "height": "100%",
        "overflow": "hidden",
        "clipPath": f"inset(0 {100 - position:g}% 0 0)",
    }


def divider_style(position: float) -> dict:
    return {
        "position": "absolute",
        "top": 0,
        "bottom": 0,
        "left": f"{position:g}%",
        "width": "4px",
        "marginLeft": "-2px",
        "display": "flex",
        "alignItems": "center",
        "justifyContent": "center",
        "zIndex": 10,
    }


_base_image_style = {
    "display": "block",
    "width": "100%",
    "height": "100%",
    "objectFit": "contain",
    "pointerEvents": "none",
}
_overlay_image_style = {
    "display": "block",
    "width": "100%",
    "height": "100%",
    "maxWidth": "none",
    "objectFit": "cover",
    "objectPosition": "left top",
    "pointerEvents": "none",
}


# endregion


def render(pair: ComparisonPair, state: Optional[SliderState] = None) -> html.Div:
    """
    Render the comparison viewer. A fresh SliderState (position 50, idle) is used unless one is given.
    """
    state = SliderState() if state is None else state
    handle = html.Div("⇔", className="cv-handle")
    viewport = html.Div(
        [
            html.Img(src=pair.after.src, alt="Processed", style=_base_image_style),
            html.Div(
                html.Img(src=pair.before.src, alt="Original", style=_overlay_image_style),
                id=OVERLAY_ID,
                style=overlay_style(state.position),
            ),
            html.Div(handle, id=DIVIDER_ID, className=DIVIDER_CLASS, style=divider_style(state.position)),
            html.Div("Original", className="cv-label cv-label-before"),
            html.Div("Cleaned", className="cv-label cv-label-after"),
        ],
        id=VIEWPORT_ID,
        style=viewport_style(pair.after),
    )
    return html.Div(
        [
            viewport,
            html.Div("Drag the slider to compare results", className="cv-viewer-caption"),
            dcc.Store(id=SLIDER_STATE_ID, data=state.model_dump()),
            dcc.Store(id=POINTER_ID),
            dcc.Store(id=BRIDGE_ID),
            dcc.Store(id=ACK_ID),
        ],
        className="cv-viewer",
        style={"maxWidth": f"{MAX_WIDTH}px", "width": "100%"},
    )


def apply_pointer_events(payload: Optional[dict], data: Optional[dict]):
    """
    Apply a batch of forwarded pointer events, in order, to the stored slider state. Returns the new overlay style,
    divider style and state; the styles are no_update if the position did not change. The returned state always
    records the batch number, so the browser sees the store change and sends the next batch.
    """
    if not payload:
        raise PreventUpdate
    try:
        batch = PointerBatch.model_validate(payload)
    except ValidationError:
        logger.debug("Ignoring malformed pointer batch %s.", payload)
        raise PreventUpdate
    events = []
    for raw in batch.events:
        try:
            events.append(PointerEvent.model_validate(raw))
        except ValidationError:
            logger.debug("Ignoring malformed pointer event %s.", raw)
    state = SliderState.model_validate(data) if data else SliderState()
    with ComparisonSlider(DocumentEvents(), state) as slider:
        moved = slider.handle_all(events)
    slider.state.seq = max(slider.state.seq, batch.seq)
    if not moved:
        return no_update, no_update, slider.state.model_dump()
    position = slider.state.position
    return overlay_style(position), divider_style(position), slider.state.model_dump()


def register_callbacks(app: Dash):
    """
    Write the pointer bridge to the assets folder and register the slider callbacks.
    """
    bridge.dump(app.config.assets_folder)
    app.clientside_callback(
        bridge.clientside_function("forwardPointerEvents"),
        Output(BRIDGE_ID, "data"),
        Input(VIEWPORT_ID, "id"),
        State(POINTER_ID, "id"),
        State(DIVIDER_ID, "className"),
    )
    # Not prevent_initial_call: a freshly mounted viewer also releases a batch that was lost with the old one.
    app.clientside_callback(
        bridge.clientside_function("acknowledgePointerEvents"),
        Output(ACK_ID, "data"),
        Input(SLIDER_STATE_ID, "data"),
    )
    app.callback(
        Output(OVERLAY_ID, "style"),
        Output(DIVIDER_ID, "style"),
        Output(SLIDER_STATE_ID, "data"),
        Input(POINTER_ID, "data"),
        State(SLIDER_STATE_ID, "data"),
        prevent_initial_call=True,
    )(apply_pointer_events)
