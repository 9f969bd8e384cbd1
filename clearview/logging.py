from __future__ import annotations

import logging
import time
from typing import Callable, Dict

import dash
from dash import Output, html
from dash._callback_context import _get_context_value, has_context
from dash._utils import stringify_id

from clearview.utils import DashNode, as_list

LOG_ID = "cv-activity-log"


@has_context
def set_props(component_id: str | dict, props: dict, append: bool = False) -> None:
    """
    Queue a property update for the running callback. With append=True, a value queued earlier in the same callback is
    extended rather than replaced; the activity log needs this to show every line a callback logs, not just the last.
    """
    ctx_value = _get_context_value()
    _id = stringify_id(component_id)
    if not append or _id not in ctx_value.updated_props:
        ctx_value.updated_props[_id] = props
        return
    updated_props = dict(ctx_value.updated_props[_id])
    for key in props:
        if key not in updated_props:
            updated_props[key] = props[key]
            continue
        updated = as_list(updated_props[key])
        updated.append(props[key])
        updated_props[key] = updated
    ctx_value.updated_props[_id] = updated_props


class DashLogHandler(logging.Handler):
    """
    Logging handler that writes log messages to a Dash component, when a record is emitted from within a callback.
    """

    def __init__(
        self, output: Output, log_writers: Dict[int, Callable], layout: DashNode | None = None, level=logging.INFO
    ):
        self.output = output
        self.log_writers = log_writers
        self.layout = layout
        logging.Handler.__init__(self=self, level=level)

    def emit(self, record):
        try:
            if record.levelno in self.log_writers:
                msg = self.log_writers[record.levelno](record.getMessage())
                set_props(self.output.component_id, {self.output.component_property: msg}, append=True)
        # Outside a callback (e.g. at start up) there is no component to write to.
        except dash.exceptions.MissingCallbackContextException:
            pass

    def embed(self) -> DashNode | None:
        """
        Return any components that should be embedded in the app layout.
        """
        if self.layout is None:
            return []
        return self.layout

    def setup_logger(self, logger_name: str = "clearview", level: int = logging.INFO) -> logging.Logger:
        logger = logging.getLogger(logger_name)
        if self not in logger.handlers:
            logger.addHandler(self)
        logger.setLevel(level)
        return logger


def _log_line(level_name: str, class_name: str) -> Callable:
    def write(message, **kwargs):
        stamp = time.strftime("%H:%M:%S")
        return html.Div(f"{stamp} {level_name}: {message}", className=f"cv-log-line {class_name}", **kwargs)

    return write


def get_default_log_writers() -> dict[int, Callable]:
    return {
        logging.INFO: _log_line("INFO", "cv-log-info"),
        logging.WARNING: _log_line("WARNING", "cv-log-warning"),
        logging.ERROR: _log_line("ERROR", "cv-log-error"),
    }


class ActivityLogHandler(DashLogHandler):
    """
    Writes INFO, WARNING and ERROR records to the activity panel below the workspace.
    """

    def __init__(self, log_div: DashNode | None = None) -> None:
        log_div = html.Div(id=LOG_ID, className="cv-activity-log") if log_div is None else log_div
        super().__init__(output=Output(log_div, "children"), log_writers=get_default_log_writers(), layout=log_div)
