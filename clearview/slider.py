"""
Pointer state machine of the before/after comparison slider.

The slider is either idle or dragging. While dragging, it listens to move and release events on the whole document,
not just on the handle, so that a fast pointer does not lose the drag. The document listeners are a scoped
subscription: they are acquired when a drag starts and released together when it ends, or when the slider is
unmounted, whichever comes first.
"""
from __future__ import annotations

import contextlib
from collections import defaultdict
from logging import getLogger
from typing import Callable, Iterable, Iterator, Optional

from more_itertools import first
from pydantic import BaseModel, ConfigDict, Field

logger = getLogger(__name__)

DEFAULT_POSITION = 50.0
MIN_POSITION = 0.0
MAX_POSITION = 100.0

PRESS_EVENTS = ("mousedown", "touchstart")
MOVE_EVENTS = ("mousemove", "touchmove")
RELEASE_EVENTS = ("mouseup", "touchend")

Handler = Callable[["PointerEvent"], None]


# region Models


class LayoutBox(BaseModel):
    """
    Horizontal extent of the viewport in client coordinates.
    """

    left: float
    width: float

    @property
    def is_laid_out(self) -> bool:
        return self.width > 0


class TouchPoint(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_x: float = Field(alias="clientX")


class PointerEvent(BaseModel):
    """
    A mouse or touch event as forwarded from the browser.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: str
    client_x: Optional[float] = Field(default=None, alias="clientX")
    touches: list[TouchPoint] = Field(default_factory=list)
    on_handle: bool = Field(default=False, alias="onHandle")
    box: Optional[LayoutBox] = None
    seq: int = 0

    @property
    def x(self) -> Optional[float]:
        """
        Horizontal coordinate of the event. For touch events only the first touch point counts.
        """
        touch = first(self.touches, default=None)
        if touch is not None:
            return touch.client_x
        return self.client_x


class PointerBatch(BaseModel):
    """
    Events forwarded together, in the order they occurred. `seq` is the number of the last one. Events are kept raw
    here, so that a malformed one can be skipped without losing the rest of the batch.
    """

    seq: int = 0
    events: list[dict] = Field(default_factory=list)


class SliderState(BaseModel):
    position: float = Field(default=DEFAULT_POSITION, ge=MIN_POSITION, le=MAX_POSITION)
    dragging: bool = False
    # Sequence number of the last event applied.
    seq: int = 0


# endregion

# region Geometry


def clamp(value: float, lower: float = MIN_POSITION, upper: float = MAX_POSITION) -> float:
    return max(lower, min(value, upper))


def position_from_pointer(x: Optional[float], box: Optional[LayoutBox]) -> Optional[float]:
    """
    Convert a client x coordinate to a percentage of the viewport width. Returns None if the viewport has no layout
    box yet or the event carries no coordinate.
    """
    if x is None or box is None or not box.is_laid_out:
        return None
    return clamp((x - box.left) / box.width * 100)


# endregion

# region Document events


class DocumentEvents:
    """
    Listener registry for document wide events. Handlers for an event type run in registration order.
    """

    def __init__(self):
        self._listeners: dict[str, list[Handler]] = defaultdict(list)

    def add_listener(self, event_type: str, handler: Handler):
        self._listeners[event_type].append(handler)

    def remove_listener(self, event_type: str, handler: Handler):
        with contextlib.suppress(ValueError):
            self._listeners[event_type].remove(handler)

    def listener_count(self, event_type: str | None = None) -> int:
        if event_type is None:
            return sum(len(handlers) for handlers in self._listeners.values())
        return len(self._listeners[event_type])

    def dispatch(self, event: PointerEvent) -> bool:
        """
        Deliver the event to the current listeners. Returns False if nobody was listening.
        """
        # Copy, handlers may deregister while running.
        handlers = list(self._listeners[event.type])
        for handler in handlers:
            handler(event)
        return len(handlers) > 0

    @contextlib.contextmanager
    def subscribe(self, bindings: list[tuple[tuple[str, ...], Handler]]) -> Iterator[None]:
        """
        Register the bindings in order and remove all of them on exit.
        """
        registered = []
        try:
            for event_types, handler in bindings:
                for event_type in event_types:
                    self.add_listener(event_type, handler)
                    registered.append((event_type, handler))
            yield
        finally:
            for event_type, handler in reversed(registered):
                self.remove_listener(event_type, handler)


# endregion


class ComparisonSlider:
    """
    Owns a SliderState and mutates it in response to pointer events dispatched on the document.

    Use it as a context manager; leaving the block unmounts the slider and releases every listener it holds. The
    state survives the unmount, so a slider can be rebuilt from a stored state for the next event.
    """

    def __init__(
        self,
        document: DocumentEvents,
        state: SliderState | None = None,
        on_change: Callable[[float], None] | None = None,
    ):
        self.document = document
        self.state = SliderState() if state is None else state.model_copy()
        self.on_change = on_change
        self._mount: contextlib.ExitStack | None = None
        self._drag: contextlib.ExitStack | None = None

    # region Lifecycle

    def mount(self) -> ComparisonSlider:
        if self._mount is not None:
            return self
        self._mount = contextlib.ExitStack()
        self._mount.enter_context(self.document.subscribe([(PRESS_EVENTS, self._on_press)]))
        # Closing the mount stack must also end a drag that is still in progress.
        self._mount.callback(self._end_drag)
        # A drag that was in progress when the state was stored is resumed. The pointer session itself is not
        # persisted; it is re-derived from the events that follow.
        if self.state.dragging:
            self._begin_drag()
        return self

    def unmount(self):
        if self._mount is None:
            return
        mount, self._mount = self._mount, None
        mount.close()

    @property
    def mounted(self) -> bool:
        return self._mount is not None

    def __enter__(self) -> ComparisonSlider:
        return self.mount()

    def __exit__(self, exc_type, exc_value, traceback):
        self.unmount()

    # endregion

    # region Event handling

    def handle(self, event: PointerEvent) -> bool:
        """
        Entry point for forwarded browser events. Events that arrive out of order are dropped. Returns True if the
        position changed.
        """
        if event.seq and event.seq <= self.state.seq:
            logger.debug("Dropping stale pointer event %s (last applied %s).", event.seq, self.state.seq)
            return False
        if event.seq:
            self.state.seq = event.seq
        before = self.state.position
        self.document.dispatch(event)
        return self.state.position != before

    def handle_all(self, events: Iterable[PointerEvent]) -> bool:
        """
        Handle a batch of events in order. Returns True if the position changed.
        """
        before = self.state.position
        for event in events:
            self.handle(event)
        return self.state.position != before

    def _on_press(self, event: PointerEvent):
        if not event.on_handle:
            return
        self.press()

    def _on_move(self, event: PointerEvent):
        position = position_from_pointer(event.x, event.box)
        if position is None:
            return
        self.set_position(position)

    def _on_release(self, event: PointerEvent):
        self.release()

    # endregion

    # region Transitions

    def press(self):
        if self.state.dragging:
            return
        self.state.dragging = True
        self._begin_drag()

    def release(self):
        self._end_drag()
        self.state.dragging = False

    def set_position(self, value: float):
        position = clamp(value)
        if position == self.state.position:
            return
        self.state.position = position
        if self.on_change is not None:
            self.on_change(position)

    def _begin_drag(self):
        if self._drag is not None:
            return
        self._drag = contextlib.ExitStack()
        # Move before release, so that a release is never observed without the move handler in place.
        self._drag.enter_context(
            self.document.subscribe([(MOVE_EVENTS, self._on_move), (RELEASE_EVENTS, self._on_release)])
        )

    def _end_drag(self):
        if self._drag is None:
            return
        drag, self._drag = self._drag, None
        drag.close()

    # endregion
