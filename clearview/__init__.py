from clearview.app import create_app
from clearview.images import ComparisonPair, ImageResource
from clearview.slider import ComparisonSlider, DocumentEvents, LayoutBox, PointerEvent, SliderState

__version__ = "1.0.0"

__all__ = [
    "ComparisonPair",
    "ComparisonSlider",
    "DocumentEvents",
    "ImageResource",
    "LayoutBox",
    "PointerEvent",
    "SliderState",
    "create_app",
]
