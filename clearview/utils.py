from typing import TypeVar

from dash.development.base_component import Component

DashNode = Component | list[Component] | str | list[str]

T = TypeVar("T")


def as_list(item: T | list[T] | None) -> list[T]:
    if item is None:
        return []
    if isinstance(item, tuple):
        return list(item)
    if isinstance(item, list):
        return item
    return [item]


def mime_subtype(mime_type: str) -> str:
    """
    The part of a mime type after the slash, e.g. "png" for "image/png".
    """
    return mime_type.split("/", 1)[-1].split(";", 1)[0].strip()
