"""Dotted ``Widget.element`` references used in expectations.

Paths are checked twice: :func:`validate_path` when a feature is compiled
only confirms the widget exists, since whether an element is on the page can
only be known once the page is there; :func:`resolve_path` walks the path
against the live page at execution time.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from widgetqa.errors import CompileError, ElementNotFound

from .widget import ElementAccessor, Widget

logger = logging.getLogger(__name__)


def split_path(path: str) -> tuple[str, list[str]]:
    """Split ``"Widget.a.b"`` into ``("Widget", ["a", "b"])``."""
    if not isinstance(path, str):
        raise CompileError(f"Attribute path must be a string, got {path!r}")
    widget_name, *segments = path.split(".")
    if not widget_name or not segments or not all(segments):
        raise CompileError(f'"{path}" is not a valid attribute path, expected "Widget.element"')
    return widget_name, segments


def validate_path(widgets: Mapping[str, Widget], path: str) -> None:
    """Raise CompileError if ``path`` names a widget that is not loaded."""
    widget_name, _ = split_path(path)
    if widget_name not in widgets:
        logger.error(
            'Could not find "%s" in available widgets (%s). Are you sure you spelled the property path properly?',
            path, ", ".join(sorted(widgets)) or "none",
        )
        raise CompileError(
            f'Could not find "{path}" in available widgets',
            details={"path": path, "widgets": sorted(widgets)},
        )


async def resolve_accessor(widgets: Mapping[str, Widget], path: str) -> ElementAccessor:
    """Walk ``path`` down to the element accessor it designates.

    Raises ElementNotFound for any missing segment.
    """
    widget_name, segments = split_path(path)
    target: object = widgets.get(widget_name)
    if target is None:
        raise ElementNotFound(f'Element "{path}" does not exist on the page.')
    for segment in segments:
        try:
            target = getattr(target, segment)
        except AttributeError:
            raise ElementNotFound(f'Element "{path}" does not exist on the page.') from None
    if not isinstance(target, ElementAccessor):
        raise ElementNotFound(f'"{path}" is not a page element.')
    return target


async def resolve_path(widgets: Mapping[str, Widget], path: str):
    """Locate the live element designated by ``path``."""
    accessor = await resolve_accessor(widgets, path)
    try:
        return await accessor.resolve()
    except ElementNotFound:
        raise ElementNotFound(f'Element "{path}" does not exist on the page.') from None
