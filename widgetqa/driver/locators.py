"""Translate widget locator descriptors into Playwright selectors.

A locator descriptor is a single-key mapping such as ``{"css": "#clock input"}``
or ``{"id": "clickedLink"}``. Additional kinds can be registered with
:func:`register_locator_kind`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable

from pydantic import BaseModel

logger = logging.getLogger(__name__)


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


_LOCATOR_KINDS: dict[str, Callable[[str], str]] = {
    "css": lambda v: v,
    "id": lambda v: f"[id={_quote(v)}]",
    "xpath": lambda v: f"xpath={v}",
    "name": lambda v: f"[name={_quote(v)}]",
    "text": lambda v: f"text={_quote(v)}",
    "link_text": lambda v: f"a:text-is({_quote(v)})",
    "partial_link_text": lambda v: f"a:has-text({_quote(v)})",
    "tag_name": lambda v: v,
    "class_name": lambda v: f".{v}",
}


def register_locator_kind(kind: str, to_selector: Callable[[str], str]) -> None:
    """Add (or replace) a locator kind."""
    if kind in _LOCATOR_KINDS:
        logger.debug("Replacing locator kind '%s'", kind)
    _LOCATOR_KINDS[kind] = to_selector


def locator_kinds() -> list[str]:
    return sorted(_LOCATOR_KINDS)


class Locator(BaseModel):
    kind: str
    value: str

    @property
    def selector(self) -> str:
        """Playwright selector string for this locator."""
        return _LOCATOR_KINDS[self.kind](self.value)

    def __str__(self) -> str:
        return f"{self.kind}={self.value}"

    @classmethod
    def parse(cls, descriptor: Any) -> "Locator":
        """Build a locator from a ``{kind: value}`` descriptor.

        Raises ValueError on anything else.
        """
        if isinstance(descriptor, Locator):
            return descriptor
        if not isinstance(descriptor, Mapping) or len(descriptor) != 1:
            raise ValueError(
                f"A locator must be a mapping with exactly one key, got {descriptor!r}"
            )
        (kind, value), = descriptor.items()
        if kind not in _LOCATOR_KINDS:
            raise ValueError(
                f"Unknown locator kind '{kind}', expected one of {', '.join(locator_kinds())}"
            )
        if not isinstance(value, str) or not value:
            raise ValueError(f"Locator '{kind}' needs a non-empty string value")
        return cls(kind=kind, value=value)
