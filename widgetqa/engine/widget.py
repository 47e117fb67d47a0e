"""Widgets — named bundles of element locators and behavior bound to a driver session."""

from __future__ import annotations

import functools
import logging
import re
from collections.abc import Mapping
from typing import Any, Callable

from widgetqa.driver.locators import Locator
from widgetqa.driver.session import DriverSession
from widgetqa.errors import ElementNotFound, WidgetDefinitionError

logger = logging.getLogger(__name__)

# "home_link" and "homeLink" both get a "home()" click shortcut
LINK_SUFFIX_RE = re.compile(r"^(?P<base>\w+?)(?:_link|Link)$")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_]\w*$")

_INSTANCE_ATTRIBUTES = frozenset({"name", "driver"})


def link_shortcut_name(element_name: str) -> str | None:
    """Name of the click shortcut derived from an element name, if any."""
    match = LINK_SUFFIX_RE.match(element_name)
    return match.group("base") if match else None


class ElementAccessor:
    """Lazy handle on a widget element.

    Nothing is looked up until one of the async methods is awaited, so the
    same accessor keeps working across page changes.
    """

    def __init__(self, widget: "Widget", name: str, locator: Locator):
        self.widget = widget
        self.name = name
        self.locator = locator

    @property
    def path(self) -> str:
        return f"{self.widget.name}.{self.name}"

    def __repr__(self) -> str:
        return f"<ElementAccessor {self.path} ({self.locator})>"

    async def resolve(self, wait: bool = True):
        """Locate the live element. Raises ElementNotFound if it is absent."""
        try:
            return await self.widget.driver.locate(self.locator, wait=wait)
        except ElementNotFound as e:
            raise ElementNotFound(
                f'Element "{self.path}" does not exist on the page.',
                details={"locator": str(self.locator)},
            ) from e

    async def text(self) -> str:
        element = await self.resolve()
        return await self.widget.driver.get_text(element)

    async def value(self) -> str | None:
        element = await self.resolve()
        return await self.widget.driver.get_attribute(element, "value")

    async def attribute(self, name: str) -> str | None:
        element = await self.resolve()
        return await self.widget.driver.get_attribute(element, name)

    async def read(self) -> str:
        """Rendered text, or the value property when the text is empty."""
        element = await self.resolve()
        text = await self.widget.driver.get_text(element)
        if text:
            return text
        value = await self.widget.driver.get_attribute(element, "value")
        return value if value is not None else ""

    async def click(self) -> None:
        element = await self.resolve()
        await self.widget.driver.click(element)

    async def send_keys(self, text: str) -> None:
        element = await self.resolve()
        await self.widget.driver.send_keys(element, str(text))

    async def submit(self) -> None:
        element = await self.resolve()
        await self.widget.driver.submit(element)

    async def clear(self) -> None:
        element = await self.resolve()
        await self.widget.driver.clear(element)


class Widget:
    """A named set of page elements plus behavior methods.

    Every declared element is available as an attribute returning an
    :class:`ElementAccessor`. Elements named ``*_link`` / ``*Link`` also get a
    zero-argument click shortcut under the name without the suffix. Methods
    receive the widget as their first argument::

        async def lookup(widget, town):
            await widget.field.send_keys(town)
            await widget.field.submit()
    """

    def __init__(
        self,
        name: str,
        elements: Mapping[str, Any],
        methods: Mapping[str, Callable[..., Any]] | None,
        driver: DriverSession,
    ):
        self.name = name
        self.driver = driver
        self._elements: dict[str, Locator] = {}
        self._shortcuts: dict[str, str] = {}
        self._methods: dict[str, Callable[..., Any]] = {}

        if not isinstance(elements, Mapping):
            raise WidgetDefinitionError(
                f"Widget '{name}': elements must be a mapping, got {type(elements).__name__}"
            )
        for element_name, descriptor in elements.items():
            self._check_name(element_name)
            try:
                self._elements[element_name] = Locator.parse(descriptor)
            except ValueError as e:
                raise WidgetDefinitionError(f"Widget '{name}', element '{element_name}': {e}") from e

            shortcut = link_shortcut_name(element_name)
            if shortcut and shortcut not in elements:
                self._shortcuts[shortcut] = element_name

        for method_name, method in (methods or {}).items():
            self._check_name(method_name)
            if not callable(method):
                raise WidgetDefinitionError(f"Widget '{name}': method '{method_name}' is not callable")
            if method_name in self._elements or method_name in self._shortcuts:
                raise WidgetDefinitionError(
                    f"Widget '{name}': method '{method_name}' clashes with an element"
                )
            self._methods[method_name] = method

        self._bound: dict[str, Callable[..., Any]] = {
            shortcut: self._click_shortcut(element_name)
            for shortcut, element_name in self._shortcuts.items()
        }
        for method_name, method in self._methods.items():
            self._bound[method_name] = functools.partial(method, self)

        logger.debug("Widget %s: %d elements, %d shortcuts, %d methods",
                     name, len(self._elements), len(self._shortcuts), len(self._methods))

    @classmethod
    def from_definition(cls, name: str, definition: Mapping[str, Any], driver: DriverSession) -> "Widget":
        """Build a widget from ``{"elements": {...}, "<method>": callable, ...}``."""
        if not isinstance(definition, Mapping) or "elements" not in definition:
            raise WidgetDefinitionError(f"Widget '{name}' must declare 'elements'")
        methods = {k: v for k, v in definition.items() if k != "elements"}
        return cls(name, definition["elements"], methods, driver)

    def _check_name(self, name: Any) -> None:
        if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
            raise WidgetDefinitionError(f"Widget '{self.name}': '{name}' is not a valid identifier")
        if name.startswith("_") or name in _INSTANCE_ATTRIBUTES or hasattr(Widget, name):
            raise WidgetDefinitionError(f"Widget '{self.name}': '{name}' is a reserved name")

    @property
    def element_names(self) -> list[str]:
        return list(self._elements)

    @property
    def method_names(self) -> list[str]:
        return list(self._methods) + list(self._shortcuts)

    def element(self, name: str) -> ElementAccessor:
        if name not in self._elements:
            raise AttributeError(f"Widget '{self.name}' has no element '{name}'")
        return ElementAccessor(self, name, self._elements[name])

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._elements:
            return self.element(name)
        if name in self._bound:
            return self._bound[name]
        raise AttributeError(f"Widget '{self.name}' has no element or method '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        # elements and methods are fixed once the widget exists
        if name in self.__dict__.get("_elements", ()):
            raise AttributeError(
                f"Widget '{self.name}': element '{name}' cannot be replaced, "
                f"use 'await widget.{name}.send_keys(...)' to type into it"
            )
        if name in self.__dict__.get("_bound", ()):
            raise AttributeError(f"Widget '{self.name}': method '{name}' cannot be replaced")
        super().__setattr__(name, value)

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._elements) | set(self.method_names))

    def __repr__(self) -> str:
        return f"<Widget {self.name}>"

    def _click_shortcut(self, element_name: str) -> Callable[[], Any]:
        accessor = self.element(element_name)

        async def click() -> None:
            await accessor.click()

        click.__name__ = element_name
        click.__qualname__ = f"{self.name}.{element_name}"
        return click

    async def has(self, name: str) -> bool:
        """Whether the named element is currently present on the page.

        Never raises: an element name the widget does not declare is simply
        not present.
        """
        if name not in self._elements:
            logger.warning("Widget %s has no element '%s'", self.name, name)
            return False
        accessor = self.element(name)
        try:
            await accessor.resolve(wait=False)
        except ElementNotFound:
            return False
        return True
