"""Scenario compiler — turns a feature scenario into an ordered list of steps."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Callable

from widgetqa.errors import CompileError, ElementNotFound, ExpectationMismatch
from widgetqa.models.scenario import Action, Arguments, Expectation, parse_scenario

from .attribute_path import resolve_accessor, validate_path
from .widget import Widget

logger = logging.getLogger(__name__)


def describe_callable(func: Callable[..., Any]) -> str:
    """Short human-readable name for a step function."""
    target = getattr(func, "func", func)  # unwrap functools.partial
    bound_to = getattr(func, "args", ())
    name = getattr(target, "__qualname__", None) or getattr(target, "__name__", None) or repr(target)
    if bound_to and isinstance(bound_to[0], Widget):
        return f"{bound_to[0].name}.{getattr(target, '__name__', name)}"
    return name


class Step:
    """A zero-argument deferred action. Calling it may return an awaitable."""

    description = ""

    def __call__(self) -> Any:
        raise NotImplementedError


class CallStep(Step):
    """Invokes a scenario callable, optionally with bound arguments."""

    def __init__(self, func: Callable[..., Any], args: tuple[Any, ...] | None = None):
        self.func = func
        self.args = args

    @property
    def bound(self) -> bool:
        return self.args is not None

    @property
    def description(self) -> str:
        name = describe_callable(self.func)
        if not self.args:
            return f"{name}()"
        return f"{name}({', '.join(repr(a) for a in self.args)})"

    def with_args(self, args: tuple[Any, ...]) -> "CallStep":
        return CallStep(self.func, tuple(args))

    def __call__(self) -> Any:
        return self.func(*(self.args or ()))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CallStep):
            return NotImplemented
        return self.func == other.func and self.args == other.args

    def __hash__(self) -> int:
        return hash((id(self.func), self.args))

    def __repr__(self) -> str:
        return f"<CallStep {self.description}>"


class ExpectationStep(Step):
    """Checks that widget elements show the expected text.

    All elements are read concurrently; the step settles only once every
    read has finished, and reports the first mismatch in declaration order.
    """

    def __init__(self, expected: Mapping[str, Any], widgets: Mapping[str, Widget]):
        self.expected = dict(expected)
        self.widgets = widgets

    @property
    def description(self) -> str:
        return "expect " + ", ".join(f'{path} == "{value}"' for path, value in self.expected.items())

    def __call__(self) -> Any:
        return self.evaluate()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExpectationStep):
            return NotImplemented
        return self.expected == other.expected

    __hash__ = None

    def __repr__(self) -> str:
        return f"<ExpectationStep {self.description}>"

    async def evaluate(self) -> None:
        if not self.expected:
            return

        results = await asyncio.gather(
            *(self._check(path, expected) for path, expected in self.expected.items()),
            return_exceptions=True,
        )
        mismatches = []
        for path, result in zip(self.expected, results):
            if isinstance(result, BaseException):
                mismatches.append(f'Could not check "{path}": {result}')
            elif result:
                mismatches.append(result)

        if mismatches:
            raise ExpectationMismatch(mismatches[0], details={"mismatches": mismatches})

    async def _check(self, path: str, expected: Any) -> str | None:
        """Return a mismatch description, or None if the element matches."""
        try:
            accessor = await resolve_accessor(self.widgets, path)
            element = await accessor.resolve()
        except ElementNotFound:
            return f'Element "{path}" does not exist on the page.'

        driver = accessor.widget.driver
        try:
            actual = await driver.get_text(element)
        except Exception as e:
            logger.debug("get_text failed for %s: %s", path, e)
            return f'Could not get text from element "{path}".'

        if not actual:
            # could be a form field, compare its value instead
            try:
                actual = await driver.get_attribute(element, "value")
            except Exception as e:
                logger.debug("value read failed for %s: %s", path, e)
                return f'Could not get value from element "{path}".'
            if actual is None:
                actual = ""

        expected = str(expected)
        if actual != expected:
            return f'{path} was "{actual}" instead of "{expected}"'
        return None


def build_expectation_step(expected: Mapping[str, Any], widgets: Mapping[str, Widget]) -> ExpectationStep:
    """Validate every path of an expectation against the loaded widgets."""
    for path in expected:
        validate_path(widgets, path)
    return ExpectationStep(expected, widgets)


def _bind_arguments(steps: list[Step], values: tuple[Any, ...], index: int) -> CallStep:
    if not steps:
        raise CompileError(
            f"Scenario item {index}: arguments {list(values)!r} have no preceding action to bind to"
        )
    previous = steps.pop()
    if not isinstance(previous, CallStep):
        raise CompileError(
            f"Scenario item {index}: arguments {list(values)!r} must follow an action, "
            f"not {previous.description}"
        )
    if previous.bound:
        raise CompileError(
            f"Scenario item {index}: {previous.description} already has arguments bound"
        )
    return previous.with_args(values)


def compile_scenario(scenario: Any, widgets: Mapping[str, Widget]) -> list[Step]:
    """Compile a raw scenario list into steps.

    Raises CompileError if the scenario references an unknown widget or
    binds arguments to nothing.
    """
    try:
        elements = parse_scenario(scenario)
    except TypeError as e:
        raise CompileError(str(e)) from e

    steps: list[Step] = []
    for index, element in enumerate(elements):
        match element:
            case Action(func=func):
                steps.append(CallStep(func))
            case Arguments(values=values):
                steps.append(_bind_arguments(steps, values, index))
            case Expectation(expected=expected):
                steps.append(build_expectation_step(expected, widgets))

    logger.debug("Compiled %d scenario items into %d steps", len(elements), len(steps))
    return steps
