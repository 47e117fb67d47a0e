"""Scenario element variants.

A feature's ``scenario`` is an ordered list whose members may be:

- an :class:`Action`: a callable to invoke (coroutine function or plain function);
- an :class:`Arguments`: values bound as the argument list of the action right
  before it, allowing the ``[Widget.method, ["param"]]`` authoring style;
- an :class:`Expectation`: a mapping of ``"Widget.element"`` paths to the text
  those elements are expected to show.

Authors usually write plain Python values; :func:`classify` turns them into
the variants above when the scenario is parsed.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Union


@dataclass(frozen=True)
class Action:
    func: Callable[..., Any]


@dataclass(frozen=True)
class Arguments:
    values: tuple[Any, ...] = ()


@dataclass(frozen=True)
class Expectation:
    expected: Mapping[str, Any] = field(default_factory=dict)


ScenarioElement = Union[Action, Arguments, Expectation]


def classify(raw: Any) -> ScenarioElement:
    """Classify a single raw scenario value."""
    if isinstance(raw, (Action, Arguments, Expectation)):
        return raw
    if callable(raw):
        return Action(raw)
    if isinstance(raw, Mapping):
        return Expectation(dict(raw))
    if isinstance(raw, (list, tuple)):
        return Arguments(tuple(raw))
    # primitives are a single positional argument
    return Arguments((raw,))


def parse_scenario(raw_scenario: Any) -> list[ScenarioElement]:
    """Classify every member of a raw scenario list."""
    if isinstance(raw_scenario, (str, bytes, Mapping)) or not hasattr(raw_scenario, "__iter__"):
        raise TypeError(
            f"A scenario must be a list, got {type(raw_scenario).__name__}"
        )
    return [classify(raw) for raw in raw_scenario]
