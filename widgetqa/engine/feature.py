"""Features — a described scenario compiled into steps and evaluated in order."""

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Mapping
from typing import Any

from widgetqa.errors import FeatureFailed
from widgetqa.models.result import FeatureResult

from .compiler import Step, compile_scenario
from .widget import Widget

logger = logging.getLogger(__name__)
steps_logger = logging.getLogger("widgetqa.steps")


def describe_error(error: BaseException) -> str:
    """Message recorded for a failed or errored step."""
    message = str(error)
    return message if message else error.__class__.__name__


class Feature:
    """A sequence of actions and expectations to run through widgets.

    The scenario is an ordered list whose members may be callables to invoke,
    argument lists bound to the callable right before them, or mappings of
    ``"Widget.element"`` paths to the text those elements should show. It is
    compiled into steps when the feature is created, so misspelled widget
    names are reported before anything runs.
    """

    def __init__(self, description: str, scenario: Any, widgets: Mapping[str, Widget]):
        self.description = description
        self.widgets = dict(widgets)
        self.steps: list[Step] = compile_scenario(scenario, self.widgets)

    def __repr__(self) -> str:
        return f"<Feature {self.description!r} ({len(self.steps)} steps)>"

    async def test(self) -> None:
        """Evaluate every step in order.

        A failing step never stops the ones after it. Raises FeatureFailed
        once all steps have run if any of them failed:

        - ``failures`` collects awaitables that raised (expectation
          mismatches, rejected actions);
        - ``errors`` collects exceptions raised while invoking a step.
        """
        failures: list[str] = []
        errors: list[str] = []

        for index, step in enumerate(self.steps):
            steps_logger.debug("  Step %d/%d: %s", index + 1, len(self.steps), step.description)
            try:
                result = step()
            except Exception as e:
                steps_logger.debug("  Step %d errored: %s", index + 1, e)
                errors.append(describe_error(e))
                continue

            if inspect.isawaitable(result):
                try:
                    await result
                except Exception as e:
                    steps_logger.debug("  Step %d failed: %s", index + 1, e)
                    failures.append(describe_error(e))

        if failures or errors:
            raise FeatureFailed(failures, errors)

    async def evaluate(self) -> FeatureResult:
        """Run :meth:`test` and capture its outcome as a FeatureResult."""
        start = time.time()
        try:
            await self.test()
        except FeatureFailed as e:
            return FeatureResult(
                description=self.description, passed=False,
                failures=e.failures, errors=e.errors,
                duration_seconds=round(time.time() - start, 2),
            )
        return FeatureResult(
            description=self.description, passed=True,
            duration_seconds=round(time.time() - start, 2),
        )
