"""Exception hierarchy for suite loading, scenario compilation and execution."""

from __future__ import annotations

from pathlib import Path
from typing import Any


class WidgetQAError(Exception):
    """Base exception for all widgetqa errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "cause": str(self.__cause__) if self.__cause__ else None,
        }


class LoadError(WidgetQAError):
    """A suite could not be loaded. Always fatal."""

    def __init__(self, message: str, path: str | Path | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.path = Path(path) if path is not None else None
        if self.path is not None:
            self.details.setdefault("path", str(self.path))


class WidgetDefinitionError(LoadError):
    """A widget description declares invalid elements or locators."""


class CompileError(WidgetQAError):
    """A scenario could not be compiled into steps."""


class ElementNotFound(WidgetQAError):
    """An element could not be located on the current page."""


class ExpectationMismatch(WidgetQAError):
    """A widget state expectation did not match the page."""


class FeatureFailed(WidgetQAError):
    """Raised by ``Feature.test`` when any step failed or errored.

    ``failures`` lists expectation mismatches and rejected steps,
    ``errors`` lists exceptions raised synchronously by steps.
    """

    def __init__(self, failures: list[str], errors: list[str]):
        self.failures = list(failures)
        self.errors = list(errors)
        super().__init__(
            f"{len(self.failures)} failure(s), {len(self.errors)} error(s)",
            details={"failures": self.failures, "errors": self.errors},
        )
