"""Run result data structures produced by the runner."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class FeatureResult(BaseModel):
    """Outcome of evaluating a single feature."""
    description: str
    passed: bool = True
    failures: list[str] = Field(default_factory=list)  # expectation mismatches, rejected steps
    errors: list[str] = Field(default_factory=list)  # exceptions raised by steps
    duration_seconds: float = 0.0


class SuiteResult(BaseModel):
    suite_name: str
    base_url: str
    started_at: str
    completed_at: str = ""
    duration_seconds: float = 0.0
    passed: bool = False
    navigation_error: Optional[str] = None
    feature_results: list[FeatureResult] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.feature_results)

    @property
    def passed_count(self) -> int:
        return sum(1 for r in self.feature_results if r.passed)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.feature_results if not r.passed)
