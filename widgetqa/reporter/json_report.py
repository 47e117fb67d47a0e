"""JSON report output."""

from __future__ import annotations

import json
from pathlib import Path

from widgetqa.models.result import SuiteResult


def generate_json_report(suite_result: SuiteResult, output_path: Path) -> None:
    """Write a machine-readable JSON report."""
    report = suite_result.model_dump()
    report["summary"] = {
        "total": suite_result.total,
        "passed": suite_result.passed_count,
        "failed": suite_result.failed_count,
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(report, f, indent=2, default=str)
