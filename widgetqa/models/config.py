"""Configuration models for test suites."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")


class ViewportConfig(BaseModel):
    width: int = 1280
    height: int = 720


class DriverConfig(BaseModel):
    browser: str = "chromium"
    headless: bool = True
    timeout_ms: int = 10000  # per driver call
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    user_agent: Optional[str] = None
    # Passed straight to Playwright's BrowserType.launch
    launch_options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("browser")
    @classmethod
    def check_browser(cls, v: str) -> str:
        v = v.lower()
        if v not in SUPPORTED_BROWSERS:
            raise ValueError(
                f"Unsupported browser '{v}', expected one of {', '.join(SUPPORTED_BROWSERS)}"
            )
        return v


class SuiteConfig(BaseModel):
    # Where the driver starts every run
    base_url: str

    driver: DriverConfig = Field(default_factory=DriverConfig)

    # Logging, relative to the suite directory
    log_file: Optional[str] = None

    # Emit a summary through the notifier when the run finishes
    notify: bool = False

    @field_validator("base_url")
    @classmethod
    def check_base_url(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("base_url must not be empty")
        return v.strip()

    @classmethod
    def load(cls, path: str | Path) -> "SuiteConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
