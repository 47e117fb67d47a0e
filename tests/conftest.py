"""Pytest configuration and shared fixtures."""

import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from widgetqa.driver.session import DriverSession
from widgetqa.engine.widget import Widget
from widgetqa.errors import ElementNotFound
from widgetqa.models.config import DriverConfig, SuiteConfig


# ============================================================================
# Fake page
# ============================================================================

# Elements of the test widget, as declared by authors.
TEST_ELEMENTS = {
    "id": {"id": "toto"},
    "field": {"css": "input#field"},
    "p3_link": {"css": "#p3 a"},
    "missing": {"id": "inexistant"},
}

# What the fake page holds, keyed on the Playwright selector of each element.
TEST_PAGE = {
    '[id="toto"]': {"text": "This paragraph has id toto"},
    "input#field": {"text": "", "value": "Default"},
    "#p3 a": {"text": "This is a link"},
    '[id="clickedLink"]': {"text": ""},
}

# Texts the test widget's elements show on the fake page.
EXPECTED_TEXTS = {
    "id": "This paragraph has id toto",
    "field": "Default",
    "p3_link": "This is a link",
}


def make_driver(page: dict[str, dict]) -> AsyncMock:
    """Create a mock DriverSession backed by an in-memory page.

    Element references handed out by ``locate`` are the selectors themselves.
    Clicking ``#p3 a`` updates ``#clickedLink``; ``send_keys`` appends to the
    element's value.
    """
    driver = AsyncMock(spec=DriverSession)
    driver.config = DriverConfig()

    async def locate(locator, wait=True):
        if locator.selector not in page:
            raise ElementNotFound(f"No element matches {locator}")
        return locator.selector

    async def get_text(element):
        return page[element].get("text", "")

    async def get_attribute(element, name):
        return page[element].get(name)

    async def click(element):
        if element == "#p3 a":
            page['[id="clickedLink"]']["text"] = "#link has been clicked"

    async def send_keys(element, text):
        page[element]["value"] = (page[element].get("value") or "") + text

    async def clear(element):
        page[element]["value"] = ""

    driver.locate.side_effect = locate
    driver.get_text.side_effect = get_text
    driver.get_attribute.side_effect = get_attribute
    driver.click.side_effect = click
    driver.send_keys.side_effect = send_keys
    driver.clear.side_effect = clear
    return driver


@pytest.fixture
def page() -> dict[str, dict]:
    """A fresh copy of the fake page."""
    return {selector: dict(content) for selector, content in TEST_PAGE.items()}


@pytest.fixture
def mock_driver(page) -> AsyncMock:
    return make_driver(page)


# ============================================================================
# Widget Fixtures
# ============================================================================


async def _fill(widget, text):
    await widget.field.clear()
    await widget.field.send_keys(text)


@pytest.fixture
def test_widget(mock_driver) -> Widget:
    """The widget most engine tests run against."""
    return Widget("TestWidget", TEST_ELEMENTS, {"fill": _fill}, mock_driver)


@pytest.fixture
def widgets(test_widget) -> dict[str, Widget]:
    return {"TestWidget": test_widget}


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def suite_config() -> SuiteConfig:
    return SuiteConfig(
        base_url="https://example.com",
        driver=DriverConfig(browser="chromium", headless=True, timeout_ms=5000),
    )


# ============================================================================
# Suite Directory Fixtures
# ============================================================================


def write_suite(suite_dir: Path, files: dict[str, str], config: dict | None = None) -> Path:
    """Write a suite directory with a config.json and the given files."""
    suite_dir.mkdir(parents=True, exist_ok=True)
    if config is not False:
        (suite_dir / "config.json").write_text(
            json.dumps(config or {"base_url": "https://example.com"})
        )
    for name, content in files.items():
        (suite_dir / name).write_text(content)
    return suite_dir


@pytest.fixture
def suite_writer(tmp_path: Path):
    """Fixture that provides the write_suite function rooted in tmp_path."""
    def _write(files: dict[str, str], config: dict | None = None, name: str = "MySuite") -> Path:
        return write_suite(tmp_path / name, files, config)
    return _write
