"""Suite loader — reads a test suite directory and sets up its runner.

A suite directory contains a ``config.json`` file and any number of data
(``*Data.py``), widget (``*Widget.py``) and feature (``*Feature.py``)
description files. They are loaded in that order, so widgets can use data
values and features can use widgets:

- data files run in the shared sandbox namespace; whatever they define is
  visible to every file loaded after them;
- a widget file defines an ``elements`` mapping plus the functions that
  become the widget's methods. The widget is named after the file
  (``ClockWidget.py`` gives ``ClockWidget``);
- a feature file defines ``description`` and ``scenario``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import Iterator, Optional

from widgetqa.driver.session import DriverSession
from widgetqa.engine.feature import Feature
from widgetqa.engine.runner import Notifier, Runner, log_notifier
from widgetqa.engine.widget import Widget
from widgetqa.errors import LoadError, WidgetDefinitionError
from widgetqa.models.config import SuiteConfig
from widgetqa.models.result import SuiteResult

from .sandbox import Sandbox

logger = logging.getLogger(__name__)
suites_logger = logging.getLogger("widgetqa.suites")

CONFIG_FILE = "config.json"
DATA_MARKER = "Data.py"
WIDGET_MARKER = "Widget.py"
FEATURE_MARKER = "Feature.py"

DATA, WIDGET, FEATURE = "data", "widget", "feature"


def classify_file(filename: str) -> Optional[str]:
    """Which kind of description file ``filename`` is, if any."""
    if filename.endswith(DATA_MARKER):
        return DATA
    if filename.endswith(WIDGET_MARKER):
        return WIDGET
    if filename.endswith(FEATURE_MARKER):
        return FEATURE
    return None


class SuiteLoader:
    """Loads every description file of a suite and feeds features to a Runner."""

    def __init__(
        self,
        path: str | Path,
        session: DriverSession | None = None,
        notifier: Optional[Notifier] = None,
    ):
        self.path = Path(path).resolve()
        self.name = self.path.name
        self.config = self._load_config()
        self.logger = logging.getLogger(f"widgetqa.suite.{self.name}")
        self._file_handler: logging.Handler | None = None
        self._init_log_file()

        if notifier is None and self.config.notify:
            notifier = log_notifier
        try:
            self.runner = Runner(
                self.config, session, notifier,
                suite_name=self.name, suite_logger=self.logger,
            )
            self.sandbox = Sandbox(self.runner.driver, self.logger.info)
            self.load_all_files()
        except BaseException:
            self._close_log_file()
            raise

    @property
    def widgets(self) -> dict[str, Widget]:
        return self.sandbox.widgets

    @property
    def features(self) -> list[Feature]:
        return self.runner.features

    def _load_config(self) -> SuiteConfig:
        config_path = self.path / CONFIG_FILE
        try:
            return SuiteConfig.load(config_path)
        except FileNotFoundError as e:
            suites_logger.error('No loadable configuration file (%s) in "%s"!', CONFIG_FILE, self.path)
            raise LoadError(
                f'No loadable configuration file ({CONFIG_FILE}) in "{self.path}"', path=config_path
            ) from e
        except (OSError, ValueError) as e:
            suites_logger.error('Invalid configuration file "%s": %s', config_path, e)
            raise LoadError(f'Invalid configuration file "{config_path}": {e}', path=config_path) from e

    def _init_log_file(self) -> None:
        if not self.config.log_file:
            return
        log_path = self.path / self.config.log_file
        handler = logging.FileHandler(log_path, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        self.logger.addHandler(handler)
        self._file_handler = handler

    def close(self) -> None:
        """Release the suite log file. Needed when the suite is loaded but never run."""
        self._close_log_file()

    def _close_log_file(self) -> None:
        if self._file_handler is not None:
            self.logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

    @contextlib.contextmanager
    def _loading(self, path: Path) -> Iterator[None]:
        """Attach the offending file to any error raised while loading it."""
        try:
            yield
        except LoadError as e:
            suites_logger.error('**Error in file "%s"**', path)
            if e.path is None:
                e.path = path
                e.details["path"] = str(path)
            raise
        except Exception as e:
            suites_logger.error('**Error in file "%s"**', path)
            raise LoadError(f'Error in file "{path}": {e}', path=path) from e

    def load_all_files(self) -> None:
        try:
            entries = sorted(p for p in self.path.iterdir() if p.is_file())
        except OSError as e:
            suites_logger.error('Error while trying to load description files in "%s"!', self.path)
            raise LoadError(f'Could not read suite directory "{self.path}": {e}', path=self.path) from e

        files: dict[str, list[Path]] = {DATA: [], WIDGET: [], FEATURE: []}
        for entry in entries:
            kind = classify_file(entry.name)
            if kind:
                files[kind].append(entry)

        # data first so widgets can use its values, then widgets so features can use them
        for data_file in files[DATA]:
            self.load_data(data_file)
        for widget_file in files[WIDGET]:
            self.load_widget(widget_file)
        for feature_file in files[FEATURE]:
            self.load_feature(feature_file)

        self.logger.debug("Loaded %d widgets and %d features from %s",
                          len(self.widgets), len(self.features), self.path)

    def load_data(self, data_file: Path) -> "SuiteLoader":
        """Evaluate a data file in the shared namespace."""
        self.logger.debug("~ loading %s", data_file)
        with self._loading(data_file):
            self.sandbox.execute(data_file.read_text(encoding="utf-8"), data_file)
        return self

    def load_widget(self, widget_file: Path) -> "SuiteLoader":
        """Evaluate a widget file and register the widget it describes."""
        self.logger.debug("- loading %s", widget_file)
        name = widget_file.stem
        with self._loading(widget_file):
            if not name.isidentifier():
                raise WidgetDefinitionError(f"'{name}' is not a valid widget name")
            namespace = self.sandbox.execute(widget_file.read_text(encoding="utf-8"), widget_file, shared=False)
            elements = namespace.get("elements")
            if elements is None or elements is self.sandbox.namespace.get("elements"):
                raise WidgetDefinitionError(f"Widget '{name}' must define 'elements'")
            methods = self.sandbox.defined_functions(namespace)
            widget = Widget(name, elements, methods, self.runner.driver)
            self.sandbox.register_widget(widget)
        return self

    def load_feature(self, feature_file: Path) -> "SuiteLoader":
        """Evaluate a feature file and hand the feature to the runner."""
        self.logger.debug("+ loading %s", feature_file)
        with self._loading(feature_file):
            namespace = self.sandbox.execute(feature_file.read_text(encoding="utf-8"), feature_file, shared=False)
            missing = [key for key in ("description", "scenario") if key not in namespace]
            if missing:
                raise LoadError(f"Feature file must define {' and '.join(missing)}")
            description = namespace["description"]
            if not isinstance(description, str):
                raise LoadError("Feature description must be a string")
            self.sandbox.features.append(Feature(description, namespace["scenario"], self.sandbox.widgets))

        self.runner.add_feature(self.sandbox.features.pop())
        return self

    async def run_async(self) -> SuiteResult:
        """Evaluate all loaded features."""
        suites_logger.info(self.name)
        suites_logger.info("-" * len(self.name))
        try:
            return await self.runner.run()
        finally:
            self._close_log_file()

    def run(self) -> SuiteResult:
        return asyncio.run(self.run_async())
