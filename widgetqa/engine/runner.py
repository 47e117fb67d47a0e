"""Runner — owns the driver session and evaluates features one after the other."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from widgetqa.driver.session import DriverSession
from widgetqa.models.config import SuiteConfig
from widgetqa.models.result import FeatureResult, SuiteResult

from .feature import Feature, describe_error

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]

notify_logger = logging.getLogger("widgetqa.notify")

IDLE = "idle"
RUNNING = "running"
FINISHED = "finished"


def log_notifier(message: str) -> None:
    """Default notifier: reports the end result on the 'widgetqa.notify' logger."""
    notify_logger.info(message)


class Runner:
    """Evaluates a set of features against one driver session.

    The session is started and pointed at ``config.base_url`` at the
    beginning of every run, and closed at the end of it whatever happens.
    """

    def __init__(
        self,
        config: SuiteConfig,
        session: DriverSession | None = None,
        notifier: Optional[Notifier] = None,
        suite_name: str = "",
        suite_logger: logging.Logger | None = None,
    ):
        self.config = config
        self.driver = session or DriverSession(config.driver)
        self.notifier = notifier
        self.suite_name = suite_name
        self.logger = suite_logger or logger
        self.features: list[Feature] = []

        self.state = IDLE
        self.current_feature = 0
        self.failed = False
        self.success: bool | None = None

    def add_feature(self, feature: Feature) -> "Runner":
        """Queue a feature for evaluation. Returns the runner for chaining."""
        self.features.append(feature)
        return self

    async def run(self) -> SuiteResult:
        """Evaluate all features and return the suite result."""
        self.failed = False
        self.current_feature = 0
        self.success = None
        self.state = RUNNING

        start = time.time()
        result = SuiteResult(
            suite_name=self.suite_name,
            base_url=self.config.base_url,
            started_at=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        )

        try:
            try:
                await self.driver.navigate(self.config.base_url)
            except Exception as e:
                self.logger.error("Could not open %s: %s", self.config.base_url, e)
                self.logger.debug("Is the browser installed? Try running 'playwright install'.")
                self.logger.debug("Is the base_url in config.json reachable from this machine?")
                result.navigation_error = describe_error(e)
                self.failed = True
            else:
                while self.current_feature < len(self.features):
                    feature = self.features[self.current_feature]
                    result.feature_results.append(await self._evaluate_feature(feature))
                    self.current_feature += 1
        finally:
            success = not self.failed
            result.passed = success
            result.completed_at = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
            result.duration_seconds = round(time.time() - start, 2)
            await self._finish(success)

        return result

    async def _evaluate_feature(self, feature: Feature) -> FeatureResult:
        try:
            outcome = await feature.evaluate()
        except Exception as e:
            self.logger.error("Feature '%s' crashed: %s", feature.description, e)
            outcome = FeatureResult(
                description=feature.description, passed=False, errors=[describe_error(e)],
            )

        if outcome.passed:
            self.logger.info("✔\t%s", feature.description)
        else:
            self.failed = True
            self.logger.warning("✘\t%s", feature.description)
            for failure in outcome.failures:
                self.logger.debug("\tfailure: %s", failure)
            for error in outcome.errors:
                self.logger.debug("\terror: %s", error)
        return outcome

    async def _finish(self, success: bool) -> None:
        """Report the end result and tear the driver session down."""
        self.state = FINISHED
        self.success = success
        message = "Test succeeded  :)" if success else "Test failed  :("
        if success:
            self.logger.info(message)
        else:
            self.logger.warning(message)

        if self.notifier is not None:
            try:
                self.notifier(f"{self.suite_name}: {message}" if self.suite_name else message)
            except Exception as e:
                self.logger.warning("Notification failed: %s", e)

        try:
            await self.driver.close()
        except Exception as e:
            self.logger.warning("Could not close driver session: %s", e)
