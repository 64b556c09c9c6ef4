"""
Sequential Runner

Executes registered example groups one after another and tells every
formatter what happened. Nothing runs concurrently: a group starts only
when the previous one has finished.

Formatter notifications, in order:

    start(example_count)
    example_started(example)
    example_passed(example) | example_failed(example, exception)
                            | example_pending(example, message)
    stop(duration)
    close()

Formatters implement whichever of these they care about.
"""

from __future__ import annotations

import logging
import time
import unittest
from typing import Any, Iterable, List, Optional

from controlrun.framework.context import RunContext
from controlrun.framework.group import Example, ExampleGroup

logger = logging.getLogger(__name__)


def _notify(formatters: Iterable[Any], event: str, *args: Any) -> None:
    for formatter in formatters:
        handler = getattr(formatter, event, None)
        if callable(handler):
            handler(*args)


class ReportingResult(unittest.TestResult):
    """A unittest result that forwards example outcomes to formatters."""

    def __init__(self, formatters: List[Any]) -> None:
        super().__init__()
        self.formatters = formatters

    def startTest(self, test: Any) -> None:
        super().startTest(test)
        if isinstance(test, Example):
            _notify(self.formatters, "example_started", test)

    def addSuccess(self, test: Any) -> None:
        super().addSuccess(test)
        if isinstance(test, Example):
            _notify(self.formatters, "example_passed", test)

    def addFailure(self, test: Any, err: Any) -> None:
        super().addFailure(test, err)
        if isinstance(test, Example):
            _notify(self.formatters, "example_failed", test, err[1])

    def addError(self, test: Any, err: Any) -> None:
        super().addError(test, err)
        if isinstance(test, Example):
            _notify(self.formatters, "example_failed", test, err[1])

    def addSkip(self, test: Any, reason: str) -> None:
        super().addSkip(test, reason)
        if isinstance(test, Example):
            _notify(self.formatters, "example_pending", test, reason)


class SequentialRunner:
    """
    Default runner: executes groups in the given order.

    Usage:
        runner = SequentialRunner(context)
        status = runner.run_specs(world.ordered_example_groups())
    """

    def __init__(self, context: Optional[RunContext] = None) -> None:
        self.context = context or RunContext()

    def run_specs(self, groups: Iterable[ExampleGroup]) -> int:
        """
        Run every group and report to the context's formatters.

        Returns:
            0 if no example failed, 1 otherwise. Pending examples do not fail.
        """
        groups = list(groups)
        formatters = self.context.formatters
        result = ReportingResult(formatters)

        example_count = sum(group.countTestCases() for group in groups)
        logger.info("Running %d examples in %d groups", example_count, len(groups))

        _notify(formatters, "start", example_count)
        start = time.perf_counter()

        result.startTestRun()
        try:
            for group in groups:
                group.run(result)
        finally:
            result.stopTestRun()

        duration = time.perf_counter() - start
        _notify(formatters, "stop", duration)
        _notify(formatters, "close")

        logger.info(
            "Finished in %.3fs: %d run, %d failed, %d errors, %d pending",
            duration,
            result.testsRun,
            len(result.failures),
            len(result.errors),
            len(result.skipped),
        )
        return 0 if result.wasSuccessful() else 1
