"""Test execution.

The runner walks a (filtered) suite tree and reports everything it does as
events; reporting components such as the JUnit logger only ever see the
event stream.
"""

import contextlib
import io
import logging
import warnings
from typing import Optional, Union

from testharness.core.suite import TestItem, TestSuite
from testharness.errors import IncompleteTestError, RiskyTestError, SkippedTestError
from testharness.events import (
    EventDispatcher,
    TestAborted,
    TestErrored,
    TestFailed,
    TestFinished,
    TestMethod,
    TestPassed,
    TestPassedButRisky,
    TestPassedWithWarning,
    TestPrepared,
    TestSkipped,
    TestSuiteFinished,
    TestSuiteStarted,
    Throwable,
)
from testharness.filter.factory import FilterFactory

logger = logging.getLogger(__name__)

# A suite paired with the children that survived filtering
Plan = tuple[TestSuite, list[Union[TestItem, "Plan"]]]


class RunSummary:
    """Counts test outcomes as they are emitted."""

    def __init__(self, dispatcher: EventDispatcher):
        self.tests = 0
        self.passed = 0
        self.failures = 0
        self.errors = 0
        self.warnings = 0
        self.risky = 0
        self.skipped = 0
        self.incomplete = 0

        dispatcher.register_subscriber(TestFinished, self._count_test)
        dispatcher.register_subscriber(TestPassed, self._count_passed)
        dispatcher.register_subscriber(TestPassedWithWarning, self._count_warning)
        dispatcher.register_subscriber(TestPassedButRisky, self._count_risky)
        dispatcher.register_subscriber(TestFailed, self._count_failure)
        dispatcher.register_subscriber(TestErrored, self._count_error)
        dispatcher.register_subscriber(TestSkipped, self._count_skipped)
        dispatcher.register_subscriber(TestAborted, self._count_incomplete)

    def _count_test(self, event: TestFinished) -> None:
        self.tests += 1

    def _count_passed(self, event: TestPassed) -> None:
        self.passed += 1

    def _count_warning(self, event: TestPassedWithWarning) -> None:
        self.warnings += 1

    def _count_risky(self, event: TestPassedButRisky) -> None:
        self.risky += 1

    def _count_failure(self, event: TestFailed) -> None:
        self.failures += 1

    def _count_error(self, event: TestErrored) -> None:
        self.errors += 1

    def _count_skipped(self, event: TestSkipped) -> None:
        self.skipped += 1

    def _count_incomplete(self, event: TestAborted) -> None:
        self.incomplete += 1

    def was_successful(self) -> bool:
        return self.errors == 0 and self.failures == 0

    def exit_code(self, configuration) -> int:
        """Exit status for the run, honouring the fail-on settings."""
        if not self.was_successful():
            return 1
        if configuration.fail_on_empty_test_suite and self.tests == 0:
            return 1
        if configuration.fail_on_warning and self.warnings:
            return 1
        if configuration.fail_on_risky and self.risky:
            return 1
        if configuration.fail_on_incomplete and self.incomplete:
            return 1
        if configuration.fail_on_skipped and self.skipped:
            return 1
        return 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "tests": self.tests,
            "passed": self.passed,
            "failures": self.failures,
            "errors": self.errors,
            "warnings": self.warnings,
            "risky": self.risky,
            "skipped": self.skipped,
            "incomplete": self.incomplete,
        }


class TestRunner:
    """Runs a test suite and emits the resulting events."""

    def __init__(self, dispatcher: EventDispatcher, filter_factory: Optional[FilterFactory] = None):
        """Initialize the test runner.

        Args:
            dispatcher: Receives every event of the run
            filter_factory: Filters applied to the children of each suite
        """
        self.dispatcher = dispatcher
        self.filter_factory = filter_factory or FilterFactory()

    def run(self, suite: TestSuite) -> RunSummary:
        """Run every test of the suite that passes the filters."""
        summary = RunSummary(self.dispatcher)

        plan = self._plan(suite)
        if plan is None:
            logger.info(f"No tests to run in {suite!r}")
            return summary

        self._run_plan(plan)
        return summary

    def _plan(self, suite: TestSuite) -> Optional[Plan]:
        children: list[Union[TestItem, Plan]] = []
        items = iter(suite)
        if self.filter_factory.has_filters():
            items = self.filter_factory.build(items, suite)
        for item in items:
            if isinstance(item, TestSuite):
                nested = self._plan(item)
                if nested is not None:
                    children.append(nested)
            else:
                children.append(item)

        if not children:
            return None
        return suite, children

    def _count(self, plan: Plan) -> int:
        return sum(self._count(child) if isinstance(child, tuple) else 1 for child in plan[1])

    def _run_plan(self, plan: Plan) -> None:
        suite, children = plan

        self.dispatcher.emit(
            TestSuiteStarted(name=suite.name, test_class=suite.test_class, count=self._count(plan))
        )

        class_error = None
        if suite.test_class is not None:
            try:
                suite.test_class.set_up_before_class()
            except (Exception, SystemExit) as e:
                logger.debug(f"set_up_before_class of {suite.name} failed: {e}")
                class_error = e

        for child in children:
            if isinstance(child, tuple):
                self._run_plan(child)
            elif class_error is not None:
                self._report_class_error(child, class_error)
            else:
                self._run_test(child)

        if suite.test_class is not None and class_error is None:
            try:
                suite.test_class.tear_down_after_class()
            except (Exception, SystemExit) as e:
                logger.warning(f"tear_down_after_class of {suite.name} failed: {e}")

        self.dispatcher.emit(TestSuiteFinished(name=suite.name))

    def _run_test(self, item: TestItem) -> None:
        test = item.test
        self.dispatcher.emit(TestPrepared(test=test))

        output = io.StringIO()
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                with contextlib.redirect_stdout(output):
                    assertions = item.execute(self.dispatcher)
            except (Exception, SystemExit) as e:
                self._report_exception(test, e)
            else:
                if caught:
                    self.dispatcher.emit(
                        TestPassedWithWarning(test=test, throwable=_warning_throwable(caught[0]))
                    )
                elif assertions == 0:
                    risky = RiskyTestError("This test did not perform any assertions")
                    self.dispatcher.emit(
                        TestPassedButRisky(test=test, throwable=Throwable.from_exception(risky))
                    )
                else:
                    self.dispatcher.emit(TestPassed(test=test))

        logger.debug(f"Finished {test.id}")
        self.dispatcher.emit(TestFinished(test=test, output=output.getvalue()))

    def _report_exception(self, test: TestMethod, error: BaseException) -> None:
        if isinstance(error, SkippedTestError):
            self.dispatcher.emit(TestSkipped(test=test, message=str(error)))
        elif isinstance(error, IncompleteTestError):
            self.dispatcher.emit(TestAborted(test=test, message=str(error)))
        elif isinstance(error, AssertionError):
            self.dispatcher.emit(TestFailed(test=test, throwable=Throwable.from_exception(error)))
        else:
            self.dispatcher.emit(TestErrored(test=test, throwable=Throwable.from_exception(error)))

    def _report_class_error(self, item: TestItem, error: BaseException) -> None:
        self.dispatcher.emit(TestPrepared(test=item.test))
        self._report_exception(item.test, error)
        self.dispatcher.emit(TestFinished(test=item.test))


def _warning_throwable(warning: warnings.WarningMessage) -> Throwable:
    class_name = warning.category.__name__
    message = str(warning.message)
    return Throwable(
        class_name=class_name,
        message=message,
        description=f"{class_name}: {message}",
        stack_trace=f"{warning.filename}:{warning.lineno}\n",
    )
