"""JUnit XML report built incrementally from the event stream."""

import dataclasses
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from testharness.core.reflection import source_location
from testharness.events import (
    AssertionMade,
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

logger = logging.getLogger(__name__)

_INVALID_XML_CHARS = re.compile(r"[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def prepare_string(text: str) -> str:
    """Remove characters that may not appear in an XML 1.0 document."""
    return _INVALID_XML_CHARS.sub("", text)


@dataclass
class Counters:
    """Aggregated results of a suite."""

    tests: int = 0
    assertions: int = 0
    errors: int = 0
    warnings: int = 0
    failures: int = 0
    skipped: int = 0
    time: float = 0.0

    def add(self, other: "Counters") -> None:
        self.tests += other.tests
        self.assertions += other.assertions
        self.errors += other.errors
        self.warnings += other.warnings
        self.failures += other.failures
        self.skipped += other.skipped
        self.time += other.time


@dataclass
class Fault:
    """A child block of a test case: error, failure, warning or skipped."""

    kind: str
    type: str = ""
    text: str = ""


@dataclass
class TestCaseNode:
    name: str
    class_name: str
    classname: str
    file: Optional[str] = None
    line: Optional[int] = None
    assertions: int = 0
    time: float = 0.0
    blocks: list[Fault] = field(default_factory=list)
    system_out: str = ""

    is_suite: ClassVar[bool] = False


@dataclass
class TestSuiteNode:
    name: str
    file: Optional[str] = None
    children: list[Union["TestSuiteNode", TestCaseNode]] = field(default_factory=list)
    # Set once when the suite is closed
    counters: Counters = field(default_factory=Counters)

    is_suite: ClassVar[bool] = True


@dataclass
class _Frame:
    """An open suite and the results collected for it so far."""

    node: TestSuiteNode
    counters: Counters = field(default_factory=Counters)


def _dotted(class_name: str) -> str:
    return re.sub(r"[\\/:]+", ".", class_name)


def _format_time(seconds: float) -> str:
    return f"{seconds:.6f}"


class JunitXmlLogger:
    """Subscribes to test events and builds a JUnit XML report.

    Suite results are aggregated when the suite finishes: its counters are
    frozen on the suite node and added to the enclosing suite.
    """

    def __init__(self, dispatcher: EventDispatcher, report_risky_tests: bool = False):
        """Initialize the logger.

        Args:
            dispatcher: Event source to subscribe to
            report_risky_tests: Record risky tests as errors
        """
        self.report_risky_tests = report_risky_tests

        self._root = TestSuiteNode(name="")
        self._frames: list[_Frame] = [_Frame(self._root)]
        self._current_test_case: Optional[TestCaseNode] = None
        self._number_of_assertions = 0
        self._time: Optional[float] = None

        template_dir = Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters["fixed"] = _format_time
        self.env.filters["xml_text"] = prepare_string

        self._register_subscribers(dispatcher)

    @property
    def test_suites(self) -> list[TestSuiteNode]:
        """Top-level suites of the report."""
        return self._root.children

    def flush(self, path: Path | str | None = None) -> str:
        """Render the report, writing it to path when given."""
        xml = self.env.get_template("junit.xml").render(suites=self._root.children)

        if path is not None:
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(xml, encoding="utf-8")
            logger.debug(f"JUnit report written to {path}")

        return xml

    def test_suite_started(self, event: TestSuiteStarted) -> None:
        location = source_location(event.test_class)
        suite = TestSuiteNode(name=event.name, file=location[0] if location else None)

        self._frames[-1].node.children.append(suite)
        self._frames.append(_Frame(suite))

    def test_suite_finished(self, event: TestSuiteFinished) -> None:
        frame = self._frames.pop()
        frame.node.counters = dataclasses.replace(frame.counters)

        # The bottom frame is the document root, it keeps no counters
        if len(self._frames) > 1:
            self._frames[-1].counters.add(frame.counters)

    def test_prepared(self, event: TestPrepared) -> None:
        test = event.test
        location = source_location(test.test_class, test.method_name)

        self._current_test_case = TestCaseNode(
            name=test.method_name,
            class_name=test.class_name,
            classname=_dotted(test.class_name),
            file=location[0] if location else None,
            line=location[1] if location else None,
        )
        self._number_of_assertions = 0
        self._time = event.time

    def test_finished(self, event: TestFinished) -> None:
        elapsed = event.time - self._time
        frame = self._frames[-1]
        test_case = self._current_test_case

        test_case.assertions = self._number_of_assertions
        test_case.time = elapsed
        if event.output:
            test_case.system_out = prepare_string(event.output)

        frame.node.children.append(test_case)
        frame.counters.tests += 1
        frame.counters.assertions += self._number_of_assertions
        frame.counters.time += elapsed

        self._current_test_case = None
        self._number_of_assertions = 0
        self._time = None

    def test_passed(self, event: TestPassed) -> None:
        pass

    def test_passed_with_warning(self, event: TestPassedWithWarning) -> None:
        if self._handle_fault(event.test, event.throwable, "warning"):
            self._frames[-1].counters.warnings += 1

    def test_passed_but_risky(self, event: TestPassedButRisky) -> None:
        if not self.report_risky_tests:
            return

        if self._handle_fault(event.test, event.throwable, "error"):
            self._frames[-1].counters.errors += 1

    def test_errored(self, event: TestErrored) -> None:
        if self._handle_fault(event.test, event.throwable, "error"):
            self._frames[-1].counters.errors += 1

    def test_failed(self, event: TestFailed) -> None:
        if self._handle_fault(event.test, event.throwable, "failure"):
            self._frames[-1].counters.failures += 1

    def test_skipped(self, event: TestSkipped) -> None:
        self._handle_incomplete_or_skipped()

    def test_aborted(self, event: TestAborted) -> None:
        self._handle_incomplete_or_skipped()

    def assertion_made(self, event: AssertionMade) -> None:
        self._number_of_assertions += event.count

    def _register_subscribers(self, dispatcher: EventDispatcher) -> None:
        dispatcher.register_subscriber(TestSuiteStarted, self.test_suite_started)
        dispatcher.register_subscriber(TestSuiteFinished, self.test_suite_finished)
        dispatcher.register_subscriber(TestPrepared, self.test_prepared)
        dispatcher.register_subscriber(TestFinished, self.test_finished)
        dispatcher.register_subscriber(TestPassed, self.test_passed)
        dispatcher.register_subscriber(TestPassedWithWarning, self.test_passed_with_warning)
        dispatcher.register_subscriber(TestPassedButRisky, self.test_passed_but_risky)
        dispatcher.register_subscriber(TestErrored, self.test_errored)
        dispatcher.register_subscriber(TestFailed, self.test_failed)
        dispatcher.register_subscriber(TestAborted, self.test_aborted)
        dispatcher.register_subscriber(TestSkipped, self.test_skipped)
        dispatcher.register_subscriber(AssertionMade, self.assertion_made)

    def _handle_fault(self, test: TestMethod, throwable: Throwable, kind: str) -> bool:
        if self._current_test_case is None:
            return False

        text = f"{test.id}\n" + f"{throwable.description}\n{throwable.stack_trace}".strip()

        self._current_test_case.blocks.append(
            Fault(kind=kind, type=throwable.class_name, text=prepare_string(text))
        )
        return True

    def _handle_incomplete_or_skipped(self) -> None:
        if self._current_test_case is None:
            return

        self._current_test_case.blocks.append(Fault(kind="skipped"))
        self._frames[-1].counters.skipped += 1
