"""Test suites and the tests they contain."""

import logging
import runpy
from pathlib import Path
from typing import Iterator, Optional, Union

from testharness.core.loader import import_module_from_path, find_test_classes
from testharness.core.testcase import DEFAULT_GROUP, groups_of
from testharness.events import AssertionMade, EventDispatcher, TestMethod

logger = logging.getLogger(__name__)


def class_name_of(test_class: type) -> str:
    """Get the qualified name of a test class."""
    return f"{test_class.__module__}.{test_class.__qualname__}"


class TestMethodItem:
    """A single test method of a TestCase subclass."""

    def __init__(self, test_class: type, method_name: str):
        self.test_class = test_class
        self.method_name = method_name
        self.groups = groups_of(test_class, method_name)
        self.test = TestMethod(
            class_name=class_name_of(test_class),
            method_name=method_name,
            test_class=test_class,
        )

    def name(self) -> str:
        return self.test.id

    def execute(self, dispatcher: EventDispatcher) -> int:
        """Run the test and return the number of assertions it made."""
        instance = self.test_class(self.method_name)
        instance.bind(dispatcher)
        instance.run_test()
        return instance.assertion_count


class ScriptTest:
    """A .pyt file executed from top to bottom; it passes when it raises nothing."""

    groups = (DEFAULT_GROUP,)

    def __init__(self, path: Path | str):
        self.path = str(path)
        self.test = TestMethod(class_name=type(self).__name__, method_name=self.path)

    def name(self) -> str:
        return self.test.id

    def execute(self, dispatcher: EventDispatcher) -> int:
        runpy.run_path(self.path, run_name="__main__")
        dispatcher.emit(AssertionMade(count=1))
        return 1


class LoadFailure:
    """Stands in for a test file that could not be imported."""

    groups = (DEFAULT_GROUP,)

    def __init__(self, path: Path | str, error: BaseException):
        self.path = str(path)
        self.error = error
        self.test = TestMethod(class_name=Path(path).stem, method_name="load")

    def name(self) -> str:
        return self.test.id

    def execute(self, dispatcher: EventDispatcher) -> int:
        raise self.error


TestItem = Union[TestMethodItem, ScriptTest, LoadFailure]


class TestSuite:
    """An ordered, possibly nested collection of tests."""

    def __init__(self, name: str = "", test_class: Optional[type] = None):
        self.name = name
        self.test_class = test_class
        self._tests: list[Union[TestItem, "TestSuite"]] = []

    @classmethod
    def from_class(cls, test_class: type) -> "TestSuite":
        """Build a suite holding every test method of a TestCase subclass."""
        suite = cls(class_name_of(test_class), test_class)
        for method_name in test_class.collect_method_names():
            suite.add_test(TestMethodItem(test_class, method_name))
        return suite

    def add_test(self, test: Union[TestItem, "TestSuite"]) -> None:
        self._tests.append(test)

    def add_test_file(self, path: Path | str) -> None:
        """Add the tests defined in a file.

        A .pyt file becomes a single script test; a Python file contributes
        one nested suite per test class it defines.
        """
        path = str(path)
        if path.endswith(".pyt"):
            self.add_test(ScriptTest(path))
            return

        try:
            module = import_module_from_path(path)
        except (Exception, SystemExit) as e:
            logger.warning(f"Cannot import test file {path}: {e}")
            self.add_test(LoadFailure(path, e))
            return

        for test_class in find_test_classes(module):
            self.add_test(TestSuite.from_class(test_class))

    def add_test_files(self, paths) -> None:
        for path in paths:
            self.add_test_file(path)

    def __iter__(self) -> Iterator[Union[TestItem, "TestSuite"]]:
        return iter(self._tests)

    def count(self) -> int:
        """Count the tests in this suite and all nested suites."""
        return sum(t.count() if isinstance(t, TestSuite) else 1 for t in self._tests)

    def is_empty(self) -> bool:
        return self.count() == 0

    def group_details(self) -> dict[str, list[TestItem]]:
        """Map each group name to the tests tagged with it, recursively."""
        details: dict[str, list[TestItem]] = {}
        for test in self._tests:
            if isinstance(test, TestSuite):
                for name, tests in test.group_details().items():
                    details.setdefault(name, []).extend(tests)
            else:
                for name in test.groups:
                    details.setdefault(name, []).append(test)
        return details

    def __repr__(self) -> str:
        return f"TestSuite(name={self.name!r}, count={self.count()})"
