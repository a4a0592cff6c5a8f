"""Base class for tests run by TestHarness."""

from typing import Callable, Optional, TypeVar

from testharness.errors import AssertionFailedError, IncompleteTestError, SkippedTestError
from testharness.events import AssertionMade, EventDispatcher

DEFAULT_GROUP = "default"

T = TypeVar("T")


def group(*names: str) -> Callable[[T], T]:
    """Tag a test method or a TestCase subclass with one or more groups."""

    def decorator(target: T) -> T:
        existing = tuple(getattr(target, "__test_groups__", ()))
        setattr(target, "__test_groups__", existing + tuple(names))
        return target

    return decorator


def groups_of(test_class: type, method_name: Optional[str] = None) -> tuple[str, ...]:
    """Get the groups of a test, falling back to the default group."""
    names = list(getattr(test_class, "__test_groups__", ()))
    if method_name is not None:
        method = getattr(test_class, method_name, None)
        names.extend(getattr(method, "__test_groups__", ()))

    if not names:
        return (DEFAULT_GROUP,)

    # Preserve declaration order, drop duplicates
    return tuple(dict.fromkeys(names))


class TestCase:
    """Base class for test classes.

    Every method whose name starts with ``test`` is a test. A fresh instance
    is created for each test method.
    """

    def __init__(self, method_name: str):
        self.method_name = method_name
        self.assertion_count = 0
        self._dispatcher: Optional[EventDispatcher] = None

    @classmethod
    def collect_method_names(cls) -> list[str]:
        """Get the test method names in definition order."""
        names = []
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if name.startswith("test") and callable(value) and name not in names:
                    names.append(name)
        return names

    @classmethod
    def set_up_before_class(cls) -> None:
        pass

    @classmethod
    def tear_down_after_class(cls) -> None:
        pass

    def set_up(self) -> None:
        pass

    def tear_down(self) -> None:
        pass

    def bind(self, dispatcher: EventDispatcher) -> None:
        """Attach the dispatcher that receives assertion events."""
        self._dispatcher = dispatcher

    def run_test(self) -> None:
        """Run set_up, the test method and tear_down."""
        self.set_up()
        try:
            getattr(self, self.method_name)()
        finally:
            self.tear_down()

    def check(self, condition: bool, message: str = "", count: int = 1) -> None:
        """Record an assertion of the given weight and fail when the condition is false."""
        self.assertion_count += count
        if self._dispatcher is not None:
            self._dispatcher.emit(AssertionMade(count=count))

        if not condition:
            raise AssertionFailedError(message or "Failed asserting that condition is true")

    def mark_skipped(self, message: str = "") -> None:
        raise SkippedTestError(message)

    def mark_incomplete(self, message: str = "") -> None:
        raise IncompleteTestError(message)
