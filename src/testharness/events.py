"""Events emitted while a test run progresses.

Every event carries a telemetry timestamp taken from a monotonic clock, so
durations between two events can be computed by subtraction.
"""

import time
import traceback
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Optional


@dataclass(frozen=True)
class TestMethod:
    """Identity of a single test."""

    class_name: str
    method_name: str
    test_class: Optional[type] = field(default=None, compare=False, repr=False)

    @property
    def id(self) -> str:
        """Get the test name as used by name filters and fault messages."""
        return f"{self.class_name}::{self.method_name}"


@dataclass(frozen=True)
class Throwable:
    """Snapshot of an exception raised by a test."""

    class_name: str
    message: str
    description: str
    stack_trace: str = ""

    @classmethod
    def from_exception(cls, exc: BaseException) -> "Throwable":
        """Build a throwable from a caught exception."""
        class_name = type(exc).__name__
        message = str(exc)
        description = f"{class_name}: {message}" if message else class_name
        stack_trace = "".join(traceback.format_tb(exc.__traceback__))

        return cls(
            class_name=class_name,
            message=message,
            description=description,
            stack_trace=stack_trace,
        )


@dataclass(frozen=True, kw_only=True)
class Event:
    """Base class for all events."""

    time: float = field(default_factory=time.perf_counter)


@dataclass(frozen=True)
class BootstrapFinished(Event):
    filename: str


@dataclass(frozen=True)
class TestSuiteStarted(Event):
    name: str
    test_class: Optional[type] = field(default=None, compare=False)
    count: int = 0


@dataclass(frozen=True)
class TestSuiteFinished(Event):
    name: str


@dataclass(frozen=True)
class TestPrepared(Event):
    test: TestMethod


@dataclass(frozen=True)
class TestFinished(Event):
    test: TestMethod
    output: str = ""


@dataclass(frozen=True)
class TestPassed(Event):
    test: TestMethod


@dataclass(frozen=True)
class TestPassedWithWarning(Event):
    test: TestMethod
    throwable: Throwable


@dataclass(frozen=True)
class TestPassedButRisky(Event):
    test: TestMethod
    throwable: Throwable


@dataclass(frozen=True)
class TestErrored(Event):
    test: TestMethod
    throwable: Throwable


@dataclass(frozen=True)
class TestFailed(Event):
    test: TestMethod
    throwable: Throwable


@dataclass(frozen=True)
class TestSkipped(Event):
    test: TestMethod
    message: str = ""


@dataclass(frozen=True)
class TestAborted(Event):
    test: TestMethod
    message: str = ""


@dataclass(frozen=True)
class AssertionMade(Event):
    """An assertion was evaluated; count is its weight (combined constraints count more than once)."""

    count: int = 1


Subscriber = Callable[[Any], None]


class EventDispatcher:
    """Delivers events to the subscribers registered for their type."""

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Subscriber]] = defaultdict(list)

    def register_subscriber(self, event_type: type, subscriber: Subscriber) -> None:
        """Register a callback for one event type."""
        self._subscribers[event_type].append(subscriber)

    def emit(self, event: Event) -> None:
        """Deliver an event to its subscribers in registration order."""
        for subscriber in self._subscribers.get(type(event), []):
            subscriber(event)
