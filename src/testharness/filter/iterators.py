"""Filtering iterators over the children of a test suite.

Nested suites are always accepted; the runner applies the same filters when
it descends into them.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Iterable, Iterator

from testharness.core.suite import TestSuite


class FilterIterator(ABC):
    """Lazy, single-pass iterator yielding only accepted items."""

    def __init__(self, iterator: Iterable[Any], argument: Any, suite: TestSuite):
        self._inner: Iterator[Any] = iter(iterator)
        self.suite = suite

    def __iter__(self) -> "FilterIterator":
        return self

    def __next__(self) -> Any:
        while True:
            item = next(self._inner)
            if self.accept(item):
                return item

    @abstractmethod
    def accept(self, item: Any) -> bool:
        """Decide whether an item is yielded."""
        pass


class GroupFilterIterator(FilterIterator):
    """Base class for filters based on group membership."""

    def __init__(self, iterator: Iterable[Any], groups: Iterable[str], suite: TestSuite):
        super().__init__(iterator, groups, suite)
        details = suite.group_details()
        self._members = {
            id(test) for name in groups for test in details.get(name, [])
        }

    def accept(self, item: Any) -> bool:
        if isinstance(item, TestSuite):
            return True
        return self.do_accept(id(item) in self._members)

    @abstractmethod
    def do_accept(self, in_group: bool) -> bool:
        pass


class IncludeGroupFilterIterator(GroupFilterIterator):
    """Yields tests belonging to at least one of the groups."""

    def do_accept(self, in_group: bool) -> bool:
        return in_group


class ExcludeGroupFilterIterator(GroupFilterIterator):
    """Yields tests belonging to none of the groups."""

    def do_accept(self, in_group: bool) -> bool:
        return not in_group


class NameFilterIterator(FilterIterator):
    """Yields tests whose "<class>::<method>" name matches a pattern.

    The pattern is a regular expression; a pattern that does not compile is
    matched literally.
    """

    def __init__(self, iterator: Iterable[Any], pattern: str, suite: TestSuite):
        super().__init__(iterator, pattern, suite)
        try:
            self.pattern = re.compile(pattern)
        except re.error:
            self.pattern = re.compile(re.escape(pattern))

    def accept(self, item: Any) -> bool:
        if isinstance(item, TestSuite):
            return True
        return self.pattern.search(item.name()) is not None
