"""Composition of test filters."""

from typing import Any, Iterable, Iterator, Optional

from testharness.core.suite import TestSuite
from testharness.filter.iterators import (
    ExcludeGroupFilterIterator,
    FilterIterator,
    IncludeGroupFilterIterator,
    NameFilterIterator,
)


class FilterFactory:
    """Collects filters and wraps test iterators in them.

    Filters are applied in registration order: the first filter wraps the
    base iterator, each later one wraps the previous. An item is yielded only
    when every filter accepts it.
    """

    def __init__(self) -> None:
        self._filters: list[tuple[type[FilterIterator], Any]] = []

    @classmethod
    def from_configuration(cls, configuration) -> "FilterFactory":
        """Build a factory from the groups and name filter of a run configuration."""
        factory = cls()

        if configuration.excluded_groups:
            factory.add_exclude_group_filter(configuration.excluded_groups)

        if configuration.groups:
            factory.add_include_group_filter(configuration.groups)

        if configuration.has_name_filter():
            factory.add_name_filter(configuration.name_filter)

        return factory

    def add_exclude_group_filter(self, groups: Iterable[str]) -> None:
        self._filters.append((ExcludeGroupFilterIterator, list(groups)))

    def add_include_group_filter(self, groups: Iterable[str]) -> None:
        self._filters.append((IncludeGroupFilterIterator, list(groups)))

    def add_name_filter(self, pattern: str) -> None:
        self._filters.append((NameFilterIterator, pattern))

    def has_filters(self) -> bool:
        return bool(self._filters)

    def build(self, iterator: Iterable[Any], suite: Optional[TestSuite] = None) -> Iterator[Any]:
        """Wrap an iterator in every registered filter.

        Args:
            iterator: Iterator over the children of a suite
            suite: Suite the children belong to, used to resolve group membership

        Returns:
            Iterator yielding the items accepted by all filters
        """
        iterator = iter(iterator)
        if suite is None:
            suite = TestSuite()

        for filter_class, argument in self._filters:
            iterator = filter_class(iterator, argument, suite)

        return iterator
