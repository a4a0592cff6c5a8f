"""Test filtering by group and by name."""

from testharness.filter.factory import FilterFactory
from testharness.filter.iterators import (
    ExcludeGroupFilterIterator,
    FilterIterator,
    IncludeGroupFilterIterator,
    NameFilterIterator,
)

__all__ = [
    "FilterFactory",
    "FilterIterator",
    "ExcludeGroupFilterIterator",
    "IncludeGroupFilterIterator",
    "NameFilterIterator",
]
