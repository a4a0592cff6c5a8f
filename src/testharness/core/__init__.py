"""Core test model: test cases, suites, discovery and loading."""

from testharness.core.suite import TestSuite
from testharness.core.testcase import TestCase, group

__all__ = ["TestCase", "TestSuite", "group"]
