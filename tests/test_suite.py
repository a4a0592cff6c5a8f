"""Tests for the core test model: test cases, suites, discovery and loading."""

import sys

import pytest

from testharness.config import TestDirectoryConfig, TestSuiteConfig
from testharness.core.discovery import FileDiscovery
from testharness.core.loader import (
    LoadResult,
    TestSuiteLoader,
    find_test_classes,
    import_module_from_path,
)
from testharness.core.reflection import source_location
from testharness.core.suite import LoadFailure, ScriptTest, TestMethodItem, TestSuite
from testharness.core.suite_mapper import TestSuiteMapper
from testharness.core.testcase import DEFAULT_GROUP, TestCase, group, groups_of
from testharness.errors import AssertionFailedError

ACCOUNT_TEST = """
from testharness.core import TestCase, group


class AccountHelper:
    pass


@group("bank")
class AccountTest(TestCase):
    def test_deposit(self):
        self.check(True)

    @group("slow")
    def test_withdraw(self):
        self.check(True)

    def helper(self):
        pass
"""


@group("integration")
class TaggedCase(TestCase):
    @group("db", "integration")
    def test_query(self):
        pass

    def test_plain(self):
        pass


class BaseCase(TestCase):
    def test_inherited(self):
        pass


class DerivedCase(BaseCase):
    def test_own(self):
        pass


class TestGroups:
    """Tests for group tagging."""

    def test_untagged_method(self):
        """Test the default group for an untagged test in an untagged class."""
        assert groups_of(BaseCase, "test_inherited") == (DEFAULT_GROUP,)

    def test_method_and_class_groups(self):
        """Test that class and method groups combine without duplicates."""
        assert groups_of(TaggedCase, "test_query") == ("integration", "db")
        assert groups_of(TaggedCase, "test_plain") == ("integration",)

    def test_group_decorator_returns_target(self):
        """Test that the decorator leaves the function callable."""

        @group("fast")
        def test_something():
            return 42

        assert test_something() == 42
        assert test_something.__test_groups__ == ("fast",)


class TestTestCase:
    """Tests for the TestCase base class."""

    def test_method_names_in_definition_order(self):
        """Test that inherited test methods come first."""
        assert DerivedCase.collect_method_names() == ["test_inherited", "test_own"]

    def test_check_counts_assertions(self, dispatcher, recorder):
        """Test that check() counts and emits each assertion with its weight."""
        case = BaseCase("test_inherited")
        case.bind(dispatcher)

        case.check(True)
        case.check(True, count=2)

        assert case.assertion_count == 3
        assert [e.count for e in recorder] == [1, 2]

    def test_check_failure(self):
        """Test that a false condition raises AssertionFailedError."""
        case = BaseCase("test_inherited")

        with pytest.raises(AssertionFailedError, match="totals differ"):
            case.check(False, "totals differ")

        with pytest.raises(AssertionFailedError, match="Failed asserting"):
            case.check(False)


class TestFileDiscovery:
    """Tests for FileDiscovery."""

    def test_finds_by_suffix(self, tmp_path, write_file):
        """Test recursive discovery by suffix, sorted."""
        write_file("b/UserTest.py")
        write_file("a/OrderTest.py")
        write_file("a/helpers.py")
        write_file("a/smoke.pyt")

        files = FileDiscovery().files(tmp_path, ["Test.py", ".pyt"])

        assert files == sorted(
            str((tmp_path / p).resolve()) for p in ["a/OrderTest.py", "a/smoke.pyt", "b/UserTest.py"]
        )

    def test_prefix_and_exclude(self, tmp_path, write_file):
        """Test prefix matching and excluded paths."""
        write_file("unit/test_user.py")
        write_file("unit/user.py")
        write_file("unit/legacy/test_old.py")
        write_file("unit/test_skip.py")

        files = FileDiscovery().files(
            tmp_path / "unit",
            ".py",
            prefix="test_",
            exclude=[tmp_path / "unit" / "legacy", tmp_path / "unit" / "test_skip.py"],
        )

        assert files == [str((tmp_path / "unit" / "test_user.py").resolve())]

    def test_missing_directory(self, tmp_path):
        """Test that a missing directory yields nothing."""
        assert FileDiscovery().files(tmp_path / "missing", "Test.py") == []


class TestLoader:
    """Tests for loading test classes from files."""

    def test_find_test_classes(self, write_file):
        """Test that only TestCase subclasses with tests are returned."""
        module = import_module_from_path(write_file("AccountTest.py", ACCOUNT_TEST))

        assert [c.__name__ for c in find_test_classes(module)] == ["AccountTest"]

    def test_import_is_reused(self, write_file):
        """Test that importing the same file twice returns the same module."""
        path = write_file("ReusedTest.py", ACCOUNT_TEST)

        assert import_module_from_path(path) is import_module_from_path(path)

    def test_same_stem_in_different_directories(self, write_file):
        """Test that files sharing a name are imported as separate modules."""
        first = import_module_from_path(write_file("one/SameTest.py", "VALUE = 1\n"))
        second = import_module_from_path(write_file("two/SameTest.py", "VALUE = 2\n"))

        assert first is not second
        assert (first.VALUE, second.VALUE) == (1, 2)

    def test_failed_import_is_not_cached(self, write_file):
        """Test that a module failing to import is removed from sys.modules."""
        path = write_file("FailingImportTest.py", "raise ImportError('missing dependency')\n")

        with pytest.raises(ImportError):
            import_module_from_path(path)

        assert all(getattr(m, "__file__", None) != str(path.resolve()) for m in list(sys.modules.values()))

    def test_load_prefers_class_named_after_file(self, write_file):
        """Test that the class named after the file is chosen."""
        path = write_file(
            "InvoiceTest.py",
            """
            from testharness.core import TestCase


            class InvoiceTest(TestCase):
                def test_total(self):
                    self.check(True)


            class InvoiceHelperTest(TestCase):
                def test_helper(self):
                    self.check(True)
            """,
        )

        result = TestSuiteLoader().load(path)

        assert result.ok
        assert result.test_class.__name__ == "InvoiceTest"

    def test_load_falls_back_to_last_class(self, write_file):
        """Test that the last test class is used when none matches the file name."""
        path = write_file(
            "ShippingTest.py",
            """
            from testharness.core import TestCase


            class FirstCase(TestCase):
                def test_a(self):
                    pass


            class SecondCase(TestCase):
                def test_b(self):
                    pass
            """,
        )

        assert TestSuiteLoader().load(path).test_class.__name__ == "SecondCase"

    def test_load_fatal(self, write_file):
        """Test fatal results for missing classes and failed imports."""
        empty = TestSuiteLoader().load(write_file("NothingTest.py", "VALUE = 1\n"))
        broken = TestSuiteLoader().load(write_file("SyntaxTest.py", "def (:\n"))

        assert not empty.ok
        assert empty.diagnostic.startswith("Class NothingTest could not be found in")
        assert not broken.ok
        assert broken.diagnostic.startswith("Cannot load test file")

    def test_load_exiting_file(self, write_file):
        """Test that a file calling sys.exit on import is a fatal result."""
        result = TestSuiteLoader().load(write_file("ExitOnImportTest.py", "import sys\nsys.exit(2)\n"))

        assert not result.ok
        assert result.diagnostic.endswith("SystemExit: 2")

    def test_load_result(self):
        """Test the LoadResult constructors."""
        assert LoadResult.success(BaseCase).ok
        assert LoadResult.fatal("no class").diagnostic == "no class"


class TestTestSuite:
    """Tests for TestSuite."""

    def test_from_class(self):
        """Test building a suite from a test class."""
        suite = TestSuite.from_class(DerivedCase)

        assert suite.name.endswith("DerivedCase")
        assert suite.test_class is DerivedCase
        assert [t.method_name for t in suite] == ["test_inherited", "test_own"]
        assert suite.count() == 2

    def test_add_test_file(self, write_file):
        """Test adding a file with a test class and a script test."""
        suite = TestSuite("files")
        suite.add_test_file(write_file("LedgerTest.py", ACCOUNT_TEST.replace("AccountTest", "LedgerTest")))
        suite.add_test_file(write_file("smoke.pyt", "assert True\n"))

        children = list(suite)
        assert isinstance(children[0], TestSuite)
        assert isinstance(children[1], ScriptTest)
        assert suite.count() == 3

    def test_add_broken_test_file(self, write_file):
        """Test that a file failing to import becomes a failing test."""
        suite = TestSuite("broken")
        suite.add_test_file(write_file("BrokenSuiteTest.py", "import no_such_module_anywhere\n"))

        (failure,) = suite
        assert isinstance(failure, LoadFailure)
        assert failure.test.id == "BrokenSuiteTest::load"
        with pytest.raises(ImportError):
            failure.execute(None)

    def test_add_exiting_test_file(self, write_file):
        """Test that a file calling sys.exit on import becomes a failing test."""
        suite = TestSuite("exiting")
        suite.add_test_file(write_file("ExitingSuiteTest.py", "import sys\nsys.exit(1)\n"))

        (failure,) = suite
        assert isinstance(failure, LoadFailure)
        with pytest.raises(SystemExit):
            failure.execute(None)

    def test_group_details(self, write_file):
        """Test that group details cover nested suites."""
        suite = TestSuite("root")
        suite.add_test(TestSuite.from_class(TaggedCase))
        suite.add_test(TestSuite.from_class(BaseCase))

        details = suite.group_details()

        assert sorted(details) == ["db", "default", "integration"]
        assert [t.method_name for t in details["integration"]] == ["test_query", "test_plain"]
        assert [t.method_name for t in details["default"]] == ["test_inherited"]

    def test_empty_suite(self):
        """Test that suites with only empty children are empty."""
        suite = TestSuite("outer")
        suite.add_test(TestSuite("inner"))

        assert suite.is_empty()
        assert repr(suite) == "TestSuite(name='outer', count=0)"

    def test_item_name(self):
        """Test the name used by name filters."""
        item = TestMethodItem(DerivedCase, "test_own")

        assert item.name() == f"{DerivedCase.__module__}.DerivedCase::test_own"


class TestTestSuiteMapper:
    """Tests for TestSuiteMapper."""

    def test_map_directories_and_files(self, tmp_path, write_file):
        """Test mapping a suite with directories, files and excludes."""
        write_file("unit/CartTest.py", ACCOUNT_TEST.replace("AccountTest", "CartTest"))
        write_file("unit/legacy/OldTest.py", ACCOUNT_TEST.replace("AccountTest", "OldTest"))
        write_file("extra/checkout.pyt", "assert True\n")
        suites = [
            TestSuiteConfig(
                name="unit",
                directories=[TestDirectoryConfig(path="unit")],
                files=["extra/checkout.pyt", "extra/missing.pyt"],
                exclude=["unit/legacy"],
            )
        ]

        root = TestSuiteMapper().map(suites, "", "", tmp_path)

        (unit,) = root
        assert unit.name == "unit"
        assert unit.count() == 3

    def test_empty_suites_are_dropped(self, tmp_path):
        """Test that suites without tests are left out."""
        suites = [TestSuiteConfig(name="empty", directories=[TestDirectoryConfig(path="nowhere")])]

        root = TestSuiteMapper().map(suites, "", "", tmp_path)

        assert list(root) == []

    def test_include_and_exclude(self, tmp_path, write_file):
        """Test selecting suites by comma-separated names."""
        write_file("a/ATest.py", ACCOUNT_TEST.replace("AccountTest", "ATest"))
        write_file("b/BTest.py", ACCOUNT_TEST.replace("AccountTest", "BTest"))
        suites = [
            TestSuiteConfig(name="a", directories=[TestDirectoryConfig(path="a")]),
            TestSuiteConfig(name="b", directories=[TestDirectoryConfig(path="b")]),
        ]

        mapper = TestSuiteMapper()

        assert [s.name for s in mapper.map(suites, "b, a", "", tmp_path)] == ["a", "b"]
        assert [s.name for s in mapper.map(suites, "", "a", tmp_path)] == ["b"]


class TestSourceLocation:
    """Tests for source_location."""

    def test_method_location(self):
        """Test the file and line of a test method."""
        filename, line = source_location(TaggedCase, "test_query")

        assert filename.endswith("test_suite.py")
        assert isinstance(line, int) and line > 0

    def test_class_location(self):
        """Test that a class has a file but no line."""
        filename, line = source_location(TaggedCase)

        assert filename.endswith("test_suite.py")
        assert line is None

    def test_unknown_location(self):
        """Test that locations that cannot be determined are None."""
        assert source_location(None) is None
        assert source_location(TaggedCase, "test_missing") is None
        assert source_location(int) is None
