"""Resolution of the effective run configuration.

Command-line options take precedence over the configuration file, which
takes precedence over built-in defaults. resolve() is called once at start-up
and its result is handed to every component that needs it.
"""

import logging
import os
import runpy
import sys
from pathlib import Path
from typing import Optional

from testharness.config import CliConfiguration, Columns, FileConfiguration
from testharness.core.discovery import FileDiscovery
from testharness.core.loader import TestSuiteLoader
from testharness.core.suite import TestSuite
from testharness.core.suite_mapper import TestSuiteMapper
from testharness.coverage import CoverageFilter, FilterMapper
from testharness.errors import (
    BootstrapError,
    InvalidBootstrapError,
    NoBootstrapError,
    NoCacheDirectoryError,
    NoCoverageCacheDirectoryError,
    NoExtensionsDirectoryError,
    NoFilterError,
    NoJunitLogFileError,
    NoTestSuiteError,
    TestFileNotFoundError,
    TestLoaderFatalError,
)
from testharness.events import BootstrapFinished, EventDispatcher

logger = logging.getLogger(__name__)

DEFAULT_TEST_SUFFIXES = ["Test.py", ".pyt"]
MINIMUM_COLUMNS = 16
RESULT_CACHE_FILENAME = ".testharness.result.cache"
COVERAGE_CACHE_SUBDIRECTORY = "code-coverage"
RESULT_CACHE_SUBPATH = "test-results"


class Configuration:
    """Effective, read-only configuration of a test run."""

    def __init__(
        self,
        *,
        test_suite: Optional[TestSuite],
        bootstrap: Optional[str],
        cache_result: bool,
        cache_directory: Optional[str],
        coverage_cache_directory: Optional[str],
        test_result_cache_file: str,
        code_coverage_filter: CoverageFilter,
        path_coverage: bool,
        ignore_deprecated_code_units_from_code_coverage: bool,
        disable_code_coverage_ignore: bool,
        fail_on_empty_test_suite: bool,
        fail_on_incomplete: bool,
        fail_on_risky: bool,
        fail_on_skipped: bool,
        fail_on_warning: bool,
        output_to_standard_error_stream: bool,
        columns: Columns,
        too_few_columns_requested: bool,
        load_extensions: bool,
        extensions_directory: Optional[str],
        groups: tuple[str, ...] = (),
        excluded_groups: tuple[str, ...] = (),
        name_filter: Optional[str] = None,
        junit_log_file: Optional[str] = None,
        report_risky_tests: bool = False,
    ):
        self._test_suite = test_suite
        self._bootstrap = bootstrap
        self._cache_result = cache_result
        self._cache_directory = cache_directory
        self._coverage_cache_directory = coverage_cache_directory
        self._test_result_cache_file = test_result_cache_file
        self._code_coverage_filter = code_coverage_filter
        self._path_coverage = path_coverage
        self._ignore_deprecated_code_units_from_code_coverage = ignore_deprecated_code_units_from_code_coverage
        self._disable_code_coverage_ignore = disable_code_coverage_ignore
        self._fail_on_empty_test_suite = fail_on_empty_test_suite
        self._fail_on_incomplete = fail_on_incomplete
        self._fail_on_risky = fail_on_risky
        self._fail_on_skipped = fail_on_skipped
        self._fail_on_warning = fail_on_warning
        self._output_to_standard_error_stream = output_to_standard_error_stream
        self._columns = columns
        self._too_few_columns_requested = too_few_columns_requested
        self._load_extensions = load_extensions
        self._extensions_directory = extensions_directory
        self._groups = tuple(groups)
        self._excluded_groups = tuple(excluded_groups)
        self._name_filter = name_filter
        self._junit_log_file = junit_log_file
        self._report_risky_tests = report_risky_tests

    def has_test_suite(self) -> bool:
        return self._test_suite is not None and not self._test_suite.is_empty()

    @property
    def test_suite(self) -> TestSuite:
        if self._test_suite is None:
            raise NoTestSuiteError()
        return self._test_suite

    def has_bootstrap(self) -> bool:
        return self._bootstrap is not None

    @property
    def bootstrap(self) -> str:
        if self._bootstrap is None:
            raise NoBootstrapError()
        return self._bootstrap

    @property
    def cache_result(self) -> bool:
        return self._cache_result

    def has_cache_directory(self) -> bool:
        return self._cache_directory is not None

    @property
    def cache_directory(self) -> str:
        if self._cache_directory is None:
            raise NoCacheDirectoryError()
        return self._cache_directory

    def has_coverage_cache_directory(self) -> bool:
        return self._coverage_cache_directory is not None

    @property
    def coverage_cache_directory(self) -> str:
        if self._coverage_cache_directory is None:
            raise NoCoverageCacheDirectoryError()
        return self._coverage_cache_directory

    @property
    def test_result_cache_file(self) -> str:
        return self._test_result_cache_file

    @property
    def code_coverage_filter(self) -> CoverageFilter:
        return self._code_coverage_filter

    @property
    def path_coverage(self) -> bool:
        return self._path_coverage

    @property
    def ignore_deprecated_code_units_from_code_coverage(self) -> bool:
        return self._ignore_deprecated_code_units_from_code_coverage

    @property
    def disable_code_coverage_ignore(self) -> bool:
        return self._disable_code_coverage_ignore

    @property
    def fail_on_empty_test_suite(self) -> bool:
        return self._fail_on_empty_test_suite

    @property
    def fail_on_incomplete(self) -> bool:
        return self._fail_on_incomplete

    @property
    def fail_on_risky(self) -> bool:
        return self._fail_on_risky

    @property
    def fail_on_skipped(self) -> bool:
        return self._fail_on_skipped

    @property
    def fail_on_warning(self) -> bool:
        return self._fail_on_warning

    @property
    def output_to_standard_error_stream(self) -> bool:
        return self._output_to_standard_error_stream

    @property
    def columns(self) -> Columns:
        return self._columns

    @property
    def too_few_columns_requested(self) -> bool:
        return self._too_few_columns_requested

    @property
    def load_extensions(self) -> bool:
        return self._load_extensions

    def has_extensions_directory(self) -> bool:
        return self._extensions_directory is not None

    @property
    def extensions_directory(self) -> str:
        if self._extensions_directory is None:
            raise NoExtensionsDirectoryError()
        return self._extensions_directory

    @property
    def groups(self) -> tuple[str, ...]:
        return self._groups

    @property
    def excluded_groups(self) -> tuple[str, ...]:
        return self._excluded_groups

    def has_name_filter(self) -> bool:
        return self._name_filter is not None

    @property
    def name_filter(self) -> str:
        if self._name_filter is None:
            raise NoFilterError()
        return self._name_filter

    def has_junit_log_file(self) -> bool:
        return self._junit_log_file is not None

    @property
    def junit_log_file(self) -> str:
        if self._junit_log_file is None:
            raise NoJunitLogFileError()
        return self._junit_log_file

    @property
    def report_risky_tests(self) -> bool:
        return self._report_risky_tests


def resolve(
    cli: CliConfiguration,
    file_config: FileConfiguration,
    dispatcher: Optional[EventDispatcher] = None,
    script_path: Optional[str] = None,
) -> Configuration:
    """Merge command-line options and the configuration file.

    Args:
        cli: Options given on the command line
        file_config: Loaded configuration file (or defaults)
        dispatcher: Receives the BootstrapFinished event
        script_path: Path of the running script, used to place the result
            cache file when nothing else decides it (default: sys.argv[0])

    Returns:
        The resolved configuration

    Raises:
        InvalidBootstrapError: If the bootstrap script cannot be read
        BootstrapError: If the bootstrap script raises
        TestFileNotFoundError: If the test argument does not exist
        TestLoaderFatalError: If no test class can be loaded from the argument
    """
    base_dir = file_config.base_dir

    bootstrap = None
    if cli.bootstrap is not None:
        bootstrap = cli.bootstrap
    elif file_config.bootstrap is not None:
        bootstrap = file_config.absolute(file_config.bootstrap)

    if bootstrap is not None:
        _handle_bootstrap(bootstrap, dispatcher)

    if cli.argument is not None:
        if not os.path.exists(cli.argument):
            raise TestFileNotFoundError(cli.argument)

        test_suite = _test_suite_from_path(
            os.path.realpath(cli.argument),
            cli.test_suffixes or DEFAULT_TEST_SUFFIXES,
        )
    else:
        include = ""
        if cli.test_suite is not None:
            include = cli.test_suite
        elif file_config.default_test_suite is not None:
            include = file_config.default_test_suite

        test_suite = TestSuiteMapper().map(
            file_config.test_suites,
            include,
            cli.excluded_test_suite or "",
            base_dir,
        )

    cache_result = cli.cache_result if cli.cache_result is not None else file_config.cache_result

    cache_directory = None
    coverage_cache_directory = None
    test_result_cache_file = None

    if cli.cache_directory is not None and _create_directory(cli.cache_directory):
        cache_directory = os.path.realpath(cli.cache_directory)
    elif file_config.cache_directory is not None:
        candidate = file_config.absolute(file_config.cache_directory)
        if _create_directory(candidate):
            cache_directory = os.path.realpath(candidate)

    if cache_directory is not None:
        coverage_cache_directory = os.path.join(cache_directory, COVERAGE_CACHE_SUBDIRECTORY)
        test_result_cache_file = os.path.join(cache_directory, RESULT_CACHE_SUBPATH)

    if coverage_cache_directory is None:
        if cli.coverage_cache_directory is not None and _create_directory(cli.coverage_cache_directory):
            coverage_cache_directory = os.path.realpath(cli.coverage_cache_directory)
        elif file_config.coverage.cache_directory is not None:
            coverage_cache_directory = file_config.absolute(file_config.coverage.cache_directory)

    if test_result_cache_file is None:
        test_result_cache_file = _result_cache_file(cli, file_config, script_path)

    code_coverage_filter = CoverageFilter()

    if cli.coverage_filter:
        for directory in cli.coverage_filter:
            code_coverage_filter.include_directory(directory)

    if file_config.coverage.has_non_empty_include_list():
        FilterMapper().map(code_coverage_filter, file_config.coverage, base_dir)

    columns = cli.columns if cli.columns is not None else file_config.columns
    columns, too_few_columns_requested = _clamp_columns(columns)

    extensions_directory = None
    if file_config.extensions_directory is not None:
        extensions_directory = file_config.absolute(file_config.extensions_directory)

    junit_log_file = cli.log_junit
    if junit_log_file is None and file_config.logging.junit is not None:
        junit_log_file = file_config.absolute(file_config.logging.junit)

    configuration = Configuration(
        test_suite=test_suite,
        bootstrap=bootstrap,
        cache_result=cache_result,
        cache_directory=cache_directory,
        coverage_cache_directory=coverage_cache_directory,
        test_result_cache_file=test_result_cache_file,
        code_coverage_filter=code_coverage_filter,
        path_coverage=bool(cli.path_coverage) or file_config.coverage.path_coverage,
        ignore_deprecated_code_units_from_code_coverage=file_config.coverage.ignore_deprecated_code_units,
        disable_code_coverage_ignore=_pick(
            cli.disable_code_coverage_ignore, file_config.coverage.disable_code_coverage_ignore
        ),
        fail_on_empty_test_suite=_pick(cli.fail_on_empty_test_suite, file_config.fail_on_empty_test_suite),
        fail_on_incomplete=_pick(cli.fail_on_incomplete, file_config.fail_on_incomplete),
        fail_on_risky=_pick(cli.fail_on_risky, file_config.fail_on_risky),
        fail_on_skipped=_pick(cli.fail_on_skipped, file_config.fail_on_skipped),
        fail_on_warning=_pick(cli.fail_on_warning, file_config.fail_on_warning),
        output_to_standard_error_stream=bool(cli.stderr) or file_config.stderr,
        columns=columns,
        too_few_columns_requested=too_few_columns_requested,
        load_extensions=not cli.no_extensions,
        extensions_directory=extensions_directory,
        groups=tuple(_pick(cli.groups, file_config.groups.include)),
        excluded_groups=tuple(_pick(cli.excluded_groups, file_config.groups.exclude)),
        name_filter=cli.filter,
        junit_log_file=junit_log_file,
        report_risky_tests=_pick(cli.report_risky_tests, file_config.logging.report_risky_tests),
    )

    logger.debug(
        f"Resolved configuration: {test_suite!r}, cache directory {cache_directory}, "
        f"result cache file {test_result_cache_file}, columns {columns}"
    )
    return configuration


def _pick(cli_value, file_value):
    """Return the command-line value when it was given, else the file value."""
    return cli_value if cli_value is not None else file_value


def _clamp_columns(columns: Columns) -> tuple[Columns, bool]:
    """Raise a numeric column count to the minimum; 'max' is left alone."""
    if isinstance(columns, int) and columns < MINIMUM_COLUMNS:
        return MINIMUM_COLUMNS, True
    return columns, False


def _create_directory(path: str) -> bool:
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"Cannot create directory {path}: {e}")
        return False
    return True


def _result_cache_file(
    cli: CliConfiguration,
    file_config: FileConfiguration,
    script_path: Optional[str],
) -> str:
    if cli.cache_result_file is not None:
        return cli.cache_result_file

    if file_config.cache_result_file is not None:
        return file_config.absolute(file_config.cache_result_file)

    if file_config.was_loaded_from_file():
        return os.path.join(os.path.dirname(os.path.realpath(file_config.filename)), RESULT_CACHE_FILENAME)

    if script_path is None:
        script_path = sys.argv[0] if sys.argv and sys.argv[0] else ""

    if script_path and os.path.exists(script_path):
        return os.path.join(os.path.dirname(os.path.realpath(script_path)), RESULT_CACHE_FILENAME)

    return RESULT_CACHE_FILENAME


def _test_suite_from_path(path: str, suffixes: list[str]) -> TestSuite:
    if os.path.isdir(path):
        files = FileDiscovery().files(path, suffixes)

        suite = TestSuite(path)
        suite.add_test_files(files)
        return suite

    if os.path.isfile(path) and path.endswith(".pyt"):
        suite = TestSuite()
        suite.add_test_file(path)
        return suite

    result = TestSuiteLoader().load(path)
    if not result.ok:
        raise TestLoaderFatalError(result.diagnostic)

    return TestSuite.from_class(result.test_class)


def _handle_bootstrap(filename: str, dispatcher: Optional[EventDispatcher]) -> None:
    if not os.path.isfile(filename) or not os.access(filename, os.R_OK):
        raise InvalidBootstrapError(filename)

    try:
        runpy.run_path(filename, run_name="__bootstrap__")
    except Exception as e:
        raise BootstrapError(e) from e

    logger.debug(f"Bootstrap script executed: {filename}")

    if dispatcher is not None:
        dispatcher.emit(BootstrapFinished(filename=filename))
