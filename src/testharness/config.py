"""Configuration models for TestHarness.

Two sources feed a run: the JSON configuration file (FileConfiguration) and
command-line options (CliConfiguration). They are merged by
testharness.configuration.resolve().
"""

import json
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, PrivateAttr, field_validator

CONFIG_FILE_NAMES = ["testharness.json", ".testharness.json"]

Columns = Union[int, Literal["max"]]


class TestDirectoryConfig(BaseModel):
    """A directory searched for test files."""

    path: str = Field(description="Directory to search recursively")
    suffix: str = Field(default="Test.py", description="Required filename suffix")
    prefix: str = Field(default="", description="Required filename prefix")


class TestSuiteConfig(BaseModel):
    """A named test suite declared in the configuration file."""

    name: str = Field(description="Suite name used by --testsuite")
    directories: list[TestDirectoryConfig] = Field(default_factory=list)
    files: list[str] = Field(default_factory=list, description="Individual test files")
    exclude: list[str] = Field(default_factory=list, description="Files or directories to leave out")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Test suite name cannot be empty")
        return v


class SourceDirectoryConfig(BaseModel):
    """A directory of source files for code coverage."""

    path: str
    suffix: str = Field(default=".py")
    prefix: str = Field(default="")


class CoverageSourceConfig(BaseModel):
    """Directories and files for code coverage inclusion or exclusion."""

    directories: list[SourceDirectoryConfig] = Field(default_factory=list)
    files: list[str] = Field(default_factory=list)


class CoverageConfig(BaseModel):
    """Code coverage settings."""

    cache_directory: Optional[str] = Field(default=None, description="Coverage cache directory")
    path_coverage: bool = Field(default=False, description="Collect path coverage")
    ignore_deprecated_code_units: bool = Field(default=False)
    disable_code_coverage_ignore: bool = Field(default=False)
    include: CoverageSourceConfig = Field(default_factory=CoverageSourceConfig)
    exclude: CoverageSourceConfig = Field(default_factory=CoverageSourceConfig)

    def has_non_empty_include_list(self) -> bool:
        return bool(self.include.directories or self.include.files)


class GroupsConfig(BaseModel):
    """Groups selected or excluded by default."""

    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)


class LoggingConfig(BaseModel):
    """Report output settings."""

    junit: Optional[str] = Field(default=None, description="Path of the JUnit XML report")
    report_risky_tests: bool = Field(default=False, description="Record risky tests as errors in the report")


class FileConfiguration(BaseModel):
    """Settings read from testharness.json."""

    bootstrap: Optional[str] = Field(default=None, description="Script executed before tests are loaded")
    cache_result: bool = Field(default=True, description="Cache test results between runs")
    cache_directory: Optional[str] = Field(default=None)
    cache_result_file: Optional[str] = Field(default=None)
    default_test_suite: Optional[str] = Field(default=None, description="Comma-separated suite names")
    extensions_directory: Optional[str] = Field(default=None, description="Directory of extension scripts")
    fail_on_empty_test_suite: bool = Field(default=False)
    fail_on_incomplete: bool = Field(default=False)
    fail_on_risky: bool = Field(default=False)
    fail_on_skipped: bool = Field(default=False)
    fail_on_warning: bool = Field(default=False)
    stderr: bool = Field(default=False, description="Write console output to stderr")
    columns: Columns = Field(default=80, description="Console width or 'max'")
    test_suites: list[TestSuiteConfig] = Field(default_factory=list)
    coverage: CoverageConfig = Field(default_factory=CoverageConfig)
    groups: GroupsConfig = Field(default_factory=GroupsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    _filename: Optional[Path] = PrivateAttr(default=None)

    @field_validator("columns")
    @classmethod
    def validate_columns(cls, v: Columns) -> Columns:
        if isinstance(v, int) and v < 1:
            raise ValueError("Columns must be a positive number or 'max'")
        return v

    @classmethod
    def from_file(cls, path: Path | str) -> "FileConfiguration":
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = json.load(f)

        config = cls.model_validate(data)
        config._filename = path.resolve()
        return config

    @classmethod
    def find_and_load(cls, start_dir: Path | str | None = None) -> "FileConfiguration":
        """Find and load a configuration file, searching up the directory tree.

        Returns the default configuration when no file is found.
        """
        if start_dir is None:
            start_dir = Path.cwd()
        else:
            start_dir = Path(start_dir)

        current = start_dir.resolve()
        for directory in [current, *current.parents]:
            for name in CONFIG_FILE_NAMES:
                config_path = directory / name
                if config_path.exists():
                    return cls.from_file(config_path)

        return cls()

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)

    def was_loaded_from_file(self) -> bool:
        return self._filename is not None

    @property
    def filename(self) -> Optional[Path]:
        return self._filename

    @property
    def base_dir(self) -> Path:
        """Directory that relative paths in this configuration are resolved against."""
        if self._filename is not None:
            return self._filename.parent
        return Path.cwd()

    def absolute(self, path: str) -> str:
        """Resolve a path from this configuration against its base directory."""
        return str(self.base_dir / Path(path).expanduser())


class CliConfiguration(BaseModel):
    """Settings given on the command line.

    A value of None means the option was not given and the configuration
    file (or a default) decides.
    """

    argument: Optional[str] = None
    configuration: Optional[str] = None
    bootstrap: Optional[str] = None
    test_suite: Optional[str] = None
    excluded_test_suite: Optional[str] = None
    test_suffixes: Optional[list[str]] = None
    groups: Optional[list[str]] = None
    excluded_groups: Optional[list[str]] = None
    filter: Optional[str] = None
    cache_result: Optional[bool] = None
    cache_directory: Optional[str] = None
    coverage_cache_directory: Optional[str] = None
    cache_result_file: Optional[str] = None
    coverage_filter: Optional[list[str]] = None
    path_coverage: Optional[bool] = None
    disable_code_coverage_ignore: Optional[bool] = None
    fail_on_empty_test_suite: Optional[bool] = None
    fail_on_incomplete: Optional[bool] = None
    fail_on_risky: Optional[bool] = None
    fail_on_skipped: Optional[bool] = None
    fail_on_warning: Optional[bool] = None
    stderr: Optional[bool] = None
    columns: Optional[Columns] = None
    no_extensions: Optional[bool] = None
    log_junit: Optional[str] = None
    report_risky_tests: Optional[bool] = None


def get_default_config() -> FileConfiguration:
    """Return a default configuration with one test suite."""
    return FileConfiguration(
        bootstrap=None,
        cache_directory=".testharness.cache",
        test_suites=[
            TestSuiteConfig(
                name="default",
                directories=[TestDirectoryConfig(path="tests")],
            )
        ],
        logging=LoggingConfig(junit="reports/junit.xml"),
    )


def create_example_config(output_path: Path | str) -> Path:
    """Create an example configuration file."""
    output_path = Path(output_path)
    config = get_default_config()
    config.coverage.include.directories.append(SourceDirectoryConfig(path="src"))
    config.to_file(output_path)
    return output_path
