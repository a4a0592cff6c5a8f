"""Exceptions raised by TestHarness."""


class TestHarnessError(Exception):
    """Base class for all TestHarness errors."""

    pass


class ConfigurationError(TestHarnessError):
    """Raised when the run configuration cannot be resolved."""

    pass


class ConfigurationValueNotSetError(TestHarnessError):
    """Raised when an optional configuration value is read while unset."""

    field_name = ""

    def __init__(self) -> None:
        super().__init__(f"No {self.field_name} has been configured")


class NoTestSuiteError(ConfigurationValueNotSetError):
    field_name = "test suite"


class NoBootstrapError(ConfigurationValueNotSetError):
    field_name = "bootstrap script"


class NoCacheDirectoryError(ConfigurationValueNotSetError):
    field_name = "cache directory"


class NoCoverageCacheDirectoryError(ConfigurationValueNotSetError):
    field_name = "coverage cache directory"


class NoExtensionsDirectoryError(ConfigurationValueNotSetError):
    field_name = "extensions directory"


class NoFilterError(ConfigurationValueNotSetError):
    field_name = "name filter"


class NoJunitLogFileError(ConfigurationValueNotSetError):
    field_name = "JUnit log file"


class TestFileNotFoundError(ConfigurationError):
    """Raised when the test file or directory given on the command line does not exist."""

    def __init__(self, path: str):
        super().__init__(f"Test file or directory not found: {path}")
        self.path = path


class InvalidBootstrapError(ConfigurationError):
    """Raised when the bootstrap script cannot be read."""

    def __init__(self, filename: str):
        super().__init__(f"Cannot open bootstrap script: {filename}")
        self.filename = filename


class BootstrapError(ConfigurationError):
    """Raised when the bootstrap script raises while it executes."""

    def __init__(self, original: BaseException):
        super().__init__(f"Error in bootstrap script: {type(original).__name__}: {original}")
        self.original = original


class TestLoaderFatalError(ConfigurationError):
    """Raised when a test class cannot be loaded from the given file.

    The CLI prints the diagnostic and terminates with exit status 1.
    """

    def __init__(self, diagnostic: str):
        super().__init__(diagnostic)
        self.diagnostic = diagnostic


class AssertionFailedError(AssertionError):
    """Raised by TestCase.check() when a condition does not hold."""

    pass


class SkippedTestError(Exception):
    """Raised to mark the running test as skipped."""

    pass


class IncompleteTestError(Exception):
    """Raised to mark the running test as incomplete."""

    pass


class RiskyTestError(Exception):
    """Describes why a passing test was considered risky."""

    pass
