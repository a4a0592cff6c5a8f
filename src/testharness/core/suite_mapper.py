"""Builds test suites from the suites declared in the configuration file."""

import logging
from pathlib import Path

from testharness.config import TestSuiteConfig
from testharness.core.discovery import FileDiscovery
from testharness.core.suite import TestSuite

logger = logging.getLogger(__name__)


def _names(value: str) -> list[str]:
    return [name.strip() for name in value.split(",") if name.strip()] if value else []


class TestSuiteMapper:
    """Maps declared test suites onto a root TestSuite."""

    def __init__(self, discovery: FileDiscovery | None = None):
        self.discovery = discovery or FileDiscovery()

    def map(
        self,
        suites: list[TestSuiteConfig],
        include: str,
        exclude: str,
        base_dir: Path,
    ) -> TestSuite:
        """Build a root suite with one child per selected suite.

        Args:
            suites: Suites declared in the configuration file
            include: Comma-separated names to select (empty selects all)
            exclude: Comma-separated names to leave out
            base_dir: Directory relative paths are resolved against

        Returns:
            Root suite; selected suites without tests are dropped
        """
        included = _names(include)
        excluded = _names(exclude)

        root = TestSuite()

        for suite_config in suites:
            if included and suite_config.name not in included:
                continue
            if suite_config.name in excluded:
                continue

            excluded_paths = [base_dir / path for path in suite_config.exclude]
            suite = TestSuite(suite_config.name)

            for directory in suite_config.directories:
                files = self.discovery.files(
                    base_dir / directory.path,
                    directory.suffix,
                    directory.prefix,
                    excluded_paths,
                )
                suite.add_test_files(files)

            for file in suite_config.files:
                path = (base_dir / file).resolve()
                if path.is_file():
                    suite.add_test_file(path)
                else:
                    logger.warning(f"Test file in suite {suite_config.name} not found: {path}")

            if suite.is_empty():
                logger.debug(f"Test suite {suite_config.name} has no tests")
                continue

            root.add_test(suite)

        return root
