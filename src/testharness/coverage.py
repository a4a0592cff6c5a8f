"""Code coverage file filter.

The filter only records which source files are of interest; measuring
coverage is left to the coverage engine that consumes it.
"""

from pathlib import Path

from testharness.config import CoverageConfig
from testharness.core.discovery import FileDiscovery


class CoverageFilter:
    """Set of source files included in code coverage."""

    def __init__(self, discovery: FileDiscovery | None = None):
        self._discovery = discovery or FileDiscovery()
        self._files: set[str] = set()

    def include_directory(self, directory: Path | str, suffix: str = ".py", prefix: str = "") -> None:
        for path in self._discovery.files(directory, suffix, prefix):
            self._files.add(path)

    def include_file(self, path: Path | str) -> None:
        self._files.add(str(Path(path).resolve()))

    def exclude_directory(self, directory: Path | str, suffix: str = ".py", prefix: str = "") -> None:
        for path in self._discovery.files(directory, suffix, prefix):
            self._files.discard(path)

    def exclude_file(self, path: Path | str) -> None:
        self._files.discard(str(Path(path).resolve()))

    def files(self) -> list[str]:
        return sorted(self._files)

    def is_empty(self) -> bool:
        return not self._files


class FilterMapper:
    """Populates a CoverageFilter from the coverage section of the configuration file."""

    def map(self, coverage_filter: CoverageFilter, config: CoverageConfig, base_dir: Path) -> None:
        for directory in config.include.directories:
            coverage_filter.include_directory(base_dir / directory.path, directory.suffix, directory.prefix)

        for file in config.include.files:
            coverage_filter.include_file(base_dir / file)

        for directory in config.exclude.directories:
            coverage_filter.exclude_directory(base_dir / directory.path, directory.suffix, directory.prefix)

        for file in config.exclude.files:
            coverage_filter.exclude_file(base_dir / file)
