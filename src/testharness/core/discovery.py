"""Test file discovery."""

import logging
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


class FileDiscovery:
    """Finds files below a directory by filename suffix."""

    def files(
        self,
        directory: Path | str,
        suffixes: Iterable[str] | str,
        prefix: str = "",
        exclude: Iterable[Path | str] = (),
    ) -> list[str]:
        """Recursively find files ending in one of the suffixes.

        Args:
            directory: Directory to search
            suffixes: One suffix or a list of suffixes (e.g. "Test.py")
            prefix: Required filename prefix
            exclude: Files or directories to leave out

        Returns:
            Sorted list of absolute file paths
        """
        directory = Path(directory)
        if isinstance(suffixes, str):
            suffixes = [suffixes]
        suffixes = list(suffixes)

        if not directory.is_dir():
            logger.debug(f"Not a directory, nothing to discover: {directory}")
            return []

        excluded = [Path(p).resolve() for p in exclude]

        found = set()
        for path in directory.rglob("*"):
            if not path.is_file():
                continue
            if not path.name.startswith(prefix):
                continue
            if not any(path.name.endswith(suffix) for suffix in suffixes):
                continue

            resolved = path.resolve()
            if any(resolved == e or e in resolved.parents for e in excluded):
                continue

            found.add(str(resolved))

        logger.debug(f"Discovered {len(found)} files in {directory}")
        return sorted(found)
