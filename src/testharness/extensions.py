"""Loading of extension scripts from the configured extensions directory."""

import logging
import runpy
from pathlib import Path

logger = logging.getLogger(__name__)


def load_extensions(directory: Path | str) -> list[str]:
    """Execute every .py file in a directory, in name order.

    Returns:
        Paths of the loaded extension scripts
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning(f"Extensions directory not found: {directory}")
        return []

    loaded = []
    for path in sorted(directory.glob("*.py")):
        runpy.run_path(str(path), run_name=f"testharness_extension_{path.stem}")
        loaded.append(str(path))
        logger.debug(f"Loaded extension {path}")

    return loaded
