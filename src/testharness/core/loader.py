"""Loading test classes from Python files."""

import hashlib
import importlib.util
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Optional

from testharness.core.testcase import TestCase

logger = logging.getLogger(__name__)


def import_module_from_path(path: Path | str) -> ModuleType:
    """Import a Python file as a module, reusing an earlier import of the same file."""
    path = Path(path).resolve()

    name = path.stem
    existing = sys.modules.get(name)
    if existing is not None and getattr(existing, "__file__", None) != str(path):
        # Name taken by another module, fall back to a name unique to this path
        digest = hashlib.sha1(str(path).encode()).hexdigest()[:10]
        name = f"_testharness_{digest}_{path.stem}"
        existing = sys.modules.get(name)

    if existing is not None:
        return existing

    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot import {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        del sys.modules[name]
        raise

    logger.debug(f"Imported test module {name} from {path}")
    return module


def find_test_classes(module: ModuleType) -> list[type]:
    """Get the TestCase subclasses defined in a module, in definition order."""
    classes = []
    for value in vars(module).values():
        if not isinstance(value, type) or value is TestCase:
            continue
        if not issubclass(value, TestCase) or value.__module__ != module.__name__:
            continue
        if value.collect_method_names():
            classes.append(value)
    return classes


@dataclass(frozen=True)
class LoadResult:
    """Outcome of loading a test class: either a class or a fatal diagnostic."""

    test_class: Optional[type] = None
    diagnostic: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.test_class is not None

    @classmethod
    def success(cls, test_class: type) -> "LoadResult":
        return cls(test_class=test_class)

    @classmethod
    def fatal(cls, diagnostic: str) -> "LoadResult":
        return cls(diagnostic=diagnostic)


class TestSuiteLoader:
    """Loads the test class defined in a Python file."""

    def load(self, path: Path | str) -> LoadResult:
        """Load a test class from a file.

        The class named after the file is preferred; otherwise the last test
        class defined in the file is used.
        """
        path = Path(path)

        try:
            module = import_module_from_path(path)
        except (Exception, SystemExit) as e:
            logger.debug(f"Import of {path} failed: {e}")
            return LoadResult.fatal(f"Cannot load test file {path}: {type(e).__name__}: {e}")

        classes = find_test_classes(module)
        for test_class in classes:
            if test_class.__name__ == path.stem:
                return LoadResult.success(test_class)

        if classes:
            return LoadResult.success(classes[-1])

        return LoadResult.fatal(f"Class {path.stem} could not be found in {path}")
