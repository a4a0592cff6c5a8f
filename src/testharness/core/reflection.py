"""Best-effort lookup of source locations for test classes and methods."""

import inspect
from typing import Optional


def source_location(
    test_class: Optional[type], method_name: Optional[str] = None
) -> Optional[tuple[str, Optional[int]]]:
    """Find where a test class or test method is defined.

    Returns:
        (file, line) for a method, (file, None) for a class, or None when the
        location cannot be determined.
    """
    if test_class is None:
        return None

    target = test_class
    if method_name is not None:
        target = getattr(test_class, method_name, None)
        if target is None:
            return None
        target = inspect.unwrap(target)

    try:
        filename = inspect.getsourcefile(target)
        if filename is None:
            return None
        if method_name is None:
            return filename, None
        _, line = inspect.getsourcelines(target)
    except (OSError, TypeError):
        return None

    return filename, line
