"""Shared fixtures for the TestHarness test suite."""

import textwrap
from pathlib import Path

import pytest

from testharness.events import EventDispatcher


@pytest.fixture
def dispatcher():
    """Create a fresh event dispatcher."""
    return EventDispatcher()


@pytest.fixture
def write_file(tmp_path):
    """Write a dedented file below tmp_path and return its path."""

    def _write(relative: str, content: str = "") -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content))
        return path

    return _write


@pytest.fixture
def recorder(dispatcher):
    """Record every emitted event in order."""
    from testharness import events

    recorded = []
    for name in dir(events):
        value = getattr(events, name)
        if isinstance(value, type) and issubclass(value, events.Event) and value is not events.Event:
            dispatcher.register_subscriber(value, recorded.append)
    return recorded
