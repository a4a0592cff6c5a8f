"""
TestHarness - test discovery, filtering and JUnit XML reporting.

This package provides tools to:
- Resolve a run configuration from command-line options and a JSON file
- Discover test files and build nested test suites
- Filter tests by group and by name
- Run tests while emitting a structured event stream
- Render the event stream into a JUnit XML report
"""

__version__ = "0.1.0"
__author__ = "TestHarness Team"
