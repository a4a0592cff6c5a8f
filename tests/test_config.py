"""Tests for the configuration models."""

import json
import os
import tempfile
from pathlib import Path

import pytest

from testharness.config import (
    CliConfiguration,
    CoverageConfig,
    FileConfiguration,
    TestDirectoryConfig,
    TestSuiteConfig,
    create_example_config,
    get_default_config,
)


class TestTestSuiteConfig:
    """Tests for TestSuiteConfig."""

    def test_default_values(self):
        """Test default values are set correctly."""
        config = TestSuiteConfig(name="unit")
        assert config.directories == []
        assert config.files == []
        assert config.exclude == []

    def test_directory_defaults(self):
        """Test that test directories default to the Test.py suffix."""
        directory = TestDirectoryConfig(path="tests")
        assert directory.suffix == "Test.py"
        assert directory.prefix == ""

    def test_name_validation(self):
        """Test that the suite name cannot be blank."""
        with pytest.raises(ValueError):
            TestSuiteConfig(name="   ")


class TestCoverageConfig:
    """Tests for CoverageConfig."""

    def test_default_values(self):
        """Test default values are set correctly."""
        config = CoverageConfig()
        assert config.cache_directory is None
        assert config.path_coverage is False
        assert not config.has_non_empty_include_list()

    def test_include_list(self):
        """Test detecting a non-empty include list."""
        config = CoverageConfig.model_validate({"include": {"files": ["src/app.py"]}})
        assert config.has_non_empty_include_list()

    def test_source_directory_suffix(self):
        """Test that coverage directories default to Python sources."""
        config = CoverageConfig.model_validate({"include": {"directories": [{"path": "src"}]}})
        assert config.include.directories[0].suffix == ".py"


class TestFileConfiguration:
    """Tests for FileConfiguration."""

    def test_default_values(self):
        """Test default values are set correctly."""
        config = FileConfiguration()
        assert config.cache_result is True
        assert config.columns == 80
        assert config.stderr is False
        assert config.test_suites == []
        assert config.logging.junit is None
        assert not config.was_loaded_from_file()
        assert config.base_dir == Path.cwd()

    def test_columns_validation(self):
        """Test that columns must be positive or 'max'."""
        assert FileConfiguration(columns="max").columns == "max"
        with pytest.raises(ValueError):
            FileConfiguration(columns=0)
        with pytest.raises(ValueError):
            FileConfiguration(columns="wide")

    def test_from_file(self):
        """Test loading configuration from a file."""
        config_data = {
            "bootstrap": "bootstrap.py",
            "columns": 120,
            "test_suites": [{"name": "unit", "directories": [{"path": "tests/unit"}]}],
            "groups": {"exclude": ["slow"]},
        }

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "testharness.json"
            path.write_text(json.dumps(config_data))

            config = FileConfiguration.from_file(path)
            assert config.bootstrap == "bootstrap.py"
            assert config.columns == 120
            assert config.test_suites[0].directories[0].path == "tests/unit"
            assert config.groups.exclude == ["slow"]
            assert config.was_loaded_from_file()
            assert config.filename == path.resolve()
            assert config.base_dir == path.resolve().parent

    def test_from_file_not_found(self):
        """Test loading from non-existent file raises error."""
        with pytest.raises(FileNotFoundError):
            FileConfiguration.from_file("/nonexistent/testharness.json")

    def test_to_file(self):
        """Test saving configuration to a file."""
        config = get_default_config()
        config.default_test_suite = "default"

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "nested" / "config.json"
            config.to_file(path)

            assert path.exists()

            loaded = FileConfiguration.from_file(path)
            assert loaded.default_test_suite == "default"
            assert loaded.test_suites[0].name == "default"

    def test_find_and_load(self):
        """Test finding a configuration file in a parent directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir)
            (base / "testharness.json").write_text(json.dumps({"columns": 100}))
            nested = base / "a" / "b"
            nested.mkdir(parents=True)

            config = FileConfiguration.find_and_load(nested)
            assert config.columns == 100
            assert config.base_dir == base.resolve()

    def test_find_and_load_defaults(self):
        """Test that defaults are returned when no file exists."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config = FileConfiguration.find_and_load(tmpdir)
            if not config.was_loaded_from_file():
                assert config.columns == 80

    def test_absolute(self):
        """Test resolving paths against the configuration file's directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "testharness.json"
            path.write_text("{}")

            config = FileConfiguration.from_file(path)
            assert config.absolute("tests") == os.path.join(str(path.resolve().parent), "tests")

    def test_create_example_config(self):
        """Test creating an example configuration file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "example.json"
            result = create_example_config(path)

            assert result == path
            assert path.exists()

            with open(path) as f:
                data = json.load(f)
                assert data["test_suites"][0]["name"] == "default"
                assert data["logging"]["junit"] == "reports/junit.xml"
                assert data["coverage"]["include"]["directories"][0]["path"] == "src"


class TestCliConfiguration:
    """Tests for CliConfiguration."""

    def test_everything_unset(self):
        """Test that all command-line values default to None."""
        config = CliConfiguration()
        assert all(value is None for value in config.model_dump().values())

    def test_columns(self):
        """Test that columns accept numbers and 'max'."""
        assert CliConfiguration(columns=40).columns == 40
        assert CliConfiguration(columns="max").columns == "max"
