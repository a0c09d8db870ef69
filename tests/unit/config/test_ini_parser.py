"""Unit tests for capibuild.ini parsing."""

import pytest

from capibuild.config.ini_parser import CapiBuildConfig, CapiBuildConfigError


def write_ini(directory, body):
    path = directory / "capibuild.ini"
    path.write_text(body, encoding="utf-8")
    return path


class TestCapiBuildConfig:
    """Test cases for CapiBuildConfig."""

    def test_missing_file(self, tmp_path):
        """Test loading a nonexistent file fails."""
        with pytest.raises(CapiBuildConfigError, match="not found"):
            CapiBuildConfig(tmp_path / "capibuild.ini")

    def test_find_absent(self, tmp_path):
        """Test find() returns None when there is no file."""
        assert CapiBuildConfig.find(tmp_path) is None

    def test_relative_paths_resolved_against_file(self, tmp_path):
        """Test relative paths are anchored at the file's directory."""
        write_ini(tmp_path, "[capibuild]\nsource_root = ../LiteRT-LM\noutput_dir = dist\n")
        config = CapiBuildConfig.find(tmp_path)

        assert config.get_path("source_root") == tmp_path / ".." / "LiteRT-LM"
        assert config.get_path("output_dir") == tmp_path / "dist"
        assert config.get_path("output_root") is None

    def test_absolute_path_kept(self, tmp_path):
        """Test absolute paths are used as given."""
        cache = tmp_path / "cache"
        write_ini(tmp_path, f"[capibuild]\noutput_root = {cache}\n")
        assert CapiBuildConfig.find(tmp_path).get_path("output_root") == cache

    def test_booleans(self, tmp_path):
        """Test boolean values and unset keys."""
        write_ini(tmp_path, "[capibuild]\nclean = yes\n")
        config = CapiBuildConfig.find(tmp_path)
        assert config.get_bool("clean") is True
        assert config.get_bool("verbose") is None

    def test_invalid_boolean(self, tmp_path):
        """Test a non-boolean value is reported."""
        write_ini(tmp_path, "[capibuild]\nclean = sometimes\n")
        with pytest.raises(CapiBuildConfigError, match="clean"):
            CapiBuildConfig.find(tmp_path).get_bool("clean")

    def test_unknown_key(self, tmp_path):
        """Test typos in keys are reported."""
        write_ini(tmp_path, "[capibuild]\nsource_rot = x\n")
        with pytest.raises(CapiBuildConfigError, match="source_rot"):
            CapiBuildConfig.find(tmp_path)

    def test_malformed_file(self, tmp_path):
        """Test a file without section headers fails to parse."""
        write_ini(tmp_path, "source_root = x\n")
        with pytest.raises(CapiBuildConfigError, match="Failed to parse"):
            CapiBuildConfig.find(tmp_path)

    def test_missing_section(self, tmp_path):
        """Test a file with another section yields no values."""
        write_ini(tmp_path, "[other]\nkey = value\n")
        assert CapiBuildConfig.find(tmp_path).values() == {}
