"""Unit tests for CLI formatting helpers."""

import pytest

from capibuild.cli_utils import BannerFormatter, ErrorFormatter, PathValidator
from capibuild.errors import NotFoundError


class TestErrorFormatter:
    """Test cases for ErrorFormatter."""

    def test_print_error_with_hint(self, capsys):
        """Test the hint is printed below the message."""
        ErrorFormatter.print_error("Source tree not found", "missing", hint="clone it")
        out = capsys.readouterr().out
        assert "✗ Source tree not found" in out
        assert out.index("missing") < out.index("Hint: clone it")

    def test_warning_distinct_from_error(self, capsys):
        """Test warnings do not use the error mark."""
        ErrorFormatter.print_warning("Build succeeded but the shared library was not found")
        out = capsys.readouterr().out
        assert "\u26a0 Build succeeded" in out
        assert "\u2717" not in out

    def test_capibuild_error_exits_1(self, capsys):
        """Test pipeline errors exit with code 1."""
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_capibuild_error("Error", NotFoundError("gone", hint="look"))
        assert exc_info.value.code == 1
        assert "Hint: look" in capsys.readouterr().out

    def test_keyboard_interrupt_exits_130(self):
        """Test Ctrl+C exits with the SIGINT code."""
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_keyboard_interrupt()
        assert exc_info.value.code == 130

    def test_unexpected_error_verbose_traceback(self, capsys):
        """Test verbose mode prints a traceback."""
        try:
            raise RuntimeError("kaput")
        except RuntimeError as e:
            with pytest.raises(SystemExit):
                ErrorFormatter.handle_unexpected_error(e, verbose=True)
        out = capsys.readouterr().out
        assert "RuntimeError: kaput" in out
        assert "Traceback" in out


class TestBannerFormatter:
    """Test cases for BannerFormatter."""

    def test_format_banner(self):
        """Test multi-line banners are framed and indented."""
        banner = BannerFormatter.format_banner("a\nb", width=5)
        assert banner.splitlines() == ["=====", "  a", "  b", "====="]


class TestPathValidator:
    """Test cases for PathValidator."""

    def test_none_accepted(self):
        """Test an omitted option passes."""
        PathValidator.validate_directory(None, "Output path")

    def test_missing_path_exits_2(self, tmp_path):
        """Test a nonexistent path is a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_directory(tmp_path / "nope", "Output path")
        assert exc_info.value.code == 2

    def test_file_exits_2(self, tmp_path):
        """Test a file where a directory is expected is a usage error."""
        path = tmp_path / "file.txt"
        path.write_text("x")
        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_directory(path, "Output path")
        assert exc_info.value.code == 2
