"""CLI utility functions for capibuild.

This module provides common utilities used across CLI commands including:
- Error handling and formatting
- Banner formatting
- Path validation
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from capibuild.errors import CapiBuildError


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str, hint: Optional[str] = None) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Source tree not found", "Build failed")
            message: Error message details
            hint: Optional remediation printed below the message
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        if hint:
            print()
            print(f"Hint: {hint}")
        print()

    @staticmethod
    def print_success(message: str) -> None:
        """Print formatted success message."""
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        """Print formatted warning message."""
        print()
        print(f"{ErrorFormatter.YELLOW}⚠ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def handle_capibuild_error(title: str, error: CapiBuildError) -> None:
        """Print a capibuild error with its hint and exit with code 1.

        Args:
            title: Error title
            error: The error to report
        """
        ErrorFormatter.print_error(title, str(error), error.hint)
        sys.exit(1)

    @staticmethod
    def handle_permission_error(error: PermissionError) -> None:
        """Handle PermissionError with standard formatting."""
        ErrorFormatter.print_error("Error: Permission denied", str(error))
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Build interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


class BannerFormatter:
    """Formats framed banners for build summaries."""

    @staticmethod
    def format_banner(message: str, width: int = 60, border_char: str = "=") -> str:
        """Format a message inside top and bottom borders.

        Args:
            message: Text to frame (may be multi-line)
            width: Border width
            border_char: Character used for the borders

        Returns:
            Banner text without a trailing newline
        """
        border = border_char * width
        lines = [f"  {line}" for line in message.split("\n")]
        return "\n".join([border, *lines, border])

    @staticmethod
    def print_banner(message: str, width: int = 60, border_char: str = "=") -> None:
        """Print a framed banner preceded by a blank line."""
        print()
        print(BannerFormatter.format_banner(message, width, border_char))


class PathValidator:
    """Validates paths given on the command line."""

    @staticmethod
    def validate_directory(path: Optional[Path], label: str) -> None:
        """Validate that an optional path exists and is a directory.

        Args:
            path: Path to validate (None is accepted)
            label: Name of the option for the message

        Raises:
            SystemExit: If path doesn't exist or isn't a directory
        """
        if path is None:
            return
        if not path.exists():
            print(
                f"{ErrorFormatter.RED}✗ Error: {label} does not exist: {path}{ErrorFormatter.RESET}"
            )
            sys.exit(2)
        if not path.is_dir():
            print(
                f"{ErrorFormatter.RED}✗ Error: {label} is not a directory: {path}{ErrorFormatter.RESET}"
            )
            sys.exit(2)


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging for CLI runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        force=True,
    )
