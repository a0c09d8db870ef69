"""
capibuild.ini configuration parser.

This module reads optional project defaults from a capibuild.ini file in the
directory capibuild runs from.

Example capibuild.ini:
    [capibuild]
    source_root = ../LiteRT-LM
    output_dir = prebuilt
    output_root = C:/_capibuild
    clean = false

Relative paths are resolved against the directory containing the file.
"""

import configparser
from pathlib import Path
from typing import Dict, Optional

from ..errors import CapiBuildError

CONFIG_FILENAME = "capibuild.ini"
SECTION = "capibuild"
KNOWN_KEYS = {"source_root", "output_dir", "output_root", "clean", "verbose"}


class CapiBuildConfigError(CapiBuildError):
    """Exception raised for capibuild.ini configuration errors."""

    pass


class CapiBuildConfig:
    """
    Parser for capibuild.ini files.

    Usage:
        config = CapiBuildConfig(Path("capibuild.ini"))
        source_root = config.get_path("source_root")
        clean = config.get_bool("clean")
    """

    def __init__(self, ini_path: Path):
        """
        Initialize the parser with a capibuild.ini file.

        Args:
            ini_path: Path to the capibuild.ini file

        Raises:
            CapiBuildConfigError: If the file doesn't exist, cannot be parsed
                or contains unknown keys
        """
        self.ini_path = ini_path

        if not ini_path.exists():
            raise CapiBuildConfigError(f"Configuration file not found: {ini_path}")

        self.config = configparser.ConfigParser(interpolation=None)

        try:
            self.config.read(ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise CapiBuildConfigError(f"Failed to parse {ini_path}: {e}") from e

        unknown = set(self.values()) - KNOWN_KEYS
        if unknown:
            raise CapiBuildConfigError(
                f"Unknown keys in [{SECTION}] of {ini_path}: {', '.join(sorted(unknown))}"
            )

    @classmethod
    def find(cls, project_dir: Path) -> Optional["CapiBuildConfig"]:
        """Load capibuild.ini from a project directory if present."""
        ini_path = Path(project_dir) / CONFIG_FILENAME
        if not ini_path.is_file():
            return None
        return cls(ini_path)

    def values(self) -> Dict[str, str]:
        """All key-value pairs of the [capibuild] section."""
        if SECTION not in self.config:
            return {}
        return {key: value.strip() for key, value in self.config[SECTION].items()}

    def get_path(self, key: str) -> Optional[Path]:
        """Get a path value resolved against the file's directory."""
        value = self.values().get(key)
        if not value:
            return None
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = self.ini_path.parent / path
        return path

    def get_bool(self, key: str) -> Optional[bool]:
        """Get a boolean value, or None when unset."""
        if SECTION not in self.config or key not in self.config[SECTION]:
            return None
        try:
            return self.config[SECTION].getboolean(key)
        except ValueError as e:
            raise CapiBuildConfigError(f"Invalid boolean for '{key}' in {self.ini_path}: {e}") from e
