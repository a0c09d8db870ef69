"""Configuration modules for capibuild."""

from .ini_parser import CapiBuildConfig, CapiBuildConfigError
from .settings import BuildSettings, default_output_root, resolve_settings

__all__ = [
    "CapiBuildConfig",
    "CapiBuildConfigError",
    "BuildSettings",
    "default_output_root",
    "resolve_settings",
]
