"""Toolchain discovery for capibuild."""

from .locator import ToolchainLocator, ToolchainPaths
from .platform_utils import PlatformDetector, PlatformError, PlatformProfile

__all__ = [
    "ToolchainLocator",
    "ToolchainPaths",
    "PlatformDetector",
    "PlatformError",
    "PlatformProfile",
]
