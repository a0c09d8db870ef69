"""Platform Detection Utilities.

This module detects the host platform and maps it to the per-platform tables
the rest of the build needs: library naming, publish directory names and
well-known tool install locations.

Supported Platforms:
    - Windows: windows_x86_64
    - Linux: linux_x86_64, linux_arm64
    - macOS: macos_arm64, macos_x86_64
"""

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple


class PlatformError(Exception):
    """Raised when platform detection fails or platform is unsupported."""

    pass


LIBRARY_BASENAME = "litert_lm_capi"


@dataclass(frozen=True)
class PlatformProfile:
    """Per-platform naming and install location table."""

    identifier: str
    system: str
    library_name: str
    alternate_library_names: Tuple[str, ...]
    library_extensions: Tuple[str, ...]
    executable_suffix: str = ""
    compiler_env_var: str = "CC"
    build_tool_locations: Tuple[Path, ...] = field(default_factory=tuple)
    shell_locations: Tuple[Path, ...] = field(default_factory=tuple)

    @property
    def is_windows(self) -> bool:
        return self.system == "windows"


def _windows_profile(identifier: str) -> PlatformProfile:
    program_files = Path(os.environ.get("ProgramFiles", "C:/Program Files"))
    local_app_data = Path(os.environ.get("LOCALAPPDATA", str(Path.home() / "AppData" / "Local")))
    return PlatformProfile(
        identifier=identifier,
        system="windows",
        library_name=f"{LIBRARY_BASENAME}.dll",
        alternate_library_names=(f"lib{LIBRARY_BASENAME}.dll",),
        library_extensions=(".dll",),
        executable_suffix=".exe",
        compiler_env_var="BAZEL_VC",
        build_tool_locations=(
            Path("C:/tools/bazel.exe"),
            Path("C:/tools/bazelisk.exe"),
            Path("C:/ProgramData/chocolatey/bin/bazel.exe"),
            Path("C:/ProgramData/chocolatey/bin/bazelisk.exe"),
            local_app_data / "Microsoft" / "WinGet" / "Links" / "bazelisk.exe",
            Path.home() / "scoop" / "shims" / "bazel.exe",
            Path.home() / "go" / "bin" / "bazelisk.exe",
        ),
        # Git for Windows bash; System32\bash.exe is the WSL launcher
        shell_locations=(
            program_files / "Git" / "usr" / "bin" / "bash.exe",
            program_files / "Git" / "bin" / "bash.exe",
            Path("C:/msys64/usr/bin/bash.exe"),
        ),
    )


def _posix_profile(identifier: str, system: str) -> PlatformProfile:
    if system == "darwin":
        library_name = f"lib{LIBRARY_BASENAME}.dylib"
        alternates = (f"{LIBRARY_BASENAME}.dylib", f"lib{LIBRARY_BASENAME}.so")
        extensions = (".dylib",)
    else:
        library_name = f"lib{LIBRARY_BASENAME}.so"
        alternates = (f"{LIBRARY_BASENAME}.so",)
        extensions = (".so",)

    return PlatformProfile(
        identifier=identifier,
        system=system,
        library_name=library_name,
        alternate_library_names=alternates,
        library_extensions=extensions,
        build_tool_locations=(
            Path("/usr/local/bin/bazel"),
            Path("/usr/local/bin/bazelisk"),
            Path("/opt/homebrew/bin/bazel"),
            Path("/opt/homebrew/bin/bazelisk"),
            Path("/usr/bin/bazel"),
            Path.home() / "bin" / "bazel",
            Path.home() / ".local" / "bin" / "bazel",
            Path.home() / "go" / "bin" / "bazelisk",
        ),
        shell_locations=(Path("/bin/bash"), Path("/usr/bin/bash"), Path("/usr/local/bin/bash")),
    )


class PlatformDetector:
    """Detects the current platform and architecture."""

    @staticmethod
    def detect_platform(system: Optional[str] = None, machine: Optional[str] = None) -> str:
        """Detect the publish directory identifier for the host.

        Args:
            system: Override for platform.system() (testing)
            machine: Override for platform.machine() (testing)

        Returns:
            Platform identifier (windows_x86_64, linux_x86_64, linux_arm64,
            macos_arm64, macos_x86_64)

        Raises:
            PlatformError: If platform is unsupported
        """
        system = (system or platform.system()).lower()
        machine = (machine or platform.machine()).lower()
        is_arm = "aarch64" in machine or "arm64" in machine

        if system == "windows":
            if is_arm:
                raise PlatformError(f"Unsupported platform: {system} {machine}")
            return "windows_x86_64"
        elif system == "linux":
            return "linux_arm64" if is_arm else "linux_x86_64"
        elif system == "darwin":
            return "macos_arm64" if is_arm else "macos_x86_64"
        else:
            raise PlatformError(f"Unsupported platform: {system} {machine}")

    @staticmethod
    def get_profile(system: Optional[str] = None, machine: Optional[str] = None) -> PlatformProfile:
        """Get the naming and install location table for a platform.

        Returns:
            PlatformProfile for the host (or the overridden system/machine)
        """
        identifier = PlatformDetector.detect_platform(system, machine)
        normalized = (system or platform.system()).lower()
        if normalized == "windows":
            return _windows_profile(identifier)
        return _posix_profile(identifier, normalized)

    @staticmethod
    def get_platform_info() -> dict:
        """Get detailed information about the current platform."""
        profile = PlatformDetector.get_profile()
        return {
            "system": platform.system(),
            "machine": platform.machine(),
            "platform": platform.platform(),
            "python_version": platform.python_version(),
            "identifier": profile.identifier,
            "library_name": profile.library_name,
        }


def library_candidates(profile: PlatformProfile) -> List[str]:
    """Primary library name followed by the alternate naming conventions."""
    return [profile.library_name, *profile.alternate_library_names]
