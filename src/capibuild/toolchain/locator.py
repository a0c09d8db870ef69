"""Toolchain Locator.

This module locates the external build tool (Bazel or Bazelisk), the native
C/C++ compiler and a known-good bash interpreter for the build tool.

Search Order:
    1. Executable search path: primary tool name, then fallback tool name
    2. Well-known per-platform install locations (see platform_utils)

A missing build tool is fatal. A missing compiler is only a warning, since
Bazel can auto-detect the compiler from its own environment.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from ..errors import ToolchainMissingError
from .platform_utils import PlatformDetector, PlatformProfile

PRIMARY_BUILD_TOOL = "bazel"
FALLBACK_BUILD_TOOL = "bazelisk"

VISUAL_STUDIO_YEARS = ("2022", "2019", "18", "17")
VISUAL_STUDIO_EDITIONS = ("Enterprise", "Professional", "Community", "BuildTools", "Preview")

INSTALL_HINT = {
    "windows": "winget install Bazel.Bazelisk  (or: choco install bazelisk)",
    "darwin": "brew install bazelisk",
    "linux": "npm install -g @bazel/bazelisk  (or download from https://github.com/bazelbuild/bazelisk/releases)",
}


@dataclass
class ToolchainPaths:
    """Resolved locations of the tools the build needs."""

    build_tool: Path
    compiler: Optional[Path] = None
    compiler_root: Optional[Path] = None
    shell: Optional[Path] = None

    def describe(self) -> List[str]:
        """Return printable lines for diagnostics."""
        return [
            f"Build tool:    {self.build_tool}",
            f"Compiler:      {self.compiler or 'not found (build tool will auto-detect)'}",
            f"Compiler root: {self.compiler_root or '-'}",
            f"Shell:         {self.shell or 'not found'}",
        ]


class ToolchainLocator:
    """Finds the build tool, compiler and shell for the host platform."""

    def __init__(
        self,
        profile: Optional[PlatformProfile] = None,
        search_path: Optional[str] = None,
    ):
        """Initialize the locator.

        Args:
            profile: Platform table to use (defaults to the host)
            search_path: Executable search path (defaults to $PATH)
        """
        self.profile = profile or PlatformDetector.get_profile()
        self.search_path = search_path

    def _which(self, name: str) -> Optional[Path]:
        found = shutil.which(name, path=self.search_path)
        return Path(found) if found else None

    @staticmethod
    def _first_existing(candidates: Iterable[Path]) -> Optional[Path]:
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        return None

    def find_build_tool(self) -> Optional[Path]:
        """Find the build tool executable.

        Returns:
            Path to bazel/bazelisk, or None if not found
        """
        for name in (PRIMARY_BUILD_TOOL, FALLBACK_BUILD_TOOL):
            found = self._which(name)
            if found:
                return found
        return self._first_existing(self.profile.build_tool_locations)

    def find_compiler(self) -> tuple[Optional[Path], Optional[Path]]:
        """Find the C/C++ compiler and its installation root.

        Returns:
            Tuple of (compiler executable, installation root); either may be None
        """
        if self.profile.is_windows:
            return self._find_msvc()

        for name in ("clang", "gcc", "cc"):
            compiler = self._which(name)
            if compiler:
                return compiler, compiler.parent.parent
        return None, None

    def _visual_studio_roots(self) -> List[Path]:
        roots = []
        for env_name in ("ProgramFiles", "ProgramFiles(x86)"):
            base = os.environ.get(env_name)
            if base:
                roots.append(Path(base) / "Microsoft Visual Studio")
        roots.extend([
            Path("C:/Program Files/Microsoft Visual Studio"),
            Path("C:/Program Files (x86)/Microsoft Visual Studio"),
        ])
        # dict.fromkeys keeps the first occurrence order
        return list(dict.fromkeys(roots))

    def _find_msvc(self) -> tuple[Optional[Path], Optional[Path]]:
        cl = self._which("cl")
        for root in self._visual_studio_roots():
            for year in VISUAL_STUDIO_YEARS:
                for edition in VISUAL_STUDIO_EDITIONS:
                    vc_dir = root / year / edition / "VC"
                    if not (vc_dir / "Tools" / "MSVC").is_dir():
                        continue
                    if cl is None:
                        compilers = sorted(vc_dir.glob("Tools/MSVC/*/bin/Hostx64/x64/cl.exe"))
                        cl = compilers[-1] if compilers else None
                    return cl, vc_dir
        return cl, None

    def find_shell(self) -> Optional[Path]:
        """Find a known-good bash for the build tool's shell variable."""
        found = self._first_existing(self.profile.shell_locations)
        if found or self.profile.is_windows:
            # PATH bash on Windows is usually the WSL launcher
            return found
        return self._which("bash")

    def locate(self) -> ToolchainPaths:
        """Locate all tools.

        Returns:
            ToolchainPaths with the resolved locations

        Raises:
            ToolchainMissingError: If no build tool is found
        """
        build_tool = self.find_build_tool()
        if build_tool is None:
            raise ToolchainMissingError(
                f"Could not find '{PRIMARY_BUILD_TOOL}' or '{FALLBACK_BUILD_TOOL}' "
                "on PATH or in any well-known install location",
                hint=f"Install Bazelisk: {INSTALL_HINT.get(self.profile.system, INSTALL_HINT['linux'])}",
            )

        compiler, compiler_root = self.find_compiler()
        if compiler is None and compiler_root is None:
            logging.warning("No C/C++ compiler found; relying on the build tool's own detection")

        shell = self.find_shell()
        if shell is None:
            logging.warning("No known-good bash found; the build tool will pick its own shell")

        return ToolchainPaths(
            build_tool=build_tool,
            compiler=compiler,
            compiler_root=compiler_root,
            shell=shell,
        )
