"""Artifact Collector.

This module publishes the built shared library and the prebuilt accelerator
libraries it needs at runtime.

Publish Layout:
    {output_dir}/
    └── {platform}/
        ├── litert_lm_capi.dll | liblitert_lm_capi.so | liblitert_lm_capi.dylib
        └── *.dll | *.so | *.dylib     # copied from <root>/prebuilt/{platform}/

A missing primary library is a warning, not an error: the run's outcome is
decided by the build tool's exit code.
"""

import logging
import shutil
import warnings
from pathlib import Path
from typing import List, Optional

from ..context import Artifact
from ..errors import ArtifactNotFoundWarning
from ..source.resolver import SourceTree
from ..toolchain.platform_utils import PlatformProfile, library_candidates


class ArtifactCollector:
    """Copies build outputs into the publish directory."""

    def __init__(self, profile: PlatformProfile, show_progress: bool = True):
        """Initialize artifact collector.

        Args:
            profile: Platform table (library names, extensions, publish dir)
            show_progress: Whether to print each copied file
        """
        self.profile = profile
        self.show_progress = show_progress

    def publish_dir(self, output_dir: Path) -> Path:
        return Path(output_dir) / self.profile.identifier

    def find_primary(self, tree: SourceTree) -> Optional[Path]:
        """Find the built library under the primary or an alternate name."""
        for name in library_candidates(self.profile):
            candidate = tree.bazel_output_dir / name
            if candidate.is_file():
                return candidate
        return None

    def find_siblings(self, tree: SourceTree) -> List[Path]:
        """Prebuilt runtime libraries for this platform, sorted by name."""
        prebuilt = tree.prebuilt_dir(self.profile.identifier)
        if not prebuilt.is_dir():
            return []
        return sorted(
            path
            for path in prebuilt.iterdir()
            if path.is_file() and path.suffix.lower() in self.profile.library_extensions
        )

    def _copy(self, source: Path, dest: Path) -> Artifact:
        shutil.copy2(source, dest)
        size = dest.stat().st_size
        if self.show_progress:
            print(f"  {dest.name}: {size:,} bytes ({size / 1024 / 1024:.2f} MB)")
        return Artifact(source_path=source, dest_path=dest, size_bytes=size)

    def collect(self, source_root: Path, output_dir: Path) -> List[Artifact]:
        """Publish the built library and sibling runtime libraries.

        Args:
            source_root: Root of the source checkout
            output_dir: Publish root; files land in output_dir/<platform>/

        Returns:
            Published artifacts, primary library first (if found)
        """
        tree = SourceTree(Path(source_root))
        dest_dir = self.publish_dir(output_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)
        artifacts: List[Artifact] = []

        primary = self.find_primary(tree)
        if primary is None:
            expected = tree.bazel_output_dir / self.profile.library_name
            message = f"Built library not found. Expected: {expected}"
            logging.warning(message)
            warnings.warn(message, ArtifactNotFoundWarning, stacklevel=2)
        else:
            artifacts.append(self._copy(primary, dest_dir / self.profile.library_name))

        for sibling in self.find_siblings(tree):
            artifacts.append(self._copy(sibling, dest_dir / sibling.name))

        return artifacts
