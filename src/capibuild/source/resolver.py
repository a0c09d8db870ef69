"""Source Tree Resolver.

This module locates the external LiteRT-LM checkout, either from an explicit
path or by probing a fixed list of candidate directories. A directory is
accepted only if it contains the C API header (the marker file).

Source Tree Layout:
    <root>/
    ├── c/
    │   ├── BUILD              # Bazel manifest (patched)
    │   ├── engine.h           # C API header, marker file (patched)
    │   ├── engine.cc          # C API implementation (patched)
    │   └── capi_dllmain.cc    # Symbol retention stub (created, then removed)
    ├── prebuilt/
    │   └── {platform}/        # Prebuilt accelerator libraries
    └── bazel-bin/c/           # Build output
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..errors import NotFoundError

API_DIR = "c"
HEADER_NAME = "engine.h"
IMPL_NAME = "engine.cc"
MANIFEST_NAME = "BUILD"
STUB_NAME = "capi_dllmain.cc"
PREBUILT_DIR = "prebuilt"
BAZEL_BIN_DIR = "bazel-bin"

SIBLING_CANDIDATES = ("LiteRT-LM", "litert-lm", "LiteRT-LM-main")


@dataclass(frozen=True)
class SourceTree:
    """Paths inside a resolved source checkout."""

    root: Path

    @property
    def api_dir(self) -> Path:
        return self.root / API_DIR

    @property
    def header(self) -> Path:
        return self.api_dir / HEADER_NAME

    @property
    def impl(self) -> Path:
        return self.api_dir / IMPL_NAME

    @property
    def manifest(self) -> Path:
        return self.api_dir / MANIFEST_NAME

    @property
    def stub(self) -> Path:
        return self.api_dir / STUB_NAME

    @property
    def bazel_output_dir(self) -> Path:
        return self.root / BAZEL_BIN_DIR / API_DIR

    def prebuilt_dir(self, platform_id: str) -> Path:
        return self.root / PREBUILT_DIR / platform_id

    def patched_files(self) -> List[Path]:
        """Files the patch step mutates, in patch order."""
        return [self.manifest, self.header, self.impl]


def marker_path(root: Path) -> Path:
    """Path of the marker file for a candidate root."""
    return root / API_DIR / HEADER_NAME


def is_source_root(root: Path) -> bool:
    """Check whether a directory contains the marker file."""
    return marker_path(root).is_file()


class SourceTreeResolver:
    """Resolves the source checkout location."""

    def __init__(self, project_dir: Optional[Path] = None, home_dir: Optional[Path] = None):
        """Initialize the resolver.

        Args:
            project_dir: Directory capibuild runs from (defaults to cwd)
            home_dir: User home directory (defaults to Path.home())
        """
        self.project_dir = Path(project_dir or Path.cwd()).resolve()
        self.home_dir = Path(home_dir or Path.home())

    def candidates(self) -> List[Path]:
        """Ordered list of directories probed when no explicit path is given."""
        siblings = [self.project_dir.parent / name for name in SIBLING_CANDIDATES]
        nested = [self.project_dir / SIBLING_CANDIDATES[0]]
        home = [self.home_dir / SIBLING_CANDIDATES[0]]
        return siblings + nested + home

    def resolve(self, explicit_path: Optional[Path] = None) -> Path:
        """Resolve the source root.

        Args:
            explicit_path: Optional explicit source root

        Returns:
            Resolved source root

        Raises:
            NotFoundError: If the marker file is not found
        """
        if explicit_path is not None:
            root = Path(explicit_path).expanduser().resolve()
            if not is_source_root(root):
                raise NotFoundError(
                    f"Not a LiteRT-LM checkout: {root}",
                    hint=f"Expected marker file: {marker_path(root)}",
                )
            return root

        probed = self.candidates()
        for candidate in probed:
            if is_source_root(candidate):
                return candidate.resolve()

        raise NotFoundError(
            "Could not find a LiteRT-LM checkout in any candidate location",
            hint="Pass --source PATH or clone LiteRT-LM to one of:\n  "
            + "\n  ".join(str(p) for p in probed),
        )
