"""Session state for a single capibuild invocation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .source.resolver import SourceTree
from .toolchain.locator import ToolchainPaths


@dataclass
class PatchRecord:
    """A file backed up (and possibly mutated) by the patch manager."""

    target_file: Path
    backup_file: Path
    applied: bool = False


@dataclass
class Artifact:
    """A file published to the output directory."""

    source_path: Path
    dest_path: Path
    size_bytes: int


@dataclass
class BuildResult:
    """Outcome of a build tool invocation.

    stdout_lines holds only the tail of the streamed output.
    """

    exit_code: int
    stdout_lines: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.exit_code == 0


@dataclass
class BuildContext:
    """Mutable state owned by one run; backups are reconciled before it ends."""

    source_root: Path
    output_dir: Path
    toolchain_paths: Optional[ToolchainPaths] = None
    backups: List[PatchRecord] = field(default_factory=list)
    clean_requested: bool = False

    @property
    def tree(self) -> SourceTree:
        return SourceTree(self.source_root)
