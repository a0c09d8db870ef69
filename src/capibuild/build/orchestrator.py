"""
Build orchestration for capibuild.

This module coordinates the whole run, from locating the toolchain to
publishing the shared library:
1. Locate the build tool, compiler and shell
2. Resolve the LiteRT-LM checkout
3. Back up and patch the checkout
4. Run the build tool
5. Restore the checkout (always, on every exit path)
6. Publish the library and its runtime dependencies

Example usage:
    orchestrator = BuildOrchestrator(settings)
    result = orchestrator.build()
    for artifact in result.artifacts:
        print(artifact.dest_path)
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from ..config import BuildSettings
from ..context import Artifact, BuildContext, BuildResult
from ..errors import SymbolManifestError
from ..patch import SYMBOL_MANIFEST, PatchManager, missing_symbols
from ..source.resolver import API_DIR, SourceTreeResolver
from ..toolchain.locator import ToolchainLocator, ToolchainPaths
from ..toolchain.platform_utils import PlatformDetector, PlatformProfile
from .artifact_collector import ArtifactCollector
from .driver import BuildDriver


@dataclass
class PipelineResult:
    """Result of a complete build run."""

    source_root: Path
    library_name: str
    toolchain_paths: ToolchainPaths
    build_result: BuildResult
    artifacts: List[Artifact] = field(default_factory=list)
    build_time: float = 0.0

    @property
    def primary_artifact(self) -> Optional[Artifact]:
        for artifact in self.artifacts:
            if artifact.dest_path.name == self.library_name:
                return artifact
        return None


class BuildOrchestrator:
    """
    Orchestrates the patch / build / restore / publish pipeline.

    Any exception raised after the backup step still restores the checkout
    before it propagates.
    """

    def __init__(
        self,
        settings: BuildSettings,
        profile: Optional[PlatformProfile] = None,
        locator: Optional[ToolchainLocator] = None,
        resolver: Optional[SourceTreeResolver] = None,
        symbols: Optional[List[str]] = None,
        on_line: Optional[Callable[[str], None]] = None,
    ):
        """
        Initialize build orchestrator.

        Args:
            settings: Resolved run options
            profile: Platform table (defaults to the host)
            locator: Toolchain locator (defaults to one for the profile)
            resolver: Source tree resolver (defaults to one for the project dir)
            symbols: Retention manifest (defaults to SYMBOL_MANIFEST)
            on_line: Receives every line of build tool output
        """
        self.settings = settings
        self.profile = profile or PlatformDetector.get_profile()
        self.locator = locator or ToolchainLocator(self.profile)
        self.resolver = resolver or SourceTreeResolver(settings.project_dir)
        self.symbols = list(symbols) if symbols is not None else list(SYMBOL_MANIFEST)
        self.on_line = on_line

    @property
    def target_label(self) -> str:
        return f"//{API_DIR}:{self.profile.library_name}"

    def _verify_symbols(self, context: BuildContext) -> None:
        header = context.tree.header
        missing = missing_symbols(header.read_text(encoding="utf-8"), self.symbols)
        if missing:
            raise SymbolManifestError(missing, str(header))

    def build(self) -> PipelineResult:
        """
        Execute the complete pipeline.

        Returns:
            PipelineResult with the published artifacts

        Raises:
            NotFoundError: If the checkout is not found (nothing modified)
            ToolchainMissingError: If the build tool is not found
            PatchBackupError: If a backup cannot be made (nothing modified)
            PatchApplyError: If a patch insertion point is missing
            SymbolManifestError: If the header lacks a manifest symbol
            BuildFailedError: If the build tool fails
            RestoreError: If the checkout could not be fully restored
        """
        start_time = time.time()

        print("[1/5] Locating toolchain...")
        toolchain_paths = self.locator.locate()
        for line in toolchain_paths.describe():
            print(f"      {line}")

        print("[2/5] Resolving source tree...")
        source_root = self.resolver.resolve(self.settings.source_root)
        print(f"      Source: {source_root}")

        context = BuildContext(
            source_root=source_root,
            output_dir=self.settings.output_dir,
            toolchain_paths=toolchain_paths,
            clean_requested=self.settings.clean,
        )

        driver = BuildDriver(
            self.profile,
            workspace=source_root,
            output_root=self.settings.output_root,
            on_line=self.on_line,
        )

        print("[3/5] Patching source tree...")
        with PatchManager(context, self.profile.library_name, self.symbols) as patcher:
            patcher.apply()
            self._verify_symbols(context)

            print(f"[4/5] Building {self.target_label}...")
            if context.clean_requested:
                print(f"      Wiping build cache in {self.settings.output_root}")
            build_result = driver.build(toolchain_paths, self.target_label, context.clean_requested)

        print(f"[5/5] Publishing to {context.output_dir}...")
        collector = ArtifactCollector(self.profile)
        artifacts = collector.collect(context.source_root, context.output_dir)

        return PipelineResult(
            source_root=source_root,
            library_name=self.profile.library_name,
            toolchain_paths=toolchain_paths,
            build_result=build_result,
            artifacts=artifacts,
            build_time=time.time() - start_time,
        )
