"""
Build system components for capibuild.

This module provides the build pipeline implementation including:
- Build tool invocation (Bazel)
- Artifact publishing
- Pipeline orchestration
"""

from .artifact_collector import ArtifactCollector
from .driver import BuildDriver, build_environment
from .orchestrator import BuildOrchestrator, PipelineResult

__all__ = [
    "ArtifactCollector",
    "BuildDriver",
    "build_environment",
    "BuildOrchestrator",
    "PipelineResult",
]
