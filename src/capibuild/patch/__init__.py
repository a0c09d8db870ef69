"""Source tree patching for capibuild.

This module provides the reversible patch workflow including:
- Backups of every file before it is touched
- Header/implementation edits for the cache directory setter
- Symbol retention stub generation
- Bazel manifest target injection
"""

from .edits import INJECTED_MARKER, InjectedTarget
from .manager import PatchManager, PatchState, backup_path, recover
from .stub_generator import generate as generate_stub
from .symbols import SYMBOL_MANIFEST, missing_symbols

__all__ = [
    "INJECTED_MARKER",
    "InjectedTarget",
    "PatchManager",
    "PatchState",
    "backup_path",
    "recover",
    "generate_stub",
    "SYMBOL_MANIFEST",
    "missing_symbols",
]
