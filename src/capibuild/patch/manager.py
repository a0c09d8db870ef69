"""Patch Manager.

This module applies the temporary edits the build needs to the external
checkout and guarantees the checkout is restored afterwards.

State machine:
    CLEAN -> BACKED_UP -> PATCHED -> RESTORED

Usage:
    with PatchManager(context, library_name) as patcher:
        patcher.apply()
        driver.build(...)
    # every patched file is byte-identical to its original here,
    # whether the block above returned or raised

Backups are sidecar files (<file>.capibuild.bak) created before any file is
touched. Each one is written under a temporary name, verified and then
renamed, so a sidecar that exists is always a complete copy. A sidecar found
at startup belongs to an interrupted earlier run. If its target still carries
the edits, the sidecar holds the pristine content and is restored first and
reused. If the target carries no edits, the target is pristine already and
the sidecar is discarded.
"""

import filecmp
import logging
import os
import shutil
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

from ..context import BuildContext, PatchRecord
from ..errors import PatchBackupError, RestoreError
from ..source.resolver import SourceTree
from . import edits, stub_generator
from .symbols import SET_CACHE_DIR_SYMBOL, SYMBOL_MANIFEST

BACKUP_SUFFIX = ".capibuild.bak"
PARTIAL_SUFFIX = ".tmp"


class PatchState(Enum):
    CLEAN = "clean"
    BACKED_UP = "backed_up"
    PATCHED = "patched"
    RESTORED = "restored"


def backup_path(path: Path) -> Path:
    """Sidecar backup location for a file."""
    return path.with_name(path.name + BACKUP_SUFFIX)


def partial_backup_path(path: Path) -> Path:
    """Temporary name a backup is written to before it is renamed into place."""
    return path.with_name(path.name + BACKUP_SUFFIX + PARTIAL_SUFFIX)


def carries_edits(path: Path) -> bool:
    """Check whether a file contains text only the patch step adds."""
    text = path.read_bytes().decode("utf-8", errors="replace")
    return edits.INJECTED_MARKER in text or SET_CACHE_DIR_SYMBOL in text


def write_backup(path: Path) -> Path:
    """Copy a file to its sidecar atomically.

    Raises:
        OSError: If the copy fails or does not match the original
    """
    backup = backup_path(path)
    partial = partial_backup_path(path)
    try:
        shutil.copy2(path, partial)
        if not filecmp.cmp(path, partial, shallow=False):
            raise OSError(f"backup of {path} does not match the original")
        os.replace(partial, backup)
    finally:
        partial.unlink(missing_ok=True)
    return backup


def _discard_stale_sidecars(path: Path) -> bool:
    """Drop sidecars of a killed run that cannot hold the pristine content.

    Returns:
        True if a usable sidecar remains
    """
    partial = partial_backup_path(path)
    if partial.exists():
        logging.warning(f"Removing incomplete backup {partial.name} from an interrupted run")
        partial.unlink()

    backup = backup_path(path)
    if not backup.exists():
        return False
    if not path.exists():
        return True
    if not filecmp.cmp(path, backup, shallow=False) and not carries_edits(path):
        logging.warning(
            f"Discarding backup {backup.name} from an interrupted run, {path.name} is not patched"
        )
        backup.unlink()
        return False
    return True


def _read_text(path: Path) -> tuple[str, str]:
    """Read a file as LF text, returning (text, original newline)."""
    raw = path.read_bytes().decode("utf-8")
    newline = "\r\n" if "\r\n" in raw else "\n"
    return raw.replace("\r\n", "\n"), newline


def _write_text(path: Path, text: str, newline: str = "\n") -> None:
    path.write_bytes(text.replace("\n", newline).encode("utf-8"))


class PatchManager:
    """Backs up, patches and restores the source checkout."""

    def __init__(
        self,
        context: BuildContext,
        library_name: str,
        symbols: Iterable[str] = SYMBOL_MANIFEST,
        show_progress: bool = True,
    ):
        """Initialize the patch manager.

        Args:
            context: Session state; backups are recorded on it
            library_name: Name of the shared library target to inject
            symbols: Symbols the retention stub references
            show_progress: Whether to print each patch step
        """
        self.context = context
        self.tree: SourceTree = context.tree
        self.library_name = library_name
        self.symbols = list(symbols)
        self.show_progress = show_progress
        self.state = PatchState.CLEAN

    def __enter__(self) -> "PatchManager":
        self.backup()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            self.restore()
        except RestoreError as e:
            if exc_type is None:
                raise
            # The original failure propagates; the restore failure was logged
            logging.error(f"Restore failed while handling {exc_type.__name__}: {e}")
        return False

    def _log(self, message: str) -> None:
        if self.show_progress:
            print(message)

    def _record_for(self, path: Path) -> Optional[PatchRecord]:
        for record in self.context.backups:
            if record.target_file == path:
                return record
        return None

    def backup(self) -> None:
        """Create and verify a backup of every file the patch step touches.

        Raises:
            PatchBackupError: If any backup cannot be created; backups made so
                far are discarded and no file is modified
        """
        if self.state is not PatchState.CLEAN:
            raise RuntimeError(f"Cannot back up from state {self.state.value}")

        for path in self.tree.patched_files():
            backup = backup_path(path)
            try:
                if _discard_stale_sidecars(path):
                    logging.warning(f"Found backup from an interrupted run, restoring {path.name} first")
                    shutil.copy2(backup, path)
                else:
                    write_backup(path)
                verified = filecmp.cmp(path, backup, shallow=False)
            except OSError as e:
                self._discard_backups()
                raise PatchBackupError(
                    f"Could not back up {path}: {e}",
                    hint="Check that the source tree is writable.",
                ) from e

            if not verified:
                self._discard_backups()
                raise PatchBackupError(f"Backup of {path} does not match the original")

            self.context.backups.append(PatchRecord(target_file=path, backup_file=backup))

        self.state = PatchState.BACKED_UP

    def _discard_backups(self) -> None:
        # Only verified backups are recorded, so the targets are still pristine
        for record in self.context.backups:
            try:
                record.backup_file.unlink()
            except OSError as e:
                logging.warning(f"Could not remove backup {record.backup_file}: {e}")
        self.context.backups.clear()

    def _mark_applied(self, path: Path) -> None:
        record = self._record_for(path)
        if record is None:
            raise RuntimeError(f"Refusing to modify {path} without a backup")
        record.applied = True

    def apply(self) -> None:
        """Apply every patch once; already-applied patches are skipped.

        Raises:
            PatchApplyError: If an insertion point is missing
        """
        if self.state is not PatchState.BACKED_UP:
            raise RuntimeError(f"Cannot patch from state {self.state.value}")

        # Any partial edit from here on is undone by restore()
        self.state = PatchState.PATCHED

        manifest = self.tree.manifest
        text, newline = _read_text(manifest)
        stripped, was_stripped = edits.strip_injected_block(text)
        if was_stripped:
            self._mark_applied(manifest)
            _write_text(manifest, stripped, newline)
            self._log(f"  Removed leftover injected targets from {manifest.name}")

        for path, transform in (
            (self.tree.header, edits.insert_header_declaration),
            (self.tree.impl, edits.insert_impl_definition),
        ):
            text, newline = _read_text(path)
            patched, changed = transform(text, str(path))
            if changed:
                self._mark_applied(path)
                _write_text(path, patched, newline)
                self._log(f"  Patched {path.name}")
            else:
                self._log(f"  {path.name} already patched, skipping")

        self.tree.stub.write_text(stub_generator.generate(self.symbols), encoding="utf-8")
        self._log(f"  Wrote {self.tree.stub.name} ({len(self.symbols)} symbols)")

        text, newline = _read_text(manifest)
        block = edits.render_manifest_block(
            edits.injected_targets(self.library_name, self.tree.stub.name)
        )
        self._mark_applied(manifest)
        _write_text(manifest, edits.append_manifest_block(text, block), newline)
        self._log(f"  Injected target //{self.tree.api_dir.name}:{self.library_name}")

    def restore(self) -> None:
        """Restore every backed-up file and delete the stub.

        Every file is attempted even if an earlier one fails.

        Raises:
            RestoreError: If one or more files could not be restored
        """
        if self.state in (PatchState.CLEAN, PatchState.RESTORED):
            return

        failures = _restore_records(self.context.backups)
        self.context.backups = [r for r in self.context.backups if r.backup_file.exists()]

        try:
            self.tree.stub.unlink(missing_ok=True)
        except OSError as e:
            logging.error(f"Could not remove {self.tree.stub}: {e}")
            failures.append(f"{self.tree.stub}: {e}")

        self.state = PatchState.RESTORED
        if failures:
            raise RestoreError(failures)
        self._log("  Source tree restored")


def _restore_records(records: List[PatchRecord]) -> List[str]:
    failures = []
    for record in reversed(records):
        try:
            shutil.copy2(record.backup_file, record.target_file)
            if not filecmp.cmp(record.backup_file, record.target_file, shallow=False):
                raise OSError("restored content does not match backup")
            record.backup_file.unlink()
            record.applied = False
        except OSError as e:
            logging.error(f"Could not restore {record.target_file}: {e}")
            failures.append(f"{record.target_file}: {e}")
    return failures


def recover(tree: SourceTree) -> List[Path]:
    """Restore a checkout left patched by an interrupted run.

    Restores every usable sidecar backup, strips an injected manifest block
    that has no backup, and removes the stub. Incomplete backups and sidecars
    of files that carry no edits are discarded.

    Returns:
        Files that were changed

    Raises:
        RestoreError: If one or more files could not be restored
    """
    records = []
    failures = []
    for path in tree.patched_files():
        try:
            if _discard_stale_sidecars(path):
                records.append(PatchRecord(target_file=path, backup_file=backup_path(path)))
        except OSError as e:
            logging.error(f"Could not inspect backups of {path}: {e}")
            failures.append(f"{path}: {e}")
    failures.extend(_restore_records(records))
    changed = [r.target_file for r in records if not r.backup_file.exists()]

    try:
        if tree.manifest.is_file() and not backup_path(tree.manifest).exists():
            text, newline = _read_text(tree.manifest)
            stripped, was_stripped = edits.strip_injected_block(text)
            if was_stripped:
                _write_text(tree.manifest, stripped + "\n", newline)
                changed.append(tree.manifest)
        if tree.stub.exists():
            tree.stub.unlink()
            changed.append(tree.stub)
    except OSError as e:
        logging.error(f"Could not clean up {tree.api_dir}: {e}")
        failures.append(f"{tree.api_dir}: {e}")

    if failures:
        raise RestoreError(failures)
    return changed
