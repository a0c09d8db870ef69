"""Error types for capibuild.

Every fatal condition in the pipeline is raised as a subclass of
CapiBuildError. Errors carry an optional ``hint`` with a remediation the CLI
prints below the message (install command, expected path).
"""

from typing import List, Optional


class CapiBuildError(Exception):
    """Base class for all capibuild errors."""

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.hint = hint


class NotFoundError(CapiBuildError):
    """Raised when the source tree or its marker file cannot be found."""

    pass


class ToolchainMissingError(CapiBuildError):
    """Raised when the build tool executable cannot be located."""

    pass


class PatchBackupError(CapiBuildError):
    """Raised when a backup cannot be created before mutating a file."""

    pass


class PatchApplyError(CapiBuildError):
    """Raised when a patch cannot find its insertion point."""

    pass


class SymbolManifestError(CapiBuildError):
    """Raised when the symbol manifest references names the header lacks."""

    def __init__(self, missing: List[str], header_path: str):
        super().__init__(
            f"{len(missing)} symbol(s) in the retention manifest are not declared "
            f"in {header_path}: {', '.join(missing)}",
            hint="Update capibuild.patch.symbols to match the C API header.",
        )
        self.missing = missing


class BuildFailedError(CapiBuildError):
    """Raised when the build tool exits with a non-zero status."""

    def __init__(self, exit_code: int, message: Optional[str] = None):
        super().__init__(
            message or f"Build tool exited with code {exit_code}",
            hint="See the build output above for the first error.",
        )
        self.exit_code = exit_code


class RestoreError(CapiBuildError):
    """Raised after restoration when one or more files could not be restored."""

    def __init__(self, failures: List[str]):
        super().__init__(
            "Failed to restore source tree files:\n  " + "\n  ".join(failures),
            hint="Run 'capibuild restore' to retry from the remaining backups.",
        )
        self.failures = failures


class ArtifactNotFoundWarning(UserWarning):
    """Emitted when a successful build produced no shared library at any known path."""

    pass
