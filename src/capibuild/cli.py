"""
Command-line interface for capibuild.

This module provides the `capibuild` CLI tool for building the LiteRT-LM C
API shared library from a source checkout.
"""

import argparse
import sys
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from capibuild import __version__
from capibuild.build import BuildOrchestrator
from capibuild.cli_utils import (
    BannerFormatter,
    ErrorFormatter,
    PathValidator,
    configure_logging,
)
from capibuild.config import resolve_settings
from capibuild.errors import (
    ArtifactNotFoundWarning,
    BuildFailedError,
    CapiBuildError,
    NotFoundError,
    PatchApplyError,
    PatchBackupError,
    RestoreError,
    SymbolManifestError,
    ToolchainMissingError,
)
from capibuild.patch import SYMBOL_MANIFEST, generate_stub, missing_symbols, recover
from capibuild.patch.edits import insert_header_declaration
from capibuild.source import SourceTree, SourceTreeResolver
from capibuild.toolchain import PlatformDetector, PlatformError, ToolchainLocator

ERROR_TITLES = [
    (NotFoundError, "Source tree not found"),
    (ToolchainMissingError, "Build tool not found"),
    (PatchBackupError, "Could not back up source tree"),
    (PatchApplyError, "Could not patch source tree"),
    (SymbolManifestError, "Symbol manifest out of date"),
    (BuildFailedError, "Build failed!"),
    (RestoreError, "Source tree restore incomplete"),
    (CapiBuildError, "Error"),
]


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    project_dir: Path
    source: Optional[Path] = None
    output: Optional[Path] = None
    clean: bool = False
    verbose: bool = False


@dataclass
class RestoreArgs:
    """Arguments for the restore command."""

    project_dir: Path
    source: Optional[Path] = None
    verbose: bool = False


@dataclass
class SymbolsArgs:
    """Arguments for the symbols command."""

    project_dir: Path
    stub: bool = False
    check: bool = False
    source: Optional[Path] = None
    verbose: bool = False


def _error_title(error: CapiBuildError) -> str:
    for error_type, title in ERROR_TITLES:
        if isinstance(error, error_type):
            return title
    return "Error"


def build_command(args: BuildArgs) -> None:
    """Build the shared library and publish it.

    Examples:
        capibuild build                          # Auto-detect the checkout
        capibuild build --source ../LiteRT-LM    # Explicit checkout
        capibuild build --output dist            # Publish to dist/<platform>/
        capibuild build --clean                  # Wipe the Bazel cache first
    """
    print(f"capibuild v{__version__}")
    print()
    configure_logging(args.verbose)

    try:
        profile = PlatformDetector.get_profile()
        settings = resolve_settings(
            profile,
            project_dir=args.project_dir,
            source_root=args.source,
            output_dir=args.output,
            clean=args.clean,
            verbose=args.verbose,
        )
        orchestrator = BuildOrchestrator(settings, profile=profile)

        with warnings.catch_warnings():
            # The collector logs the expected path itself
            warnings.simplefilter("ignore", ArtifactNotFoundWarning)
            result = orchestrator.build()

        primary = result.primary_artifact
        if primary is None:
            ErrorFormatter.print_warning("Build succeeded but the shared library was not found")
        else:
            ErrorFormatter.print_success("Build successful!")

        summary = [f"Build time: {result.build_time:.2f}s"]
        if primary is not None:
            summary.append(f"Library: {primary.dest_path} ({primary.size_bytes:,} bytes)")
        siblings = [a for a in result.artifacts if a is not primary]
        summary.append(f"Runtime libraries: {len(siblings)}")
        BannerFormatter.print_banner("\n".join(summary))
        sys.exit(0)

    except PlatformError as e:
        ErrorFormatter.print_error("Unsupported platform", str(e))
        sys.exit(1)
    except CapiBuildError as e:
        ErrorFormatter.handle_capibuild_error(_error_title(e), e)
    except PermissionError as e:
        ErrorFormatter.handle_permission_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def locate_command(project_dir: Path, source: Optional[Path], verbose: bool = False) -> None:
    """Report the resolved toolchain and source tree locations.

    Examples:
        capibuild locate
        capibuild locate --source ../LiteRT-LM
    """
    configure_logging(verbose)
    exit_code = 0

    try:
        profile = PlatformDetector.get_profile()
        info = PlatformDetector.get_platform_info()
        print(f"Platform:      {info['identifier']} ({info['platform']})")
        print(f"Library name:  {profile.library_name}")

        try:
            for line in ToolchainLocator(profile).locate().describe():
                print(line)
        except ToolchainMissingError as e:
            ErrorFormatter.print_error(_error_title(e), str(e), e.hint)
            exit_code = 1

        settings = resolve_settings(profile, project_dir=project_dir, source_root=source)
        try:
            root = SourceTreeResolver(settings.project_dir).resolve(settings.source_root)
            print(f"Source tree:   {root}")
        except NotFoundError as e:
            ErrorFormatter.print_error(_error_title(e), str(e), e.hint)
            exit_code = 1

        print(f"Output dir:    {settings.output_dir / profile.identifier}")
        print(f"Cache root:    {settings.output_root}")
        sys.exit(exit_code)

    except PlatformError as e:
        ErrorFormatter.print_error("Unsupported platform", str(e))
        sys.exit(1)
    except CapiBuildError as e:
        ErrorFormatter.handle_capibuild_error(_error_title(e), e)
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, verbose)


def restore_command(args: RestoreArgs) -> None:
    """Restore a checkout left patched by an interrupted build.

    Examples:
        capibuild restore
        capibuild restore --source ../LiteRT-LM
    """
    configure_logging(args.verbose)

    try:
        settings = resolve_settings(
            PlatformDetector.get_profile(), project_dir=args.project_dir, source_root=args.source
        )
        root = SourceTreeResolver(settings.project_dir).resolve(settings.source_root)
        changed = recover(SourceTree(root))

        if not changed:
            ErrorFormatter.print_success(f"Nothing to restore in {root}")
        else:
            for path in changed:
                print(f"  restored {path}")
            ErrorFormatter.print_success(f"Restored {len(changed)} file(s) in {root}")
        sys.exit(0)

    except CapiBuildError as e:
        ErrorFormatter.handle_capibuild_error(_error_title(e), e)
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def symbols_command(args: SymbolsArgs) -> None:
    """Print the symbol retention manifest or the generated stub.

    Examples:
        capibuild symbols            # List exported symbols
        capibuild symbols --stub     # Print the retention stub source
        capibuild symbols --check    # Compare against the checkout's header
    """
    configure_logging(args.verbose)

    try:
        if args.stub:
            print(generate_stub(SYMBOL_MANIFEST), end="")
            sys.exit(0)

        if not args.check:
            for name in SYMBOL_MANIFEST:
                print(name)
            sys.exit(0)

        settings = resolve_settings(
            PlatformDetector.get_profile(), project_dir=args.project_dir, source_root=args.source
        )
        root = SourceTreeResolver(settings.project_dir).resolve(settings.source_root)
        tree = SourceTree(root)
        header_text, _ = insert_header_declaration(
            tree.header.read_text(encoding="utf-8"), str(tree.header)
        )
        missing = missing_symbols(header_text, SYMBOL_MANIFEST)
        if missing:
            raise SymbolManifestError(missing, str(tree.header))
        ErrorFormatter.print_success(
            f"All {len(SYMBOL_MANIFEST)} symbols are declared in {tree.header}"
        )
        sys.exit(0)

    except CapiBuildError as e:
        ErrorFormatter.handle_capibuild_error(_error_title(e), e)
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def main() -> None:
    """capibuild - LiteRT-LM C API shared library builder."""
    parser = argparse.ArgumentParser(
        prog="capibuild",
        description="Build the LiteRT-LM C API shared library from a source checkout",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"capibuild {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "-s",
            "--source",
            type=Path,
            default=None,
            help="LiteRT-LM checkout (default: auto-detect next to the current directory)",
        )
        sub.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            help="Show verbose output",
        )

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        help="Patch the checkout, build the shared library and publish it",
    )
    add_common(build_parser)
    build_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Publish directory (default: ./prebuilt)",
    )
    build_parser.add_argument(
        "-c",
        "--clean",
        action="store_true",
        help="Wipe the build tool cache before building",
    )

    # Locate command
    locate_parser = subparsers.add_parser(
        "locate",
        help="Show the resolved toolchain and source tree",
    )
    add_common(locate_parser)

    # Restore command
    restore_parser = subparsers.add_parser(
        "restore",
        help="Restore a checkout left patched by an interrupted build",
    )
    add_common(restore_parser)

    # Symbols command
    symbols_parser = subparsers.add_parser(
        "symbols",
        help="Print the symbol retention manifest",
    )
    add_common(symbols_parser)
    symbols_parser.add_argument(
        "--stub",
        action="store_true",
        help="Print the generated retention stub instead",
    )
    symbols_parser.add_argument(
        "--check",
        action="store_true",
        help="Check every symbol is declared in the checkout's header",
    )

    # Parse arguments
    parsed_args = parser.parse_args()

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    project_dir = Path.cwd()

    # Execute command
    if parsed_args.command == "build":
        if parsed_args.output is not None and parsed_args.output.exists():
            PathValidator.validate_directory(parsed_args.output, "Output path")
        build_command(
            BuildArgs(
                project_dir=project_dir,
                source=parsed_args.source,
                output=parsed_args.output,
                clean=parsed_args.clean,
                verbose=parsed_args.verbose,
            )
        )
    elif parsed_args.command == "locate":
        locate_command(project_dir, parsed_args.source, parsed_args.verbose)
    elif parsed_args.command == "restore":
        restore_command(
            RestoreArgs(
                project_dir=project_dir,
                source=parsed_args.source,
                verbose=parsed_args.verbose,
            )
        )
    elif parsed_args.command == "symbols":
        symbols_command(
            SymbolsArgs(
                project_dir=project_dir,
                stub=parsed_args.stub,
                check=parsed_args.check,
                source=parsed_args.source,
                verbose=parsed_args.verbose,
            )
        )


if __name__ == "__main__":
    main()
