"""Build settings resolution.

Precedence for every option: command line > environment variable >
capibuild.ini > built-in default.

Environment Variables:
    CAPIBUILD_SOURCE_ROOT   Source checkout (same as --source)
    CAPIBUILD_OUTPUT_DIR    Publish root (same as --output)
    CAPIBUILD_OUTPUT_ROOT   Short cache root passed to --output_user_root
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from ..toolchain.platform_utils import PlatformProfile
from .ini_parser import CapiBuildConfig

ENV_SOURCE_ROOT = "CAPIBUILD_SOURCE_ROOT"
ENV_OUTPUT_DIR = "CAPIBUILD_OUTPUT_DIR"
ENV_OUTPUT_ROOT = "CAPIBUILD_OUTPUT_ROOT"

DEFAULT_OUTPUT_DIRNAME = "prebuilt"


@dataclass
class BuildSettings:
    """Resolved options for one run."""

    project_dir: Path
    source_root: Optional[Path]
    output_dir: Path
    output_root: Path
    clean: bool = False
    verbose: bool = False


def default_output_root(profile: PlatformProfile) -> Path:
    """Short cache root for the build tool.

    Bazel's intermediate paths under a user profile easily exceed the
    260-character Windows limit, so Windows uses a drive-root directory.
    """
    if profile.is_windows:
        return Path("C:/_capibuild")
    return Path.home() / ".cache" / "capibuild"


def _env_path(env: Mapping[str, str], name: str) -> Optional[Path]:
    value = env.get(name)
    return Path(value).expanduser() if value else None


def resolve_settings(
    profile: PlatformProfile,
    project_dir: Optional[Path] = None,
    source_root: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    clean: Optional[bool] = None,
    verbose: Optional[bool] = None,
    env: Optional[Mapping[str, str]] = None,
) -> BuildSettings:
    """Merge command line values with environment, config file and defaults.

    Args:
        profile: Platform table (for the default cache root)
        project_dir: Directory capibuild runs from (defaults to cwd)
        source_root: --source value
        output_dir: --output value
        clean: --clean value (None when not given)
        verbose: --verbose value (None when not given)
        env: Environment mapping (defaults to os.environ)

    Returns:
        Resolved BuildSettings
    """
    env = os.environ if env is None else env
    project_dir = Path(project_dir or Path.cwd()).resolve()
    ini = CapiBuildConfig.find(project_dir)

    def pick_path(cli_value: Optional[Path], env_name: str, key: str) -> Optional[Path]:
        if cli_value is not None:
            return Path(cli_value)
        from_env = _env_path(env, env_name)
        if from_env is not None:
            return from_env
        return ini.get_path(key) if ini else None

    def pick_bool(cli_value: Optional[bool], key: str) -> bool:
        if cli_value:
            return True
        from_ini = ini.get_bool(key) if ini else None
        return bool(from_ini)

    return BuildSettings(
        project_dir=project_dir,
        source_root=pick_path(source_root, ENV_SOURCE_ROOT, "source_root"),
        output_dir=pick_path(output_dir, ENV_OUTPUT_DIR, "output_dir")
        or project_dir / DEFAULT_OUTPUT_DIRNAME,
        output_root=pick_path(None, ENV_OUTPUT_ROOT, "output_root") or default_output_root(profile),
        clean=pick_bool(clean, "clean"),
        verbose=pick_bool(verbose, "verbose"),
    )
