"""Build Driver.

This module runs the external build tool (Bazel) against the patched
checkout and streams its output.

Design:
    - Wraps subprocess.Popen, stderr merged into stdout
    - Output is consumed line by line; only a bounded tail is kept
    - The child environment is built per call, os.environ is never mutated
    - A short fixed --output_user_root keeps intermediate paths under the
      Windows path length limit
    - If reading the output stops early for any reason (Ctrl+C, a failing
      output callback) the whole Bazel process tree is terminated and reaped
      before the exception propagates
"""

import logging
import os
import subprocess
from collections import deque
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional

import psutil

from ..context import BuildResult
from ..errors import BuildFailedError
from ..interrupt_utils import handle_keyboard_interrupt_properly
from ..toolchain.locator import ToolchainPaths
from ..toolchain.platform_utils import PlatformProfile

SHELL_ENV_VAR = "BAZEL_SH"
OUTPUT_TAIL_LINES = 200
TERMINATE_TIMEOUT = 5.0

LineCallback = Callable[[str], None]


def build_environment(
    profile: PlatformProfile,
    toolchain_paths: ToolchainPaths,
    base_env: Mapping[str, str],
) -> Dict[str, str]:
    """Build the child process environment.

    The shell variable always points at the located bash. The compiler
    variable is only filled in when the caller has not set it.

    Args:
        profile: Platform table (selects BAZEL_VC or CC)
        toolchain_paths: Located tools
        base_env: Environment to start from

    Returns:
        New environment dictionary
    """
    env = dict(base_env)
    if toolchain_paths.shell is not None:
        env[SHELL_ENV_VAR] = str(toolchain_paths.shell)

    compiler_var = profile.compiler_env_var
    if not env.get(compiler_var):
        if profile.is_windows:
            value = toolchain_paths.compiler_root
        else:
            value = toolchain_paths.compiler
        if value is not None:
            env[compiler_var] = str(value)
    return env


def terminate_process_tree(pid: int, timeout: float = 3.0) -> int:
    """Terminate a process and all of its children.

    Returns:
        Number of processes signalled
    """
    try:
        root = psutil.Process(pid)
        processes = root.children(recursive=True) + [root]
    except psutil.NoSuchProcess:
        return 0

    signalled = []
    for proc in processes:
        try:
            proc.terminate()
            signalled.append(proc)
        except psutil.NoSuchProcess:
            pass  # Already dead
        except psutil.AccessDenied as e:
            logging.warning(f"Failed to terminate process {proc.pid}: {e}")

    _gone, alive = psutil.wait_procs(signalled, timeout=timeout)
    for proc in alive:
        try:
            proc.kill()
            logging.warning(f"Force killed stubborn process {proc.pid}")
        except psutil.NoSuchProcess:
            pass
    return len(signalled)


class BuildDriver:
    """Invokes the build tool and maps its exit status."""

    def __init__(
        self,
        profile: PlatformProfile,
        workspace: Path,
        output_root: Path,
        on_line: Optional[LineCallback] = None,
        base_env: Optional[Mapping[str, str]] = None,
    ):
        """Initialize the build driver.

        Args:
            profile: Platform table
            workspace: Source root the build tool runs in
            output_root: Short path for the build tool's cache storage
            on_line: Called with every output line (defaults to print)
            base_env: Environment to derive the child environment from
                (defaults to os.environ)
        """
        self.profile = profile
        self.workspace = workspace
        self.output_root = output_root
        self.on_line = on_line or print
        self.base_env = base_env

    def _base_env(self) -> Mapping[str, str]:
        return os.environ if self.base_env is None else self.base_env

    def _startup_args(self, toolchain_paths: ToolchainPaths) -> List[str]:
        return [str(toolchain_paths.build_tool), f"--output_user_root={self.output_root}"]

    def _reap(self, process: subprocess.Popen) -> None:
        count = terminate_process_tree(process.pid, timeout=TERMINATE_TIMEOUT)
        logging.warning(f"Build aborted, terminated {count} build process(es)")
        try:
            process.wait(timeout=TERMINATE_TIMEOUT)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()

    def _run(self, cmd: List[str], env: Dict[str, str]) -> BuildResult:
        logging.debug(f"Running: {' '.join(cmd)}")
        tail: deque = deque(maxlen=OUTPUT_TAIL_LINES)

        process = subprocess.Popen(
            cmd,
            cwd=str(self.workspace),
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )
        try:
            assert process.stdout is not None
            for line in process.stdout:
                line = line.rstrip("\r\n")
                tail.append(line)
                self.on_line(line)
            exit_code = process.wait()
        except KeyboardInterrupt as ke:
            handle_keyboard_interrupt_properly(ke)
            raise  # Never reached, but satisfies type checker
        finally:
            if process.poll() is None:
                self._reap(process)
            if process.stdout is not None:
                process.stdout.close()

        return BuildResult(exit_code=exit_code, stdout_lines=list(tail))

    def clean(self, toolchain_paths: ToolchainPaths) -> BuildResult:
        """Wipe the build tool's cache (best effort).

        A non-zero exit only logs a warning.
        """
        env = build_environment(self.profile, toolchain_paths, self._base_env())
        cmd = self._startup_args(toolchain_paths) + ["clean", "--expunge"]
        result = self._run(cmd, env)
        if not result.success:
            logging.warning(f"Cache wipe exited with code {result.exit_code}, continuing")
        return result

    def build(
        self,
        toolchain_paths: ToolchainPaths,
        target: str,
        clean_requested: bool = False,
    ) -> BuildResult:
        """Build a target.

        Args:
            toolchain_paths: Located tools
            target: Bazel label to build (e.g. //c:liblitert_lm_capi.so)
            clean_requested: Run a full cache wipe first

        Returns:
            BuildResult of the build invocation

        Raises:
            BuildFailedError: If the build tool exits non-zero
        """
        if clean_requested:
            self.clean(toolchain_paths)

        env = build_environment(self.profile, toolchain_paths, self._base_env())
        cmd = self._startup_args(toolchain_paths) + ["build", "-c", "opt", target]
        result = self._run(cmd, env)
        if not result.success:
            raise BuildFailedError(result.exit_code)
        return result
