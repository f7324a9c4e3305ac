"""External compiler invocation.

ProcessCompiler runs the sass compiler on one (source, output) pair:

    <compiler> <absolute source path> <absolute output path>

The process runs with its working directory set to the compiler's own
directory, since some compilers resolve helper files relative to their
install location. A zero exit code is success; anything else is a
CompilationFailure carrying the captured stderr.
"""

import logging
import subprocess
import sys
import threading
import time
from pathlib import Path
from typing import Optional

import psutil

from .errors import CompilationFailure, FileSystemError, ProcessLaunchError
from .output import SyncOutput

logger = logging.getLogger(__name__)

# Seconds to wait for a killed process tree to exit
KILL_WAIT_TIMEOUT = 5.0


def get_subprocess_creation_flags() -> int:
    """CREATE_NO_WINDOW on Windows so no console flashes per compiled file, else 0."""
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


def kill_process_tree(pid: int) -> int:
    """Kill a process and all of its descendants, children first.

    Args:
        pid: Root process id

    Returns:
        Number of processes killed
    """
    try:
        root = psutil.Process(pid)
        processes = root.children(recursive=True)
    except psutil.NoSuchProcess:
        logger.debug(f"Process {pid} already exited")
        return 0

    processes.reverse()
    processes.append(root)

    killed: list[psutil.Process] = []
    for proc in processes:
        try:
            proc.kill()
            killed.append(proc)
        except psutil.NoSuchProcess:
            pass

    _, alive = psutil.wait_procs(killed, timeout=KILL_WAIT_TIMEOUT)
    for proc in alive:
        logger.warning(f"Process {proc.pid} still alive after kill")

    logger.debug(f"Killed {len(killed)} processes rooted at {pid}")
    return len(killed)


class ProcessCompiler:
    """Compiles single style sheets with an external compiler process."""

    def __init__(self, compiler_executable: Path, output: SyncOutput, timeout: Optional[float] = None):
        """Initialize the compiler.

        Args:
            compiler_executable: Path to the compiler binary
            output: Sink for progress and diagnostics
            timeout: Seconds to wait for one compilation (None waits forever)
        """
        self.compiler_executable = Path(compiler_executable).absolute()
        self.output = output
        self.timeout = timeout
        self._active: dict[int, subprocess.Popen] = {}
        self._lock = threading.Lock()
        self._cancelled = False

    @property
    def working_dir(self) -> Path:
        """Directory the compiler runs in."""
        return self.compiler_executable.parent

    def prepare(self, output_path: Path) -> None:
        """Create the output file and its parent directories if missing.

        Raises:
            FileSystemError: If the directory or file cannot be created
        """
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.touch(exist_ok=True)
        except OSError as e:
            raise FileSystemError(f"Could not prepare {output_path}: {e}", output_path) from e

    def build_command(self, source_path: Path, output_path: Path) -> list[str]:
        """Command line for compiling source_path into output_path."""
        return [str(self.compiler_executable), str(source_path), str(output_path)]

    def cancel(self) -> None:
        """Kill every running compilation and refuse to start new ones.

        Called from the main thread when parallel compilation is interrupted;
        the worker threads then raise ProcessLaunchError.
        """
        with self._lock:
            self._cancelled = True
            pids = list(self._active)
        for pid in pids:
            kill_process_tree(pid)

    def compile(self, source_path: Path, output_path: Path) -> None:
        """Compile one source file.

        Args:
            source_path: Style sheet to compile
            output_path: CSS file to write

        Raises:
            FileSystemError: If the output location cannot be prepared
            ProcessLaunchError: If the compiler cannot be started or times out
            CompilationFailure: If the compiler exits with a non-zero code
        """
        source_path = source_path.absolute()
        output_path = output_path.absolute()
        if self._cancelled:
            raise ProcessLaunchError(f"Compiling {source_path} was cancelled", source_path, output_path)
        self.prepare(output_path)

        cmd = self.build_command(source_path, output_path)
        logger.debug(f"Running {' '.join(cmd)} in {self.working_dir}")

        kwargs = {}
        creation_flags = get_subprocess_creation_flags()
        if creation_flags:
            kwargs["creationflags"] = creation_flags

        start_time = time.time()
        try:
            process = subprocess.Popen(
                cmd,
                cwd=self.working_dir,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                **kwargs,
            )
        except OSError as e:
            raise ProcessLaunchError(
                f"Could not start {self.compiler_executable} for {source_path}: {e}",
                source_path,
                output_path,
            ) from e

        with self._lock:
            self._active[process.pid] = process
            if self._cancelled:
                kill_process_tree(process.pid)
        try:
            stdout, stderr = process.communicate(timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            kill_process_tree(process.pid)
            process.communicate()
            raise ProcessLaunchError(
                f"Compiling {source_path} timed out after {self.timeout}s",
                source_path,
                output_path,
            ) from e
        except KeyboardInterrupt:
            kill_process_tree(process.pid)
            process.wait()
            raise
        finally:
            with self._lock:
                self._active.pop(process.pid, None)

        if self._cancelled:
            raise ProcessLaunchError(f"Compiling {source_path} was cancelled", source_path, output_path)

        logger.debug(f"Compiler exited with {process.returncode} in {time.time() - start_time:.2f}s")

        for line in stdout.splitlines():
            if line.strip():
                self.output.log_detail(line, verbose_only=True)

        if process.returncode != 0:
            for line in stderr.splitlines():
                if line.strip():
                    self.output.log_error(line)
            raise CompilationFailure(source_path, output_path, process.returncode, stderr)

        # Deprecation notices and @warn output arrive on stderr with exit code 0
        for line in stderr.splitlines():
            if line.strip():
                self.output.log_warning(line)

        self.output.log(f"Compiled: {output_path}")
