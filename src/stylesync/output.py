"""
Timestamped output sink for stylesync runs.

All output is prefixed with the time elapsed since the sink was created, in
MM:SS.cc format (minutes:seconds.centiseconds), so a slow compiler shows up
directly in the run log.

Example output:
    00:00.01 Scanning styles...
    00:00.43 Compiled: /site/css/main.css
    00:00.44 Already up-to-date: /site/css/print.css
    00:00.45 Deleted: /site/css/old.css

Usage:
    from stylesync.output import SyncOutput

    output = SyncOutput()
    output.log("Compiled: main.css")
    output.log_error("Undefined variable: $brand")

The sink is an object rather than module state so that each run (and each
test) owns its stream. Writes are serialized so parallel compilations can
share one sink.
"""

import sys
import threading
import time
from types import TracebackType
from typing import Optional, TextIO


class SyncOutput:
    """Writes timestamped progress and error lines for one sync run."""

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        verbose: bool = False,
        output_file: Optional[TextIO] = None,
    ):
        """
        Initialize the output sink.

        Args:
            stream: Stream receiving every line (defaults to sys.stdout)
            verbose: If True, verbose_only messages are printed too
            output_file: Optional file mirroring every line
        """
        self.stream = stream if stream is not None else sys.stdout
        self.verbose = verbose
        self.output_file = output_file
        self._start_time = time.time()
        self._lock = threading.Lock()

    def get_elapsed(self) -> float:
        """Seconds elapsed since the sink was created."""
        return time.time() - self._start_time

    def format_timestamp(self) -> str:
        """
        Format the current elapsed time as MM:SS.cc.

        Returns:
            Formatted timestamp string
        """
        elapsed = self.get_elapsed()
        minutes = int(elapsed // 60)
        seconds = elapsed % 60
        return f"{minutes:02d}:{seconds:05.2f}"

    def _print(self, message: str) -> None:
        line = f"{self.format_timestamp()} {message}\n"
        with self._lock:
            self.stream.write(line)
            self.stream.flush()

            if self.output_file is not None:
                self.output_file.write(line)
                self.output_file.flush()

    def log(self, message: str, verbose_only: bool = False) -> None:
        """
        Log a message with timestamp.

        Args:
            message: Message to log
            verbose_only: If True, only print if verbose mode is enabled
        """
        if verbose_only and not self.verbose:
            return
        self._print(message)

    def log_detail(self, message: str, indent: int = 6, verbose_only: bool = False) -> None:
        """
        Log an indented detail message.

        Args:
            message: Detail message
            indent: Number of spaces to indent (default 6)
            verbose_only: If True, only print if verbose mode is enabled
        """
        if verbose_only and not self.verbose:
            return
        self._print(f"{' ' * indent}{message}")

    def log_error(self, message: str) -> None:
        """Log an error message."""
        self._print(f"ERROR: {message}")

    def log_warning(self, message: str) -> None:
        """Log a warning message."""
        self._print(f"WARNING: {message}")

    def timed(self, operation: str, phase: Optional[tuple[int, int]] = None, verbose_only: bool = False) -> "TimedLogger":
        """Return a TimedLogger bound to this sink."""
        return TimedLogger(self, operation, phase=phase, verbose_only=verbose_only)


class TimedLogger:
    """
    Context manager that logs an operation and its duration.

    Usage:
        with output.timed("Scanning styles", phase=(1, 3)) as step:
            step.detail("3 files compiled")
        # Logs "Done (0.42s)" on success
    """

    def __init__(
        self,
        output: SyncOutput,
        operation: str,
        phase: Optional[tuple[int, int]] = None,
        verbose_only: bool = False,
    ):
        self.output = output
        self.operation = operation
        self.phase = phase
        self.verbose_only = verbose_only
        self.start_time = 0.0

    def __enter__(self) -> "TimedLogger":
        self.start_time = time.time()
        if self.phase:
            self.output.log(f"[{self.phase[0]}/{self.phase[1]}] {self.operation}...", self.verbose_only)
        else:
            self.output.log(f"{self.operation}...", self.verbose_only)
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        del exc_val, exc_tb  # Unused
        elapsed = time.time() - self.start_time
        if exc_type is None:
            self.output.log_detail(f"Done ({elapsed:.2f}s)", verbose_only=self.verbose_only)
        return None

    def detail(self, message: str) -> None:
        """Log a detail message within this operation."""
        self.output.log_detail(message, verbose_only=self.verbose_only)
