"""Exceptions raised while synchronizing a style tree.

Every failure is fatal for the run. The engine wraps whatever escapes a phase
in SyncError so callers only need to catch one type.
"""

from pathlib import Path
from typing import Optional


class StyleSyncError(Exception):
    """Base class for all stylesync errors."""

    pass


class FileSystemError(StyleSyncError):
    """Raised when an output directory or file cannot be prepared."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class ProcessLaunchError(StyleSyncError):
    """Raised when the compiler cannot be started or waiting on it fails."""

    def __init__(self, message: str, source_path: Path, output_path: Path):
        super().__init__(message)
        self.source_path = source_path
        self.output_path = output_path


class CompilationFailure(StyleSyncError):
    """Raised when the compiler exits with a non-zero code."""

    def __init__(self, source_path: Path, output_path: Path, exit_code: int, stderr: str = ""):
        super().__init__(f"Compiling {source_path} to {output_path} exited with code {exit_code}")
        self.source_path = source_path
        self.output_path = output_path
        self.exit_code = exit_code
        self.stderr = stderr


class CleanupFailure(StyleSyncError):
    """Raised when an orphan file, empty directory or cache directory cannot be deleted."""

    def __init__(self, message: str, path: Path):
        super().__init__(message)
        self.path = path


class SyncError(StyleSyncError):
    """Raised by the engine when a run aborts.

    Attributes:
        phase: Phase that failed ("scan", "clean" or "cache")
    """

    def __init__(self, phase: str, message: str):
        super().__init__(f"{phase} failed: {message}")
        self.phase = phase
