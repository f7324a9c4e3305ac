"""Run configuration for stylesync.

SyncConfig carries everything a run needs. It is created once by the host
(the CLI, a build script, a test) and flows unchanged through the engine,
scanner and compiler.

Defaults can come from the environment:
    STYLESYNC_COMPILER  Compiler executable used when none is given
    STYLESYNC_JOBS      Number of parallel compilations (default 1)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import StyleSyncError

# Working-state directory the sass compiler leaves in its working directory.
DEFAULT_CACHE_DIR = Path(".sass-cache")

COMPILER_ENV_VAR = "STYLESYNC_COMPILER"
JOBS_ENV_VAR = "STYLESYNC_JOBS"


class ConfigError(StyleSyncError, ValueError):
    """Raised when a configuration value is missing or invalid."""

    pass


def normalize_path_setting(value: Optional[str], name: str) -> str:
    """Trim whitespace and trailing separators from a path setting.

    Args:
        value: Raw setting value
        name: Setting name used in error messages

    Returns:
        The trimmed path string

    Raises:
        ConfigError: If the value is missing or blank
    """
    if value is None or not str(value).strip():
        raise ConfigError(f"{name} must not be empty")
    trimmed = str(value).strip()
    stripped = trimmed.rstrip("/\\")
    # A bare root ("/") has nothing left after stripping
    return stripped or trimmed[0]


def default_compiler() -> Optional[str]:
    """Compiler executable from STYLESYNC_COMPILER, if set."""
    value = os.environ.get(COMPILER_ENV_VAR, "").strip()
    return value or None


def default_jobs() -> int:
    """Parallel compilation count from STYLESYNC_JOBS (default 1).

    Raises:
        ConfigError: If the variable is set to something other than a positive integer
    """
    value = os.environ.get(JOBS_ENV_VAR, "").strip()
    if not value:
        return 1
    try:
        jobs = int(value)
    except ValueError as e:
        raise ConfigError(f"{JOBS_ENV_VAR} must be an integer, got {value!r}") from e
    if jobs < 1:
        raise ConfigError(f"{JOBS_ENV_VAR} must be at least 1, got {jobs}")
    return jobs


@dataclass(frozen=True)
class SyncConfig:
    """Parameters for one synchronization run.

    Attributes:
        source_dir: Root of the .sass/.scss tree
        output_dir: Root of the compiled .css tree
        compiler_executable: External compiler, invoked as `<exe> <source> <output>`
        cache_dir: Compiler cache directory removed after the run, relative to the working directory
        jobs: Number of compilations run at once
        timeout: Per-file compiler timeout in seconds (None waits forever)
        dry_run: Report what would be compiled and deleted without touching anything
        verbose: Enable verbose output
    """

    source_dir: Path
    output_dir: Path
    compiler_executable: Path
    cache_dir: Path = DEFAULT_CACHE_DIR
    jobs: int = 1
    timeout: Optional[float] = None
    dry_run: bool = False
    verbose: bool = False

    @classmethod
    def create(
        cls,
        source_dir: Optional[str],
        output_dir: Optional[str],
        compiler_executable: Optional[str] = None,
        cache_dir: Optional[Path] = None,
        jobs: Optional[int] = None,
        timeout: Optional[float] = None,
        dry_run: bool = False,
        verbose: bool = False,
    ) -> "SyncConfig":
        """Create a SyncConfig from raw host values.

        Missing compiler and job settings fall back to the environment.

        Raises:
            ConfigError: If a setting is missing or out of range
        """
        if compiler_executable is None:
            compiler_executable = default_compiler()
        if jobs is None:
            jobs = default_jobs()
        if jobs < 1:
            raise ConfigError(f"jobs must be at least 1, got {jobs}")
        if timeout is not None and timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {timeout}")

        return cls(
            source_dir=Path(normalize_path_setting(source_dir, "source_dir")),
            output_dir=Path(normalize_path_setting(output_dir, "output_dir")),
            compiler_executable=Path(normalize_path_setting(compiler_executable, "compiler_executable")),
            cache_dir=cache_dir if cache_dir is not None else DEFAULT_CACHE_DIR,
            jobs=jobs,
            timeout=timeout,
            dry_run=dry_run,
            verbose=verbose,
        )
