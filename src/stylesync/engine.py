"""Sync Engine - compiles a style tree and reconciles its output tree.

A run has three phases:

    [1/3] Compile: walk the source tree and compile every stale style sheet
    [2/3] Clean:   delete compiled files without a source, then empty directories
    [3/3] Cache:   remove the compiler's working-state directory

Every phase is fail-fast. The first error aborts the run and is raised as a
SyncError naming the phase; work already done (compiled or deleted files)
stays in place.
"""

import logging
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .cleaner import OutputSynchronizer
from .compiler import ProcessCompiler
from .config import SyncConfig
from .errors import CleanupFailure, StyleSyncError, SyncError
from .output import SyncOutput
from .scanner import TreeScanner

logger = logging.getLogger(__name__)

TOTAL_PHASES = 3


@dataclass
class SyncResult:
    """Outcome of a successful run.

    Attributes:
        generated: Output paths that correspond to a current source
        compiled: Outputs compiled during the run
        up_to_date: Outputs that were already newer than their source
        deleted_files: Orphaned outputs that were deleted
        deleted_dirs: Directories removed because they became empty
        cache_removed: True if the compiler cache directory was deleted
        dry_run: True if nothing was actually compiled or deleted
        build_time: Run duration in seconds
    """

    generated: frozenset[Path] = frozenset()
    compiled: list[Path] = field(default_factory=list)
    up_to_date: list[Path] = field(default_factory=list)
    deleted_files: list[Path] = field(default_factory=list)
    deleted_dirs: list[Path] = field(default_factory=list)
    cache_removed: bool = False
    dry_run: bool = False
    build_time: float = 0.0

    def summary(self) -> str:
        """One-line human readable summary."""
        prefix = "Would compile" if self.dry_run else "Compiled"
        return (
            f"{prefix} {len(self.compiled)}, up to date {len(self.up_to_date)}, "
            f"deleted {len(self.deleted_files)} files and {len(self.deleted_dirs)} directories"
        )


class SyncEngine:
    """Runs the compile, clean and cache phases for one configuration."""

    def __init__(
        self,
        config: SyncConfig,
        output: Optional[SyncOutput] = None,
        compiler: Optional[ProcessCompiler] = None,
    ):
        """Initialize the engine.

        Args:
            config: Run configuration
            output: Output sink (defaults to a stdout sink honoring config.verbose)
            compiler: Compiler for stale files (defaults to a ProcessCompiler for config.compiler_executable)
        """
        self.config = config
        self.output = output if output is not None else SyncOutput(verbose=config.verbose)
        self.compiler = compiler if compiler is not None else self.create_compiler()

    def create_compiler(self) -> ProcessCompiler:
        """Create the compiler used for stale files."""
        return ProcessCompiler(self.config.compiler_executable, self.output, timeout=self.config.timeout)

    def cache_path(self) -> Path:
        """Absolute location of the compiler cache directory."""
        cache_dir = self.config.cache_dir
        if cache_dir.is_absolute():
            return cache_dir
        return Path.cwd() / cache_dir

    def run(self) -> SyncResult:
        """Run all phases.

        Returns:
            SyncResult describing what was compiled and deleted

        Raises:
            SyncError: If any phase fails
        """
        start_time = time.time()
        config = self.config
        result = SyncResult(dry_run=config.dry_run)

        scanner = TreeScanner(
            config.source_dir,
            config.output_dir,
            self.compiler,
            self.output,
            dry_run=config.dry_run,
        )
        synchronizer = OutputSynchronizer(config.output_dir, self.output, dry_run=config.dry_run)

        logger.info(f"Syncing {scanner.source_root} -> {scanner.output_root} (jobs={config.jobs})")

        try:
            with self.output.timed("Compiling style sheets", phase=(1, TOTAL_PHASES), verbose_only=True) as step:
                if config.jobs > 1:
                    result.generated = scanner.scan_parallel(config.jobs)
                else:
                    result.generated = scanner.scan()
                step.detail(f"{len(scanner.compiled)} compiled, {len(scanner.up_to_date)} up to date")
        except (StyleSyncError, OSError) as e:
            raise SyncError("scan", str(e)) from e
        result.compiled = list(scanner.compiled)
        result.up_to_date = list(scanner.up_to_date)

        try:
            with self.output.timed("Cleaning output directory", phase=(2, TOTAL_PHASES), verbose_only=True) as step:
                synchronizer.clean(result.generated)
                step.detail(f"{len(synchronizer.deleted_files)} files, {len(synchronizer.deleted_dirs)} directories removed")
        except (StyleSyncError, OSError) as e:
            raise SyncError("clean", str(e)) from e
        result.deleted_files = list(synchronizer.deleted_files)
        result.deleted_dirs = list(synchronizer.deleted_dirs)

        try:
            with self.output.timed("Removing compiler cache", phase=(3, TOTAL_PHASES), verbose_only=True):
                result.cache_removed = self.remove_cache()
        except (StyleSyncError, OSError) as e:
            raise SyncError("cache", str(e)) from e

        result.build_time = time.time() - start_time
        logger.info(result.summary())
        return result

    def remove_cache(self) -> bool:
        """Delete the compiler cache directory if it exists.

        Returns:
            True if the directory existed

        Raises:
            CleanupFailure: If the directory cannot be deleted
        """
        cache_path = self.cache_path()
        if not cache_path.exists():
            return False

        if self.config.dry_run:
            self.output.log(f"Would delete: {cache_path}")
            return True

        try:
            shutil.rmtree(cache_path)
        except OSError as e:
            raise CleanupFailure(f"Could not delete dir {cache_path}: {e}", cache_path) from e
        self.output.log(f"Deleted: {cache_path}", verbose_only=True)
        return True


def sync(config: SyncConfig, output: Optional[SyncOutput] = None) -> SyncResult:
    """Synchronize config.output_dir with config.source_dir.

    Raises:
        SyncError: If the run fails
    """
    return SyncEngine(config, output).run()
