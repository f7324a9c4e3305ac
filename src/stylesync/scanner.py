"""Source tree scanning and incremental compilation.

TreeScanner walks the source tree, maps every qualifying style sheet to its
output path and compiles the ones whose output is missing or older than the
source. Partials (names starting with "_") are only ever imported by other
sheets and are never compiled on their own.

Entries are visited in sorted name order so runs are reproducible; the first
compilation failure stops the walk.
"""

import logging
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from .compiler import ProcessCompiler
from .errors import FileSystemError
from .output import SyncOutput
from .paths import is_partial, is_qualifying, to_output_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanEntry:
    """A qualifying source file and its output.

    Attributes:
        source_path: Absolute path of the style sheet
        output_path: Absolute path of the compiled CSS file
        stale: True if the output is missing or older than the source
    """

    source_path: Path
    output_path: Path
    stale: bool


def is_stale(source_path: Path, output_path: Path) -> bool:
    """Return True if output_path is missing or strictly older than source_path."""
    try:
        output_mtime = output_path.stat().st_mtime
    except FileNotFoundError:
        return True
    try:
        return source_path.stat().st_mtime > output_mtime
    except OSError as e:
        raise FileSystemError(f"Could not read {source_path}: {e}", source_path) from e


class TreeScanner:
    """Scans a source tree and compiles stale style sheets."""

    def __init__(
        self,
        source_root: Path,
        output_root: Path,
        compiler: ProcessCompiler,
        output: SyncOutput,
        dry_run: bool = False,
    ):
        """Initialize the scanner.

        Args:
            source_root: Root of the .sass/.scss tree
            output_root: Root of the compiled .css tree
            compiler: Compiler used for stale files
            output: Sink for progress messages
            dry_run: Log stale files instead of compiling them
        """
        self.source_root = Path(source_root).absolute()
        self.output_root = Path(output_root).absolute()
        self.compiler = compiler
        self.output = output
        self.dry_run = dry_run
        self.compiled: list[Path] = []
        self.up_to_date: list[Path] = []

    def iter_entries(self, directory: Optional[Path] = None, visited: Optional[set[Path]] = None) -> Iterator[ScanEntry]:
        """Yield every qualifying, non-partial source below directory.

        Staleness is evaluated as each entry is yielded, so files compiled
        earlier in the walk are seen in their current state. Symlinked
        directories are followed, but a directory already visited on the
        current walk is not entered again.

        Raises:
            FileSystemError: If a directory cannot be listed
        """
        if directory is None:
            directory = self.source_root
        if visited is None:
            visited = set()

        try:
            real_directory = directory.resolve()
            children = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise FileSystemError(f"Could not list {directory}: {e}", directory) from e

        if real_directory in visited:
            logger.debug(f"Skipping {directory}, already visited as {real_directory}")
            return
        visited.add(real_directory)

        for child in children:
            if child.is_dir():
                yield from self.iter_entries(child, visited)
                continue

            if not is_qualifying(child.name) or is_partial(child.name):
                logger.debug(f"Skipping {child}")
                continue

            output_path = self.output_root / to_output_path(child.relative_to(self.source_root))
            yield ScanEntry(child, output_path, is_stale(child, output_path))

    def plan(self) -> list[ScanEntry]:
        """Walk the whole tree without compiling anything."""
        self._check_source_root()
        return list(self.iter_entries())

    def scan(self) -> frozenset[Path]:
        """Compile stale files one at a time, in walk order.

        Returns:
            Output paths of every qualifying source (compiled or up to date)

        Raises:
            FileSystemError: If the tree cannot be read or an output cannot be prepared
            ProcessLaunchError: If the compiler cannot be run
            CompilationFailure: If the compiler rejects a file
        """
        self._check_source_root()
        generated: set[Path] = set()
        for entry in self.iter_entries():
            if entry.stale:
                self._compile(entry)
            else:
                self._report_up_to_date(entry)
            generated.add(entry.output_path)
        return frozenset(generated)

    def scan_parallel(self, jobs: int) -> frozenset[Path]:
        """Compile stale files on a pool of worker threads.

        The tree is planned first, then every stale file is submitted. The
        first failure cancels the compilations that have not started yet and
        is re-raised once the running ones finish, so nothing is still
        writing to the output tree when this returns. Ctrl-C also kills the
        running compiler processes before the interrupt propagates.

        Args:
            jobs: Number of compilations run at once

        Returns:
            Output paths of every qualifying source (compiled or up to date)
        """
        entries = self.plan()
        stale: dict[Path, ScanEntry] = {}
        for entry in entries:
            if not entry.stale:
                self._report_up_to_date(entry)
            elif entry.output_path in stale:
                # a.sass and a.scss side by side; the first in walk order wins
                first = stale[entry.output_path]
                self.output.log_warning(f"{entry.source_path} and {first.source_path} both compile to {entry.output_path}")
            else:
                stale[entry.output_path] = entry

        if stale:
            logger.debug(f"Compiling {len(stale)} files with {jobs} workers")
            executor = ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="compile")
            futures: list[Future[None]] = []
            try:
                futures = [executor.submit(self._compile, entry) for entry in stale.values()]
                done, _ = wait(futures, return_when=FIRST_EXCEPTION)
                failed = [f for f in futures if f in done and f.exception() is not None]
                if failed:
                    raise failed[0].exception()  # type: ignore[misc]
            except KeyboardInterrupt:
                for future in futures:
                    future.cancel()
                self.compiler.cancel()
                raise
            finally:
                # Waits for running compilations; queued ones never start
                executor.shutdown(wait=True, cancel_futures=True)

        return frozenset(entry.output_path for entry in entries)

    def _check_source_root(self) -> None:
        if not self.source_root.is_dir():
            raise FileSystemError(f"Source directory not found: {self.source_root}", self.source_root)

    def _compile(self, entry: ScanEntry) -> None:
        if self.dry_run:
            self.output.log(f"Would compile: {entry.output_path}")
        else:
            self.compiler.compile(entry.source_path, entry.output_path)
        self.compiled.append(entry.output_path)

    def _report_up_to_date(self, entry: ScanEntry) -> None:
        self.output.log(f"Already up-to-date: {entry.output_path}")
        self.up_to_date.append(entry.output_path)
