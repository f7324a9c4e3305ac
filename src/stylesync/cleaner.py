"""Output tree cleanup.

After a scan, every .css file under the output root that was not produced by
the scan is an orphan: its source was renamed, moved or deleted. The
synchronizer deletes orphans and then any directory left empty, working
bottom-up. The filesystem itself is the state; nothing is remembered between
runs.

Hidden directories (leading dot, or the Windows hidden attribute) are never
entered, so version-control and editor metadata under the output root is
left alone.
"""

import logging
import stat
import sys
from pathlib import Path

from .errors import CleanupFailure, FileSystemError
from .output import SyncOutput
from .paths import is_compiled_output

logger = logging.getLogger(__name__)


def is_hidden(path: Path) -> bool:
    """Return True if path is a dot-file or carries the Windows hidden attribute."""
    if path.name.startswith("."):
        return True
    if sys.platform == "win32":
        try:
            attributes = path.stat().st_file_attributes  # type: ignore[attr-defined]
        except OSError:
            return False
        return bool(attributes & stat.FILE_ATTRIBUTE_HIDDEN)
    return False


class OutputSynchronizer:
    """Deletes compiled files that no longer have a source."""

    def __init__(self, output_root: Path, output: SyncOutput, dry_run: bool = False):
        """Initialize the synchronizer.

        Args:
            output_root: Root of the compiled .css tree
            output: Sink for progress messages
            dry_run: Log deletions instead of performing them
        """
        self.output_root = Path(output_root).absolute()
        self.output = output
        self.dry_run = dry_run
        self.deleted_files: list[Path] = []
        self.deleted_dirs: list[Path] = []

    def clean(self, generated: frozenset[Path]) -> None:
        """Remove orphaned .css files and empty directories below the output root.

        Args:
            generated: Absolute output paths produced by the current scan

        Raises:
            CleanupFailure: If a file or directory cannot be deleted
            FileSystemError: If a directory cannot be listed
        """
        if not self.output_root.exists():
            logger.debug(f"Output directory {self.output_root} does not exist, nothing to clean")
            return
        self.clean_directory(self.output_root, generated)

    def clean_directory(self, directory: Path, generated: frozenset[Path]) -> bool:
        """Clean one directory, subdirectories first.

        Returns:
            True if the directory was removed (or would be, in a dry run)
        """
        if is_hidden(directory):
            logger.debug(f"Skipping hidden directory {directory}")
            return False

        try:
            children = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise FileSystemError(f"Could not list {directory}: {e}", directory) from e

        remaining = 0
        for child in children:
            # Symlinked directories are left alone rather than followed
            if child.is_dir() and not child.is_symlink():
                if not self.clean_directory(child, generated):
                    remaining += 1
            elif is_compiled_output(child.name) and child not in generated:
                self._delete_file(child)
            else:
                remaining += 1

        if remaining == 0:
            self._delete_directory(directory)
            return True
        return False

    def _delete_file(self, path: Path) -> None:
        if self.dry_run:
            self.output.log(f"Would delete: {path}")
        else:
            try:
                path.unlink()
            except OSError as e:
                raise CleanupFailure(f"Could not delete file {path}: {e}", path) from e
            self.output.log(f"Deleted: {path}")
        self.deleted_files.append(path)

    def _delete_directory(self, path: Path) -> None:
        if self.dry_run:
            self.output.log(f"Would delete: {path}")
        else:
            try:
                path.rmdir()
            except OSError as e:
                raise CleanupFailure(f"Could not delete dir {path}: {e}", path) from e
            self.output.log(f"Deleted: {path}")
        self.deleted_dirs.append(path)
