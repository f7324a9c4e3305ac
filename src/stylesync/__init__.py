"""stylesync - incremental SASS/SCSS to CSS tree synchronization.

Compiles only new or changed style sheets with an external compiler and
removes compiled files whose source is gone.
"""

from .config import ConfigError, SyncConfig
from .engine import SyncEngine, SyncResult, sync
from .errors import (
    CleanupFailure,
    CompilationFailure,
    FileSystemError,
    ProcessLaunchError,
    StyleSyncError,
    SyncError,
)
from .output import SyncOutput

__version__ = "0.1.0"

__all__ = [
    "CleanupFailure",
    "CompilationFailure",
    "ConfigError",
    "FileSystemError",
    "ProcessLaunchError",
    "StyleSyncError",
    "SyncConfig",
    "SyncEngine",
    "SyncError",
    "SyncOutput",
    "SyncResult",
    "sync",
]
