"""
Command-line interface for stylesync.

This module provides the `stylesync` CLI tool, the host adapter that turns
command-line arguments into a SyncConfig and the engine outcome into an exit
code.
"""

import argparse
import logging
import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from stylesync import __version__
from stylesync.config import ConfigError, SyncConfig
from stylesync.engine import SyncEngine, SyncResult
from stylesync.errors import CompilationFailure, SyncError
from stylesync.output import SyncOutput


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    source_dir: str
    output_dir: str
    compiler: Optional[str] = None
    jobs: Optional[int] = None
    timeout: Optional[float] = None
    cache_dir: Optional[Path] = None
    dry_run: bool = False
    log_file: Optional[Path] = None
    verbose: bool = False


def setup_logging(verbose: bool) -> None:
    """Send library diagnostics to stderr; debug level when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def render_summary(console: Console, result: SyncResult) -> None:
    """Print the per-category counts of a finished run."""
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("What")
    table.add_column("Count", justify="right")
    table.add_row("Would compile" if result.dry_run else "Compiled", str(len(result.compiled)))
    table.add_row("Up to date", str(len(result.up_to_date)))
    table.add_row("Deleted files", str(len(result.deleted_files)))
    table.add_row("Deleted directories", str(len(result.deleted_dirs)))
    console.print(table)


def build_command(args: BuildArgs, console: Optional[Console] = None) -> None:
    """Compile a style tree into a CSS tree.

    Examples:
        stylesync build scss css --compiler /usr/local/bin/sass
        stylesync build scss css -j 8          # Compile up to 8 files at once
        stylesync build scss css --dry-run     # Show what would change
    """
    console = console if console is not None else Console()
    setup_logging(args.verbose)

    log_handle = None
    try:
        config = SyncConfig.create(
            source_dir=args.source_dir,
            output_dir=args.output_dir,
            compiler_executable=args.compiler,
            cache_dir=args.cache_dir,
            jobs=args.jobs,
            timeout=args.timeout,
            dry_run=args.dry_run,
            verbose=args.verbose,
        )

        if args.log_file is not None:
            try:
                log_handle = open(args.log_file, "w", encoding="utf-8")
            except OSError as e:
                console.print("[bold red]✗ Error: Could not open log file[/bold red]")
                console.print(str(e), markup=False, highlight=False)
                sys.exit(1)
        output = SyncOutput(verbose=args.verbose, output_file=log_handle)

        if args.verbose:
            output.log(f"Source:   {config.source_dir}")
            output.log(f"Output:   {config.output_dir}")
            output.log(f"Compiler: {config.compiler_executable}")

        result = SyncEngine(config, output).run()

        console.print()
        if result.dry_run:
            console.print("[bold yellow]Dry run, nothing was changed[/bold yellow]")
        else:
            console.print("[bold green]✓ Sync successful![/bold green]")
        render_summary(console, result)
        console.print(f"Sync time: {result.build_time:.2f}s")
        sys.exit(0)

    except ConfigError as e:
        console.print(f"[bold red]✗ Error: {e}[/bold red]")
        if "compiler_executable" in str(e):
            console.print("Pass --compiler or set STYLESYNC_COMPILER.")
        sys.exit(2)

    except SyncError as e:
        console.print()
        console.print("[bold red]✗ Sync failed![/bold red]", highlight=False)
        console.print()
        console.print(str(e), markup=False, highlight=False)
        cause = e.__cause__
        if isinstance(cause, CompilationFailure):
            console.print(f"Source: {cause.source_path}", markup=False, highlight=False)
        if args.verbose and cause is not None:
            console.print()
            console.print("Traceback:")
            console.print(
                "".join(traceback.format_exception(type(cause), cause, cause.__traceback__)),
                markup=False,
                highlight=False,
            )
        sys.exit(1)

    except OSError as e:
        console.print()
        console.print("[bold red]✗ Error: I/O failure[/bold red]")
        console.print(str(e), markup=False, highlight=False)
        sys.exit(1)

    except KeyboardInterrupt:
        console.print()
        console.print("[bold yellow]✗ Sync interrupted[/bold yellow]")
        sys.exit(130)  # Standard exit code for SIGINT

    finally:
        if log_handle is not None:
            log_handle.close()


def main() -> None:
    """stylesync - incremental SASS/SCSS compilation."""
    parser = argparse.ArgumentParser(
        prog="stylesync",
        description="stylesync - incremental SASS/SCSS to CSS synchronization",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"stylesync {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    build_parser = subparsers.add_parser(
        "build",
        help="Compile new and changed style sheets and remove orphaned CSS",
    )
    build_parser.add_argument(
        "source_dir",
        help="Directory containing .sass/.scss files",
    )
    build_parser.add_argument(
        "output_dir",
        help="Directory receiving the compiled .css files",
    )
    build_parser.add_argument(
        "-c",
        "--compiler",
        default=None,
        help="Compiler executable (default: $STYLESYNC_COMPILER)",
    )
    build_parser.add_argument(
        "-j",
        "--jobs",
        default=None,
        type=int,
        help="Number of files compiled at once (default: $STYLESYNC_JOBS or 1)",
    )
    build_parser.add_argument(
        "-t",
        "--timeout",
        default=None,
        type=float,
        help="Per-file compiler timeout in seconds (default: no timeout)",
    )
    build_parser.add_argument(
        "--cache-dir",
        default=None,
        type=Path,
        help="Compiler cache directory removed after the run (default: .sass-cache)",
    )
    build_parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Show what would be compiled and deleted without doing it",
    )
    build_parser.add_argument(
        "--log-file",
        default=None,
        type=Path,
        help="Also write progress output to this file",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    parsed_args = parser.parse_args()

    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    if parsed_args.command == "build":
        args = BuildArgs(
            source_dir=parsed_args.source_dir,
            output_dir=parsed_args.output_dir,
            compiler=parsed_args.compiler,
            jobs=parsed_args.jobs,
            timeout=parsed_args.timeout,
            cache_dir=parsed_args.cache_dir,
            dry_run=parsed_args.dry_run,
            log_file=parsed_args.log_file,
            verbose=parsed_args.verbose,
        )
        build_command(args)


if __name__ == "__main__":
    main()
