"""Mapping between source style-sheet paths and compiled output paths.

A qualifying source is any file ending in .sass or .scss (any case). Its
output lives at the same relative location with the suffix replaced by .css:

    components/buttons.SCSS -> components/buttons.css
"""

import re
from pathlib import PurePath
from typing import TypeVar

SOURCE_SUFFIX_RE = re.compile(r"\.s[ac]ss$", re.IGNORECASE)
OUTPUT_SUFFIX_RE = re.compile(r"\.css$", re.IGNORECASE)
QUALIFYING_NAME_RE = re.compile(r"^.+\.s[ac]ss$", re.IGNORECASE)

OUTPUT_SUFFIX = ".css"
SOURCE_SUFFIXES = (".scss", ".sass")
PARTIAL_PREFIX = "_"

P = TypeVar("P", bound=PurePath)


def is_qualifying(name: str) -> bool:
    """Return True if the file name has a .sass/.scss suffix."""
    return QUALIFYING_NAME_RE.match(name) is not None


def is_partial(name: str) -> bool:
    """Return True if the file name marks an import-only partial."""
    return name.startswith(PARTIAL_PREFIX)


def is_compiled_output(name: str) -> bool:
    """Return True if the file name has a .css suffix."""
    return OUTPUT_SUFFIX_RE.search(name) is not None


def to_output_path(source_relative_path: P) -> P:
    """Map a source path to its compiled output path.

    Only the file name changes; parent directories are preserved.

    Args:
        source_relative_path: Path of a qualifying source file

    Returns:
        The same path with its .sass/.scss suffix replaced by .css

    Raises:
        ValueError: If the path is not a qualifying source file
    """
    name = source_relative_path.name
    if not is_qualifying(name):
        raise ValueError(f"Not a .sass/.scss file: {source_relative_path}")
    return source_relative_path.with_name(SOURCE_SUFFIX_RE.sub(OUTPUT_SUFFIX, name))


def to_source_candidates(output_relative_path: P) -> tuple[P, ...]:
    """Map an output path back to the source paths that could produce it.

    Args:
        output_relative_path: Path of a compiled .css file

    Returns:
        Candidate source paths, .scss first

    Raises:
        ValueError: If the path is not a .css file
    """
    name = output_relative_path.name
    if not is_compiled_output(name):
        raise ValueError(f"Not a .css file: {output_relative_path}")
    return tuple(
        output_relative_path.with_name(OUTPUT_SUFFIX_RE.sub(suffix, name))
        for suffix in SOURCE_SUFFIXES
    )
