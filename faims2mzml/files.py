"""
faims2mzml Input Files

Expands the input path into the list of files to process. The input may be
a single file, a directory (all .raw files), or a path whose file name
contains wildcards. With recursion, the same file name pattern is matched
in sub-directories.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator, List

DEFAULT_PATTERN = "*.raw"


def split_input_path(input_path: str) -> tuple[Path, str]:
    """Split an input path into (directory, file name pattern)."""
    path = Path(input_path)

    if path.is_dir():
        return path, DEFAULT_PATTERN

    directory = path.parent if str(path.parent) else Path(".")
    return directory, path.name


def iter_input_files(directory: Path, pattern: str, max_levels: int = 1) -> Iterator[Path]:
    """Yield files matching pattern in directory and, up to max_levels, its subdirectories.

    Args:
        directory (Path): Directory to search.
        pattern (str): File name pattern, may contain * and ?.
        max_levels (int): 0 to recurse without limit; 1 for directory only.

    Yields:
        Path: Matching files, sorted by name within each directory.
    """
    yield from _matching_files(directory, pattern)

    if max_levels == 1:
        return

    remaining = 0 if max_levels == 0 else max_levels - 1
    for sub_dir in sorted(p for p in directory.iterdir() if p.is_dir()):
        yield from iter_input_files(sub_dir, pattern, remaining)


def _matching_files(directory: Path, pattern: str) -> List[Path]:
    # Only * and ? are wildcards; names with [ ] are taken literally
    if not has_wildcards(pattern):
        candidate = directory / pattern
        return [candidate] if candidate.is_file() else []
    escaped = re.sub(r"([\[\]])", r"[\1]", pattern)
    return [p for p in sorted(directory.glob(escaped)) if p.is_file()]


def has_wildcards(name: str) -> bool:
    return "*" in name or "?" in name


def find_input_files(input_path: str, recurse: bool = False, max_levels: int = 1) -> List[Path]:
    """Resolve the input path to the files to process."""
    path = Path(input_path)
    if path.is_file() and not recurse:
        return [path]

    directory, pattern = split_input_path(input_path)

    if not directory.is_dir():
        return []

    levels = max_levels if recurse else 1
    return list(iter_input_files(directory, pattern, levels))
