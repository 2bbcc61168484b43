"""Recursive discovery of bibliography files."""

import os
from pathlib import Path

from bibmerge.errors import DirectoryReadError
from bibmerge.parse.base import BIB_SUFFIX

__all__ = ["collect_files"]


def collect_files(root: str | Path, suffix: str = BIB_SUFFIX) -> list[Path]:
    """Collect bibliography files below a directory.

    Walks depth-first. At every level the directory entries are visited in
    lexicographic order of their names, so the result is stable for a fixed
    filesystem state. Directories reached twice (symlink cycles, or links to
    an already scanned tree) are scanned only once.

    Parameters
    ----------
    root : str | Path
        Directory to scan.
    suffix : str, optional
        File name suffix to select, compared case-insensitively,
        by default ".bib".

    Returns
    -------
    list[Path]
        Matching file paths in visit order.

    Raises
    ------
    DirectoryReadError
        If the root, or any directory below it, cannot be read.
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise DirectoryReadError(f"Not a readable directory: {root_path}", path=str(root_path))

    files: list[Path] = []
    _walk(root_path, suffix.lower(), set(), files)
    return files


def _walk(
    directory: Path,
    suffix: str,
    visited: set[tuple[int, int]],
    files: list[Path],
) -> None:
    try:
        stat = directory.stat()
        entries = sorted(os.scandir(directory), key=lambda e: e.name)
    except OSError as e:
        raise DirectoryReadError(
            f"Failed to read directory {directory}: {e}",
            path=str(directory),
        ) from e

    identity = (stat.st_dev, stat.st_ino)
    if identity in visited:
        return
    visited.add(identity)

    for entry in entries:
        path = directory / entry.name
        if entry.is_dir():
            _walk(path, suffix, visited, files)
        elif entry.is_file() and entry.name.lower().endswith(suffix):
            files.append(path)
