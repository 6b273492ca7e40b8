"""
skunk.yamlparser.scanner — Catalog directory scanner.

Produces the reference directory set searched for anchors:

    catalog/            ← root first
    catalog/network
    catalog/network/vpc
    catalog/services

Order is lexical depth-first. It is part of the result, not a detail:
when two catalog files define the same anchor, the later one wins.
"""

from __future__ import annotations

import os
from pathlib import Path

from skunk.errors import DirectoryScanError


def find_subdirectories(root: str | Path) -> list[Path]:
    """Return the root and every directory beneath it.

    Args:
        root: Catalog root directory

    Returns:
        Absolute paths, root first, then lexical depth-first

    Raises:
        DirectoryScanError: Root missing, not a directory, or unreadable
    """
    root_path = Path(os.path.abspath(root))
    if not root_path.exists():
        raise DirectoryScanError(f"Catalog directory not found: {root_path}", path=root_path)
    if not root_path.is_dir():
        raise DirectoryScanError(f"Catalog path is not a directory: {root_path}", path=root_path)

    def on_error(err: OSError) -> None:
        raise DirectoryScanError(
            f"Error walking directory {root_path}: {err.strerror or err}",
            path=err.filename or root_path,
        ) from err

    dirs: list[Path] = []
    # Symlinked directories are neither listed nor descended into (followlinks=False)
    for dirpath, dirnames, _ in os.walk(root_path, onerror=on_error):
        dirnames.sort()
        dirs.append(Path(dirpath))
    return dirs
