"""Disk search for files whose references could not be expanded."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Tuple

from .errors import DirectoryWalkError, ReferenceNotFoundError
from .logging import get_logger

_LOGGER = get_logger("locator")


def _raise_walk_error(error: OSError) -> None:
    raise DirectoryWalkError(f"failed to walk '{error.filename}': {error.strerror or error}") from error


def find_file_in_dir(file_name: str, directory: Path) -> str:
    """Return the POSIX path, relative to ``directory``, of a file named ``file_name``.

    When several files share the name, the shallowest wins and ties are
    broken by lexical order.
    """
    root = Path(directory)
    if not root.is_dir():
        raise DirectoryWalkError(f"search directory '{root}' does not exist or is not a directory")

    candidates: List[Tuple[int, str]] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        dirnames.sort()
        if file_name not in filenames:
            continue
        path = Path(dirpath) / file_name
        if not path.is_file():
            continue
        rel_path = path.relative_to(root).as_posix()
        candidates.append((rel_path.count("/"), rel_path))

    if not candidates:
        raise ReferenceNotFoundError(file_name, str(root))

    candidates.sort()
    if len(candidates) > 1:
        _LOGGER.debug(
            "Found %d files named %s under %s; using %s",
            len(candidates),
            file_name,
            root,
            candidates[0][1],
        )
    return candidates[0][1]


__all__ = ["find_file_in_dir"]
