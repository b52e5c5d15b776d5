"""Recursive directory walker used by the template engine.

Directories are descended into *before* their own visit callback fires, so a
callback that renames a directory never invalidates paths that are still
needed to walk its children.  Each directory listing is captured before any
of its entries is visited.
"""

from __future__ import annotations

import os
import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from stat import S_ISDIR, S_ISREG

FilterFunc = Callable[[Path, str, os.stat_result, Path, int], bool]
VisitFunc = Callable[["FileNode"], None]


@dataclass(frozen=True)
class FileNode:
    """A single file-system entry seen during a walk."""

    path: Path
    name: str
    parent: Path
    depth: int
    stat: os.stat_result

    @property
    def is_dir(self) -> bool:
        return S_ISDIR(self.stat.st_mode)

    @property
    def is_file(self) -> bool:
        return S_ISREG(self.stat.st_mode)


def walk_dir(
    root: str | Path,
    filter: FilterFunc | re.Pattern[str] | None = None,
    visit: VisitFunc | None = None,
) -> list[Path]:
    """Walk *root* recursively.

    Args:
        root: Directory to walk.
        filter: Pruning predicate called as
            ``filter(path, name, stat, parent, depth)``.  Returning ``False``
            skips the entry, and for a directory its whole subtree.  A compiled
            regular expression is searched against the full path instead.
        visit: Called once per visited file or directory with a ``FileNode``.

    Returns:
        Every visited *file* as an absolute path, in walk order.  Directories
        are visited but not returned.

    Raises:
        OSError: Any file-system failure aborts the walk.
    """
    files: list[Path] = []
    _walk(Path(root).absolute(), filter, visit, files, 0)
    return files


def _walk(
    directory: Path,
    filter: FilterFunc | re.Pattern[str] | None,
    visit: VisitFunc | None,
    files: list[Path],
    depth: int,
) -> None:
    names = sorted(os.listdir(directory))

    for name in names:
        full_path = directory / name
        stat = os.stat(full_path)

        if isinstance(filter, re.Pattern):
            if not filter.search(str(full_path)):
                continue
        elif filter is not None and not filter(full_path, name, stat, directory, depth):
            continue

        node = FileNode(path=full_path, name=name, parent=directory, depth=depth, stat=stat)

        if node.is_dir:
            _walk(full_path, filter, visit, files, depth + 1)
            if visit is not None:
                visit(node)
        elif node.is_file:
            if visit is not None:
                visit(node)
            files.append(full_path)
