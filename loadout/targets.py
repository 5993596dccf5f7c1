"""Directory listing for managed target directories.

Targets are the directories skills get symlinked into (e.g.
~/.claude/skills). The broken-symlink and unmanaged-conflict checks only
need a typed snapshot of each target's entries, which this module
provides. Tests substitute their own ``TargetLister``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from loadout.errors import TargetDirectoryError

logger = logging.getLogger(__name__)

MARKER_FILE = ".managed-by-loadout"


@dataclass(frozen=True)
class TargetEntry:
    """One entry inside a target directory.

    Attributes:
        name: Entry file name.
        path: Full path of the entry.
        is_symlink: Entry itself is a symlink.
        is_dir: Entry is a real directory (symlinks are never reported as dirs).
        link_reachable: For symlinks, whether the referent can be stat'ed.
        has_marker: For real directories, whether the marker file is present.
    """

    name: str
    path: Path
    is_symlink: bool
    is_dir: bool
    link_reachable: bool = True
    has_marker: bool = False


class TargetLister(Protocol):
    def list_entries(self, target: Path) -> list[TargetEntry]: ...


class FilesystemTargetLister:
    """Lists target directories from the real filesystem.

    Missing targets list as empty. Any OSError while reading an existing
    target raises TargetDirectoryError; there is no partial result.
    """

    def __init__(self, marker_file: str = MARKER_FILE):
        self.marker_file = marker_file

    def list_entries(self, target: Path) -> list[TargetEntry]:
        if not target.exists():
            return []

        entries: list[TargetEntry] = []
        try:
            with os.scandir(target) as it:
                for dir_entry in sorted(it, key=lambda e: e.name):
                    entries.append(self._describe(dir_entry))
        except OSError as e:
            raise TargetDirectoryError(target, e) from e

        logger.debug("Listed %d entries in %s", len(entries), target)
        return entries

    def _describe(self, dir_entry: os.DirEntry[str]) -> TargetEntry:
        path = Path(dir_entry.path)

        if dir_entry.is_symlink():
            try:
                path.stat()
                reachable = True
            except OSError:
                reachable = False
            return TargetEntry(
                name=dir_entry.name,
                path=path,
                is_symlink=True,
                is_dir=False,
                link_reachable=reachable,
            )

        is_dir = dir_entry.is_dir(follow_symlinks=False)
        return TargetEntry(
            name=dir_entry.name,
            path=path,
            is_symlink=False,
            is_dir=is_dir,
            has_marker=is_dir and (path / self.marker_file).exists(),
        )
