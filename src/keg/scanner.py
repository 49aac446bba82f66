"""Discover node directories under a keg root."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path


@dataclass
class NodeDir:
    """An integer-named subdirectory of a keg root."""

    path: Path
    node_id: int


def _node_id(name: str) -> int | None:
    # ASCII digits only: isdecimal() alone accepts "١", int() accepts "-1" and " 1"
    if not (name.isascii() and name.isdecimal()):
        return None
    return int(name)


def node_paths(kegroot: Path | str) -> tuple[list[NodeDir], int, int]:
    """Return node dirs sorted by id, plus the lowest and highest id.

    Entries whose name is not a non-negative integer are skipped. A missing
    or empty root gives ([], -1, -1).
    """
    root = Path(kegroot)
    if not root.is_dir():
        return [], -1, -1

    dirs: list[NodeDir] = []
    for child in root.iterdir():
        node_id = _node_id(child.name)
        if node_id is None or not child.is_dir():
            continue
        dirs.append(NodeDir(path=child, node_id=node_id))

    if not dirs:
        return [], -1, -1
    dirs.sort(key=lambda d: d.node_id)
    return dirs, dirs[0].node_id, dirs[-1].node_id


def latest_change(path: Path | str) -> tuple[Path, datetime]:
    """Most recently modified path at or below path, with its UTC mtime."""
    top = Path(path)
    latest = top
    latest_mtime = top.stat().st_mtime
    for dirpath, dirnames, filenames in os.walk(top):
        for name in (*dirnames, *filenames):
            p = Path(dirpath) / name
            mtime = p.lstat().st_mtime
            if mtime > latest_mtime:
                latest, latest_mtime = p, mtime
    ts = datetime.fromtimestamp(int(latest_mtime), UTC)
    return latest, ts
