"""KegConfig: metadata read from a keg's `keg` file.

Default layout (all relative to the keg root):

    keg                   # metadata (YAML-like, git-tracked)
    dex/
        latest.md         # newest first
        nodes.tsv         # by id
    1/README.md           # nodes
    2/README.md

keg file example:

    title: My Knowledge Exchange
    url: https://github.com/me/keg
    creator: https://github.com/me
    state: living
    updated: 2023-01-02T15:04:05Z
    summary: Notes on everything.

Only top-level `key: value` lines are read; nested YAML is ignored. The
library never writes the keg file except for the `updated:` line.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

from keg.dex import DEX_DIR, KEG_FILE, LATEST_FILE, NODES_FILE

_ROOT_ENV = "KEG_ROOT"
_KEY_RE = re.compile(r"^(\w+):[ \t]*(.*?)[ \t]*$", re.MULTILINE)


@dataclass
class KegConfig:
    """Resolved metadata for a keg."""

    root: Path                      # directory that contains the keg file
    title: str = ""
    url: str = ""
    creator: str = ""
    state: str = ""
    updated: str = ""               # raw value, rewritten by dex writes
    summary: str = ""

    @property
    def kegfile(self) -> Path:
        return self.root / KEG_FILE

    @property
    def dex_dir(self) -> Path:
        return self.root / DEX_DIR

    @property
    def latest_path(self) -> Path:
        return self.dex_dir / LATEST_FILE

    @property
    def nodes_path(self) -> Path:
        return self.dex_dir / NODES_FILE

    def ensure_dirs(self) -> None:
        """Create dex/ if it doesn't exist."""
        self.dex_dir.mkdir(parents=True, exist_ok=True)


def _parse_kegfile(text: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    for key, val in _KEY_RE.findall(text):
        # first occurrence wins, like the updated: rewrite expects
        fields.setdefault(key, val.strip('"').strip("'"))
    return fields


def load_config(root: Path | str | None = None) -> KegConfig:
    """Load the keg file from root (or $KEG_ROOT, or search upward from cwd)."""
    if root is None and os.environ.get(_ROOT_ENV):
        root = os.environ[_ROOT_ENV]
    root_path = _find_root(Path(root).resolve() if root else Path.cwd())

    raw: dict[str, str] = {}
    kegfile = root_path / KEG_FILE
    if kegfile.is_file():
        raw = _parse_kegfile(kegfile.read_text(encoding="utf-8"))

    return KegConfig(
        root=root_path,
        title=raw.get("title", root_path.name),
        url=raw.get("url", ""),
        creator=raw.get("creator", ""),
        state=raw.get("state", ""),
        updated=raw.get("updated", ""),
        summary=raw.get("summary", ""),
    )


def _find_root(start: Path) -> Path:
    """Walk upward from start looking for a keg file."""
    for directory in (start, *start.parents):
        if (directory / KEG_FILE).is_file():
            return directory
    return start


def init_config(root: Path, title: str | None = None) -> Path:
    """Write a default keg file at root. Raises if already exists."""
    kegfile = root / KEG_FILE
    if kegfile.exists():
        msg = f"keg file already exists at {kegfile}"
        raise FileExistsError(msg)

    keg_title = title or root.name
    content = f"""\
title: {keg_title}
# url: https://github.com/you/{root.name}
# creator: https://github.com/you
state: living
updated:
summary: Knowledge exchange for {keg_title}.
"""
    root.mkdir(parents=True, exist_ok=True)
    kegfile.write_text(content, encoding="utf-8")
    return kegfile
