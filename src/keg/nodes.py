"""Create, import, and edit node directories."""

from __future__ import annotations

from importlib import resources
from pathlib import Path

import click

from keg.dex import DEX_DIR
from keg.markup import NODE_DOC
from keg.models import DexEntry
from keg.scanner import node_paths


def _load_sample() -> str:
    return (resources.files("keg") / "samples" / NODE_DOC).read_text(encoding="utf-8")


# Copied verbatim into new nodes by `keg create --sample`.
SAMPLE_NODE_README = _load_sample()


def make_node(kegpath: Path | str) -> DexEntry:
    """Create the next node directory (highest id + 1) and return its entry.

    The new node has no README.md yet, so the entry title is empty.
    """
    root = Path(kegpath)
    _, _, high = node_paths(root)
    node_id = max(high, 0) + 1
    (root / str(node_id)).mkdir(parents=True)
    dex_dir = root / DEX_DIR
    dex_dir.mkdir(parents=True, exist_ok=True)
    (dex_dir / NODE_DOC).touch()
    return DexEntry(node_id=node_id)


def write_sample(kegpath: Path | str, entry: DexEntry) -> Path:
    """Overwrite the entry's README.md with SAMPLE_NODE_README."""
    path = Path(kegpath) / entry.slug / NODE_DOC
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(SAMPLE_NODE_README, encoding="utf-8")
    return path


def import_node(src: Path | str, kegpath: Path | str, node_id: int) -> Path:
    """Move the src directory into the keg as node node_id."""
    target = Path(kegpath) / str(node_id)
    if target.exists():
        msg = f"Node already exists: {target}"
        raise FileExistsError(msg)
    return Path(src).rename(target)


def edit(kegpath: Path | str, node_id: int) -> None:
    """Open the node's README.md in $EDITOR."""
    if node_id < 0:
        msg = f"not a valid node id: {node_id}"
        raise ValueError(msg)
    readme = Path(kegpath) / str(node_id) / NODE_DOC
    click.edit(filename=str(readme))
