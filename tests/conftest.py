"""Shared keg fixtures."""

from __future__ import annotations

import os
from datetime import UTC, datetime
from pathlib import Path

import pytest

KEG_FILE_TEXT = """\
title: Test Keg
url: https://example.com/keg
state: living
updated: 2000-01-01T00:00:00Z
summary: Fixture keg.
"""

T2020 = datetime(2020, 1, 1, tzinfo=UTC)
T2021 = datetime(2021, 1, 1, tzinfo=UTC)
T2021_JUN = datetime(2021, 6, 1, tzinfo=UTC)
T2022 = datetime(2022, 1, 1, tzinfo=UTC)


def write_node(root: Path, node_id: int, title: str | None, when: datetime) -> Path:
    """Create root/<node_id>/README.md and pin its mtime to when.

    title=None writes a document without a heading.
    """
    node_dir = root / str(node_id)
    node_dir.mkdir(parents=True, exist_ok=True)
    readme = node_dir / "README.md"
    readme.write_text(f"# {title}\n\nBody.\n" if title is not None else "no heading\n")
    ts = when.timestamp()
    os.utime(readme, (ts, ts))
    os.utime(node_dir, (ts, ts))
    return node_dir


@pytest.fixture(autouse=True)
def _no_keg_root_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("KEG_ROOT", raising=False)


@pytest.fixture
def keg_root(tmp_path: Path) -> Path:
    """A keg with nodes 1, 2, 3 (untitled) and 5, plus some non-node entries."""
    root = tmp_path / "keg"
    root.mkdir()
    (root / "keg").write_text(KEG_FILE_TEXT)
    write_node(root, 1, "One", T2021)
    write_node(root, 2, "Two", T2022)
    write_node(root, 3, None, T2021_JUN)
    write_node(root, 5, "Five", T2020)
    (root / "notes").mkdir()
    (root / "7").write_text("a file, not a node")
    return root


@pytest.fixture
def persisted_keg(tmp_path: Path) -> Path:
    """A keg with an existing dex holding (1, "A", 2020) and (2, "B", 2021)."""
    root = tmp_path / "persisted"
    (root / "dex").mkdir(parents=True)
    (root / "keg").write_text(KEG_FILE_TEXT)
    (root / "dex" / "latest.md").write_text(
        "* 2021-01-01T00:00:00Z [B](../2)\n"
        "* 2020-01-01T00:00:00Z [A](../1)\n"
    )
    (root / "dex" / "nodes.tsv").write_text(
        "1\tA\t2020-01-01T00:00:00Z\n"
        "2\tB\t2021-01-01T00:00:00Z\n"
    )
    return root
