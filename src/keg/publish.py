"""Publish a keg by pushing its git repository.

Commit messages are the title of the most recently updated node, so the
git log reads like the dex.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from keg.dex import last

logger = logging.getLogger(__name__)

_DEFAULT_MESSAGE = "Publish changes"


def _find_git_dir(start: Path) -> Path:
    """Walk upward from start looking for .git."""
    for directory in (start, *start.parents):
        if (directory / ".git").exists():
            return directory / ".git"
    msg = f"no .git found at or above {start}"
    raise FileNotFoundError(msg)


def _git(kegpath: Path, *args: str) -> None:
    logger.info("git %s", " ".join(args))
    subprocess.run(["git", "-C", str(kegpath), *args], check=True)


def publish(kegpath: Path | str) -> str:
    """Pull, commit everything and push. Returns the commit message used."""
    root = Path(kegpath).resolve()
    _find_git_dir(root)

    entry = last(root)
    message = entry.title if entry is not None and entry.title else _DEFAULT_MESSAGE

    _git(root, "pull")
    _git(root, "add", "-A", ".")
    _git(root, "commit", "-m", message)
    _git(root, "push")
    return message
