"""Title extraction from node README.md files."""

from __future__ import annotations

import re
from pathlib import Path

NODE_DOC = "README.md"

_TITLE_RE = re.compile(r"^#\s+(.+?)\s*$")


class TitleNotFoundError(ValueError):
    """The node document does not start with a level-one heading."""


def read_title(nodedir: Path | str) -> str:
    """Return the text of the leading "# Title" line of the node's README.md."""
    path = Path(nodedir) / NODE_DOC
    with path.open(encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            m = _TITLE_RE.match(line.rstrip("\n"))
            if m is None:
                msg = f"no title heading in {path}"
                raise TitleNotFoundError(msg)
            return m.group(1)
    msg = f"empty node document: {path}"
    raise TitleNotFoundError(msg)
