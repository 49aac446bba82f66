"""Parse dex/latest.md back into a Dex.

Each line must match the entry grammar exactly:

    * 2023-01-02T15:04:05Z [Some title](../42)

There is no partial result: the first bad line (blank lines included)
fails the whole parse.
"""

from __future__ import annotations

import re

from keg.models import ISO_DATE_EXP, Dex, DexEntry, parse_iso

LATEST_DEX_ENTRY_RE = re.compile(
    rf"^\* ({ISO_DATE_EXP}) \[(.*)\]\(\.\./([0-9]+)\)$",
)


class DexParseError(ValueError):
    """A latest.md line that does not match the entry grammar."""

    def __init__(self, line: int) -> None:
        self.line = line
        super().__init__(f"bad line in latest.md: {line}")


def _split_lines(text: str) -> list[str]:
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


def parse_dex(data: str | bytes) -> Dex:
    """Parse latest.md content into a Dex, keeping file order."""
    text = data.decode("utf-8") if isinstance(data, bytes) else data
    dex = Dex()
    for lineno, line in enumerate(_split_lines(text), start=1):
        m = LATEST_DEX_ENTRY_RE.match(line)
        if m is None:
            raise DexParseError(lineno)
        try:
            updated = parse_iso(m.group(1))
        except ValueError as exc:
            # shape matched but not a real date, e.g. month 13
            raise DexParseError(lineno) from exc
        dex.add(DexEntry(node_id=int(m.group(3)), title=m.group(2), updated=updated))
    return dex
