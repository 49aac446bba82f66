"""Data models for the keg dex: DexEntry and Dex."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

# Written to latest.md and nodes.tsv, and matched by the parser.
ISO_DATE_FMT = "%Y-%m-%dT%H:%M:%SZ"
ISO_DATE_EXP = r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}Z"


def utc_now() -> datetime:
    """Current time in UTC, truncated to the second."""
    return datetime.now(UTC).replace(microsecond=0)


def format_iso(dt: datetime) -> str:
    return dt.astimezone(UTC).strftime(ISO_DATE_FMT)


def parse_iso(text: str) -> datetime:
    """Parse an ISO_DATE_FMT timestamp into an aware UTC datetime."""
    return datetime.strptime(text, ISO_DATE_FMT).replace(tzinfo=UTC)


@dataclass
class DexEntry:
    """A single dex record: one node of the keg."""

    node_id: int
    title: str = ""
    updated: datetime = field(default_factory=utc_now)

    @property
    def slug(self) -> str:
        """Node directory name."""
        return str(self.node_id)

    def touch(self) -> None:
        """Stamp the entry as updated now. Called when merged into a dex."""
        self.updated = utc_now()

    def md(self) -> str:
        return f"* {format_iso(self.updated)} [{self.title}](../{self.node_id})"

    def tsv(self) -> str:
        return f"{self.node_id}\t{self.title}\t{format_iso(self.updated)}"


@dataclass
class Dex:
    """Ordered collection of DexEntry.

    Order is insertion order. Sorted views are produced on demand by
    by_id() and by_latest() and never change the receiver.
    """

    entries: list[DexEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[DexEntry]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> DexEntry:
        return self.entries[index]

    def add(self, entry: DexEntry) -> None:
        """Append without checking for a duplicate id."""
        self.entries.append(entry)

    def lookup(self, node_id: int) -> DexEntry | None:
        """Return the entry with node_id (the element itself), or None."""
        for entry in self.entries:
            if entry.node_id == node_id:
                return entry
        return None

    def by_id(self) -> Dex:
        return Dex(sorted(self.entries, key=lambda e: e.node_id))

    def by_latest(self) -> Dex:
        # sorted() stays stable with reverse=True: ties keep insertion order
        return Dex(sorted(self.entries, key=lambda e: e.updated, reverse=True))

    def md(self) -> str:
        return "".join(e.md() + "\n" for e in self.entries)

    def tsv(self) -> str:
        return "".join(e.tsv() + "\n" for e in self.entries)
