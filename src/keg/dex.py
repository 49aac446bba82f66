"""Build, update and persist the keg dex.

The dex is a pure derived view of the node directories; delete dex/ and
rebuild anytime.

Entry points:
    make_dex(kegpath)              # full rebuild from a directory scan
    dex_update(kegpath, entry)     # incremental merge of a single node

Files written (all relative to the keg root):
    dex/latest.md     # "* <ts> [<title>](../<id>)", newest first
    dex/nodes.tsv     # "<id>\t<title>\t<ts>", ascending id
    keg               # only the "updated:" line is rewritten

Writes are staged: every artifact goes to a uniquely named sibling .tmp
file under flock(LOCK_EX) first, and only once all of them are written
are they renamed into place. A failure while staging leaves the old dex
intact, and no .tmp file outlives the write.
"""

from __future__ import annotations

import fcntl
import logging
import os
import re
import stat
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from keg.markup import read_title
from keg.models import ISO_DATE_EXP, Dex, DexEntry, format_iso, parse_iso, utc_now
from keg.parser import DexParseError, parse_dex
from keg.scanner import latest_change, node_paths

if TYPE_CHECKING:
    from datetime import datetime

logger = logging.getLogger(__name__)

KEG_FILE = "keg"
DEX_DIR = "dex"
LATEST_FILE = "latest.md"
NODES_FILE = "nodes.tsv"

_UPDATED_RE = re.compile(r"^updated:[^\r\n]*", re.MULTILINE)
_ISO_DATE_RE = re.compile(ISO_DATE_EXP)


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

def _latest_path(kegpath: Path | str) -> Path:
    return Path(kegpath) / DEX_DIR / LATEST_FILE


def _nodes_path(kegpath: Path | str) -> Path:
    return Path(kegpath) / DEX_DIR / NODES_FILE


def _keg_path(kegpath: Path | str) -> Path:
    return Path(kegpath) / KEG_FILE


# ---------------------------------------------------------------------------
# Staged writes
# ---------------------------------------------------------------------------

def _stage(path: Path, text: str) -> Path:
    """Write text to a unique path.<rand>.tmp under exclusive flock.

    Concurrent writers never share a tmp file. Text is written as is, with
    no newline translation. Returns the tmp path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(dir=path.parent, prefix=path.name + ".", suffix=".tmp")
    tmp = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            fcntl.flock(f, fcntl.LOCK_EX)
            f.write(text)
        # mkstemp creates 0600; keep the mode of the file being replaced
        mode = stat.S_IMODE(path.stat().st_mode) if path.is_file() else 0o644
        tmp.chmod(mode)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    return tmp


def _commit(files: dict[Path, str]) -> None:
    """Stage every file, then rename them all into place.

    Any tmp file not renamed (staging or a rename failed) is removed.
    """
    staged: list[tuple[Path, Path]] = []
    try:
        for path, text in files.items():
            staged.append((_stage(path, text), path))
        for tmp, path in staged:
            tmp.replace(path)
    finally:
        for tmp, _ in staged:
            tmp.unlink(missing_ok=True)


def _render_updated(kegpath: Path | str) -> str | None:
    """Keg file content with the updated: line set to now, or None if absent.

    Line endings are kept as found, so only the updated: line changes.
    """
    kegfile = _keg_path(kegpath)
    with kegfile.open(encoding="utf-8", newline="") as f:
        text = f.read()
    stamp = f"updated: {format_iso(utc_now())}"
    new_text, n = _UPDATED_RE.subn(lambda _m: stamp, text)
    if n == 0:
        logger.warning("no updated: field in %s, leaving it unchanged", kegfile)
        return None
    return new_text


def _write_all(kegpath: Path | str, latest: str, nodes: str) -> None:
    files = {_latest_path(kegpath): latest, _nodes_path(kegpath): nodes}
    keg_text = _render_updated(kegpath)
    if keg_text is not None:
        files[_keg_path(kegpath)] = keg_text
    _commit(files)


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------

def scan_dex(kegpath: Path | str) -> Dex:
    """Build a Dex from the node directories, most recently changed first."""
    dirs, _, _ = node_paths(kegpath)
    changes = {d.node_id: latest_change(d.path)[1] for d in dirs}
    # node_paths is id-ascending and sort() is stable, so ties stay in id order
    dirs.sort(key=lambda d: changes[d.node_id], reverse=True)

    dex = Dex()
    for d in dirs:
        try:
            title = read_title(d.path)
        except (OSError, ValueError) as exc:
            logger.debug("no title for node %d: %s", d.node_id, exc)
            title = ""
        dex.add(DexEntry(node_id=d.node_id, title=title, updated=changes[d.node_id]))
    return dex


def make_dex(kegpath: Path | str) -> Dex:
    """Rebuild dex/latest.md and dex/nodes.tsv from scratch.

    Any prior dex content is discarded. Returns the scanned Dex.
    """
    dex = scan_dex(kegpath)
    # markdown as scanned: already newest first
    _write_all(kegpath, dex.md(), dex.by_id().tsv())
    logger.info("dex rebuilt: %s (%d nodes)", kegpath, len(dex))
    return dex


def write_dex(kegpath: Path | str, dex: Dex) -> None:
    """Write both dex files (re-sorted) and refresh the keg updated: field."""
    _write_all(kegpath, dex.by_latest().md(), dex.by_id().tsv())


def update_updated(kegpath: Path | str) -> None:
    """Set the updated: line of the keg file to the current time."""
    keg_text = _render_updated(kegpath)
    if keg_text is not None:
        _commit({_keg_path(kegpath): keg_text})


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

def have_dex(kegpath: Path | str) -> bool:
    return _latest_path(kegpath).exists()


def read_dex(kegpath: Path | str) -> Dex:
    """Load dex/latest.md. Raises OSError or DexParseError."""
    return parse_dex(_latest_path(kegpath).read_bytes())


def last(kegpath: Path | str) -> DexEntry | None:
    """Most recently updated entry, parsed from the first line of latest.md."""
    try:
        with _latest_path(kegpath).open("rb") as f:
            line = f.readline()
    except OSError:
        return None
    if not line:
        return None
    try:
        dex = parse_dex(line)
    except (DexParseError, UnicodeDecodeError):
        return None
    return dex[0]


def updated(kegpath: Path | str) -> datetime:
    """Timestamp of the first entry in latest.md (no full-line validation)."""
    path = _latest_path(kegpath)
    m = _ISO_DATE_RE.search(path.read_text(encoding="utf-8"))
    if m is None:
        msg = f"no timestamp found in {path}"
        raise ValueError(msg)
    return parse_iso(m.group(0))


def updated_string(kegpath: Path | str) -> str:
    """updated() formatted with ISO_DATE_FMT, or "" if it cannot be read."""
    try:
        return format_iso(updated(kegpath))
    except (OSError, ValueError) as exc:
        logger.warning("cannot read dex updated time: %s", exc)
        return ""


# ---------------------------------------------------------------------------
# Incremental
# ---------------------------------------------------------------------------

def dex_update(kegpath: Path | str, entry: DexEntry) -> Dex:
    """Merge a single entry into the persisted dex.

    Builds the dex first if there is none. The entry is stamped with the
    current time; an existing entry with the same id gets the new title and
    time in place, otherwise the entry is appended. Returns the written Dex.
    """
    if not have_dex(kegpath):
        make_dex(kegpath)
    entry.touch()
    dex = read_dex(kegpath)
    found = dex.lookup(entry.node_id)
    if found is None:
        dex.add(entry)
    else:
        found.title = entry.title
        found.updated = entry.updated
    write_dex(kegpath, dex)
    logger.info("dex updated: node %d", entry.node_id)
    return dex
