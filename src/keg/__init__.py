"""Knowledge exchange graph: numbered node directories plus a derived dex.

Layout:
    keg                     # metadata, "updated:" kept in sync with the dex
    dex/
        latest.md           # "* <ts> [<title>](../<id>)" newest first (source for reads)
        nodes.tsv           # "<id>\t<title>\t<ts>" by id
    <id>/
        README.md           # node document, first line "# Title"

latest.md is both the human-readable list and the persisted form parsed
back by incremental updates. nodes.tsv is write-only from here.

Concurrent writes: each file is written to a .tmp sibling under
flock(LOCK_EX) and renamed into place once all files are staged.
"""

from keg.config import KegConfig, init_config, load_config
from keg.dex import dex_update, last, make_dex, read_dex, scan_dex, write_dex
from keg.models import Dex, DexEntry
from keg.parser import DexParseError, parse_dex

__all__ = [
    "Dex",
    "DexEntry",
    "DexParseError",
    "KegConfig",
    "dex_update",
    "init_config",
    "last",
    "load_config",
    "make_dex",
    "parse_dex",
    "read_dex",
    "scan_dex",
    "write_dex",
]
