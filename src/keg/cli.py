"""keg CLI — knowledge exchange graph backed by numbered node directories.

Commands:
    keg init [TITLE]           create keg file + dex/ and build the dex
    keg dex                    rebuild dex/latest.md and dex/nodes.tsv
    keg create                 make the next node and add it to the dex
    keg edit ID                edit a node's README.md, then update the dex
    keg update ID              re-read a node's title into the dex
    keg import SRC [ID]        move a directory in as a node
    keg last                   most recently updated node
    keg updated                time of the most recent update
    keg latest                 table of recently updated nodes
    keg publish                git pull/add/commit/push
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from keg.config import KegConfig, init_config, load_config
from keg.dex import dex_update, have_dex, last, make_dex, read_dex, updated_string
from keg.markup import NODE_DOC, read_title
from keg.models import DexEntry, format_iso
from keg.nodes import edit as edit_node
from keg.nodes import import_node, make_node, write_sample
from keg.publish import publish as publish_keg
from keg.scanner import node_paths

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_cfg(ctx: click.Context) -> KegConfig:
    try:
        return load_config(ctx.obj.get("root"))
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc


def _title_of(root: Path, node_id: int) -> str:
    try:
        return read_title(root / str(node_id))
    except (OSError, ValueError):
        return ""


def _update_node(root: Path, node_id: int) -> DexEntry:
    """Re-read the node's title and merge it into the dex."""
    if not (root / str(node_id)).is_dir():
        raise click.ClickException(f"Node not found: {node_id}")
    entry = DexEntry(node_id=node_id, title=_title_of(root, node_id))
    try:
        dex_update(root, entry)
    except (OSError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    return entry


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="keg")
@click.option("--dir", "root", default=None, help="Keg root (default: search upward from cwd)")
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stderr")
@click.pass_context
def cli(ctx: click.Context, root: str | None, verbose: bool) -> None:
    """keg — knowledge exchange graph."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["root"] = root


# ---------------------------------------------------------------------------
# keg init / keg dex
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("title", required=False)
@click.pass_context
def init(ctx: click.Context, title: str | None) -> None:
    """Create the keg file and dex/ directory, then build the dex."""
    root_path = Path(ctx.obj.get("root") or ".").resolve()
    try:
        kegfile = init_config(root_path, title=title)
        click.echo(f"Created {kegfile}")
    except FileExistsError:
        click.echo("keg file already exists — skipping init")

    cfg = load_config(root_path)
    cfg.ensure_dirs()
    try:
        dex = make_dex(cfg.root)
    except OSError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Indexed {len(dex)} nodes")


@cli.command("dex")
@click.pass_context
def dex_cmd(ctx: click.Context) -> None:
    """Rebuild dex/latest.md and dex/nodes.tsv from the node directories."""
    cfg = _load_cfg(ctx)
    try:
        dex = make_dex(cfg.root)
    except OSError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Indexed {len(dex)} nodes")


# ---------------------------------------------------------------------------
# keg create / edit / update / import
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--title", "-t", default=None, help="Write a README.md with this title")
@click.option("--sample", is_flag=True, help="Fill the node with the sample README.md")
@click.pass_context
def create(ctx: click.Context, title: str | None, sample: bool) -> None:
    """Create the next numbered node and add it to the dex."""
    cfg = _load_cfg(ctx)
    try:
        entry = make_node(cfg.root)
    except OSError as exc:
        raise click.ClickException(str(exc)) from exc

    if sample:
        write_sample(cfg.root, entry)
    elif title:
        readme = cfg.root / entry.slug / NODE_DOC
        readme.write_text(f"# {title}\n", encoding="utf-8")

    _update_node(cfg.root, entry.node_id)
    click.echo(entry.slug)


@cli.command()
@click.argument("node_id", type=int)
@click.pass_context
def edit(ctx: click.Context, node_id: int) -> None:
    """Edit a node's README.md in $EDITOR, then update the dex."""
    cfg = _load_cfg(ctx)
    if not (cfg.root / str(node_id)).is_dir():
        raise click.ClickException(f"Node not found: {node_id}")
    try:
        edit_node(cfg.root, node_id)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    _update_node(cfg.root, node_id)


@cli.command()
@click.argument("node_id", type=int)
@click.pass_context
def update(ctx: click.Context, node_id: int) -> None:
    """Re-read a node's title and merge it into the dex."""
    cfg = _load_cfg(ctx)
    entry = _update_node(cfg.root, node_id)
    click.echo(f"{entry.slug} {entry.title}")


@cli.command("import")
@click.argument("src", type=click.Path(exists=True, file_okay=False))
@click.argument("node_id", type=int, required=False)
@click.pass_context
def import_cmd(ctx: click.Context, src: str, node_id: int | None) -> None:
    """Move the SRC directory into the keg as a node (next id by default)."""
    cfg = _load_cfg(ctx)
    if node_id is None:
        _, _, high = node_paths(cfg.root)
        node_id = max(high, 0) + 1
    try:
        import_node(src, cfg.root, node_id)
    except OSError as exc:
        raise click.ClickException(str(exc)) from exc
    _update_node(cfg.root, node_id)
    click.echo(str(node_id))


# ---------------------------------------------------------------------------
# keg last / updated / latest
# ---------------------------------------------------------------------------


@cli.command("last")
@click.pass_context
def last_cmd(ctx: click.Context) -> None:
    """Show the most recently updated node."""
    cfg = _load_cfg(ctx)
    entry = last(cfg.root)
    if entry is None:
        raise click.ClickException("No dex entries — run `keg dex` first")
    click.echo(f"{entry.slug} {entry.title}")


@cli.command("updated")
@click.pass_context
def updated_cmd(ctx: click.Context) -> None:
    """Show when the keg was last updated."""
    cfg = _load_cfg(ctx)
    stamp = updated_string(cfg.root)
    if not stamp:
        raise click.ClickException("No dex timestamp — run `keg dex` first")
    click.echo(stamp)


@cli.command()
@click.option("--limit", "-l", default=10, show_default=True, help="Max nodes to list (0 = all)")
@click.pass_context
def latest(ctx: click.Context, limit: int) -> None:
    """List the most recently updated nodes."""
    from rich.console import Console
    from rich.markup import escape as _markup_escape
    from rich.table import Table

    cfg = _load_cfg(ctx)
    if not have_dex(cfg.root):
        raise click.ClickException("No dex found — run `keg dex` first")
    try:
        dex = read_dex(cfg.root).by_latest()
    except (OSError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    entries = list(dex) if limit <= 0 else list(dex)[:limit]
    title = f"keg — {cfg.title}" + (f" ({cfg.state})" if cfg.state else "")
    caption = "\n".join(_markup_escape(s) for s in (cfg.summary, cfg.url, cfg.creator) if s)
    table = Table(
        title=_markup_escape(title),
        caption=caption or None,
        show_header=True,
        header_style="bold",
    )
    table.add_column("ID", justify="right", no_wrap=True)
    table.add_column("Updated", style="dim", no_wrap=True)
    table.add_column("Title")
    for entry in entries:
        table.add_row(entry.slug, format_iso(entry.updated), _markup_escape(entry.title))
    Console().print(table)


# ---------------------------------------------------------------------------
# keg publish
# ---------------------------------------------------------------------------


@cli.command()
@click.pass_context
def publish(ctx: click.Context) -> None:
    """Commit and push the keg with the latest node title as message."""
    import subprocess

    cfg = _load_cfg(ctx)
    try:
        message = publish_keg(cfg.root)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Published: {message}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli(obj={}, standalone_mode=True)


if __name__ == "__main__":
    main()
