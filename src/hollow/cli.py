"""CLI interface for Hollow."""

from __future__ import annotations

import json
import logging
import sys
import time
from pathlib import Path

import click

from hollow.core.engine import HollowEngine
from hollow.core.privileges import delete_paths_as_root
from hollow.models.hierarchy import DirectoryHierarchy
from hollow.settings import Settings, SettingsError
from hollow.utils import format_elapsed, plural


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _build_engine(include_hidden: bool | None) -> HollowEngine:
    settings = Settings.instance()
    if include_hidden is None:
        include_hidden = settings.include_hidden
    return HollowEngine(
        include_hidden=include_hidden,
        bundle_suffixes=settings.bundle_suffixes,
    )


def _run_scan(engine: HollowEngine, path: Path) -> float:
    """Scan synchronously, returning the elapsed time."""
    start = time.monotonic()
    engine.start_scan(path).result()
    return time.monotonic() - start


def _print_tree(hierarchy: DirectoryHierarchy, prefix: str = "") -> None:
    for node in hierarchy.iter_nodes():
        indent = "  " * (node.depth - hierarchy.depth)
        click.echo(f"{prefix}{indent}{click.style(node.name + '/', fg='cyan')}")


hidden_option = click.option(
    "--count-hidden/--ignore-hidden",
    "include_hidden",
    default=None,
    help="Whether hidden files count as content (default from settings)",
)


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """Hollow: find and remove empty directory trees."""
    _setup_logging(verbose)


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path))
@hidden_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scan(path: Path, include_hidden: bool | None, as_json: bool) -> None:
    """Find empty folders below PATH (preview only, never deletes)."""
    engine = _build_engine(include_hidden)
    root = path.resolve()

    if not as_json:
        click.echo(f"\n{click.style('🔍', bold=True)} Scanning {root}...\n")

    elapsed = _run_scan(engine, root)
    engine.shutdown()
    state = engine.state

    if as_json:
        click.echo(json.dumps(state.to_dict(), indent=2))
        return

    if state.last_error:
        click.echo(click.style(state.last_error, fg="red"), err=True)
        sys.exit(1)

    if not state.empty_folders:
        click.echo("No empty folders found.")
        return

    for hierarchy in state.empty_folders:
        _print_tree(hierarchy, prefix="  ")

    total = sum(h.folder_count for h in state.empty_folders)
    click.echo(
        f"\nFound {click.style(plural(total, 'empty folder'), fg='green', bold=True)} "
        f"in {plural(len(state.empty_folders), 'tree')} ({format_elapsed(elapsed)})\n"
    )


# ── clean ────────────────────────────────────────────────────────────────

@main.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path))
@hidden_option
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--dry-run", is_flag=True, help="Show what would be deleted without doing it")
@click.option("--no-elevate", is_flag=True, help="Never ask for administrator privileges")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def clean(
    path: Path,
    include_hidden: bool | None,
    yes: bool,
    dry_run: bool,
    no_elevate: bool,
    as_json: bool,
) -> None:
    """Scan PATH and delete the empty folders found."""
    settings = Settings.instance()
    engine = _build_engine(include_hidden)
    root = path.resolve()

    if not as_json:
        click.echo(f"\n{click.style('🔍', bold=True)} Scanning {root}...\n")

    _run_scan(engine, root)
    state = engine.state

    if state.last_error:
        engine.shutdown()
        click.echo(click.style(state.last_error, fg="red"), err=True)
        sys.exit(1)

    if not state.empty_folders:
        engine.shutdown()
        if as_json:
            click.echo(json.dumps({"status": "nothing_to_clean", "results": []}))
        else:
            click.echo("Nothing to clean.")
        return

    if not as_json:
        for i, hierarchy in enumerate(state.empty_folders, 1):
            extra = f" (+{plural(hierarchy.folder_count - 1, 'subfolder')})" if hierarchy.children else ""
            click.echo(f"  [{i}] {hierarchy.path}{extra}")
        total = sum(h.folder_count for h in state.empty_folders)
        click.echo(f"\nTotal: {click.style(plural(total, 'empty folder'), fg='green', bold=True)}\n")

    if dry_run:
        engine.shutdown()
        if as_json:
            data = [h.to_dict() for h in state.empty_folders]
            click.echo(json.dumps({"status": "dry_run", "results": data}, indent=2))
        else:
            click.echo("(dry run, no folders were deleted)")
        return

    if not yes and not as_json and settings.confirm:
        choice = click.prompt("Delete all? [y/N/select]", default="n", show_default=False)
        match choice.lower():
            case "y" | "yes":
                pass
            case "select":
                selected = _interactive_select(state.empty_folders)
                if not selected:
                    engine.shutdown()
                    click.echo("Nothing selected.")
                    return
                state.empty_folders = [h for h in state.empty_folders if h.path in selected]
            case _:
                engine.shutdown()
                click.echo("Aborted.")
                return

    if not as_json:
        click.echo(f"\n{click.style('🧹', bold=True)} Deleting...\n")

    ask_for_elevation = not no_elevate and settings.ask_for_elevation
    engine.start_delete_all(ask_for_elevation=ask_for_elevation).result()
    engine.shutdown()

    stats = state.deletion_stats
    if as_json:
        click.echo(json.dumps({
            "status": "cleaned",
            "deletion_stats": stats.to_dict() if stats else None,
            "error": state.last_error,
            "remaining": [h.to_dict() for h in state.empty_folders],
        }, indent=2))
    else:
        deleted = stats.deleted if stats else 0
        click.echo(f"  {click.style('✓', fg='green')} Deleted {plural(deleted, 'folder tree')}")
        if state.last_error:
            click.echo(f"  {click.style('!', fg='yellow')} {state.last_error}")
        click.echo()

    if stats and stats.failed:
        sys.exit(1)


def _interactive_select(hierarchies: list[DirectoryHierarchy]) -> set[Path]:
    """Let the user pick which folder trees to delete."""
    click.echo("\nSelect folders to delete (enter numbers, comma-separated):\n")
    for i, h in enumerate(hierarchies, 1):
        click.echo(f"  [{i}] {h.path}")
    click.echo()
    raw = click.prompt("Selection", default="")
    if not raw.strip():
        return set()
    selected: set[Path] = set()
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit():
            idx = int(part) - 1
            if 0 <= idx < len(hierarchies):
                selected.add(hierarchies[idx].path)
    return selected


# ── delete-as-root (internal, hidden) ─────────────────────────────────────

@main.command("delete-as-root", hidden=True)
def delete_as_root() -> None:
    """Internal command invoked via pkexec to delete as root.

    Reads a JSON payload from stdin with the shape::

        {"paths": ["/abs/dir", ...], "include_hidden": true}

    Writes a JSON list of ``{"path", "error"}`` results to stdout.
    """
    try:
        raw = sys.stdin.read()
        payload = json.loads(raw)
        paths = payload["paths"]
        if not isinstance(paths, list):
            raise TypeError("'paths' must be a list")
    except (json.JSONDecodeError, TypeError, KeyError) as exc:
        click.echo(json.dumps([{"path": "", "error": f"Bad input: {exc}"}]))
        sys.exit(1)

    include_hidden = bool(payload.get("include_hidden", True))
    results = delete_paths_as_root([str(p) for p in paths], include_hidden)
    click.echo(json.dumps(results))


# ── config ───────────────────────────────────────────────────────────────

@main.group()
def config() -> None:
    """Settings management commands."""


@config.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def config_show(as_json: bool) -> None:
    """Show current settings."""
    settings = Settings.instance()
    values = settings.effective()
    if as_json:
        click.echo(json.dumps(values, indent=2))
        return
    click.echo(f"\n  {click.style('File:', bold=True)} {settings.path}\n")
    for key, value in values.items():
        click.echo(f"  {key:28s} {json.dumps(value)}")
    click.echo()


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Set KEY to VALUE (parsed as JSON, else taken as a string)."""
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        parsed = value
    try:
        Settings.instance().set(key, parsed)
    except SettingsError as e:
        click.echo(click.style(str(e), fg="red"), err=True)
        sys.exit(1)
    click.echo(f"{key} = {json.dumps(parsed)}")


# ── service ──────────────────────────────────────────────────────────────

@main.group()
def service() -> None:
    """D-Bus service management."""


@service.command("start")
def service_start() -> None:
    """Start the D-Bus service in foreground."""
    from hollow.dbus_service import start_service

    click.echo("Starting Hollow D-Bus service...")
    start_service()
