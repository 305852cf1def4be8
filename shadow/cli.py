import os
import sys
from datetime import datetime
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from shadow.config import SETTABLE_KEYS, find_config, init_config, load_config, save_global_config
from shadow.credentials import CREDENTIALS_FILE, load_credentials, save_credential
from shadow.errors import NotFoundError, ShadowError
from shadow.fingerprint import full_hash
from shadow.log import read_logs, write_log
from shadow.render import files_table, format_age, format_size, versions_table
from shadow.repo import absolute_path, resolve_store
from shadow.snapshot import create_snapshot_store
from shadow.versions import load_list
from shadow.workflow import delete_version, describe, restore_version, save_version


def _fail(error):
    Console(stderr=True).print(f"[red]Error:[/red] {escape(str(error))}")
    raise SystemExit(1)


def _split_tags(values):
    """['a, b', 'c'] -> ['a', 'b', 'c']. Empty pieces are dropped."""
    tags = []
    for value in values:
        tags.extend(t.strip() for t in value.split(",") if t.strip())
    return tags


def _resolve(path):
    config = load_config()
    return config, resolve_store(path, config["repo_path"])


@click.group()
@click.version_option(version="0.1.0")
def main():
    """shadow: lightweight per-file snapshots without git."""
    load_credentials()


@main.command()
@click.argument("file", type=click.Path())
@click.option("-t", "--tag", "tags", multiple=True, help="Tag for this version (repeatable, or comma-separated).")
@click.option("-n", "--note", "notes", default="", help="Notes for this version.")
def save(file, tags, notes):
    """Save the current content of FILE as a new version."""
    console = Console()
    if not Path(file).is_file():
        _fail(NotFoundError(f"File not found: {file}"))

    tags = _split_tags(tags)
    if not tags and not notes and sys.stdin.isatty():
        tags = _split_tags([click.prompt("Tags (comma-separated)", default="", show_default=False)])
        notes = click.prompt("Notes", default="", show_default=False)

    try:
        config, store_root = _resolve(file)
        version = save_version(store_root, file, tags, notes, snapshots=create_snapshot_store(config))
    except ShadowError as e:
        _fail(e)

    write_log({
        "event": "save",
        "file": absolute_path(file),
        "version": version.id,
        "store": str(store_root),
        "tags": list(version.tags),
    })
    console.print(f"[green]✓[/green] Saved version [bold cyan]{version.id}[/bold cyan] of {escape(file)}")


@main.command("list")
@click.argument("file", required=False, type=click.Path())
@click.option("--check", is_flag=True, help="Flag versions whose snapshot blob is missing.")
def list_cmd(file, check):
    """List tracked files, or the versions of FILE."""
    console = Console()
    try:
        config, store_root = _resolve(file or os.getcwd())
        if file is None:
            version_list = load_list(store_root)
            if not len(version_list):
                console.print("[dim]No files tracked yet.[/dim]")
                return
            console.print(files_table(version_list, store_root))
            return

        entry, _ = describe(store_root, file)
        missing = set()
        if check:
            snapshots = create_snapshot_store(config)
            missing = {v.id for v in entry.versions if not snapshots.exists(store_root, v.id)}
    except ShadowError as e:
        _fail(e)

    if os.path.isfile(file):
        head = f"→ VIRTUAL HEAD (current: {format_size(os.path.getsize(file))})"
        newest = entry.versions[0]
        try:
            if full_hash(file) == newest.hash:
                head += f" unchanged since {newest.id}"
        except ShadowError as e:
            _fail(e)
        console.print(f"[green]{head}[/green]")
    else:
        console.print("[green]→ VIRTUAL HEAD (file not found)[/green]")
    console.print(versions_table(entry, missing))
    if missing:
        console.print(f"[red]{len(missing)} version(s) reference a missing snapshot.[/red]")


@main.command()
@click.argument("file", type=click.Path())
@click.argument("version_id")
@click.option("--no-save", is_flag=True, help="Don't save current state before restoring.")
@click.option("-y", "--yes", is_flag=True, help="Save current state without asking.")
def restore(file, version_id, no_save, yes):
    """Restore FILE to VERSION_ID."""
    console = Console()
    try:
        config, store_root = _resolve(file)
        entry, _ = describe(store_root, file)
        if entry.get(version_id) is None:
            raise NotFoundError(f"Version not found: {version_id}")

        auto_save = False
        if not no_save:
            auto_save = yes or click.confirm("Save current state before restoring?", default=True)

        saved = restore_version(
            store_root, file, version_id,
            auto_save=auto_save,
            snapshots=create_snapshot_store(config),
        )
    except ShadowError as e:
        _fail(e)

    if saved:
        console.print(f"[green]✓[/green] Saved current state as [bold cyan]{saved.id}[/bold cyan]")
    write_log({
        "event": "restore",
        "file": absolute_path(file),
        "version": version_id,
        "store": str(store_root),
        "auto_save": saved.id if saved else None,
    })
    console.print(f"[green]✓[/green] Restored {escape(file)} to version [bold cyan]{version_id}[/bold cyan]")


@main.command()
@click.argument("file", type=click.Path())
@click.argument("version_id")
@click.option("-f", "--force", is_flag=True, help="Skip confirmation prompt.")
def delete(file, version_id, force):
    """Delete VERSION_ID of FILE and its snapshot."""
    console = Console()
    try:
        config, store_root = _resolve(file)
        entry, _ = describe(store_root, file)
        version = entry.get(version_id)
        if version is None:
            raise NotFoundError(f"Version not found: {version_id}")
    except ShadowError as e:
        _fail(e)

    console.print(f"Version [bold cyan]{version.id}[/bold cyan] of {escape(file)}")
    console.print(f"  Created: {version.created_at.strftime('%Y-%m-%d %H:%M:%S')}")
    if version.tags:
        console.print(f"  Tags: {escape(', '.join(version.tags))}")
    if version.notes:
        console.print(f"  Notes: {escape(version.notes)}")
    console.print(f"  Size: {format_size(version.size)}")

    if not force and not click.confirm("\nDelete this version?", default=False):
        console.print("[dim]Cancelled.[/dim]")
        return

    try:
        delete_version(store_root, file, version_id, snapshots=create_snapshot_store(config))
    except ShadowError as e:
        _fail(e)

    write_log({
        "event": "delete",
        "file": absolute_path(file),
        "version": version_id,
        "store": str(store_root),
    })
    console.print(f"[green]✓[/green] Deleted version [bold cyan]{version_id}[/bold cyan]")


@main.command()
@click.option("--repo-path", default=None, help="Where stores live: ./ (default), ~/X, relative or absolute path.")
def init(repo_path):
    """Create a .shadowconfig in the current directory."""
    existing = find_config()
    if existing and existing.parent == Path.cwd():
        click.echo(".shadowconfig already exists.")
        return
    config_path = init_config(repo_path=repo_path)
    click.echo(f"Created {config_path}")


@main.command("config")
@click.argument("key", required=False, type=click.Choice(SETTABLE_KEYS))
@click.argument("value", required=False)
def config_cmd(key, value):
    """Show the effective config, or set KEY to VALUE globally."""
    console = Console()
    if key is None:
        try:
            config = load_config()
        except ShadowError as e:
            _fail(e)
        table = Table(title="Effective config")
        table.add_column("Key", style="bold")
        table.add_column("Value")
        for k, v in config.items():
            table.add_row(k, str(v))
        console.print(table)
        return

    if value is None:
        _fail(click.UsageError(f"Missing value for {key}"))
    save_global_config({key: value})
    console.print(f"Set [bold]{key}[/bold] = {escape(value)}")


@main.command()
@click.argument("key")
@click.argument("value")
def auth(key, value):
    """Save a credential (e.g. AWS_ACCESS_KEY_ID for S3 snapshots)."""
    save_credential(key, value)
    click.echo(f"Saved {key} to {CREDENTIALS_FILE}")


@main.command()
@click.argument("file", required=False, type=click.Path())
@click.option("-n", "--limit", default=20, help="Number of log entries to show.")
def logs(file, limit):
    """Show the audit log, optionally for one FILE."""
    console = Console()
    entries = read_logs(absolute_path(file) if file else None)
    if not entries:
        console.print("[dim]No logs found.[/dim]")
        return

    table = Table(title="Shadow Log")
    table.add_column("Time", style="dim")
    table.add_column("Event", style="bold")
    table.add_column("File", max_width=50)
    table.add_column("Version", style="cyan")

    for entry in entries[-limit:]:
        ts = entry.get("timestamp", "")
        if ts:
            try:
                created = datetime.fromisoformat(ts)
                ts = f"{created.strftime('%m-%d %H:%M')} ({format_age(created)})"
            except ValueError:
                pass
        table.add_row(ts, entry.get("event", ""), entry.get("file", ""), entry.get("version", ""))

    console.print(table)
