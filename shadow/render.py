"""Human-readable formatting for `shadow list` and friends."""

from datetime import datetime

from rich.table import Table


def format_size(size):
    """1536 -> '1.5 KB'. Binary units, one decimal above bytes."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {'KMGTPE'[exp]}B"


def format_age(created_at, now=None):
    if now is None:
        now = datetime.now(created_at.tzinfo)
    seconds = (now - created_at).total_seconds()
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{int(seconds // 60)}m ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h ago"
    return f"{int(seconds // 86400)}d ago"


def files_table(version_list, store_root):
    table = Table(title=f"Files tracked in shadow ({store_root})")
    table.add_column("File", style="bold")
    table.add_column("Versions", justify="right")
    table.add_column("Size", justify="right", style="dim")

    for entry in version_list:
        table.add_row(entry.path, str(len(entry.versions)), format_size(entry.total_size))
    return table


def versions_table(entry, missing=()):
    """One row per version, newest first. Ids in `missing` are flagged."""
    table = Table(title=entry.path)
    table.add_column("ID", style="bold cyan")
    table.add_column("Created", style="dim")
    table.add_column("Tags", style="yellow")
    table.add_column("Size", justify="right", style="dim")
    table.add_column("Notes", max_width=50)

    for v in entry.versions:
        version_id = f"{v.id} [red](missing blob)[/red]" if v.id in missing else v.id
        table.add_row(
            version_id,
            format_age(v.created_at),
            ", ".join(v.tags),
            format_size(v.size),
            v.notes,
        )
    return table
