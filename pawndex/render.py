"""
Rendering functions for pawndex output.

This module handles all pretty-printing and table formatting.
Commands return data, this module makes it human-readable.
"""

from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from .domain.package import Entry, Package

console = Console()

CLASSIFICATION_STYLES = {
    'full': 'green',
    'basic': 'yellow',
    'buried': 'dim',
}


def _table(title: Optional[str] = None) -> Table:
    return Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )


def render_table(headers: List[str], rows: List[List[Any]], title: Optional[str] = None) -> None:
    """
    Render a generic table with the given headers and rows.

    Args:
        headers: List of column headers
        rows: List of rows, where each row is a list of values
        title: Optional table title
    """
    if not rows:
        console.print("[yellow]No data to display.[/yellow]")
        return

    table = _table(title)
    for header in headers:
        table.add_column(header)
    for row in rows:
        table.add_row(*[str(val) for val in row])

    console.print(table)


def _classification_cell(value: str) -> str:
    style = CLASSIFICATION_STYLES.get(value)
    return f"[{style}]{value}[/{style}]" if style else value


def render_packages_table(packages: List[Package]) -> None:
    """Render the catalog as a table."""
    if not packages:
        console.print("[yellow]No packages indexed.[/yellow]")
        return

    table = _table("Pawn Packages")
    table.add_column("Package", style="cyan")
    table.add_column("Class")
    table.add_column("Stars", justify="right")
    table.add_column("Latest", style="green")
    table.add_column("Updated", style="dim")

    for package in packages:
        table.add_row(
            package.identifier,
            _classification_cell(package.classification.value),
            str(package.stars),
            package.latest_tag or "-",
            package.updated.strftime("%Y-%m-%d") if package.updated else "-",
        )

    console.print(table)
    console.print(f"[dim]{len(packages)} packages[/dim]")


def render_entries_table(entries: List[Entry], title: str = "Index Entries") -> None:
    """Render raw entries, including pending ones without a package."""
    if not entries:
        console.print("[yellow]No entries.[/yellow]")
        return

    table = _table(title)
    table.add_column("Identifier", style="cyan")
    table.add_column("Class")
    table.add_column("Pending")
    table.add_column("Last change", style="dim")

    for entry in entries:
        classification = entry.package.classification.value if entry.package else "-"
        table.add_row(
            entry.identifier,
            _classification_cell(classification),
            "⏳" if entry.marked else "",
            entry.updated_at or "-",
        )

    console.print(table)


def render_package(package: Package) -> None:
    """Render one package with its manifest."""
    table = _table(package.identifier)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Classification", _classification_cell(package.classification.value))
    table.add_row("Stars", str(package.stars))
    table.add_row("Updated", package.updated.isoformat() if package.updated else "-")
    table.add_row("Topics", ", ".join(package.topics) or "-")
    table.add_row("Tags", ", ".join(package.tags) or "-")

    manifest = package.manifest
    if manifest is not None:
        table.add_row("Entry", manifest.entry or "-")
        table.add_row("Output", manifest.output or "-")
        table.add_row("Dependencies", "\n".join(manifest.dependencies) or "-")
        table.add_row("Dev dependencies", "\n".join(manifest.dev_dependencies) or "-")
        table.add_row("Include path", manifest.include_path or "-")
        table.add_row("Website", manifest.website or "-")

    console.print(table)


def render_mapping(data: Dict[str, Any], title: Optional[str] = None) -> None:
    """Render a flat mapping (database info, daemon stats) as two columns."""
    table = _table(title)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in data.items():
        if isinstance(value, dict):
            value = ", ".join(f"{k}: {v}" for k, v in sorted(value.items())) or "-"
        table.add_row(key, str(value))
    console.print(table)
