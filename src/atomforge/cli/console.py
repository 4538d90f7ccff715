"""Rich console output for the atomforge CLI."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from atomforge.application.planner import PolicyCorrection
    from atomforge.domain.models import Atom, Layer
    from atomforge.domain.validation import ValidationReport

# Shared console instances
console = Console()
error_console = Console(stderr=True)

STATUS_STYLES = {
    "pending": "dim",
    "in_progress": "yellow",
    "review": "cyan",
    "completed": "green",
    "failed": "bold red",
}


def print_header(title: str, subtitle: str | None = None) -> None:
    """Print a styled header panel."""
    content = Text(title, style="bold blue")
    if subtitle:
        content.append(f"\n{subtitle}", style="dim")
    console.print(Panel(content, expand=False))


def print_error(message: str, hint: str | None = None) -> None:
    """Print formatted error message to stderr."""
    content = Text(f"ERROR: {message}", style="bold red")
    if hint:
        content.append(f"\n\nHint: {hint}", style="yellow")
    error_console.print(Panel(content, title="Error", border_style="red"))


def print_success(message: str) -> None:
    console.print(Panel(message, title="Success", border_style="green"))


def print_atoms(atoms: Sequence[Atom], title: str = "Atoms") -> None:
    """Print atoms in the given order."""
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Layer", style="magenta")
    table.add_column("Depends on")
    table.add_column("Status")

    for index, atom in enumerate(atoms, start=1):
        table.add_row(
            str(index),
            atom.atom_id,
            atom.name,
            atom.kind.value,
            atom.layer,
            ", ".join(atom.dependencies) or "-",
            Text(atom.status.value, style=STATUS_STYLES.get(atom.status.value, "")),
        )
    console.print(table)


def print_layers(layers: Mapping[str, Layer]) -> None:
    table = Table(title="Layers")
    table.add_column("Layer", style="magenta")
    table.add_column("May depend on")
    table.add_column("Description", style="dim")
    for name, layer in layers.items():
        table.add_row(
            name,
            ", ".join(sorted(layer.allowed_dependencies)) or "(nothing)",
            layer.description,
        )
    console.print(table)


def print_corrections(corrections: Sequence[PolicyCorrection]) -> None:
    if not corrections:
        return
    console.print("[yellow]Policy corrections:[/yellow]")
    for correction in corrections:
        console.print(
            f"  - {correction.atom_id}: removed {', '.join(correction.removed)} "
            f"[dim]({correction.reason})[/dim]"
        )


def print_report(report: ValidationReport) -> None:
    """Print validation errors and warnings."""
    for error in report.errors:
        console.print(f"[bold red]error[/bold red]   {error}")
    for warning in report.warnings:
        console.print(f"[yellow]warning[/yellow] {warning}")
    if report.is_valid and not report.warnings:
        console.print("[green]No problems found[/green]")
