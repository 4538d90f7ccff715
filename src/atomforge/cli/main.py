"""
atomforge command line.

Usage:
    atomforge init
    atomforge plan "Create a user management system with a User DTO, ..."
    atomforge plan --offline units.json --dry-run "ignored when offline"
    atomforge status --status pending
    atomforge layers
    atomforge validate
    atomforge set-status atom_001 completed
"""

from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path

import click

from atomforge.application.blackboard import Blackboard
from atomforge.application.planner import Planner
from atomforge.cli.config import Settings, load_settings
from atomforge.cli.console import (
    console,
    print_atoms,
    print_corrections,
    print_error,
    print_header,
    print_layers,
    print_report,
    print_success,
)
from atomforge.cli.logging_setup import setup_logging
from atomforge.domain.exceptions import (
    ConfigurationError,
    CycleDetectedError,
    DecompositionError,
)
from atomforge.domain.interfaces import DecomposerInterface
from atomforge.domain.models import AtomStatus
from atomforge.domain.validation import validate_layer_table, validate_plan
from atomforge.infrastructure.llm.mock import MockDecomposer, units_from_dicts
from atomforge.infrastructure.persistence.filesystem import FilesystemManifestStorage


def _open_blackboard(settings: Settings) -> Blackboard:
    storage = FilesystemManifestStorage(
        settings.workspace_root, settings.manifest_file_name
    )
    return Blackboard(storage, settings.blackboard)


def _offline_decomposer(path: Path) -> MockDecomposer:
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

    items = data.get("atoms") if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise ConfigurationError(f"Expected a list of units in {path}")
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict) or not item.get("id"):
            raise ConfigurationError(f"Unit #{index} in {path} is missing an id")
        if not isinstance(item.get("dependencies", []), list):
            raise ConfigurationError(
                f"Unit {item['id']} in {path} has non-list dependencies"
            )
    return MockDecomposer(responses=[units_from_dicts(items)])


def _online_decomposer(settings: Settings) -> DecomposerInterface:
    from openai import OpenAIError

    from atomforge.infrastructure.llm.openai_chat import OpenAIDecomposer

    try:
        return OpenAIDecomposer(settings.llm)
    except OpenAIError as e:
        raise ConfigurationError(str(e)) from e


@click.group()
@click.option(
    "--workspace",
    default=None,
    type=click.Path(file_okay=False),
    help="Workspace root holding the solution manifest",
)
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Path to atomforge.json (default: ./atomforge.json if present)",
)
@click.option("--log-file", default=None, type=click.Path(), help="Path to log file")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose (DEBUG) logging")
@click.pass_context
def cli(
    ctx: click.Context,
    workspace: str | None,
    config_path: str | None,
    log_file: str | None,
    verbose: bool,
) -> None:
    """Plan dependency-ordered atoms for a layered solution."""
    setup_logging("atomforge", log_file=log_file, verbose=verbose)
    try:
        settings = load_settings(Path(config_path) if config_path else None)
    except ConfigurationError as e:
        print_error(str(e))
        sys.exit(1)
    if workspace:
        settings.workspace_root = workspace
    ctx.obj = settings


@cli.command()
@click.pass_obj
def init(settings: Settings) -> None:
    """Create (or load) the workspace manifest."""
    blackboard = _open_blackboard(settings)
    print_header("Workspace ready", blackboard.location)
    print_layers(blackboard.layers())


@cli.command()
@click.argument("request")
@click.option("--context", default="", help="Extra context for the decomposer")
@click.option("--dry-run", is_flag=True, help="Print the plan without persisting it")
@click.option("--max-repairs", default=None, type=int, help="Cycle repair attempts")
@click.option(
    "--offline",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file of units to plan instead of calling the LLM",
)
@click.option(
    "--delegate-repairs/--no-delegate-repairs",
    default=None,
    help="Ask the decomposer to fix cycles before removing edges",
)
@click.pass_obj
def plan(
    settings: Settings,
    request: str,
    context: str,
    dry_run: bool,
    max_repairs: int | None,
    offline: str | None,
    delegate_repairs: bool | None,
) -> None:
    """Decompose REQUEST into atoms, order them and store the plan."""
    planner_config = settings.planner
    if max_repairs is not None:
        planner_config = replace(planner_config, max_cycle_repairs=max_repairs)
    if delegate_repairs is not None:
        planner_config = replace(planner_config, delegate_repairs=delegate_repairs)

    try:
        decomposer = (
            _offline_decomposer(Path(offline))
            if offline
            else _online_decomposer(settings)
        )
    except ConfigurationError as e:
        print_error(str(e), hint="Set OPENAI_API_KEY or use --offline")
        sys.exit(1)

    blackboard = _open_blackboard(settings)
    layers = blackboard.layers()
    planner = Planner(decomposer, planner_config)

    try:
        result = asyncio.run(planner.generate_plan(request, context, layers=layers))
    except CycleDetectedError as e:
        print_error(str(e), hint="Break the cycle in the request or raise --max-repairs")
        sys.exit(1)
    except DecompositionError as e:
        print_error(f"Decomposition failed: {e}")
        sys.exit(1)

    print_atoms(result.atoms, title="Plan")
    print_corrections(result.corrections)
    if result.repairs:
        console.print(f"[yellow]Cycle repairs applied: {result.repairs}[/yellow]")
    print_report(validate_plan(result.atoms, layers))

    if dry_run:
        console.print("[dim]Dry run, manifest not updated[/dim]")
        return

    blackboard.upsert_atoms(result.atoms)
    if not blackboard.auto_save and not blackboard.save():
        print_error(f"Could not write {blackboard.location}")
        sys.exit(1)
    print_success(f"Stored {len(result.atoms)} atoms in {blackboard.location}")


@cli.command()
@click.option(
    "--status",
    "status_filter",
    default=None,
    type=click.Choice([s.value for s in AtomStatus]),
    help="Only show atoms with this status",
)
@click.pass_obj
def status(settings: Settings, status_filter: str | None) -> None:
    """List atoms in the manifest."""
    blackboard = _open_blackboard(settings)
    if status_filter:
        atoms = blackboard.atoms_by_status(AtomStatus(status_filter))
    else:
        atoms = blackboard.atoms()
    print_atoms(atoms)
    console.print(f"Ready to start: {len(blackboard.ready_atoms())}")


@cli.command()
@click.pass_obj
def layers(settings: Settings) -> None:
    """Show the layer policy."""
    print_layers(_open_blackboard(settings).layers())


@cli.command()
@click.pass_obj
def validate(settings: Settings) -> None:
    """Check stored atoms against the layer policy."""
    blackboard = _open_blackboard(settings)
    layer_table = blackboard.layers()

    problems = validate_layer_table(layer_table)
    for problem in problems:
        console.print(f"[bold red]error[/bold red]   {problem}")

    report = validate_plan(blackboard.atoms(), layer_table)
    print_report(report)
    if problems or not report.is_valid:
        sys.exit(1)


@cli.command("set-status")
@click.argument("atom_id")
@click.argument("new_status", type=click.Choice([s.value for s in AtomStatus]))
@click.pass_obj
def set_status(settings: Settings, atom_id: str, new_status: str) -> None:
    """Set the status of ATOM_ID."""
    blackboard = _open_blackboard(settings)
    if not blackboard.update_atom_status(atom_id, AtomStatus(new_status)):
        print_error(f"Unknown atom: {atom_id}")
        sys.exit(1)
    if not blackboard.auto_save:
        blackboard.save()
    console.print(f"{atom_id} -> {new_status}")


if __name__ == "__main__":
    cli()
