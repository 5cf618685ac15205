"""Command Line Interface for Grid Planner.

This module provides a CLI for serving projects, creating and inspecting
project files, applying operations and previewing derived walls.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import config
from .core.errors import PlannerError
from .core.ids import CounterIdFactory
from .core.topology import unpaired_stairs
from .engine.api import apply_all
from .engine.levels import create_default_project, replace_level_geometry
from .geom.selection import parse_cell_key
from .geom.shapes import circle_cells, perimeter_segments
from .io.codec import load_project, save_project

app = typer.Typer(
    name="gridplanner",
    help="A CLI tool for grid floor plan projects",
    no_args_is_help=True,
)
console = Console()


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@app.callback()
def main_callback(
    log_level: str = typer.Option(config.LOG_LEVEL, "--log-level", help="Logging level"),
):
    setup_logging(log_level)


@app.command()
def serve(
    host: str = typer.Option(config.SERVER_HOST, "--host", help="Interface to bind"),
    port: int = typer.Option(config.SERVER_PORT, "--port", "-p", help="Port to listen on"),
    data_dir: Path = typer.Option(Path(config.DATA_DIR), "--data-dir", help="Project storage directory"),
):
    """Run the project server."""
    from .sync.hub import ProjectHub
    from .sync.server import run_server
    from .sync.store import JsonDirectoryStore

    hub = ProjectHub(JsonDirectoryStore(str(data_dir)))
    console.print(f"[green]✓[/green] Loaded {len(hub.list_projects())} projects from {data_dir}")
    run_server(hub, host=host, port=port)


@app.command()
def new(
    name: str = typer.Argument(..., help="Project name"),
    output: Path = typer.Option(..., "--out", "-o", help="Path to output project JSON file"),
    project_id: str = typer.Option("project-1", "--id", help="Project id"),
):
    """Create a project file with the default levels."""
    project = create_default_project(project_id, name)
    save_project(project, str(output))
    console.print(f"[green]✓[/green] Created project '{name}' at {output}")


@app.command()
def info(
    project: Path = typer.Option(..., "--project", help="Path to project JSON file"),
):
    """Show levels and their contents."""
    try:
        project_obj = load_project(str(project))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        f"[bold]{project_obj.name}[/bold] ({project_obj.id}), version {project_obj.version}"
    )

    table = Table(title="Levels")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Elevation", justify="right")
    table.add_column("Rooms", justify="right")
    table.add_column("Walls", justify="right")
    table.add_column("Doors", justify="right")
    table.add_column("Windows", justify="right")
    table.add_column("Stairs", justify="right")

    for level in project_obj.sorted_levels():
        g = level.geometry
        table.add_row(
            level.id,
            level.name,
            str(level.elevation),
            str(len(g.rooms)),
            str(len(g.walls)),
            str(len(g.doors)),
            str(len(g.windows)),
            str(len(g.stairs)),
        )
    console.print(table)

    unpaired = unpaired_stairs(project_obj)
    if unpaired:
        console.print(f"[yellow]⚠ {len(unpaired)} stairs without a counterpart:[/yellow]")
        for stair in unpaired:
            console.print(f"  {stair.id} (link {stair.link_id or '-'}) -> {stair.target_level_id or '-'}")


@app.command()
def apply(
    project: Path = typer.Option(..., "--project", help="Path to project JSON file"),
    level: str = typer.Option(..., "--level", "-l", help="Level to edit"),
    operations: Path = typer.Option(..., "--ops", help="Path to JSON file with one operation or a list"),
    output: Path = typer.Option(..., "--out", help="Path to output project JSON file"),
):
    """Apply operations to one level of a project file."""
    try:
        project_obj = load_project(str(project))
        with open(operations, encoding="utf-8") as f:
            operations_data = json.load(f)
        if isinstance(operations_data, dict):
            operations_data = [operations_data]

        level_obj = project_obj.level(level)
        if level_obj is None:
            console.print(f"[red]Error: Level '{level}' not found[/red]")
            raise typer.Exit(1)

        geometry = apply_all(level_obj.geometry, operations_data, CounterIdFactory())
        save_project(replace_level_geometry(project_obj, level, geometry), str(output))
        console.print(f"[green]✓[/green] Applied {len(operations_data)} operations, saved to {output}")
    except (FileNotFoundError, json.JSONDecodeError, ValueError, PlannerError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _parse_cells(text: str) -> List:
    return [parse_cell_key(part.strip()) for part in text.split(";") if part.strip()]


@app.command()
def perimeter(
    cells: Optional[str] = typer.Option(None, "--cells", help='Cells as "x,y;x,y;..."'),
    circle: Optional[str] = typer.Option(None, "--circle", help='Circle as "CX,CY,R"'),
):
    """Show the merged walls around a cell set or circle."""
    try:
        if circle:
            cx, cy, r = (float(v) for v in circle.split(","))
            cell_set = circle_cells(cx, cy, r)
        elif cells:
            cell_set = _parse_cells(cells)
        else:
            console.print("[red]Error: give --cells or --circle[/red]")
            raise typer.Exit(1)
        segments = perimeter_segments(cell_set)
    except (ValueError, PlannerError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"{len(segments)} walls")
    table.add_column("From", style="cyan")
    table.add_column("To", style="cyan")
    table.add_column("Orientation")
    table.add_column("Length", justify="right")
    for edge in segments:
        table.add_row(
            f"({edge.x1}, {edge.y1})",
            f"({edge.x2}, {edge.y2})",
            "horizontal" if edge.horizontal else "vertical",
            str(edge.length),
        )
    console.print(table)


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
