"""
Command-line interface for pacmap.
"""

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pacmap.config import (
    PLACEMENTS,
    get_simulation_config,
    is_verbose_enabled,
    set_placement,
    set_unique_edges,
    set_verbose,
)
from pacmap.errors import PackageQueryError
from pacmap.explorer import DEFAULT_STARTING_PACKAGE, PackageExplorer
from pacmap.external_tools import get_tool
from pacmap.force_graph import ForceGraph
from pacmap.layout import SimulationSettings
from pacmap.package_info import PackageInfo

# --- Typer App ---
app = typer.Typer()
console = Console()


# --- Helper Functions ---


def display_package(name: str, info: PackageInfo) -> None:
    """Print one package record."""
    table = Table(title=f"{name} {info.version or ''}".strip())
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")

    table.add_row("Depends On", "  ".join(info.depends) or "-")
    table.add_row("Required By", "  ".join(info.required_by) or "-")
    table.add_row("Installed Size", str(info.size))
    for dep in info.optional:
        table.add_row("Optional Dep", escape(f"{dep.package_name}: {dep.reason}"))
    for key, value in sorted(info.other.items()):
        table.add_row(key, escape(value))

    console.print(table)


def display_graph(explorer: PackageExplorer) -> None:
    """Print the nodes of the explored graph with their positions."""
    store = explorer.store
    table = Table(title="Package graph")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Package", style="cyan")
    table.add_column("Resolved", justify="center")
    table.add_column("Position", justify="right")
    table.add_column("Deps", justify="right")

    focus_id = explorer.focus_id
    for node in store.nodes():
        label = escape(node.label)
        if node.id == focus_id:
            label = f"[bold]{label}[/bold]"
        resolved = "[green]yes[/green]" if node.is_resolved else "[yellow]-[/yellow]"
        x, y = node.position
        deps = str(len(node.payload.depends)) if node.payload is not None else ""
        table.add_row(str(node.id), label, resolved, f"({x:.1f}, {y:.1f})", deps)

    console.print(table)
    console.print(
        f"[dim]{len(store)} nodes, {store.number_of_edges()} edges. "
        f"Selection history: {' > '.join(explorer.history)}[/dim]"
    )


# --- CLI Commands ---


@app.command()
def explore(
    starting_package: str = typer.Option(
        DEFAULT_STARTING_PACKAGE,
        "--starting-package",
        "-s",
        help="Package first highlighted.",
    ),
    select: list[str] | None = typer.Option(
        None,
        "--select",
        help="Packages to select in order, one per frame, after the start.",
    ),
    preload_all: bool = typer.Option(
        False,
        "--preload-all",
        help="Load every installed package record up front.",
    ),
    frames: int = typer.Option(
        60,
        "--frames",
        "-f",
        help="Number of layout frames to run.",
    ),
    active: bool | None = typer.Option(
        None,
        "--active/--inactive",
        help="Run the force simulation. If not specified, uses config file default.",
    ),
    placement: str | None = typer.Option(
        None,
        "--placement",
        help=f"Placement of new dependencies ({', '.join(PLACEMENTS)}).",
    ),
    unique_edges: bool = typer.Option(
        False,
        "--unique-edges",
        help="Never draw two edges between the same pair of packages.",
    ),
    perturb: bool = typer.Option(
        False,
        "--perturb",
        help="Run one settling pass of the force algorithm before the first frame.",
    ),
    verbose: bool | None = typer.Option(
        None,
        "--verbose",
        "-v",
        help="Enable verbose logging. If not specified, uses config file default.",
    ),
):
    """
    Explore the dependency graph of installed packages.

    Starts from one package, applies the given selections and runs the
    layout simulation for a number of frames, then prints the graph.

    Example:
        pacmap explore -s pacman --select curl --frames 200 --active
    """
    if verbose is not None:
        set_verbose(verbose)
    if placement is not None:
        if placement not in PLACEMENTS:
            console.print(
                f"[red]Invalid placement: {placement}. Must be one of: {', '.join(PLACEMENTS)}[/red]"
            )
            raise typer.Exit(code=1)
        set_placement(placement)
    if unique_edges:
        set_unique_edges(True)
    if frames < 0:
        console.print("[red]Invalid frames value. Must be a positive integer.[/red]")
        raise typer.Exit(code=1)

    try:
        settings = SimulationSettings.from_config(get_simulation_config())
    except (ValueError, TypeError) as e:
        console.print(f"[red]Invalid simulation settings: {e}[/red]")
        raise typer.Exit(code=1)
    if active is not None:
        settings = settings._replace(active=active)

    tool = get_tool()
    if not tool.is_available():
        console.print(
            f"[yellow]⚠️  {tool.name} not found; packages will stay unresolved.[/yellow]"
        )

    try:
        explorer = PackageExplorer.start(
            tool,
            starting_package=starting_package,
            preload_all=preload_all,
            force_graph=ForceGraph(settings=settings, initial_perturbation=perturb),
        )
    except PackageQueryError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if explorer.package_info(starting_package) is None:
        console.print(
            f"[yellow]No package info for {starting_package}, "
            "relaunch with a different starting package.[/yellow]"
        )

    pending = list(select or [])
    for frame in range(max(frames, len(pending))):
        if pending:
            explorer.select(pending.pop(0))
        explorer.update()
        if is_verbose_enabled() and frame % 50 == 0:
            console.print(f"[dim]Frame {frame}: {len(explorer.store)} nodes[/dim]")

    display_graph(explorer)


@app.command()
def info(
    package: str = typer.Argument(..., help="Installed package name."),
):
    """Show the parsed pacman record of one installed package."""
    tool = get_tool()
    try:
        name, package_info = tool.query_checked(package)
    except PackageQueryError as e:
        console.print(f"[red]{type(e).__name__}: {e}[/red]")
        raise typer.Exit(code=1)
    display_package(name, package_info)


if __name__ == "__main__":
    app()
