"""
Lazy, incremental growth of the package graph.

The explorer resolves packages on demand through a package manager wrapper
and adds their dependencies around the focused node without moving anything
already on screen.
"""

import math

from rich.console import Console

from pacmap.config import (
    get_placement,
    get_separation,
    is_unique_edges_enabled,
    is_verbose_enabled,
)
from pacmap.errors import PackageQueryError
from pacmap.external_tools.base import ExternalTool
from pacmap.force_graph import ForceGraph
from pacmap.graph_store import ORIGIN, NodeId, Position
from pacmap.package_info import PackageInfo

console = Console()

DEFAULT_STARTING_PACKAGE = "pacman"


def arc_offsets(count: int, separation: float) -> list[Position]:
    """Offsets spread evenly over a half-turn, starting at angle 0."""
    if count == 0:
        return []
    step = math.pi / count
    return [
        Position(separation * math.cos(i * step), separation * math.sin(i * step))
        for i in range(count)
    ]


def row_offsets(count: int, separation: float) -> list[Position]:
    """Offsets along a horizontal line one separation below, centred."""
    middle = (count - 1) / 2
    return [Position((i - middle) * separation, separation) for i in range(count)]


PLACEMENT_OFFSETS = {
    "arc": arc_offsets,
    "row": row_offsets,
}


class PackageExplorer:
    """
    Application state for exploring installed packages.

    Holds the ForceGraph, the focused package, the selection history and a
    single-slot mailbox for the next selection coming from the UI.
    """

    def __init__(
        self,
        tool: ExternalTool,
        force_graph: ForceGraph | None = None,
        placement: str | None = None,
        separation: float | None = None,
        unique_edges: bool | None = None,
    ):
        self.tool = tool
        self.force_graph = force_graph or ForceGraph.empty()
        self.placement = placement or get_placement()
        if self.placement not in PLACEMENT_OFFSETS:
            raise ValueError(f"Unknown placement: {self.placement}")
        self.separation = separation if separation is not None else get_separation()
        self.unique_edges = (
            unique_edges if unique_edges is not None else is_unique_edges_enabled()
        )
        self.current: str | None = None
        self.history: list[str] = []
        self.pending_selection: str | None = None
        self.preloaded: dict[str, PackageInfo] = {}

    @classmethod
    def start(
        cls,
        tool: ExternalTool,
        starting_package: str | None = None,
        preload_all: bool = False,
        **kwargs,
    ) -> "PackageExplorer":
        """Create an explorer focused on `starting_package` and load it."""
        explorer = cls(tool, **kwargs)
        if preload_all:
            explorer.preload_all()
        current = starting_package or DEFAULT_STARTING_PACKAGE
        explorer.current = current
        explorer.history.append(current)
        explorer.ensure_loaded(current)
        return explorer

    @property
    def store(self):
        return self.force_graph.store

    @property
    def focus_id(self) -> NodeId | None:
        if self.current is None:
            return None
        return self.store.lookup(self.current)

    def preload_all(self) -> int:
        """
        Load every installed package record up front.

        Later lookups are answered from this table instead of spawning the
        package manager once per package.

        Returns:
            Number of records loaded; 0 when the package manager failed, in
            which case packages are queried one by one.
        """
        try:
            self.preloaded = self.tool.query_all()
        except PackageQueryError as e:
            if is_verbose_enabled():
                console.print(f"[dim]Preloading failed, querying on demand: {e}[/dim]")
            self.preloaded = {}
        return len(self.preloaded)

    def _fetch(self, name: str) -> PackageInfo | None:
        info = self.preloaded.get(name)
        if info is not None:
            return info
        result = self.tool.query(name)
        if result is None:
            if is_verbose_enabled():
                console.print(f"[dim]No package info for {name}[/dim]")
            return None
        return result[1]

    def package_info(self, name: str) -> PackageInfo | None:
        node = self.store.node_by_label(name)
        if node is None:
            return None
        return node.payload

    def ensure_loaded(self, name: str) -> PackageInfo | None:
        """
        Resolve `name` if its node is missing or has no payload.

        Query failures leave the node unresolved.

        Returns:
            The package info, or None if it is not available.
        """
        node = self.store.node_by_label(name)
        if node is None or node.payload is None:
            info = self._fetch(name)
            if info is not None:
                self.add_package_and_deps(name, info)
        return self.package_info(name)

    def _base_position(self) -> Position:
        if self.current is None:
            return ORIGIN
        node = self.store.node_by_label(self.current)
        if node is None:
            return ORIGIN
        return node.position

    def add_package_and_deps(self, name: str, info: PackageInfo) -> NodeId:
        """
        Add or update `name` and grow the graph with its dependencies.

        New dependency nodes are placed around the focused node, one edge is
        drawn from the package to each dependency. A package that was already
        resolved only has its payload replaced.

        Returns:
            The package's node id.
        """
        existing = self.store.node_by_label(name)
        if existing is not None and existing.is_resolved:
            existing.payload = info
            return existing.id

        base = self._base_position()
        package_id = self.force_graph.add_node(name, info, base)

        offsets = PLACEMENT_OFFSETS[self.placement](len(info.depends), self.separation)
        for dep, offset in zip(info.depends, offsets):
            dep_id = self.store.lookup(dep)
            if dep_id is None:
                dep_id = self.force_graph.add_node(dep, None, base + offset)
            self.force_graph.add_edge(package_id, dep_id, "", unique=self.unique_edges)

        if is_verbose_enabled():
            console.print(
                f"[dim]Added {name} with {len(info.depends)} dependencies[/dim]"
            )
        return package_id

    def select(self, label: str) -> None:
        """Record a user selection; it is applied on the next update()."""
        self.pending_selection = label

    def apply_selection(self) -> str | None:
        """
        Drain the pending selection and make it the focus.

        A package not yet in the graph is resolved relative to the old focus;
        a known but unresolved node is focused first so its dependencies grow
        around it.
        """
        label = self.pending_selection
        if label is None:
            return None
        self.pending_selection = None

        if self.store.lookup(label) is None:
            self.ensure_loaded(label)
            self.current = label
        else:
            self.current = label
            self.ensure_loaded(label)
        self.history.append(label)
        return label

    def update(self) -> None:
        """Run one frame: apply any selection, then sync and step the layout."""
        self.apply_selection()
        self.force_graph.update()
