"""
Canonical node/edge store for the package graph.

Nodes are identified by integer ids that are never reused, and deduplicated by
label: adding a label that already exists only replaces its payload.
"""

import math
from typing import Iterator, NamedTuple

import networkx as nx

from pacmap.package_info import PackageInfo

NodeId = int


class Position(NamedTuple):
    """A 2-D point in graph space."""

    x: float
    y: float

    def __add__(self, other):
        return Position(self.x + other[0], self.y + other[1])


ORIGIN = Position(0.0, 0.0)


class Node:
    """A package node: id, label, position and optional package info."""

    def __init__(
        self,
        node_id: NodeId,
        label: str,
        payload: PackageInfo | None,
        position: Position,
    ):
        self.id = node_id
        self.label = label
        self.payload = payload
        self._position = ORIGIN
        self.position = position

    @property
    def position(self) -> Position:
        return self._position

    @position.setter
    def position(self, value) -> None:
        x, y = float(value[0]), float(value[1])
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"Non-finite position for '{self.label}': ({x}, {y})")
        self._position = Position(x, y)

    @property
    def is_resolved(self) -> bool:
        return self.payload is not None

    def __repr__(self) -> str:
        return f"Node(id={self.id}, label={self.label!r}, position={tuple(self._position)})"


class Edge(NamedTuple):
    source: NodeId
    target: NodeId
    label: str = ""


class GraphStore:
    """Single source of truth for topology, labels, positions and payloads."""

    def __init__(self):
        self._graph = nx.MultiDiGraph()
        self._by_label: dict[str, NodeId] = {}
        self._next_id: NodeId = 0

    def add_node(
        self,
        label: str,
        payload: PackageInfo | None = None,
        position=ORIGIN,
    ) -> NodeId:
        """
        Add a node, or update the payload of the node carrying `label`.

        An existing node keeps its position.

        Returns:
            The node id.
        """
        node_id = self._by_label.get(label)
        if node_id is not None:
            self._graph.nodes[node_id]["node"].payload = payload
            return node_id

        node_id = self._next_id
        self._next_id += 1
        self._graph.add_node(node_id, node=Node(node_id, label, payload, position))
        self._by_label[label] = node_id
        return node_id

    def add_edge(
        self, source: NodeId, target: NodeId, label: str = "", unique: bool = False
    ) -> bool:
        """
        Add a directed edge.

        Args:
            source: Source node id.
            target: Target node id.
            label: Edge label.
            unique: Skip the insert if an edge source -> target already exists.

        Returns:
            True if an edge was inserted.

        Raises:
            KeyError: If either id is unknown.
        """
        for node_id in (source, target):
            if node_id not in self._graph:
                raise KeyError(f"Unknown node id: {node_id}")
        if unique and self._graph.has_edge(source, target):
            return False
        self._graph.add_edge(source, target, label=label)
        return True

    def has_edge(self, source: NodeId, target: NodeId) -> bool:
        return self._graph.has_edge(source, target)

    def edge_count(self, source: NodeId, target: NodeId) -> int:
        return self._graph.number_of_edges(source, target)

    def lookup(self, label: str) -> NodeId | None:
        return self._by_label.get(label)

    def node(self, node_id: NodeId) -> Node | None:
        """Get the node record; it is mutable, so this also serves writers."""
        data = self._graph.nodes.get(node_id)
        if data is None:
            return None
        return data["node"]

    def node_by_label(self, label: str) -> Node | None:
        node_id = self.lookup(label)
        if node_id is None:
            return None
        return self.node(node_id)

    def node_ids(self) -> list[NodeId]:
        return list(self._graph.nodes)

    def nodes(self) -> Iterator[Node]:
        for _, data in self._graph.nodes(data="node"):
            yield data

    def edges(self) -> Iterator[Edge]:
        for source, target, label in self._graph.edges(data="label", default=""):
            yield Edge(source, target, label)

    def number_of_edges(self) -> int:
        return self._graph.number_of_edges()

    def __len__(self) -> int:
        return self._graph.number_of_nodes()
