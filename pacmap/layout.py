"""
Force-directed layout over a mirror of the package graph.

The simulator keeps its own graph keyed by the same node ids as the
GraphStore. Positions only cross between the two through
absorb_user_positions() and publish_positions().
"""

from typing import NamedTuple

import networkx as nx
import numpy as np

from pacmap.graph_store import GraphStore, NodeId, Position

DT_RANGE = (0.001, 1.0)
COOLOFF_RANGE = (0.001, 1.0)
SCALE_RANGE = (1.0, 1000.0)

# Floor for pairwise distances so coincident nodes stay finite
MIN_DISTANCE = 0.1


class SimulationSettings(NamedTuple):
    """Parameters of the force algorithm plus the running flag."""

    dt: float = 0.035
    cooloff_factor: float = 0.975
    scale: float = 400.0
    active: bool = False

    @classmethod
    def from_config(cls, overrides: dict | None = None) -> "SimulationSettings":
        """
        Build settings from config values, ignoring unknown keys.

        Numeric values may be given as strings, as they are when read from
        the environment.

        Raises:
            ValueError: If a value is not a number or is out of bounds.
        """
        settings = cls()
        if overrides:
            fields = {}
            for key, value in overrides.items():
                if key not in cls._fields:
                    continue
                if key == "active":
                    if isinstance(value, str):
                        value = value.strip().lower() in ("1", "true", "yes", "on")
                    fields[key] = bool(value)
                    continue
                try:
                    fields[key] = float(value)
                except (TypeError, ValueError) as e:
                    raise ValueError(f"{key} must be a number, got {value!r}") from e
            settings = settings._replace(**fields)
        settings.validate()
        return settings

    def validate(self) -> None:
        """
        Check the slider bounds.

        Raises:
            ValueError: If dt, cooloff_factor or scale is out of range.
        """
        for name, (low, high) in (
            ("dt", DT_RANGE),
            ("cooloff_factor", COOLOFF_RANGE),
            ("scale", SCALE_RANGE),
        ):
            value = getattr(self, name)
            if not low <= value <= high:
                raise ValueError(f"{name}={value} outside [{low}, {high}]")

    def clamped(self) -> "SimulationSettings":
        return self._replace(
            dt=min(max(self.dt, DT_RANGE[0]), DT_RANGE[1]),
            cooloff_factor=min(max(self.cooloff_factor, COOLOFF_RANGE[0]), COOLOFF_RANGE[1]),
            scale=min(max(self.scale, SCALE_RANGE[0]), SCALE_RANGE[1]),
        )

    def make_force(self) -> "FruchtermanReingold":
        return FruchtermanReingold(self.dt, self.cooloff_factor, self.scale)


class FruchtermanReingold:
    """
    Fruchterman-Reingold force with velocity damping.

    Every pair of nodes repels with k^2 / d, every edge pulls its endpoints
    together with d^2 / k, where k = scale / sqrt(n). Displacement is
    integrated into a per-node velocity scaled by dt and damped by
    cooloff_factor. Each step moves a node at most `scale`.
    """

    def __init__(self, dt: float, cooloff_factor: float, scale: float):
        self.dt = dt
        self.cooloff_factor = cooloff_factor
        self.scale = scale
        self.velocities: dict[NodeId, np.ndarray] = {}

    def apply(self, graph: nx.MultiDiGraph) -> None:
        ids = list(graph.nodes)
        n = len(ids)
        if n == 0:
            return

        index = {node_id: i for i, node_id in enumerate(ids)}
        points = np.array([graph.nodes[node_id]["point"] for node_id in ids], dtype=float)
        k = self.scale / np.sqrt(n)

        # diff[i, j] points from i to j
        diff = points[np.newaxis, :, :] - points[:, np.newaxis, :]
        dist = np.linalg.norm(diff, axis=2)
        order = np.arange(n)
        coincident = (dist == 0.0) & (order[:, np.newaxis] != order[np.newaxis, :])
        if coincident.any():
            sign = np.sign(order[np.newaxis, :] - order[:, np.newaxis]).astype(float)
            diff[..., 0] = np.where(coincident, sign * MIN_DISTANCE, diff[..., 0])
            dist = np.linalg.norm(diff, axis=2)
        dist = np.maximum(dist, MIN_DISTANCE)
        np.fill_diagonal(dist, np.inf)

        repulsion = (k * k) / (dist * dist)
        displacement = -(diff * repulsion[:, :, np.newaxis]).sum(axis=1)

        for source, target in graph.edges():
            if source == target:
                continue
            i, j = index[source], index[target]
            delta = points[j] - points[i]
            pull = delta * (np.linalg.norm(delta) / k)
            displacement[i] += pull
            displacement[j] -= pull

        max_speed = self.scale / self.dt
        for i, node_id in enumerate(ids):
            velocity = self.velocities.get(node_id, np.zeros(2))
            velocity = (velocity + displacement[i] * self.dt) * self.cooloff_factor
            speed = np.linalg.norm(velocity)
            if speed > max_speed:
                velocity = velocity * (max_speed / speed)
            self.velocities[node_id] = velocity
            graph.nodes[node_id]["point"] = points[i] + velocity * self.dt


class LayoutSimulator:
    """Owns the mirror graph and advances it with the force algorithm."""

    def __init__(self, settings: SimulationSettings | None = None):
        self.settings = settings or SimulationSettings()
        self.force = self.settings.make_force()
        self.graph = nx.MultiDiGraph()

    @classmethod
    def from_store(
        cls,
        store: GraphStore,
        settings: SimulationSettings | None = None,
        perturb: bool = False,
        seed: int | None = None,
    ) -> "LayoutSimulator":
        """
        Build a simulator mirroring `store`.

        Mirror nodes start uniformly inside the unit disc. With `perturb`, one
        force pass runs immediately and the result is written to the store.
        """
        simulator = cls(settings)
        rng = np.random.default_rng(seed)
        for node_id in store.node_ids():
            radius = np.sqrt(rng.uniform())
            theta = rng.uniform(0.0, 2 * np.pi)
            simulator.add_node(
                node_id, Position(radius * np.cos(theta), radius * np.sin(theta))
            )
        for edge in store.edges():
            simulator.add_edge(edge.source, edge.target)

        if perturb:
            simulator.force.apply(simulator.graph)
            simulator.publish_positions(store)
        return simulator

    def add_node(self, node_id: NodeId, position) -> None:
        self.graph.add_node(
            node_id, origin=node_id, point=np.array(position, dtype=float)
        )

    def add_edge(self, source: NodeId, target: NodeId) -> None:
        self.graph.add_edge(source, target, endpoints=(source, target))

    def point(self, node_id: NodeId) -> Position:
        x, y = self.graph.nodes[node_id]["point"]
        return Position(float(x), float(y))

    def rebuild_force(self, settings: SimulationSettings) -> None:
        self.settings = settings
        self.force = settings.make_force()

    def step(self) -> None:
        if self.settings.active:
            self.force.apply(self.graph)

    def absorb_user_positions(self, store: GraphStore) -> None:
        """Copy store positions (which carry user drags) into the mirror."""
        for _, data in self.graph.nodes(data=True):
            node = store.node(data["origin"])
            if node is not None:
                data["point"] = np.array(node.position, dtype=float)

    def publish_positions(self, store: GraphStore) -> None:
        """Copy simulated points back into the store."""
        for _, data in self.graph.nodes(data=True):
            node = store.node(data["origin"])
            if node is not None:
                node.position = (float(data["point"][0]), float(data["point"][1]))

    def __len__(self) -> int:
        return self.graph.number_of_nodes()
