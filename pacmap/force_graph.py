"""
Interactive graph coupled to a running layout simulation.

ForceGraph keeps the GraphStore (what the user sees and drags) and the
LayoutSimulator's mirror graph isomorphic, and merges their positions once
per frame in update().
"""

from pacmap.graph_store import ORIGIN, GraphStore, NodeId
from pacmap.layout import LayoutSimulator, SimulationSettings
from pacmap.package_info import PackageInfo


class ForceGraph:
    """A GraphStore and its LayoutSimulator, updated frame by frame."""

    def __init__(
        self,
        store: GraphStore | None = None,
        settings: SimulationSettings | None = None,
        initial_perturbation: bool = False,
        seed: int | None = None,
    ):
        self.store = store if store is not None else GraphStore()
        self._settings = settings or SimulationSettings()
        self.simulator = LayoutSimulator.from_store(
            self.store,
            self._settings,
            perturb=initial_perturbation,
            seed=seed,
        )
        self._force_dirty = False

    @classmethod
    def empty(cls, settings: SimulationSettings | None = None) -> "ForceGraph":
        return cls(GraphStore(), settings)

    @property
    def settings(self) -> SimulationSettings:
        return self._settings

    @settings.setter
    def settings(self, settings: SimulationSettings) -> None:
        settings.validate()
        if settings != self._settings:
            self._settings = settings
            self._force_dirty = True

    def add_node(
        self, label: str, payload: PackageInfo | None = None, position=ORIGIN
    ) -> NodeId:
        """
        Add or update a node in both representations.

        An existing label only has its payload replaced.
        """
        is_new = self.store.lookup(label) is None
        node_id = self.store.add_node(label, payload, position)
        if is_new:
            self.simulator.add_node(node_id, self.store.node(node_id).position)
        return node_id

    def add_edge(
        self, source: NodeId, target: NodeId, label: str = "", unique: bool = False
    ) -> bool:
        """Add an edge to both representations; see GraphStore.add_edge."""
        inserted = self.store.add_edge(source, target, label, unique=unique)
        if inserted:
            self.simulator.add_edge(source, target)
        return inserted

    def sync_sim_pos_to_graph(self) -> None:
        """Feed user drags into the simulation."""
        self.simulator.absorb_user_positions(self.store)

    def update_forces(self) -> None:
        if self._force_dirty:
            self.simulator.rebuild_force(self._settings)
            self._force_dirty = False

    def update_simulation(self) -> None:
        self.simulator.step()

    def sync_graph_pos_to_sim(self) -> None:
        """Publish simulated positions for rendering."""
        self.simulator.publish_positions(self.store)

    def update(self) -> None:
        """Run one frame: absorb drags, refresh the force, step, publish."""
        self.sync_sim_pos_to_graph()
        self.update_forces()
        self.update_simulation()
        self.sync_graph_pos_to_sim()

    def is_isomorphic(self) -> bool:
        """Check that the store and the mirror share ids and edge multisets."""
        if set(self.store.node_ids()) != set(self.simulator.graph.nodes):
            return False
        store_edges = sorted((e.source, e.target) for e in self.store.edges())
        mirror_edges = sorted(self.simulator.graph.edges())
        return store_edges == mirror_edges
