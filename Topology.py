import logging

import numpy as np

from Tool import TopologyError, link_key

logger = logging.getLogger(__name__)


class Topology:
    """Circuit-switched network: per-link capacity, delay and free circuits.

    Nodes are arbitrary string identifiers mapped to dense indices in the
    order they are first seen. Links are undirected, so every matrix is kept
    symmetric. ``capacity`` and ``delay`` never change once the topology is
    frozen; ``available`` is the only mutable state and belongs to whichever
    simulation run owns this copy.
    """

    def __init__(self):
        self.node_ids = []  # index -> node identifier
        self.node_index = {}  # node identifier -> index
        self.link_specs = {}  # (u, v) index pair -> (delay, capacity)
        self.capacity_matrix = None
        self.delay_matrix = None
        self.available_matrix = None

    @classmethod
    def from_file(cls, topology_file):
        topology = cls()
        topology.load_topology(topology_file)
        return topology

    def load_topology(self, topology_file):
        with open(topology_file, 'r') as f:
            for lineno, line in enumerate(f, start=1):
                line = line.split('#', 1)[0].strip()
                if not line:
                    continue
                fields = line.split()
                if len(fields) != 4:
                    raise TopologyError(
                        f"{topology_file}:{lineno}: expected '<node> <node> <delay> <capacity>', got {line!r}")
                a, b, delay, capacity = fields
                try:
                    delay = float(delay)
                    capacity = int(capacity)
                except ValueError:
                    raise TopologyError(f"{topology_file}:{lineno}: bad delay or capacity in {line!r}") from None
                self.add_link(a, b, delay, capacity)
        self.freeze()
        logger.info("loaded %d nodes and %d links from %s",
                    len(self.node_ids), len(self.link_specs), topology_file)

    @property
    def frozen(self):
        return self.capacity_matrix is not None

    @property
    def nodes(self):
        return list(self.node_ids)

    def add_node(self, node):
        if node not in self.node_index:
            if self.frozen:
                raise TopologyError(f"cannot add node {node!r} to a frozen topology")
            self.node_index[node] = len(self.node_ids)
            self.node_ids.append(node)
        return self.node_index[node]

    def add_link(self, a, b, delay, capacity):
        if self.frozen:
            raise TopologyError(f"cannot add link {a}-{b} to a frozen topology")
        if a == b:
            raise TopologyError(f"self-loop on node {a!r}")
        if delay < 0 or capacity < 0:
            raise TopologyError(f"link {a}-{b} has negative delay or capacity")
        u = self.add_node(a)
        v = self.add_node(b)
        key = link_key(u, v)
        if key in self.link_specs:
            logger.warning("link %s-%s defined twice, keeping the later definition", a, b)
        self.link_specs[key] = (delay, capacity)
        return self

    def freeze(self):
        """Build the link matrices. Capacity and delay become read-only."""
        if self.frozen:
            return self
        n = len(self.node_ids)
        capacity = np.zeros((n, n), dtype=np.int64)
        delay = np.zeros((n, n), dtype=np.float64)
        for (u, v), (d, c) in self.link_specs.items():
            capacity[u, v] = capacity[v, u] = c
            delay[u, v] = delay[v, u] = d
        capacity.setflags(write=False)
        delay.setflags(write=False)
        self.capacity_matrix = capacity
        self.delay_matrix = delay
        self.available_matrix = capacity.copy()
        return self

    def copy(self):
        """Pristine, frozen copy with its own free circuits.

        A frozen topology shares its read-only tables with the copy. An
        unfrozen one stays unfrozen and the copy builds its own.
        """
        clone = Topology()
        clone.node_ids = list(self.node_ids)
        clone.node_index = dict(self.node_index)
        clone.link_specs = dict(self.link_specs)
        if not self.frozen:
            return clone.freeze()
        clone.capacity_matrix = self.capacity_matrix
        clone.delay_matrix = self.delay_matrix
        clone.available_matrix = self.capacity_matrix.copy()
        return clone

    def reset(self):
        self.available_matrix[:, :] = self.capacity_matrix

    def index(self, node):
        return self.node_index[node]

    def node(self, index):
        return self.node_ids[index]

    def _pair(self, a, b):
        if a not in self.node_index or b not in self.node_index:
            return None
        return self.node_index[a], self.node_index[b]

    def capacity(self, a, b):
        pair = self._pair(a, b)
        return int(self.capacity_matrix[pair]) if pair else 0

    def delay(self, a, b):
        pair = self._pair(a, b)
        return float(self.delay_matrix[pair]) if pair else 0

    def available(self, a, b):
        pair = self._pair(a, b)
        return int(self.available_matrix[pair]) if pair else 0

    def links(self):
        """Yield ``(a, b, delay, capacity)`` for every link in the graph."""
        for (u, v), (d, c) in sorted(self.link_specs.items()):
            if c > 0:
                yield self.node_ids[u], self.node_ids[v], d, c

    def usable_mask(self, empty_network=False):
        if empty_network:
            return self.capacity_matrix > 0
        return self.available_matrix > 0

    def neighbours(self, index, empty_network=False):
        row = self.capacity_matrix[index] if empty_network else self.available_matrix[index]
        return np.flatnonzero(row > 0)

    def utilisation(self):
        """Fraction of all circuits in the network currently reserved."""
        total = int(self.capacity_matrix.sum())
        if total == 0:
            return 0.0
        return (total - int(self.available_matrix.sum())) / total

    def format_matrix(self, kind="available"):
        matrices = {
            "capacity": self.capacity_matrix,
            "delay": self.delay_matrix,
            "available": self.available_matrix,
        }
        if kind not in matrices:
            raise ValueError(f"unknown matrix {kind!r}, expected one of {sorted(matrices)}")
        matrix = matrices[kind]
        lines = ["\t" + "\t".join(self.node_ids)]
        for i, name in enumerate(self.node_ids):
            cells = []
            for j in range(len(self.node_ids)):
                if i == j:
                    cells.append("//")
                elif kind == "delay":
                    cells.append(f"{matrix[i, j]:g}")
                else:
                    cells.append(str(matrix[i, j]))
            lines.append(name + "\t" + "\t".join(cells))
        return "\n".join(lines)
