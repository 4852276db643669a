from collections import defaultdict

import numpy as np

from numba_func import update_link_units
from params import CIRCUITS_PER_CALL
from Tool import ReservationError, link_key


class ReservationLedger:
    """Which circuits every in-progress call holds, so they can be given back exactly.

    All counts are integers, so any number of reserve/release cycles leaves
    the topology's free circuits exactly where they started.
    """

    def __init__(self, topology):
        self.topology = topology
        self.held = {}  # call_id -> {(u, v): circuits}

    @property
    def active_calls(self):
        return len(self.held)

    def reserve(self, call, route, units=CIRCUITS_PER_CALL):
        if call.call_id in self.held:
            raise ReservationError(f"call {call.call_id} already holds circuits")

        us = np.array([u for u, _ in route.links], dtype=np.int64)
        vs = np.array([v for _, v in route.links], dtype=np.int64)
        available = self.topology.available_matrix
        if len(us) and np.any(available[us, vs] < units):
            raise ReservationError(f"call {call.call_id} routed over a link without {units} free circuits")

        update_link_units(available, us, vs, np.full(len(us), -units, dtype=np.int64))

        record = defaultdict(int)
        for u, v in route.links:
            record[link_key(u, v)] += units
        self.held[call.call_id] = dict(record)
        call.reserved_links = dict(record)

    def release(self, call):
        """Give back everything ``call`` holds. Returns the circuits released."""
        record = self.held.pop(call.call_id, None)
        if record is None:
            return 0

        us = np.array([u for u, _ in record], dtype=np.int64)
        vs = np.array([v for _, v in record], dtype=np.int64)
        units = np.array(list(record.values()), dtype=np.int64)
        update_link_units(self.topology.available_matrix, us, vs, units)
        call.reserved_links = {}
        return int(units.sum())

    def held_on(self, a, b):
        """Circuits held by all calls on the link between nodes ``a`` and ``b``."""
        if a not in self.topology.node_index or b not in self.topology.node_index:
            return 0
        u, v = self.topology.index(a), self.topology.index(b)
        return sum(record.get(link_key(u, v), 0) for record in self.held.values())

    def held_matrix(self):
        n = len(self.topology.node_ids)
        held = np.zeros((n, n), dtype=np.int64)
        for record in self.held.values():
            for (u, v), units in record.items():
                held[u, v] += units
                if u != v:
                    held[v, u] += units
        return held

    def check_conservation(self):
        topology = self.topology
        balance = topology.available_matrix + self.held_matrix()
        if not np.array_equal(balance, topology.capacity_matrix):
            bad = np.argwhere(balance != topology.capacity_matrix)
            u, v = bad[0]
            raise ReservationError(
                f"link {topology.node(u)}-{topology.node(v)}: available {topology.available_matrix[u, v]} "
                f"+ held {balance[u, v] - topology.available_matrix[u, v]} != capacity {topology.capacity_matrix[u, v]}")
        if np.any(topology.available_matrix < 0):
            raise ReservationError("negative free circuits on a link")
