import random
import sys
from pathlib import Path

# Ensure the flat modules import when running from a source checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from CallEvent import CallEvent
from Topology import Topology


def make_topology(links):
    """Frozen topology from ``(a, b, delay, capacity)`` tuples."""
    topology = Topology()
    for a, b, delay, capacity in links:
        topology.add_link(a, b, delay, capacity)
    return topology.freeze()


def make_calls(rows):
    """Calls from ``(arrival, source, destination, duration)`` tuples."""
    return [CallEvent(i, arrival, duration, source, destination)
            for i, (arrival, source, destination, duration) in enumerate(rows)]


@pytest.fixture
def single_link():
    return make_topology([("A", "B", 5, 2)])


@pytest.fixture
def square():
    # two 2-hop routes from A to D: a short thin one via B, a long wide one via C
    return make_topology([
        ("A", "B", 1, 2),
        ("B", "D", 1, 2),
        ("A", "C", 2, 10),
        ("C", "D", 2, 10),
    ])


@pytest.fixture
def triangle():
    return make_topology([
        ("A", "B", 1, 1),
        ("A", "C", 1, 1),
        ("C", "B", 1, 1),
    ])


@pytest.fixture
def mesh():
    return make_topology([
        ("A", "B", 3, 2),
        ("B", "C", 2, 2),
        ("C", "D", 4, 3),
        ("D", "E", 1, 2),
        ("E", "A", 5, 1),
        ("A", "C", 6, 1),
        ("B", "D", 2, 1),
    ])


@pytest.fixture
def mesh_calls():
    rng = random.Random(7)
    nodes = ["A", "B", "C", "D", "E"]
    rows = []
    t = 0.0
    for _ in range(300):
        t += rng.expovariate(4.0)
        source, destination = rng.sample(nodes, 2)
        rows.append((t, source, destination, rng.expovariate(0.5)))
    return make_calls(rows)
