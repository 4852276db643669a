import math

import numpy as np

from numba_func import free_ratio_matrix, utilisation_matrix
from params import PATH_METRIC, PATH_METRICS
from Tool import Policy, parse_policy


class CostFunction:
    """Per-link weights for one routing policy and how they add up along a path.

    ``edge_weights`` only has to be meaningful on usable links; the path
    search never looks at the others. Additive policies sum weights from
    ``origin = 0``. Bottleneck policies keep the worst link seen so far,
    starting from ``-inf`` so the first link always sets the value.
    """

    policy = None
    static = False  # weights do not depend on free circuits
    bottleneck = False
    optimistic = False  # admit only if no longer than on the empty network

    @property
    def name(self):
        return self.policy.value

    @property
    def origin(self):
        return -math.inf if self.bottleneck else 0.0

    def edge_weights(self, topology):
        raise NotImplementedError

    def extend(self, cost, weight):
        if self.bottleneck:
            return max(cost, weight)
        return cost + weight

    def path_value(self, cost):
        """Path metric as reported, undoing any internal sign flip."""
        return cost

    def __repr__(self):
        kind = "bottleneck" if self.bottleneck else "additive"
        return f"{type(self).__name__}({kind})"


class ShortestHop(CostFunction):
    policy = Policy.SHPF

    def edge_weights(self, topology):
        return np.ones(topology.capacity_matrix.shape)


class ShortestDelay(CostFunction):
    policy = Policy.SDPF
    static = True

    def edge_weights(self, topology):
        return topology.delay_matrix


class LeastLoaded(CostFunction):
    """Link weight is its utilisation; a path is as loaded as its busiest link."""

    policy = Policy.LLP

    def __init__(self, bottleneck=True):
        self.bottleneck = bottleneck

    def edge_weights(self, topology):
        return utilisation_matrix(topology.available_matrix, topology.capacity_matrix)


class MostFreeCircuits(CostFunction):
    """Link weight is its free-circuit ratio; a path is as free as its tightest link.

    The bottleneck search minimises, so the ratio is negated on the way in
    and restored by ``path_value``. The additive form sums the plain ratios.
    """

    policy = Policy.MFC

    def __init__(self, bottleneck=True):
        self.bottleneck = bottleneck

    def edge_weights(self, topology):
        return free_ratio_matrix(topology.available_matrix, topology.capacity_matrix)

    def extend(self, cost, weight):
        if self.bottleneck:
            return max(cost, -weight)
        return cost + weight

    def path_value(self, cost):
        return -cost if self.bottleneck else cost


class OptimisticShortestHop(ShortestHop):
    policy = Policy.SHPO
    optimistic = True


def make_cost_function(policy, path_metric=PATH_METRIC):
    if path_metric not in PATH_METRICS:
        raise ValueError(f"unknown path metric {path_metric!r}, expected one of {PATH_METRICS}")
    policy = parse_policy(policy)
    bottleneck = path_metric == "bottleneck"

    if policy == Policy.SHPF:
        return ShortestHop()
    if policy == Policy.SDPF:
        return ShortestDelay()
    if policy == Policy.LLP:
        return LeastLoaded(bottleneck)
    if policy == Policy.MFC:
        return MostFreeCircuits(bottleneck)
    return OptimisticShortestHop()
