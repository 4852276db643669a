import heapq
import logging

from tqdm import tqdm

from CostFunctions import CostFunction, make_cost_function
from params import CHECK_INVARIANTS, PATH_METRIC
from PathSearch import find_route
from ReservationLedger import ReservationLedger
from Statistics import PolicyStatistics
from Tool import CallState

logger = logging.getLogger(__name__)


class Simulator:
    """One routing policy replayed over one call workload.

    The simulator works on its own copy of the topology and of the calls, so
    several simulators built from the same inputs never see each other's
    reservations.
    """

    def __init__(self, topology, events, policy="SHPF", path_metric=PATH_METRIC,
                 progress=False, check_invariants=CHECK_INVARIANTS):
        self.topology = topology.copy()
        if isinstance(policy, CostFunction):
            self.cost_function = policy
        else:
            self.cost_function = make_cost_function(policy, path_metric)
        # stable sort: calls arriving together keep workload order
        self.events = sorted((event.clone() for event in events), key=lambda e: e.arrival_time)
        self.progress = progress
        self.check_invariants = check_invariants

        self.ledger = ReservationLedger(self.topology)
        self.statistics = PolicyStatistics()
        self.active_calls = []  # heap of (end_time, call_id, event)
        self.current_time = 0
        self._static_weights = None
        self._baseline_hops = {}  # (source, destination) -> hops on the empty network

        self.metrics_history = {
            "utilisation": [],
            "active_calls": [],
            "timestamps": []
        }
        self.metrics = {}

    @property
    def policy_name(self):
        return self.cost_function.name

    def reset(self):
        self.topology.reset()
        self.ledger = ReservationLedger(self.topology)
        self.statistics = PolicyStatistics()
        self.active_calls = []
        self.current_time = 0
        for event in self.events:
            event.reset()
        for values in self.metrics_history.values():
            values.clear()
        self.metrics = {}

    def run(self):
        self.reset()

        for event in tqdm(self.events, desc=self.policy_name, disable=not self.progress):
            self.current_time = event.arrival_time

            self.release_expired(self.current_time)
            self.process_arrival(event)

            self.record_metrics()
            if self.check_invariants:
                self.ledger.check_conservation()

        self.calculate_final_metrics()
        return self.metrics

    def release_expired(self, now):
        """End every admitted call whose end time is at or before ``now``."""
        released = 0
        while self.active_calls and self.active_calls[0][0] <= now:
            _, _, event = heapq.heappop(self.active_calls)
            released += self.ledger.release(event)
            event.state = CallState.EXPIRED
            if event.end_time != float('inf'):
                self.record_metrics(event.end_time)
        return released

    def drain(self):
        """Release the calls still in progress after the last arrival."""
        return self.release_expired(float('inf'))

    def edge_weights(self):
        if not self.cost_function.static:
            return self.cost_function.edge_weights(self.topology)
        if self._static_weights is None:
            self._static_weights = self.cost_function.edge_weights(self.topology)
        return self._static_weights

    def empty_network_hops(self, source, destination):
        key = (source, destination)
        if key not in self._baseline_hops:
            route = find_route(self.topology, source, destination, self.cost_function, empty_network=True)
            self._baseline_hops[key] = None if route is None else route.hops
        return self._baseline_hops[key]

    def process_arrival(self, event):
        route = find_route(self.topology, event.source, event.destination,
                           self.cost_function, self.edge_weights())

        if route is not None and self.cost_function.optimistic:
            baseline = self.empty_network_hops(event.source, event.destination)
            if baseline is None or route.hops > baseline:
                logger.debug("call %d: %d hops now vs %s on the empty network, blocking",
                             event.call_id, route.hops, baseline)
                route = None

        if route is None:
            event.state = CallState.BLOCKED
            self.statistics.record_blocked()
            logger.debug("call %d %s->%s blocked at t=%g",
                         event.call_id, event.source, event.destination, event.arrival_time)
            return False

        self.ledger.reserve(event, route)
        event.route = route
        event.state = CallState.ADMITTED
        heapq.heappush(self.active_calls, (event.end_time, event.call_id, event))
        self.statistics.record_admitted(route)
        logger.debug("call %d admitted on %s", event.call_id, route)
        return True

    def record_metrics(self, timestamp=None):
        self.metrics_history["utilisation"].append(self.topology.utilisation())
        self.metrics_history["active_calls"].append(self.ledger.active_calls)
        self.metrics_history["timestamps"].append(self.current_time if timestamp is None else timestamp)

    def calculate_final_metrics(self):
        self.metrics = self.statistics.summary()
        self.metrics["avg_utilisation"] = self.calculate_time_weighted_average(
            self.metrics_history["utilisation"],
            self.metrics_history["timestamps"]
        )
        self.metrics["peak_active_calls"] = max(self.metrics_history["active_calls"], default=0)

    def calculate_time_weighted_average(self, values, timestamps):
        """Average of ``values`` sampled at ``timestamps``.

        A sample is taken after every change, so each value holds until the
        next timestamp.
        """
        if len(values) < 2:
            return values[0] if values else 0

        total_weighted_sum = 0
        total_time = 0

        for i in range(1, len(values)):
            time_interval = timestamps[i] - timestamps[i - 1]
            total_weighted_sum += values[i - 1] * time_interval
            total_time += time_interval

        # all samples at the same instant
        if total_time <= 0:
            return sum(values) / len(values)
        return total_weighted_sum / total_time

    def get_metrics(self):
        return self.metrics
