import logging
import math

from Tool import CallState, WorkloadError

logger = logging.getLogger(__name__)


class CallEvent:
    def __init__(self, call_id, arrival_time, duration, source, destination):
        self.call_id = call_id
        self.arrival_time = arrival_time
        self.duration = duration
        self.end_time = arrival_time + duration
        self.source = source
        self.destination = destination
        self.state = CallState.PENDING
        self.route = None
        self.reserved_links = {}  # (u, v) -> circuits held

    @property
    def admitted(self):
        return self.state in (CallState.ADMITTED, CallState.EXPIRED)

    @property
    def running(self):
        return self.state == CallState.ADMITTED

    def reset(self):
        self.state = CallState.PENDING
        self.route = None
        self.reserved_links = {}

    def clone(self):
        return CallEvent(self.call_id, self.arrival_time, self.duration, self.source, self.destination)

    def __repr__(self):
        return (f"CallEvent({self.call_id}, {self.source}->{self.destination}, "
                f"t={self.arrival_time:g}+{self.duration:g}, {self.state.name})")


def load_workload(workload_file, topology=None):
    """Read ``<arrival> <source> <destination> <duration>`` lines into calls.

    Calls keep file order; the simulator sorts them by arrival time. When a
    topology is given, every endpoint must be one of its nodes.
    """
    events = []
    with open(workload_file, 'r') as f:
        for lineno, line in enumerate(f, start=1):
            line = line.split('#', 1)[0].strip()
            if not line:
                continue
            fields = line.split()
            if len(fields) != 4:
                raise WorkloadError(
                    f"{workload_file}:{lineno}: expected '<arrival> <source> <destination> <duration>', got {line!r}")
            try:
                arrival_time = float(fields[0])
                duration = float(fields[3])
            except ValueError:
                raise WorkloadError(f"{workload_file}:{lineno}: bad arrival time or duration in {line!r}") from None
            if not (math.isfinite(arrival_time) and math.isfinite(duration)):
                raise WorkloadError(f"{workload_file}:{lineno}: arrival time and duration must be finite, got {line!r}")
            if duration < 0:
                raise WorkloadError(f"{workload_file}:{lineno}: negative duration {duration}")
            source, destination = fields[1], fields[2]
            if topology is not None:
                for node in (source, destination):
                    if node not in topology.node_index:
                        raise WorkloadError(f"{workload_file}:{lineno}: node {node!r} is not in the topology")
            events.append(CallEvent(len(events), arrival_time, duration, source, destination))

    if any(later.arrival_time < earlier.arrival_time for earlier, later in zip(events, events[1:])):
        logger.warning("%s is not sorted by arrival time, calls will be replayed in arrival order", workload_file)
    logger.info("loaded %d calls from %s", len(events), workload_file)
    return events
