from enum import Enum
import os
import re


# Constants and parameters
class Policy(Enum):
    SHPF = "SHPF"  # shortest hop path first
    SDPF = "SDPF"  # shortest delay path first
    LLP = "LLP"    # least loaded path
    MFC = "MFC"    # maximum free circuits
    SHPO = "SHPO"  # shortest hop path, optimistic admission


class CallState(Enum):
    PENDING = 1
    ADMITTED = 2
    BLOCKED = 3
    EXPIRED = 4


class TopologyError(ValueError):
    """Raised when a topology file cannot be turned into a network."""


class WorkloadError(ValueError):
    """Raised when a call workload references bad nodes or times."""


class ReservationError(RuntimeError):
    """Raised when circuit bookkeeping stops adding up."""


def parse_policy(name):
    if isinstance(name, Policy):
        return name
    try:
        return Policy(name.upper())
    except ValueError:
        valid = ", ".join(p.value for p in Policy)
        raise ValueError(f"unknown policy {name!r}, expected one of: {valid}") from None


def link_key(u, v):
    """Undirected link key: the node index pair in ascending order."""
    return (u, v) if u <= v else (v, u)


def get_next_exp_number(output_path):
    """Return the number of the next ``exp_<n>`` directory under ``output_path``."""
    if not os.path.exists(output_path):
        return 0

    numbers = []
    for dir_name in os.listdir(output_path):
        match = re.fullmatch(r'exp_(\d+)', dir_name)
        if match and os.path.isdir(os.path.join(output_path, dir_name)):
            numbers.append(int(match.group(1)))

    return max(numbers) + 1 if numbers else 0
