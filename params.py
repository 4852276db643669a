# Routing policies evaluated by a full experiment, in report order
POLICIES = ["SHPF", "SDPF", "LLP", "MFC", "SHPO"]

# Input files looked up in the working directory when none are given
TOPOLOGY_FILE = "topology.dat"
WORKLOAD_FILE = "callworkload.dat"

# experiment results are written to OUTPUT_DIR/exp_<n>
OUTPUT_DIR = "results"

# How LLP and MFC score a path:
#   "bottleneck" - the busiest (LLP) or least free (MFC) link decides
#   "additive"   - per-link weights are summed along the path
PATH_METRIC = "bottleneck"
PATH_METRICS = ["bottleneck", "additive"]

# Circuits reserved on every link of an admitted call's path
CIRCUITS_PER_CALL = 1

# Verify available + held == capacity after every event (slow, used by tests)
CHECK_INVARIANTS = False

# Column width of the printed summary table
TABLE_COLUMN_WIDTH = 12
