import argparse
import json
import logging
import os
from concurrent.futures import ProcessPoolExecutor

import matplotlib.pyplot as plt

import params
from CallEvent import load_workload
from Simulator import Simulator
from Statistics import format_header, format_row
from Topology import Topology
from Tool import get_next_exp_number, parse_policy

logger = logging.getLogger(__name__)


def _run_policy(topology, events, policy, path_metric, progress=False, check_invariants=params.CHECK_INVARIANTS):
    """Worker job: one policy over the whole workload. Also used inside ProcessPoolExecutor."""
    logger.info("simulating %s over %d calls", policy, len(events))
    simulator = Simulator(topology, events, policy, path_metric,
                          progress=progress, check_invariants=check_invariants)
    return simulator.run()


def run_policies(topology, events, policies=None, path_metric=params.PATH_METRIC, jobs=1,
                 progress=False, check_invariants=params.CHECK_INVARIANTS):
    """Replay ``events`` once per policy. Returns ``{policy: metrics}`` in policy order."""
    policies = [parse_policy(p).value for p in (policies or params.POLICIES)]

    if jobs <= 1:
        return {policy: _run_policy(topology, events, policy, path_metric, progress, check_invariants)
                for policy in policies}

    with ProcessPoolExecutor(max_workers=jobs) as exe:
        futures = {policy: exe.submit(_run_policy, topology, events, policy, path_metric,
                                      False, check_invariants)
                   for policy in policies}
        return {policy: futures[policy].result() for policy in policies}


def print_summary(results):
    print(format_header())
    for policy, metrics in results.items():
        print(format_row(policy, metrics))


def save_results(results, output_dir):
    for policy, metrics in results.items():
        with open(f"{output_dir}/{policy}_results.json", 'w') as f:
            json.dump(metrics, f, indent=2)


def plot_results(results, output_dir):
    policies = list(results)

    fig, (ax_block, ax_hops, ax_delay) = plt.subplots(1, 3, figsize=(15, 5))
    ax_block.bar(policies, [results[p]["blocked_pct"] for p in policies])
    ax_block.set_ylabel("Blocked Calls (%)")
    ax_block.set_title("Blocking by Policy")

    ax_hops.bar(policies, [results[p]["avg_hops"] for p in policies])
    ax_hops.set_ylabel("Average Hops per Admitted Call")
    ax_hops.set_title("Path Length by Policy")

    ax_delay.bar(policies, [results[p]["avg_delay"] for p in policies])
    ax_delay.set_ylabel("Average Propagation Delay")
    ax_delay.set_title("Delay by Policy")

    for ax in (ax_block, ax_hops, ax_delay):
        ax.grid(True, axis="y")
    fig.tight_layout()
    fig.savefig(f"{output_dir}/policy_comparison.png")
    plt.close(fig)


def run_experiments(topology_file, workload_file, output_dir=params.OUTPUT_DIR, policies=None,
                    path_metric=params.PATH_METRIC, jobs=1, plot=False, progress=True,
                    check_invariants=params.CHECK_INVARIANTS):
    topology = Topology.from_file(topology_file)
    events = load_workload(workload_file, topology)

    results = run_policies(topology, events, policies, path_metric, jobs, progress, check_invariants)
    print_summary(results)

    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
        exp_number = get_next_exp_number(output_dir)
        output_dir = os.path.join(output_dir, f"exp_{exp_number}")
        os.makedirs(output_dir, exist_ok=True)

        save_results(results, output_dir)
        if plot:
            plot_results(results, output_dir)
        print(f"Results saved to: {output_dir}")

    return results


def _configure_logging(verbosity):
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Compare circuit routing policies on a recorded call workload")
    parser.add_argument("--topology", default=params.TOPOLOGY_FILE,
                        help="link file: '<node> <node> <delay> <capacity>' per line")
    parser.add_argument("--workload", default=params.WORKLOAD_FILE,
                        help="call file: '<arrival> <source> <destination> <duration>' per line")
    parser.add_argument("--policies", nargs="+", default=params.POLICIES, help="policies to evaluate")
    parser.add_argument("--path-metric", choices=params.PATH_METRICS, default=params.PATH_METRIC,
                        help="how LLP and MFC score a path")
    parser.add_argument("--output-dir", default=params.OUTPUT_DIR,
                        help="where exp_<n> result directories go; empty string to skip saving")
    parser.add_argument("--jobs", type=int, default=1, help="run policies in this many processes")
    parser.add_argument("--plot", action="store_true", help="save a policy comparison chart")
    parser.add_argument("--check-invariants", action="store_true",
                        help="verify circuit accounting after every call")
    parser.add_argument("--dump-topology", choices=["capacity", "delay"],
                        help="print a link matrix before simulating")
    parser.add_argument("--no-progress", action="store_true", help="hide progress bars")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    _configure_logging(args.verbose)

    if args.dump_topology:
        print(Topology.from_file(args.topology).format_matrix(args.dump_topology))
        print()

    run_experiments(args.topology, args.workload, args.output_dir or None, args.policies,
                    args.path_metric, args.jobs, args.plot, not args.no_progress, args.check_invariants)


if __name__ == "__main__":
    main()
