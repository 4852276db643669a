import json

import pytest

from CallEvent import load_workload
from CircuitRouting import main, run_experiments, run_policies
from params import POLICIES
from Tool import get_next_exp_number
from Topology import Topology

TOPOLOGY = """\
A B 1 2
B D 1 2
A C 2 3
C D 2 3
"""

WORKLOAD = """\
0.0 A D 10
1.0 A D 10
2.0 A D 10
3.0 A D 10
4.0 B C 10
12.0 A D 1
"""


@pytest.fixture
def inputs(tmp_path):
    topology_file = tmp_path / "topology.dat"
    workload_file = tmp_path / "callworkload.dat"
    topology_file.write_text(TOPOLOGY)
    workload_file.write_text(WORKLOAD)
    return topology_file, workload_file


def test_run_experiments_writes_results(inputs, tmp_path, capsys):
    results_dir = tmp_path / "results"
    results = run_experiments(*inputs, output_dir=str(results_dir), plot=True, progress=False)

    assert list(results) == POLICIES
    exp_dir = results_dir / "exp_0"
    for policy in POLICIES:
        with open(exp_dir / f"{policy}_results.json") as f:
            assert json.load(f) == results[policy]
    assert (exp_dir / "policy_comparison.png").exists()

    out = capsys.readouterr().out
    assert out.splitlines()[0].startswith("Policy")
    assert "exp_0" in out

    run_experiments(*inputs, output_dir=str(results_dir), progress=False)
    assert (results_dir / "exp_1").is_dir()


def test_policies_differ_on_the_square(inputs):
    results = run_experiments(*inputs, output_dir=None, progress=False)
    # SHPF fills the fast route first, then the slow one
    assert results["SHPF"]["admitted"] == 5
    # every link at B is full when the B->C call arrives
    assert results["SHPO"]["blocked"] >= 1
    assert results["SDPF"]["avg_delay"] <= results["LLP"]["avg_delay"]


def test_parallel_runs_match_sequential(inputs):
    topology = Topology.from_file(inputs[0])
    events = load_workload(inputs[1], topology)
    sequential = run_policies(topology, events)
    parallel = run_policies(topology, events, jobs=2)
    assert parallel == sequential
    assert list(parallel) == POLICIES


def test_unknown_policy(inputs):
    with pytest.raises(ValueError):
        run_experiments(*inputs, output_dir=None, policies=["RIP"], progress=False)


def test_main_prints_the_table(inputs, capsys):
    topology_file, workload_file = inputs
    main(["--topology", str(topology_file), "--workload", str(workload_file),
          "--output-dir", "", "--policies", "SHPF", "MFC", "--no-progress",
          "--check-invariants", "--dump-topology", "capacity"])
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].split() == ["A", "B", "D", "C"]
    rows = [line.split("\t")[0].strip() for line in lines if line.startswith(("SHPF", "MFC"))]
    assert rows == ["SHPF", "MFC"]


def test_next_exp_number(tmp_path):
    assert get_next_exp_number(str(tmp_path / "missing")) == 0
    (tmp_path / "exp_0").mkdir()
    (tmp_path / "exp_3").mkdir()
    (tmp_path / "exp_x").mkdir()
    (tmp_path / "exp_7").write_text("not a directory")
    assert get_next_exp_number(str(tmp_path)) == 4
