"""Tests for the fallback ladder, GRASP, the brute-force oracle and the CLI."""

import json
import math
import random

import pytest

from tsp_heuristics.model import (
    from_rows, save_matrix, NoLinkPolicy, tour_cost, is_closed_tour,
    generate_matrix, generate_clustered_matrix, generate_instance_set,
)
from tsp_heuristics.heuristics import (
    build_greedy, build_grasp, construct_with_fallback, solve_grasp, solve_grasp_parallel,
    is_two_opt_optimal,
)
from tsp_heuristics.baselines import solve_exact, random_feasible_tour
from tsp_heuristics.experiments.config import SolverConfig, parse_config
from tsp_heuristics.experiments.solve import main, format_tour
from tsp_heuristics.experiments.run_all import run_all_experiments
from test_basic import SEVEN_CITIES


@pytest.fixture
def seven():
    matrix = from_rows(SEVEN_CITIES)
    return matrix, NoLinkPolicy.detect(matrix)


@pytest.fixture
def clustered():
    matrix = generate_clustered_matrix(sizes=(3, 3), seed=1)
    return matrix, NoLinkPolicy.detect(matrix)


# Five cities, every existing edge has length 1: lowest-index tie-breaking
# dead-ends from every start, random tie-breaking can close the cycle.
W = 1000
TIED_FIVE = [
    [W, 1, 1, 1, W],
    [1, W, W, 1, 1],
    [1, W, W, W, 1],
    [1, 1, W, W, W],
    [W, 1, 1, W, W],
]

# Distinct distances: nearest neighbour dead-ends from every start, but an
# RCL of size 3 can pick a farther city and reach a tour.
NEAREST_TRAP = [
    [1000, 99, 33, 1000, 87, 40],
    [99, 1000, 1000, 48, 25, 1000],
    [33, 1000, 1000, 43, 26, 59],
    [1000, 48, 43, 1000, 38, 1000],
    [87, 25, 26, 38, 1000, 1000],
    [40, 1000, 59, 1000, 1000, 1000],
]


def test_fallback_random_restarts():
    matrix = from_rows(TIED_FIVE)
    policy = NoLinkPolicy.detect(matrix)
    for start in range(5):
        assert build_greedy(matrix, policy, start=start) == ([], math.inf)

    outcome = construct_with_fallback(matrix, policy, rng=random.Random(0), restarts=200)
    assert outcome.stage == 'random_restarts'
    assert outcome.feasible
    assert is_closed_tour(outcome.tour, 5)
    assert outcome.cost == 5


def test_fallback_random_restarts_disabled():
    matrix = from_rows(TIED_FIVE)
    outcome = construct_with_fallback(matrix, NoLinkPolicy.detect(matrix), rng=random.Random(0), restarts=0)
    assert outcome.stage == 'infeasible'


def test_exact_seven_cities(seven):
    matrix, policy = seven
    tour, cost = solve_exact(matrix, policy)
    assert cost == 63
    assert tour == [0, 1, 3, 5, 6, 4, 2, 0]


def test_exact_refuses_large_instances():
    matrix = generate_matrix(n=13, seed=1)
    with pytest.raises(ValueError):
        solve_exact(matrix, NoLinkPolicy.detect(matrix))


def test_infeasible_instance(clustered):
    matrix, policy = clustered
    assert build_greedy(matrix, policy) == ([], math.inf)
    for start in range(matrix.n):
        assert build_grasp(matrix, policy, k=3, start=start, rng=random.Random(start)) == ([], math.inf)
    assert solve_exact(matrix, policy) == ([], math.inf)
    assert random_feasible_tour(matrix, policy, max_attempts=100) == ([], math.inf)

    outcome = construct_with_fallback(matrix, policy, rng=random.Random(0), restarts=20)
    assert not outcome.feasible
    assert outcome.stage == 'infeasible'
    assert outcome.tour == []
    assert math.isinf(outcome.cost)

    result = solve_grasp(matrix, policy, time_budget=1.0, seed=3)
    assert result.status == 'infeasible'
    assert not result.feasible
    assert result.tour == []
    assert math.isinf(result.cost)
    assert result.fallback_stage == 'infeasible'


def test_fallback_first_stage():
    matrix = generate_matrix(n=8, seed=3)
    outcome = construct_with_fallback(matrix, NoLinkPolicy.detect(matrix))
    assert outcome.stage == 'greedy'
    assert outcome.tour[0] == 0


def test_fallback_all_starts(seven):
    matrix, policy = seven
    outcome = construct_with_fallback(matrix, policy, rng=random.Random(0))
    assert outcome.stage == 'all_starts'
    assert is_closed_tour(outcome.tour, 7)
    assert outcome.cost <= 65
    assert outcome.cost == tour_cost(outcome.tour, matrix, policy)


def test_grasp_recovers_when_fallback_fails():
    matrix = from_rows(NEAREST_TRAP)
    policy = NoLinkPolicy.detect(matrix)
    _, exact_cost = solve_exact(matrix, policy)
    assert exact_cost == 302
    assert construct_with_fallback(matrix, policy, rng=random.Random(0)).stage == 'infeasible'

    result = solve_grasp(matrix, policy, k=3, time_budget=30.0, seed=1, max_iterations=200)
    assert result.status == 'feasible'
    assert result.fallback_stage == 'infeasible'
    assert result.construction_failures > 0
    assert is_closed_tour(result.tour, 6)
    assert result.tour[0] == 0
    assert result.cost >= exact_cost
    assert result.cost == tour_cost(result.tour, matrix, policy)
    assert result.history[0].source == 'grasp'


def test_grasp_parallel_recovers_when_fallback_fails():
    matrix = from_rows(NEAREST_TRAP)
    policy = NoLinkPolicy.detect(matrix)
    result = solve_grasp_parallel(matrix, policy, k=3, time_budget=30.0, seed=1,
                                  n_workers=2, use_processes=False, max_iterations=200)
    assert result.status == 'feasible'
    assert result.cost >= 302


def test_grasp_nearest_only_cannot_escape_trap():
    matrix = from_rows(NEAREST_TRAP)
    policy = NoLinkPolicy.detect(matrix)
    result = solve_grasp(matrix, policy, k=1, time_budget=30.0, seed=1, max_iterations=50)
    assert result.status == 'infeasible'
    assert result.iterations == 50
    assert result.construction_failures == 50


def test_grasp_seven_cities(seven):
    matrix, policy = seven
    result = solve_grasp(matrix, policy, k=3, time_budget=10.0, local_search_time_budget=1.0,
                         seed=42, max_iterations=50)
    assert result.status == 'feasible'
    assert result.iterations == 50
    assert result.fallback_stage == 'all_starts'
    assert result.seed == 42
    assert is_closed_tour(result.tour, 7)
    assert result.tour[0] == 0
    assert result.cost >= 63
    assert result.cost == tour_cost(result.tour, matrix, policy)
    assert is_two_opt_optimal(result.tour, matrix, policy)


def test_grasp_history_is_an_improvement_trace(seven):
    matrix, policy = seven
    result = solve_grasp(matrix, policy, time_budget=10.0, seed=5, max_iterations=20)
    costs = [h.cost for h in result.history]
    assert costs
    assert all(b < a for a, b in zip(costs, costs[1:]))
    assert costs[-1] == result.cost
    assert result.history[-1].tour == result.tour


@pytest.mark.parametrize("n", [5, 6, 7, 8])
def test_grasp_never_beats_exact(n):
    matrix = generate_matrix(n=n, seed=20 + n)
    policy = NoLinkPolicy.detect(matrix)
    _, exact_cost = solve_exact(matrix, policy)
    result = solve_grasp(matrix, policy, k=3, time_budget=10.0, seed=n, max_iterations=30)
    assert result.cost >= exact_cost
    greedy_tour, greedy_cost = build_greedy(matrix, policy)
    assert result.cost <= greedy_cost


def test_grasp_often_finds_optimum_on_small_instances():
    hits = 0
    for n in range(5, 9):
        matrix = generate_matrix(n=n, seed=n)
        policy = NoLinkPolicy.detect(matrix)
        _, exact_cost = solve_exact(matrix, policy)
        result = solve_grasp(matrix, policy, k=3, time_budget=10.0, seed=1, max_iterations=50)
        if result.cost == exact_cost:
            hits += 1
    assert hits >= 1


def test_grasp_reproducible_with_seed():
    matrix = generate_matrix(n=12, seed=9, no_link_prob=0.1)
    policy = NoLinkPolicy.detect(matrix)
    first = solve_grasp(matrix, policy, k=3, time_budget=30.0, seed=77, max_iterations=15)
    second = solve_grasp(matrix, policy, k=3, time_budget=30.0, seed=77, max_iterations=15)
    assert first.tour == second.tour
    assert first.cost == second.cost
    assert first.construction_failures == second.construction_failures


def test_grasp_zero_budget_still_returns_seed(seven):
    matrix, policy = seven
    result = solve_grasp(matrix, policy, time_budget=0.0, seed=1)
    assert result.status == 'feasible'
    assert result.iterations == 0
    assert is_closed_tour(result.tour, 7)


def test_grasp_invalid_arguments(seven):
    matrix, policy = seven
    with pytest.raises(ValueError):
        solve_grasp(matrix, policy, k=0)
    with pytest.raises(ValueError):
        solve_grasp(matrix, policy, time_budget=-1.0)


def test_grasp_parallel_threads(seven):
    matrix, policy = seven
    result = solve_grasp_parallel(matrix, policy, k=3, time_budget=10.0, seed=10,
                                  n_workers=3, use_processes=False, max_iterations=5)
    assert result.status == 'feasible'
    assert result.iterations == 15
    assert result.cost >= 63
    best_single = min(
        solve_grasp(matrix, policy, k=3, time_budget=10.0, seed=10 + w, max_iterations=5).cost
        for w in range(3)
    )
    assert result.cost == best_single


def test_grasp_parallel_infeasible(clustered):
    matrix, policy = clustered
    result = solve_grasp_parallel(matrix, policy, time_budget=1.0, seed=1, n_workers=2, use_processes=False)
    assert result.status == 'infeasible'


def test_format_tour():
    assert format_tour([0, 2, 1, 0]) == "1 → 3 → 2 → 1"


def test_config_defaults():
    config = parse_config([])
    assert config.algorithm == 'grasp'
    assert config.k == 3
    assert config.time_budget == 60.0
    assert config.local_search_time_budget == 3.0
    assert config.no_link == 'auto'


def test_config_precedence(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({'k': 5, 'time_budget': 2.0, 'seed': 3}))
    config = parse_config(['m.txt', '--config', str(path), '--k', '7'])
    assert config.matrix_path == 'm.txt'
    assert config.k == 7
    assert config.time_budget == 2.0
    assert config.seed == 3


def test_config_rejects_bad_values(tmp_path):
    with pytest.raises(ValueError):
        parse_config(['--k', '0'])
    with pytest.raises(ValueError):
        SolverConfig.from_dict({'rcl': 3})
    path = tmp_path / "config.json"
    path.write_text(json.dumps({'workers': 0}))
    with pytest.raises(ValueError):
        parse_config(['--config', str(path)])


def test_cli_exact(tmp_path, capsys):
    path = tmp_path / "seven.txt"
    save_matrix(from_rows(SEVEN_CITIES), path)
    assert main([str(path), '--algorithm', 'exact', '--seed', '1']) == 0
    out = capsys.readouterr().out
    assert "Using seed: 1" in out
    assert "Final tour: 1 → 2 → 4 → 6 → 7 → 5 → 3 → 1" in out
    assert "Total distance: 63" in out


def test_cli_grasp_writes_output(tmp_path, capsys):
    path = tmp_path / "seven.txt"
    save_matrix(from_rows(SEVEN_CITIES), path)
    output = tmp_path / "out" / "result.json"
    code = main([str(path), '--time', '5', '--local-time', '1', '--seed', '4',
                 '--max-iterations', '10', '--output', str(output)])
    assert code == 0
    data = json.loads(output.read_text())
    assert data['config']['k'] == 3
    assert data['result']['status'] == 'feasible'
    assert data['result']['cost'] >= 63
    assert data['result']['history']
    assert "Total distance:" in capsys.readouterr().out


def test_cli_infeasible(tmp_path, capsys):
    path = tmp_path / "clusters.txt"
    save_matrix(generate_clustered_matrix(sizes=(3, 3), seed=1), path)
    assert main([str(path), '--time', '1', '--seed', '1']) == 1
    assert "Error:" in capsys.readouterr().out


def test_cli_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.txt")]) == 1
    assert "Error:" in capsys.readouterr().out


def test_cli_malformed_matrix(tmp_path, capsys):
    path = tmp_path / "bad.txt"
    path.write_text("0;1;2\n1;0\n")
    assert main([str(path), '--seed', '1']) == 1
    assert "malformed" in capsys.readouterr().out


def test_run_all_experiments(tmp_path):
    instances = tmp_path / "instances"
    generate_instance_set(str(instances), sizes=(5, 6), per_size=1, no_link_prob=0.0, base_seed=1)
    df = run_all_experiments(
        str(instances), str(tmp_path / "results"),
        grasp_params={'k': 3, 'time_budget': 5.0, 'local_search_time_budget': 1.0, 'max_iterations': 5},
        exact_max_cities=8,
        seed=1,
    )
    assert df is not None
    assert set(df['algorithm']) == {'exact', 'random', 'greedy', 'greedy_2opt', 'grasp'}
    assert (df['gap_pct'] >= -1e-9).all()
    assert (df[df['algorithm'] == 'exact']['gap_pct'] == 0).all()
    assert (tmp_path / "results" / "all_results.csv").exists()
    assert (tmp_path / "results" / "summary.csv").exists()
    assert (tmp_path / "results" / "n05_00_results.json").exists()


def test_cli_grasp_beyond_fallback(tmp_path, capsys):
    path = tmp_path / "trap.txt"
    save_matrix(from_rows(NEAREST_TRAP), path)
    assert main([str(path), '--seed', '1', '--time', '10', '--max-iterations', '200']) == 0
    assert "Total distance:" in capsys.readouterr().out


def test_cli_two_opt_with_restarts(tmp_path, capsys):
    path = tmp_path / "m.txt"
    save_matrix(generate_matrix(n=9, seed=4), path)
    assert main([str(path), '--algorithm', 'two_opt', '--ls-restarts', '5', '--seed', '2']) == 0
    assert "Total distance:" in capsys.readouterr().out
    with pytest.raises(ValueError):
        parse_config(['--ls-restarts', '-1'])
