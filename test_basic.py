"""Basic integration test to verify all components work together."""

import math

from tsp_heuristics.model import from_rows, NoLinkPolicy, tour_cost, is_closed_tour
from tsp_heuristics.baselines import solve_exact, random_feasible_tour
from tsp_heuristics.heuristics import build_greedy, construct_with_fallback, two_opt, solve_grasp


SEVEN_CITIES = [
    [1000, 12, 10, 1000, 1000, 1000, 12],
    [12, 1000, 8, 12, 1000, 1000, 1000],
    [10, 8, 1000, 11, 3, 1000, 9],
    [1000, 12, 11, 1000, 11, 10, 1000],
    [1000, 1000, 3, 11, 1000, 6, 7],
    [1000, 1000, 1000, 10, 6, 1000, 9],
    [12, 1000, 9, 1000, 7, 9, 1000],
]


def test_small_instance():
    """Test with the 7-city matrix (1000 = no link)."""
    print("Testing with 7-city matrix...")

    matrix = from_rows(SEVEN_CITIES, name="seven")
    policy = NoLinkPolicy.detect(matrix)
    assert policy.threshold == 1000
    print(f"  Matrix validated, {policy.describe()}")

    naive = list(range(7)) + [0]
    cost = tour_cost(naive, matrix, policy)
    print(f"  Naive tour cost = {cost:.2f}")
    assert cost == 69

    # Baselines
    print("\nTesting baselines...")
    exact_tour, exact_cost = solve_exact(matrix, policy)
    print(f"  Brute force: cost = {exact_cost:.2f}")
    assert exact_cost == 63
    assert is_closed_tour(exact_tour, 7)

    rand_tour, rand_cost = random_feasible_tour(matrix, policy, seed=42, max_attempts=5000)
    print(f"  Random feasible: cost = {rand_cost:.2f}")
    assert math.isfinite(rand_cost)
    assert rand_cost >= exact_cost

    # Heuristics
    print("\nTesting heuristics...")
    tour, cost = build_greedy(matrix, policy, start=0)
    print(f"  Greedy from city 0: cost = {cost}")
    assert tour == [] and math.isinf(cost), "nearest neighbour from city 0 reaches a dead end"

    outcome = construct_with_fallback(matrix, policy)
    print(f"  Fallback ladder: stage = {outcome.stage}, cost = {outcome.cost:.2f}")
    assert outcome.stage == 'all_starts'

    improved, improved_cost, stats = two_opt(outcome.tour, matrix, policy)
    print(f"  2-opt: cost = {improved_cost:.2f} after {stats.iterations} moves")
    assert exact_cost <= improved_cost <= outcome.cost

    result = solve_grasp(matrix, policy, k=3, time_budget=5.0, local_search_time_budget=1.0,
                         seed=1, max_iterations=30)
    print(f"  GRASP: cost = {result.cost:.2f}, iterations = {result.iterations}")
    assert result.status == 'feasible'
    assert result.tour[0] == 0 and result.tour[-1] == 0
    assert is_closed_tour(result.tour, 7)
    assert result.cost >= exact_cost
    assert result.cost == tour_cost(result.tour, matrix, policy)

    print("\nAll basic tests passed!")


if __name__ == '__main__':
    test_small_instance()
