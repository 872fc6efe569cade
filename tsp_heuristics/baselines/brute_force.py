"""Brute-force baseline: exhaustive enumeration, used as a correctness oracle."""

import math
from itertools import permutations
from typing import List, Tuple

from ..model.matrix import DistanceMatrix
from ..model.policy import NoLinkPolicy
from ..model.evaluator import TourEvaluator


def solve_exact(
    matrix: DistanceMatrix,
    policy: NoLinkPolicy,
    max_cities: int = 12,
    verbose: bool = False,
) -> Tuple[List[int], float]:
    """
    Optimal tour by enumerating every permutation of cities 1..n-1 with
    city 0 fixed as start and end. O((n-1)! * n), small instances only.

    Args:
        matrix: Distance matrix
        policy: No-link policy
        max_cities: Refuse larger instances
        verbose: Print every new best tour

    Returns:
        Tuple of (optimal closed tour, cost), or ([], inf) when no
        permutation is feasible
    """
    n = matrix.n
    if n > max_cities:
        raise ValueError(f"brute force limited to {max_cities} cities, got {n}")

    ev = TourEvaluator(matrix, policy)
    best_tour: List[int] = []
    best_cost = math.inf

    tour = [0] * (n + 1)
    for perm in permutations(range(1, n)):
        tour[1:n] = perm
        cost = ev.cost(tour)
        if cost < best_cost:
            best_cost = cost
            best_tour = list(tour)
            if verbose:
                print(f"New best distance {best_cost:.2f}: {best_tour}")

    return best_tour, best_cost
