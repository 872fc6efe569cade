"""Construction heuristics: greedy nearest neighbour and GRASP."""

import math
import random
from typing import List, Optional, Tuple

from ..model.matrix import DistanceMatrix
from ..model.policy import NoLinkPolicy
from ..model.evaluator import TourEvaluator

# Distances closer than this are considered tied
TIE_TOLERANCE = 1e-12

# Returned when construction reaches a city with no feasible unvisited neighbour
FAILED: Tuple[List[int], float] = ([], math.inf)


def build_greedy(
    matrix: DistanceMatrix,
    policy: NoLinkPolicy,
    start: int = 0,
    random_ties: bool = False,
    rng: Optional[random.Random] = None,
    evaluator: Optional[TourEvaluator] = None,
) -> Tuple[List[int], float]:
    """
    Nearest-neighbour constructor.

    Starting at `start`, repeatedly move to the nearest unvisited city
    reachable under the no-link policy, then return to `start`.

    Args:
        matrix: Distance matrix
        policy: No-link policy
        start: Start (and end) city
        random_ties: Break distance ties uniformly at random instead of
            taking the lowest index
        rng: Random source used for tie-breaking
        evaluator: Optional pre-built evaluator for the same matrix/policy

    Returns:
        Tuple of (closed tour, cost). ([], inf) if some step has no feasible
        unvisited city or the closing edge is missing.
    """
    ev = evaluator if evaluator is not None else TourEvaluator(matrix, policy)
    n = ev.n
    if not 0 <= start < n:
        raise ValueError(f"start city {start} out of range for {n} cities")
    if random_ties and rng is None:
        rng = random.Random()

    visited = [False] * n
    visited[start] = True
    tour = [start]
    current = start

    for _ in range(n - 1):
        best_d = math.inf
        candidates: List[int] = []
        for j in range(n):
            if visited[j] or not ev.is_link(current, j):
                continue
            d = ev.distance(current, j)
            if d < best_d - TIE_TOLERANCE:
                best_d = d
                candidates = [j]
            elif abs(d - best_d) <= TIE_TOLERANCE:
                candidates.append(j)

        if not candidates:
            return FAILED

        if random_ties and len(candidates) > 1:
            next_city = rng.choice(candidates)
        else:
            next_city = candidates[0]

        tour.append(next_city)
        visited[next_city] = True
        current = next_city

    tour.append(start)
    cost = ev.cost(tour)
    if math.isinf(cost):
        return FAILED
    return tour, cost


def rank_candidates(ev: TourEvaluator, current: int, visited: List[bool]) -> List[int]:
    """Feasible unvisited cities sorted by distance from `current` (ties by index)."""
    feasible = [j for j in range(ev.n) if not visited[j] and ev.is_link(current, j)]
    feasible.sort(key=lambda j: ev.distance(current, j))
    return feasible


def build_grasp(
    matrix: DistanceMatrix,
    policy: NoLinkPolicy,
    k: int = 3,
    start: Optional[int] = None,
    rng: Optional[random.Random] = None,
    evaluator: Optional[TourEvaluator] = None,
) -> Tuple[List[int], float]:
    """
    GRASP constructor: greedy with randomized selection from a Restricted
    Candidate List (RCL).

    At each step:
    1. Rank feasible unvisited cities by distance from the current city
    2. Keep the first min(k, #feasible) of them as the RCL
    3. Move to a city drawn uniformly from the RCL

    Args:
        matrix: Distance matrix
        policy: No-link policy
        k: RCL size (k=1 is deterministic nearest neighbour)
        start: Start city; None draws one from `rng`
        rng: Random source (a fresh unseeded one if None)
        evaluator: Optional pre-built evaluator for the same matrix/policy

    Returns:
        Tuple of (closed tour, cost), or ([], inf) on a dead end
    """
    if k < 1:
        raise ValueError(f"RCL size k must be >= 1, got {k}")
    if rng is None:
        rng = random.Random()
    ev = evaluator if evaluator is not None else TourEvaluator(matrix, policy)
    n = ev.n

    if start is None:
        start = rng.randrange(n)
    elif not 0 <= start < n:
        raise ValueError(f"start city {start} out of range for {n} cities")

    visited = [False] * n
    visited[start] = True
    tour = [start]
    current = start

    for _ in range(n - 1):
        ranked = rank_candidates(ev, current, visited)
        if not ranked:
            return FAILED
        rcl = ranked[:k]
        next_city = rcl[0] if len(rcl) == 1 else rng.choice(rcl)
        tour.append(next_city)
        visited[next_city] = True
        current = next_city

    tour.append(start)
    cost = ev.cost(tour)
    if math.isinf(cost):
        return FAILED
    return tour, cost
