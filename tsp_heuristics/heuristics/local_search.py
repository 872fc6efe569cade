"""2-opt local search (segment reversal) with a fixed start city.

Tours are closed: position 0 and position n hold the start city and are never
moved. A move reverses positions i..k with 1 <= i < k <= n-1.

Two acceptance policies are available and they are NOT equivalent (they can
reach different local optima after a different number of moves):

- 'first': scan i = 1..n-2, k = i+1..n-1 in that order, apply the first
  reversal that strictly lowers the cost and restart the scan from the top.
  One iteration = one applied move.
- 'segment_length': one pass tries segment lengths L = 2..n-1; for each L the
  best window of that length is applied if it strictly beats the current
  cost, then the pass continues with L+1. One iteration = one pass.
"""

import math
import random
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..model.matrix import DistanceMatrix
from ..model.policy import NoLinkPolicy
from ..model.evaluator import TourEvaluator, tour_cost
from ..model.result import Improvement

ACCEPTANCE_POLICIES = ('first', 'segment_length')


@dataclass
class LocalSearchStats:
    """
    Bookkeeping for one local search run.

    Attributes:
        iterations: Applied moves ('first') or passes ('segment_length')
        converged: True if the last scan found no improving move, i.e. the
            tour is 2-opt optimal; False if a budget stopped the search
        elapsed: Wall-clock seconds
        history: Initial tour plus one entry per applied improvement
    """
    iterations: int = 0
    converged: bool = False
    elapsed: float = 0.0
    history: List[Improvement] = field(default_factory=list)


def reverse_segment(tour: Sequence[int], i: int, k: int) -> List[int]:
    """Return a copy of `tour` with positions i..k (inclusive) reversed."""
    tour = list(tour)
    tour[i:k + 1] = tour[i:k + 1][::-1]
    return tour


def first_improving_move(
    ev: TourEvaluator,
    tour: Sequence[int],
    current_cost: float
) -> Optional[Tuple[int, int, float]]:
    """First (i, k, new_cost) in scan order with new_cost < current_cost."""
    n = len(tour) - 1
    for i in range(1, n - 1):
        for k in range(i + 1, n):
            d = ev.reversal_cost(tour, i, k)
            if d < current_cost:
                return i, k, d
    return None


def two_opt(
    tour: Sequence[int],
    matrix: DistanceMatrix,
    policy: NoLinkPolicy,
    max_iterations: Optional[int] = 10_000,
    time_limit: Optional[float] = None,
    acceptance: str = 'first',
    verbose: bool = False,
    evaluator: Optional[TourEvaluator] = None,
    random_restarts: int = 0,
    rng: Optional[random.Random] = None,
) -> Tuple[List[int], float, LocalSearchStats]:
    """
    Improve a feasible closed tour with 2-opt moves until no reversal helps
    or the budget runs out.

    The result never costs more than the input. With random_restarts > 0 the
    interior of the input tour (start city fixed) is reshuffled that many
    times; every feasible shuffle is improved with 2-opt and replaces the
    result if it is strictly cheaper.

    Args:
        tour: Feasible closed tour (first == last)
        matrix: Distance matrix
        policy: No-link policy
        max_iterations: Maximum number of iterations (None = unbounded)
        time_limit: Wall-clock budget in seconds, checked between
            iterations (None = unbounded)
        acceptance: 'first' or 'segment_length' (see module docstring)
        verbose: Print each improvement
        evaluator: Optional pre-built evaluator for the same matrix/policy
        random_restarts: Number of reshuffled restarts after the first run
        rng: Random source for the restarts (a fresh unseeded one if None)

    Returns:
        Tuple of (best_tour, best_cost, stats)

    Raises:
        ValueError: if the input tour is infeasible (infinite cost) or the
            acceptance policy is unknown
    """
    if acceptance not in ACCEPTANCE_POLICIES:
        raise ValueError(f"unknown acceptance policy {acceptance!r}, expected one of {ACCEPTANCE_POLICIES}")

    ev = evaluator if evaluator is not None else TourEvaluator(matrix, policy)
    current = list(tour)
    if len(current) < 2 or current[0] != current[-1]:
        raise ValueError("2-opt needs a closed tour (first city == last city)")
    current_cost = ev.cost(current)
    if math.isinf(current_cost):
        raise ValueError("2-opt needs a feasible starting tour (cost is inf)")

    start_time = time.perf_counter()
    stats = LocalSearchStats(history=[Improvement(tour=list(current), cost=current_cost, source='initial')])

    def budget_left() -> bool:
        if max_iterations is not None and stats.iterations >= max_iterations:
            return False
        if time_limit is not None and time.perf_counter() - start_time >= time_limit:
            return False
        return True

    def record(reason: str) -> None:
        stats.history.append(Improvement(
            tour=list(current),
            cost=current_cost,
            elapsed=time.perf_counter() - start_time,
            source='two_opt',
        ))
        if verbose:
            print(f"2-opt iteration {stats.iterations}: {reason}, distance={current_cost:.2f}")

    if acceptance == 'first':
        while budget_left():
            move = first_improving_move(ev, current, current_cost)
            if move is None:
                stats.converged = True
                break
            i, k, current_cost = move
            current = reverse_segment(current, i, k)
            stats.iterations += 1
            record(f"reversed positions {i}..{k}")
    else:
        n = len(current) - 1
        while budget_left():
            improved = False
            for length in range(2, n):
                best_d = math.inf
                best_i = None
                for i in range(1, n - length + 1):
                    d = ev.reversal_cost(current, i, i + length - 1)
                    if d < best_d:
                        best_d = d
                        best_i = i
                if best_i is not None and best_d < current_cost:
                    current = reverse_segment(current, best_i, best_i + length - 1)
                    current_cost = best_d
                    improved = True
                    record(f"reversed {length} cities from position {best_i}")
            stats.iterations += 1
            if not improved:
                stats.converged = True
                break

    if random_restarts > 0:
        if rng is None:
            rng = random.Random()
        n = len(current) - 1
        for r in range(random_restarts):
            remaining = None
            if time_limit is not None:
                remaining = time_limit - (time.perf_counter() - start_time)
                if remaining <= 0:
                    break
            interior = list(tour[1:n])
            rng.shuffle(interior)
            shuffled = [tour[0]] + interior + [tour[0]]
            if math.isinf(ev.cost(shuffled)):
                continue

            offset = time.perf_counter() - start_time
            tour_r, cost_r, stats_r = two_opt(
                shuffled, matrix, policy,
                max_iterations=max_iterations,
                time_limit=remaining,
                acceptance=acceptance,
                evaluator=ev,
            )
            stats.iterations += stats_r.iterations
            if cost_r < current_cost:
                # Keep the history strictly decreasing
                for h in stats_r.history:
                    if h.cost < current_cost:
                        stats.history.append(Improvement(
                            tour=h.tour, cost=h.cost, elapsed=offset + h.elapsed, source='restart',
                        ))
                current, current_cost = tour_r, cost_r
                stats.converged = stats_r.converged
                if verbose:
                    print(f"2-opt restart {r + 1}: distance={current_cost:.2f}")

    stats.elapsed = time.perf_counter() - start_time
    if verbose and not stats.converged:
        print(f"Stopping 2-opt due to budget after {stats.iterations} iterations ({stats.elapsed:.2f}s)")
    return current, current_cost, stats


def is_two_opt_optimal(tour: Sequence[int], matrix: DistanceMatrix, policy: NoLinkPolicy) -> bool:
    """
    Exhaustive check that no single reversal of positions i..k
    (1 <= i < k <= n-1) strictly lowers the cost of `tour`.
    """
    base = tour_cost(tour, matrix, policy)
    n = len(tour) - 1
    for i in range(1, n - 1):
        for k in range(i + 1, n):
            if tour_cost(reverse_segment(tour, i, k), matrix, policy) < base:
                return False
    return True
