"""GRASP driver (time-limited, multi-start) and its parallel variant."""

import math
import random
import time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from typing import Optional

from ..model.matrix import DistanceMatrix
from ..model.policy import NoLinkPolicy
from ..model.evaluator import TourEvaluator, rotate_to_start
from ..model.result import SearchState, SearchResult
from .construction import build_grasp
from .fallback import construct_with_fallback
from .local_search import two_opt


def default_seed() -> int:
    """Seed derived from the wall clock (milliseconds modulo 2^31 - 1)."""
    return int(time.time() * 1000) % (2 ** 31 - 1)


def solve_grasp(
    matrix: DistanceMatrix,
    policy: NoLinkPolicy,
    k: int = 3,
    time_budget: float = 60.0,
    local_search_time_budget: float = 3.0,
    seed: Optional[int] = None,
    max_iterations: Optional[int] = None,
    fallback_restarts: int = 50,
    acceptance: str = 'first',
    verbose: bool = False,
) -> SearchResult:
    """
    GRASP over closed tours starting at city 0 (anytime, time-limited).

    The search is seeded with the connectivity fallback ladder and 2-opt. If the
    ladder finds nothing, the RCL constructor keeps trying and the first tour it
    builds becomes the seed. Then, until `time_budget` seconds have elapsed
    (checked between iterations):
    1. Build a tour with the RCL constructor from a random start city
       (if construction hits a dead end, the best tour is reused as seed)
    2. Rotate it to start at city 0 and improve it with 2-opt, bounded by
       `local_search_time_budget`
    3. Keep it if it beats the best tour

    Args:
        matrix: Distance matrix
        policy: No-link policy
        k: RCL size
        time_budget: Total wall-clock budget in seconds
        local_search_time_budget: Budget of each 2-opt run in seconds
        seed: Random seed (None derives one from the clock)
        max_iterations: Optional cap on GRASP iterations
        fallback_restarts: Randomized restarts of the fallback ladder
        acceptance: 2-opt acceptance policy ('first' or 'segment_length')
        verbose: Print progress

    Returns:
        SearchResult with status 'feasible', or 'infeasible' when neither the
        fallback ladder nor any RCL construction within the budget built a tour.
        `fallback_stage` is the ladder stage, 'infeasible' if the ladder failed
    """
    if k < 1:
        raise ValueError(f"RCL size k must be >= 1, got {k}")
    if time_budget < 0 or local_search_time_budget < 0:
        raise ValueError("time budgets must be non-negative")
    if seed is None:
        seed = default_seed()

    rng = random.Random(seed)
    ev = TourEvaluator(matrix, policy)
    state = SearchState()
    state.start()

    # Seed solution
    outcome = construct_with_fallback(
        matrix, policy, rng=rng, restarts=fallback_restarts, verbose=verbose, evaluator=ev
    )
    if outcome.feasible:
        seed_tour = rotate_to_start(outcome.tour, 0)
        state.update(seed_tour, outcome.cost, source=outcome.stage)
        tour, cost, _ = two_opt(
            seed_tour, matrix, policy,
            max_iterations=None,
            time_limit=local_search_time_budget,
            acceptance=acceptance,
            evaluator=ev,
        )
        state.update(tour, cost, source='two_opt')
        if verbose:
            print(f"GRASP seed ({outcome.stage}): distance={outcome.cost:.2f}, after 2-opt={state.best_cost:.2f}")
    elif verbose:
        print("GRASP: fallback ladder found no tour; relying on RCL construction")

    iterations = 0
    failures = 0
    while state.elapsed() < time_budget:
        if max_iterations is not None and iterations >= max_iterations:
            break
        iterations += 1

        # Construction phase
        tour, cost = build_grasp(matrix, policy, k=k, rng=rng, evaluator=ev)
        if math.isinf(cost):
            failures += 1
            if not state.feasible:
                continue
            tour = state.best_tour
        else:
            tour = rotate_to_start(tour, 0)
            if not state.feasible and state.update(tour, cost, source='grasp') and verbose:
                print(f"GRASP iteration {iterations}: first feasible tour, distance={cost:.2f}")

        # Local search phase
        tour, cost, _ = two_opt(
            tour, matrix, policy,
            max_iterations=None,
            time_limit=local_search_time_budget,
            acceptance=acceptance,
            evaluator=ev,
        )

        if state.update(tour, cost, source='grasp') and verbose:
            print(f"GRASP iteration {iterations}: best_cost={state.best_cost:.2f} ({state.elapsed():.2f}s)")

    if verbose:
        print(
            f"GRASP finished: {iterations} iterations, {failures} failed constructions, "
            f"best_cost={state.best_cost:.2f}"
        )

    if not state.feasible:
        return SearchResult(
            tour=[],
            cost=math.inf,
            status='infeasible',
            iterations=iterations,
            runtime=state.elapsed(),
            construction_failures=failures,
            fallback_stage=outcome.stage,
            seed=seed,
        )

    return SearchResult(
        tour=state.best_tour,
        cost=state.best_cost,
        status='feasible',
        history=state.history,
        iterations=iterations,
        runtime=state.elapsed(),
        construction_failures=failures,
        fallback_stage=outcome.stage,
        seed=seed,
    )


def solve_grasp_parallel(
    matrix: DistanceMatrix,
    policy: NoLinkPolicy,
    k: int = 3,
    time_budget: float = 60.0,
    local_search_time_budget: float = 3.0,
    seed: Optional[int] = None,
    n_workers: int = 4,
    use_processes: bool = True,
    **kwargs,
) -> SearchResult:
    """
    Run independent GRASP workers with seeds seed, seed+1, ... and return the
    best result.

    Each worker owns its own state; only the read-only matrix and policy are
    shared. The reported cost is the minimum over all workers, the iteration
    and failure counts are summed.

    Args:
        n_workers: Number of workers
        use_processes: Use a process pool (True) or a thread pool (False)
        **kwargs: Passed to solve_grasp (max_iterations, acceptance, ...)
    """
    if n_workers < 1:
        raise ValueError(f"n_workers must be >= 1, got {n_workers}")
    if seed is None:
        seed = default_seed()

    start = time.perf_counter()
    executor_cls = ProcessPoolExecutor if use_processes else ThreadPoolExecutor
    with executor_cls(max_workers=n_workers) as pool:
        futures = [
            pool.submit(
                solve_grasp, matrix, policy,
                k=k,
                time_budget=time_budget,
                local_search_time_budget=local_search_time_budget,
                seed=seed + w,
                **kwargs,
            )
            for w in range(n_workers)
        ]
        results = [f.result() for f in futures]

    feasible = [r for r in results if r.feasible]
    if not feasible:
        best = results[0]
    else:
        best = min(feasible, key=lambda r: r.cost)
    best.iterations = sum(r.iterations for r in results)
    best.construction_failures = sum(r.construction_failures for r in results)
    best.runtime = time.perf_counter() - start
    return best
