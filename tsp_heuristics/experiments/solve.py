"""Command-line solver for a single distance matrix."""

import json
import math
import random
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence

from ..model.matrix import DistanceMatrix, MatrixFormatError, load_any
from ..model.policy import NoLinkPolicy
from ..model.result import Improvement, SearchResult
from ..heuristics import construct_with_fallback, two_opt, solve_grasp, solve_grasp_parallel, default_seed
from ..baselines import solve_exact, random_feasible_tour
from .config import SolverConfig, parse_config


def format_tour(tour: Sequence[int]) -> str:
    """Tour with 1-based city labels, matching the rows of the matrix file."""
    return " → ".join(str(city + 1) for city in tour)


def _single_tour_result(tour: List[int], cost: float, status: str, start: float,
                        seed: Optional[int], stage: Optional[str] = None) -> SearchResult:
    if math.isinf(cost):
        return SearchResult(tour=[], cost=math.inf, status='infeasible',
                            runtime=time.perf_counter() - start, fallback_stage=stage, seed=seed)
    return SearchResult(
        tour=tour,
        cost=cost,
        status=status,
        history=[Improvement(tour=list(tour), cost=cost, source=stage or status)],
        runtime=time.perf_counter() - start,
        fallback_stage=stage,
        seed=seed,
    )


def run_algorithm(config: SolverConfig, matrix: DistanceMatrix, policy: NoLinkPolicy, seed: int) -> SearchResult:
    """
    Run the configured algorithm.

    Args:
        config: Solver configuration
        matrix: Distance matrix
        policy: No-link policy
        seed: Random seed

    Returns:
        SearchResult (status 'infeasible' if no tour was found)
    """
    start = time.perf_counter()

    if config.algorithm == 'grasp':
        params = dict(
            k=config.k,
            time_budget=config.time_budget,
            local_search_time_budget=config.local_search_time_budget,
            seed=seed,
            max_iterations=config.max_iterations,
            fallback_restarts=config.fallback_restarts,
            acceptance=config.acceptance,
            verbose=config.verbose,
        )
        if config.workers > 1:
            return solve_grasp_parallel(matrix, policy, n_workers=config.workers, **params)
        return solve_grasp(matrix, policy, **params)

    if config.algorithm == 'exact':
        tour, cost = solve_exact(matrix, policy, verbose=config.verbose)
        return _single_tour_result(tour, cost, 'optimal', start, seed)

    if config.algorithm == 'random':
        tour, cost = random_feasible_tour(matrix, policy, seed=seed)
        return _single_tour_result(tour, cost, 'feasible', start, seed, stage='random')

    rng = random.Random(seed)
    outcome = construct_with_fallback(
        matrix, policy,
        rng=rng,
        restarts=config.fallback_restarts,
        verbose=config.verbose,
    )
    if config.algorithm == 'greedy' or not outcome.feasible:
        return _single_tour_result(outcome.tour, outcome.cost, 'feasible', start, seed, stage=outcome.stage)

    # two_opt: greedy seed + local search
    tour, cost, stats = two_opt(
        outcome.tour, matrix, policy,
        max_iterations=config.max_iterations,
        time_limit=config.local_search_time_budget,
        acceptance=config.acceptance,
        verbose=config.verbose,
        random_restarts=config.local_search_restarts,
        rng=rng,
    )
    return SearchResult(
        tour=tour,
        cost=cost,
        status='feasible',
        history=stats.history,
        iterations=stats.iterations,
        runtime=time.perf_counter() - start,
        fallback_stage=outcome.stage,
        seed=seed,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns the process exit status."""
    try:
        config = parse_config(argv)
    except (ValueError, OSError) as e:
        print(f"Error: invalid configuration: {e}")
        return 1

    if config.seed is None:
        seed = default_seed()
        print(f"No seed given; using seed derived from the clock: {seed}")
    else:
        seed = config.seed
        print(f"Using seed: {seed}")

    print(f"Reading distance matrix: {config.matrix_path}")
    try:
        matrix = load_any(config.matrix_path, delimiter=config.delimiter)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        return 1
    except MatrixFormatError as e:
        print(f"Error: malformed distance matrix: {e}")
        return 1
    print(f"Matrix read: {matrix.n} cities")

    try:
        policy = NoLinkPolicy.from_option(config.no_link, matrix)
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    print(f"No-link rule ({config.no_link}): {policy.describe()}")

    if config.algorithm == 'grasp':
        print(
            f"Running GRASP (k={config.k}, time={config.time_budget}s, "
            f"local_time={config.local_search_time_budget}s, workers={config.workers})"
        )
    else:
        print(f"Running {config.algorithm}")

    try:
        result = run_algorithm(config, matrix, policy, seed)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    if config.output:
        Path(config.output).parent.mkdir(parents=True, exist_ok=True)
        with open(config.output, 'w') as f:
            json.dump({'config': config.to_dict(), 'result': result.to_dict(include_history=True)}, f, indent=2)
        print(f"Saved result to {config.output}")

    if not result.feasible:
        print(f"Error: {config.algorithm} found no feasible tour ({policy.describe()}); "
              f"no construction strategy reached a tour honouring the no-link rule")
        return 1

    print(f"Execution time: {result.runtime:.3f} seconds")
    print(f"Final tour: {format_tour(result.tour)}")
    print(f"Total distance: {result.cost:g}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
