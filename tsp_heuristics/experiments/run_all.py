"""Experimental harness for running all algorithms on a directory of matrices."""

import time
import json
import math
from pathlib import Path
from typing import Dict, Any, Callable, List, Optional

import pandas as pd

from ..model.matrix import DistanceMatrix, load_any
from ..model.policy import NoLinkPolicy
from ..model.result import SearchResult
from .config import SolverConfig
from .solve import run_algorithm

MATRIX_SUFFIXES = ('.txt', '.csv', '.tsp')

AlgorithmFunc = Callable[[DistanceMatrix, NoLinkPolicy, int], SearchResult]


def build_algorithms(
    n: int,
    grasp_params: Optional[Dict[str, Any]] = None,
    exact_max_cities: int = 10,
) -> Dict[str, AlgorithmFunc]:
    """
    Algorithms to compare on an instance with n cities.

    The brute-force oracle is only included when n <= exact_max_cities.
    """
    grasp_params = dict(grasp_params or {})

    def configured(**overrides) -> AlgorithmFunc:
        config = SolverConfig(**overrides)
        config.validate()
        return lambda matrix, policy, seed: run_algorithm(config, matrix, policy, seed)

    alg_dict: Dict[str, AlgorithmFunc] = {
        'random': configured(algorithm='random'),
        'greedy': configured(algorithm='greedy'),
        'greedy_2opt': configured(algorithm='two_opt'),
        'grasp': configured(algorithm='grasp', **grasp_params),
    }
    if n <= exact_max_cities:
        alg_dict['exact'] = configured(algorithm='exact')
    return alg_dict


def run_all_algorithms_on_matrix(
    matrix: DistanceMatrix,
    policy: NoLinkPolicy,
    alg_dict: Dict[str, AlgorithmFunc],
    seed: int = 42
) -> Dict[str, Dict[str, Any]]:
    """
    Run every algorithm on one matrix.

    Returns:
        Dictionary mapping algorithm name to its result dictionary
        (tour, cost, status, runtime, ...) or to {'error': ...} if it raised
    """
    results = {}

    for alg_name, alg_func in alg_dict.items():
        try:
            start = time.perf_counter()
            result = alg_func(matrix, policy, seed)
            runtime = time.perf_counter() - start

            entry = result.to_dict()
            entry['runtime'] = runtime
            results[alg_name] = entry
        except Exception as e:
            print(f"Error running {alg_name}: {e}")
            results[alg_name] = {
                'error': str(e),
                'cost': None,
                'runtime': None
            }

    return results


def save_results(results: Dict[str, Any], filepath: str) -> None:
    """Save results to a JSON file."""
    with open(filepath, 'w') as f:
        json.dump(results, f, indent=2)


def add_gap_to_exact(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add a 'gap_pct' column: percentage gap of each cost to the brute-force
    optimum of the same instance (NaN when no exact result is available).
    """
    df = df.copy()
    exact = df[df['algorithm'] == 'exact'].set_index('instance')['cost']
    optimum = df['instance'].map(exact)
    df['gap_pct'] = 100.0 * (df['cost'] - optimum) / optimum
    return df


def summarize_results(df: pd.DataFrame) -> pd.DataFrame:
    """Mean cost, gap and runtime per algorithm."""
    if 'gap_pct' not in df.columns:
        df = add_gap_to_exact(df)
    return (
        df.groupby('algorithm')
        .agg(
            instances=('instance', 'nunique'),
            mean_cost=('cost', 'mean'),
            mean_gap_pct=('gap_pct', 'mean'),
            max_gap_pct=('gap_pct', 'max'),
            mean_runtime=('runtime', 'mean'),
        )
        .sort_values('mean_cost')
    )


def find_matrix_files(instances_dir: str) -> List[Path]:
    instances_path = Path(instances_dir)
    return sorted(p for p in instances_path.iterdir() if p.suffix.lower() in MATRIX_SUFFIXES)


def run_all_experiments(
    instances_dir: str,
    output_dir: str,
    grasp_params: Optional[Dict[str, Any]] = None,
    exact_max_cities: int = 10,
    no_link: str = 'auto',
    seed: int = 42,
) -> Optional[pd.DataFrame]:
    """
    Run all algorithms on all matrices and save results.

    Layout of output_dir after the run::

        <output_dir>/
            <instance>_results.json   per-instance results
            all_results.csv           one row per (instance, algorithm)
            summary.csv               mean cost / gap / runtime per algorithm

    Args:
        instances_dir: Directory containing matrix files (.txt, .csv, .tsp)
        output_dir: Directory to save results
        grasp_params: SolverConfig overrides for GRASP (k, time_budget, ...)
        exact_max_cities: Largest instance solved by brute force
        no_link: No-link option applied to every matrix
        seed: Random seed passed to every algorithm

    Returns:
        DataFrame of all results, or None if no instance was found
    """
    if grasp_params is None:
        grasp_params = {
            'k': 3,
            'time_budget': 5.0,
            'local_search_time_budget': 1.0,
        }

    matrix_files = find_matrix_files(instances_dir)
    if not matrix_files:
        print(f"No matrix files found in {instances_dir}")
        return None

    all_results = []
    output_path = Path(output_dir)
    output_path.mkdir(exist_ok=True, parents=True)

    print(f"Running experiments on {len(matrix_files)} instances...")

    for matrix_file in matrix_files:
        print(f"\nProcessing {matrix_file.name}...")
        matrix = load_any(matrix_file)
        policy = NoLinkPolicy.from_option(no_link, matrix)
        print(f"  {matrix.n} cities, {policy.describe()}")

        alg_dict = build_algorithms(matrix.n, grasp_params=grasp_params, exact_max_cities=exact_max_cities)
        results = run_all_algorithms_on_matrix(matrix, policy, alg_dict, seed=seed)

        for alg_name in results:
            results[alg_name]['instance'] = matrix_file.stem
            results[alg_name]['n'] = matrix.n
            results[alg_name]['algorithm'] = alg_name

        save_results(results, str(output_path / f"{matrix_file.stem}_results.json"))

        # Collect for summary (skip failed and infeasible runs)
        for alg_name, alg_results in results.items():
            cost = alg_results.get('cost')
            if cost is None or not math.isfinite(cost):
                continue
            all_results.append({
                'instance': matrix_file.stem,
                'n': matrix.n,
                'algorithm': alg_name,
                'cost': cost,
                'status': alg_results.get('status'),
                'runtime': alg_results.get('runtime'),
                'iterations': alg_results.get('iterations'),
                'improvements': alg_results.get('improvements'),
            })
            print(f"  {alg_name:12s} cost={cost:10.2f}  runtime={alg_results.get('runtime', 0.0):.3f}s")

    if not all_results:
        print("\nNo feasible results to summarize")
        return None

    df = add_gap_to_exact(pd.DataFrame(all_results))
    df.to_csv(output_path / 'all_results.csv', index=False)
    print(f"\nSaved results to {output_path / 'all_results.csv'}")

    summary = summarize_results(df)
    summary.to_csv(output_path / 'summary.csv')
    print("\nSummary (gap relative to brute force where available):")
    print(summary.to_string(float_format=lambda v: f"{v:.2f}"))

    print(f"\nExperiments complete! Results saved to {output_dir}/")
    return df
