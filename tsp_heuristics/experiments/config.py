"""Typed solver configuration, parsed once from the command line."""

import argparse
import json
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..heuristics.local_search import ACCEPTANCE_POLICIES

DEFAULT_MATRIX = Path(__file__).resolve().parents[2] / "data" / "seven_cities.txt"

ALGORITHMS = ('grasp', 'greedy', 'two_opt', 'exact', 'random')


@dataclass
class SolverConfig:
    """
    Parameters of one solver run.

    Attributes:
        matrix_path: Distance matrix file (';'-delimited, or TSPLIB .tsp)
        delimiter: Field separator of the matrix file
        algorithm: One of ALGORITHMS
        k: GRASP RCL size
        time_budget: GRASP total time budget (seconds)
        local_search_time_budget: Budget of each 2-opt run (seconds)
        seed: Random seed (None = derived from the clock)
        no_link: 'auto', 'zero' or a positive threshold
        fallback_restarts: Randomized restarts of the fallback ladder
        acceptance: 2-opt acceptance policy
        local_search_restarts: Reshuffled 2-opt restarts (two_opt algorithm)
        workers: Parallel GRASP workers
        max_iterations: Optional cap on GRASP iterations
        output: Optional JSON file for the result and its improvement history
        verbose: Print search progress
    """
    matrix_path: str = str(DEFAULT_MATRIX)
    delimiter: str = ';'
    algorithm: str = 'grasp'
    k: int = 3
    time_budget: float = 60.0
    local_search_time_budget: float = 3.0
    seed: Optional[int] = None
    no_link: str = 'auto'
    fallback_restarts: int = 50
    acceptance: str = 'first'
    local_search_restarts: int = 0
    workers: int = 1
    max_iterations: Optional[int] = None
    output: Optional[str] = None
    verbose: bool = False

    def validate(self) -> None:
        """Raise ValueError on out-of-range values."""
        if self.algorithm not in ALGORITHMS:
            raise ValueError(f"unknown algorithm {self.algorithm!r}, expected one of {ALGORITHMS}")
        if self.acceptance not in ACCEPTANCE_POLICIES:
            raise ValueError(f"unknown acceptance policy {self.acceptance!r}, expected one of {ACCEPTANCE_POLICIES}")
        if self.k < 1:
            raise ValueError(f"k must be >= 1, got {self.k}")
        if self.time_budget < 0 or self.local_search_time_budget < 0:
            raise ValueError("time budgets must be non-negative")
        if self.fallback_restarts < 0:
            raise ValueError(f"fallback restarts must be >= 0, got {self.fallback_restarts}")
        if self.local_search_restarts < 0:
            raise ValueError(f"local search restarts must be >= 0, got {self.local_search_restarts}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.max_iterations is not None and self.max_iterations < 0:
            raise ValueError(f"max iterations must be >= 0, got {self.max_iterations}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SolverConfig':
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"unknown configuration keys: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_json(cls, filepath: str) -> 'SolverConfig':
        """Load a JSON object of overrides on top of the defaults."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{filepath}: expected a JSON object")
        return cls.from_dict(data)


# CLI destination name -> SolverConfig field
_ARG_FIELDS = {
    'matrix': 'matrix_path',
    'delimiter': 'delimiter',
    'algorithm': 'algorithm',
    'k': 'k',
    'time': 'time_budget',
    'local_time': 'local_search_time_budget',
    'seed': 'seed',
    'no_link': 'no_link',
    'restarts': 'fallback_restarts',
    'acceptance': 'acceptance',
    'ls_restarts': 'local_search_restarts',
    'workers': 'workers',
    'max_iterations': 'max_iterations',
    'output': 'output',
    'verbose': 'verbose',
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Solve a TSP distance matrix with GRASP, greedy, 2-opt or brute force',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # GRASP with default parameters on the bundled 7-city matrix
  python -m tsp_heuristics.experiments.solve

  # GRASP with RCL size 5, 30 s total and 1 s per local search
  python -m tsp_heuristics.experiments.solve data/seven_cities.txt --k 5 --time 30 --local-time 1 --seed 7

  # Exact answer by brute force, zeros mean "no link"
  python -m tsp_heuristics.experiments.solve my_matrix.txt --algorithm exact --no-link zero
        """
    )
    # Every option defaults to None so that --config values are only
    # overridden by flags that were actually given.
    parser.add_argument('matrix', nargs='?', default=None,
                        help=f'Distance matrix file (default: {DEFAULT_MATRIX.name})')
    parser.add_argument('--config', type=str, default=None,
                        help='JSON file with configuration overrides')
    parser.add_argument('--delimiter', type=str, default=None,
                        help="Matrix field separator (default: ';')")
    parser.add_argument('--algorithm', choices=ALGORITHMS, default=None,
                        help='Algorithm to run (default: grasp)')
    parser.add_argument('--k', type=int, default=None,
                        help='GRASP restricted candidate list size (default: 3)')
    parser.add_argument('--time', type=float, default=None,
                        help='GRASP total time budget in seconds (default: 60)')
    parser.add_argument('--local-time', type=float, default=None,
                        help='Time budget of each 2-opt run in seconds (default: 3)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed (default: derived from the clock)')
    parser.add_argument('--no-link', type=str, default=None,
                        help="Missing-edge convention: 'auto', 'zero' or a threshold such as 1000 (default: auto)")
    parser.add_argument('--restarts', type=int, default=None,
                        help='Randomized restarts of the fallback ladder (default: 50)')
    parser.add_argument('--acceptance', choices=ACCEPTANCE_POLICIES, default=None,
                        help='2-opt acceptance policy (default: first)')
    parser.add_argument('--ls-restarts', type=int, default=None,
                        help='Reshuffled 2-opt restarts for --algorithm two_opt (default: 0)')
    parser.add_argument('--workers', type=int, default=None,
                        help='Parallel GRASP workers (default: 1)')
    parser.add_argument('--max-iterations', type=int, default=None,
                        help='Cap on GRASP iterations (default: none)')
    parser.add_argument('--output', type=str, default=None,
                        help='Write the result and improvement history to this JSON file')
    parser.add_argument('--verbose', action='store_true', default=None,
                        help='Verbose output')
    return parser


def parse_config(argv: Optional[List[str]] = None) -> SolverConfig:
    """
    Build a SolverConfig from command-line arguments.

    Precedence: defaults < --config JSON file < explicit flags.
    """
    args = build_parser().parse_args(argv)

    config = SolverConfig.from_json(args.config) if args.config else SolverConfig()
    for dest, field_name in _ARG_FIELDS.items():
        value = getattr(args, dest)
        if value is not None:
            setattr(config, field_name, value)

    config.validate()
    return config
