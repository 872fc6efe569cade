"""Heuristic algorithms: greedy and GRASP construction, 2-opt, fallback ladder, GRASP driver"""

from .construction import build_greedy, build_grasp
from .local_search import two_opt, is_two_opt_optimal, reverse_segment, LocalSearchStats, ACCEPTANCE_POLICIES
from .fallback import construct_with_fallback, FallbackOutcome
from .grasp import solve_grasp, solve_grasp_parallel, default_seed

__all__ = [
    'build_greedy', 'build_grasp',
    'two_opt', 'is_two_opt_optimal', 'reverse_segment', 'LocalSearchStats', 'ACCEPTANCE_POLICIES',
    'construct_with_fallback', 'FallbackOutcome',
    'solve_grasp', 'solve_grasp_parallel', 'default_seed',
]
