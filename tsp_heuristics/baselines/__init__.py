"""Baseline algorithms for comparison"""

from .brute_force import solve_exact
from .random_tour import random_feasible_tour

__all__ = ['solve_exact', 'random_feasible_tour']
