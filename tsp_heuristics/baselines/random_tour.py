"""Random feasible tour baseline."""

import math
import random
from typing import List, Optional, Tuple

from ..model.matrix import DistanceMatrix
from ..model.policy import NoLinkPolicy
from ..model.evaluator import TourEvaluator


def random_feasible_tour(
    matrix: DistanceMatrix,
    policy: NoLinkPolicy,
    seed: Optional[int] = 42,
    max_attempts: int = 1000,
) -> Tuple[List[int], float]:
    """
    Random baseline: shuffle cities 1..n-1 (city 0 fixed as start and end)
    until the tour uses no missing edge.

    Args:
        matrix: Distance matrix
        policy: No-link policy
        seed: Random seed for reproducibility
        max_attempts: Number of shuffles before giving up

    Returns:
        Tuple of (closed tour, cost), or ([], inf) if no attempt was feasible
    """
    rng = random.Random(seed)
    ev = TourEvaluator(matrix, policy)
    middle = list(range(1, matrix.n))

    for _ in range(max_attempts):
        rng.shuffle(middle)
        candidate = [0] + middle + [0]
        cost = ev.cost(candidate)
        if math.isfinite(cost):
            return candidate, cost

    return [], math.inf
