"""Tour cost evaluation.

A tour is a closed sequence of 0-based city indices whose first and last
entries are the same city, e.g. [0, 2, 1, 3, 0] for four cities. Any tour
that uses a missing edge costs +inf.
"""

import math
from typing import List, Sequence

from .matrix import DistanceMatrix
from .policy import NoLinkPolicy


def tour_cost(tour: Sequence[int], matrix: DistanceMatrix, policy: NoLinkPolicy) -> float:
    """
    Total length of a tour (open or closed) under a no-link policy.

    Sums matrix[tour[p], tour[p+1]] over consecutive pairs and returns
    math.inf as soon as an edge is missing.

    Args:
        tour: Sequence of city indices, length >= 2
        matrix: Distance matrix
        policy: No-link policy

    Returns:
        Total length in [0, inf]
    """
    if len(tour) < 2:
        raise ValueError(f"a tour needs at least 2 positions, got {len(tour)}")
    values = matrix.values
    total = 0.0
    for p in range(len(tour) - 1):
        d = float(values[tour[p], tour[p + 1]])
        if not policy.is_link(d):
            return math.inf
        total += d
    return total


class TourEvaluator:
    """
    Cost evaluator for the search hot path.

    Weights and the edge-feasibility table are converted to nested lists once,
    so evaluating a tour does no numpy indexing and builds no new lists.
    """

    def __init__(self, matrix: DistanceMatrix, policy: NoLinkPolicy):
        self.matrix = matrix
        self.policy = policy
        self.n = matrix.n
        self._weights = matrix.as_lists()
        self._links = policy.feasibility_mask(matrix).tolist()

    def is_link(self, a: int, b: int) -> bool:
        return self._links[a][b]

    def distance(self, a: int, b: int) -> float:
        return self._weights[a][b]

    def cost(self, tour: Sequence[int]) -> float:
        """Same result as tour_cost(tour, matrix, policy)."""
        if len(tour) < 2:
            raise ValueError(f"a tour needs at least 2 positions, got {len(tour)}")
        weights = self._weights
        links = self._links
        total = 0.0
        a = tour[0]
        for p in range(1, len(tour)):
            b = tour[p]
            if not links[a][b]:
                return math.inf
            total += weights[a][b]
            a = b
        return total

    def reversal_cost(self, tour: Sequence[int], i: int, k: int) -> float:
        """
        Cost of the tour with positions i..k (inclusive) reversed.

        Walks the reversed tour in place and adds edges in the same order as
        cost() would on the materialized list, so both give identical floats.
        """
        weights = self._weights
        links = self._links
        s = i + k
        total = 0.0
        a = tour[s] if i <= 0 <= k else tour[0]
        for p in range(1, len(tour)):
            b = tour[s - p] if i <= p <= k else tour[p]
            if not links[a][b]:
                return math.inf
            total += weights[a][b]
            a = b
        return total


def is_closed_tour(tour: Sequence[int], n: int) -> bool:
    """
    Check the tour invariant: length n+1, first == last, and every city
    0..n-1 appears exactly once among the first n positions.
    """
    if len(tour) != n + 1 or n < 1:
        return False
    if tour[0] != tour[-1]:
        return False
    return sorted(tour[:-1]) == list(range(n))


def rotate_to_start(tour: Sequence[int], start: int = 0) -> List[int]:
    """
    Rotate a closed tour so that it starts and ends at `start`.

    The visiting order, and therefore the cost, is unchanged.
    """
    body = list(tour[:-1])
    if not body or body[0] == start:
        return list(tour)
    pos = body.index(start)
    rotated = body[pos:] + body[:pos]
    rotated.append(start)
    return rotated
