"""Connectivity fallback ladder for matrices with missing edges."""

import math
import random
from dataclasses import dataclass, field
from typing import List, Optional

from ..model.matrix import DistanceMatrix
from ..model.policy import NoLinkPolicy
from ..model.evaluator import TourEvaluator
from .construction import build_greedy

STAGES = ('greedy', 'all_starts', 'random_restarts', 'infeasible')


@dataclass
class FallbackOutcome:
    """
    Result of construct_with_fallback.

    Attributes:
        tour: Closed tour, empty when every stage failed
        cost: Its cost, inf when every stage failed
        stage: Stage that produced the tour, or 'infeasible'
    """
    tour: List[int] = field(default_factory=list)
    cost: float = math.inf
    stage: str = 'infeasible'

    @property
    def feasible(self) -> bool:
        return self.stage != 'infeasible'


def construct_with_fallback(
    matrix: DistanceMatrix,
    policy: NoLinkPolicy,
    rng: Optional[random.Random] = None,
    restarts: int = 50,
    start: int = 0,
    verbose: bool = False,
    evaluator: Optional[TourEvaluator] = None,
) -> FallbackOutcome:
    """
    Build a feasible tour, escalating through the ladder until one works:

    1. greedy nearest neighbour from `start`
    2. greedy from every start city, keeping the best
    3. `restarts` greedy runs from random start cities with random tie-breaking
    4. give up and report the instance as infeasible

    Args:
        matrix: Distance matrix
        policy: No-link policy
        rng: Random source for stage 3
        restarts: Number of randomized restarts
        start: Start city for stage 1
        verbose: Print which stage is being tried
        evaluator: Optional pre-built evaluator for the same matrix/policy

    Returns:
        FallbackOutcome; never a finite-cost tour unless it is feasible
    """
    ev = evaluator if evaluator is not None else TourEvaluator(matrix, policy)
    if rng is None:
        rng = random.Random()

    tour, cost = build_greedy(matrix, policy, start=start, evaluator=ev)
    if math.isfinite(cost):
        return FallbackOutcome(tour=tour, cost=cost, stage='greedy')

    if verbose:
        print(f"Greedy tour from city {start} is infeasible; trying every start city")

    best = FallbackOutcome()
    for s in range(ev.n):
        tour, cost = build_greedy(matrix, policy, start=s, evaluator=ev)
        if cost < best.cost:
            best = FallbackOutcome(tour=tour, cost=cost, stage='all_starts')
    if best.feasible:
        if verbose:
            print(f"Found a feasible tour from start city {best.tour[0]}: distance={best.cost:.2f}")
        return best

    if verbose:
        print(f"No start city works; trying {restarts} random restarts with random tie-breaking")

    for _ in range(restarts):
        s = rng.randrange(ev.n)
        tour, cost = build_greedy(matrix, policy, start=s, random_ties=True, rng=rng, evaluator=ev)
        if cost < best.cost:
            best = FallbackOutcome(tour=tour, cost=cost, stage='random_restarts')
    if best.feasible:
        if verbose:
            print(f"Random restarts found a feasible tour: distance={best.cost:.2f}")
        return best

    if verbose:
        print("No feasible tour found: the graph has no Hamiltonian cycle reachable by construction")
    return FallbackOutcome()
