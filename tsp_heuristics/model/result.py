"""Search state and result data structures."""

import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence


@dataclass
class Improvement:
    """
    Snapshot recorded each time a strictly better tour is found.

    Attributes:
        tour: Copy of the tour at that moment
        cost: Its total length
        elapsed: Seconds since the search started
        source: Which step produced it ('seed', 'two_opt', 'grasp', ...)
    """
    tour: List[int]
    cost: float
    elapsed: float = 0.0
    source: str = ""


class SearchState:
    """
    Best-so-far tracker owned by a single search routine.

    The best cost never increases; every strict improvement is appended to
    `history` in chronological order, so a consumer can replay the run frame
    by frame.
    """

    def __init__(self):
        self.best_tour: List[int] = []
        self.best_cost: float = math.inf
        self.history: List[Improvement] = []
        self._start = time.perf_counter()

    def start(self) -> None:
        """Reset the wall-clock origin used for `elapsed`."""
        self._start = time.perf_counter()

    def elapsed(self) -> float:
        return time.perf_counter() - self._start

    @property
    def feasible(self) -> bool:
        return math.isfinite(self.best_cost)

    def update(self, tour: Sequence[int], cost: float, source: str = "") -> bool:
        """
        Record (tour, cost) if it strictly improves on the best.

        Returns:
            True if the best solution changed
        """
        if not cost < self.best_cost:
            return False
        self.best_tour = list(tour)
        self.best_cost = cost
        self.history.append(Improvement(
            tour=list(tour),
            cost=cost,
            elapsed=self.elapsed(),
            source=source,
        ))
        return True


@dataclass
class SearchResult:
    """
    Outcome of a solver run.

    Attributes:
        tour: Best closed tour found (empty if infeasible)
        cost: Its total length (inf if infeasible)
        status: 'optimal' (exhaustive search), 'feasible' (heuristic) or
            'infeasible' (no Hamiltonian cycle honouring the no-link policy found)
        history: Improvement history, chronological
        iterations: Number of construction + local search iterations run
        runtime: Wall-clock seconds
        construction_failures: GRASP constructions that hit a dead end
        fallback_stage: Fallback ladder stage that produced the seed tour
        seed: Random seed actually used
    """
    tour: List[int]
    cost: float
    status: str
    history: List[Improvement] = field(default_factory=list)
    iterations: int = 0
    runtime: float = 0.0
    construction_failures: int = 0
    fallback_stage: Optional[str] = None
    seed: Optional[int] = None

    @property
    def feasible(self) -> bool:
        return self.status != 'infeasible'

    def to_dict(self, include_history: bool = False) -> Dict[str, Any]:
        """JSON-friendly representation (inf cost is stored as None)."""
        data = {
            'tour': list(self.tour),
            'cost': self.cost if math.isfinite(self.cost) else None,
            'status': self.status,
            'iterations': self.iterations,
            'runtime': self.runtime,
            'construction_failures': self.construction_failures,
            'fallback_stage': self.fallback_stage,
            'seed': self.seed,
            'improvements': len(self.history),
        }
        if include_history:
            data['history'] = [
                {'tour': h.tour, 'cost': h.cost, 'elapsed': h.elapsed, 'source': h.source}
                for h in self.history
            ]
        return data
