"""No-link policy: which matrix values mean "there is no edge"."""

from dataclasses import dataclass
from typing import Union

import numpy as np

from .matrix import DistanceMatrix

# Sentinel used by the course matrices for missing edges
DEFAULT_NO_LINK_VALUE = 1000.0


@dataclass(frozen=True)
class NoLinkPolicy:
    """
    Edge-validity rule for a distance matrix.

    An edge (i, j) with distance d is infeasible iff d >= threshold when
    threshold > 0, else iff d == 0. The policy never changes during a solve.

    Attributes:
        threshold: Sentinel threshold, or 0.0 to treat only literal zeros
            as missing edges
    """
    threshold: float = 0.0

    def __post_init__(self):
        if self.threshold < 0:
            raise ValueError(f"no-link threshold must be non-negative, got {self.threshold}")

    def is_link(self, d: float) -> bool:
        """True if an edge of length d may be travelled."""
        if self.threshold > 0.0:
            return d < self.threshold
        return d != 0.0

    def feasibility_mask(self, matrix: DistanceMatrix) -> np.ndarray:
        """Boolean array, mask[i, j] is True when edge (i, j) exists."""
        if self.threshold > 0.0:
            return matrix.values < self.threshold
        return matrix.values != 0.0

    def describe(self) -> str:
        if self.threshold > 0.0:
            return f"values >= {self.threshold:g} mean 'no link'"
        return "zero values mean 'no link'"

    @classmethod
    def detect(cls, matrix: DistanceMatrix) -> 'NoLinkPolicy':
        """
        Guess the convention used by a matrix.

        If any value reaches DEFAULT_NO_LINK_VALUE the sentinel threshold is
        used, otherwise zeros are treated as missing edges.
        """
        if np.any(matrix.values >= DEFAULT_NO_LINK_VALUE):
            return cls(threshold=DEFAULT_NO_LINK_VALUE)
        return cls(threshold=0.0)

    @classmethod
    def from_option(cls, value: Union[str, float], matrix: DistanceMatrix) -> 'NoLinkPolicy':
        """
        Build a policy from a configuration value.

        Args:
            value: 'auto' (detect from the matrix), 'zero', or a positive number
            matrix: Matrix used by 'auto'

        Returns:
            NoLinkPolicy
        """
        if isinstance(value, str):
            option = value.strip().lower()
            if option == 'auto':
                return cls.detect(matrix)
            if option == 'zero':
                return cls(threshold=0.0)
            try:
                threshold = float(option)
            except ValueError:
                raise ValueError(
                    f"invalid no-link option {value!r}: expected 'auto', 'zero' or a number"
                ) from None
        else:
            threshold = float(value)
        if threshold <= 0:
            raise ValueError(f"no-link threshold must be positive, got {threshold:g}")
        return cls(threshold=threshold)


def count_missing_edges(matrix: DistanceMatrix, policy: NoLinkPolicy) -> int:
    """Number of off-diagonal entries the policy treats as missing edges."""
    mask = policy.feasibility_mask(matrix)
    off_diagonal = ~np.eye(matrix.n, dtype=bool)
    return int(np.sum(~mask & off_diagonal))
