"""Instance generator for creating synthetic distance matrices."""

import numpy as np
from pathlib import Path
from typing import Sequence, Tuple

from .matrix import DistanceMatrix, euclidean_distances, save_matrix
from .policy import DEFAULT_NO_LINK_VALUE


def generate_matrix(
    n: int = 10,
    seed: int = 42,
    distance_range: Tuple[float, float] = (1.0, 100.0),
    symmetric: bool = True,
    no_link_prob: float = 0.0,
    no_link_value: float = DEFAULT_NO_LINK_VALUE,
    integer: bool = True,
) -> DistanceMatrix:
    """
    Generate a random distance matrix.

    Args:
        n: Number of cities
        seed: Random seed for reproducibility
        distance_range: Range for uniform distances
        symmetric: If True, d(i, j) == d(j, i)
        no_link_prob: Probability that an off-diagonal edge is missing
        no_link_value: Sentinel written for missing edges (and on the diagonal
            when no_link_prob > 0, as in the course matrices)
        integer: Round distances to integers

    Returns:
        DistanceMatrix named 'random_<n>_<seed>'
    """
    rng = np.random.default_rng(seed)
    low, high = distance_range

    values = rng.uniform(low, high, size=(n, n))
    if integer:
        values = np.round(values)
    if symmetric:
        values = np.triu(values, 1)
        values = values + values.T

    if no_link_prob > 0.0:
        missing = rng.random((n, n)) < no_link_prob
        if symmetric:
            missing = np.triu(missing, 1)
            missing = missing | missing.T
        values[missing] = no_link_value
        np.fill_diagonal(values, no_link_value)
    else:
        np.fill_diagonal(values, 0.0)

    matrix = DistanceMatrix(values=values, name=f"random_{n}_{seed}")
    matrix.validate()
    return matrix


def generate_euclidean_matrix(
    n: int = 20,
    seed: int = 42,
    scale: float = 100.0,
) -> Tuple[DistanceMatrix, np.ndarray]:
    """
    Generate cities uniformly in a square and use rounded Euclidean distances.

    Coincident cities would produce zero distances, so coordinates are
    redrawn until all rounded off-diagonal distances are positive.

    Returns:
        Tuple of (DistanceMatrix, coordinates of shape (n, 2))
    """
    rng = np.random.default_rng(seed)
    while True:
        coords = rng.uniform(0.0, scale, size=(n, 2))
        values = euclidean_distances(coords)
        off_diagonal = ~np.eye(n, dtype=bool)
        if np.all(values[off_diagonal] > 0):
            break
    matrix = DistanceMatrix(values=values, name=f"euclidean_{n}_{seed}")
    matrix.validate()
    return matrix, coords


def generate_clustered_matrix(
    sizes: Sequence[int] = (3, 3),
    seed: int = 42,
    distance_range: Tuple[float, float] = (1.0, 50.0),
    no_link_value: float = DEFAULT_NO_LINK_VALUE,
) -> DistanceMatrix:
    """
    Generate disconnected clusters: edges only exist inside a cluster.

    With more than one cluster no Hamiltonian cycle exists, which makes this
    the reference infeasible instance.

    Args:
        sizes: Number of cities in each cluster
        seed: Random seed
        distance_range: Range for intra-cluster distances
        no_link_value: Sentinel used between clusters and on the diagonal
    """
    rng = np.random.default_rng(seed)
    n = int(sum(sizes))
    values = np.full((n, n), no_link_value, dtype=float)

    offset = 0
    for size in sizes:
        block = np.round(rng.uniform(distance_range[0], distance_range[1], size=(size, size)))
        block = np.triu(block, 1)
        block = block + block.T
        np.fill_diagonal(block, no_link_value)
        values[offset:offset + size, offset:offset + size] = block
        offset += size

    matrix = DistanceMatrix(values=values, name=f"clustered_{'x'.join(map(str, sizes))}_{seed}")
    matrix.validate()
    return matrix


def generate_instance_set(
    output_dir: str = 'instances',
    sizes: Sequence[int] = (6, 8, 10),
    per_size: int = 2,
    no_link_prob: float = 0.1,
    base_seed: int = 100,
) -> None:
    """
    Generate a set of random matrices and save them as ';' files.

    Args:
        output_dir: Directory to save matrices
        sizes: City counts to generate
        per_size: Number of matrices per size
        no_link_prob: Probability of a missing edge
        base_seed: Seed of the first matrix (incremented per matrix)
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    seed = base_seed
    for n in sizes:
        print(f"Generating {per_size} instances with {n} cities...")
        for i in range(per_size):
            matrix = generate_matrix(n=n, seed=seed, no_link_prob=no_link_prob)
            filepath = output_path / f'n{n:02d}_{i:02d}.txt'
            save_matrix(matrix, filepath)
            print(f"  Saved {filepath}")
            seed += 1

    print(f"\nGenerated {len(sizes) * per_size} instances in {output_dir}/")
