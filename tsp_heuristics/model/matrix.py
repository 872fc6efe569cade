"""Distance matrix data structure and file loaders."""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union
import numpy as np


class MatrixFormatError(ValueError):
    """Raised when a distance matrix file or array is malformed."""


@dataclass
class DistanceMatrix:
    """
    Square matrix of non-negative distances between cities.

    Cities are indexed 0..n-1. The matrix does not need to be symmetric and
    its diagonal is never read by the solvers.

    Attributes:
        values: Distances, shape (n, n)
            values[i, j] = distance travelled from city i to city j
        name: Optional label (usually the file stem)
    """
    values: np.ndarray
    name: str = ""

    @property
    def n(self) -> int:
        """Number of cities."""
        return int(self.values.shape[0])

    def __getitem__(self, key) -> float:
        return self.values[key]

    def as_lists(self) -> List[List[float]]:
        """Nested Python lists, faster than numpy for scalar lookups."""
        return self.values.astype(float).tolist()

    def validate(self) -> None:
        """
        Validate shape and values.
        Raises MatrixFormatError if validation fails.
        """
        if self.values.ndim != 2 or self.values.shape[0] != self.values.shape[1]:
            raise MatrixFormatError(
                f"distance matrix must be square, got shape {self.values.shape}"
            )
        if self.values.shape[0] < 2:
            raise MatrixFormatError("distance matrix needs at least 2 cities")
        if np.any(np.isnan(self.values)):
            raise MatrixFormatError("distance matrix contains NaN values")
        if np.any(np.isinf(self.values)):
            raise MatrixFormatError("distance matrix contains infinite values")
        if np.any(self.values < 0):
            raise MatrixFormatError("distance matrix contains negative values")


def from_rows(rows, name: str = "") -> DistanceMatrix:
    """Build and validate a DistanceMatrix from nested sequences."""
    try:
        values = np.array(rows, dtype=float)
    except ValueError as e:
        raise MatrixFormatError(f"could not build distance matrix: {e}") from e
    matrix = DistanceMatrix(values=values, name=name)
    matrix.validate()
    return matrix


def load_matrix(
    filepath: Union[str, Path],
    delimiter: str = ';',
    name: Optional[str] = None
) -> DistanceMatrix:
    """
    Load a delimited distance matrix (one row per city, no header).

    Args:
        filepath: Path to matrix file
        delimiter: Field separator (';' by convention)
        name: Optional matrix name (default: file stem)

    Returns:
        Validated DistanceMatrix

    Raises:
        FileNotFoundError: if the file does not exist
        MatrixFormatError: if a token is not numeric or the matrix is not square
    """
    path = Path(filepath)
    if not path.is_file():
        raise FileNotFoundError(f"matrix file not found: {path}")

    rows = []
    with path.open('r', encoding='utf-8') as f:
        for line_no, raw in enumerate(f, start=1):
            line = raw.strip()
            if not line:
                continue
            fields = [tok.strip() for tok in line.split(delimiter)]
            # Tolerate a trailing delimiter
            if fields and fields[-1] == '':
                fields = fields[:-1]
            row = []
            for tok in fields:
                try:
                    value = float(tok)
                except ValueError:
                    raise MatrixFormatError(
                        f"{path.name}, line {line_no}: non-numeric token {tok!r}"
                    ) from None
                row.append(value)
            if rows and len(row) != len(rows[0]):
                raise MatrixFormatError(
                    f"{path.name}, line {line_no}: expected {len(rows[0])} fields, got {len(row)}"
                )
            rows.append(row)

    if not rows:
        raise MatrixFormatError(f"{path.name}: empty matrix file")
    if len(rows) != len(rows[0]):
        raise MatrixFormatError(
            f"{path.name}: matrix is not square ({len(rows)} rows, {len(rows[0])} columns)"
        )

    return from_rows(rows, name=name if name is not None else path.stem)


def save_matrix(matrix: DistanceMatrix, filepath: Union[str, Path], delimiter: str = ';') -> None:
    """
    Save matrix as a delimited text file readable by load_matrix.

    Integral values are written without a decimal part.
    """
    with open(filepath, 'w', encoding='utf-8') as f:
        for row in matrix.values:
            f.write(delimiter.join(_format_value(v) for v in row))
            f.write('\n')


def _format_value(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def load_tsplib(filepath: Union[str, Path]) -> DistanceMatrix:
    """
    Load a TSPLIB instance with EDGE_WEIGHT_TYPE EUC_2D.

    Distances are Euclidean, rounded to the nearest integer, with a zero
    diagonal (TSPLIB convention).

    Args:
        filepath: Path to .tsp file

    Returns:
        Validated DistanceMatrix named after the NAME header
    """
    path = Path(filepath)
    if not path.is_file():
        raise FileNotFoundError(f"TSPLIB file not found: {path}")

    name = path.stem
    dimension = None
    coords = []
    in_coords = False
    with path.open('r', encoding='utf-8', errors='ignore') as f:
        for raw in f:
            line = raw.strip()
            if not line:
                continue
            upper = line.upper()
            if upper.startswith('EOF'):
                break
            if not in_coords:
                key, _, value = line.partition(':')
                key = key.strip().upper()
                if key == 'NAME':
                    name = value.strip() or name
                elif key == 'DIMENSION':
                    try:
                        dimension = int(value.strip())
                    except ValueError:
                        raise MatrixFormatError(f"{path.name}: bad DIMENSION {value.strip()!r}") from None
                elif key == 'EDGE_WEIGHT_TYPE' and value.strip().upper() != 'EUC_2D':
                    raise MatrixFormatError(
                        f"{path.name}: only EUC_2D is supported, got {value.strip()}"
                    )
                elif upper.startswith('NODE_COORD_SECTION'):
                    in_coords = True
                continue
            parts = line.split()
            if len(parts) < 3:
                raise MatrixFormatError(f"{path.name}: bad coordinate line {line!r}")
            try:
                coords.append((float(parts[1]), float(parts[2])))
            except ValueError:
                raise MatrixFormatError(f"{path.name}: bad coordinate line {line!r}") from None

    if not coords:
        raise MatrixFormatError(f"{path.name}: no coordinates parsed")
    if dimension is not None and dimension != len(coords):
        raise MatrixFormatError(
            f"{path.name}: DIMENSION is {dimension} but {len(coords)} coordinates were read"
        )

    return from_rows(euclidean_distances(np.array(coords)), name=name)


def euclidean_distances(coords: np.ndarray, rounded: bool = True) -> np.ndarray:
    """Pairwise Euclidean distances for an (n, 2) coordinate array."""
    diff = coords[:, None, :] - coords[None, :, :]
    dist = np.sqrt(np.sum(diff ** 2, axis=-1))
    if rounded:
        # TSPLIB nint(): round half up, not numpy's banker's rounding
        dist = np.floor(dist + 0.5)
    return dist


def load_any(filepath: Union[str, Path], delimiter: str = ';') -> DistanceMatrix:
    """Load a TSPLIB file (.tsp suffix) or a delimited matrix file."""
    if Path(filepath).suffix.lower() == '.tsp':
        return load_tsplib(filepath)
    return load_matrix(filepath, delimiter=delimiter)