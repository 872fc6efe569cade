"""Model components: distance matrices, no-link policy, evaluator, results and generators"""

from .matrix import (
    DistanceMatrix, MatrixFormatError, from_rows,
    load_matrix, save_matrix, load_tsplib, load_any,
)
from .policy import NoLinkPolicy, DEFAULT_NO_LINK_VALUE
from .evaluator import tour_cost, TourEvaluator, is_closed_tour, rotate_to_start
from .result import Improvement, SearchState, SearchResult
from .instance_generator import (
    generate_matrix, generate_euclidean_matrix, generate_clustered_matrix, generate_instance_set,
)

__all__ = ['DistanceMatrix', 'MatrixFormatError', 'from_rows',
           'load_matrix', 'save_matrix', 'load_tsplib', 'load_any',
           'NoLinkPolicy', 'DEFAULT_NO_LINK_VALUE',
           'tour_cost', 'TourEvaluator', 'is_closed_tour', 'rotate_to_start',
           'Improvement', 'SearchState', 'SearchResult',
           'generate_matrix', 'generate_euclidean_matrix', 'generate_clustered_matrix',
           'generate_instance_set']
