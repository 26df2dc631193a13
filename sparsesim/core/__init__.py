"""Vector model, similarity kernel and top-K selection."""

from .errors import SparseSimError, InvalidVector, IngestionError, ConfigError
from .vectors import SparseVector, DenseVector, Candidate, SimilarityResult, Corpus
from .kernel import dot, cosine, euclidean, manhattan, norm, normalize, get_metric
from .topk import TopKSelector, TieBreak, top_k, SENTINEL_ID

__all__ = [
    "SparseSimError",
    "InvalidVector",
    "IngestionError",
    "ConfigError",
    "SparseVector",
    "DenseVector",
    "Candidate",
    "SimilarityResult",
    "Corpus",
    "dot",
    "cosine",
    "euclidean",
    "manhattan",
    "norm",
    "normalize",
    "get_metric",
    "TopKSelector",
    "TieBreak",
    "top_k",
    "SENTINEL_ID",
]
