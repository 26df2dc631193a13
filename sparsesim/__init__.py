"""sparsesim - top-K similar items over sparse feature vectors."""

__version__ = "0.1.0"

from .core.errors import SparseSimError, InvalidVector, IngestionError, ConfigError
from .core.vectors import SparseVector, DenseVector, Candidate, SimilarityResult, Corpus
from .core.topk import TieBreak, top_k
from .performance.parallel import SimilarityScanner, scan_corpus

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
    "TieBreak",
    "top_k",
    "SimilarityScanner",
    "scan_corpus",
    "__version__",
]
