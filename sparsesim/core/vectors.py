"""
Vector and corpus data model.

A ``SparseVector`` holds only its non-zero (index, weight) pairs, indices
sorted strictly ascending. The kernel's merge-join depends on that ordering,
so it is checked once here at construction and trusted everywhere else.
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from numbers import Integral, Real
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from . import kernel
from .errors import InvalidVector


@dataclass(frozen=True)
class SparseVector:
    """
    Immutable sparse vector.

    Vectors are assumed L2-normalized by whoever produced them; nothing here
    normalizes, so ``cosine`` on raw vectors is a plain dot product.
    """

    id: str
    indices: Tuple[int, ...]
    values: Tuple[float, ...]

    def __post_init__(self):
        if not isinstance(self.id, str):
            raise InvalidVector(
                f"vector id must be a string, got {type(self.id).__name__} {self.id!r}",
                vector_id=str(self.id)
            )

        indices = tuple(self.indices)
        values = tuple(self.values)

        if len(indices) != len(values):
            raise InvalidVector(
                f"vector {self.id!r} has {len(indices)} indices but {len(values)} values",
                vector_id=self.id
            )
        if not indices:
            raise InvalidVector(f"vector {self.id!r} is empty", vector_id=self.id)

        previous = -1
        for position, index in enumerate(indices):
            if isinstance(index, bool) or not isinstance(index, Integral):
                raise InvalidVector(
                    f"vector {self.id!r} has non-integer index {index!r} at position {position}",
                    vector_id=self.id
                )
            if index < 0:
                raise InvalidVector(
                    f"vector {self.id!r} has negative index {index} at position {position}",
                    vector_id=self.id
                )
            if index <= previous:
                raise InvalidVector(
                    f"vector {self.id!r} indices not strictly ascending at position {position} "
                    f"({previous} then {index})",
                    vector_id=self.id
                )
            previous = index

        coerced = []
        for position, value in enumerate(values):
            if isinstance(value, bool) or not isinstance(value, Real):
                raise InvalidVector(
                    f"vector {self.id!r} has non-numeric value {value!r} at position {position}",
                    vector_id=self.id
                )
            if not math.isfinite(value):
                raise InvalidVector(
                    f"vector {self.id!r} has non-finite value {value!r} at position {position}",
                    vector_id=self.id
                )
            coerced.append(float(value))

        # frozen: bypass __setattr__ to store the normalized tuples
        object.__setattr__(self, 'indices', tuple(int(i) for i in indices))
        object.__setattr__(self, 'values', tuple(coerced))

    def __len__(self) -> int:
        return len(self.indices)

    def items(self) -> Iterator[Tuple[int, float]]:
        """Iterate (index, value) pairs in ascending index order."""
        return zip(self.indices, self.values)

    def norm(self) -> float:
        return kernel.norm(self)

    def cosine(self, other: "SparseVector") -> float:
        return kernel.cosine(self, other)

    def euclidean(self, other: "SparseVector") -> float:
        return kernel.euclidean(self, other)


@dataclass(frozen=True, eq=False)
class DenseVector:
    """
    Dense alternative with the same capability set as ``SparseVector``.

    Backed by a read-only float64 numpy array. Only vectors of equal length
    can be compared.
    """

    id: str
    values: np.ndarray

    def __post_init__(self):
        array = np.array(self.values, dtype=np.float64)
        if array.ndim != 1 or array.size == 0:
            raise InvalidVector(
                f"dense vector {self.id!r} must be a non-empty 1-d sequence",
                vector_id=self.id
            )
        if not np.isfinite(array).all():
            raise InvalidVector(f"dense vector {self.id!r} has non-finite values", vector_id=self.id)
        array.setflags(write=False)
        object.__setattr__(self, 'values', array)

    def __len__(self) -> int:
        return int(self.values.size)

    def _check_dimensions(self, other: "DenseVector") -> None:
        if other.values.size != self.values.size:
            raise InvalidVector(
                f"cannot compare dense vectors of length {self.values.size} "
                f"and {other.values.size}",
                vector_id=other.id
            )

    def norm(self) -> float:
        return float(np.linalg.norm(self.values))

    def cosine(self, other: "DenseVector") -> float:
        self._check_dimensions(other)
        return float(np.dot(self.values, other.values))

    def euclidean(self, other: "DenseVector") -> float:
        self._check_dimensions(other)
        return float(np.linalg.norm(self.values - other.values))

    def to_sparse(self) -> SparseVector:
        """Drop zero entries. All-zero vectors cannot be represented."""
        nonzero = np.flatnonzero(self.values)
        return SparseVector(
            id=self.id,
            indices=tuple(int(i) for i in nonzero),
            values=tuple(float(v) for v in self.values[nonzero])
        )


@dataclass(frozen=True)
class Candidate:
    """A scored corpus member."""

    id: str
    score: float


@dataclass(frozen=True)
class SimilarityResult:
    """Ranked neighbours of one reference vector, best first."""

    reference_id: str
    ranked: Tuple[Candidate, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.ranked)

    def ids(self) -> List[str]:
        return [candidate.id for candidate in self.ranked]

    def scores(self) -> List[float]:
        return [candidate.score for candidate in self.ranked]


class Corpus:
    """
    Ordered, read-only collection of sparse vectors.

    Built once before scanning starts and shared by every scan task.
    Id uniqueness is a precondition; ``duplicate_ids`` reports violations
    but nothing rejects them.
    """

    __slots__ = ("_vectors",)

    def __init__(self, vectors: Iterable[SparseVector] = ()):
        self._vectors: Tuple[SparseVector, ...] = tuple(vectors)

    def __len__(self) -> int:
        return len(self._vectors)

    def __iter__(self) -> Iterator[SparseVector]:
        return iter(self._vectors)

    def __getitem__(self, position: Union[int, slice]):
        return self._vectors[position]

    def __repr__(self) -> str:
        return f"Corpus(size={len(self._vectors)})"

    def ids(self) -> List[str]:
        return [vector.id for vector in self._vectors]

    def references(self, limit: Optional[int] = None) -> Sequence[SparseVector]:
        """
        Select the reference vectors for a scan.

        Args:
            limit: Use only the first ``limit`` members (None means all)

        Returns:
            The selected vectors, in corpus order
        """
        if limit is None:
            return self._vectors
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        return self._vectors[:limit]

    def duplicate_ids(self) -> List[str]:
        counts = Counter(vector.id for vector in self._vectors)
        return sorted(vector_id for vector_id, count in counts.items() if count > 1)
