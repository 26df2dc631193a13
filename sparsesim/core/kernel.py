# sparsesim/core/kernel.py
from __future__ import annotations

import math
from typing import TYPE_CHECKING, Callable, Dict

if TYPE_CHECKING:  # pragma: no cover
    from .vectors import SparseVector

Metric = Callable[["SparseVector", "SparseVector"], float]


# ----------------------------
# Merge-join primitives
# ----------------------------

def dot(a: SparseVector, b: SparseVector) -> float:
    """Sparse dot product by sorted merge-join.

    Both index sequences are walked with one cursor each; only matching
    indices contribute. Terms are accumulated in ascending index order, so
    ``dot(a, b)`` and ``dot(b, a)`` add the same products in the same order.
    """
    a_idx, a_val = a.indices, a.values
    b_idx, b_val = b.indices, b.values
    i, j = 0, 0
    n, m = len(a_idx), len(b_idx)
    total = 0.0

    while i < n and j < m:
        ai, bj = a_idx[i], b_idx[j]
        if ai == bj:
            total += a_val[i] * b_val[j]
            i += 1
            j += 1
        elif ai < bj:
            i += 1
        else:
            j += 1

    return total


def cosine(a: SparseVector, b: SparseVector) -> float:
    """Cosine similarity of two unit-normalized vectors (their dot product)."""
    return dot(a, b)


def squared_norm(v: SparseVector) -> float:
    total = 0.0
    for value in v.values:
        total += value * value
    return total


def norm(v: SparseVector) -> float:
    return math.sqrt(squared_norm(v))


def normalize(v: SparseVector) -> SparseVector:
    """Return a unit-norm copy of ``v``; a zero vector is returned unchanged."""
    length = norm(v)
    if length == 0.0:
        return v
    return type(v)(id=v.id, indices=v.indices, values=tuple(x / length for x in v.values))


def _union_sum(a: SparseVector, b: SparseVector, term: Callable[[float], float]) -> float:
    """Sum ``term(x - y)`` over the union of both index sets.

    A feature absent from one side contributes with the missing weight taken
    as zero.
    """
    a_idx, a_val = a.indices, a.values
    b_idx, b_val = b.indices, b.values
    i, j = 0, 0
    n, m = len(a_idx), len(b_idx)
    total = 0.0

    while i < n and j < m:
        ai, bj = a_idx[i], b_idx[j]
        if ai == bj:
            total += term(a_val[i] - b_val[j])
            i += 1
            j += 1
        elif ai < bj:
            total += term(a_val[i])
            i += 1
        else:
            total += term(-b_val[j])
            j += 1

    while i < n:
        total += term(a_val[i])
        i += 1
    while j < m:
        total += term(-b_val[j])
        j += 1

    return total


def _square(x: float) -> float:
    return x * x


def euclidean(a: SparseVector, b: SparseVector) -> float:
    """L2 distance. The square root is taken once, over the complete sum."""
    return math.sqrt(_union_sum(a, b, _square))


def manhattan(a: SparseVector, b: SparseVector) -> float:
    """L1 distance: absolute differences summed over the index union."""
    return _union_sum(a, b, abs)


# ----------------------------
# Registry
# ----------------------------

METRICS: Dict[str, Metric] = {
    "cosine": cosine,
    "euclidean": euclidean,
    "manhattan": manhattan,
}


def get_metric(name: str) -> Metric:
    try:
        return METRICS[name]
    except KeyError:
        raise ValueError(
            f"Unknown metric {name!r}; expected one of {sorted(METRICS)}"
        ) from None
