"""
Bounded top-K selection.

Keeps the K best candidates seen so far in a min-heap whose root is the
current worst retained entry, so each offer costs O(log K) and the full
score list is never built or sorted.
"""

import heapq
from enum import Enum
from functools import total_ordering
from typing import Iterable, List, Tuple, Union

from .kernel import cosine
from .vectors import Candidate, SimilarityResult, SparseVector


SENTINEL_ID = "--"


class TieBreak(str, Enum):
    """How candidates with equal scores compete for the last slots."""

    # Admit on score >= current minimum; among equal scores the oldest
    # entry is evicted first, so later arrivals win.
    LEGACY = "legacy"
    # Among equal scores keep the lexicographically smallest ids.
    LOWEST_ID = "lowest-id"

    @classmethod
    def parse(cls, value: Union[str, "TieBreak"]) -> "TieBreak":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("_", "-")
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(
            f"Unknown tie-break {value!r}; expected one of {[m.value for m in cls]}"
        )


@total_ordering
class _Descending:
    """Wraps a string so that smaller strings compare as greater."""

    __slots__ = ("value",)

    def __init__(self, value: str):
        self.value = value

    def __eq__(self, other):
        return self.value == other.value

    def __lt__(self, other):
        return self.value > other.value

    def __repr__(self):
        return f"_Descending({self.value!r})"


class TopKSelector:
    """
    Fixed-capacity best-of-K collector.

    The heap starts filled with ``k`` sentinel entries of score 0.0, so a
    candidate must score at least 0.0 to be retained. Sentinels still
    present at the end are dropped from the results.
    """

    def __init__(self, k: int, tie_break: Union[str, TieBreak] = TieBreak.LEGACY):
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")
        self.k = k
        self.tie_break = TieBreak.parse(tie_break)
        self._seq = 0

        # entries: (score, tie_key, candidate_id, is_sentinel)
        if self.tie_break is TieBreak.LEGACY:
            self._heap: List[Tuple] = [
                (0.0, -(k - slot), SENTINEL_ID, True) for slot in range(k)
            ]
        else:
            self._heap = [
                (0.0, (0, _Descending("")), SENTINEL_ID, True) for _ in range(k)
            ]
        heapq.heapify(self._heap)

    @property
    def minimum(self) -> float:
        """Score of the current worst retained entry."""
        return self._heap[0][0]

    def offer(self, candidate_id: str, score: float) -> bool:
        """
        Consider one candidate.

        Returns:
            True if the candidate replaced the current worst entry
        """
        worst = self._heap[0]

        if self.tie_break is TieBreak.LEGACY:
            if not score >= worst[0]:
                return False
            entry = (score, self._seq, candidate_id, False)
            self._seq += 1
        else:
            tie_key = (1, _Descending(candidate_id))
            if not (score, tie_key) > (worst[0], worst[1]):
                return False
            entry = (score, tie_key, candidate_id, False)

        heapq.heapreplace(self._heap, entry)
        return True

    def offer_many(self, scored: Iterable[Tuple[str, float]]) -> int:
        return sum(1 for candidate_id, score in scored if self.offer(candidate_id, score))

    def results(self) -> Tuple[Candidate, ...]:
        """Retained candidates, best first, without sentinels."""
        ordered = sorted(self._heap, key=lambda entry: (entry[0], entry[1]), reverse=True)
        return tuple(
            Candidate(id=candidate_id, score=score)
            for score, _, candidate_id, is_sentinel in ordered
            if not is_sentinel
        )


def top_k(
    reference: SparseVector,
    corpus: Iterable[SparseVector],
    k: int = 50,
    tie_break: Union[str, TieBreak] = TieBreak.LEGACY
) -> SimilarityResult:
    """
    Find the ``k`` corpus members most similar to ``reference``.

    Members sharing the reference's id are skipped.

    Args:
        reference: Vector to find neighbours for
        corpus: Vectors to scan
        k: Maximum number of neighbours
        tie_break: Policy for equal scores

    Returns:
        SimilarityResult ranked by descending cosine score
    """
    selector = TopKSelector(k, tie_break)
    reference_id = reference.id

    for candidate in corpus:
        if candidate.id == reference_id:
            continue
        selector.offer(candidate.id, cosine(reference, candidate))

    return SimilarityResult(reference_id=reference_id, ranked=selector.results())
