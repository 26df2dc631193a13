"""
Parallel scan utilities.

Fans one top-K pass per reference vector out over a bounded thread or
process pool. Tasks share nothing but the read-only corpus, which is handed
to every task explicitly.
"""

import math
import multiprocessing as mp
from concurrent.futures import ThreadPoolExecutor, ProcessPoolExecutor, as_completed, Future
from typing import List, Dict, Any, Optional, Callable, Iterator, TypeVar, Union
from dataclasses import dataclass
from functools import partial
import logging
import time

from ..core.topk import TieBreak, top_k
from ..core.vectors import Corpus, SimilarityResult

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


class ParallelExecutor:
    """
    Bounded pool executor that propagates task failures.

    A failing task aborts the whole run: pending work is cancelled and the
    task's exception is re-raised to the caller.
    """

    def __init__(
        self,
        max_workers: Optional[int] = None,
        use_processes: bool = False,
        chunk_size: Optional[int] = None
    ):
        """
        Initialize parallel executor.

        Args:
            max_workers: Maximum number of workers (default: CPU count)
            use_processes: Use processes instead of threads
            chunk_size: Default chunk size for batching
        """
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        if chunk_size is not None and chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
        self.max_workers = max_workers or mp.cpu_count()
        self.use_processes = use_processes
        self.chunk_size = chunk_size

        self._executor: Optional[Any] = None

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.shutdown(cancel=exc_type is not None)

    def start(self):
        """Start the executor."""
        if self._executor is None:
            if self.use_processes:
                self._executor = ProcessPoolExecutor(max_workers=self.max_workers)
            else:
                self._executor = ThreadPoolExecutor(max_workers=self.max_workers)

    def shutdown(self, wait: bool = True, cancel: bool = False):
        """Shutdown the executor."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait, cancel_futures=cancel)
            self._executor = None

    def default_chunk_size(self, n_items: int) -> int:
        """About four chunks per worker, so slow chunks do not serialize the tail."""
        if self.chunk_size:
            return self.chunk_size
        return max(1, math.ceil(n_items / (self.max_workers * 4)))

    def imap_unordered(
        self,
        func: Callable[[T], R],
        items: List[T],
        chunk_size: Optional[int] = None
    ) -> Iterator[R]:
        """
        Apply ``func`` to every item, yielding results as chunks complete.

        Args:
            func: Function to apply (must be picklable for process pools)
            items: Items to process
            chunk_size: Items per submitted task

        Yields:
            Results in completion order
        """
        if not items:
            return

        self.start()
        chunk_size = chunk_size or self.default_chunk_size(len(items))

        futures: Dict[Future, int] = {}
        for i in range(0, len(items), chunk_size):
            chunk = items[i:i + chunk_size]
            future = self._executor.submit(_process_chunk, func, chunk)
            futures[future] = i

        try:
            for future in as_completed(futures):
                # re-raises the task's exception
                for result in future.result():
                    yield result
        except BaseException:
            for future in futures:
                future.cancel()
            raise

    def map(
        self,
        func: Callable[[T], R],
        items: List[T],
        chunk_size: Optional[int] = None
    ) -> List[R]:
        """
        Map function over items in parallel.

        Returns:
            List of results in original order
        """
        if not items:
            return []

        self.start()
        chunk_size = chunk_size or self.default_chunk_size(len(items))

        futures: Dict[Future, int] = {}
        for i in range(0, len(items), chunk_size):
            future = self._executor.submit(_process_chunk, func, items[i:i + chunk_size])
            futures[future] = i

        results: List[Any] = [None] * len(items)
        try:
            for future in as_completed(futures):
                idx = futures[future]
                for j, r in enumerate(future.result()):
                    results[idx + j] = r
        except BaseException:
            for future in futures:
                future.cancel()
            raise

        return results


def _process_chunk(func: Callable, chunk: List) -> List:
    """Process a chunk of items."""
    return [func(item) for item in chunk]


def _scan_reference(corpus: Corpus, k: int, tie_break: str, position: int) -> SimilarityResult:
    """One independent top-K pass for the corpus member at ``position``."""
    return top_k(corpus[position], corpus, k, tie_break)


@dataclass
class ScanStats:
    """Counters for a completed scan."""

    passes: int
    corpus_size: int
    elapsed: float

    @property
    def operations(self) -> int:
        """Kernel evaluations, counting the skipped self-comparison."""
        return self.passes * self.corpus_size


class SimilarityScanner:
    """
    Runs top-K selection for every selected reference vector of a corpus.

    Results come back in completion order, not corpus order.
    """

    def __init__(
        self,
        corpus: Corpus,
        k: int = 50,
        limit: Optional[int] = None,
        tie_break: Union[str, TieBreak] = TieBreak.LEGACY,
        max_workers: Optional[int] = None,
        use_processes: bool = False,
        chunk_size: Optional[int] = None
    ):
        """
        Initialize scanner.

        Args:
            corpus: Fully loaded corpus, not modified during the scan
            k: Maximum neighbours per reference vector
            limit: Only the first ``limit`` members act as references
            tie_break: Policy for equal scores
            max_workers: Pool size (default: CPU count; 1 runs inline)
            use_processes: Use a process pool instead of threads
            chunk_size: Reference vectors per submitted task
        """
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")
        self.corpus = corpus
        self.k = k
        self.limit = limit
        self.tie_break = TieBreak.parse(tie_break)
        self.max_workers = max_workers
        self.use_processes = use_processes
        self.chunk_size = chunk_size
        self.stats: Optional[ScanStats] = None
        # validates limit before any work is dispatched
        self._n_references = len(corpus.references(limit))

    @property
    def n_references(self) -> int:
        return self._n_references

    def scan(self) -> Iterator[SimilarityResult]:
        """
        Yield one SimilarityResult per reference vector as it completes.

        ``stats`` is set once the iterator is exhausted.
        """
        self.stats = None
        start_time = time.time()
        positions = list(range(self._n_references))
        task = partial(_scan_reference, self.corpus, self.k, self.tie_break.value)
        passes = 0

        if self.max_workers == 1 and not self.use_processes:
            logger.debug(f"Scanning {len(positions)} references inline")
            for position in positions:
                yield task(position)
                passes += 1
        else:
            with ParallelExecutor(
                max_workers=self.max_workers,
                use_processes=self.use_processes,
                chunk_size=self.chunk_size
            ) as executor:
                logger.debug(
                    f"Scanning {len(positions)} references on {executor.max_workers} "
                    f"{'processes' if self.use_processes else 'threads'}"
                )
                for result in executor.imap_unordered(task, positions):
                    yield result
                    passes += 1

        self.stats = ScanStats(
            passes=passes,
            corpus_size=len(self.corpus),
            elapsed=time.time() - start_time
        )

    def run(self) -> List[SimilarityResult]:
        """Run the full scan and collect every result."""
        return list(self.scan())


def scan_corpus(
    corpus: Corpus,
    k: int = 50,
    limit: Optional[int] = None,
    tie_break: Union[str, TieBreak] = TieBreak.LEGACY,
    max_workers: Optional[int] = None,
    use_processes: bool = False
) -> List[SimilarityResult]:
    """
    Convenience function: top-K neighbours for every selected reference.

    Returns:
        One SimilarityResult per reference vector, in completion order
    """
    scanner = SimilarityScanner(
        corpus,
        k=k,
        limit=limit,
        tie_break=tie_break,
        max_workers=max_workers,
        use_processes=use_processes
    )
    return scanner.run()
