"""Parallel fan-out of top-K scans over a corpus."""

from .parallel import ParallelExecutor, SimilarityScanner, ScanStats, scan_corpus

__all__ = ["ParallelExecutor", "SimilarityScanner", "ScanStats", "scan_corpus"]
