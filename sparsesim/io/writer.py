"""Serialization of similarity results as JSON lines."""

import json
from typing import Any, Dict, Iterable, TextIO

from ..core.errors import SparseSimError
from ..core.vectors import SimilarityResult


def result_to_dict(result: SimilarityResult) -> Dict[str, Any]:
    return {
        "pid": result.reference_id,
        "similar": [{"pid": c.id, "sim": c.score} for c in result.ranked],
    }


def dump_result(result: SimilarityResult) -> str:
    """One compact JSON line (without the trailing newline)."""
    try:
        return json.dumps(
            result_to_dict(result), ensure_ascii=False, allow_nan=False, separators=(",", ":")
        )
    except ValueError as e:
        # scores overflow to inf only with extreme weights
        raise SparseSimError(
            f"result for {result.reference_id!r} has a non-finite score",
            details={"reference_id": result.reference_id}
        ) from e


def write_results(results: Iterable[SimilarityResult], stream: TextIO) -> int:
    """
    Write each result as it arrives, flushing per line.
    
    Returns:
        Number of results written
    """
    count = 0
    for result in results:
        stream.write(dump_result(result))
        stream.write("\n")
        stream.flush()
        count += 1
    return count
