"""Small builders shared by the test modules."""

import json
from pathlib import Path
from typing import Dict, List

from sparsesim.core.vectors import SparseVector


def make_vector(vector_id: str, indices: List[int], values: List[float]) -> SparseVector:
    return SparseVector(id=vector_id, indices=tuple(indices), values=tuple(values))


def write_jsonl(path: Path, records: List[Dict]) -> Path:
    path.write_text("".join(json.dumps(r) + "\n" for r in records))
    return path
