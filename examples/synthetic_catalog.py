"""
Example: similar items for a synthetic product catalog.

Builds random unit-normalized sparse vectors, writes them as JSON lines and
runs the scan both through the library and the loader.
"""

import io
import json
import sys

import numpy as np

from sparsesim import Corpus, SparseVector, SimilarityScanner
from sparsesim.io import load_corpus, write_results


def make_catalog(n_items=500, n_features=2000, max_features=20, seed=0):
    rng = np.random.default_rng(seed)
    vectors = []
    for i in range(n_items):
        size = int(rng.integers(1, max_features + 1))
        indices = np.sort(rng.choice(n_features, size=size, replace=False))
        values = rng.random(size)
        values /= np.linalg.norm(values)
        vectors.append(SparseVector(f"sku-{i:05d}", indices.tolist(), values.tolist()))
    return Corpus(vectors)


def main():
    corpus = make_catalog()

    # Round trip through the JSON-lines input format
    buffer = io.StringIO()
    for v in corpus:
        buffer.write(json.dumps({"pid": v.id, "features": list(v.indices), "scores": list(v.values)}))
        buffer.write("\n")
    buffer.seek(0)
    corpus = load_corpus(buffer)

    scanner = SimilarityScanner(corpus, k=5, limit=10, use_processes=True)
    write_results(scanner.scan(), sys.stdout)

    stats = scanner.stats
    print(
        f"{stats.passes} passes over {stats.corpus_size} items "
        f"({stats.operations} kernel calls) in {stats.elapsed:.2f}s",
        file=sys.stderr
    )


if __name__ == "__main__":
    main()
