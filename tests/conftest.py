"""
Shared fixtures for sparsesim tests.
"""

import logging

import pytest

from sparsesim.core.vectors import Corpus

from .helpers import make_vector, write_jsonl


@pytest.fixture
def xyz_corpus():
    """Three unit vectors, each overlapping the others on exactly one feature."""
    return Corpus([
        make_vector("X", [1, 2], [0.6, 0.8]),
        make_vector("Y", [1, 3], [0.6, 0.8]),
        make_vector("Z", [2, 3], [0.6, 0.8]),
    ])


@pytest.fixture
def random_corpus():
    """Deterministic pseudo-random corpus of normalized vectors."""
    import numpy as np
    
    rng = np.random.default_rng(7)
    vectors = []
    for i in range(40):
        n_features = int(rng.integers(1, 8))
        indices = sorted(rng.choice(30, size=n_features, replace=False).tolist())
        values = rng.random(n_features) + 0.05
        values = values / np.linalg.norm(values)
        vectors.append(make_vector(f"item-{i:02d}", indices, values.tolist()))
    return Corpus(vectors)


@pytest.fixture
def corpus_file(tmp_path):
    """The X/Y/Z corpus as a JSON-lines file."""
    return write_jsonl(tmp_path / "corpus.jsonl", [
        {"pid": "X", "features": [1, 2], "scores": [0.6, 0.8]},
        {"pid": "Y", "features": [1, 3], "scores": [0.6, 0.8]},
        {"pid": "Z", "features": [2, 3], "scores": [0.6, 0.8]},
    ])


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by setup_logging so streams do not leak between tests."""
    yield
    logger = logging.getLogger("sparsesim")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
