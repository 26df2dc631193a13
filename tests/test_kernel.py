"""
Tests for the merge-join similarity kernel.
"""

import math

import numpy as np
import pytest

from sparsesim.core.kernel import (
    METRICS,
    cosine,
    dot,
    euclidean,
    get_metric,
    manhattan,
    norm,
    normalize,
    squared_norm,
)

from .helpers import make_vector


def densify(v, size=64):
    out = np.zeros(size)
    out[list(v.indices)] = v.values
    return out


class TestDot:
    """Dot product properties."""
    
    def test_scenario_pairs(self, xyz_corpus):
        """Test the X/Y/Z pairwise scores: one shared feature per pair, so Y.Z = 0.8 * 0.8."""
        x, y, z = xyz_corpus
        
        assert dot(x, y) == pytest.approx(0.36)
        assert dot(x, z) == pytest.approx(0.48)
        assert dot(y, z) == pytest.approx(0.64)
    
    def test_self_dot_is_squared_norm(self):
        """Test that v.v equals the squared norm."""
        v = make_vector("v", [2, 5, 11], [1.5, -2.0, 0.25])
        
        assert dot(v, v) == pytest.approx(1.5 ** 2 + 2.0 ** 2 + 0.25 ** 2)
        assert dot(v, v) == squared_norm(v)
    
    def test_self_dot_unit_vector(self, xyz_corpus):
        """Test that a unit vector has self-similarity 1."""
        for v in xyz_corpus:
            assert cosine(v, v) == pytest.approx(1.0)
    
    def test_disjoint_is_zero(self):
        """Test that vectors without shared features score exactly 0."""
        a = make_vector("a", [0, 2, 4], [1.0, 1.0, 1.0])
        b = make_vector("b", [1, 3, 5, 7], [1.0, 1.0, 1.0, 1.0])
        
        assert dot(a, b) == 0.0
        assert dot(b, a) == 0.0
    
    def test_symmetric_exactly(self, random_corpus):
        """Test that argument order does not change the result at all."""
        for a in random_corpus:
            for b in random_corpus:
                assert dot(a, b) == dot(b, a)
    
    def test_matches_dense_reference(self, random_corpus):
        """Test agreement with a dense numpy dot product."""
        for a in list(random_corpus)[:10]:
            for b in random_corpus:
                assert dot(a, b) == pytest.approx(float(np.dot(densify(a), densify(b))))
    
    def test_uneven_lengths(self):
        """Test overlap at the tail of the longer sequence."""
        short = make_vector("s", [100], [2.0])
        long = make_vector("l", list(range(0, 101)), [1.0] * 101)
        
        assert dot(short, long) == 2.0
        assert dot(long, short) == 2.0
    
    def test_unnormalized_is_raw_dot(self):
        """Test that the kernel does not normalize its inputs."""
        a = make_vector("a", [1], [3.0])
        b = make_vector("b", [1], [4.0])
        
        assert cosine(a, b) == 12.0


class TestNorms:
    """Tests for norm helpers."""
    
    def test_norm(self):
        v = make_vector("v", [0, 1], [3.0, 4.0])
        assert norm(v) == 5.0
    
    def test_normalize(self):
        """Test that normalize yields a unit vector with the same support."""
        v = make_vector("v", [0, 7], [3.0, 4.0])
        unit = normalize(v)
        
        assert unit.id == "v"
        assert unit.indices == (0, 7)
        assert unit.values == pytest.approx((0.6, 0.8))
        assert norm(unit) == pytest.approx(1.0)
    
    def test_normalize_zero_vector(self):
        """Test that an all-zero vector is returned unchanged."""
        v = make_vector("v", [3], [0.0])
        assert normalize(v) is v


class TestDistances:
    """Euclidean and Manhattan reductions over the index union."""
    
    def test_euclidean_counts_non_shared_features(self):
        """Test that features present on one side only contribute their squares."""
        a = make_vector("a", [1, 2], [0.6, 0.8])
        b = make_vector("b", [1, 3], [0.6, 0.8])
        
        # feature 1 cancels, features 2 and 3 contribute 0.64 each
        assert euclidean(a, b) == pytest.approx(math.sqrt(0.64 + 0.64))
    
    def test_euclidean_root_applied_once(self):
        """Test that the square root is taken over the full sum, not per term."""
        a = make_vector("a", [0, 1, 2], [3.0, 0.0, 0.0])
        b = make_vector("b", [0, 1, 2], [0.0, 4.0, 0.0])
        
        # sqrt(9 + 16) = 5, whereas sqrt(9) + sqrt(16) = 7
        assert euclidean(a, b) == pytest.approx(5.0)
    
    def test_euclidean_squares_differences(self):
        """Test that differences are squared, so sign does not cancel."""
        a = make_vector("a", [0, 1], [1.0, -1.0])
        b = make_vector("b", [0, 1], [-1.0, 1.0])
        
        assert euclidean(a, b) == pytest.approx(math.sqrt(8.0))
    
    def test_euclidean_last_term_included(self):
        """Test that a trailing unmatched feature is part of the sum."""
        a = make_vector("a", [0], [1.0])
        b = make_vector("b", [0, 9], [1.0, 2.0])
        
        assert euclidean(a, b) == pytest.approx(2.0)
        assert euclidean(b, a) == pytest.approx(2.0)
    
    def test_euclidean_identity(self, random_corpus):
        """Test that every vector is at distance 0 from itself."""
        for v in random_corpus:
            assert euclidean(v, v) == 0.0
    
    def test_euclidean_matches_dense_reference(self, random_corpus):
        """Test agreement with numpy on the densified vectors."""
        vectors = list(random_corpus)
        for a, b in zip(vectors, vectors[1:]):
            expected = float(np.linalg.norm(densify(a) - densify(b)))
            assert euclidean(a, b) == pytest.approx(expected)
    
    def test_manhattan(self):
        """Test absolute differences summed over the union."""
        a = make_vector("a", [0, 1], [1.0, -2.0])
        b = make_vector("b", [1, 5], [1.0, 0.5])
        
        assert manhattan(a, b) == pytest.approx(1.0 + 3.0 + 0.5)
        assert manhattan(b, a) == pytest.approx(1.0 + 3.0 + 0.5)


class TestRegistry:
    """Tests for metric lookup."""
    
    def test_known_metrics(self):
        assert set(METRICS) == {"cosine", "euclidean", "manhattan"}
        assert get_metric("euclidean") is euclidean
    
    def test_unknown_metric(self):
        with pytest.raises(ValueError, match="Unknown metric"):
            get_metric("jaccard")
