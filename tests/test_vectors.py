"""Tests for cosine similarity and centroid computation."""

import numpy as np
import pytest

from shared.vectors import centroid, cosine


class TestCosine:
    def test_identical_vectors(self):
        assert cosine([3.0, 4.0, 5.0], [3.0, 4.0, 5.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine([1, 0], [0, 1]) == pytest.approx(0.0)

    def test_unit_vectors(self):
        assert cosine([1, 0], [1, 0]) == pytest.approx(1.0)

    def test_opposite_vectors(self):
        assert cosine([1, 2], [-1, -2]) == pytest.approx(-1.0)

    def test_zero_vector_is_zero_similarity(self):
        assert cosine([1.5, -2.0], [0.0, 0.0]) == 0.0
        assert cosine([0.0, 0.0], [0.0, 0.0]) == 0.0

    def test_scale_invariant(self):
        assert cosine([1, 2, 3], [10, 20, 30]) == pytest.approx(1.0)

    def test_accepts_numpy_arrays(self):
        a = np.array([0.6, 0.8], dtype=np.float32)
        assert cosine(a, a) == pytest.approx(1.0)

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            cosine([1, 2, 3], [1, 2])


class TestCentroid:
    def test_elementwise_mean(self):
        result = centroid([[1, 2], [3, 4], [5, 6]])
        np.testing.assert_allclose(result, [3.0, 4.0])

    def test_single_vector(self):
        np.testing.assert_allclose(centroid([[0.5, -1.0, 2.0]]), [0.5, -1.0, 2.0])

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            centroid([])

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            centroid([[1, 2], [1, 2, 3]])
