import math

import numpy as np
import pytest

from faceauth.descriptor import as_descriptor, distance
from faceauth.exceptions import DimensionMismatch, InvalidInput


class TestAsDescriptor:
    def test_accepts_list_of_floats(self):
        d = as_descriptor([0.1, 0.2, 0.3], dim=3)
        assert d.dtype == np.float64
        assert d.tolist() == [0.1, 0.2, 0.3]

    def test_result_is_read_only(self):
        d = as_descriptor([0.1, 0.2])
        with pytest.raises(ValueError):
            d[0] = 1.0

    @pytest.mark.parametrize("bad", [
        [0.1, float("nan")],
        [float("inf"), 0.2],
        [0.1, float("-inf")],
    ])
    def test_rejects_non_finite(self, bad):
        with pytest.raises(InvalidInput):
            as_descriptor(bad)

    def test_rejects_missing_and_empty(self):
        with pytest.raises(InvalidInput):
            as_descriptor(None)
        with pytest.raises(InvalidInput):
            as_descriptor([])

    def test_rejects_non_numeric(self):
        with pytest.raises(InvalidInput):
            as_descriptor(["a", "b"])

    def test_rejects_nested(self):
        with pytest.raises(InvalidInput):
            as_descriptor([[0.1, 0.2], [0.3, 0.4]])

    def test_wrong_length_is_dimension_mismatch(self):
        with pytest.raises(DimensionMismatch) as exc_info:
            as_descriptor([0.1, 0.2], dim=128)
        assert exc_info.value.details == {"expected": 128, "actual": 2}
        # still an input error for callers catching the broad class
        assert isinstance(exc_info.value, InvalidInput)


class TestDistance:
    def test_euclidean(self):
        a = as_descriptor([0.0, 0.0])
        b = as_descriptor([3.0, 4.0])
        assert distance(a, b) == pytest.approx(5.0)

    def test_symmetric(self):
        rng = np.random.default_rng(7)
        for _ in range(20):
            a = as_descriptor(rng.normal(size=128))
            b = as_descriptor(rng.normal(size=128))
            assert distance(a, b) == distance(b, a)

    def test_zero_for_identical(self):
        a = as_descriptor(np.linspace(-1, 1, 128))
        assert distance(a, a) == 0.0

    def test_non_negative(self):
        a = as_descriptor([1.0, -2.0, 0.5])
        b = as_descriptor([-1.0, 2.0, 0.25])
        assert distance(a, b) >= 0.0
        assert math.isfinite(distance(a, b))

    def test_unequal_lengths_raise(self):
        with pytest.raises(DimensionMismatch):
            distance(as_descriptor([0.1, 0.2]), as_descriptor([0.1, 0.2, 0.3]))
