import math

import numpy as np
import pytest

from kmeans_validity import NormalizationType
from kmeans_validity.normalization import (
    MinMaxNormalizer,
    ZScoreNormalizer,
    fit_normalizer,
    normalize_columns,
)


def test_min_max_normalizer():
    normalizer = MinMaxNormalizer.fit([2.0, 4.0, 6.0])
    assert (normalizer.min, normalizer.max) == (2.0, 6.0)
    assert normalizer.normalize(4.0) == 0.5
    assert list(normalizer.normalize([2.0, 6.0])) == [0.0, 1.0]


def test_min_max_range_rescale():
    normalizer = MinMaxNormalizer.fit([0.0, 10.0])
    assert normalizer.normalize_range(5.0, -1.0, 1.0) == pytest.approx(0.0)
    with pytest.raises(ValueError):
        normalizer.normalize_range(5.0, 1.0, 1.0)


def test_min_max_zero_range_is_nan():
    assert math.isnan(MinMaxNormalizer.fit([3.0, 3.0]).normalize(3.0))


def test_z_score_normalizer_uses_sample_deviation():
    normalizer = ZScoreNormalizer.fit([2.0, 4.0, 6.0])
    assert normalizer.mean == 4.0
    assert normalizer.standard_deviation == pytest.approx(2.0)
    assert normalizer.normalize(6.0) == pytest.approx(1.0)


def test_z_score_single_value_is_nan():
    normalizer = ZScoreNormalizer.fit([1.0])
    assert math.isnan(normalizer.standard_deviation)
    assert math.isnan(normalizer.normalize(1.0))


def test_empty_values_rejected():
    with pytest.raises(ValueError, match="no elements"):
        MinMaxNormalizer.fit([])


def test_fit_normalizer_dispatch():
    assert isinstance(fit_normalizer("min-max", [0.0, 1.0]), MinMaxNormalizer)
    assert isinstance(fit_normalizer(NormalizationType.Z_SCORE, [0.0, 1.0]), ZScoreNormalizer)
    with pytest.raises(ValueError):
        fit_normalizer(NormalizationType.NONE, [0.0, 1.0])


def test_normalize_columns_in_place():
    X = np.array([[0.0, 10.0], [5.0, 20.0], [10.0, 30.0]])
    out = normalize_columns(X, NormalizationType.MIN_MAX)
    assert out is X
    assert X[:, 0].tolist() == [0.0, 0.5, 1.0]
    assert X[:, 1].tolist() == [0.0, 0.5, 1.0]


def test_enum_display_names():
    assert NormalizationType("Min-Max") is NormalizationType.MIN_MAX
    assert NormalizationType("z_score") is NormalizationType.Z_SCORE
    assert str(NormalizationType.NONE) == "None"
