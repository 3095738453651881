import math

import numpy as np
import pytest

from kmeans_validity import DataPoint, Dataset, UnorderedPair
from kmeans_validity.points import add_points, farthest_point, nearest_point


def test_squared_error_is_not_square_rooted():
    a = DataPoint([0.0, 0.0])
    b = DataPoint([3.0, 4.0])
    assert a.squared_error(b) == 25.0
    assert b.squared_error(a) == 25.0


def test_squared_error_with_itself_is_zero():
    a = DataPoint([1.5, -2.0])
    assert a.squared_error(a) == 0.0


def test_squared_error_skips_nan_axes():
    a = DataPoint([float("nan"), 1.0])
    b = DataPoint([5.0, 3.0])
    assert a.squared_error(b) == 4.0


def test_squared_error_dimension_mismatch():
    with pytest.raises(ValueError, match="Dimension mismatch"):
        DataPoint([0.0]).squared_error(DataPoint([0.0, 1.0]))


def test_squared_error_rejects_none():
    with pytest.raises(TypeError):
        DataPoint([0.0]).squared_error(None)


def test_free_point_properties():
    p = DataPoint([1.0, 2.0])
    assert p.is_free
    assert p.index == -1
    assert not p.is_true_cluster_known
    assert p.dimensions == 2
    assert p.get_axis(1) == 2.0
    assert list(p) == [1.0, 2.0]


def test_axes_view_is_read_only():
    p = DataPoint([1.0, 2.0])
    with pytest.raises(ValueError):
        p.axes[0] = 5.0


def test_multiply_and_divide_return_new_points():
    p = DataPoint([2.0, 4.0])
    assert list(p.multiply_by(0.5)) == [1.0, 2.0]
    assert list(p.divide_by(2.0)) == [1.0, 2.0]
    assert list(p) == [2.0, 4.0]
    assert all(math.isinf(v) for v in p.divide_by(0.0))


def test_compare_is_lexicographic():
    assert DataPoint([1.0, 5.0]) < DataPoint([2.0, 0.0])
    assert DataPoint([1.0, 1.0]).compare_to(DataPoint([1.0, 2.0])) == -1
    assert DataPoint([1.0, 2.0]).compare_to(DataPoint([1.0, 2.0])) == 0


def test_equality_includes_index_and_label():
    ds = Dataset([[1.0, 2.0], [1.0, 2.0]])
    a, b = ds.points
    assert a != b
    assert DataPoint([1.0, 2.0]) == DataPoint([1.0, 2.0])
    assert DataPoint([float("nan")]) == DataPoint([float("nan")])
    assert hash(DataPoint([1.0, 2.0])) == hash(DataPoint([1.0, 2.0]))


def test_str_includes_known_label():
    ds = Dataset([[1.0, 2.5]], true_clusters=[3])
    assert str(ds.get_point(0)) == "1 2.5 3"
    assert str(DataPoint([1.0, 2.5])) == "1 2.5"


def test_nearest_and_farthest_first_wins():
    origin = DataPoint([0.0, 0.0])
    a = DataPoint([1.0, 0.0])
    b = DataPoint([0.0, 1.0])
    c = DataPoint([5.0, 5.0])
    assert nearest_point(origin, [a, b, c]) is a
    assert farthest_point(origin, [c, a, DataPoint([-5.0, -5.0])]) is c
    assert origin.get_nearest_point([]) is None


def test_add_points():
    total = add_points([DataPoint([1.0, 2.0]), DataPoint([3.0, 4.0])])
    assert list(total) == [4.0, 6.0]
    with pytest.raises(ValueError):
        add_points([DataPoint([1.0]), DataPoint([1.0, 2.0])])


def test_bound_points_share_dataset_memory():
    ds = Dataset(np.array([[1.0, 2.0], [3.0, 4.0]]))
    p = ds.get_point(1)
    assert not p.is_free
    assert p.dataset is ds
    assert p.index == 1
    assert np.shares_memory(p.axes, ds.axes)


def test_unordered_pair_ignores_order():
    assert UnorderedPair("a", "b") == UnorderedPair("b", "a")
    assert hash(UnorderedPair("a", "b")) == hash(UnorderedPair("b", "a"))
    assert UnorderedPair("a", "b") != UnorderedPair("a", "c")
    assert list(UnorderedPair(1, 2)) == [1, 2]
