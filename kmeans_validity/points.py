from __future__ import annotations

from functools import total_ordering
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Optional

import numpy as np

if TYPE_CHECKING:
    from .dataset import Dataset


def _format_axis(value: float) -> str:
    if np.isnan(value):
        return "NaN"
    text = f"{value:.1f}"
    return text[:-2] if text.endswith(".0") else text


@total_ordering
class DataPoint:
    """A fixed-dimension vector of real values.

    A point is either *bound* (it belongs to a :class:`Dataset` and knows its
    index and ground-truth cluster) or *free* (e.g. a computed mean). Bound
    points share memory with their dataset's axis matrix.
    """

    __slots__ = ("_axes", "_dataset", "_index", "_true_cluster")

    def __init__(self, axes: Iterable[float]):
        if not isinstance(axes, np.ndarray):
            axes = list(axes)
        arr = np.array(axes, dtype=np.float64)
        if arr.ndim != 1:
            raise ValueError("axes must be one-dimensional")
        self._axes = arr
        self._dataset: Optional["Dataset"] = None
        self._index = -1
        self._true_cluster = -1

    @classmethod
    def _bound(cls, dataset: "Dataset", index: int, row: np.ndarray, true_cluster: int) -> "DataPoint":
        point = cls.__new__(cls)
        point._axes = row
        point._dataset = dataset
        point._index = int(index)
        point._true_cluster = int(true_cluster)
        return point

    @property
    def dataset(self) -> Optional["Dataset"]:
        return self._dataset

    @property
    def index(self) -> int:
        return self._index

    @property
    def dimensions(self) -> int:
        return int(self._axes.shape[0])

    @property
    def true_cluster_index(self) -> int:
        return self._true_cluster

    @property
    def is_true_cluster_known(self) -> bool:
        return self._true_cluster >= 0

    @property
    def is_free(self) -> bool:
        return self._dataset is None

    @property
    def axes(self) -> np.ndarray:
        view = self._axes.view()
        view.flags.writeable = False
        return view

    def get_axis(self, index: int) -> float:
        return float(self._axes[index])

    def squared_error(self, point: "DataPoint") -> float:
        if point is None:
            raise TypeError("point cannot be None")
        if point is self:
            return 0.0
        if point.dimensions != self.dimensions:
            raise ValueError("Dimension mismatch")
        # NaN axes come from zero-variance normalization and are skipped.
        diff = self._axes - point._axes
        return float(np.nansum(diff * diff))

    def multiply_by(self, scalar: float) -> "DataPoint":
        return DataPoint(self._axes * float(scalar))

    def divide_by(self, scalar: float) -> "DataPoint":
        with np.errstate(divide="ignore", invalid="ignore"):
            return DataPoint(self._axes / float(scalar))

    def get_nearest_point(self, points: Iterable["DataPoint"]) -> Optional["DataPoint"]:
        return nearest_point(self, points)

    def get_farthest_point(self, points: Iterable["DataPoint"]) -> Optional["DataPoint"]:
        return farthest_point(self, points)

    def compare_to(self, point: "DataPoint") -> int:
        if point is None:
            raise TypeError("point cannot be None")
        if point is self:
            return 0
        if point.dimensions != self.dimensions:
            raise ValueError("Dimension mismatch")
        for ours, theirs in zip(self._axes.tolist(), point._axes.tolist()):
            if ours != theirs:
                return 1 if ours > theirs else -1
        return 0

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, DataPoint):
            return NotImplemented
        return self.compare_to(other) < 0

    def __eq__(self, other: Any) -> bool:
        if other is self:
            return True
        if not isinstance(other, DataPoint):
            return NotImplemented
        return (
            self._index == other._index
            and self._true_cluster == other._true_cluster
            and np.array_equal(self._axes, other._axes, equal_nan=True)
        )

    def __hash__(self) -> int:
        axes = tuple(np.nan_to_num(self._axes, nan=0.0).tolist())
        return hash((self._index, axes, self._true_cluster))

    def __iter__(self) -> Iterator[float]:
        return iter(self._axes.tolist())

    def __str__(self) -> str:
        parts = [_format_axis(v) for v in self._axes.tolist()]
        if self.is_true_cluster_known:
            parts.append(str(self._true_cluster))
        return " ".join(parts)

    def __repr__(self) -> str:
        if self.is_free:
            return f"DataPoint({self._axes.tolist()!r})"
        return f"DataPoint({self._axes.tolist()!r}, index={self._index}, true_cluster={self._true_cluster})"


def nearest_point(point: DataPoint, points: Iterable[DataPoint]) -> Optional[DataPoint]:
    if point is None:
        raise TypeError("point cannot be None")
    nearest: Optional[DataPoint] = None
    lowest = float("inf")
    for candidate in points:
        error = point.squared_error(candidate)
        if error < lowest:
            lowest = error
            nearest = candidate
    return nearest


def farthest_point(point: DataPoint, points: Iterable[DataPoint]) -> Optional[DataPoint]:
    if point is None:
        raise TypeError("point cannot be None")
    farthest: Optional[DataPoint] = None
    greatest = float("-inf")
    for candidate in points:
        error = point.squared_error(candidate)
        if error > greatest:
            greatest = error
            farthest = candidate
    return farthest


def add_points(points: Iterable[DataPoint]) -> DataPoint:
    total: Optional[np.ndarray] = None
    for point in points:
        if point is None:
            raise TypeError("point cannot be None")
        if total is None:
            total = np.zeros(point.dimensions, dtype=np.float64)
        elif point.dimensions != total.shape[0]:
            raise ValueError("Dimension mismatch")
        total += point._axes
    if total is None:
        raise ValueError("No points provided")
    return DataPoint(total)


class UnorderedPair:
    """A pair whose equality ignores the order of its elements."""

    __slots__ = ("first", "second")

    def __init__(self, first: Any, second: Any):
        self.first = first
        self.second = second

    def __eq__(self, other: Any) -> bool:
        if other is self:
            return True
        if not isinstance(other, UnorderedPair):
            return NotImplemented
        return (self.first == other.first and self.second == other.second) or (
            self.first == other.second and self.second == other.first
        )

    def __hash__(self) -> int:
        a, b = hash(self.first), hash(self.second)
        return hash((min(a, b), max(a, b)))

    def __iter__(self) -> Iterator[Any]:
        yield self.first
        yield self.second

    def __repr__(self) -> str:
        return f"UnorderedPair({self.first!r}, {self.second!r})"
