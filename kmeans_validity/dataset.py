from __future__ import annotations

import logging
from itertools import combinations
from typing import Iterator, Optional, Sequence

import numpy as np

from .clusters import Clusters
from .enums import KMeansInitMethod, NormalizationType
from .errors import AlreadyNormalizedError, DegenerateDataError, PairCountError
from .normalization import normalize_columns
from .points import DataPoint, UnorderedPair

logger = logging.getLogger(__name__)


class IndexSampler:
    """Draws unique random indices, reshuffling only once a shuffle is used up."""

    def __init__(self, size: int, rng: np.random.Generator):
        self._indices = np.arange(int(size))
        self._rng = rng
        self._pos = 0
        self._shuffle_required = True

    def take(self, count: int) -> list[int]:
        count = int(count)
        if count > self._indices.shape[0]:
            raise ValueError("count cannot be greater than the number of indices")
        if self._pos + count > self._indices.shape[0]:
            self._shuffle_required = True
            self._pos = 0
        if self._shuffle_required:
            self._rng.shuffle(self._indices)
            self._shuffle_required = False
        chosen = self._indices[self._pos : self._pos + count].tolist()
        self._pos += count
        return chosen


def _squared_distances(X: np.ndarray, p: np.ndarray) -> np.ndarray:
    diff = X - p
    return np.nansum(diff * diff, axis=1)


class Dataset:
    def __init__(
        self,
        X,
        *,
        true_clusters: Optional[Sequence[int]] = None,
        true_cluster_count: int = -1,
        random_state: Optional[int] = None,
    ):
        X = np.array(X, dtype=np.float64)
        if X.ndim != 2:
            raise ValueError("X must be a 2D array of shape (n_points, n_dimensions)")
        if X.shape[1] <= 0:
            raise ValueError("dimensions must be positive")

        n = X.shape[0]
        if true_clusters is None:
            labels = np.full(n, -1, dtype=np.int64)
        else:
            labels = np.asarray(true_clusters, dtype=np.int64)
            if labels.shape != (n,):
                raise ValueError("true_clusters must hold one label per point")
            if true_cluster_count < 0 and n > 0:
                true_cluster_count = int(labels.max()) + 1

        self._X = X
        self._labels = labels
        self._true_cluster_count = int(true_cluster_count)
        self._points = tuple(DataPoint._bound(self, i, X[i], int(labels[i])) for i in range(n))
        self._pairs: Optional[list[UnorderedPair]] = None
        self._barycenter: Optional[DataPoint] = None
        self._normalized = False

        self.rng = np.random.default_rng(random_state)
        self._sampler = IndexSampler(n, self.rng)

    def copy(self) -> "Dataset":
        other = Dataset(
            self._X.copy(),
            true_clusters=self._labels.copy(),
            true_cluster_count=self._true_cluster_count,
        )
        other.rng = self.rng
        other._sampler = IndexSampler(len(other), other.rng)
        other._normalized = self._normalized
        other._barycenter = self._barycenter
        return other

    @property
    def point_count(self) -> int:
        return len(self._points)

    @property
    def dimensions(self) -> int:
        return int(self._X.shape[1])

    @property
    def true_cluster_count(self) -> int:
        return self._true_cluster_count

    @property
    def are_true_clusters_known(self) -> bool:
        return self._true_cluster_count >= 0

    @property
    def is_normalized(self) -> bool:
        return self._normalized

    @property
    def points(self) -> tuple[DataPoint, ...]:
        return self._points

    @property
    def axes(self) -> np.ndarray:
        view = self._X.view()
        view.flags.writeable = False
        return view

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[DataPoint]:
        return iter(self._points)

    def get_point(self, index: int) -> DataPoint:
        if not 0 <= index < len(self._points):
            raise IndexError(f"point index {index} out of range")
        return self._points[index]

    def can_contain(self, point: Optional[DataPoint]) -> bool:
        return point is not None and point.dimensions == self.dimensions

    def has_point(self, point: Optional[DataPoint]) -> bool:
        if point is None or not 0 <= point.index < len(self._points):
            return False
        ours = self._points[point.index]
        return ours is point or ours == point

    def _distances_to(self, point: DataPoint) -> np.ndarray:
        if point is None:
            raise TypeError("point cannot be None")
        if not self.can_contain(point):
            raise ValueError("Dimension mismatch")
        return _squared_distances(self._X, point.axes)

    def get_nearest_point(self, point: DataPoint) -> Optional[DataPoint]:
        dist2 = self._distances_to(point)
        if dist2.shape[0] == 0:
            return None
        return self._points[int(np.argmin(dist2))]

    def get_farthest_point(self, point: DataPoint) -> Optional[DataPoint]:
        dist2 = self._distances_to(point)
        if dist2.shape[0] == 0:
            return None
        return self._points[int(np.argmax(dist2))]

    def get_unordered_point_pairs(self) -> list[UnorderedPair]:
        if self._pairs is not None:
            return self._pairs

        pairs = list(dict.fromkeys(UnorderedPair(a, b) for a, b in combinations(self._points, 2)))
        n = len(self._points)
        if len(pairs) != n * (n - 1) // 2:
            raise PairCountError(f"Unexpected size for unordered pair list ({len(pairs)} for {n} points)")

        logger.debug("Built %d unordered point pairs", len(pairs))
        self._pairs = pairs
        return pairs

    def get_barycenter(self) -> DataPoint:
        if self._barycenter is None:
            if len(self._points) == 0:
                raise ValueError("dataset has no points")
            self._barycenter = DataPoint(self._X.mean(axis=0))
        return self._barycenter

    def _validate_cluster_count(self, count: int) -> None:
        if count <= 0:
            raise ValueError("count must be positive")
        if count > len(self._points):
            raise ValueError("count cannot be greater than point_count")

    def get_clusters(self, *centroid_indices: int) -> Clusters:
        if not centroid_indices:
            raise ValueError("centroid_indices must have at least one element")
        if len(set(centroid_indices)) != len(centroid_indices):
            raise ValueError("Cannot have duplicate indices")

        group = Clusters(self)
        for index in centroid_indices:
            group.add_cluster(self.get_point(int(index)))
        return group

    def get_true_clusters(self) -> Clusters:
        if not self.are_true_clusters_known:
            raise ValueError("The true cluster count is not known")

        group = Clusters(self)
        for _ in range(self._true_cluster_count):
            group.add_cluster()
        for point in self._points:
            label = point.true_cluster_index
            if not 0 <= label < self._true_cluster_count:
                raise ValueError(f"The true cluster index {label} for point ({point}) does not exist in dataset")
            group[label].add_point(point)
        return group

    def get_random_selection_clusters(self, count: int) -> Clusters:
        self._validate_cluster_count(count)
        return self.get_clusters(*self._sampler.take(count))

    def get_random_partition_clusters(self, count: int) -> Clusters:
        self._validate_cluster_count(count)

        group = Clusters(self)
        for _ in range(count):
            group.add_cluster()

        labels = self.rng.integers(0, count, size=len(self._points))
        for point, label in zip(self._points, labels.tolist()):
            group[label].add_point(point)

        for cluster in group:
            if cluster.is_empty:
                raise DegenerateDataError(f"random partition left cluster {cluster.index} empty")
            centroid = cluster.get_mean()
            cluster.clear_points()
            cluster.centroid = centroid
        return group

    def get_maximin_clusters(self, count: int, initial_index: Optional[int] = None) -> Clusters:
        self._validate_cluster_count(count)
        if initial_index is None:
            initial_index = (len(self._points) - 1) // 2

        chosen = [int(initial_index)]
        closest_dist2 = self._distances_to(self.get_point(chosen[0]))
        closest_dist2[chosen[0]] = -np.inf

        for _ in range(1, count):
            next_idx = int(np.argmax(closest_dist2))
            chosen.append(next_idx)
            dist2_new = self._distances_to(self._points[next_idx])
            closest_dist2 = np.minimum(closest_dist2, dist2_new)
            closest_dist2[chosen] = -np.inf

        return self.get_clusters(*chosen)

    def get_clusters_for(self, method: KMeansInitMethod, count: int, **kwargs) -> Clusters:
        method = KMeansInitMethod(method)
        if method is KMeansInitMethod.RANDOM_SELECTION:
            return self.get_random_selection_clusters(count)
        if method is KMeansInitMethod.RANDOM_PARTITION:
            return self.get_random_partition_clusters(count)
        return self.get_maximin_clusters(count, initial_index=kwargs.get("initial_index"))

    def normalize(self, kind: NormalizationType) -> None:
        kind = NormalizationType(kind)
        if self._normalized:
            raise AlreadyNormalizedError("Points already normalized")
        normalize_columns(self._X, kind)
        self._normalized = True
        self._barycenter = None
        logger.info("Normalized %d points with %s", len(self._points), kind.label)

    def __repr__(self) -> str:
        return f"Dataset(point_count={self.point_count}, dimensions={self.dimensions}, true_cluster_count={self._true_cluster_count})"
