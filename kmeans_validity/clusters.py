from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Iterator, Optional

import numpy as np

from .enums import DiameterMethod, LinkageMethod
from .errors import (
    MissingCentroidError,
    NoCentroidError,
    OwnershipError,
    PointWithNoOwnerError,
    UnfixableCoincidenceError,
)
from .points import DataPoint

if TYPE_CHECKING:
    from .dataset import Dataset

logger = logging.getLogger(__name__)


def _pairwise_dist2(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    diff = A[:, None, :] - B[None, :, :]
    return np.nansum(diff * diff, axis=2)


def _dist2_to(A: np.ndarray, p: np.ndarray) -> np.ndarray:
    diff = A - p
    return np.nansum(diff * diff, axis=1)


def _pairwise_stats(A: np.ndarray, B: np.ndarray) -> tuple[float, float, float]:
    """Min, max and sum of squared distances over every (a, b) pair, one row of ``A`` at a time."""
    lowest = math.inf
    highest = -math.inf
    total = 0.0
    for row in A:
        dist2 = _dist2_to(B, row)
        lowest = min(lowest, float(dist2.min()))
        highest = max(highest, float(dist2.max()))
        total += float(dist2.sum())
    return lowest, highest, total


class Cluster:
    """One cluster of a :class:`Clusters` group.

    Members are stored as dataset point indices. Ownership is recorded by the
    group before a member is appended, so a point can never sit in two
    clusters of the same group.
    """

    def __init__(self, group: "Clusters", index: int):
        self._group = group
        self._index = index
        self._members: list[int] = []
        self._centroid: Optional[DataPoint] = None
        self._previous_mean: Optional[DataPoint] = None

    @property
    def group(self) -> "Clusters":
        return self._group

    @property
    def index(self) -> int:
        return self._index

    @property
    def centroid(self) -> Optional[DataPoint]:
        return self._centroid

    @centroid.setter
    def centroid(self, point: Optional[DataPoint]) -> None:
        if point is not None and not self._group.dataset.can_contain(point):
            raise ValueError("point incompatible with dataset")
        self._centroid = point

    @property
    def previous_mean(self) -> Optional[DataPoint]:
        return self._previous_mean

    @property
    def point_count(self) -> int:
        return len(self._members)

    @property
    def is_empty(self) -> bool:
        return not self._members

    @property
    def point_indices(self) -> tuple[int, ...]:
        return tuple(self._members)

    @property
    def points(self) -> tuple[DataPoint, ...]:
        points = self._group.dataset.points
        return tuple(points[i] for i in self._members)

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[DataPoint]:
        return iter(self.points)

    def _rows(self) -> np.ndarray:
        return self._group.dataset.axes[self._members]

    def has_point(self, point: Optional[DataPoint]) -> bool:
        if point is None or not self._group.dataset.has_point(point):
            return False
        return self._group._owners.get(point.index) is self

    def get_point(self, index: int) -> DataPoint:
        return self._group.dataset.points[self._members[index]]

    def add_point(self, point: DataPoint) -> None:
        if point is None:
            raise TypeError("point cannot be None")
        idx = self._group._require_index(point)
        if self._group._owners.get(idx) is self:
            return
        self._group._assign_owner(idx, self)
        self._members.append(idx)

    def remove_point(self, point: Optional[DataPoint]) -> None:
        if point is None or not self._group.dataset.has_point(point):
            return
        idx = point.index
        if self._group._owners.get(idx) is not self:
            return
        self._members.remove(idx)
        self._group._clear_owner(idx)

    def clear_points(self) -> None:
        for idx in self._members:
            self._group._clear_owner(idx)
        self._members.clear()

    def get_mean(self, use_previous_if_empty: bool = False) -> DataPoint:
        if not self._members:
            if not use_previous_if_empty:
                raise ValueError("Cluster is empty")
            if self._previous_mean is None:
                raise ValueError("No previous mean")
            return self._previous_mean
        self._previous_mean = DataPoint(self._rows().mean(axis=0))
        return self._previous_mean

    def get_mean_distance(self, point: DataPoint) -> float:
        """Mean squared distance from ``point`` to every *other* member.

        Only the exact instance passed is skipped; equal-valued points count.
        """
        if point is None:
            raise TypeError("point cannot be None")
        members = [i for i in self._members if self._group.dataset.points[i] is not point]
        if not members:
            return float("nan")
        dist2 = _dist2_to(self._group.dataset.axes[members], point.axes)
        return float(dist2.sum() / len(members))

    def get_compactness(self) -> float:
        if self._centroid is None:
            raise MissingCentroidError("centroid must be set")
        return self.get_mean_distance(self._centroid)

    def get_dispersion(self) -> float:
        if not self._members:
            return 0.0
        mean = self.get_mean()
        return math.sqrt(float(_dist2_to(self._rows(), mean.axes).mean()))

    def get_sum_of_squared_errors(self) -> float:
        if self._centroid is None:
            raise MissingCentroidError("centroid must be set")
        if not self._members:
            return 0.0
        return float(_dist2_to(self._rows(), self._centroid.axes).sum())

    def has_coincidence_center(self) -> bool:
        if len(self._members) != 1 or self._centroid is None:
            return False
        return self._group.dataset.points[self._members[0]] == self._centroid

    def get_distance(self, cluster: "Cluster", linkage: LinkageMethod) -> float:
        if cluster is None:
            raise TypeError("cluster cannot be None")
        linkage = LinkageMethod(linkage)
        if cluster is self:
            return 0.0

        if linkage is LinkageMethod.CENTROID:
            if self._centroid is None or cluster._centroid is None:
                raise MissingCentroidError("centroid must be set")
            return self._centroid.squared_error(cluster._centroid)

        observations = len(self._members) * len(cluster._members)
        if linkage is LinkageMethod.AVERAGE_CENTROIDS:
            if self._centroid is None or cluster._centroid is None:
                raise MissingCentroidError("centroid must be set")
            total = float(_dist2_to(cluster._rows(), self._centroid.axes).sum())
            total += float(_dist2_to(self._rows(), cluster._centroid.axes).sum())
            return total / observations if observations else float("nan")

        if observations == 0:
            return {
                LinkageMethod.SINGLE: float("inf"),
                LinkageMethod.COMPLETE: 0.0,
                LinkageMethod.AVERAGE: float("nan"),
            }[linkage]

        lowest, highest, total = _pairwise_stats(self._rows(), cluster._rows())
        if linkage is LinkageMethod.SINGLE:
            return lowest
        if linkage is LinkageMethod.COMPLETE:
            return highest
        return total / observations

    def get_diameter(self, diameter: DiameterMethod) -> float:
        diameter = DiameterMethod(diameter)
        if not self._members:
            return 0.0

        n = len(self._members)
        if diameter is DiameterMethod.CENTROID:
            if self._centroid is None:
                raise MissingCentroidError("centroid must be set")
            return 2.0 * float(_dist2_to(self._rows(), self._centroid.axes).mean())

        rows = self._rows()
        _, highest, total = _pairwise_stats(rows, rows)
        if diameter is DiameterMethod.COMPLETE:
            return highest
        # Self-pairs add zero to the sum but are not counted in n * (n - 1).
        observations = n * (n - 1)
        return total / observations if observations else float("nan")

    def __repr__(self) -> str:
        return f"Cluster(index={self._index}, centroid={self._centroid!r}, points={list(self._members)})"


class Clusters:
    """A group of clusters over one dataset.

    ``_owners`` maps a point index to its owning cluster and is the single
    source of truth for exclusivity.
    """

    def __init__(self, dataset: "Dataset"):
        if dataset is None:
            raise TypeError("dataset cannot be None")
        self._dataset = dataset
        self._clusters: list[Cluster] = []
        self._owners: dict[int, Cluster] = {}
        self._next_index = 0

    @property
    def dataset(self) -> "Dataset":
        return self._dataset

    @property
    def point_count(self) -> int:
        return self._dataset.point_count

    @property
    def points(self) -> tuple[DataPoint, ...]:
        return self._dataset.points

    @property
    def cluster_count(self) -> int:
        return len(self._clusters)

    @property
    def clusters(self) -> tuple[Cluster, ...]:
        return tuple(self._clusters)

    def __len__(self) -> int:
        return len(self._clusters)

    def __iter__(self) -> Iterator[Cluster]:
        return iter(self._clusters)

    def __getitem__(self, position: int) -> Cluster:
        return self._clusters[position]

    def has_point(self, point: Optional[DataPoint]) -> bool:
        return self._dataset.has_point(point)

    def get_unordered_point_pairs(self):
        return self._dataset.get_unordered_point_pairs()

    def get_barycenter(self) -> DataPoint:
        return self._dataset.get_barycenter()

    def add_cluster(self, centroid: Optional[DataPoint] = None) -> Cluster:
        cluster = Cluster(self, self._next_index)
        self._next_index += 1
        self._clusters.append(cluster)
        if centroid is not None:
            cluster.add_point(centroid)
            cluster.centroid = centroid
        return cluster

    def remove_cluster(self, cluster: Optional[Cluster]) -> None:
        if cluster is None or cluster not in self._clusters:
            return
        cluster.clear_points()
        self._clusters.remove(cluster)

    def get_cluster(self, point: Optional[DataPoint]) -> Optional[Cluster]:
        if point is None or not self._dataset.has_point(point):
            return None
        return self._owners.get(point.index)

    def expect_cluster(self, point: DataPoint) -> Cluster:
        if point is None:
            raise TypeError("point cannot be None")
        owner = self.get_cluster(point)
        if owner is None:
            raise OwnershipError("point currently has no owner")
        return owner

    def _require_index(self, point: DataPoint) -> int:
        if not self._dataset.has_point(point):
            raise ValueError("point not part of the dataset")
        return point.index

    def _assign_owner(self, idx: int, cluster: Cluster) -> None:
        if cluster not in self._clusters:
            raise OwnershipError("cluster not a part of this group")
        owner = self._owners.get(idx)
        if owner is not None and owner is not cluster:
            raise OwnershipError("point already part of another cluster")
        self._owners[idx] = cluster

    def _clear_owner(self, idx: int) -> None:
        self._owners.pop(idx, None)

    def check_integrity(self) -> None:
        members: dict[int, Cluster] = {}
        for cluster in self._clusters:
            for idx in cluster._members:
                if idx in members:
                    raise OwnershipError(f"point {idx} is a member of more than one cluster")
                members[idx] = cluster
        if members.keys() != self._owners.keys() or any(self._owners[i] is not c for i, c in members.items()):
            raise OwnershipError("ownership map and member lists disagree")

    def _centroid_clusters(self) -> list[Cluster]:
        return [c for c in self._clusters if c.centroid is not None]

    def get_nearest_cluster_by_centroid(
        self,
        point: DataPoint,
        random_on_multiple: bool = False,
        exclude_owner: bool = False,
    ) -> Optional[Cluster]:
        if point is None:
            raise TypeError("point cannot be None")
        owner = self.get_cluster(point)
        nearest: Optional[Cluster] = None
        lowest = float("inf")
        for cluster in self._clusters:
            if cluster.centroid is None:
                continue
            if exclude_owner and cluster is owner:
                continue
            error = point.squared_error(cluster.centroid)
            if error < lowest:
                lowest = error
                nearest = cluster

        if random_on_multiple and nearest is not None:
            # Second scan collects every exact tie so the pick is unbiased.
            tied = [
                cluster
                for cluster in self._clusters
                if cluster.centroid is not None
                and not (exclude_owner and cluster is owner)
                and point.squared_error(cluster.centroid) == lowest
            ]
            nearest = tied[int(self._dataset.rng.integers(0, len(tied)))]
        return nearest

    def group_points_by_nearest_centroid(self, random_on_multiple: bool = False) -> None:
        candidates = self._centroid_clusters()
        unowned = [i for i in range(self._dataset.point_count) if i not in self._owners]
        if not unowned:
            return
        if not candidates:
            raise NoCentroidError()

        centers = np.vstack([c.centroid.axes for c in candidates])
        dist2 = _pairwise_dist2(self._dataset.axes[unowned], centers)
        labels = np.argmin(dist2, axis=1)

        points = self._dataset.points
        rng = self._dataset.rng
        for row, idx in enumerate(unowned):
            label = int(labels[row])
            if random_on_multiple:
                tied = np.flatnonzero(dist2[row] == dist2[row, label])
                if tied.shape[0] > 1:
                    label = int(tied[rng.integers(0, tied.shape[0])])
            candidates[label].add_point(points[idx])

    def _fix_if_coincidence_center(self, cluster: Cluster) -> bool:
        if not cluster.has_coincidence_center():
            return False

        farthest = self._dataset.get_farthest_point(cluster.centroid)
        owner = self.get_cluster(farthest)
        if owner is None:
            raise PointWithNoOwnerError()
        # Taking another cluster's centroid away would leave it without one.
        if any(c.centroid is not None and c.centroid == farthest for c in self._clusters):
            raise UnfixableCoincidenceError(
                f"cannot fix coincident center of cluster {cluster.index}: farthest point {farthest.index} is a centroid"
            )

        owner.remove_point(farthest)
        cluster.add_point(farthest)
        cluster.centroid = farthest
        logger.debug("Fixed coincident center of cluster %d with point %d", cluster.index, farthest.index)
        return True

    def fix_coincident_centers(self, skip_unfixable: bool = False) -> list[Cluster]:
        """Repair singleton clusters whose only member is their centroid.

        Returns the clusters left unrepaired, which is only ever non-empty
        when ``skip_unfixable`` is set.
        """
        unfixed: list[Cluster] = []
        for cluster in self._clusters:
            try:
                self._fix_if_coincidence_center(cluster)
            except UnfixableCoincidenceError:
                if not skip_unfixable:
                    raise
                unfixed.append(cluster)
        return unfixed

    def get_sum_of_squared_errors(self) -> float:
        return float(sum(cluster.get_sum_of_squared_errors() for cluster in self._clusters))

    def __repr__(self) -> str:
        return f"Clusters(dataset={self._dataset!r}, clusters={len(self._clusters)})"
