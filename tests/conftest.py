import numpy as np
import pytest

from kmeans_validity import Clusters, Dataset


@pytest.fixture
def duplicate_dataset():
    return Dataset([[0.0, 0.0], [0.0, 0.0], [10.0, 10.0]], random_state=0)


@pytest.fixture
def two_blobs():
    X = np.array(
        [
            [0.0, 0.0],
            [1.0, 0.0],
            [0.0, 1.0],
            [1.0, 1.0],
            [10.0, 10.0],
            [11.0, 10.0],
            [10.0, 11.0],
            [11.0, 11.0],
        ]
    )
    y = np.array([0, 0, 0, 0, 1, 1, 1, 1])
    return Dataset(X, true_clusters=y, true_cluster_count=2, random_state=7)


@pytest.fixture
def dunn_dataset():
    return Dataset([[0.0, 0.0], [1.0, 1.0], [3.0, 1.0], [4.0, 2.0]], random_state=0)


@pytest.fixture
def labelled_file(tmp_path):
    path = tmp_path / "blobs.txt"
    path.write_text(
        "6 3 2\n"
        "0 0 0\n"
        "0 1 0\n"
        "1 0 0\n"
        "9 9 1\n"
        "9 10 1\n"
        "10 9 1\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def make_partition():
    """Build a Clusters group with the given point indices per cluster, centroids at the means."""

    def _make(dataset, *groups):
        clusters = Clusters(dataset)
        for members in groups:
            cluster = clusters.add_cluster()
            for i in members:
                cluster.add_point(dataset.get_point(i))
            cluster.centroid = cluster.get_mean()
        return clusters

    return _make
