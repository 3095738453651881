import pytest

from kmeans_validity import DatasetLoadError, load_dataset, parse_dataset


def test_load_labelled_file(labelled_file):
    ds = load_dataset(labelled_file, has_true_clusters=True, random_state=0)
    assert ds.point_count == 6
    assert ds.dimensions == 2
    assert ds.true_cluster_count == 2
    assert [p.true_cluster_index for p in ds] == [0, 0, 0, 1, 1, 1]
    assert list(ds.get_point(4)) == [9.0, 10.0]


def test_parse_unlabelled_lines_skips_blank_lines():
    ds = parse_dataset(["3 2", "", "0 0", "1.5 2", "  ", "-1 4e1"])
    assert ds.point_count == 3
    assert not ds.are_true_clusters_known
    assert list(ds.get_point(2)) == [-1.0, 40.0]


def test_missing_file(tmp_path):
    with pytest.raises(DatasetLoadError, match="cannot read"):
        load_dataset(tmp_path / "nope.txt")


@pytest.mark.parametrize(
    "lines, labelled, message",
    [
        ([], False, "Missing data point specifications"),
        (["3 x"], False, "Invalid data point specifications"),
        (["3 2"], True, "expected 3 integers"),
        (["-1 2"], False, "negative"),
        (["2 0"], False, "dimensions must be positive"),
        (["2 2", "0 0", "0"], False, "line 3: expected 2 values"),
        (["1 2", "0 nan?"], False, "line 2: invalid data point"),
        (["1 3 2", "0 0 0.5"], True, "invalid true cluster index"),
        (["2 3 2", "0 0 0", "1 1 2"], True, r"line 3: true cluster index 2 outside \[0, 2\)"),
        (["1 3 2", "0 0 -1"], True, "true cluster index -1 outside"),
        (["3 2", "0 0", "1 1"], False, "Expected 3 points, got 2 instead"),
    ],
)
def test_parse_errors(lines, labelled, message):
    with pytest.raises(DatasetLoadError, match=message):
        parse_dataset(lines, labelled)


def test_loaded_dataset_is_clusterable(labelled_file):
    ds = load_dataset(labelled_file, True)
    truth = ds.get_true_clusters()
    assert [c.point_indices for c in truth] == [(0, 1, 2), (3, 4, 5)]
