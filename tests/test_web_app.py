from fastapi.testclient import TestClient

from web_app import app, make_overlap_blobs_nd

client = TestClient(app)


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_run_inline_points():
    payload = {
        "points": [[0, 0], [1, 0], [0, 1], [10, 10], [11, 10], [10, 11]],
        "labels": [0, 0, 0, 1, 1, 1],
        "config": {"num_clusters": 2, "init_method": "maximin", "validator": "jaccard", "num_runs": 2},
    }
    response = client.post("/api/run", json=payload)
    assert response.status_code == 200
    body = response.json()
    assert body["validator"]["abbreviation"] == "JC"
    assert len(body["runs"]) == 2
    assert body["runs"][0]["index"] == 1.0
    assert body["text"].startswith("Run 1")


def test_run_blobs_preset():
    payload = {
        "source": "blobs",
        "blobs": {"n_clusters": 3, "points_per_cluster": 20, "seed": 3},
        "config": {"num_clusters": 3, "init_method": "maximin", "normalization": "z-score", "validator": "rs"},
    }
    response = client.post("/api/run", json=payload)
    assert response.status_code == 200
    assert response.json()["normalization"] == "z-score"


def test_run_rejects_ragged_points():
    payload = {"points": [[0, 0], [1]], "config": {"num_clusters": 2}}
    response = client.post("/api/run", json=payload)
    assert response.status_code == 400


def test_run_rejects_too_many_clusters():
    payload = {"points": [[0], [1]], "config": {"num_clusters": 3}}
    response = client.post("/api/run", json=payload)
    assert response.status_code == 400


def test_run_external_validator_without_labels():
    payload = {"points": [[0], [1], [5], [6]], "config": {"num_clusters": 2, "validator": "fm"}}
    response = client.post("/api/run", json=payload)
    assert response.status_code == 400


def test_run_degenerate_data():
    payload = {"points": [[0], [5]], "config": {"num_clusters": 2, "init_method": "maximin"}}
    response = client.post("/api/run", json=payload)
    assert response.status_code == 422


def test_invalid_config_is_unprocessable():
    payload = {"points": [[0], [1]], "config": {"num_clusters": 2, "validator": "dunn"}}
    response = client.post("/api/run", json=payload)
    assert response.status_code == 422


def test_blob_generator_labels():
    X, y = make_overlap_blobs_nd(
        seed=0, n_clusters=4, points_per_cluster=5, n_features=3, center_scale=10.0, cluster_std=1.0
    )
    assert X.shape == (20, 3)
    assert y.tolist() == [0] * 5 + [1] * 5 + [2] * 5 + [3] * 5
