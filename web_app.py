from __future__ import annotations

import logging
from time import perf_counter
from typing import Literal, Optional

import numpy as np
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from kmeans_validity import (
    ClusteringConfig,
    ClusteringResults,
    ConfigurationError,
    Dataset,
    DatasetLoadError,
    DegenerateDataError,
    perform,
)
from kmeans_validity.logging_utils import setup_logging

logger = logging.getLogger("web_app")

setup_logging()

app = FastAPI(title="K-means cluster validity")


class BlobsPreset(BaseModel):
    model_config = ConfigDict(extra="forbid")

    n_clusters: int = Field(default=3, ge=2, le=50)
    points_per_cluster: int = Field(default=40, ge=1, le=2000)
    n_features: int = Field(default=2, ge=2, le=50)
    center_scale: float = Field(default=10.0, gt=0.0)
    cluster_std: float = Field(default=1.0, gt=0.0)
    seed: int = 0


class RunRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source: Literal["points", "blobs"] = "points"
    points: Optional[list[list[float]]] = None
    labels: Optional[list[int]] = None
    blobs: BlobsPreset = Field(default_factory=BlobsPreset)
    config: ClusteringConfig


def make_overlap_blobs_nd(
    seed: int = 0,
    *,
    n_clusters: int,
    points_per_cluster: int,
    n_features: int,
    center_scale: float,
    cluster_std: float,
) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(seed)
    n_clusters = int(n_clusters)
    n_features = int(n_features)
    if n_features < 2:
        raise ValueError("n_features must be >= 2")

    angles = np.linspace(0.0, 2.0 * np.pi, num=n_clusters, endpoint=False)
    radius = float(center_scale) * np.sqrt(2.0)
    centers = np.zeros((n_clusters, n_features), dtype=np.float64)
    centers[:, 0] = radius * np.cos(angles)
    centers[:, 1] = radius * np.sin(angles)
    centers[:, :2] += rng.normal(scale=0.25 * float(center_scale), size=(n_clusters, 2))

    if n_features > 2:
        extra_scale = 0.35 * float(center_scale)
        centers[:, 2:] = rng.normal(scale=extra_scale, size=(n_clusters, n_features - 2))

    chunks = []
    cov = (float(cluster_std) ** 2) * np.eye(n_features)
    for c in centers:
        pts = rng.multivariate_normal(mean=c, cov=cov, size=int(points_per_cluster))
        chunks.append(pts)

    X = np.vstack(chunks)
    y = np.repeat(np.arange(n_clusters), int(points_per_cluster))
    return X, y


def _make_dataset(req: RunRequest) -> Dataset:
    seed = req.config.random_state
    if req.source == "blobs":
        preset = req.blobs
        X, y = make_overlap_blobs_nd(
            seed=preset.seed,
            n_clusters=preset.n_clusters,
            points_per_cluster=preset.points_per_cluster,
            n_features=preset.n_features,
            center_scale=preset.center_scale,
            cluster_std=preset.cluster_std,
        )
        return Dataset(X, true_clusters=y, true_cluster_count=preset.n_clusters, random_state=seed)

    if not req.points:
        raise DatasetLoadError("points must hold at least one row")
    widths = {len(row) for row in req.points}
    if len(widths) != 1 or 0 in widths:
        raise DatasetLoadError("every point must have the same, positive number of dimensions")
    if req.labels is not None:
        if len(req.labels) != len(req.points):
            raise DatasetLoadError("labels must hold one true cluster index per point")
        if min(req.labels) < 0:
            raise DatasetLoadError("true cluster indices cannot be negative")
    return Dataset(req.points, true_clusters=req.labels, random_state=seed)


@app.get("/health")
def health():
    return {"ok": True}


@app.post("/api/run")
def run(req: RunRequest):
    try:
        dataset = _make_dataset(req)
    except DatasetLoadError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    config = req.config
    try:
        validator = config.make_validator()
        t0 = perf_counter()
        dataset.normalize(config.normalization)
        runs = perform(dataset, config)
        results = ClusteringResults(
            dataset,
            runs,
            validator,
            normalization=config.normalization,
            init_method=config.init_method,
        )
        payload = results.as_dict()
        elapsed = perf_counter() - t0
    except DegenerateDataError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except (ConfigurationError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    logger.info("Served %d runs over %d points in %.3f s", len(runs), dataset.point_count, elapsed)
    payload["elapsed_s"] = float(elapsed)
    payload["text"] = results.format_text()
    return payload
