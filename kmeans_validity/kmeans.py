from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from time import perf_counter
from typing import TYPE_CHECKING, Callable, Iterator, Optional, Sequence, Union

import numpy as np

from .clusters import Clusters
from .dataset import Dataset
from .enums import KMeansInitMethod
from .errors import SseIncreaseError, UnfixableCoincidenceError

if TYPE_CHECKING:
    from .config import ClusteringConfig

logger = logging.getLogger(__name__)

# Relative slack when checking that SSE never increases.
SSE_INCREASE_RTOL = 1e-9


@dataclass(frozen=True)
class KMeansRun:
    run_num: int
    iterations: np.ndarray
    initial_sse: float
    final_sse: float
    num_iterations: int
    clusters: Clusters
    timing: Optional[dict[str, float]] = None

    @property
    def sse_trace(self) -> np.ndarray:
        return self.iterations[: self.num_iterations]


class KMeansRuns(Sequence[KMeansRun]):
    def __init__(self, runs: Sequence[KMeansRun]):
        self._runs = tuple(runs)

    def __getitem__(self, index):
        return self._runs[index]

    def __len__(self) -> int:
        return len(self._runs)

    def __iter__(self) -> Iterator[KMeansRun]:
        return iter(self._runs)

    @property
    def final_sses(self) -> list[float]:
        return [run.final_sse for run in self._runs]

    def best(self) -> KMeansRun:
        if not self._runs:
            raise ValueError("no runs were performed")
        return min(self._runs, key=lambda run: run.final_sse)


def _validate_inputs(
    dataset: Dataset,
    num_clusters: int,
    max_iterations: int,
    convergence: float,
    num_runs: int = 1,
) -> None:
    if dataset is None:
        raise TypeError("dataset cannot be None")
    if num_clusters <= 0:
        raise ValueError("num_clusters must be >= 1")
    if num_clusters > dataset.point_count:
        raise ValueError("num_clusters must be <= point_count")
    if max_iterations <= 0:
        raise ValueError("max_iterations must be >= 1")
    if convergence < 0:
        raise ValueError("convergence must be >= 0")
    if num_runs <= 0:
        raise ValueError("num_runs must be >= 1")


def _converged(previous_sse: float, sse: float, convergence: float) -> bool:
    if math.isinf(previous_sse):
        return False
    # A perfect fit has no relative improvement left to measure.
    if previous_sse == 0.0:
        return True
    return (previous_sse - sse) / previous_sse < convergence


def _repair_coincident_centers(clusters: Clusters) -> None:
    unfixed = clusters.fix_coincident_centers(skip_unfixable=True)
    if not unfixed:
        return
    if len(unfixed) == clusters.cluster_count:
        raise UnfixableCoincidenceError("every cluster has an unfixable coincident center")
    for cluster in unfixed:
        logger.warning("Leaving unfixable coincident center of cluster %d in place", cluster.index)


def iterate_clusters(
    clusters: Clusters,
    *,
    max_iterations: int,
    convergence: float,
    random_on_multiple_nearest: bool = False,
    run_num: int = 0,
    callback: Optional[Callable[[int, float], None]] = None,
    profile: bool = False,
) -> KMeansRun:
    if max_iterations <= 0:
        raise ValueError("max_iterations must be >= 1")
    if convergence < 0:
        raise ValueError("convergence must be >= 0")

    t_total_start = perf_counter() if profile else 0.0
    t_assign_total = 0.0
    t_repair_total = 0.0
    t_update_total = 0.0

    iterations = np.zeros(int(max_iterations), dtype=np.float64)
    initial_sse = 0.0
    num_iterations = 0
    previous_sse = float("inf")
    sse = float("inf")

    for it in range(int(max_iterations)):
        t_assign_start = perf_counter() if profile else 0.0
        for cluster in clusters:
            cluster.clear_points()
        clusters.group_points_by_nearest_centroid(random_on_multiple_nearest)
        if profile:
            t_assign_total += perf_counter() - t_assign_start

        t_repair_start = perf_counter() if profile else 0.0
        _repair_coincident_centers(clusters)
        if profile:
            t_repair_total += perf_counter() - t_repair_start

        sse = clusters.get_sum_of_squared_errors()
        if it == 0:
            initial_sse = sse
        iterations[it] = sse
        logger.debug("Run %d iteration %d: SSE = %.6f", run_num + 1, it + 1, sse)

        if callback is not None:
            callback(int(it), float(sse))

        if sse > previous_sse + SSE_INCREASE_RTOL * previous_sse:
            raise SseIncreaseError(previous_sse, sse, it)

        if _converged(previous_sse, sse, convergence):
            break
        previous_sse = sse

        t_update_start = perf_counter() if profile else 0.0
        for cluster in clusters:
            if cluster.is_empty and cluster.previous_mean is None:
                continue
            cluster.centroid = cluster.get_mean(use_previous_if_empty=True)
        if profile:
            t_update_total += perf_counter() - t_update_start

        num_iterations += 1

    iterations.flags.writeable = False

    timing: Optional[dict[str, float]] = None
    if profile:
        timing = {
            "assign_s": t_assign_total,
            "repair_s": t_repair_total,
            "update_s": t_update_total,
            "total_s": perf_counter() - t_total_start,
        }

    return KMeansRun(
        run_num=int(run_num),
        iterations=iterations,
        initial_sse=float(initial_sse),
        final_sse=float(sse),
        num_iterations=int(num_iterations),
        clusters=clusters,
        timing=timing,
    )


def perform_run(
    dataset: Dataset,
    method: KMeansInitMethod,
    num_clusters: int,
    max_iterations: int,
    convergence: float,
    *,
    run_num: int = 0,
    random_on_multiple_nearest: bool = False,
    initial_index: Optional[int] = None,
    callback: Optional[Callable[[int, float], None]] = None,
    profile: bool = False,
) -> KMeansRun:
    _validate_inputs(dataset, num_clusters, max_iterations, convergence)
    method = KMeansInitMethod(method)

    t_init_start = perf_counter() if profile else 0.0
    clusters = dataset.get_clusters_for(method, num_clusters, initial_index=initial_index)
    t_init = (perf_counter() - t_init_start) if profile else 0.0

    run = iterate_clusters(
        clusters,
        max_iterations=max_iterations,
        convergence=convergence,
        random_on_multiple_nearest=random_on_multiple_nearest,
        run_num=run_num,
        callback=callback,
        profile=profile,
    )
    if run.timing is not None:
        run.timing["init_s"] = t_init
        run.timing["total_s"] += t_init

    logger.info(
        "Run %d (%s, k=%d) finished after %d iterations: SSE %.6f -> %.6f",
        run_num + 1,
        method.label,
        num_clusters,
        run.num_iterations,
        run.initial_sse,
        run.final_sse,
    )
    return run


def perform_runs(
    dataset: Dataset,
    method: KMeansInitMethod,
    num_clusters: int,
    max_iterations: int,
    convergence: float,
    num_runs: int,
    *,
    random_on_multiple_nearest: bool = False,
    initial_index: Optional[int] = None,
    callback: Optional[Callable[[int, int, float], None]] = None,
    profile: bool = False,
) -> KMeansRuns:
    _validate_inputs(dataset, num_clusters, max_iterations, convergence, num_runs)

    runs = []
    for run_num in range(int(num_runs)):
        run_callback = None
        if callback is not None:
            run_callback = lambda it, sse, _run=run_num: callback(_run, it, sse)
        runs.append(
            perform_run(
                dataset,
                method,
                num_clusters,
                max_iterations,
                convergence,
                run_num=run_num,
                random_on_multiple_nearest=random_on_multiple_nearest,
                initial_index=initial_index,
                callback=run_callback,
                profile=profile,
            )
        )
    return KMeansRuns(runs)


def perform(dataset: Dataset, config: "ClusteringConfig", *, profile: bool = False) -> KMeansRuns:
    return perform_runs(
        dataset,
        config.init_method,
        config.num_clusters,
        config.max_iterations,
        config.convergence_threshold,
        config.num_runs,
        random_on_multiple_nearest=config.random_on_multiple_nearest,
        initial_index=config.maximin_initial_index,
        profile=profile,
    )


class KMeans:
    def __init__(
        self,
        n_clusters: int = 8,
        *,
        max_iter: int = 300,
        tol: float = 1e-4,
        init: Union[str, KMeansInitMethod] = KMeansInitMethod.MAXIMIN,
        n_init: int = 1,
        random_on_multiple_nearest: bool = False,
        random_state: Optional[int] = None,
    ):
        self.n_clusters = int(n_clusters)
        self.max_iter = int(max_iter)
        self.tol = float(tol)
        self.init = KMeansInitMethod(init)
        self.n_init = int(n_init)
        self.random_on_multiple_nearest = bool(random_on_multiple_nearest)
        self.random_state = random_state

        self.runs_: Optional[KMeansRuns] = None
        self.clusters_: Optional[Clusters] = None
        self.cluster_centers_: Optional[np.ndarray] = None
        self.labels_: Optional[np.ndarray] = None
        self.inertia_: Optional[float] = None
        self.n_iter_: Optional[int] = None

    def fit(self, X: Union[Dataset, np.ndarray]) -> "KMeans":
        dataset = X if isinstance(X, Dataset) else Dataset(X, random_state=self.random_state)
        runs = perform_runs(
            dataset,
            self.init,
            self.n_clusters,
            self.max_iter,
            self.tol,
            self.n_init,
            random_on_multiple_nearest=self.random_on_multiple_nearest,
        )
        best = runs.best()
        clusters = best.clusters

        labels = np.full(dataset.point_count, -1, dtype=np.int32)
        for position, cluster in enumerate(clusters):
            labels[list(cluster.point_indices)] = position

        self.runs_ = runs
        self.clusters_ = clusters
        self.cluster_centers_ = np.vstack([cluster.centroid.axes for cluster in clusters])
        self.labels_ = labels
        self.inertia_ = best.final_sse
        self.n_iter_ = best.num_iterations
        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        if self.cluster_centers_ is None:
            raise ValueError("KMeans.predict called before fit")
        X = np.asarray(X, dtype=np.float64)
        diff = X[:, None, :] - self.cluster_centers_[None, :, :]
        dist2 = np.nansum(diff * diff, axis=2)
        return np.argmin(dist2, axis=1).astype(np.int32)
