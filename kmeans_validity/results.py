from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

from .clusters import Clusters
from .dataset import Dataset
from .enums import KMeansInitMethod, NormalizationType
from .errors import ConfigurationError
from .kmeans import KMeansRun, KMeansRuns
from .validators import ClusterValidator, ValidatorKind, calculate_index


def format_sse(value: float) -> str:
    return f"{value:.4f}"


def _json_float(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


@dataclass(frozen=True)
class RunSummary:
    run_num: int
    sse_trace: list[float]
    initial_sse: float
    final_sse: float
    num_iterations: int
    cluster_count: int
    index: float


class ClusteringResults:
    def __init__(
        self,
        dataset: Dataset,
        runs: KMeansRuns,
        validator: ClusterValidator,
        *,
        normalization: NormalizationType = NormalizationType.NONE,
        init_method: KMeansInitMethod = KMeansInitMethod.RANDOM_SELECTION,
    ):
        if validator.kind is ValidatorKind.EXTERNAL and not dataset.are_true_clusters_known:
            raise ConfigurationError(
                "Cannot calculate the external cluster index without knowing the true number of clusters"
            )
        self.dataset = dataset
        self.runs = runs
        self.validator = validator
        self.normalization = NormalizationType(normalization)
        self.init_method = KMeansInitMethod(init_method)
        self._truth: Optional[Clusters] = None
        self._summaries: Optional[list[RunSummary]] = None

    def _truth_clusters(self) -> Optional[Clusters]:
        if self.validator.kind is ValidatorKind.INTERNAL:
            return None
        if self._truth is None:
            self._truth = self.dataset.get_true_clusters()
        return self._truth

    def _summarize(self, run: KMeansRun) -> RunSummary:
        index = calculate_index(self.validator, run.clusters, self._truth_clusters())
        return RunSummary(
            run_num=run.run_num,
            sse_trace=[float(v) for v in run.sse_trace],
            initial_sse=run.initial_sse,
            final_sse=run.final_sse,
            num_iterations=run.num_iterations,
            cluster_count=run.clusters.cluster_count,
            index=index,
        )

    @property
    def summaries(self) -> list[RunSummary]:
        if self._summaries is None:
            self._summaries = [self._summarize(run) for run in self.runs]
        return self._summaries

    def format_text(self) -> str:
        lines: list[str] = []
        for summary in self.summaries:
            lines.append(f"Run {summary.run_num + 1}")
            lines.append("-----")
            for i, sse in enumerate(summary.sse_trace):
                lines.append(f"Iteration {i + 1}: SSE = {format_sse(sse)}")
            lines.append(
                f"{self.validator.abbreviation} ({summary.cluster_count}) = {format_sse(summary.index)}"
            )
            lines.append("")
        lines.extend(
            [
                "Additional Notes",
                "-----",
                f"Normalized with:  {self.normalization.label}",
                f"Initialized with: {self.init_method.label}",
                f"Using validator:  {self.validator.name}",
                "-----",
            ]
        )
        return "\n".join(lines) + "\n"

    def as_dict(self) -> dict[str, Any]:
        return {
            "normalization": self.normalization.value,
            "init_method": self.init_method.value,
            "validator": {
                "name": self.validator.name,
                "abbreviation": self.validator.abbreviation,
                "kind": self.validator.kind.value,
            },
            "runs": [
                {
                    "run": s.run_num + 1,
                    "sse_trace": [_json_float(v) for v in s.sse_trace],
                    "initial_sse": _json_float(s.initial_sse),
                    "final_sse": _json_float(s.final_sse),
                    "num_iterations": s.num_iterations,
                    "cluster_count": s.cluster_count,
                    "index": _json_float(s.index),
                }
                for s in self.summaries
            ],
        }
