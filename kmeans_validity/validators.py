from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from itertools import combinations
from typing import Callable, Optional, Union

import numpy as np

from .clusters import Clusters
from .enums import DiameterMethod, LinkageMethod
from .errors import ConfigurationError, NoCentroidError

# Smallest positive double; seeds running maxima.
_MIN_POSITIVE = math.ulp(0.0)


def _divide(numerator: float, denominator: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(numerator) / np.float64(denominator))


class ValidatorKind(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"


def _require_cluster_count(*groups: Clusters) -> None:
    for group in groups:
        if group is None:
            raise TypeError("clusters cannot be None")
        if group.cluster_count < 2:
            if len(groups) > 1:
                raise ValueError("There must be at least two clusters in each set")
            raise ValueError("There must be at least two clusters")


@dataclass(frozen=True)
class InternalValidator:
    name: str
    abbreviation: str
    formula: Callable[[Clusters], float] = field(repr=False)
    kind: ValidatorKind = field(default=ValidatorKind.INTERNAL, init=False)

    def calculate_index(self, clusters: Clusters) -> float:
        _require_cluster_count(clusters)
        return self.formula(clusters)


@dataclass(frozen=True)
class ExternalValidator:
    name: str
    abbreviation: str
    formula: Callable[[Clusters, Clusters], float] = field(repr=False)
    kind: ValidatorKind = field(default=ValidatorKind.EXTERNAL, init=False)

    def calculate_index(self, truth: Clusters, generated: Clusters) -> float:
        _require_cluster_count(truth, generated)
        if not truth.dataset.are_true_clusters_known:
            raise ConfigurationError("external validators need a dataset with known true clusters")
        return self.formula(truth, generated)


ClusterValidator = Union[InternalValidator, ExternalValidator]


# Internal indices


def calinski_harabasz(clusters: Clusters) -> float:
    intra = clusters.get_sum_of_squared_errors()
    barycenter = clusters.get_barycenter()
    inter = 0.0
    for cluster in clusters:
        if cluster.centroid is None:
            raise NoCentroidError(f"cluster {cluster.index} has no centroid")
        inter += cluster.point_count * barycenter.squared_error(cluster.centroid)

    n = float(clusters.point_count)
    k = float(clusters.cluster_count)
    return _divide(inter, intra) * ((n - k) / (k - 1.0))


def davies_bouldin(clusters: Clusters) -> float:
    stats = [(c.get_dispersion(), c.get_compactness()) for c in clusters]
    total = 0.0
    for i, (outer_disp, outer_comp) in enumerate(stats):
        highest = _MIN_POSITIVE
        for j, (inner_disp, inner_comp) in enumerate(stats):
            if i == j:
                continue
            result = _divide(outer_disp + inner_disp, outer_comp - inner_comp)
            if result > highest:
                highest = result
        total += highest
    return total / clusters.cluster_count


def dunn_index(clusters: Clusters, linkage: LinkageMethod, diameter: DiameterMethod) -> float:
    lowest = math.inf
    for outer, inner in combinations(clusters, 2):
        dist = outer.get_distance(inner, linkage)
        if dist < lowest:
            lowest = dist

    highest = _MIN_POSITIVE
    for cluster in clusters:
        diam = cluster.get_diameter(diameter)
        if diam > highest:
            highest = diam
    return _divide(lowest, highest)


def silhouette_width(clusters: Clusters) -> float:
    total = 0.0
    counted = 0
    for cluster in clusters:
        for point in cluster:
            nearest = clusters.get_nearest_cluster_by_centroid(point, False, True)
            if nearest is None:
                raise NoCentroidError("no other cluster has a centroid")
            a = cluster.get_mean_distance(point)
            b = nearest.get_mean_distance(point)
            if math.isnan(a) or math.isnan(b):
                continue
            coefficient = _divide(b - a, max(a, b))
            if math.isnan(coefficient):
                continue
            total += coefficient
            counted += 1
    return _divide(total, counted)


# External indices


@dataclass(frozen=True)
class ClusterTruthTable:
    true_positives: int
    true_negatives: int
    false_positives: int
    false_negatives: int

    @classmethod
    def from_clusters(cls, truth: Clusters, generated: Clusters) -> "ClusterTruthTable":
        if truth is None or generated is None:
            raise TypeError("truth and generated cannot be None")

        truth_of = {}
        generated_of = {}
        tp = tn = fp = fn = 0
        for pair in truth.get_unordered_point_pairs():
            labels = []
            for point in pair:
                if point.index not in truth_of:
                    truth_of[point.index] = truth.expect_cluster(point).index
                    generated_of[point.index] = generated.expect_cluster(point).index
                labels.append((truth_of[point.index], generated_of[point.index]))
            (ta, ga), (tb, gb) = labels
            same_generated = ga == gb
            same_truth = ta == tb
            if same_generated and same_truth:
                tp += 1
            elif not same_generated and not same_truth:
                tn += 1
            elif same_generated:
                fp += 1
            else:
                fn += 1
        return cls(tp, tn, fp, fn)

    @property
    def pair_count(self) -> int:
        return self.true_positives + self.true_negatives + self.false_positives + self.false_negatives

    @property
    def tp(self) -> int:
        return self.true_positives

    @property
    def tn(self) -> int:
        return self.true_negatives

    @property
    def fp(self) -> int:
        return self.false_positives

    @property
    def fn(self) -> int:
        return self.false_negatives


def rand_statistic(truth: Clusters, generated: Clusters) -> float:
    table = ClusterTruthTable.from_clusters(truth, generated)
    return _divide(table.tp + table.tn, table.pair_count)


def jaccard_coefficient(truth: Clusters, generated: Clusters) -> float:
    table = ClusterTruthTable.from_clusters(truth, generated)
    return _divide(table.tp, table.tp + table.fn + table.fp)


def fowlkes_mallows(truth: Clusters, generated: Clusters) -> float:
    table = ClusterTruthTable.from_clusters(truth, generated)
    return _divide(table.tp, math.sqrt((table.tp + table.fn) * (table.tp + table.fp)))


# Formula registry


class ValidatorFormula(str, Enum):
    CALINSKI_HARABASZ = "calinski-harabasz"
    DAVIES_BOULDIN = "davies-bouldin"
    DUNN_INDEX = "dunn-index"
    FOWLKES_MALLOWS = "fowlkes-mallows"
    JACCARD_COEFFICIENT = "jaccard-coefficient"
    RAND_STATISTIC = "rand-statistic"
    SILHOUETTE_WIDTH = "silhouette-width"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            key = value.strip().lower().replace("_", "-").replace(" ", "-")
            for member in cls:
                if member.value == key:
                    return member
            return _FORMULA_ALIASES.get(key)
        return None


_FORMULA_ALIASES = {
    "ch": ValidatorFormula.CALINSKI_HARABASZ,
    "db": ValidatorFormula.DAVIES_BOULDIN,
    "dunn": ValidatorFormula.DUNN_INDEX,
    "di": ValidatorFormula.DUNN_INDEX,
    "d": ValidatorFormula.DUNN_INDEX,
    "fm": ValidatorFormula.FOWLKES_MALLOWS,
    "jaccard": ValidatorFormula.JACCARD_COEFFICIENT,
    "jc": ValidatorFormula.JACCARD_COEFFICIENT,
    "j": ValidatorFormula.JACCARD_COEFFICIENT,
    "rand": ValidatorFormula.RAND_STATISTIC,
    "rs": ValidatorFormula.RAND_STATISTIC,
    "r": ValidatorFormula.RAND_STATISTIC,
    "sw": ValidatorFormula.SILHOUETTE_WIDTH,
}


def make_validator(
    formula: Union[str, ValidatorFormula],
    *,
    linkage: Optional[LinkageMethod] = None,
    diameter: Optional[DiameterMethod] = DiameterMethod.COMPLETE,
) -> ClusterValidator:
    formula = ValidatorFormula(formula)
    if formula is ValidatorFormula.CALINSKI_HARABASZ:
        return InternalValidator("Calinski-Harabasz", "CH", calinski_harabasz)
    if formula is ValidatorFormula.DAVIES_BOULDIN:
        return InternalValidator("Davies-Bouldin", "DB", davies_bouldin)
    if formula is ValidatorFormula.SILHOUETTE_WIDTH:
        return InternalValidator("Silhouette Width", "SW", silhouette_width)
    if formula is ValidatorFormula.DUNN_INDEX:
        if linkage is None:
            raise ConfigurationError("Dunn Index requires a linkage method")
        if diameter is None:
            raise ConfigurationError("Dunn Index requires a diameter method")
        linkage = LinkageMethod(linkage)
        diameter = DiameterMethod(diameter)
        return InternalValidator(
            "Dunn Index",
            "DI",
            lambda clusters: dunn_index(clusters, linkage, diameter),
        )
    if formula is ValidatorFormula.RAND_STATISTIC:
        return ExternalValidator("Rand Statistic", "RS", rand_statistic)
    if formula is ValidatorFormula.JACCARD_COEFFICIENT:
        return ExternalValidator("Jaccard Coefficient", "JC", jaccard_coefficient)
    return ExternalValidator("Fowlkes-Mallows", "FM", fowlkes_mallows)


def calculate_index(validator: ClusterValidator, clusters: Clusters, truth: Optional[Clusters] = None) -> float:
    """Dispatch on the validator's shape; ground truth is materialized when missing."""
    if validator.kind is ValidatorKind.INTERNAL:
        return validator.calculate_index(clusters)
    if truth is None:
        if not clusters.dataset.are_true_clusters_known:
            raise ConfigurationError(
                "Cannot calculate the external cluster index without knowing the true number of clusters"
            )
        truth = clusters.dataset.get_true_clusters()
    return validator.calculate_index(truth, clusters)
