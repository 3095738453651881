from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .enums import NormalizationType


def _rescale(normalized: np.ndarray, low: float, high: float) -> np.ndarray:
    if low >= high:
        raise ValueError("low must be less than high")
    return (high - low) * normalized + low


def _as_values(values) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError("values must be one-dimensional")
    if arr.shape[0] == 0:
        raise ValueError("Cannot create normalizer with no elements")
    return arr


@dataclass(frozen=True)
class MinMaxNormalizer:
    min: float
    max: float

    @classmethod
    def fit(cls, values) -> "MinMaxNormalizer":
        arr = _as_values(values)
        return cls(min=float(np.min(arr)), max=float(np.max(arr)))

    def normalize(self, values):
        scale = self.max - self.min
        arr = np.asarray(values, dtype=np.float64)
        if scale == 0.0:
            # Zero-range axes carry no information.
            return np.full_like(arr, np.nan) if arr.ndim else float("nan")
        out = (arr - self.min) / scale
        return out if arr.ndim else float(out)

    def normalize_range(self, values, low: float, high: float):
        return _rescale(self.normalize(values), low, high)


@dataclass(frozen=True)
class ZScoreNormalizer:
    mean: float
    standard_deviation: float

    @classmethod
    def fit(cls, values) -> "ZScoreNormalizer":
        arr = _as_values(values)
        mean = float(np.mean(arr))
        if arr.shape[0] < 2:
            return cls(mean=mean, standard_deviation=float("nan"))
        return cls(mean=mean, standard_deviation=float(np.std(arr, ddof=1)))

    def normalize(self, values):
        arr = np.asarray(values, dtype=np.float64)
        with np.errstate(divide="ignore", invalid="ignore"):
            out = (arr - self.mean) / self.standard_deviation
        return out if arr.ndim else float(out)

    def normalize_range(self, values, low: float, high: float):
        return _rescale(self.normalize(values), low, high)


def fit_normalizer(kind: NormalizationType, values):
    kind = NormalizationType(kind)
    if kind is NormalizationType.MIN_MAX:
        return MinMaxNormalizer.fit(values)
    if kind is NormalizationType.Z_SCORE:
        return ZScoreNormalizer.fit(values)
    raise ValueError(f"No normalizer for {kind.label}")


def normalize_columns(X: np.ndarray, kind: NormalizationType) -> np.ndarray:
    """Normalize every column of ``X`` in place and return it."""
    kind = NormalizationType(kind)
    if kind is NormalizationType.NONE or X.shape[0] == 0:
        return X
    for axis in range(X.shape[1]):
        normalizer = fit_normalizer(kind, X[:, axis])
        X[:, axis] = normalizer.normalize(X[:, axis])
    return X
