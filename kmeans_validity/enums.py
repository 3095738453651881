from __future__ import annotations

from enum import Enum


class _NamedEnum(str, Enum):
    """String enum that also resolves display names and ``_`` spellings."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            key = value.strip().lower().replace("_", "-").replace(" ", "-")
            for member in cls:
                if key in (member.value, member.label.lower().replace(" ", "-")):
                    return member
        return None

    @property
    def label(self) -> str:
        return self.value.replace("-", " ").title()

    def __str__(self) -> str:
        return self.label


class NormalizationType(_NamedEnum):
    NONE = "none"
    MIN_MAX = "min-max"
    Z_SCORE = "z-score"

    @property
    def label(self) -> str:
        return {"none": "None", "min-max": "Min-Max", "z-score": "Z-Score"}[self.value]


class KMeansInitMethod(_NamedEnum):
    RANDOM_SELECTION = "random-selection"
    RANDOM_PARTITION = "random-partition"
    MAXIMIN = "maximin"


class LinkageMethod(_NamedEnum):
    SINGLE = "single"
    COMPLETE = "complete"
    AVERAGE = "average"
    CENTROID = "centroid"
    AVERAGE_CENTROIDS = "average-centroids"


class DiameterMethod(_NamedEnum):
    COMPLETE = "complete"
    AVERAGE = "average"
    CENTROID = "centroid"
