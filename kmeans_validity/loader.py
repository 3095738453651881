from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

import numpy as np

from .dataset import Dataset
from .errors import DatasetLoadError

logger = logging.getLogger(__name__)


def _read_fields(lines: Iterator[tuple[int, str]], count: int, what: str) -> tuple[int, list[str]]:
    for lineno, line in lines:
        fields = line.split()
        if not fields:
            continue
        if len(fields) != count:
            raise DatasetLoadError(f"line {lineno}: expected {count} {what}, got {len(fields)} instead")
        return lineno, fields
    raise EOFError


def parse_dataset(
    lines: Iterable[str],
    has_true_clusters: bool = False,
    *,
    random_state: Optional[int] = None,
) -> Dataset:
    """Parse the whitespace separated point format.

    The header holds ``N D`` (or ``N D K`` with ground truth, where ``D``
    includes the trailing label column), followed by one line per point.
    """
    numbered = iter(enumerate(lines, start=1))

    header_columns = 3 if has_true_clusters else 2
    try:
        lineno, header = _read_fields(numbered, header_columns, "integers")
        specs = [int(field) for field in header]
    except EOFError:
        raise DatasetLoadError("Missing data point specifications") from None
    except ValueError:
        raise DatasetLoadError("Invalid data point specifications") from None

    point_count, dimensions = specs[0], specs[1]
    true_cluster_count = -1
    if has_true_clusters:
        dimensions -= 1
        true_cluster_count = specs[2]

    if point_count < 0:
        raise DatasetLoadError("point count cannot be negative")
    if dimensions <= 0:
        raise DatasetLoadError("dimensions must be positive")
    if has_true_clusters and true_cluster_count < 0:
        raise DatasetLoadError("true cluster count cannot be negative")

    columns = dimensions + (1 if has_true_clusters else 0)
    X = np.empty((point_count, dimensions), dtype=np.float64)
    labels = np.full(point_count, -1, dtype=np.int64)

    loaded = 0
    try:
        for i in range(point_count):
            lineno, fields = _read_fields(numbered, columns, "values")
            try:
                values = [float(field) for field in fields]
            except ValueError:
                raise DatasetLoadError(f"line {lineno}: invalid data point") from None
            if has_true_clusters:
                label = values[-1]
                if not label.is_integer():
                    raise DatasetLoadError(f"line {lineno}: invalid true cluster index {fields[-1]!r}")
                if not 0 <= label < true_cluster_count:
                    raise DatasetLoadError(
                        f"line {lineno}: true cluster index {int(label)} outside [0, {true_cluster_count})"
                    )
                labels[i] = int(label)
            X[i] = values[:dimensions]
            loaded += 1
    except EOFError:
        raise DatasetLoadError(f"Expected {point_count} points, got {loaded} instead") from None

    return Dataset(
        X,
        true_clusters=labels if has_true_clusters else None,
        true_cluster_count=true_cluster_count,
        random_state=random_state,
    )


def load_dataset(
    path: Union[str, Path],
    has_true_clusters: bool = False,
    *,
    random_state: Optional[int] = None,
) -> Dataset:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fh:
            dataset = parse_dataset(fh, has_true_clusters, random_state=random_state)
    except OSError as e:
        raise DatasetLoadError(f"cannot read {path}: {e}") from e

    logger.info(
        "Loaded %d points with %d dimensions from %s", dataset.point_count, dataset.dimensions, path
    )
    return dataset
