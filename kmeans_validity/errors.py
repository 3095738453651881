from __future__ import annotations


class ClusteringError(Exception):
    pass


class DatasetLoadError(ClusteringError):
    """Raised when a dataset file or payload cannot be parsed."""


class ConfigurationError(ClusteringError, ValueError):
    pass


class AlreadyNormalizedError(ClusteringError):
    pass


# Internal invariants. These indicate a defect, not bad input.


class InvariantViolation(ClusteringError):
    pass


class OwnershipError(InvariantViolation):
    pass


class MissingCentroidError(InvariantViolation):
    pass


class SseIncreaseError(InvariantViolation):
    def __init__(self, previous_sse: float, current_sse: float, iteration: int):
        super().__init__(
            f"SSE should never increase (iteration {iteration}: {previous_sse!r} -> {current_sse!r})"
        )
        self.previous_sse = previous_sse
        self.current_sse = current_sse
        self.iteration = iteration


class PairCountError(InvariantViolation):
    pass


# Data-dependent degeneracies.


class DegenerateDataError(ClusteringError):
    pass


class UnfixableCoincidenceError(DegenerateDataError):
    def __init__(self, message: str = "coincident center cannot be fixed"):
        super().__init__(message)


class PointWithNoOwnerError(DegenerateDataError):
    def __init__(self, message: str = "farthest point has no owning cluster"):
        super().__init__(message)


class NoCentroidError(DegenerateDataError):
    def __init__(self, message: str = "no clusters have a centroid"):
        super().__init__(message)
