from .clusters import Cluster, Clusters
from .config import ClusteringConfig
from .dataset import Dataset, IndexSampler
from .enums import DiameterMethod, KMeansInitMethod, LinkageMethod, NormalizationType
from .errors import (
    AlreadyNormalizedError,
    ClusteringError,
    ConfigurationError,
    DatasetLoadError,
    DegenerateDataError,
    InvariantViolation,
    MissingCentroidError,
    NoCentroidError,
    OwnershipError,
    PairCountError,
    PointWithNoOwnerError,
    SseIncreaseError,
    UnfixableCoincidenceError,
)
from .kmeans import KMeans, KMeansRun, KMeansRuns, iterate_clusters, perform, perform_run, perform_runs
from .loader import load_dataset, parse_dataset
from .points import DataPoint, UnorderedPair
from .results import ClusteringResults
from .validators import (
    ClusterTruthTable,
    ExternalValidator,
    InternalValidator,
    ValidatorFormula,
    ValidatorKind,
    calculate_index,
    make_validator,
)

__version__ = "0.1.0"
