import pytest
from pydantic import ValidationError

from kmeans_validity import (
    ClusteringConfig,
    DiameterMethod,
    KMeansInitMethod,
    LinkageMethod,
    NormalizationType,
    ValidatorFormula,
)


def test_defaults():
    config = ClusteringConfig(num_clusters=3)
    assert config.max_iterations == 100
    assert config.convergence_threshold == 0.001
    assert config.num_runs == 1
    assert config.init_method is KMeansInitMethod.RANDOM_SELECTION
    assert config.normalization is NormalizationType.NONE
    assert config.validator is ValidatorFormula.CALINSKI_HARABASZ
    assert config.diameter is DiameterMethod.COMPLETE
    assert config.linkage is None


def test_names_are_resolved():
    config = ClusteringConfig(
        num_clusters=2,
        init_method="Maximin",
        normalization="Z-Score",
        validator="DI",
        linkage="average_centroids",
        diameter="centroid",
    )
    assert config.init_method is KMeansInitMethod.MAXIMIN
    assert config.normalization is NormalizationType.Z_SCORE
    assert config.validator is ValidatorFormula.DUNN_INDEX
    assert config.linkage is LinkageMethod.AVERAGE_CENTROIDS
    assert config.make_validator().abbreviation == "DI"


@pytest.mark.parametrize(
    "overrides",
    [
        {"num_clusters": 1},
        {"max_iterations": 0},
        {"convergence_threshold": -0.1},
        {"num_runs": 0},
        {"init_method": "kmeans++"},
        {"validator": "entropy"},
        {"maximin_initial_index": -1},
        {"unknown": True},
    ],
)
def test_invalid_values(overrides):
    values = {"num_clusters": 2, **overrides}
    with pytest.raises(ValidationError):
        ClusteringConfig(**values)


def test_dunn_without_linkage_rejected():
    with pytest.raises(ValidationError, match="linkage"):
        ClusteringConfig(num_clusters=2, validator="dunn-index")


def test_validated_on_assignment():
    config = ClusteringConfig(num_clusters=2)
    with pytest.raises(ValidationError):
        config.num_runs = 0
