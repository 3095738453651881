from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .enums import DiameterMethod, KMeansInitMethod, LinkageMethod, NormalizationType
from .errors import ConfigurationError
from .validators import ClusterValidator, ValidatorFormula, make_validator

_ENUM_FIELDS = {
    "init_method": KMeansInitMethod,
    "normalization": NormalizationType,
    "validator": ValidatorFormula,
    "linkage": LinkageMethod,
    "diameter": DiameterMethod,
}


class ClusteringConfig(BaseModel):
    """
    Plain configuration for a batch of K-means runs and the index used to score them.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    num_clusters: int = Field(ge=2)
    max_iterations: int = Field(default=100, gt=0)
    convergence_threshold: float = Field(default=0.001, ge=0.0)
    num_runs: int = Field(default=1, gt=0)
    init_method: KMeansInitMethod = KMeansInitMethod.RANDOM_SELECTION
    normalization: NormalizationType = NormalizationType.NONE
    validator: ValidatorFormula = ValidatorFormula.CALINSKI_HARABASZ
    linkage: Optional[LinkageMethod] = None
    diameter: DiameterMethod = DiameterMethod.COMPLETE
    random_on_multiple_nearest: bool = False
    random_state: Optional[int] = None
    maximin_initial_index: Optional[int] = Field(default=None, ge=0)

    @field_validator(*_ENUM_FIELDS, mode="before")
    @classmethod
    def _resolve_names(cls, value: Any, info) -> Any:
        if value is None or not isinstance(value, str):
            return value
        enum_cls = _ENUM_FIELDS[info.field_name]
        try:
            return enum_cls(value)
        except ValueError:
            choices = ", ".join(member.value for member in enum_cls)
            raise ValueError(f"{value!r} is not one of: {choices}") from None

    @model_validator(mode="after")
    def _check_validator_parameters(self) -> "ClusteringConfig":
        if self.validator is ValidatorFormula.DUNN_INDEX and self.linkage is None:
            raise ConfigurationError("Dunn Index requires a linkage method")
        return self

    def make_validator(self) -> ClusterValidator:
        return make_validator(self.validator, linkage=self.linkage, diameter=self.diameter)
