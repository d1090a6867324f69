"""Typed outputs of the pooling engine and the analyses built on it."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from metaengine.models.enums import HeterogeneityLevel, PoolingModel
from metaengine.models.studies import Study


class InsufficientDataWarning(BaseModel):
    """Non-fatal flag: an analysis ran on, or skipped, too few studies."""

    analysis: str
    required: int
    available: int
    message: str


class Heterogeneity(BaseModel):
    model_config = ConfigDict(frozen=True)

    q: float
    df: int
    p_value: float
    i_squared: float = Field(ge=0.0, le=100.0)
    tau_squared: float = Field(ge=0.0)
    interpretation: HeterogeneityLevel


class PooledResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    model: PoolingModel
    pooled_effect: float
    standard_error: float
    z_value: float
    p_value: float
    confidence_interval: Tuple[float, float]
    heterogeneity: Heterogeneity
    weights: List[float]
    studies: List[Study]

    @property
    def n_studies(self) -> int:
        return len(self.studies)

    @property
    def ci_lower(self) -> float:
        return self.confidence_interval[0]

    @property
    def ci_upper(self) -> float:
        return self.confidence_interval[1]


class EggerTest(BaseModel):
    intercept: float
    slope: float
    p_value: float
    significant: bool


class BeggTest(BaseModel):
    tau: float
    p_value: float
    significant: bool


class PublicationBiasResult(BaseModel):
    n_studies: int
    egger: EggerTest
    begg: BeggTest
    funnel_asymmetric: bool
    warnings: List[InsufficientDataWarning] = Field(default_factory=list)


class SubgroupEstimate(BaseModel):
    name: str
    study_count: int
    pooled_effect: float
    confidence_interval: Tuple[float, float]
    p_value: float
    heterogeneity: Heterogeneity


class BetweenGroupsTest(BaseModel):
    q: float
    df: int
    p_value: float


class SubgroupResult(BaseModel):
    group_key: str
    subgroups: List[SubgroupEstimate]
    between_groups: BetweenGroupsTest
    omitted: List[str] = Field(default_factory=list)
    warnings: List[InsufficientDataWarning] = Field(default_factory=list)


class SensitivityEntry(BaseModel):
    """Pooled estimate after dropping one study (leave-one-out)."""

    excluded_index: int = Field(ge=1)
    excluded_study_id: str
    pooled_effect: float
    confidence_interval: Tuple[float, float]
    p_value: float
    n_studies: int


class StudyEstimate(BaseModel):
    """Per-study row of a forest plot."""

    study: Study
    weight: float
    weight_percent: float
    confidence_interval: Tuple[float, float]


class RecomputedEstimate(BaseModel):
    """Pooled statistics recomputed by an external validator."""

    backend: str
    model: PoolingModel
    pooled_effect: float
    standard_error: float
    q: float
    tau_squared: float
    exact_heterogeneity_p_value: float


class CrossValidationReport(BaseModel):
    backend: str
    agrees: bool
    tolerance: float
    differences: Dict[str, float]
    recomputed: RecomputedEstimate
    attempts: int = 1


class AnalysisFeasibility(BaseModel):
    n_studies: int
    poolable: bool
    publication_bias: bool
    sensitivity: bool
    subgroup: bool
    warnings: List[InsufficientDataWarning] = Field(default_factory=list)


class MetaAnalysisReport(BaseModel):
    """Everything one analysis run produces, ready for serialization."""

    pooled: PooledResult
    study_estimates: List[StudyEstimate]
    publication_bias: Optional[PublicationBiasResult] = None
    sensitivity: Optional[List[SensitivityEntry]] = None
    subgroup: Optional[SubgroupResult] = None
    validation: Optional[CrossValidationReport] = None
    warnings: List[InsufficientDataWarning] = Field(default_factory=list)

    def to_summary_text(self) -> str:
        pooled = self.pooled
        het = pooled.heterogeneity
        lower, upper = pooled.confidence_interval
        lines = [
            f"Meta-analysis ({pooled.model.value} effects), N={pooled.n_studies} studies",
            f"Pooled effect={pooled.pooled_effect:.3f} 95% CI [{lower:.3f}, {upper:.3f}], "
            f"z={pooled.z_value:.3f}, p={pooled.p_value:.4f}",
            f"Heterogeneity: Q={het.q:.3f} (df={het.df}, p={het.p_value:.4f}), "
            f"I2={het.i_squared:.1f}% ({het.interpretation.value}), tau2={het.tau_squared:.4f}",
        ]
        if self.publication_bias is not None:
            bias = self.publication_bias
            lines.append(
                f"Publication bias: Egger intercept={bias.egger.intercept:.3f} (p={bias.egger.p_value}), "
                f"Begg tau={bias.begg.tau:.3f} (p={bias.begg.p_value}), "
                f"funnel asymmetric={'yes' if bias.funnel_asymmetric else 'no'}"
            )
        if self.sensitivity:
            lines.append("Leave-one-out results (effect [95% CI] after excluding each study):")
            for entry in self.sensitivity:
                lo, hi = entry.confidence_interval
                lines.append(
                    f"  - Excluding study {entry.excluded_index} ({entry.excluded_study_id}): "
                    f"{entry.pooled_effect:.3f} [{lo:.3f}, {hi:.3f}]"
                )
        if self.subgroup is not None:
            lines.append(f"Subgroup analysis by {self.subgroup.group_key}:")
            for sg in self.subgroup.subgroups:
                lo, hi = sg.confidence_interval
                lines.append(
                    f"  - {sg.name} (N={sg.study_count}): {sg.pooled_effect:.3f} [{lo:.3f}, {hi:.3f}]"
                )
            between = self.subgroup.between_groups
            lines.append(
                f"  Between groups: Q={between.q:.3f} (df={between.df}, p={between.p_value:.4f})"
            )
        if self.validation is not None:
            lines.append(
                f"Cross-validation ({self.validation.backend}): "
                f"{'agrees' if self.validation.agrees else 'DISAGREES'}"
            )
        for warning in self.warnings:
            lines.append(f"Note: {warning.message}")
        return "\n".join(lines)
