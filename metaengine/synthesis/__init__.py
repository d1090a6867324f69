"""Synthesis and meta-analysis package."""

from metaengine.synthesis.distributions import chi_square_cdf, erf, normal_cdf
from metaengine.synthesis.effect_size import (
    cohen_d,
    correlation_variance,
    effect_variance,
    fisher_z,
    hedges_g,
    inverse_fisher_z,
    study_confidence_interval,
)
from metaengine.synthesis.feasibility import assess_analysis_feasibility
from metaengine.synthesis.meta_analysis import pool, pool_studies
from metaengine.synthesis.pipeline import run_meta_analysis
from metaengine.synthesis.publication_bias import publication_bias_test
from metaengine.synthesis.sensitivity import sensitivity_analysis, sensitivity_analysis_studies
from metaengine.synthesis.subgroup import subgroup_analysis

__all__ = [
    "assess_analysis_feasibility",
    "chi_square_cdf",
    "cohen_d",
    "correlation_variance",
    "effect_variance",
    "erf",
    "fisher_z",
    "hedges_g",
    "inverse_fisher_z",
    "normal_cdf",
    "pool",
    "pool_studies",
    "publication_bias_test",
    "run_meta_analysis",
    "sensitivity_analysis",
    "sensitivity_analysis_studies",
    "study_confidence_interval",
    "subgroup_analysis",
]
