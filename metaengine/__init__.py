"""
metaengine: meta-analysis statistical engine.

Pools per-study effect sizes (fixed-effect or DerSimonian-Laird random
effects), quantifies heterogeneity (Q, I², tau²), screens for publication
bias (Egger, Begg, funnel asymmetry) and runs subgroup and leave-one-out
sensitivity analyses. Every statistical function is pure: inputs in, a fresh
pydantic result out.

Example
-------
>>> from metaengine import pool
>>> result = pool([0.5, 0.3, 0.7], [0.04, 0.05, 0.03], model="fixed")
>>> round(result.pooled_effect, 3)
0.534
"""

from metaengine.errors import (
    ExternalValidationError,
    InvalidInputError,
    MetaAnalysisError,
    NumericDomainError,
)
from metaengine.models import (
    InsufficientDataWarning,
    MetaAnalysisReport,
    PooledResult,
    PoolingModel,
    PublicationBiasResult,
    SensitivityEntry,
    Study,
    SubgroupResult,
)
from metaengine.synthesis import (
    chi_square_cdf,
    cohen_d,
    effect_variance,
    erf,
    fisher_z,
    hedges_g,
    inverse_fisher_z,
    normal_cdf,
    pool,
    pool_studies,
    publication_bias_test,
    run_meta_analysis,
    sensitivity_analysis,
    subgroup_analysis,
)

__version__ = "0.1.0"

__all__ = [
    "ExternalValidationError",
    "InsufficientDataWarning",
    "InvalidInputError",
    "MetaAnalysisError",
    "MetaAnalysisReport",
    "NumericDomainError",
    "PooledResult",
    "PoolingModel",
    "PublicationBiasResult",
    "SensitivityEntry",
    "Study",
    "SubgroupResult",
    "chi_square_cdf",
    "cohen_d",
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
    "subgroup_analysis",
]
