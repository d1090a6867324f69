"""Cross-validation of pooled results against an independent recomputation."""

from metaengine.validation.backends import (
    ExternalValidator,
    StatsmodelsValidator,
    SubprocessValidator,
    recompute_with_statsmodels,
)
from metaengine.validation.cross_check import build_validator, compare_estimates, cross_validate

__all__ = [
    "ExternalValidator",
    "StatsmodelsValidator",
    "SubprocessValidator",
    "build_validator",
    "compare_estimates",
    "cross_validate",
    "recompute_with_statsmodels",
]
