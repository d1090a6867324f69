"""Deterministic effect-size calculations applied before pooling."""

from __future__ import annotations

import math

from metaengine.errors import NumericDomainError
from metaengine.synthesis.distributions import Z_CRITICAL


def cohen_d(mean1: float, mean2: float, sd1: float, sd2: float, n1: int, n2: int) -> float:
    """Standardized mean difference using the pooled standard deviation."""
    if n1 + n2 <= 2:
        raise NumericDomainError(f"Cohen's d needs n1 + n2 > 2 (got {n1 + n2})")
    pooled_sd = math.sqrt(((n1 - 1) * sd1**2 + (n2 - 1) * sd2**2) / (n1 + n2 - 2))
    if pooled_sd == 0.0:
        raise NumericDomainError("Cohen's d is undefined when both standard deviations are zero")
    return (mean1 - mean2) / pooled_sd


def hedges_g(d: float, n1: int, n2: int) -> float:
    """Small-sample bias correction of Cohen's d."""
    df = n1 + n2 - 2
    if df <= 0.25:
        raise NumericDomainError(f"Hedges' g correction is undefined for df={df}")
    correction = 1.0 - 3.0 / (4.0 * df - 1.0)
    return d * correction


def fisher_z(r: float) -> float:
    if not -1.0 < r < 1.0:
        raise NumericDomainError(f"Fisher's z requires |r| < 1 (got {r})")
    return 0.5 * math.log((1.0 + r) / (1.0 - r))


def inverse_fisher_z(z: float) -> float:
    # tanh(z) == (e^2z - 1) / (e^2z + 1) without overflow for large |z|
    return math.tanh(z)


def effect_variance(n1: int, n2: int, d: float) -> float:
    """Large-sample variance of a standardized mean difference."""
    if n1 <= 0 or n2 <= 0:
        raise NumericDomainError(f"group sizes must be positive (got n1={n1}, n2={n2})")
    return (n1 + n2) / (n1 * n2) + d**2 / (2.0 * (n1 + n2))


def correlation_variance(n: int) -> float:
    """Variance of Fisher's z for a correlation from n observations."""
    if n <= 3:
        raise NumericDomainError(f"correlation variance needs n > 3 (got {n})")
    return 1.0 / (n - 3)


def study_confidence_interval(effect_size: float, variance: float) -> tuple[float, float]:
    if variance < 0.0:
        raise NumericDomainError(f"variance must be non-negative (got {variance})")
    half_width = Z_CRITICAL * math.sqrt(variance)
    return effect_size - half_width, effect_size + half_width
