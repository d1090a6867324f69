"""Inverse-variance pooling: fixed-effect and DerSimonian-Laird random-effects.

This is the single pooling engine; publication bias, subgroup and
sensitivity analyses all call back into :func:`pool_studies`.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from metaengine.errors import InvalidInputError
from metaengine.models import (
    Heterogeneity,
    HeterogeneityLevel,
    PooledResult,
    PoolingModel,
    Study,
)
from metaengine.synthesis.distributions import Z_CRITICAL, chi_square_sf, two_tailed_p_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Estimate:
    pooled_effect: float
    standard_error: float
    z_value: float
    p_value: float
    confidence_interval: tuple[float, float]


def coerce_model(model: PoolingModel | str) -> PoolingModel:
    try:
        return PoolingModel(model)
    except ValueError as exc:
        raise InvalidInputError(
            f"unknown pooling model {model!r}; expected 'fixed' or 'random'"
        ) from exc


def validate_inputs(
    effect_sizes: Sequence[float],
    variances: Sequence[float],
    minimum_studies: int = 2,
) -> tuple[np.ndarray, np.ndarray]:
    """Return float arrays for a pooling call or raise InvalidInputError."""
    if len(effect_sizes) != len(variances):
        raise InvalidInputError(
            f"effect_sizes and variances must be the same length "
            f"({len(effect_sizes)} != {len(variances)})"
        )
    if len(effect_sizes) < minimum_studies:
        raise InvalidInputError(
            f"at least {minimum_studies} studies are required for pooling (got {len(effect_sizes)})"
        )
    try:
        effects = np.asarray(effect_sizes, dtype=float)
        variance_array = np.asarray(variances, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"effect sizes and variances must be numeric: {exc}") from exc
    if not np.all(np.isfinite(effects)):
        raise InvalidInputError("effect sizes must be finite numbers")
    if not np.all(np.isfinite(variance_array)) or np.any(variance_array <= 0.0):
        bad = [i + 1 for i, v in enumerate(variance_array) if not (math.isfinite(v) and v > 0.0)]
        raise InvalidInputError(f"variances must be finite and > 0 (studies {bad})")
    return effects, variance_array


def _estimate(effects: np.ndarray, weights: np.ndarray) -> _Estimate:
    total_weight = float(np.sum(weights))
    pooled_effect = float(np.sum(effects * weights) / total_weight)
    standard_error = math.sqrt(1.0 / total_weight)
    z_value = pooled_effect / standard_error
    return _Estimate(
        pooled_effect=pooled_effect,
        standard_error=standard_error,
        z_value=z_value,
        p_value=two_tailed_p_value(z_value),
        confidence_interval=(
            pooled_effect - Z_CRITICAL * standard_error,
            pooled_effect + Z_CRITICAL * standard_error,
        ),
    )


def cochrans_q(effects: np.ndarray, weights: np.ndarray, pooled_effect: float) -> float:
    if len(effects) < 2:
        return 0.0
    return float(np.sum(weights * (effects - pooled_effect) ** 2))


def i_squared_percent(q: float, df: int) -> float:
    if df <= 0 or q <= 0.0:
        return 0.0
    return max(0.0, (q - df) / q) * 100.0


def interpret_i_squared(i_squared: float) -> HeterogeneityLevel:
    if i_squared < 25.0:
        return HeterogeneityLevel.LOW
    if i_squared < 50.0:
        return HeterogeneityLevel.MODERATE
    if i_squared < 75.0:
        return HeterogeneityLevel.SUBSTANTIAL
    return HeterogeneityLevel.CONSIDERABLE


def dersimonian_laird_tau2(q: float, df: int, weights: np.ndarray) -> float:
    """Method-of-moments between-study variance, clamped at zero."""
    if df <= 0:
        return 0.0
    total_weight = float(np.sum(weights))
    c = total_weight - float(np.sum(weights**2)) / total_weight
    if c <= 0.0:
        return 0.0
    return max(0.0, (q - df) / c)


def _pool_arrays(
    effects: np.ndarray,
    variances: np.ndarray,
    studies: list[Study],
    model: PoolingModel,
) -> PooledResult:
    fixed_weights = 1.0 / variances
    fixed = _estimate(effects, fixed_weights)

    q = cochrans_q(effects, fixed_weights, fixed.pooled_effect)
    df = len(effects) - 1
    i_squared = i_squared_percent(q, df)
    q_p_value = chi_square_sf(q, df)

    if model is PoolingModel.RANDOM:
        tau_squared = dersimonian_laird_tau2(q, df, fixed_weights)
        weights = 1.0 / (variances + tau_squared)
        estimate = _estimate(effects, weights)
    else:
        tau_squared = 0.0
        weights = fixed_weights
        estimate = fixed

    logger.debug(
        "pooled %d studies (%s): effect=%.4f se=%.4f Q=%.3f I2=%.1f tau2=%.4f",
        len(effects),
        model.value,
        estimate.pooled_effect,
        estimate.standard_error,
        q,
        i_squared,
        tau_squared,
    )

    return PooledResult(
        model=model,
        pooled_effect=estimate.pooled_effect,
        standard_error=estimate.standard_error,
        z_value=estimate.z_value,
        p_value=estimate.p_value,
        confidence_interval=estimate.confidence_interval,
        heterogeneity=Heterogeneity(
            q=q,
            df=df,
            p_value=q_p_value,
            i_squared=i_squared,
            tau_squared=tau_squared,
            interpretation=interpret_i_squared(i_squared),
        ),
        weights=[float(w) for w in weights],
        studies=studies,
    )


def pool(
    effect_sizes: Sequence[float],
    variances: Sequence[float],
    model: PoolingModel | str = PoolingModel.RANDOM,
) -> PooledResult:
    """Pool effect sizes with inverse-variance weights.

    Args:
        effect_sizes: Per-study effect estimates.
        variances: Per-study sampling variances, all > 0.
        model: ``"fixed"`` or ``"random"`` (DerSimonian-Laird).

    Returns:
        A fresh :class:`PooledResult`; studies are labelled ``study_1``..``study_n``.

    Raises:
        InvalidInputError: mismatched lengths, fewer than two studies,
            non-finite effects, non-positive variances or an unknown model.
    """
    pooling_model = coerce_model(model)
    effects, variance_array = validate_inputs(effect_sizes, variances)
    studies = [
        Study(id=f"study_{i + 1}", name=f"Study {i + 1}", effect_size=float(es), variance=float(v))
        for i, (es, v) in enumerate(zip(effects, variance_array))
    ]
    return _pool_arrays(effects, variance_array, studies, pooling_model)


def pool_studies(
    studies: Sequence[Study],
    model: PoolingModel | str = PoolingModel.RANDOM,
) -> PooledResult:
    """Same as :func:`pool` but keeps the callers' study ids and names."""
    pooling_model = coerce_model(model)
    effects, variance_array = validate_inputs(
        [s.effect_size for s in studies],
        [s.variance for s in studies],
    )
    return _pool_arrays(effects, variance_array, list(studies), pooling_model)
