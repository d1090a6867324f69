"""Publication bias screening: Egger regression, Begg rank correlation, funnel asymmetry.

The Egger and Begg p-values here are threshold placeholders, not real
significance tests:

* Egger: ``p = 0.05`` when ``|intercept| > 1``, otherwise ``0.5`` (no t-test
  on the intercept's standard error).
* Begg: ``p = 0.05`` when ``|tau| > 0.3``, otherwise ``0.5`` (no normal
  approximation of Kendall's tau variance).

``significant`` is ``p_value < significance_level`` (strict). With the
default level of 0.05 the placeholder p-values never flag significance;
read ``intercept`` and ``tau`` directly instead.

Callers are expected to run these tests only with at least 10 studies; with
fewer the result is flagged with an InsufficientDataWarning.
"""

from __future__ import annotations

import logging
import statistics
from collections.abc import Sequence

import numpy as np

from metaengine.errors import InvalidInputError
from metaengine.models import BeggTest, EggerTest, InsufficientDataWarning, PublicationBiasResult

_log = logging.getLogger(__name__)

MINIMUM_STUDIES = 10
FUNNEL_MINIMUM_STUDIES = 10
FUNNEL_ASYMMETRY_THRESHOLD = 0.3
_EGGER_INTERCEPT_THRESHOLD = 1.0
_BEGG_TAU_THRESHOLD = 0.3
_PLACEHOLDER_SIGNIFICANT_P = 0.05
_PLACEHOLDER_NONSIGNIFICANT_P = 0.5


def _validate(effect_sizes: Sequence[float], standard_errors: Sequence[float]) -> tuple[np.ndarray, np.ndarray]:
    if len(effect_sizes) != len(standard_errors):
        raise InvalidInputError(
            f"effect_sizes and standard_errors must be the same length "
            f"({len(effect_sizes)} != {len(standard_errors)})"
        )
    if len(effect_sizes) < 3:
        raise InvalidInputError(
            f"at least 3 studies are required for publication bias tests (got {len(effect_sizes)})"
        )
    effects = np.asarray(effect_sizes, dtype=float)
    ses = np.asarray(standard_errors, dtype=float)
    if not np.all(np.isfinite(effects)):
        raise InvalidInputError("effect sizes must be finite numbers")
    if not np.all(np.isfinite(ses)) or np.any(ses <= 0.0):
        raise InvalidInputError("standard errors must be finite and > 0")
    return effects, ses


def egger_regression(effect_sizes: np.ndarray, standard_errors: np.ndarray) -> tuple[float, float, float]:
    """OLS of effect size on precision. Returns (intercept, slope, placeholder p-value)."""
    precision = 1.0 / standard_errors
    mean_x = float(np.mean(precision))
    mean_y = float(np.mean(effect_sizes))
    x_diff = precision - mean_x
    numerator = float(np.sum(x_diff * (effect_sizes - mean_y)))
    denominator = float(np.sum(x_diff**2))
    slope = numerator / denominator if denominator != 0.0 else 0.0
    intercept = mean_y - slope * mean_x
    p_value = (
        _PLACEHOLDER_SIGNIFICANT_P
        if abs(intercept) > _EGGER_INTERCEPT_THRESHOLD
        else _PLACEHOLDER_NONSIGNIFICANT_P
    )
    return intercept, slope, p_value


def ranks(values: Sequence[float]) -> list[int]:
    """1-based ranks; ties keep their input order (stable sort), no averaging."""
    order = sorted(range(len(values)), key=lambda i: values[i])
    result = [0] * len(values)
    for position, index in enumerate(order):
        result[index] = position + 1
    return result


def begg_rank_correlation(effect_sizes: np.ndarray, standard_errors: np.ndarray) -> tuple[float, float]:
    """Kendall's tau between effect ranks and variance ranks. Returns (tau, placeholder p-value)."""
    n = len(effect_sizes)
    effect_ranks = ranks([float(es) for es in effect_sizes])
    variance_ranks = ranks([float(se) ** 2 for se in standard_errors])
    concordant = 0
    discordant = 0
    for i in range(n - 1):
        for j in range(i + 1, n):
            product = (effect_ranks[i] - effect_ranks[j]) * (variance_ranks[i] - variance_ranks[j])
            if product > 0:
                concordant += 1
            elif product < 0:
                discordant += 1
    tau = (concordant - discordant) / (n * (n - 1) / 2)
    p_value = (
        _PLACEHOLDER_SIGNIFICANT_P if abs(tau) > _BEGG_TAU_THRESHOLD else _PLACEHOLDER_NONSIGNIFICANT_P
    )
    return tau, p_value


def funnel_asymmetry(effect_sizes: Sequence[float]) -> bool:
    """Crude asymmetry check: imbalance of studies either side of the median effect."""
    n = len(effect_sizes)
    if n < FUNNEL_MINIMUM_STUDIES:
        return False
    median = statistics.median(effect_sizes)
    below = sum(1 for es in effect_sizes if es < median)
    above = sum(1 for es in effect_sizes if es > median)
    return abs(below - above) / n > FUNNEL_ASYMMETRY_THRESHOLD


def publication_bias_test(
    effect_sizes: Sequence[float],
    standard_errors: Sequence[float],
    minimum_studies: int = MINIMUM_STUDIES,
    significance_level: float = 0.05,
) -> PublicationBiasResult:
    """Run Egger, Begg and the funnel asymmetry heuristic on one outcome.

    Raises:
        InvalidInputError: mismatched lengths, fewer than 3 studies or
            non-positive standard errors.
    """
    effects, ses = _validate(effect_sizes, standard_errors)
    n = len(effects)

    warnings: list[InsufficientDataWarning] = []
    if n < minimum_studies:
        message = (
            f"Publication bias tests ran on {n} studies; at least {minimum_studies} "
            f"are needed for them to be informative."
        )
        _log.warning(message)
        warnings.append(
            InsufficientDataWarning(
                analysis="publication_bias",
                required=minimum_studies,
                available=n,
                message=message,
            )
        )

    intercept, slope, egger_p = egger_regression(effects, ses)
    tau, begg_p = begg_rank_correlation(effects, ses)

    return PublicationBiasResult(
        n_studies=n,
        egger=EggerTest(
            intercept=intercept,
            slope=slope,
            p_value=egger_p,
            significant=egger_p < significance_level,
        ),
        begg=BeggTest(tau=tau, p_value=begg_p, significant=begg_p < significance_level),
        funnel_asymmetric=funnel_asymmetry([float(es) for es in effects]),
        warnings=warnings,
    )
