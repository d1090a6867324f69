"""Compare an in-process pooled result against an external recomputation."""

from __future__ import annotations

import logging

from metaengine.errors import ExternalValidationError
from metaengine.models import (
    CrossValidationReport,
    PooledResult,
    RecomputedEstimate,
    ValidationConfig,
    ValidatorBackend,
)
from metaengine.utils import structured_log
from metaengine.utils.retry_strategies import (
    VALIDATOR_RETRY_CONFIG,
    RetryConfig,
    create_retry_decorator,
)
from metaengine.validation.backends import (
    ExternalValidator,
    StatsmodelsValidator,
    SubprocessValidator,
)

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-6


def build_validator(config: ValidationConfig) -> ExternalValidator:
    if config.backend == ValidatorBackend.SUBPROCESS:
        return SubprocessValidator(timeout_seconds=config.timeout_seconds)
    return StatsmodelsValidator()


def compare_estimates(
    pooled: PooledResult,
    recomputed: RecomputedEstimate,
) -> dict[str, float]:
    """Absolute differences for each statistic both sides report."""
    return {
        "pooled_effect": abs(pooled.pooled_effect - recomputed.pooled_effect),
        "standard_error": abs(pooled.standard_error - recomputed.standard_error),
        "q": abs(pooled.heterogeneity.q - recomputed.q),
        "tau_squared": abs(pooled.heterogeneity.tau_squared - recomputed.tau_squared),
    }


def _within_tolerance(pooled: PooledResult, differences: dict[str, float], tolerance: float) -> bool:
    reference = {
        "pooled_effect": pooled.pooled_effect,
        "standard_error": pooled.standard_error,
        "q": pooled.heterogeneity.q,
        "tau_squared": pooled.heterogeneity.tau_squared,
    }
    return all(diff <= tolerance * max(1.0, abs(reference[key])) for key, diff in differences.items())


def cross_validate(
    pooled: PooledResult,
    validator: ExternalValidator,
    tolerance: float = DEFAULT_TOLERANCE,
    retry_config: RetryConfig | None = None,
) -> CrossValidationReport:
    """Recompute ``pooled`` with ``validator`` and report whether the two agree.

    ExternalValidationError is retried with exponential backoff; the last
    error propagates once attempts are exhausted.
    """
    attempts = 0

    @create_retry_decorator(retry_config or VALIDATOR_RETRY_CONFIG)
    def _recompute() -> RecomputedEstimate:
        nonlocal attempts
        attempts += 1
        return validator.recompute(pooled.studies, pooled.model)

    try:
        recomputed = _recompute()
    except ExternalValidationError as exc:
        structured_log.log_validation(validator.name, False, attempts, error=str(exc))
        raise

    differences = compare_estimates(pooled, recomputed)
    agrees = _within_tolerance(pooled, differences, tolerance)
    max_difference = max(differences.values())
    if agrees:
        logger.info("cross-validation with %s agrees (max diff %.2e)", validator.name, max_difference)
    else:
        logger.warning(
            "cross-validation with %s disagrees: %s",
            validator.name,
            {k: round(v, 10) for k, v in differences.items()},
        )
    structured_log.log_validation(validator.name, agrees, attempts, max_difference=max_difference)

    return CrossValidationReport(
        backend=validator.name,
        agrees=agrees,
        tolerance=tolerance,
        differences=differences,
        recomputed=recomputed,
        attempts=attempts,
    )
