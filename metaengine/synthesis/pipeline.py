"""Full analysis run: pooling plus every follow-up analysis the data supports.

Order of work:
1. Pool all studies with the requested (or configured default) model.
2. Build per-study forest rows (weight, weight %, 95% CI).
3. Publication bias tests when n >= publication_bias_minimum_studies.
4. Leave-one-out when n >= sensitivity_minimum_studies.
5. Subgroup analysis when a group key is given and some study carries it.
6. Optional cross-validation against an external recomputation.

Errors from any step propagate; no step's failure is converted into a
partial report.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from metaengine.models import (
    EngineSettings,
    MetaAnalysisReport,
    PooledResult,
    PoolingModel,
    Study,
    StudyEstimate,
)
from metaengine.synthesis.effect_size import study_confidence_interval
from metaengine.synthesis.feasibility import assess_analysis_feasibility
from metaengine.synthesis.meta_analysis import coerce_model, pool_studies
from metaengine.synthesis.publication_bias import publication_bias_test
from metaengine.synthesis.sensitivity import sensitivity_analysis_studies
from metaengine.synthesis.subgroup import subgroup_analysis
from metaengine.utils import structured_log
from metaengine.utils.retry_strategies import RetryConfig
from metaengine.validation import ExternalValidator, build_validator, cross_validate

logger = logging.getLogger(__name__)


def build_study_estimates(pooled: PooledResult) -> list[StudyEstimate]:
    total_weight = sum(pooled.weights)
    return [
        StudyEstimate(
            study=study,
            weight=weight,
            weight_percent=100.0 * weight / total_weight,
            confidence_interval=study_confidence_interval(study.effect_size, study.variance),
        )
        for study, weight in zip(pooled.studies, pooled.weights)
    ]


def _has_group_values(studies: Sequence[Study], group_key: str) -> bool:
    return any(study.covariate(group_key) not in (None, "") for study in studies)


def run_meta_analysis(
    studies: Sequence[Study],
    model: PoolingModel | str | None = None,
    group_key: str | None = None,
    settings: EngineSettings | None = None,
    validator: ExternalValidator | None = None,
    analysis_id: str | None = None,
) -> MetaAnalysisReport:
    """Run a complete meta-analysis over ``studies``.

    Args:
        studies: Study estimates, already filtered to valid rows.
        model: ``"fixed"`` or ``"random"``; defaults to the configured model.
        group_key: Study field or covariate to run subgroup analysis on.
        settings: Engine settings (defaults when None).
        validator: External validator; when None one is built from
            ``settings.validation`` if cross-validation is enabled.
        analysis_id: Identifier bound into the structured audit log.

    Raises:
        InvalidInputError: fewer than two studies or invalid study data.
        ExternalValidationError: cross-validation failed after all retries.
    """
    settings = settings or EngineSettings()
    config = settings.meta_analysis
    pooling_model = coerce_model(model if model is not None else config.default_model)
    analysis_id = analysis_id or uuid.uuid4().hex[:8]
    structured_log.bind_analysis(analysis_id)

    has_groups = group_key is not None and _has_group_values(studies, group_key)
    feasibility = assess_analysis_feasibility(len(studies), has_groups=has_groups, config=config)

    pooled = pool_studies(studies, pooling_model)
    logger.info(
        "Pooled %d studies (%s): effect=%.3f [%.3f, %.3f]",
        pooled.n_studies,
        pooling_model.value,
        pooled.pooled_effect,
        pooled.ci_lower,
        pooled.ci_upper,
    )

    publication_bias = None
    if feasibility.publication_bias:
        publication_bias = publication_bias_test(
            [s.effect_size for s in studies],
            [s.standard_error for s in studies],
            minimum_studies=config.publication_bias_minimum_studies,
            significance_level=config.significance_level,
        )

    sensitivity = sensitivity_analysis_studies(studies) if feasibility.sensitivity else None

    subgroup = None
    if feasibility.subgroup and group_key is not None:
        subgroup = subgroup_analysis(studies, group_key)

    validation = None
    if validator is None and settings.validation.enabled:
        validator = build_validator(settings.validation)
    if validator is not None:
        validation = cross_validate(
            pooled,
            validator,
            tolerance=settings.validation.tolerance,
            retry_config=RetryConfig.from_validation_config(settings.validation),
        )

    warnings = list(feasibility.warnings)
    if subgroup is not None:
        warnings.extend(subgroup.warnings)
    for warning in warnings:
        logger.warning(warning.message)

    structured_log.log_analysis(
        "meta_analysis",
        "done",
        model=pooling_model.value,
        n_studies=pooled.n_studies,
        pooled_effect=pooled.pooled_effect,
        i_squared=pooled.heterogeneity.i_squared,
        publication_bias=publication_bias is not None,
        sensitivity=sensitivity is not None,
        subgroup=subgroup is not None,
        validated=validation is not None,
        warnings=len(warnings),
    )

    return MetaAnalysisReport(
        pooled=pooled,
        study_estimates=build_study_estimates(pooled),
        publication_bias=publication_bias,
        sensitivity=sensitivity,
        subgroup=subgroup,
        validation=validation,
        warnings=warnings,
    )
