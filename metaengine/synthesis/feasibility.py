"""Feasibility checks deciding which analyses a study set supports.

Feasibility requires:
1. At least 2 studies for any pooling.
2. At least ``publication_bias_minimum_studies`` (default 10) for Egger/Begg
   and the funnel heuristic.
3. At least ``sensitivity_minimum_studies`` (default 3) for leave-one-out,
   so every exclusion still leaves a poolable pair.
4. A grouping covariate on at least one study for subgroup analysis.

Each skipped analysis is reported as an InsufficientDataWarning rather than
an error.
"""

from __future__ import annotations

from metaengine.models import AnalysisFeasibility, InsufficientDataWarning, MetaAnalysisConfig

MINIMUM_POOLABLE_STUDIES = 2


def assess_analysis_feasibility(
    n_studies: int,
    has_groups: bool = False,
    config: MetaAnalysisConfig | None = None,
) -> AnalysisFeasibility:
    config = config or MetaAnalysisConfig()
    warnings: list[InsufficientDataWarning] = []

    poolable = n_studies >= MINIMUM_POOLABLE_STUDIES
    if not poolable:
        warnings.append(
            InsufficientDataWarning(
                analysis="pooling",
                required=MINIMUM_POOLABLE_STUDIES,
                available=n_studies,
                message=f"Insufficient studies for pooling: n={n_studies}, minimum={MINIMUM_POOLABLE_STUDIES}.",
            )
        )

    publication_bias = n_studies >= config.publication_bias_minimum_studies
    if poolable and not publication_bias:
        warnings.append(
            InsufficientDataWarning(
                analysis="publication_bias",
                required=config.publication_bias_minimum_studies,
                available=n_studies,
                message=(
                    f"Publication bias tests skipped: n={n_studies}, "
                    f"minimum={config.publication_bias_minimum_studies}."
                ),
            )
        )

    sensitivity = n_studies >= config.sensitivity_minimum_studies
    if poolable and not sensitivity:
        warnings.append(
            InsufficientDataWarning(
                analysis="sensitivity",
                required=config.sensitivity_minimum_studies,
                available=n_studies,
                message=(
                    f"Leave-one-out analysis skipped: n={n_studies}, "
                    f"minimum={config.sensitivity_minimum_studies}."
                ),
            )
        )

    return AnalysisFeasibility(
        n_studies=n_studies,
        poolable=poolable,
        publication_bias=poolable and publication_bias,
        sensitivity=poolable and sensitivity,
        subgroup=poolable and has_groups,
        warnings=warnings,
    )
