"""Leave-one-out sensitivity analysis.

Drops each study in turn and re-pools the rest with the DerSimonian-Laird
random-effects model, in input order.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from metaengine.models import PoolingModel, SensitivityEntry, Study
from metaengine.synthesis.meta_analysis import pool_studies, validate_inputs

_log = logging.getLogger(__name__)


def _leave_one_out(studies: Sequence[Study]) -> list[SensitivityEntry]:
    entries: list[SensitivityEntry] = []
    for i, excluded in enumerate(studies):
        remaining = [s for j, s in enumerate(studies) if j != i]
        if len(remaining) <= 1:
            continue
        pooled = pool_studies(remaining, PoolingModel.RANDOM)
        entries.append(
            SensitivityEntry(
                excluded_index=i + 1,
                excluded_study_id=excluded.id,
                pooled_effect=pooled.pooled_effect,
                confidence_interval=pooled.confidence_interval,
                p_value=pooled.p_value,
                n_studies=len(remaining),
            )
        )
    if not entries:
        _log.info("leave_one_out: %d studies; no exclusion leaves a poolable set", len(studies))
    return entries


def sensitivity_analysis_studies(studies: Sequence[Study]) -> list[SensitivityEntry]:
    validate_inputs([s.effect_size for s in studies], [s.variance for s in studies])
    return _leave_one_out(studies)


def sensitivity_analysis(
    effect_sizes: Sequence[float],
    variances: Sequence[float],
) -> list[SensitivityEntry]:
    """Leave-one-out re-pooling over raw arrays.

    Returns one entry per study whose removal leaves at least two studies,
    so n studies give n entries when n > 2 and none when n == 2.

    Raises:
        InvalidInputError: mismatched lengths, fewer than 2 studies, or
            non-positive variances.
    """
    effects, variance_array = validate_inputs(effect_sizes, variances)
    studies = [
        Study(id=f"study_{i + 1}", name=f"Study {i + 1}", effect_size=float(es), variance=float(v))
        for i, (es, v) in enumerate(zip(effects, variance_array))
    ]
    return _leave_one_out(studies)
