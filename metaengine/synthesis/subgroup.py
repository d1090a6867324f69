"""Subgroup analysis: random-effects pooling within categorical partitions.

The between-groups statistic is the SUM of each retained subgroup's own
Cochran's Q, with df = (number of retained subgroups - 1). That is not the
usual test for subgroup differences (weighted squared deviation of subgroup
estimates from the overall estimate).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from metaengine.errors import InvalidInputError
from metaengine.models import (
    BetweenGroupsTest,
    InsufficientDataWarning,
    PoolingModel,
    Study,
    SubgroupEstimate,
    SubgroupResult,
)
from metaengine.synthesis.distributions import chi_square_sf
from metaengine.synthesis.meta_analysis import pool_studies

_log = logging.getLogger(__name__)

MINIMUM_STUDIES_PER_GROUP = 2
UNKNOWN_GROUP = "Unknown"


def group_value(study: Study, group_key: str) -> str:
    value = study.covariate(group_key)
    if value is None:
        return UNKNOWN_GROUP
    label = str(value)
    return label if label else UNKNOWN_GROUP


def partition_studies(studies: Sequence[Study], group_key: str) -> dict[str, list[Study]]:
    """Group studies by covariate value, keeping first-seen group order."""
    groups: dict[str, list[Study]] = {}
    for study in studies:
        groups.setdefault(group_value(study, group_key), []).append(study)
    return groups


def subgroup_analysis(studies: Sequence[Study], group_key: str = "group_label") -> SubgroupResult:
    """Pool each subgroup with random effects and aggregate a between-groups Q.

    Subgroups with fewer than two studies are left out of ``subgroups`` and
    listed in ``omitted``.
    """
    if not studies:
        raise InvalidInputError("subgroup analysis needs at least one study")

    estimates: list[SubgroupEstimate] = []
    omitted: list[str] = []
    warnings: list[InsufficientDataWarning] = []
    total_q = 0.0

    for label, members in partition_studies(studies, group_key).items():
        if len(members) < MINIMUM_STUDIES_PER_GROUP:
            _log.info(
                "subgroup_analysis: %s=%s has %d study; omitted", group_key, label, len(members)
            )
            omitted.append(label)
            warnings.append(
                InsufficientDataWarning(
                    analysis="subgroup",
                    required=MINIMUM_STUDIES_PER_GROUP,
                    available=len(members),
                    message=f"Subgroup {group_key}={label} has {len(members)} study and was omitted.",
                )
            )
            continue
        pooled = pool_studies(members, PoolingModel.RANDOM)
        estimates.append(
            SubgroupEstimate(
                name=label,
                study_count=len(members),
                pooled_effect=pooled.pooled_effect,
                confidence_interval=pooled.confidence_interval,
                p_value=pooled.p_value,
                heterogeneity=pooled.heterogeneity,
            )
        )
        total_q += pooled.heterogeneity.q

    df = len(estimates) - 1
    return SubgroupResult(
        group_key=group_key,
        subgroups=estimates,
        between_groups=BetweenGroupsTest(
            q=total_q,
            df=max(df, 0),
            p_value=chi_square_sf(total_q, df),
        ),
        omitted=omitted,
        warnings=warnings,
    )
