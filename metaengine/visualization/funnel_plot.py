"""Funnel plot rendering for publication bias inspection."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import numpy as np
from matplotlib import pyplot as plt

from metaengine.errors import InvalidInputError
from metaengine.synthesis.distributions import Z_CRITICAL
from metaengine.synthesis.publication_bias import FUNNEL_MINIMUM_STUDIES, funnel_asymmetry


def render_funnel_plot(
    effect_sizes: Sequence[float],
    standard_errors: Sequence[float],
    pooled_effect: float,
    output_path: str,
    title: str,
    minimum_studies: int = FUNNEL_MINIMUM_STUDIES,
) -> str | None:
    """Scatter effect size against standard error inside the pseudo 95% region.

    Returns the written path, or None when there are too few studies for a
    funnel plot to be read.
    """
    if len(effect_sizes) != len(standard_errors):
        raise InvalidInputError("effect_sizes and standard_errors must have the same length")
    if len(effect_sizes) < minimum_studies:
        return None

    effects = np.asarray(effect_sizes, dtype=float)
    ses = np.asarray(standard_errors, dtype=float)
    se_axis = np.linspace(0.0, float(ses.max()) * 1.05, 50)

    fig, ax = plt.subplots(figsize=(6, 6))
    ax.fill_betweenx(
        se_axis,
        pooled_effect - Z_CRITICAL * se_axis,
        pooled_effect + Z_CRITICAL * se_axis,
        color="lightgrey",
        alpha=0.5,
        label="Pseudo 95% region",
    )
    left = effects < pooled_effect
    ax.scatter(effects[left], ses[left], color="tab:blue", alpha=0.8, label="Below pooled")
    ax.scatter(effects[~left], ses[~left], color="tab:orange", alpha=0.8, label="At/above pooled")
    ax.axvline(x=pooled_effect, color="tab:red", linestyle="--", linewidth=0.8)

    if funnel_asymmetry([float(es) for es in effects]):
        ax.text(0.02, 0.02, "asymmetric", transform=ax.transAxes, color="tab:red")
    ax.set_title(title)
    ax.set_xlabel("Effect size")
    ax.set_ylabel("Standard error")
    ax.set_ylim(se_axis[-1], 0.0)
    ax.legend(loc="lower right", fontsize="small")

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=300, bbox_inches="tight")
    plt.close(fig)
    return str(path)
