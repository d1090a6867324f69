"""Forest plot rendering for pooled results."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from matplotlib import pyplot as plt
from matplotlib.patches import Polygon

from metaengine.errors import InvalidInputError
from metaengine.models import PooledResult
from metaengine.synthesis.effect_size import study_confidence_interval


def render_forest_plot(pooled: PooledResult, output_path: str, title: str) -> str:
    if pooled.n_studies < 2:
        raise InvalidInputError("at least two studies are required for a forest plot")

    labels = [study.name for study in pooled.studies]
    effects = np.asarray([study.effect_size for study in pooled.studies], dtype=float)
    intervals = [study_confidence_interval(s.effect_size, s.variance) for s in pooled.studies]
    weights = np.asarray(pooled.weights, dtype=float)
    marker_sizes = 20.0 + 180.0 * weights / weights.max()

    n = len(labels)
    rows = np.arange(n, 0, -1, dtype=float)
    fig, ax = plt.subplots(figsize=(7, 1.2 + 0.4 * n))
    for row, (lower, upper) in zip(rows, intervals):
        ax.plot([lower, upper], [row, row], color="black", linewidth=1)
    ax.scatter(effects, rows, s=marker_sizes, marker="s", color="tab:blue", zorder=3)

    lower, upper = pooled.confidence_interval
    diamond = Polygon(
        [[lower, 0.0], [pooled.pooled_effect, 0.25], [upper, 0.0], [pooled.pooled_effect, -0.25]],
        closed=True,
        color="tab:red",
    )
    ax.add_patch(diamond)
    ax.axvline(x=0.0, color="grey", linewidth=0.8)
    ax.axvline(x=pooled.pooled_effect, color="tab:red", linestyle="--", linewidth=0.8)

    ax.set_yticks(list(rows) + [0.0])
    ax.set_yticklabels(labels + ["Pooled"])
    ax.set_ylim(-1.0, n + 1.0)
    ax.set_xlabel("Effect size (95% CI)")
    het = pooled.heterogeneity
    ax.set_title(f"{title}\nmodel={pooled.model.value}, Q={het.q:.3f}, I2={het.i_squared:.1f}%")

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=300, bbox_inches="tight")
    plt.close(fig)
    return str(path)
