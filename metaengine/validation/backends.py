"""Independent recomputation of pooled statistics for cross-validation.

The statsmodels backend recomputes the same fixed/random (DerSimonian-Laird)
estimates in-process. The subprocess backend runs that recomputation in a
separate interpreter, so it can time out or fail like any external process.
"""

from __future__ import annotations

import json
import logging
import subprocess
import sys
from collections.abc import Sequence
from typing import Any, Protocol

import numpy as np
from scipy import stats
from statsmodels.stats.meta_analysis import combine_effects

from metaengine.errors import ExternalValidationError
from metaengine.models import PoolingModel, RecomputedEstimate, Study

logger = logging.getLogger(__name__)

WORKER_MODULE = "metaengine.validation.worker"


class ExternalValidator(Protocol):
    """Anything that can recompute a pooled estimate independently."""

    name: str

    def recompute(self, studies: Sequence[Study], model: PoolingModel) -> RecomputedEstimate: ...


def recompute_with_statsmodels(
    effects: Sequence[float],
    variances: Sequence[float],
    model: PoolingModel | str,
) -> dict[str, Any]:
    model = PoolingModel(model)
    effect_array = np.asarray(effects, dtype=float)
    variance_array = np.asarray(variances, dtype=float)
    base = combine_effects(effect_array, variance_array, method_re="dl")
    q = float(base.q)
    df = len(effect_array) - 1
    if model is PoolingModel.RANDOM:
        pooled_effect = float(base.mean_effect_re)
        pooled_variance = float(base.var_eff_w_re)
        tau_squared = max(0.0, float(base.tau2))
    else:
        pooled_effect = float(base.mean_effect_fe)
        pooled_variance = float(base.var_eff_w_fe)
        tau_squared = 0.0
    return {
        "model": model.value,
        "pooled_effect": pooled_effect,
        "standard_error": float(np.sqrt(pooled_variance)),
        "q": q,
        "tau_squared": tau_squared,
        "exact_heterogeneity_p_value": float(stats.chi2.sf(q, df)) if df > 0 else 1.0,
    }


class StatsmodelsValidator:
    """In-process recomputation with statsmodels' combine_effects."""

    name = "statsmodels"

    def recompute(self, studies: Sequence[Study], model: PoolingModel) -> RecomputedEstimate:
        try:
            payload = recompute_with_statsmodels(
                [s.effect_size for s in studies],
                [s.variance for s in studies],
                model,
            )
        except (ValueError, FloatingPointError, ZeroDivisionError) as exc:
            raise ExternalValidationError(f"statsmodels recomputation failed: {exc}") from exc
        return RecomputedEstimate(backend=self.name, **payload)


class SubprocessValidator:
    """Recompute in a child interpreter over JSON stdin/stdout."""

    name = "subprocess"

    def __init__(self, timeout_seconds: float = 30.0, python_executable: str | None = None):
        self.timeout_seconds = timeout_seconds
        self.python_executable = python_executable or sys.executable

    def build_command(self) -> list[str]:
        return [self.python_executable, "-m", WORKER_MODULE]

    def recompute(self, studies: Sequence[Study], model: PoolingModel) -> RecomputedEstimate:
        request = json.dumps(
            {
                "effects": [s.effect_size for s in studies],
                "variances": [s.variance for s in studies],
                "model": PoolingModel(model).value,
            }
        )
        try:
            completed = subprocess.run(
                self.build_command(),
                input=request,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise ExternalValidationError(
                f"validator process timed out after {self.timeout_seconds}s"
            ) from exc
        except OSError as exc:
            raise ExternalValidationError(f"could not start validator process: {exc}") from exc

        if completed.returncode != 0:
            raise ExternalValidationError(
                f"validator process exited with code {completed.returncode}: {completed.stderr.strip()[:500]}"
            )
        try:
            payload = json.loads(completed.stdout)
        except json.JSONDecodeError as exc:
            raise ExternalValidationError(f"failed to parse validator output: {exc}") from exc
        if not isinstance(payload, dict):
            raise ExternalValidationError("validator output must be a JSON object")
        try:
            return RecomputedEstimate(backend=self.name, **payload)
        except (TypeError, ValueError) as exc:
            raise ExternalValidationError(f"validator output has unexpected fields: {exc}") from exc
