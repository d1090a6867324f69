"""Closed-form distribution approximations used by the pooling engine.

Approximations in use:

* ``erf`` uses Abramowitz & Stegun formula 7.1.26 (absolute error <= 1.5e-7).
* ``chi_square_cdf`` is exact only for 1 and 2 degrees of freedom; for any
  other df it falls back to a normal approximation with mean df and variance
  2*df. It is NOT the regularized incomplete gamma function and is visibly
  off in the tails for small df.
"""

from __future__ import annotations

import math

# 95% interval multiplier, fixed rather than derived from a significance level.
Z_CRITICAL = 1.96

_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911


def erf(x: float) -> float:
    sign = 1.0 if x >= 0 else -1.0
    x = abs(x)
    t = 1.0 / (1.0 + _P * x)
    y = 1.0 - (((((_A5 * t + _A4) * t) + _A3) * t + _A2) * t + _A1) * t * math.exp(-x * x)
    return sign * y


def normal_cdf(x: float) -> float:
    """Standard normal CDF."""
    return 0.5 * (1.0 + erf(x / math.sqrt(2.0)))


def two_tailed_p_value(z: float) -> float:
    return 2.0 * (1.0 - normal_cdf(abs(z)))


def chi_square_cdf(x: float, df: int) -> float:
    """Approximate chi-square CDF (see module docstring)."""
    if x <= 0:
        return 0.0
    if df == 1:
        return 2.0 * normal_cdf(math.sqrt(x)) - 1.0
    if df == 2:
        return 1.0 - math.exp(-x / 2.0)
    return normal_cdf((x - df) / math.sqrt(2.0 * df))


def chi_square_sf(x: float, df: int) -> float:
    """Upper-tail probability ``1 - chi_square_cdf(x, df)``; 1.0 when df <= 0."""
    if df <= 0:
        return 1.0
    return 1.0 - chi_square_cdf(x, df)
