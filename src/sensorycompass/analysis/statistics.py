"""Numeric helpers shared by the analysis engines.

Every function here returns a well-defined number for degenerate input
(empty arrays, zero variance, perfect correlation). Non-finite intermediates
are replaced with a conservative default instead of leaking ``nan`` or
``inf`` into results.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
from scipy import stats as sp_stats

VARIANCE_RTOL = 1e-9
VARIANCE_ATOL = 1e-12


def finite_or(value: float, default: float) -> float:
    """Return ``value`` if it is a finite number, otherwise ``default``."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    return max(lower, min(upper, value))


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    if denominator == 0:
        return default
    return finite_or(numerator / denominator, default)


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return finite_or(np.mean(np.asarray(values, dtype=float)), 0.0)


def has_variance(values: Sequence[float]) -> bool:
    """True when the values really differ.

    Values that agree to within a relative tolerance of 1e-9 are constant, so
    float rounding left over from averaging never counts as spread.
    """
    if len(values) == 0:
        return False
    arr = np.asarray(values, dtype=float)
    if not np.all(np.isfinite(arr)):
        return False
    return not np.allclose(arr, arr[0], rtol=VARIANCE_RTOL, atol=VARIANCE_ATOL)


def population_std(values: Sequence[float]) -> float:
    """Population (ddof=0) standard deviation; 0 for empty or constant input."""
    if not has_variance(values):
        return 0.0
    return finite_or(np.std(np.asarray(values, dtype=float)), 0.0)


def z_scores(values: Sequence[float]) -> Optional[List[float]]:
    """Absolute population z-scores, or ``None`` when the spread is zero."""
    std = population_std(values)
    if std == 0.0:
        return None
    arr = np.asarray(values, dtype=float)
    scores = np.abs((arr - arr.mean()) / std)
    return [finite_or(score, 0.0) for score in scores]


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson's r, or 0 when undefined (mismatched, empty, or constant input)."""
    n = len(x)
    if n == 0 or n != len(y):
        return 0.0
    if not (has_variance(x) and has_variance(y)):
        return 0.0
    xc = np.asarray(x, dtype=float)
    yc = np.asarray(y, dtype=float)
    xc = xc - xc.mean()
    yc = yc - yc.mean()
    spread = float(np.sum(xc * xc)) * float(np.sum(yc * yc))
    if not spread > 0:
        return 0.0
    return clamp(finite_or(float(np.sum(xc * yc)) / math.sqrt(spread), 0.0), -1.0, 1.0)


@dataclass(frozen=True)
class LinearFit:
    """Ordinary least-squares fit of values against their sequence index."""

    slope: float
    intercept: float
    r_squared: float
    fitted: List[float]

    @property
    def last_fitted(self) -> float:
        return self.fitted[-1] if self.fitted else self.intercept


def linear_regression(values: Sequence[float]) -> LinearFit:
    """Fit ``values[i] = slope * i + intercept``.

    R² is ``1 - SSres/SStot`` clamped to [0, 1]; constant input (SStot = 0)
    yields R² = 0.
    """
    n = len(values)
    if n == 0:
        return LinearFit(slope=0.0, intercept=0.0, r_squared=0.0, fitted=[])
    y = np.asarray(values, dtype=float)
    x = np.arange(n, dtype=float)

    denominator = n * np.sum(x * x) - x.sum() ** 2
    slope = safe_ratio(n * np.sum(x * y) - x.sum() * y.sum(), denominator)
    intercept = finite_or((y.sum() - slope * x.sum()) / n, 0.0)

    predicted = slope * x + intercept
    ss_res = float(np.sum((y - predicted) ** 2))
    ss_tot = float(np.sum((y - y.mean()) ** 2))
    r_squared = clamp(finite_or(1.0 - ss_res / ss_tot, 0.0)) if ss_tot > 0 else 0.0

    return LinearFit(
        slope=slope,
        intercept=intercept,
        r_squared=r_squared,
        fitted=[finite_or(v, 0.0) for v in predicted],
    )


def correlation_p_value(r: float, n: int) -> float:
    """Two-sided p-value for Pearson's r under the Student-t null.

    Returns 1 when the test is undefined (n <= 2 or non-finite input) and 0
    for a perfect correlation.
    """
    df = n - 2
    if df <= 0 or not math.isfinite(r):
        return 1.0
    residual = 1.0 - r * r
    if residual <= 0:
        return 0.0
    t_stat = r * math.sqrt(df / residual)
    if not math.isfinite(t_stat):
        return 1.0
    p = 2 * sp_stats.t.sf(abs(t_stat), df)
    return clamp(finite_or(p, 1.0))


__all__ = [
    "LinearFit",
    "clamp",
    "correlation_p_value",
    "finite_or",
    "has_variance",
    "linear_regression",
    "mean",
    "pearson_correlation",
    "population_std",
    "safe_ratio",
    "z_scores",
]
