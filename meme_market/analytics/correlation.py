"""
Correlation between market volatility and meme popularity.

This module aligns the two independently sourced daily series on their
common calendar days, computes the Pearson correlation coefficient over the
aligned values, classifies its strength and attaches a significance estimate.
Every function here is pure: no I/O, no shared state.
"""

from datetime import date
from typing import Dict, Iterable, Optional, Sequence
import numpy as np
from scipy import stats
from meme_market.entities import (
    AlignedSeries, CorrelationResult, PopularityPoint, VolatilityPoint,
    STRONG, MODERATE, WEAK, VERY_WEAK,
)
from meme_market.errors import InvalidInputError


P_VALUE_METHODS = ("approximate", "exact")


def _index_by_day(points: Iterable, attribute: str) -> Dict[date, float]:
    # Later points overwrite earlier ones sharing the same day.
    lookup = {}
    for point in points:
        lookup[point.date] = float(getattr(point, attribute))
    return lookup


def align_by_date(
    volatility_points: Optional[Sequence[VolatilityPoint]],
    popularity_points: Optional[Sequence[PopularityPoint]]
) -> AlignedSeries:
    """
    Restrict two daily series to the calendar days they share.

    Preconditions:
        - Points carry a datetime.date (VolatilityPoint/PopularityPoint
          normalize their timestamps to the UTC calendar day)

    Postconditions:
        - len(dates) == len(volatility) == len(popularity)
        - dates are ascending and every date is present in both inputs
        - Inputs are not modified

    Duplicate days within one input are resolved as "last write wins":
    the value of the last point for that day is used.

    Args:
        volatility_points: Volatility series (any order)
        popularity_points: Popularity series (any order)

    Returns:
        AlignedSeries; all three sequences are empty when either input is
        empty or None
    """
    if not volatility_points or not popularity_points:
        return AlignedSeries()

    volatility_by_day = _index_by_day(volatility_points, "volatility")
    popularity_by_day = _index_by_day(popularity_points, "popularity")

    common_days = sorted(volatility_by_day.keys() & popularity_by_day.keys())

    return AlignedSeries(
        volatility=[volatility_by_day[day] for day in common_days],
        popularity=[popularity_by_day[day] for day in common_days],
        dates=common_days,
    )


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Compute the Pearson product-moment correlation coefficient.

    Preconditions:
        - x and y are sequences of finite real numbers

    Postconditions:
        - Result is finite and in [-1, 1]
        - Returns 0.0 for empty input, a single observation, or when either
          sequence is constant

    Args:
        x: First sequence
        y: Second sequence

    Returns:
        Correlation coefficient

    Raises:
        InvalidInputError: If x and y are both non-empty and differ in length,
            or contain NaN/infinite values
    """
    if x is None or y is None:
        raise InvalidInputError("x and y must not be None")

    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)

    if len(x_arr) == 0 or len(y_arr) == 0:
        return 0.0

    if len(x_arr) != len(y_arr):
        raise InvalidInputError(
            f"length mismatch: x has {len(x_arr)} elements, y has {len(y_arr)}"
        )

    if not (np.all(np.isfinite(x_arr)) and np.all(np.isfinite(y_arr))):
        raise InvalidInputError("x and y must contain only finite values")

    if len(x_arr) == 1:
        return 0.0

    # Constant input has no variance; the mean of such an array can round
    # away from the values themselves, so check the values directly.
    if np.all(x_arr == x_arr[0]) or np.all(y_arr == y_arr[0]):
        return 0.0

    # Rescale before averaging and again before squaring so that neither the
    # means nor the sums of squares can overflow.
    x_scaled = x_arr / np.max(np.abs(x_arr))
    y_scaled = y_arr / np.max(np.abs(y_arr))

    x_centered = x_scaled - x_scaled.mean()
    y_centered = y_scaled - y_scaled.mean()

    x_spread = np.max(np.abs(x_centered))
    y_spread = np.max(np.abs(y_centered))
    if x_spread == 0 or y_spread == 0:
        return 0.0

    x_centered = x_centered / x_spread
    y_centered = y_centered / y_spread

    numerator = np.sum(x_centered * y_centered)
    sum_sq_x = np.sum(x_centered * x_centered)
    sum_sq_y = np.sum(y_centered * y_centered)

    if sum_sq_x == 0 or sum_sq_y == 0:
        return 0.0

    coefficient = numerator / np.sqrt(sum_sq_x * sum_sq_y)

    if not np.isfinite(coefficient):
        return 0.0

    return float(max(-1.0, min(1.0, coefficient)))


def classify_strength(coefficient: float) -> str:
    """
    Map a correlation coefficient to a strength label.

    | |r| range    | label     |
    |--------------|-----------|
    | >= 0.7       | Strong    |
    | [0.4, 0.7)   | Moderate  |
    | [0.2, 0.4)   | Weak      |
    | < 0.2        | Very Weak |
    """
    abs_coefficient = abs(coefficient)

    if abs_coefficient >= 0.7:
        return STRONG
    elif abs_coefficient >= 0.4:
        return MODERATE
    elif abs_coefficient >= 0.2:
        return WEAK
    else:
        return VERY_WEAK


def _t_statistic(r: float, n: int) -> float:
    return r * np.sqrt((n - 2) / (1 - r * r))


def estimate_p_value(r: float, n: int) -> float:
    """
    Approximate two-tailed p-value for a correlation coefficient.

    This is a coarse heuristic for indicative display only. It computes the
    t-statistic with n - 2 degrees of freedom and buckets |t| against the
    normal critical values 2.576 / 1.96 / 1.645, ignoring the degrees of
    freedom entirely; below 1.645 it falls back to the linear ramp
    1 - |t| / 3. Use exact_p_value for an actual Student's t test.

    Args:
        r: Correlation coefficient in [-1, 1]
        n: Sample size

    Returns:
        Value in [0, 1]; 1.0 when n < 3, 0.0 when |r| == 1
    """
    if n < 3:
        return 1.0

    if abs(r) == 1:
        return 0.0

    abs_t = abs(_t_statistic(r, n))

    if abs_t > 2.576:
        return 0.01
    if abs_t > 1.96:
        return 0.05
    if abs_t > 1.645:
        return 0.10

    return float(max(0.0, min(1.0, 1.0 - abs_t / 3.0)))


def exact_p_value(r: float, n: int) -> float:
    """
    Two-tailed p-value from the Student's t distribution with n - 2 dof.

    Same edge-case conventions as estimate_p_value.
    """
    if n < 3:
        return 1.0

    if abs(r) >= 1:
        return 0.0

    t = _t_statistic(r, n)
    p_value = 2.0 * stats.t.sf(abs(t), df=n - 2)
    return float(max(0.0, min(1.0, p_value)))


def compute_correlation(
    volatility_points: Optional[Sequence[VolatilityPoint]],
    popularity_points: Optional[Sequence[PopularityPoint]],
    p_value_method: str = "approximate"
) -> CorrelationResult:
    """
    Correlate volatility with popularity over their common days.

    Postconditions:
        - sample_size equals the number of aligned days
        - When no days align, returns (0, "Very Weak", 1, 0) without
          running the correlator

    Args:
        volatility_points: Volatility series
        popularity_points: Popularity series
        p_value_method: "approximate" (default heuristic) or "exact"

    Returns:
        CorrelationResult

    Raises:
        ValueError: If p_value_method is unknown
        InvalidInputError: Propagated from pearson_correlation
    """
    if p_value_method not in P_VALUE_METHODS:
        raise ValueError(f"p_value_method must be one of {P_VALUE_METHODS}, got {p_value_method}")

    aligned = align_by_date(volatility_points, popularity_points)
    sample_size = len(aligned)

    if sample_size == 0:
        return CorrelationResult(
            coefficient=0.0,
            strength=VERY_WEAK,
            p_value=1.0,
            sample_size=0
        )

    coefficient = pearson_correlation(aligned.volatility, aligned.popularity)
    strength = classify_strength(coefficient)

    if p_value_method == "exact":
        p_value = exact_p_value(coefficient, sample_size)
    else:
        p_value = estimate_p_value(coefficient, sample_size)

    return CorrelationResult(
        coefficient=coefficient,
        strength=strength,
        p_value=p_value,
        sample_size=sample_size
    )
