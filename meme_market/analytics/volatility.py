"""
Functions for deriving daily volatility metrics from price bars.

The volatility score combines three per-day measurements of a price bar:
the open-to-close move, the intraday range and the change in traded volume
relative to the previous session. The helpers accept scalars or numpy
arrays so the same formulas serve single bars and whole DataFrames.
"""

from typing import List, Sequence
import numpy as np
import pandas as pd
from meme_market.entities import VolatilityPoint


OHLCV_COLUMNS = ["Open", "High", "Low", "Close", "Volume"]

CHANGE_WEIGHT = 0.4
RANGE_WEIGHT = 0.4
VOLUME_WEIGHT = 0.002


def _safe_percent(numerator, denominator, fallback: float):
    numerator = np.asarray(numerator, dtype=float)
    denominator = np.asarray(denominator, dtype=float)
    out = np.full(np.broadcast(numerator, denominator).shape, fallback, dtype=float)
    np.divide(numerator, denominator, out=out, where=denominator != 0)
    out = np.where(denominator != 0, out * 100, fallback)
    return out if out.ndim else float(out)


def compute_daily_change(open_price, close_price):
    """Open-to-close change as a percentage of the open (0 when open is 0)."""
    return _safe_percent(np.subtract(close_price, open_price), open_price, 0.0)


def compute_day_range(high, low, open_price):
    """High-low range as a percentage of the open (0 when open is 0)."""
    return _safe_percent(np.subtract(high, low), open_price, 0.0)


def compute_volume_spike(volume, previous_volume):
    """Volume as a percentage of the previous session (100 when previous is 0)."""
    return _safe_percent(volume, previous_volume, 100.0)


def volatility_score(daily_change, day_range, volume_spike):
    """Weighted combination of the three daily metrics."""
    return (
        np.abs(daily_change) * CHANGE_WEIGHT
        + np.asarray(day_range) * RANGE_WEIGHT
        + np.abs(np.subtract(volume_spike, 100)) * VOLUME_WEIGHT
    )


def compute_volatility_frame(prices: pd.DataFrame) -> pd.DataFrame:
    """
    Compute volatility metrics for every bar of a price DataFrame.

    Preconditions:
        - prices has columns Open, High, Low, Close, Volume
        - prices index is a DatetimeIndex (or convertible to one)

    Postconditions:
        - Returns a DataFrame sorted by date with columns volatility,
          daily_change, day_range, volume_spike
        - Rows with any missing OHLCV value are dropped before computing
        - The first bar has volume_spike 0 (no previous session)

    Args:
        prices: Daily OHLCV bars

    Returns:
        DataFrame of volatility metrics, empty if fewer than 2 bars

    Raises:
        TypeError: If prices is not a DataFrame
        ValueError: If required columns are missing
    """
    if not isinstance(prices, pd.DataFrame):
        raise TypeError("prices must be a pd.DataFrame")

    missing = [col for col in OHLCV_COLUMNS if col not in prices.columns]
    if missing:
        raise ValueError(f"prices is missing columns: {missing}")

    columns = ["volatility", "daily_change", "day_range", "volume_spike"]

    bars = prices[OHLCV_COLUMNS].dropna().astype(float)
    bars.index = pd.DatetimeIndex(bars.index)
    bars = bars.sort_index()

    if len(bars) < 2:
        return pd.DataFrame(columns=columns, index=bars.index[:0], dtype=float)

    open_ = bars["Open"].to_numpy()
    volume = bars["Volume"].to_numpy()

    daily_change = compute_daily_change(open_, bars["Close"].to_numpy())
    day_range = compute_day_range(bars["High"].to_numpy(), bars["Low"].to_numpy(), open_)

    volume_spike = np.empty(len(bars))
    volume_spike[0] = 0.0
    volume_spike[1:] = compute_volume_spike(volume[1:], volume[:-1])

    return pd.DataFrame({
        "volatility": volatility_score(daily_change, day_range, volume_spike),
        "daily_change": daily_change,
        "day_range": day_range,
        "volume_spike": volume_spike,
    }, index=bars.index)[columns]


def compute_volatility(prices: pd.DataFrame) -> List[VolatilityPoint]:
    """
    Convert daily price bars into VolatilityPoint objects.

    This is a convenience function that combines compute_volatility_frame
    and VolatilityPoint construction.

    Args:
        prices: Daily OHLCV bars

    Returns:
        List of VolatilityPoint, one per trading day, ascending by date
    """
    frame = compute_volatility_frame(prices)
    return [
        VolatilityPoint(
            date=timestamp,
            volatility=row.volatility,
            daily_change=row.daily_change,
            day_range=row.day_range,
            volume_spike=row.volume_spike,
        )
        for timestamp, row in frame.iterrows()
    ]


def volatility_from_records(records: Sequence[dict]) -> List[VolatilityPoint]:
    """
    Compute volatility from a list of bar dictionaries.

    Each record needs date, open, high, low, close and volume keys (the
    shape returned by the fetch_nifty_data tool).

    Raises:
        ValueError: If a record is missing a required key
    """
    if not records:
        return []

    required = ["date", "open", "high", "low", "close", "volume"]
    for i, record in enumerate(records):
        missing = [key for key in required if key not in record]
        if missing:
            raise ValueError(f"record {i} is missing keys: {missing}")

    frame = pd.DataFrame.from_records(list(records), columns=required)
    frame.index = pd.DatetimeIndex(pd.to_datetime(frame.pop("date"), utc=True))
    frame.columns = OHLCV_COLUMNS

    return compute_volatility(frame)
