"""
Price data download and caching.

This module handles downloading daily index bars from yfinance with caching
to avoid repeated network calls.
"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Union
import pandas as pd
import yfinance as yf
from meme_market.cache import DataCache
from meme_market.errors import DataError

logger = logging.getLogger(__name__)

NIFTY_50 = "^NSEI"
OHLCV_COLUMNS = ["Open", "High", "Low", "Close", "Volume"]


def get_price_history(
    symbol: str = NIFTY_50,
    days: int = 30,
    end: Optional[Union[str, date, datetime]] = None,
    interval: str = "1d",
    cache: Optional[DataCache] = None,
    use_cache: bool = True
) -> pd.DataFrame:
    """
    Download daily OHLCV bars for the last `days` calendar days.

    If cached data exists and use_cache is True, returns cached data
    instead of downloading.

    Preconditions:
        - symbol is a non-empty Yahoo Finance ticker
        - 1 <= days <= 365
        - interval is "1d"

    Postconditions:
        - Returns DataFrame indexed by tz-naive exchange-local date
        - Columns are exactly Open, High, Low, Close, Volume
        - Rows with any missing value are dropped
        - Dates are sorted in ascending order

    Args:
        symbol: Ticker symbol (default NIFTY 50)
        days: Look-back window in calendar days
        end: End date (string "YYYY-MM-DD" or date/datetime, default today)
        interval: Bar interval (only "1d" is supported)
        cache: Optional DataCache instance for caching
        use_cache: Whether to use cache if available

    Returns:
        DataFrame of daily bars

    Raises:
        ValueError: If days, symbol or interval is invalid
        DataError: If download fails or returns empty data
    """
    if not symbol:
        raise ValueError("symbol cannot be empty")

    if isinstance(days, bool) or not isinstance(days, int) or not 1 <= days <= 365:
        raise ValueError("days must be an integer between 1 and 365")

    if interval != "1d":
        raise ValueError('Only "1d" interval is currently supported')

    # Convert dates to strings for yfinance
    if end is None:
        end_date = date.today()
    elif isinstance(end, datetime):
        end_date = end.date()
    elif isinstance(end, date):
        end_date = end
    else:
        end_date = datetime.strptime(str(end), "%Y-%m-%d").date()

    start_date = end_date - timedelta(days=days)
    # yfinance treats end as exclusive
    start_str = start_date.strftime("%Y-%m-%d")
    end_str = (end_date + timedelta(days=1)).strftime("%Y-%m-%d")

    query_params = {
        "symbol": symbol,
        "start": start_str,
        "end": end_str,
        "interval": interval
    }

    if use_cache and cache is not None:
        cached_data = cache.get(query_params)
        if cached_data is not None:
            return cached_data

    try:
        data = yf.Ticker(symbol).history(start=start_str, end=end_str, interval=interval)
    except Exception as e:
        raise DataError(f"Failed to download price data: {e}") from e

    if data is None or data.empty:
        raise DataError(f"No data returned for {symbol}")

    data.columns = [col.replace(" ", "") for col in data.columns]
    missing = [col for col in OHLCV_COLUMNS if col not in data.columns]
    if missing:
        raise DataError(f"Price data for {symbol} is missing columns: {missing}")

    data = data[OHLCV_COLUMNS].dropna()

    # Keep the exchange-local trading day; converting to UTC would shift
    # Indian midnight bars onto the previous day.
    if isinstance(data.index, pd.DatetimeIndex) and data.index.tz is not None:
        data.index = data.index.tz_localize(None)
    data.index.name = "Date"
    data = data.sort_index()

    if data.empty:
        raise DataError(f"No complete bars returned for {symbol}")

    logger.info("Downloaded %d bars for %s (%s to %s)", len(data), symbol, start_str, end_str)

    if cache is not None:
        cache.set(query_params, data)

    return data


def price_records(prices: pd.DataFrame) -> List[dict]:
    """
    Convert a bar DataFrame into JSON-ready dictionaries.

    Returns:
        List of {date, open, high, low, close, volume} with ISO dates
    """
    return [
        {
            "date": pd.Timestamp(timestamp).isoformat(),
            "open": float(row["Open"]),
            "high": float(row["High"]),
            "low": float(row["Low"]),
            "close": float(row["Close"]),
            "volume": float(row["Volume"]),
        }
        for timestamp, row in prices.iterrows()
    ]
