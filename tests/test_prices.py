"""
Tests for price data downloads and caching.

Tests cover:
- Price downloads with mocked yfinance calls
- Cache hit/miss behavior
- Date window and timezone handling
- Edge cases (empty data, missing columns, invalid parameters)
"""

import pytest
import pandas as pd
import numpy as np
from datetime import date, datetime
import tempfile
from unittest.mock import Mock, patch
from meme_market.data_sources.prices import get_price_history, price_records, NIFTY_50
from meme_market.cache import DataCache
from meme_market.errors import DataError


def _mock_bars(periods=3, tz=None):
    return pd.DataFrame({
        "Open": [100.0, 110.0, 120.0][:periods],
        "High": [105.0, 115.0, 125.0][:periods],
        "Low": [95.0, 105.0, 115.0][:periods],
        "Close": [102.0, 112.0, 122.0][:periods],
        "Volume": [1000, 1100, 1200][:periods],
        "Dividends": [0.0, 0.0, 0.0][:periods],
        "Stock Splits": [0.0, 0.0, 0.0][:periods],
    }, index=pd.date_range("2024-01-01", periods=periods, tz=tz))


class TestGetPriceHistory:
    """Tests for get_price_history function."""

    @patch('meme_market.data_sources.prices.yf.Ticker')
    def test_download(self, mock_ticker_class):
        """Test downloading bars for the default index."""
        mock_ticker = Mock()
        mock_ticker.history.return_value = _mock_bars()
        mock_ticker_class.return_value = mock_ticker

        result = get_price_history(days=30, end="2024-01-31", use_cache=False)

        mock_ticker_class.assert_called_once_with(NIFTY_50)
        mock_ticker.history.assert_called_once_with(start="2024-01-01", end="2024-02-01", interval="1d")
        assert list(result.columns) == ["Open", "High", "Low", "Close", "Volume"]
        assert len(result) == 3
        assert result.index.name == "Date"

    @patch('meme_market.data_sources.prices.yf.Ticker')
    def test_strips_timezone_keeping_local_day(self, mock_ticker_class):
        """Test that exchange-local midnights keep their trading day."""
        mock_ticker = Mock()
        mock_ticker.history.return_value = _mock_bars(tz="Asia/Kolkata")
        mock_ticker_class.return_value = mock_ticker

        result = get_price_history(days=7, end="2024-01-03", use_cache=False)

        assert result.index.tz is None
        assert result.index[0] == pd.Timestamp("2024-01-01")

    @patch('meme_market.data_sources.prices.yf.Ticker')
    def test_drops_incomplete_bars(self, mock_ticker_class):
        """Test that bars with missing values are removed."""
        bars = _mock_bars()
        bars.loc[bars.index[1], "Close"] = np.nan
        mock_ticker = Mock()
        mock_ticker.history.return_value = bars
        mock_ticker_class.return_value = mock_ticker

        result = get_price_history(days=7, end="2024-01-03", use_cache=False)

        assert len(result) == 2

    @patch('meme_market.data_sources.prices.yf.Ticker')
    def test_uses_cache(self, mock_ticker_class):
        """Test that cached data is used when available."""
        with tempfile.TemporaryDirectory() as tmpdir:
            cache = DataCache(tmpdir)

            mock_ticker = Mock()
            mock_ticker.history.return_value = _mock_bars()
            mock_ticker_class.return_value = mock_ticker

            result1 = get_price_history(days=30, end="2024-01-31", cache=cache)

            mock_ticker_class.reset_mock()
            result2 = get_price_history(days=30, end="2024-01-31", cache=cache)

            pd.testing.assert_frame_equal(result1, result2)
            mock_ticker_class.assert_not_called()

    @patch('meme_market.data_sources.prices.yf.Ticker')
    def test_empty_data_raises(self, mock_ticker_class):
        """Test that empty data raises DataError."""
        mock_ticker = Mock()
        mock_ticker.history.return_value = pd.DataFrame()
        mock_ticker_class.return_value = mock_ticker

        with pytest.raises(DataError, match="No data returned"):
            get_price_history(days=30, use_cache=False)

    @patch('meme_market.data_sources.prices.yf.Ticker')
    def test_download_failure_wrapped(self, mock_ticker_class):
        """Test that yfinance exceptions become DataError."""
        mock_ticker = Mock()
        mock_ticker.history.side_effect = RuntimeError("network down")
        mock_ticker_class.return_value = mock_ticker

        with pytest.raises(DataError, match="Failed to download"):
            get_price_history(days=30, use_cache=False)

    @patch('meme_market.data_sources.prices.yf.Ticker')
    def test_missing_columns_raises(self, mock_ticker_class):
        """Test that bars without OHLCV columns raise DataError."""
        mock_ticker = Mock()
        mock_ticker.history.return_value = _mock_bars().drop(columns=["Volume"])
        mock_ticker_class.return_value = mock_ticker

        with pytest.raises(DataError, match="missing columns"):
            get_price_history(days=30, use_cache=False)

    @patch('meme_market.data_sources.prices.yf.Ticker')
    def test_end_date_formats(self, mock_ticker_class):
        """Test that different end date formats give the same window."""
        mock_ticker = Mock()
        mock_ticker.history.return_value = _mock_bars()
        mock_ticker_class.return_value = mock_ticker

        get_price_history(days=7, end="2024-01-10", use_cache=False)
        get_price_history(days=7, end=date(2024, 1, 10), use_cache=False)
        get_price_history(days=7, end=datetime(2024, 1, 10, 15, 30), use_cache=False)

        windows = {(c.kwargs["start"], c.kwargs["end"]) for c in mock_ticker.history.call_args_list}
        assert windows == {("2024-01-03", "2024-01-11")}

    def test_invalid_parameters(self):
        """Test that bad arguments are rejected before downloading."""
        with pytest.raises(ValueError, match="cannot be empty"):
            get_price_history("", days=30, use_cache=False)
        with pytest.raises(ValueError, match="days"):
            get_price_history(days=0, use_cache=False)
        with pytest.raises(ValueError, match="days"):
            get_price_history(days=366, use_cache=False)
        with pytest.raises(ValueError, match="days"):
            get_price_history(days=True, use_cache=False)
        with pytest.raises(ValueError, match="interval"):
            get_price_history(days=30, interval="1h", use_cache=False)


class TestPriceRecords:
    """Tests for price_records."""

    def test_records(self):
        """Test conversion to JSON-ready dictionaries."""
        bars = _mock_bars(periods=2)[["Open", "High", "Low", "Close", "Volume"]]

        records = price_records(bars)

        assert records[0] == {
            "date": "2024-01-01T00:00:00",
            "open": 100.0,
            "high": 105.0,
            "low": 95.0,
            "close": 102.0,
            "volume": 1000.0,
        }
        assert len(records) == 2
