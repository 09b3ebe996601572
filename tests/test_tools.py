"""
Tests for the data tool handlers.

Tests cover:
- Parameter validation for each tool
- Successful results with stub sources
- Source failures reported in the result
- Dispatch by name
"""

import pytest
import pandas as pd
from datetime import datetime, timezone
from unittest.mock import Mock, patch
from meme_market.entities import SocialPost
from meme_market.errors import DataError, FetchError, ToolInputError
from meme_market.tools import (
    TOOLS,
    call_tool,
    calculate_popularity,
    calculate_volatility,
    fetch_nifty_data,
    fetch_trending_memes,
)


def _bars():
    return pd.DataFrame({
        "Open": [100.0, 105.0],
        "High": [110.0, 108.0],
        "Low": [95.0, 100.0],
        "Close": [105.0, 102.0],
        "Volume": [1000.0, 1500.0]
    }, index=pd.date_range("2024-01-01", periods=2))


class TestFetchNiftyData:
    """Tests for fetch_nifty_data."""

    def test_success(self):
        """Test bars returned as records."""
        fetcher = Mock(return_value=_bars())

        result = fetch_nifty_data(days=7, fetcher=fetcher)

        fetcher.assert_called_once_with("^NSEI", 7)
        assert result["success"] is True
        assert result["data_points"] == 2
        assert result["data"][0]["date"] == "2024-01-01T00:00:00"

    def test_failure_reported(self):
        """Test that download failures are returned, not raised."""
        fetcher = Mock(side_effect=DataError("No data returned for ^NSEI"))

        result = fetch_nifty_data(days=7, fetcher=fetcher)

        assert result["success"] is False
        assert "No data returned" in result["error"]

    def test_invalid_parameters(self):
        """Test days and interval validation."""
        for days in (0, 366, "30", True):
            with pytest.raises(ToolInputError, match="Days"):
                fetch_nifty_data(days=days, fetcher=Mock())
        with pytest.raises(ToolInputError, match="interval"):
            fetch_nifty_data(days=30, interval="1h", fetcher=Mock())


class TestCalculateVolatility:
    """Tests for calculate_volatility."""

    def test_chained_with_fetch(self):
        """Test feeding fetch_nifty_data output into calculate_volatility."""
        data = fetch_nifty_data(days=7, fetcher=Mock(return_value=_bars()))["data"]

        result = calculate_volatility(data)

        assert result["success"] is True
        assert result["input_data_points"] == 2
        assert result["output_data_points"] == 2
        assert result["volatility_data"][0]["date"] == "2024-01-01"
        assert result["volatility_data"][0]["volatility"] == pytest.approx(8.2)

    def test_too_few_points(self):
        """Test that at least two bars are required."""
        with pytest.raises(ToolInputError, match="At least 2"):
            calculate_volatility([{"date": "2024-01-01"}])
        with pytest.raises(ToolInputError, match="array"):
            calculate_volatility("not a list")

    def test_bad_records_reported(self):
        """Test that malformed records give an unsuccessful result."""
        result = calculate_volatility([{"date": "2024-01-01"}, {"date": "2024-01-02"}])

        assert result["success"] is False
        assert "missing keys" in result["error"]


class TestFetchTrendingMemes:
    """Tests for fetch_trending_memes."""

    def _post(self):
        return SocialPost("meme", 10, 2, datetime(2024, 1, 1, tzinfo=timezone.utc), subreddit="a")

    def test_success(self):
        """Test posts returned as dictionaries."""
        client = Mock()
        client.fetch_trending_posts.return_value = [self._post()]

        result = fetch_trending_memes(["a"], timeframe="week", limit=5, client=client)

        client.fetch_trending_posts.assert_called_once_with("week", 5, subreddits=["a"])
        assert result["success"] is True
        assert result["total_posts"] == 1
        assert result["posts"][0]["title"] == "meme"

    def test_failure_reported(self):
        """Test that fetch failures are returned, not raised."""
        client = Mock()
        client.fetch_trending_posts.side_effect = FetchError("reddit down")

        result = fetch_trending_memes(["a"], client=client)

        assert result["success"] is False
        assert result["error"] == "reddit down"

    def test_invalid_parameters(self):
        """Test subreddit, timeframe and limit validation."""
        with pytest.raises(ToolInputError, match="Subreddits"):
            fetch_trending_memes([], client=Mock())
        with pytest.raises(ToolInputError, match="Subreddits"):
            fetch_trending_memes("IndianDankMemes", client=Mock())
        with pytest.raises(ToolInputError, match="Timeframe"):
            fetch_trending_memes(["a"], timeframe="decade", client=Mock())
        with pytest.raises(ToolInputError, match="Limit"):
            fetch_trending_memes(["a"], limit=101, client=Mock())


class TestCalculatePopularity:
    """Tests for calculate_popularity."""

    def test_chained_with_fetch(self):
        """Test feeding fetch_trending_memes output into calculate_popularity."""
        client = Mock()
        client.fetch_trending_posts.return_value = [
            SocialPost("a", 10, 2, datetime(2024, 1, 1, 8, tzinfo=timezone.utc)),
            SocialPost("b", 20, 0, datetime(2024, 1, 1, 9, tzinfo=timezone.utc)),
        ]
        posts = fetch_trending_memes(["x"], client=client)["posts"]

        result = calculate_popularity(posts)

        assert result["success"] is True
        assert result["input_posts"] == 2
        assert result["output_dates"] == 1
        assert result["popularity_data"][0]["popularity"] == 34

    def test_empty_posts(self):
        """Test that at least one post is required."""
        with pytest.raises(ToolInputError, match="At least one post"):
            calculate_popularity([])

    def test_bad_posts_reported(self):
        """Test that malformed posts give an unsuccessful result."""
        result = calculate_popularity([{"score": 1}])

        assert result["success"] is False
        assert "Invalid post data" in result["error"]


class TestCallTool:
    """Tests for call_tool dispatch."""

    def test_registry(self):
        """Test that all four tools are registered."""
        assert set(TOOLS) == {
            "fetch_nifty_data", "calculate_volatility", "fetch_trending_memes", "calculate_popularity"
        }

    def test_dispatch(self):
        """Test calling a tool by name."""
        result = call_tool("calculate_popularity", {"posts": [
            {"title": "a", "score": 1, "comments": 1, "created": "2024-01-01T00:00:00Z"}
        ]})
        assert result["success"] is True

    def test_unknown_tool(self):
        """Test that unknown names raise KeyError."""
        with pytest.raises(KeyError):
            call_tool("fetch_everything", {})

    def test_unexpected_arguments(self):
        """Test that unknown arguments raise ToolInputError."""
        with pytest.raises(ToolInputError, match="Invalid arguments"):
            call_tool("calculate_popularity", {"posts": [], "colour": "red"})

    def test_missing_required_argument(self):
        """Test that a missing required argument raises ToolInputError."""
        with pytest.raises(ToolInputError, match="Invalid arguments for calculate_volatility"):
            call_tool("calculate_volatility", {})

    def test_handler_type_error_propagates(self):
        """Test that a TypeError raised inside a tool is not reported as bad input."""
        def broken(data):
            return len(None)

        with patch.dict(TOOLS, {"broken": broken}):
            with pytest.raises(TypeError, match="NoneType"):
                call_tool("broken", {"data": []})
