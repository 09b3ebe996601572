"""
Tool handlers for the stock and social data tools.

Each handler validates its parameters, does the work and returns a
JSON-serializable dictionary with a "success" flag. Parameter problems
raise ToolInputError; failures of the remote sources are reported in the
result instead of raised.
"""

import inspect
import logging
from typing import Callable, Dict, List, Optional, Sequence
from meme_market.analytics.popularity import popularity_from_records
from meme_market.analytics.volatility import volatility_from_records
from meme_market.data_sources.prices import NIFTY_50, get_price_history, price_records
from meme_market.data_sources.social import DEFAULT_SUBREDDITS, TIMEFRAMES, RedditClient
from meme_market.errors import DataError, ToolInputError

logger = logging.getLogger(__name__)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def fetch_nifty_data(days: int = 30, interval: str = "1d", fetcher: Optional[Callable] = None) -> dict:
    """Fetch NIFTY 50 daily bars for the last `days` days."""
    if not _is_number(days) or not 1 <= days <= 365:
        raise ToolInputError("Days must be a number between 1 and 365")
    if interval != "1d":
        raise ToolInputError('Only "1d" interval is currently supported')

    fetcher = fetcher or get_price_history
    logger.info("Fetching NIFTY 50 data for %d days", days)

    try:
        data = price_records(fetcher(NIFTY_50, int(days)))
    except DataError as e:
        logger.error("Failed to fetch NIFTY data: %s", e)
        return {"success": False, "error": str(e), "symbol": NIFTY_50, "days": days}

    return {
        "success": True,
        "symbol": NIFTY_50,
        "days": days,
        "interval": interval,
        "data_points": len(data),
        "data": data,
    }


def calculate_volatility(data: List[dict], symbol: str = NIFTY_50) -> dict:
    """Calculate volatility metrics from bar dictionaries."""
    if not isinstance(data, list):
        raise ToolInputError("Data must be an array of stock data points")
    if len(data) < 2:
        raise ToolInputError("At least 2 data points are required for volatility calculation")

    try:
        points = volatility_from_records(data)
    except ValueError as e:
        return {"success": False, "error": str(e), "symbol": symbol, "input_data_points": len(data)}

    return {
        "success": True,
        "symbol": symbol,
        "input_data_points": len(data),
        "output_data_points": len(points),
        "volatility_data": [p.to_dict() for p in points],
    }


def fetch_trending_memes(
    subreddits: Sequence[str] = DEFAULT_SUBREDDITS,
    timeframe: str = "day",
    limit: int = 25,
    client: Optional[RedditClient] = None
) -> dict:
    """Fetch top posts from the given subreddits."""
    if isinstance(subreddits, str) or not isinstance(subreddits, (list, tuple)) or not subreddits:
        raise ToolInputError("Subreddits must be a non-empty array")
    if timeframe not in TIMEFRAMES:
        raise ToolInputError(f"Timeframe must be one of: {', '.join(TIMEFRAMES)}")
    if not _is_number(limit) or not 1 <= limit <= 100:
        raise ToolInputError("Limit must be a number between 1 and 100")

    client = client or RedditClient(subreddits)
    logger.info("Fetching trending memes from %d subreddits (%s, limit: %d)", len(subreddits), timeframe, limit)

    try:
        posts = client.fetch_trending_posts(timeframe, int(limit), subreddits=subreddits)
    except DataError as e:
        logger.error("Failed to fetch trending memes: %s", e)
        return {
            "success": False,
            "error": str(e),
            "subreddits": list(subreddits),
            "timeframe": timeframe,
            "limit": limit,
        }

    return {
        "success": True,
        "subreddits": list(subreddits),
        "timeframe": timeframe,
        "limit": limit,
        "total_posts": len(posts),
        "posts": [p.to_dict() for p in posts],
    }


def calculate_popularity(posts: List[dict], method: str = "total") -> dict:
    """Calculate daily popularity from post dictionaries."""
    if not isinstance(posts, list):
        raise ToolInputError("Posts must be an array of Reddit post objects")
    if not posts:
        raise ToolInputError("At least one post is required for popularity calculation")

    try:
        points = popularity_from_records(posts, method=method)
    except (KeyError, ValueError) as e:
        return {"success": False, "error": f"Invalid post data: {e}", "input_posts": len(posts)}

    return {
        "success": True,
        "input_posts": len(posts),
        "output_dates": len(points),
        "popularity_data": [p.to_dict() for p in points],
    }


TOOLS: Dict[str, Callable[..., dict]] = {
    "fetch_nifty_data": fetch_nifty_data,
    "calculate_volatility": calculate_volatility,
    "fetch_trending_memes": fetch_trending_memes,
    "calculate_popularity": calculate_popularity,
}


def call_tool(name: str, arguments: Optional[dict] = None) -> dict:
    """
    Dispatch a tool call by name.

    Raises:
        KeyError: If no tool has that name
        ToolInputError: If the arguments are invalid
    """
    if name not in TOOLS:
        raise KeyError(f"Unknown tool: {name}")

    handler = TOOLS[name]
    arguments = arguments or {}
    try:
        inspect.signature(handler).bind(**arguments)
    except TypeError as e:
        raise ToolInputError(f"Invalid arguments for {name}: {e}") from e

    return handler(**arguments)
