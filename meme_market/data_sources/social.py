"""
Social post download from Reddit.

This module fetches top posts from a set of subreddits through Reddit's
public JSON listing endpoint, with retry and optional caching.
"""

import logging
import time
from datetime import datetime, timezone
from typing import List, Optional, Sequence
import requests
from meme_market.cache import DataCache
from meme_market.analytics.popularity import engagement_score
from meme_market.data_sources.http import get_json
from meme_market.entities import SocialPost
from meme_market.errors import DataError, FetchError

logger = logging.getLogger(__name__)

REDDIT_BASE_URL = "https://www.reddit.com/r"
TIMEFRAMES = ("hour", "day", "week", "month", "year", "all")
DEFAULT_SUBREDDITS = ("IndianDankMemes", "indiameme", "SaimanSays")


def validate_listing_params(timeframe: str, limit: int) -> None:
    """
    Check timeframe and limit for a top-posts listing.

    Raises:
        ValueError: If timeframe is unknown or limit is outside 1..100
    """
    if timeframe not in TIMEFRAMES:
        raise ValueError(f"timeframe must be one of: {', '.join(TIMEFRAMES)}")
    if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= 100:
        raise ValueError("limit must be an integer between 1 and 100")


def parse_reddit_response(payload: dict, subreddit: str) -> List[SocialPost]:
    """
    Parse a Reddit listing response into SocialPost objects.

    Postconditions:
        - Only link posts (kind "t3") with a title are kept
        - Posts removed by moderators are dropped
        - Missing score/comment counts default to 0
        - Thumbnails that are not http(s) URLs become None

    Args:
        payload: Decoded JSON listing
        subreddit: Subreddit the listing was requested for

    Returns:
        List of SocialPost in listing order

    Raises:
        DataError: If the payload is not a Reddit listing
    """
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict) or "children" not in data:
        raise DataError("Invalid Reddit response format")

    posts = []
    for child in data["children"]:
        if child.get("kind") != "t3":
            continue

        post = child.get("data") or {}
        if not post.get("title") or post.get("removed_by_category"):
            continue

        thumbnail = post.get("thumbnail") or ""
        posts.append(SocialPost(
            title=post["title"],
            score=post.get("score") or 0,
            comments=post.get("num_comments") or 0,
            created=datetime.fromtimestamp(post.get("created_utc", 0), tz=timezone.utc),
            url=f"https://www.reddit.com{post.get('permalink', '')}",
            subreddit=post.get("subreddit") or subreddit,
            thumbnail=thumbnail if thumbnail.startswith("http") else None,
            author=post.get("author") or "[deleted]",
        ))

    return posts


class RedditClient:
    """
    Client for Reddit's public top-posts listings.

    Attributes:
        subreddits: Subreddits fetched by fetch_trending_posts
        user_agent: User-Agent header (Reddit rejects anonymous agents)
        max_retries: Attempts per request
        retry_delay: Base backoff delay in seconds
        timeout: Request timeout in seconds

    Representation Invariants:
        - subreddits is non-empty
    """

    def __init__(
        self,
        subreddits: Sequence[str] = DEFAULT_SUBREDDITS,
        user_agent: str = "MemeMarketDashboard/1.0",
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
        sleep=None
    ):
        if not subreddits:
            raise ValueError("subreddits cannot be empty")

        self.subreddits = list(subreddits)
        self.user_agent = user_agent
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.session = session or requests.Session()
        self._sleep = sleep or time.sleep

    def fetch_subreddit_posts(self, subreddit: str, timeframe: str = "week", limit: int = 25) -> List[SocialPost]:
        """
        Fetch the top posts of one subreddit.

        Raises:
            ValueError: If timeframe or limit is invalid
            FetchError: If the request keeps failing
            DataError: If the response is not a listing
        """
        validate_listing_params(timeframe, limit)

        url = f"{REDDIT_BASE_URL}/{subreddit}/top.json"
        payload = get_json(
            self.session,
            url,
            params={"t": timeframe, "limit": limit},
            headers={"User-Agent": self.user_agent},
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
            timeout=self.timeout,
            sleep=self._sleep
        )
        return parse_reddit_response(payload, subreddit)

    def fetch_trending_posts(
        self,
        timeframe: str = "week",
        limit: int = 25,
        subreddits: Optional[Sequence[str]] = None,
        cache: Optional[DataCache] = None,
        use_cache: bool = True
    ) -> List[SocialPost]:
        """
        Fetch top posts from every configured subreddit.

        A subreddit that still fails after retrying is logged and skipped so
        the others can still contribute.

        Postconditions:
            - Posts are sorted by engagement score, highest first

        Args:
            timeframe: Listing period ("hour", "day", "week", ...)
            limit: Posts per subreddit (1-100)
            subreddits: Override for the configured subreddits
            cache: Optional DataCache instance
            use_cache: Whether to use cache if available

        Returns:
            List of SocialPost

        Raises:
            ValueError: If timeframe or limit is invalid
            FetchError: If every subreddit failed
        """
        validate_listing_params(timeframe, limit)
        subreddits = list(subreddits) if subreddits else self.subreddits

        query_params = {
            "source": "reddit",
            "subreddits": sorted(subreddits),
            "timeframe": timeframe,
            "limit": limit,
        }

        if use_cache and cache is not None:
            cached = cache.get(query_params)
            if cached is not None:
                return cached

        all_posts = []
        failures = []
        for subreddit in subreddits:
            try:
                all_posts.extend(self.fetch_subreddit_posts(subreddit, timeframe, limit))
            except DataError as e:
                logger.warning("Failed to fetch from r/%s: %s", subreddit, e)
                failures.append(subreddit)

        if len(failures) == len(subreddits):
            raise FetchError(f"Failed to fetch posts from any of {subreddits}")

        all_posts.sort(key=lambda p: engagement_score(p.score, p.comments), reverse=True)
        logger.info("Fetched %d posts from %d subreddits", len(all_posts), len(subreddits) - len(failures))

        if cache is not None:
            cache.set(query_params, all_posts)

        return all_posts
