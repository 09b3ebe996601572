"""
Dashboard orchestration.

Coordinates fetching price bars and social posts for a time range, derives
the volatility and popularity series, correlates them and builds the
insights shown alongside the correlation summary.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional
from meme_market.analytics.correlation import compute_correlation
from meme_market.analytics.popularity import compute_popularity
from meme_market.analytics.volatility import compute_volatility
from meme_market.cache import DataCache
from meme_market.config import Settings
from meme_market.data_sources.prices import get_price_history
from meme_market.data_sources.social import RedditClient
from meme_market.entities import (
    CorrelationResult, PopularityPoint, VolatilityPoint,
    STRONG, MODERATE, WEAK,
)
from meme_market.errors import DataError

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Receives user-facing status messages from the dashboard."""

    @abstractmethod
    def info(self, message: str) -> None:
        pass

    @abstractmethod
    def warning(self, message: str) -> None:
        pass

    @abstractmethod
    def error(self, message: str) -> None:
        pass


class LoggingNotifier(Notifier):
    """Notifier that forwards messages to a logger."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def info(self, message: str) -> None:
        self.log.info(message)

    def warning(self, message: str) -> None:
        self.log.warning(message)

    def error(self, message: str) -> None:
        self.log.error(message)


@dataclass(frozen=True)
class Highlight:
    """The day on which a series peaked."""
    date: date
    value: float


@dataclass(frozen=True)
class Insights:
    """
    Human-readable observations about a correlation.

    Attributes:
        highest_volatility: Most volatile trading day, if any
        highest_popularity: Most popular meme day, if any
        interpretation: Plain-language reading of the coefficient
    """
    highest_volatility: Optional[Highlight]
    highest_popularity: Optional[Highlight]
    interpretation: str


@dataclass(frozen=True)
class DashboardSnapshot:
    """Everything the dashboard shows for one time range."""
    days: int
    volatility: List[VolatilityPoint]
    popularity: List[PopularityPoint]
    correlation: CorrelationResult
    insights: Insights
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        def highlight(h):
            return {"date": h.date.isoformat(), "value": h.value} if h else None

        return {
            "days": self.days,
            "correlation": self.correlation.to_dict(),
            "insights": {
                "highest_volatility": highlight(self.insights.highest_volatility),
                "highest_popularity": highlight(self.insights.highest_popularity),
                "interpretation": self.insights.interpretation,
            },
            "volatility": [p.to_dict() for p in self.volatility],
            "popularity": [p.to_dict() for p in self.popularity],
            "warnings": list(self.warnings),
        }


def timeframe_for_range(days: int) -> str:
    """Reddit listing period that covers a look-back window of `days`."""
    return "week" if days <= 7 else "month"


def interpret_correlation(coefficient: float, strength: str) -> str:
    """Plain-language interpretation of a coefficient and its strength."""
    direction = "positive" if coefficient >= 0 else "negative"

    if strength == STRONG:
        trend = "increase" if coefficient >= 0 else "decrease"
        return (
            f"There is a strong {direction} relationship between market volatility "
            f"and meme popularity. When the market becomes more volatile, meme "
            f"engagement tends to {trend} significantly."
        )
    if strength == MODERATE:
        trend = "increased" if coefficient >= 0 else "decreased"
        return (
            f"There is a moderate {direction} relationship between market volatility "
            f"and meme popularity. Higher market volatility is somewhat associated "
            f"with {trend} meme engagement."
        )
    if strength == WEAK:
        return (
            f"There is a weak {direction} relationship between market volatility "
            f"and meme popularity. The connection between these metrics is minimal "
            f"but detectable."
        )
    return (
        "There is very little to no relationship between market volatility and "
        "meme popularity. These metrics appear to be largely independent of each other."
    )


def build_insights(
    correlation: CorrelationResult,
    volatility: List[VolatilityPoint],
    popularity: List[PopularityPoint]
) -> Insights:
    """
    Find the peak days of both series and interpret the correlation.

    Ties go to the earliest point in input order.
    """
    highest_volatility = None
    if volatility:
        peak = max(volatility, key=lambda p: p.volatility)
        highest_volatility = Highlight(peak.date, peak.volatility)

    highest_popularity = None
    if popularity:
        peak = max(popularity, key=lambda p: p.popularity)
        highest_popularity = Highlight(peak.date, peak.popularity)

    return Insights(
        highest_volatility=highest_volatility,
        highest_popularity=highest_popularity,
        interpretation=interpret_correlation(correlation.coefficient, correlation.strength),
    )


class Dashboard:
    """
    Loads and correlates both series for a time range.

    The fetchers are injectable so the dashboard can run against stubs;
    by default prices come from yfinance and posts from Reddit.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        price_fetcher: Optional[Callable] = None,
        post_fetcher: Optional[Callable] = None,
        cache: Optional[DataCache] = None,
        notifier: Optional[Notifier] = None
    ):
        self.settings = settings or Settings()
        self.cache = cache
        self.notifier = notifier or LoggingNotifier()

        if price_fetcher is None:
            def price_fetcher(days):
                return get_price_history(self.settings.symbol, days, cache=self.cache)

        if post_fetcher is None:
            client = RedditClient(
                subreddits=self.settings.subreddits,
                user_agent=self.settings.user_agent,
                max_retries=self.settings.max_retries,
                retry_delay=self.settings.retry_delay,
                timeout=self.settings.timeout,
            )

            def post_fetcher(timeframe, limit):
                return client.fetch_trending_posts(timeframe, limit, cache=self.cache)

        self.price_fetcher = price_fetcher
        self.post_fetcher = post_fetcher

    def load(self, days: Optional[int] = None) -> DashboardSnapshot:
        """
        Fetch, derive and correlate both series for the last `days` days.

        If one source fails the failure is reported through the notifier and
        that side contributes an empty series, so the correlation degrades to
        the empty-sample result instead of failing.

        Args:
            days: Look-back window (defaults to settings.default_time_range)

        Returns:
            DashboardSnapshot

        Raises:
            ValueError: If days is not one of settings.time_ranges
            DataError: If both sources fail
        """
        days = days if days is not None else self.settings.default_time_range
        if days not in self.settings.time_ranges:
            raise ValueError(f"days must be one of {self.settings.time_ranges}, got {days}")

        self.notifier.info(f"Loading data for {days} days")
        warnings = []

        volatility = []
        try:
            volatility = compute_volatility(self.price_fetcher(days))
        except DataError as e:
            message = f"Stock data unavailable: {e}"
            self.notifier.warning(message)
            warnings.append(message)

        popularity = []
        try:
            posts = self.post_fetcher(timeframe_for_range(days), self.settings.post_limit)
            popularity = compute_popularity(posts, method=self.settings.popularity_method)
        except DataError as e:
            message = f"Meme data unavailable: {e}"
            self.notifier.warning(message)
            warnings.append(message)

        if len(warnings) == 2:
            self.notifier.error("Failed to load stock and meme data")
            raise DataError("Failed to load stock and meme data")

        correlation = compute_correlation(
            volatility, popularity, p_value_method=self.settings.p_value_method
        )
        logger.info("Correlation for %d days: %r", days, correlation)

        return DashboardSnapshot(
            days=days,
            volatility=volatility,
            popularity=popularity,
            correlation=correlation,
            insights=build_insights(correlation, volatility, popularity),
            warnings=warnings,
        )
