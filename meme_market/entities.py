"""
Core entity classes (ADTs) for the meme market module.

These classes are the value objects passed between the metric producers,
the correlation engine and the reporting layer. They are immutable and
validate their representation invariants on construction.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional, Tuple, Union
import numpy as np
import pandas as pd


STRONG = "Strong"
MODERATE = "Moderate"
WEAK = "Weak"
VERY_WEAK = "Very Weak"
STRENGTH_LABELS = (STRONG, MODERATE, WEAK, VERY_WEAK)

DateLike = Union[date, datetime, pd.Timestamp, np.datetime64, str]


def to_calendar_day(value: DateLike) -> date:
    """
    Normalize a timestamp-like value to its UTC calendar day.

    Aware timestamps are converted to UTC first; naive timestamps are taken
    to already be in UTC. The time of day is discarded.

    Args:
        value: date, datetime, pd.Timestamp, np.datetime64 or ISO string

    Returns:
        datetime.date of the UTC day

    Raises:
        ValueError: If value cannot be interpreted as a timestamp
    """
    if value is None or value is pd.NaT:
        raise ValueError("date cannot be missing")

    if isinstance(value, (str, np.datetime64)):
        try:
            value = pd.Timestamp(value)
        except (ValueError, TypeError) as e:
            raise ValueError(f"invalid date: {value!r}") from e
        if pd.isna(value):
            raise ValueError("date cannot be NaT")

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return date(value.year, value.month, value.day)

    if isinstance(value, date):
        return value

    raise ValueError(f"invalid date: {value!r}")


def _check_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")


@dataclass(frozen=True)
class VolatilityPoint:
    """
    Per-trading-day volatility metrics derived from a price bar.

    Attributes:
        date: Calendar day of the bar
        volatility: Combined volatility score
        daily_change: Open-to-close change (%)
        day_range: High-low range relative to open (%)
        volume_spike: Volume relative to the previous bar (%)

    Representation Invariants:
        - date is a datetime.date
        - volatility, day_range, volume_spike are finite and >= 0
        - daily_change is finite
    """
    date: date
    volatility: float
    daily_change: float = 0.0
    day_range: float = 0.0
    volume_spike: float = 0.0

    def __post_init__(self):
        """Normalize the date and validate representation invariants."""
        object.__setattr__(self, "date", to_calendar_day(self.date))
        for name in ("volatility", "daily_change", "day_range", "volume_spike"):
            object.__setattr__(self, name, float(getattr(self, name)))
            _check_finite(name, getattr(self, name))
        if self.volatility < 0:
            raise ValueError("volatility must be non-negative")
        if self.day_range < 0:
            raise ValueError("day_range must be non-negative")
        if self.volume_spike < 0:
            raise ValueError("volume_spike must be non-negative")

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "volatility": self.volatility,
            "daily_change": self.daily_change,
            "day_range": self.day_range,
            "volume_spike": self.volume_spike,
        }


@dataclass(frozen=True)
class PopularityPoint:
    """
    Per-calendar-day engagement aggregate across social posts.

    Attributes:
        date: Calendar day the posts were created on
        popularity: Engagement score for the day
        posts: Number of posts created that day
        avg_score: Mean upvote score of those posts
        total_comments: Sum of comment counts

    Representation Invariants:
        - popularity is finite and >= 0
        - posts >= 1
        - total_comments >= 0
    """
    date: date
    popularity: float
    posts: int = 1
    avg_score: float = 0.0
    total_comments: int = 0

    def __post_init__(self):
        """Normalize the date and validate representation invariants."""
        object.__setattr__(self, "date", to_calendar_day(self.date))
        object.__setattr__(self, "popularity", float(self.popularity))
        object.__setattr__(self, "avg_score", float(self.avg_score))
        object.__setattr__(self, "posts", int(self.posts))
        object.__setattr__(self, "total_comments", int(self.total_comments))
        _check_finite("popularity", self.popularity)
        _check_finite("avg_score", self.avg_score)
        if self.popularity < 0:
            raise ValueError("popularity must be non-negative")
        if self.posts < 1:
            raise ValueError("posts must be positive")
        if self.total_comments < 0:
            raise ValueError("total_comments must be non-negative")

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "popularity": self.popularity,
            "posts": self.posts,
            "avg_score": self.avg_score,
            "total_comments": self.total_comments,
        }


@dataclass(frozen=True)
class SocialPost:
    """
    A single social-media post as returned by the social source.

    Attributes:
        title: Post title
        score: Net upvote score (may be negative)
        comments: Number of comments
        created: Creation timestamp (UTC)
        url: Permalink to the post
        subreddit: Community the post belongs to
        thumbnail: Thumbnail URL, if any
        author: Author name
    """
    title: str
    score: int
    comments: int
    created: datetime
    url: str = ""
    subreddit: str = ""
    thumbnail: Optional[str] = None
    author: str = "[deleted]"

    def __post_init__(self):
        """Normalize the creation timestamp to an aware UTC datetime."""
        created = self.created
        if not isinstance(created, datetime):
            try:
                created = pd.Timestamp(created).to_pydatetime()
            except (ValueError, TypeError) as e:
                raise ValueError(f"invalid created timestamp: {self.created!r}") from e
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        object.__setattr__(self, "created", created.astimezone(timezone.utc))
        object.__setattr__(self, "score", int(self.score))
        object.__setattr__(self, "comments", int(self.comments))
        if self.comments < 0:
            raise ValueError("comments must be non-negative")

    @property
    def day(self) -> date:
        """UTC calendar day the post was created on."""
        return to_calendar_day(self.created)

    @classmethod
    def from_dict(cls, data: dict) -> "SocialPost":
        """Build a post from its JSON representation."""
        return cls(
            title=data["title"],
            score=data.get("score") or 0,
            comments=data.get("comments") or 0,
            created=data["created"],
            url=data.get("url", ""),
            subreddit=data.get("subreddit", ""),
            thumbnail=data.get("thumbnail"),
            author=data.get("author") or "[deleted]",
        )

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "score": self.score,
            "comments": self.comments,
            "created": self.created.isoformat(),
            "url": self.url,
            "subreddit": self.subreddit,
            "thumbnail": self.thumbnail,
            "author": self.author,
        }


@dataclass(frozen=True)
class AlignedSeries:
    """
    Two numeric series restricted to their common calendar days.

    Attributes:
        volatility: Volatility values, one per date
        popularity: Popularity values, one per date
        dates: Common calendar days in ascending order

    Representation Invariants:
        - len(dates) == len(volatility) == len(popularity)
        - dates are strictly ascending (sorted, no duplicates)
    """
    volatility: Tuple[float, ...] = field(default_factory=tuple)
    popularity: Tuple[float, ...] = field(default_factory=tuple)
    dates: Tuple[date, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """Freeze the sequences and check invariants."""
        object.__setattr__(self, "volatility", tuple(self.volatility))
        object.__setattr__(self, "popularity", tuple(self.popularity))
        object.__setattr__(self, "dates", tuple(self.dates))
        if not (len(self.dates) == len(self.volatility) == len(self.popularity)):
            raise ValueError("dates, volatility and popularity must have equal length")
        for earlier, later in zip(self.dates, self.dates[1:]):
            if not earlier < later:
                raise ValueError("dates must be strictly ascending")

    def __len__(self) -> int:
        """Return the number of aligned observations."""
        return len(self.dates)


@dataclass(frozen=True)
class CorrelationResult:
    """
    Summary of the correlation between volatility and popularity.

    Attributes:
        coefficient: Pearson correlation coefficient
        strength: One of "Strong", "Moderate", "Weak", "Very Weak"
        p_value: Approximate two-tailed significance
        sample_size: Number of aligned observations

    Representation Invariants:
        - -1 <= coefficient <= 1
        - strength in STRENGTH_LABELS
        - 0 <= p_value <= 1
        - sample_size >= 0
    """
    coefficient: float
    strength: str
    p_value: float
    sample_size: int

    def __post_init__(self):
        """Validate representation invariants."""
        if not -1.0 <= self.coefficient <= 1.0:
            raise ValueError(f"coefficient must be in [-1, 1], got {self.coefficient}")
        if self.strength not in STRENGTH_LABELS:
            raise ValueError(f"invalid strength: {self.strength}")
        if not 0.0 <= self.p_value <= 1.0:
            raise ValueError(f"p_value must be in [0, 1], got {self.p_value}")
        if self.sample_size < 0:
            raise ValueError("sample_size must be non-negative")

    def to_dict(self) -> dict:
        return {
            "coefficient": self.coefficient,
            "strength": self.strength,
            "p_value": self.p_value,
            "sample_size": self.sample_size,
        }

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"CorrelationResult(r={self.coefficient:.3f}, {self.strength}, "
            f"p={self.p_value:.2f}, n={self.sample_size})"
        )
