"""
Functions for turning social posts into a daily popularity series.

Posts are bucketed by the UTC calendar day they were created on and each
day gets an engagement-based popularity score.
"""

from typing import List, Sequence
import pandas as pd
from meme_market.entities import PopularityPoint, SocialPost


COMMENT_WEIGHT = 2
POPULARITY_METHODS = ("total", "mean")


def engagement_score(score: float, comments: float) -> float:
    """
    Engagement of a post: score + 2 * comments.

    Negative scores and comment counts count as zero, so a heavily
    downvoted post never drags a day's popularity below zero.
    """
    return max(0, score) + max(0, comments) * COMMENT_WEIGHT


def aggregate_by_date(posts: Sequence[SocialPost]) -> pd.DataFrame:
    """
    Aggregate posts by the UTC calendar day they were created on.

    Postconditions:
        - Index is the calendar day (datetime.date), ascending
        - Columns: posts, total_score, total_comments, total_engagement

    Args:
        posts: Social posts in any order

    Returns:
        DataFrame with one row per day (empty if posts is empty)
    """
    columns = ["posts", "total_score", "total_comments", "total_engagement"]
    if not posts:
        return pd.DataFrame(columns=columns)

    frame = pd.DataFrame({
        "day": [post.day for post in posts],
        "score": [post.score for post in posts],
        "comments": [post.comments for post in posts],
        "engagement": [engagement_score(post.score, post.comments) for post in posts],
    })

    grouped = frame.groupby("day", sort=True).agg(
        posts=("score", "size"),
        total_score=("score", "sum"),
        total_comments=("comments", "sum"),
        total_engagement=("engagement", "sum"),
    )
    return grouped[columns]


def compute_popularity(
    posts: Sequence[SocialPost],
    method: str = "total"
) -> List[PopularityPoint]:
    """
    Compute a daily popularity series from social posts.

    Preconditions:
        - method is either "total" or "mean"

    Postconditions:
        - One PopularityPoint per day with at least one post, ascending
        - "total": popularity is the day's summed engagement
        - "mean": popularity is the day's mean engagement per post
        - avg_score is the mean raw score of the day's posts

    Args:
        posts: Social posts
        method: Aggregation method for the daily engagement

    Returns:
        List of PopularityPoint (empty if posts is empty)

    Raises:
        ValueError: If method is invalid
    """
    if method not in POPULARITY_METHODS:
        raise ValueError(f"method must be 'total' or 'mean', got {method}")

    daily = aggregate_by_date(posts)

    points = []
    for day, row in daily.iterrows():
        n_posts = int(row["posts"])
        if method == "total":
            popularity = row["total_engagement"]
        else:
            popularity = row["total_engagement"] / n_posts

        points.append(PopularityPoint(
            date=day,
            popularity=popularity,
            posts=n_posts,
            avg_score=row["total_score"] / n_posts,
            total_comments=int(row["total_comments"]),
        ))

    return points


def popularity_from_records(records: Sequence[dict], method: str = "total") -> List[PopularityPoint]:
    """Compute popularity from post dictionaries (the tool-call input shape)."""
    return compute_popularity([SocialPost.from_dict(record) for record in records], method=method)
