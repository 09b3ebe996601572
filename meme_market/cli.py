"""
Command-line interface for the meme market dashboard.

This module provides CLI commands for correlating NIFTY 50 volatility with
meme popularity and for inspecting either series on its own.
"""

import argparse
import logging
import sys
import pandas as pd

from meme_market.analytics.popularity import compute_popularity
from meme_market.analytics.volatility import compute_volatility_frame
from meme_market.cache import DataCache
from meme_market.config import load_settings
from meme_market.dashboard import Dashboard
from meme_market.data_sources.prices import get_price_history
from meme_market.data_sources.social import TIMEFRAMES, RedditClient
from meme_market.errors import MemeMarketError
from meme_market.reporting.charts import plot_volatility_vs_popularity
from meme_market.reporting.report import Report


def configure_logging(level: str = "WARNING") -> None:
    """Configure root logging and quiet chatty third-party loggers."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("yfinance").setLevel(logging.ERROR)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _make_cache(settings) -> DataCache:
    return DataCache(settings.cache_dir, expires_in=settings.cache_expiry)


def correlate_command(args):
    """Correlate volatility with meme popularity and print the report."""
    try:
        settings = load_settings(args.config)
        days = args.days if args.days is not None else settings.default_time_range

        print(f"Correlating {settings.symbol} volatility with meme popularity ({days} days)...")

        dashboard = Dashboard(settings, cache=_make_cache(settings))
        snapshot = dashboard.load(days)

        chart_path = None
        if args.chart:
            print("  Generating chart...")
            chart_path = plot_volatility_vs_popularity(
                snapshot.volatility, snapshot.popularity, args.chart
            )

        print(f"\n✓ Correlation complete!\n")
        report = Report(p_value_method=settings.p_value_method)
        print(report.render(snapshot, chart_path=chart_path))

    except (MemeMarketError, ValueError) as e:
        print(f"\n✗ Error: {e}", file=sys.stderr)
        sys.exit(1)


def volatility_command(args):
    """Print the daily volatility table."""
    try:
        settings = load_settings(args.config)

        print(f"Downloading {settings.symbol} bars for {args.days} days...")
        prices = get_price_history(settings.symbol, args.days, cache=_make_cache(settings))
        frame = compute_volatility_frame(prices)

        if frame.empty:
            print("Not enough trading days to compute volatility")
            return

        print(frame.round(4).to_string())

    except (MemeMarketError, ValueError) as e:
        print(f"\n✗ Error: {e}", file=sys.stderr)
        sys.exit(1)


def popularity_command(args):
    """Print the daily meme popularity table."""
    try:
        settings = load_settings(args.config)
        client = RedditClient(
            subreddits=settings.subreddits,
            user_agent=settings.user_agent,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay,
            timeout=settings.timeout,
        )

        print(f"Fetching top posts from {', '.join(settings.subreddits)} ({args.timeframe})...")
        posts = client.fetch_trending_posts(args.timeframe, args.limit, cache=_make_cache(settings))
        points = compute_popularity(posts, method=settings.popularity_method)

        print(f"  {len(posts)} posts over {len(points)} days\n")
        if points:
            table = pd.DataFrame([p.to_dict() for p in points]).set_index("date")
            print(table.round(2).to_string())

    except (MemeMarketError, ValueError) as e:
        print(f"\n✗ Error: {e}", file=sys.stderr)
        sys.exit(1)


def clear_cache_command(args):
    """Remove cached downloads."""
    settings = load_settings(args.config)
    cache = _make_cache(settings)

    if args.stale:
        removed = cache.clear_stale()
        print(f"✓ Removed {removed} expired cache entries")
    else:
        cache.clear()
        print(f"✓ Cleared cache at {settings.cache_dir}")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        description="Meme Market: NIFTY 50 volatility vs meme popularity",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Correlate command
    correlate_parser = subparsers.add_parser("correlate", help="Correlate volatility with meme popularity")
    correlate_parser.add_argument("--days", type=int, default=None, help="Look-back window in days (default: from settings)")
    correlate_parser.add_argument("--chart", default=None, help="Save a chart to this path")
    correlate_parser.add_argument("--config", default=None, help="Settings YAML file")

    # Volatility command
    volatility_parser = subparsers.add_parser("volatility", help="Show daily volatility")
    volatility_parser.add_argument("--days", type=int, default=30, help="Look-back window in days (default: 30)")
    volatility_parser.add_argument("--config", default=None, help="Settings YAML file")

    # Popularity command
    popularity_parser = subparsers.add_parser("popularity", help="Show daily meme popularity")
    popularity_parser.add_argument("--timeframe", default="week", choices=TIMEFRAMES, help="Reddit top-post period (default: week)")
    popularity_parser.add_argument("--limit", type=int, default=25, help="Posts per subreddit (default: 25)")
    popularity_parser.add_argument("--config", default=None, help="Settings YAML file")

    # Clear cache command
    cache_parser = subparsers.add_parser("clear-cache", help="Remove cached downloads")
    cache_parser.add_argument("--stale", action="store_true", help="Only remove expired entries")
    cache_parser.add_argument("--config", default=None, help="Settings YAML file")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    if args.command == "correlate":
        correlate_command(args)
    elif args.command == "volatility":
        volatility_command(args)
    elif args.command == "popularity":
        popularity_command(args)
    elif args.command == "clear-cache":
        clear_cache_command(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
