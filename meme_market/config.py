"""
Runtime settings.

Settings are read from a YAML file (data/settings.yaml by default, or the
path in the MEME_MARKET_CONFIG environment variable). Missing keys fall
back to the defaults below.
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional, Tuple
import yaml


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "data" / "settings.yaml"
CONFIG_ENV_VAR = "MEME_MARKET_CONFIG"


@dataclass(frozen=True)
class Settings:
    """
    Application settings.

    Attributes:
        symbol: Index ticker on Yahoo Finance
        subreddits: Communities the popularity series is built from
        time_ranges: Selectable look-back windows in days
        default_time_range: Look-back window used when none is given
        popularity_method: "total" or "mean" daily engagement
        p_value_method: "approximate" or "exact"
        post_limit: Posts requested per subreddit
        cache_dir: Directory for the download cache
        cache_expiry: Cache entry lifetime in seconds
        max_retries: Attempts per HTTP request
        retry_delay: Base backoff delay in seconds
        timeout: HTTP timeout in seconds
        user_agent: User-Agent header sent to Reddit
    """
    symbol: str = "^NSEI"
    subreddits: Tuple[str, ...] = ("IndianDankMemes", "indiameme", "SaimanSays")
    time_ranges: Tuple[int, ...] = (7, 30, 90)
    default_time_range: int = 30
    popularity_method: str = "total"
    p_value_method: str = "approximate"
    post_limit: int = 25
    cache_dir: str = ".cache"
    cache_expiry: float = 3600
    max_retries: int = 3
    retry_delay: float = 1.0
    timeout: float = 15.0
    user_agent: str = "MemeMarketDashboard/1.0"

    def __post_init__(self):
        """Validate settings."""
        object.__setattr__(self, "subreddits", tuple(self.subreddits))
        object.__setattr__(self, "time_ranges", tuple(int(d) for d in self.time_ranges))

        if not self.symbol:
            raise ValueError("symbol cannot be empty")
        if not self.subreddits:
            raise ValueError("subreddits cannot be empty")
        if any(not 1 <= days <= 365 for days in self.time_ranges):
            raise ValueError("time_ranges must be between 1 and 365 days")
        if self.default_time_range not in self.time_ranges:
            raise ValueError(
                f"default_time_range {self.default_time_range} not in {self.time_ranges}"
            )
        if self.popularity_method not in ("total", "mean"):
            raise ValueError(f"invalid popularity_method: {self.popularity_method}")
        if self.p_value_method not in ("approximate", "exact"):
            raise ValueError(f"invalid p_value_method: {self.p_value_method}")
        if not 1 <= self.post_limit <= 100:
            raise ValueError("post_limit must be between 1 and 100")
        if self.cache_expiry <= 0:
            raise ValueError("cache_expiry must be positive")
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.retry_delay < 0 or self.timeout <= 0:
            raise ValueError("retry_delay must be >= 0 and timeout > 0")


def load_settings(path: Optional[str] = None, **overrides) -> Settings:
    """
    Load settings from a YAML file.

    Preconditions:
        - The file, if present, contains a mapping of Settings field names

    Postconditions:
        - Returns defaults when the file does not exist
        - Keyword overrides win over file values

    Args:
        path: YAML file; defaults to $MEME_MARKET_CONFIG or data/settings.yaml
        **overrides: Field values that replace those from the file

    Returns:
        Settings

    Raises:
        ValueError: If the file has unknown keys or invalid values
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    config_path = Path(path)

    values = {}
    if config_path.exists():
        with open(config_path) as f:
            values = yaml.safe_load(f) or {}
        if not isinstance(values, dict):
            raise ValueError(f"{config_path} must contain a mapping")

    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"unknown settings in {config_path}: {unknown}")

    settings = Settings(**values)
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if overrides:
        settings = replace(settings, **overrides)
    return settings
