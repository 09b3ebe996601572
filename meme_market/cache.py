"""
Caching layer for downloaded data.

This module provides a simple disk-based cache that stores raw downloads
by query hash, with a timestamp so stale entries expire and the next
request goes back to the network.
"""

import hashlib
import json
import logging
import pickle
import time
from pathlib import Path
from typing import Optional, Any
from meme_market.errors import CacheError

logger = logging.getLogger(__name__)


class DataCache:
    """
    A disk-based cache for storing downloaded data with expiry.

    Each entry is a pickled dictionary {timestamp, expires_in, data}.
    Entries older than expires_in seconds are treated as missing.

    Representation Invariants:
        - cache_dir exists and is a directory
        - cache files are named by the hash of their query parameters
        - expires_in > 0
    """

    def __init__(self, cache_dir: str = ".cache", expires_in: float = 3600, clock=time.time):
        """
        Initialize the cache.

        Preconditions:
            - cache_dir is a valid path (will be created if it doesn't exist)
            - expires_in > 0

        Postconditions:
            - cache_dir exists as a directory

        Args:
            cache_dir: Directory for cache files
            expires_in: Default lifetime of an entry in seconds
            clock: Callable returning the current time in seconds
        """
        if expires_in <= 0:
            raise ValueError("expires_in must be positive")

        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.expires_in = expires_in
        self._clock = clock

    def _compute_hash(self, query_params: dict) -> str:
        """
        Compute a hash for query parameters.

        Args:
            query_params: Dictionary of query parameters

        Returns:
            Hex string hash
        """
        # Sort keys for consistent hashing
        sorted_params = json.dumps(query_params, sort_keys=True, default=str)
        return hashlib.md5(sorted_params.encode()).hexdigest()

    def _path_for(self, query_params: dict) -> Path:
        return self.cache_dir / f"{self._compute_hash(query_params)}.pkl"

    def _read_entry(self, cache_file: Path) -> Any:
        try:
            with open(cache_file, "rb") as f:
                return pickle.load(f)
        except Exception as e:
            raise CacheError(f"Failed to read cache file: {e}") from e

    def is_valid(self, entry: Any) -> bool:
        """
        Check whether a cache entry is well-formed and not expired.

        Args:
            entry: Object loaded from a cache file

        Returns:
            True if the entry can be served, False otherwise
        """
        if not isinstance(entry, dict):
            return False

        timestamp = entry.get("timestamp")
        expires_in = entry.get("expires_in")
        if timestamp is None or not expires_in:
            return False

        return self._clock() - timestamp < expires_in

    def get(self, query_params: dict) -> Optional[Any]:
        """
        Retrieve cached data if it exists and has not expired.

        Postconditions:
            - Returns cached data if found and fresh, None otherwise
            - An expired entry is removed from disk

        Args:
            query_params: Query parameters used to generate cache key

        Returns:
            Cached data or None

        Raises:
            CacheError: If the cache file cannot be read
        """
        cache_file = self._path_for(query_params)

        if not cache_file.exists():
            return None

        entry = self._read_entry(cache_file)

        if not self.is_valid(entry):
            logger.debug("Cache entry %s expired", cache_file.name)
            cache_file.unlink(missing_ok=True)
            return None

        return entry["data"]

    def set(self, query_params: dict, data: Any, expires_in: Optional[float] = None) -> None:
        """
        Store data in cache.

        Preconditions:
            - data is pickle-able

        Postconditions:
            - Data is stored in cache file named by query hash
            - Entry is stamped with the current time

        Args:
            query_params: Query parameters used to generate cache key
            data: Data to cache
            expires_in: Lifetime override for this entry in seconds

        Raises:
            CacheError: If the cache file cannot be written
        """
        entry = {
            "timestamp": self._clock(),
            "expires_in": expires_in if expires_in is not None else self.expires_in,
            "data": data,
        }

        try:
            with open(self._path_for(query_params), "wb") as f:
                pickle.dump(entry, f)
        except Exception as e:
            raise CacheError(f"Failed to write cache file: {e}") from e

    def remove(self, query_params: dict) -> None:
        """Remove the entry for query_params, if any."""
        self._path_for(query_params).unlink(missing_ok=True)

    def clear_stale(self) -> int:
        """
        Remove every expired or unreadable cache file.

        Returns:
            Number of files removed
        """
        removed = 0
        for cache_file in self.cache_dir.glob("*.pkl"):
            try:
                entry = self._read_entry(cache_file)
            except CacheError:
                entry = None
            if not self.is_valid(entry):
                cache_file.unlink(missing_ok=True)
                removed += 1

        logger.info("Cleared %d stale cache entries", removed)
        return removed

    def clear(self) -> None:
        """
        Clear all cached files.

        Postconditions:
            - All .pkl files in cache_dir are removed
        """
        for cache_file in self.cache_dir.glob("*.pkl"):
            cache_file.unlink()

    def exists(self, query_params: dict) -> bool:
        """
        Check if fresh cached data exists for query.

        Args:
            query_params: Query parameters

        Returns:
            True if a non-expired entry exists, False otherwise
        """
        cache_file = self._path_for(query_params)
        if not cache_file.exists():
            return False
        try:
            return self.is_valid(self._read_entry(cache_file))
        except CacheError:
            return False
