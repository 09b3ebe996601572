"""Custom exceptions for the meme market module."""


class MemeMarketError(Exception):
    """Base exception for meme market module errors."""
    pass


class DataError(MemeMarketError):
    """Raised when data is missing, invalid, or insufficient."""
    pass


class FetchError(DataError):
    """Raised when a remote source cannot be fetched after retrying."""
    pass


class RateLimitError(FetchError):
    """Raised when a remote source keeps answering HTTP 429."""
    pass


class CacheError(MemeMarketError):
    """Raised when caching operations fail."""
    pass


class InvalidInputError(MemeMarketError, ValueError):
    """Raised when the correlator gets mismatched or non-finite sequences."""
    pass


class ToolInputError(MemeMarketError, ValueError):
    """Raised when a tool call receives invalid parameters."""
    pass
