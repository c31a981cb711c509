"""
Custom exception classes for the stateful RSI indicator.
"""


class RsiCraftError(Exception):
    """Base exception for all rsicraft errors."""
    pass


class ConfigurationError(RsiCraftError):
    """Raised when indicator settings or configuration are invalid."""
    pass


class CorruptStateError(RsiCraftError):
    """Raised when a stored engine state blob is missing fields or malformed."""
    pass


class DataLoadError(RsiCraftError):
    """Raised when kline data cannot be read from a file."""
    pass


class DataFetchError(RsiCraftError):
    """Raised when kline data fetching from a provider fails."""
    pass
