"""Exceptions for odds fetching and caching."""


class OddsError(Exception):
    """Base exception for the odds subsystem."""


class ProviderError(OddsError):
    """Upstream odds provider request failed."""


class ProviderNotConfiguredError(ProviderError):
    """Provider has no credentials; the call would certainly fail."""


class ProviderThrottledError(ProviderError):
    """Request budget exhausted; the call was not attempted."""


class CacheTierError(OddsError):
    """A cache tier operation failed."""
