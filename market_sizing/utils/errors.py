"""Custom exception hierarchy for the market sizing core.

All application exceptions inherit from :class:`MarketSizingError`, which
carries an optional ``provider_name`` so error handlers can identify which
external data source (e.g. "fred", "alpha_vantage", "world_bank") caused the
failure.

The hierarchy is organized by layer:

    MarketSizingError  (base -- catch-all for any market sizing error)
    +-- DataSourceError          (adapter: transport failure or malformed payload)
    +-- RateLimitError           (provider rate-limit exceeded)
    +-- ProviderUnavailableError (credential missing or rejected)
    +-- CacheError               (cache store cannot be opened)
    +-- ConfigurationError       (startup / missing config)
    +-- CalculationError         (invalid calculator input)
    +-- AggregateFailureError    (every eligible provider failed)

Adapters never let DataSourceError, RateLimitError or
ProviderUnavailableError escape: they classify them into an
:class:`~market_sizing.models.cache.Outcome` instead.  CacheError comes only
from opening a persistent store directly.  Only AggregateFailureError and
CalculationError are meant to reach callers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from market_sizing.models.market import ProviderAttempt


class MarketSizingError(Exception):
    """Base exception for all market sizing errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which data source triggered the error.
    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[fred] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Adapter-level errors (classified into outcomes, never surfaced directly)
# ---------------------------------------------------------------------------

class DataSourceError(MarketSizingError):
    """Raised inside an adapter when a response cannot be fetched or parsed."""

    def __init__(
        self,
        message: str = "Data source request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(MarketSizingError):
    """Raised inside an adapter when the provider reports a rate limit.

    The adapter base class converts this into ``Outcome.RATE_LIMITED`` so
    the orchestrator can move on to the next provider.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(MarketSizingError):
    """Raised inside an adapter when its credential is missing or rejected."""

    def __init__(
        self,
        message: str = "Data source is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Infrastructure errors
# ---------------------------------------------------------------------------

class CacheError(MarketSizingError):
    """Raised when a persistent cache store cannot be opened."""

    def __init__(
        self,
        message: str = "Cache operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(MarketSizingError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Caller-visible errors
# ---------------------------------------------------------------------------

class CalculationError(MarketSizingError):
    """Raised when a calculator receives input it cannot work with."""

    def __init__(
        self,
        message: str = "Invalid calculation input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AggregateFailureError(MarketSizingError):
    """Raised when no eligible provider could answer a query.

    Carries one :class:`ProviderAttempt` per provider that was consulted so
    the caller can see why each source failed.
    """

    def __init__(
        self,
        query_description: str,
        attempts: list[ProviderAttempt],
    ) -> None:
        self._query_description = query_description
        self._attempts = list(attempts)
        if self._attempts:
            reasons = "; ".join(attempt.describe() for attempt in self._attempts)
        else:
            reasons = "no provider supports this query"
        super().__init__(
            message=f"No data source could answer {query_description}: {reasons}",
        )

    @property
    def attempts(self) -> list[ProviderAttempt]:
        return list(self._attempts)

    @property
    def query_description(self) -> str:
        return self._query_description
