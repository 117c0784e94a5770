"""Cache models: outcome tags, TTL policy, and stored entries.

Every adapter call is tagged with an :class:`Outcome`.  The outcome, not
the caller, decides how long the result is kept:

    SUCCESS            long   (default 1 hour)
    CONFIRMED_NO_DATA  medium (default 5 minutes)
    RATE_LIMITED       short  (default 1 minute)
    TRANSIENT_ERROR    never cached

The cache is the single owner of TTL state.  Callers hand it a value and
an outcome; :class:`OutcomeTtlPolicy` turns the outcome into a TTL and the
cache stamps a frozen :class:`CacheEntry`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Outcome(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """Classification of a single provider call, used to pick a TTL."""

    SUCCESS = "success"
    CONFIRMED_NO_DATA = "confirmed_no_data"
    RATE_LIMITED = "rate_limited"
    TRANSIENT_ERROR = "transient_error"


class OutcomeTtlPolicy(BaseModel):
    """Maps each :class:`Outcome` to a TTL in milliseconds.

    The ordering ``rate_limited < confirmed_no_data < success`` is enforced
    at construction: a known-empty answer is re-checked sooner than real
    data, and a rate limit is backed off for the shortest window of all.
    A TTL of 0 means "do not cache".
    """

    model_config = ConfigDict(frozen=True)

    success_ms: int = Field(default=60 * 60 * 1000, gt=0)
    confirmed_no_data_ms: int = Field(default=5 * 60 * 1000, gt=0)
    rate_limited_ms: int = Field(default=60 * 1000, gt=0)
    transient_error_ms: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_ordering(self) -> OutcomeTtlPolicy:
        if not self.rate_limited_ms < self.confirmed_no_data_ms < self.success_ms:
            raise ValueError(
                "TTL policy must satisfy rate_limited < confirmed_no_data < success "
                f"(got {self.rate_limited_ms} / {self.confirmed_no_data_ms} / {self.success_ms})"
            )
        return self

    def ttl_for(self, outcome: Outcome) -> int:
        """Return the TTL in milliseconds for *outcome*."""
        return {
            Outcome.SUCCESS: self.success_ms,
            Outcome.CONFIRMED_NO_DATA: self.confirmed_no_data_ms,
            Outcome.RATE_LIMITED: self.rate_limited_ms,
            Outcome.TRANSIENT_ERROR: self.transient_error_ms,
        }[outcome]


class CacheEntry(BaseModel):
    """A single stored value.

    ``stored_at`` is epoch seconds; ``stored_at + ttl_ms / 1000`` is the
    authoritative expiry instant.  Entries are never mutated; refreshing
    a key stores a brand-new entry.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    value: Any = None
    stored_at: float
    ttl_ms: int
    outcome: Outcome

    @property
    def expires_at(self) -> float:
        return self.stored_at + self.ttl_ms / 1000.0

    def is_expired(self, now: float) -> bool:
        """Return ``True`` once *now* is strictly past the expiry instant."""
        return now > self.expires_at

    @property
    def stored_at_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.stored_at, tz=timezone.utc)


class CacheStats(BaseModel):
    """Hit/miss counters reported by cache providers."""

    hits: int = 0
    misses: int = 0
    size: int = 0
    last_refreshed: datetime | None = None
