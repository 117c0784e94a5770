"""Query and result models for provider orchestration.

A :class:`MarketQuery` is the logical question ("market size of X in Y").
Each adapter turns it into one provider-specific call and answers with a
:class:`FetchResult`: an :class:`Outcome` plus, on success, a
:class:`NormalizedResult`.  The orchestrator folds those into a single
:class:`MarketSizeResult` whose ``source`` always names the adapter that
produced the value (or ``"mock"`` for the static fallback).
"""

from __future__ import annotations

import hashlib
import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from market_sizing.models.cache import Outcome

_MAX_KEY_LENGTH = 200


class QueryKind(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """Logical query kinds; adapters declare which ones they can serve."""

    MARKET_SIZE = "market_size"
    ECONOMIC_SERIES = "economic_series"
    EMPLOYMENT = "employment"
    COMPANY_OVERVIEW = "company_overview"


class MarketQuery(BaseModel):
    """A provider-independent request for one fact.

    ``industry_id`` is interpreted per adapter: a ticker for Alpha Vantage,
    a series id for FRED, a NAICS code for Census, a CES industry code
    for BLS (up to eight digits, right-padded with zeros), an indicator
    code for the World Bank.  ``params`` carries optional provider hints
    (``series_id``, ``indicator``, ``measure``, ``year``,
    ``database_code``/``dataset_code``, ``dataset_id``, ...).
    """

    model_config = ConfigDict(frozen=True)

    kind: QueryKind = QueryKind.MARKET_SIZE
    industry_id: str = Field(min_length=1)
    region: str = "US"
    params: dict[str, Any] = Field(default_factory=dict)

    def param(self, name: str, default: Any = None) -> Any:
        return self.params.get(name, default)

    def cache_key(self, provider_name: str) -> str:
        """Build a key that is deterministic in provider name and parameters."""
        params_part = json.dumps(self.params, sort_keys=True, default=str, separators=(",", ":"))
        key_string = ":".join(
            [self.kind.value, self.industry_id, self.region.upper(), params_part]
        )
        if len(key_string) > _MAX_KEY_LENGTH:
            key_hash = hashlib.sha256(key_string.encode()).hexdigest()
            return f"{provider_name}:hash:{key_hash}"
        return f"{provider_name}:{key_string}"

    def describe(self) -> str:
        return f"{self.kind.value} for '{self.industry_id}' in {self.region}"


class NormalizedResult(BaseModel):
    """A provider response reduced to the common shape.

    Constructed fresh per adapter call and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    value: float | dict[str, Any]
    source: str
    details: dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)


class FetchResult(BaseModel):
    """What an adapter returns for one call: outcome, optional result, reason."""

    model_config = ConfigDict(frozen=True)

    outcome: Outcome
    result: NormalizedResult | None = None
    message: str = ""

    @classmethod
    def success(cls, result: NormalizedResult) -> FetchResult:
        return cls(outcome=Outcome.SUCCESS, result=result)

    @classmethod
    def no_data(cls, message: str = "provider returned no data") -> FetchResult:
        return cls(outcome=Outcome.CONFIRMED_NO_DATA, message=message)

    @classmethod
    def rate_limited(cls, message: str = "rate limit reached") -> FetchResult:
        return cls(outcome=Outcome.RATE_LIMITED, message=message)

    @classmethod
    def transient(cls, message: str) -> FetchResult:
        return cls(outcome=Outcome.TRANSIENT_ERROR, message=message)


class ProviderAttempt(BaseModel):
    """One provider's contribution to a resolve() call.

    ``outcome`` is ``None`` when the provider was skipped because it is not
    configured (missing credential).
    """

    model_config = ConfigDict(frozen=True)

    provider: str
    outcome: Outcome | None = None
    message: str = ""
    from_cache: bool = False

    def describe(self) -> str:
        status = self.outcome.value if self.outcome is not None else "unavailable"
        suffix = " (cached)" if self.from_cache else ""
        if self.message:
            return f"{self.provider}: {status}{suffix} - {self.message}"
        return f"{self.provider}: {status}{suffix}"


class MarketSizeResult(BaseModel):
    """The orchestrator's answer to a :class:`MarketQuery`."""

    model_config = ConfigDict(frozen=True)

    value: float | dict[str, Any]
    source: str
    details: dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    from_cache: bool = False
    attempts: list[ProviderAttempt] = Field(default_factory=list)

    @property
    def numeric_value(self) -> float | None:
        """The value as a float, or ``None`` when the provider returned a mapping."""
        if isinstance(self.value, (int, float)):
            return float(self.value)
        return None
