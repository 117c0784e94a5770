"""Shared HTTP plumbing for data-source adapters.

Every adapter follows the same outcome rules, so they live here once:

    HTTP 429 / provider rate-limit body    -> RATE_LIMITED
    valid response, absent/sentinel value  -> CONFIRMED_NO_DATA
    transport failure, 5xx, bad payload    -> TRANSIENT_ERROR
    missing or rejected credential         -> TRANSIENT_ERROR

Subclasses implement :meth:`_fetch`, which returns a
:class:`NormalizedResult` on success and ``None`` for a confirmed empty
answer.  It signals a rate limit by raising :class:`RateLimitError`, a
broken response by raising :class:`DataSourceError`, and a missing or
rejected credential by raising :class:`ProviderUnavailableError`;
:meth:`fetch` turns those into a :class:`FetchResult` so nothing expected
ever escapes.  Credential failures are never cached, so fixing the key
takes effect on the next call.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any

import httpx
import structlog

from market_sizing.interfaces.data_source_provider import IDataSourceProvider
from market_sizing.models.market import FetchResult, MarketQuery, NormalizedResult
from market_sizing.utils.errors import DataSourceError, ProviderUnavailableError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_TIMEOUT = 30.0

# Placeholder strings providers use instead of a real number.
_MISSING_SENTINELS = frozenset({"", ".", "-", "none", "null", "n/a", "na", "nan"})


def is_missing(value: Any) -> bool:
    """Return ``True`` for ``None``, sentinel strings, and empty containers."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() in _MISSING_SENTINELS
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def parse_number(value: Any, *, zero_is_missing: bool = False) -> float | None:
    """Parse a provider value into a float.

    Returns ``None`` for missing values (and for zero when
    *zero_is_missing* is set).  Raises :class:`ValueError` for anything
    else that is not a number.
    """
    if is_missing(value):
        return None
    if isinstance(value, str):
        value = value.replace(",", "").strip()
    number = float(value)
    if zero_is_missing and number == 0:
        return None
    return number


class HttpDataSourceProvider(IDataSourceProvider):
    """Base class for adapters that talk JSON over HTTP.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient``, shared across adapters.
    api_key:
        Credential for the provider; empty when not configured.
    timeout:
        Per-request timeout in seconds.
    """

    provider_name: str = ""
    base_url: str = ""
    # Whether is_available() requires a non-empty api_key.
    requires_api_key: bool = False
    confidence: float = 0.8

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str | None = None,
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._timeout = timeout
        if base_url is not None:
            self.base_url = base_url

    # ------------------------------------------------------------------
    # IDataSourceProvider implementation
    # ------------------------------------------------------------------

    def get_provider_name(self) -> str:
        return self.provider_name

    def is_available(self) -> bool:
        return bool(self._api_key) or not self.requires_api_key

    async def fetch(self, query: MarketQuery) -> FetchResult:
        name = self.get_provider_name()
        try:
            if not self.is_available():
                raise ProviderUnavailableError("API key not configured", provider_name=name)
            result = await self._fetch(query)
        except ProviderUnavailableError as exc:
            logger.warning("provider_unavailable", provider=name, reason=exc.message)
            return FetchResult.transient(exc.message)
        except RateLimitError as exc:
            logger.warning("provider_rate_limited", provider=name, reason=exc.message)
            return FetchResult.rate_limited(exc.message)
        except DataSourceError as exc:
            logger.warning("provider_request_failed", provider=name, error=exc.message)
            return FetchResult.transient(exc.message)
        except httpx.TimeoutException as exc:
            logger.warning("provider_timeout", provider=name, error=str(exc))
            return FetchResult.transient(f"timed out after {self._timeout}s")
        except httpx.HTTPError as exc:
            logger.warning("provider_request_failed", provider=name, error=str(exc))
            return FetchResult.transient(f"HTTP error: {exc}")
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("provider_malformed_payload", provider=name, error=repr(exc))
            return FetchResult.transient(f"malformed payload: {exc!r}")

        if result is None:
            logger.info("provider_no_data", provider=name, query=query.describe())
            return FetchResult.no_data()
        logger.info("provider_success", provider=name, query=query.describe())
        return FetchResult.success(result)

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    @abstractmethod
    async def _fetch(self, query: MarketQuery) -> NormalizedResult | None:
        """Perform the provider call; ``None`` means a confirmed empty answer."""

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await self._http.get(
            self._url(path), params=params, timeout=self._timeout
        )
        return self._decode(response)

    async def _post_json(self, path: str, payload: dict[str, Any]) -> Any:
        response = await self._http.post(
            self._url(path), json=payload, timeout=self._timeout
        )
        return self._decode(response)

    def _url(self, path: str) -> str:
        if not path:
            return self.base_url
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _decode(self, response: httpx.Response) -> Any:
        """Map the HTTP status to an outcome and parse the JSON body.

        Returns ``None`` for an empty body (204 or zero-length), which
        callers treat as a confirmed empty answer.
        """
        name = self.get_provider_name()
        status = response.status_code
        if status == 429:
            raise RateLimitError("HTTP 429 Too Many Requests", provider_name=name)
        if status in (401, 403):
            raise ProviderUnavailableError(f"credentials rejected (HTTP {status})", provider_name=name)
        if status == 404:
            return None
        if status >= 500:
            raise DataSourceError(f"HTTP {status} from upstream", provider_name=name)
        if status >= 400:
            raise DataSourceError(f"HTTP {status}: {response.text[:200]}", provider_name=name)
        if status == 204 or not response.content.strip():
            return None
        return response.json()

    def _result(self, value: float | dict[str, Any], **details: Any) -> NormalizedResult:
        return NormalizedResult(
            value=value,
            source=self.get_provider_name(),
            details=details,
            confidence=self.confidence,
        )
