"""Data-source adapters, one per external API.

All adapters share :class:`HttpDataSourceProvider`, which maps HTTP
statuses and provider-specific bodies to outcomes.  ``ADAPTER_CLASSES``
lists them in the default preference order.
"""

from market_sizing.providers.data_source.alpha_vantage_provider import AlphaVantageProvider
from market_sizing.providers.data_source.bls_provider import BlsProvider
from market_sizing.providers.data_source.census_provider import CensusProvider
from market_sizing.providers.data_source.fred_provider import FredProvider
from market_sizing.providers.data_source.http_base import HttpDataSourceProvider
from market_sizing.providers.data_source.imf_provider import ImfProvider
from market_sizing.providers.data_source.nasdaq_provider import NasdaqDataLinkProvider
from market_sizing.providers.data_source.oecd_provider import OecdProvider
from market_sizing.providers.data_source.world_bank_provider import WorldBankProvider

ADAPTER_CLASSES: dict[str, type[HttpDataSourceProvider]] = {
    cls.provider_name: cls
    for cls in (
        AlphaVantageProvider,
        CensusProvider,
        FredProvider,
        WorldBankProvider,
        BlsProvider,
        NasdaqDataLinkProvider,
        OecdProvider,
        ImfProvider,
    )
}

__all__ = [
    "ADAPTER_CLASSES",
    "AlphaVantageProvider",
    "BlsProvider",
    "CensusProvider",
    "FredProvider",
    "HttpDataSourceProvider",
    "ImfProvider",
    "NasdaqDataLinkProvider",
    "OecdProvider",
    "WorldBankProvider",
]
