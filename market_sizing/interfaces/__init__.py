"""Public interface definitions for the market sizing core.

Concrete adapters implement these abstract base classes and are injected
at startup (see ``market_sizing/main.py``), so the orchestrator and the
calculators never import a concrete provider.

    Interface              ->  Concrete implementations
    -----------------------------------------------------------------
    ICacheProvider         ->  MemoryCacheProvider, HybridCacheProvider
    ICachePersistence      ->  SQLiteCachePersistence
    IDataSourceProvider    ->  AlphaVantageProvider, CensusProvider,
                               FredProvider, WorldBankProvider,
                               BlsProvider, NasdaqDataLinkProvider,
                               OecdProvider, ImfProvider
"""

from market_sizing.interfaces.cache_provider import ICachePersistence, ICacheProvider
from market_sizing.interfaces.data_source_provider import IDataSourceProvider

__all__ = ["ICachePersistence", "ICacheProvider", "IDataSourceProvider"]
