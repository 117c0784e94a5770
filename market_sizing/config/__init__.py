"""Configuration module: exports Settings, load_config, and the reference fallback table."""

from market_sizing.config.loader import DEFAULT_PROVIDER_PRIORITY, load_config
from market_sizing.config.reference_data import REFERENCE_MARKET_SIZES, lookup_reference_market_size
from market_sizing.config.settings import Settings

__all__ = [
    "DEFAULT_PROVIDER_PRIORITY",
    "REFERENCE_MARKET_SIZES",
    "Settings",
    "load_config",
    "lookup_reference_market_size",
]
