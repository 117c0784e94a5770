"""Consumer-facing services."""

from market_sizing.services.market_sizing_service import MarketSizingService

__all__ = ["MarketSizingService"]
