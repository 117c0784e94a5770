"""Concrete implementations of the interfaces in ``market_sizing.interfaces``."""
