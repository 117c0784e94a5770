"""Market sizing core: provider orchestration, outcome-aware caching, and
derived market metrics (TAM, SAM/SOM, forecasts, cross-source validation).

Build the service and its collaborators with
:func:`market_sizing.main.build_components` and release them with
:func:`market_sizing.main.close_components`.
"""

__version__ = "0.1.0"
