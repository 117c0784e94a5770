"""Provider orchestration: the single entry point for resolving market queries."""

from market_sizing.pipeline.orchestrator import MOCK_SOURCE, DataSourceOrchestrator

__all__ = ["MOCK_SOURCE", "DataSourceOrchestrator"]
