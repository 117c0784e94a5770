"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# This class uses pydantic-settings to read configuration from TWO
# sources (in priority order):
#
#   1. **Environment variables**: e.g., FRED_API_KEY=abc123
#      (highest priority: always wins)
#   2. **.env file**: key=value lines in the project root .env file
#      (lower priority: used for local development)
#
# Field name `fred_api_key` maps to env var `FRED_API_KEY`.
#
# An empty API key means "not configured": the adapter reports
# is_available() == False and the orchestrator skips it.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Market sizing settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Data source credentials ===
    alpha_vantage_api_key: str = ""
    fred_api_key: str = ""
    bls_api_key: str = ""        # optional: unregistered access has lower daily limits
    census_api_key: str = ""     # optional for County Business Patterns
    nasdaq_api_key: str = ""

    # === Data source behaviour ===
    request_timeout_seconds: float = 30.0
    # Overall budget for one resolve() call; 0 disables the deadline.
    resolve_deadline_seconds: float = 0.0
    # Comma-separated preference order; empty uses config.yaml / built-in order.
    provider_priority: str = ""
    enable_reference_fallback: bool = True

    # === Cache ===
    cache_type: str = "memory"  # "memory" or "hybrid"
    cache_max_size: int = 2048
    cache_ttl_success_ms: int = 60 * 60 * 1000
    cache_ttl_no_data_ms: int = 5 * 60 * 1000
    cache_ttl_rate_limited_ms: int = 60 * 1000
    # Empty string = no on-disk persistence.
    cache_persist_path: str = ""
    redis_url: str = "redis://localhost:6379/0"
    cache_fallback_timeout_ms: int = 1000

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    def get_configured_providers(self) -> list[str]:
        """Return provider names whose credentials are present or not required."""
        providers: list[str] = []
        if self.alpha_vantage_api_key:
            providers.append("alpha_vantage")
        providers.append("census")
        if self.fred_api_key:
            providers.append("fred")
        providers.append("world_bank")
        providers.append("bls")
        if self.nasdaq_api_key:
            providers.append("nasdaq")
        providers.append("oecd")
        providers.append("imf")
        return providers

    def get_provider_priority(self) -> list[str]:
        """Return the explicit provider order from ``PROVIDER_PRIORITY``, if any."""
        return [name.strip() for name in self.provider_priority.split(",") if name.strip()]
