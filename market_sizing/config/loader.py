"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml : Static defaults checked into the repo
#                            (provider order, SAM factors, scenario rates)
#   2. .env file          : Local developer overrides (not committed)
#   3. Environment vars   : Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges
# environment-based values on top:
#   base = {"cache": {"max_size": 2048}}
#   overrides = {"cache": {"type": "hybrid"}}
#   result = {"cache": {"max_size": 2048, "type": "hybrid"}}
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from market_sizing.config.settings import Settings

DEFAULT_PROVIDER_PRIORITY = [
    "alpha_vantage",
    "census",
    "fred",
    "world_bank",
    "bls",
    "nasdaq",
    "oecd",
    "imf",
]


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is read when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    yaml_config.setdefault("providers", {}).setdefault("priority", list(DEFAULT_PROVIDER_PRIORITY))

    settings = settings or Settings()
    env_overrides: dict = {
        "app": {
            "env": settings.app_env,
        },
        "providers": {
            "request_timeout_seconds": settings.request_timeout_seconds,
            "resolve_deadline_seconds": settings.resolve_deadline_seconds,
            "configured": settings.get_configured_providers(),
            "enable_reference_fallback": settings.enable_reference_fallback,
        },
        "cache": {
            "type": settings.cache_type,
            "max_size": settings.cache_max_size,
            "persist_path": settings.cache_persist_path,
            "redis_url": settings.redis_url,
            "fallback_timeout_ms": settings.cache_fallback_timeout_ms,
            "ttl_ms": {
                "success": settings.cache_ttl_success_ms,
                "confirmed_no_data": settings.cache_ttl_no_data_ms,
                "rate_limited": settings.cache_ttl_rate_limited_ms,
            },
        },
        "logging": {
            "level": settings.log_level,
        },
    }
    # Only an explicit PROVIDER_PRIORITY replaces the YAML order.
    explicit_priority = settings.get_provider_priority()
    if explicit_priority:
        env_overrides["providers"]["priority"] = explicit_priority

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
