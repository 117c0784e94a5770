"""Static reference figures used as the last-resort fallback.

When every live data source fails for a market-size query, the
orchestrator may answer from this table instead of raising, but the
result is always labelled ``source="mock"`` so callers can tell a
reference figure apart from a live observation.

Keys are industry identifiers; each entry records the region it applies
to.  The fallback lookup only matches when both the industry and the region
agree.  The same table doubles as a small industry catalogue for search
and lookup by id; REFERENCE_SEGMENT_SHARES holds the customer-segment
split per industry.
"""

from __future__ import annotations

from typing import Any

REFERENCE_MARKET_SIZES: dict[str, dict[str, Any]] = {
    "tech-software": {
        "id": "tech-software",
        "name": "Software Technology",
        "country": "USA",
        "market_size": 659e9,
        "year": 2023,
    },
    "tech-ai": {
        "id": "tech-ai",
        "name": "AI Technology",
        "country": "USA",
        "market_size": 328e9,
        "year": 2023,
    },
}

# Region aliases accepted for the reference table's "country" field.
_REGION_ALIASES: dict[str, set[str]] = {
    "USA": {"USA", "US", "UNITED STATES"},
}


def lookup_reference_market_size(
    industry_id: str,
    region: str,
    table: dict[str, dict[str, Any]] | None = None,
) -> dict[str, Any] | None:
    """Return the reference entry for *industry_id* in *region*, or ``None``."""
    table = REFERENCE_MARKET_SIZES if table is None else table
    entry = table.get(industry_id)
    if entry is None:
        return None
    country = str(entry.get("country", "")).upper()
    accepted = _REGION_ALIASES.get(country, {country})
    if region.upper() not in accepted:
        return None
    return dict(entry)


# Customer-segment split, in percent of the whole market.  Shares for one
# industry sum to 100.
REFERENCE_SEGMENT_SHARES: dict[str, list[tuple[str, float]]] = {
    "tech-software": [("Enterprise", 45.0), ("SMB", 35.0), ("Consumer", 20.0)],
    "tech-ai": [("Enterprise", 45.0), ("SMB", 35.0), ("Consumer", 20.0)],
}


def get_reference_industry(
    industry_id: str,
    table: dict[str, dict[str, Any]] | None = None,
) -> dict[str, Any] | None:
    """Return the catalogue entry for *industry_id* regardless of region."""
    table = REFERENCE_MARKET_SIZES if table is None else table
    entry = table.get(industry_id)
    return dict(entry) if entry is not None else None


def search_reference_industries(
    text: str,
    table: dict[str, dict[str, Any]] | None = None,
) -> list[dict[str, Any]]:
    """Case-insensitive substring search over industry names, in table order.

    An empty or blank *text* matches every entry.
    """
    table = REFERENCE_MARKET_SIZES if table is None else table
    needle = text.strip().lower()
    return [dict(entry) for entry in table.values() if needle in str(entry.get("name", "")).lower()]
