from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from loguru import logger

from . import config
from .config import Item, SearchSuggestions, Vendor
from .normalize import normalize_query
from .ranking import score_products


def vendor_matches(query: str, vendors: Sequence[Vendor]) -> list[Vendor]:
    """Vendors whose business or display name contains the query, input order."""
    q = normalize_query(query)
    if not q:
        return []
    return [v for v in vendors if q in v.business_name.lower() or q in v.name.lower()]


def get_search_suggestions(
    query: str,
    items: Sequence[Item],
    vendors: Sequence[Vendor],
    categories: Sequence[str],
    now: Optional[datetime] = None,
) -> SearchSuggestions:
    """
    As-you-type suggestions: top scored items, matching vendors and
    matching category labels, each capped to a few entries.
    """
    q = normalize_query(query)
    if not q:
        return SearchSuggestions()

    products = [s.item for s in score_products(items, q, now)[: config.SUGGEST_MAX_PRODUCTS]]
    matched_vendors = vendor_matches(q, vendors)[: config.SUGGEST_MAX_VENDORS]
    matched_categories = [c for c in categories if q in c.lower()][: config.SUGGEST_MAX_CATEGORIES]

    logger.debug(
        "Suggestions for {!r}: {} products, {} vendors, {} categories",
        q, len(products), len(matched_vendors), len(matched_categories),
    )
    return SearchSuggestions(
        products=products,
        vendors=matched_vendors,
        categories=matched_categories,
    )
