from __future__ import annotations

"""
End-to-end catalog search:

- Filters first (Instant Buy, buckets, categories, price)
- Query present  -> heuristic ranking (ranking.rank_products)
- Query blank    -> smart default sort (filters.smart_sort)
- Vendor matches and a "did you mean?" hint ride along in the response
"""

from datetime import datetime
from typing import Optional

from loguru import logger

from . import config
from .catalog_build import Catalog
from .config import FilterOptions, SearchResponse
from .filters import apply_filters, smart_sort
from .ranking import rank_products
from .spelling import build_dictionary, get_spelling_correction
from .suggestions import vendor_matches


def did_you_mean(query: str, catalog: Catalog) -> Optional[str]:
    """Spelling hint for queries longer than a couple of characters."""
    if len(query.strip()) < config.DID_YOU_MEAN_MIN_QUERY_LEN:
        return None
    dictionary = build_dictionary(catalog.items, catalog.vendors)
    correction = get_spelling_correction(query, dictionary)
    if correction and correction.lower() != query.strip().lower():
        return correction
    return None


def run_search(
    catalog: Catalog,
    query: str,
    options: Optional[FilterOptions] = None,
    now: Optional[datetime] = None,
) -> SearchResponse:
    options = options or FilterOptions()
    query = query or ""

    filtered = apply_filters(catalog.items, catalog.vendors, catalog.buckets, options)

    if query.strip():
        products = rank_products(filtered, query, now)
        vendors = vendor_matches(query, catalog.vendors)
        hint = did_you_mean(query, catalog)
    else:
        products = smart_sort(filtered, catalog.vendors, catalog.buckets, options.instant_buy)
        vendors = []
        hint = None

    logger.info(
        "Search {!r}: {} products, {} vendors (from {} after filters)",
        query, len(products), len(vendors), len(filtered),
    )
    return SearchResponse(products=products, vendors=vendors, did_you_mean=hint)
