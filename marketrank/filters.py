from __future__ import annotations

"""
Catalog filters and the default ("smart") sort used when there is no query.

Filters run before ranking so a search only ever scores what the shopper
is allowed to see.  The smart sort orders an unsearched listing by:

  1. urgent buckets first (only while Instant Buy is on)
  2. in-stock before out-of-stock
  3. vendor quality (active now, fast responses, high trust)
  4. most recently updated / created
"""

from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence

from loguru import logger

from . import config
from .config import Bucket, FilterOptions, Item, Vendor
from .normalize import normalize_label

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# ---------------------------
# Vendor signals
# ---------------------------

def is_instant_buy(item: Item, vendor: Optional[Vendor]) -> bool:
    """
    In stock AND (fast responder OR active now).

    Vendors without response metrics get the benefit of the doubt and count
    as fast, so new vendors are not hidden.
    """
    if vendor is None or not item.in_stock:
        return False
    minutes = vendor.metrics.average_response_minutes if vendor.metrics else None
    is_fast = minutes < config.INSTANT_BUY_RESPONSE_MINUTES if minutes is not None else True
    return is_fast or vendor.is_active_now


def vendor_quality_score(vendor: Optional[Vendor]) -> int:
    if vendor is None:
        return 0
    metrics = vendor.metrics
    minutes = metrics.average_response_minutes if metrics else None
    trust = metrics.trust_score if metrics else None

    score = 0
    if vendor.is_active_now:
        score += config.VENDOR_ACTIVE_POINTS
    # a zero average means no responses were recorded yet
    if (minutes or config.MISSING_RESPONSE_MINUTES) < config.FAST_RESPONSE_MINUTES:
        score += config.VENDOR_FAST_POINTS
    if (trust or 0) > config.HIGH_TRUST_SCORE:
        score += config.VENDOR_TRUST_POINTS
    return score


# ---------------------------
# Filters
# ---------------------------

def _bucket_matches(item: Item, selected: Sequence[str], buckets: Sequence[Bucket]) -> bool:
    if not item.bucket_id:
        return False
    item_bucket = normalize_label(item.bucket_id)
    if item_bucket in selected:
        return True
    # items may carry the bucket name; the selection is matched against ids
    for bucket in buckets:
        if bucket.id == item.bucket_id or normalize_label(bucket.name) == item_bucket:
            if normalize_label(bucket.id) in selected:
                return True
    return False


def _price_ok(item: Item, price_min: Optional[float], price_max: Optional[float]) -> bool:
    lo = price_min or 0.0
    hi = price_max if price_max else float("inf")
    return lo <= item.price <= hi


def apply_filters(
    items: Sequence[Item],
    vendors: Sequence[Vendor],
    buckets: Sequence[Bucket],
    options: Optional[FilterOptions] = None,
) -> List[Item]:
    """Apply Instant Buy, bucket, category and price filters in that order."""
    options = options or FilterOptions()
    filtered = list(items)

    if options.instant_buy:
        by_id: Mapping[str, Vendor] = {v.id: v for v in vendors}
        filtered = [p for p in filtered if is_instant_buy(p, by_id.get(p.vendor_id))]

    if options.buckets:
        selected = [normalize_label(b) for b in options.buckets]
        filtered = [p for p in filtered if _bucket_matches(p, selected, buckets)]

    if options.categories:
        selected_cats = {normalize_label(c) for c in options.categories}
        filtered = [p for p in filtered if p.category and normalize_label(p.category) in selected_cats]

    filtered = [p for p in filtered if _price_ok(p, options.price_min, options.price_max)]

    logger.debug("Filters kept {} of {} items", len(filtered), len(items))
    return filtered


# ---------------------------
# Default sort
# ---------------------------

def _last_touched(item: Item) -> datetime:
    ts = item.updated_at or item.created_at
    if ts is None:
        return _EPOCH
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def smart_sort(
    items: Sequence[Item],
    vendors: Sequence[Vendor],
    buckets: Sequence[Bucket],
    instant_buy: bool = False,
) -> List[Item]:
    vendor_by_id: Dict[str, Vendor] = {v.id: v for v in vendors}
    bucket_names: Dict[str, str] = {b.id: b.name for b in buckets}

    def sort_key(item: Item):
        urgent = instant_buy and bucket_names.get(item.bucket_id, "") in config.URGENT_BUCKETS
        quality = vendor_quality_score(vendor_by_id.get(item.vendor_id))
        return (
            0 if urgent else 1,
            0 if item.in_stock else 1,
            -quality,
            -_last_touched(item).timestamp(),
        )

    return sorted(items, key=sort_key)
