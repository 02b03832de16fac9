from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd
from loguru import logger

from .config import CATALOG_SNAPSHOT_PATH, Bucket, Item, Vendor, VendorMetrics
from .normalize import basic_clean


# ---------------------------
# Field parsing helpers
# ---------------------------

def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return value is pd.NaT


def _pick(raw: Mapping[str, Any], *keys: str, default=None):
    """Return the first present, non-missing value among ``keys``."""
    for key in keys:
        if key in raw and not _is_missing(raw[key]):
            return raw[key]
    return default


def _coerce_str(value, default: str = "") -> str:
    if _is_missing(value):
        return default
    # ids that went through a float column (1 -> 1.0) keep their integer form
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _coerce_count(value) -> int:
    """Engagement counters: absent, negative or junk -> 0."""
    try:
        if _is_missing(value) or isinstance(value, bool):
            return 0
        if isinstance(value, (int, float)):
            return max(0, int(value))
        s = str(value).strip()
        return max(0, int(float(s))) if s else 0
    except (TypeError, ValueError, OverflowError):
        return 0


def _coerce_price(value) -> float:
    try:
        if _is_missing(value) or isinstance(value, bool):
            return 0.0
        price = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(price) or math.isinf(price):
        return 0.0
    return max(0.0, price)


def _coerce_optional_float(value) -> Optional[float]:
    try:
        if _is_missing(value) or isinstance(value, bool):
            return None
        out = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(out) else out


def _coerce_bool(value, default: bool) -> bool:
    """
    Normalize a flag to a bool.

    Recognised strings map to True/False; anything else keeps ``default``.
    """
    if _is_missing(value):
        return default
    if isinstance(value, str):
        v = value.strip().lower()
        if v in {"yes", "y", "true", "1", "on"}:
            return True
        if v in {"no", "n", "false", "0", "off"}:
            return False
        return default
    return bool(value)


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parse a stored timestamp into an aware UTC datetime.

    Accepted shapes:
      - datetime / pandas.Timestamp (naive values are taken as UTC)
      - {"seconds": .., "nanoseconds": ..} or {"_seconds": ..} store maps
      - int / float epoch milliseconds
      - ISO-8601 or other strings pandas can parse
    Anything else -> None.
    """
    if _is_missing(value) or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, Mapping):
        seconds = _pick(value, "seconds", "_seconds")
        if seconds is None:
            return None
        nanos = _pick(value, "nanoseconds", "_nanoseconds", default=0)
        try:
            ts = float(seconds) + float(nanos) / 1e9
            return datetime.fromtimestamp(ts, tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            return None

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None

    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        return parse_timestamp(int(text))
    parsed = pd.to_datetime(text, utc=True, errors="coerce")
    if _is_missing(parsed):
        return None
    return parsed.to_pydatetime()


# ---------------------------
# Record normalization
# ---------------------------

def normalize_item(raw: Mapping[str, Any], default_bucket_id: str = "") -> Item:
    """
    Turn a raw store document into a fully-populated Item.

    Keys are read in the store's camelCase with snake_case as a fallback.
    An empty bucket id falls back to ``default_bucket_id``.
    """
    bucket_id = _coerce_str(_pick(raw, "bucketId", "bucket_id")) or default_bucket_id
    return Item(
        id=_coerce_str(_pick(raw, "id", "item_id")),
        name=basic_clean(_coerce_str(_pick(raw, "name"))),
        description=basic_clean(_coerce_str(_pick(raw, "description"))),
        category=basic_clean(_coerce_str(_pick(raw, "category"))),
        bucket_id=bucket_id,
        price=_coerce_price(_pick(raw, "price")),
        in_stock=_coerce_bool(_pick(raw, "inStock", "in_stock"), default=True),
        vendor_id=_coerce_str(_pick(raw, "vendorId", "vendor_id")),
        vendor_name=basic_clean(_coerce_str(_pick(raw, "vendorName", "vendor_name"))),
        view_count=_coerce_count(_pick(raw, "viewCount", "view_count")),
        order_count=_coerce_count(_pick(raw, "orderCount", "order_count")),
        cart_count=_coerce_count(_pick(raw, "cartCount", "cart_count")),
        compare_count=_coerce_count(_pick(raw, "compareCount", "compare_count")),
        created_at=parse_timestamp(_pick(raw, "createdAt", "created_at")),
        updated_at=parse_timestamp(_pick(raw, "updatedAt", "updated_at")),
    )


def normalize_vendor(raw: Mapping[str, Any]) -> Vendor:
    metrics_raw = _pick(raw, "metrics")
    metrics: Optional[VendorMetrics] = None
    if isinstance(metrics_raw, Mapping):
        metrics = VendorMetrics(
            responsiveness_score=_coerce_optional_float(
                _pick(metrics_raw, "responsivenessScore", "responsiveness_score")
            ),
            trust_score=_coerce_optional_float(_pick(metrics_raw, "trustScore", "trust_score")),
            average_response_minutes=_coerce_optional_float(
                _pick(metrics_raw, "averageResponseMinutes", "average_response_minutes")
            ),
            response_rate=_coerce_optional_float(_pick(metrics_raw, "responseRate", "response_rate")),
        )

    return Vendor(
        id=_coerce_str(_pick(raw, "id", "vendor_id")),
        name=basic_clean(_coerce_str(_pick(raw, "name"))),
        business_name=basic_clean(_coerce_str(_pick(raw, "businessName", "business_name"))),
        is_active_now=_coerce_bool(_pick(raw, "isActiveNow", "is_active_now"), default=False),
        is_verified=_coerce_bool(_pick(raw, "isVerified", "is_verified"), default=False),
        metrics=metrics,
    )


def normalize_bucket(raw: Mapping[str, Any]) -> Bucket:
    return Bucket(
        id=_coerce_str(_pick(raw, "id", "bucket_id")),
        name=basic_clean(_coerce_str(_pick(raw, "name"))),
    )


def default_bucket_id(buckets: Iterable[Bucket]) -> str:
    """Id of the catch-all "Products" bucket, or "" if there is none."""
    for bucket in buckets:
        if "product" in bucket.name.lower():
            return bucket.id
    return ""


# ---------------------------
# Catalog context
# ---------------------------

@dataclass
class Catalog:
    """
    In-memory view of the marketplace handed to search and recommendation.
    Passed explicitly; nothing in the package keeps a module-level copy.
    """

    items: List[Item] = field(default_factory=list)
    vendors: List[Vendor] = field(default_factory=list)
    buckets: List[Bucket] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)

    def item_by_id(self, item_id: str) -> Optional[Item]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def vendor_map(self) -> Dict[str, Vendor]:
        return {v.id: v for v in self.vendors}


def _distinct_categories(items: Iterable[Item]) -> List[str]:
    seen: List[str] = []
    for item in items:
        if item.category and item.category not in seen:
            seen.append(item.category)
    return seen


def build_catalog(
    raw_items: Iterable[Mapping[str, Any]],
    raw_vendors: Iterable[Mapping[str, Any]] = (),
    raw_buckets: Iterable[Mapping[str, Any]] = (),
    categories: Optional[Iterable[str]] = None,
) -> Catalog:
    """
    Normalize raw documents into a Catalog.

    Documents without an id are dropped (they cannot be tracked or
    recommended).  Category labels default to the item categories in
    first-seen order.
    """
    buckets = [normalize_bucket(b) for b in raw_buckets]
    buckets = [b for b in buckets if b.id]
    fallback_bucket = default_bucket_id(buckets)

    items: List[Item] = []
    for raw in raw_items:
        item = normalize_item(raw, default_bucket_id=fallback_bucket)
        if not item.id:
            logger.warning("Skipping catalog item without id: {}", raw.get("name", "<unnamed>"))
            continue
        items.append(item)

    vendors = [normalize_vendor(v) for v in raw_vendors]
    vendors = [v for v in vendors if v.id]

    if categories is None:
        labels = _distinct_categories(items)
    else:
        labels = [basic_clean(c) for c in categories if basic_clean(c)]

    logger.info(
        "Built catalog: {} items, {} vendors, {} buckets, {} categories",
        len(items), len(vendors), len(buckets), len(labels),
    )
    return Catalog(items=items, vendors=vendors, buckets=buckets, categories=labels)


# ---------------------------
# IO helpers
# ---------------------------

def load_items_table(path: Path) -> List[Dict[str, Any]]:
    """
    Load raw item documents from a flat table (.csv, .parquet or JSON records).
    """
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    ext = path.suffix.lower()
    if ext == ".csv":
        df = pd.read_csv(path, encoding="utf-8", dtype={"id": str})
    elif ext == ".parquet":
        df = pd.read_parquet(path)
    elif ext in {".json", ".jsonl"}:
        df = pd.read_json(path, orient="records", lines=ext == ".jsonl", dtype={"id": str})
    else:
        raise ValueError(f"Unsupported item table format: {path.suffix}")
    logger.info("Loaded {} raw item rows from {}", len(df), path)
    return df.to_dict(orient="records")


def load_catalog_snapshot(path: Path = CATALOG_SNAPSHOT_PATH) -> Catalog:
    """
    Load a catalog snapshot.

    A ``.json`` snapshot is a document with ``items``, ``vendors``,
    ``buckets`` and optional ``categories`` arrays.  Any other supported
    extension is read as a bare item table.
    """
    path = Path(path)
    logger.info("Loading catalog snapshot from {}", path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    if path.suffix.lower() != ".json":
        return build_catalog(load_items_table(path))

    with path.open("r", encoding="utf-8") as f:
        doc = json.load(f)

    if isinstance(doc, list):
        return build_catalog(doc)
    if not isinstance(doc, dict):
        raise ValueError(f"Catalog snapshot must be a JSON object or array, got {type(doc).__name__}")

    # Route the item table through pandas so JSON and tabular snapshots
    # reach normalize_item with the same value shapes.
    items_df = pd.DataFrame(doc.get("items") or [])
    raw_items = items_df.to_dict(orient="records") if not items_df.empty else []

    return build_catalog(
        raw_items,
        raw_vendors=doc.get("vendors") or [],
        raw_buckets=doc.get("buckets") or [],
        categories=doc.get("categories"),
    )
