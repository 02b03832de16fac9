from __future__ import annotations

import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, Field


# ---------------------------
# Paths
# ---------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATA_DIR = PROJECT_ROOT / "data"
CATALOG_SNAPSHOT_PATH = Path(
    os.getenv("MARKETRANK_CATALOG_PATH", str(DATA_DIR / "catalog_snapshot.json"))
)

# Unset -> per-process in-memory history store
HISTORY_STORE_PATH: Optional[Path] = (
    Path(os.environ["MARKETRANK_HISTORY_PATH"])
    if os.getenv("MARKETRANK_HISTORY_PATH")
    else None
)


# ---------------------------
# Logging / observability
# ---------------------------

LOG_LEVEL = os.getenv("MARKETRANK_LOG_LEVEL", "INFO").upper()


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Replace loguru's default sink with a single stderr sink at ``level``."""
    logger.remove()
    logger.add(sys.stderr, level=level)


# ---------------------------
# Search scoring weights
# ---------------------------

MIN_KEYWORD_LEN = 2  # keywords shorter than this are ignored

PHRASE_NAME_BOOST = 300.0
PHRASE_CATEGORY_BOOST = 150.0

KEYWORD_NAME_WEIGHT = 100.0
KEYWORD_CATEGORY_WEIGHT = 50.0
KEYWORD_DESCRIPTION_WEIGHT = 20.0

ALL_TERMS_BONUS = 50.0
SEMANTIC_BOOST = 50.0

ENGAGEMENT_CAP = 50.0
ORDER_WEIGHT = 10
CART_WEIGHT = 5
VIEW_WEIGHT = 1

# (max age in hours, points); checked in order against created_at
FRESHNESS_CREATED_TIERS = [(48.0, 30.0), (168.0, 20.0)]
FRESHNESS_UPDATED_HOURS = 24.0
FRESHNESS_UPDATED_SCORE = 15.0
FRESHNESS_BASELINE = 5.0


# Canonical concept -> surface forms that should pull the concept in.
SEMANTIC_SYNONYMS: Dict[str, List[str]] = {
    "hostel": ["accommodation", "room", "lodge", "apartment", "house"],
    "phone": ["mobile", "smartphone", "iphone", "android", "gadget"],
    "laptop": ["pc", "computer", "macbook"],
    "food": ["meal", "eat", "restaurant", "canteen"],
    "cloth": ["fashion", "wear", "dress", "shirt"],
}


# ---------------------------
# Spelling correction
# ---------------------------

SPELLING_MIN_WORD_LEN = 3
SPELLING_MAX_DISTANCE = 2  # exclusive
DID_YOU_MEAN_MIN_QUERY_LEN = 3

CURATED_CATEGORY_LABELS: List[str] = [
    "Electronics",
    "Fashion",
    "Hostels",
    "Groceries",
    "Smartphones",
    "Laptops",
]


# ---------------------------
# Result size policy
# ---------------------------

SUGGEST_MAX_PRODUCTS = 4
SUGGEST_MAX_VENDORS = 2
SUGGEST_MAX_CATEGORIES = 3

RECOMMEND_MAX = 10
SIMILAR_MAX = 4


# ---------------------------
# Recommendation weights
# ---------------------------

HISTORY_KEY = "lautech_market_view_history"
MAX_HISTORY = 10

CATEGORY_AFFINITY_WEIGHT = 50
RECOMMEND_NEW_DAYS = 7
RECOMMEND_NEW_BONUS = 20

SIMILAR_CATEGORY_SCORE = 50
SIMILAR_BUCKET_SCORE = 30
SIMILAR_PRICE_SCORE = 20
SIMILAR_PRICE_BAND = 0.30


# ---------------------------
# Catalog filters / default sort
# ---------------------------

INSTANT_BUY_RESPONSE_MINUTES = 30
FAST_RESPONSE_MINUTES = 60
MISSING_RESPONSE_MINUTES = 999
HIGH_TRUST_SCORE = 80

VENDOR_ACTIVE_POINTS = 20
VENDOR_FAST_POINTS = 30
VENDOR_TRUST_POINTS = 20

URGENT_BUCKETS: List[str] = ["Hostel & Student Essentials", "Campus Services"]


# ---------------------------
# Pydantic models shared around the app
# ---------------------------

class Item(BaseModel):
    """
    Catalog entry as seen by the ranking code.
    Built by catalog_build.normalize_item; every field has a concrete value.
    """

    id: str
    name: str = ""
    description: str = ""
    category: str = ""
    bucket_id: str = ""
    price: float = Field(default=0.0, ge=0)
    in_stock: bool = True
    vendor_id: str = ""
    vendor_name: str = ""
    view_count: int = Field(default=0, ge=0)
    order_count: int = Field(default=0, ge=0)
    cart_count: int = Field(default=0, ge=0)
    compare_count: int = Field(default=0, ge=0)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class VendorMetrics(BaseModel):
    responsiveness_score: Optional[float] = None
    trust_score: Optional[float] = None
    average_response_minutes: Optional[float] = None
    response_rate: Optional[float] = None


class Vendor(BaseModel):
    id: str
    name: str = ""
    business_name: str = ""
    is_active_now: bool = False
    is_verified: bool = False
    metrics: Optional[VendorMetrics] = None


class Bucket(BaseModel):
    id: str
    name: str = ""


class FilterOptions(BaseModel):
    """
    Catalog filters applied before ranking.
    Empty selections mean "no restriction".
    """

    categories: List[str] = Field(default_factory=list)
    buckets: List[str] = Field(default_factory=list)
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    instant_buy: bool = False


class SearchSuggestions(BaseModel):
    """
    Response body for GET /suggest.
    """

    products: List[Item] = Field(default_factory=list)
    vendors: List[Vendor] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """
    Response body for POST /search.
    """

    products: List[Item] = Field(default_factory=list)
    vendors: List[Vendor] = Field(default_factory=list)
    did_you_mean: Optional[str] = None


class ItemListResponse(BaseModel):
    items: List[Item] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """
    Response body for GET /health.
    """

    status: str
