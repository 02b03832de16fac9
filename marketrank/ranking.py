# marketrank/ranking.py
from __future__ import annotations

"""
Heuristic search scoring for the catalog.

score = relevance + engagement + freshness

Relevance is unbounded and dominates: a phrase match in the name is worth
more than any amount of engagement or freshness.  Engagement is capped so
popular items cannot beat a good textual match, and freshness only breaks
ties between comparable matches.
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from loguru import logger

from . import config
from .config import Item
from .normalize import normalize_query, query_keywords
from .pipeline_types import ScoredItem

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow(now: Optional[datetime] = None) -> datetime:
    """Return ``now`` as an aware UTC datetime, defaulting to the current time."""
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def _hours_since(ts: Optional[datetime], now: datetime) -> float:
    # missing timestamps count as epoch-0, i.e. stale
    ts = utcnow(ts) if ts is not None else _EPOCH
    return (now - ts).total_seconds() / 3600.0


# ---------------------------------------------------------------------------
# Score components
# ---------------------------------------------------------------------------

def relevance_score(item: Item, phrase: str, keywords: Sequence[str]) -> float:
    name = item.name.lower()
    category = item.category.lower()
    description = item.description.lower()

    score = 0.0
    if phrase in name:
        score += config.PHRASE_NAME_BOOST
    if phrase in category:
        score += config.PHRASE_CATEGORY_BOOST

    n = len(keywords)
    matched = 0
    for word in keywords:
        found = False
        if word in name:
            score += config.KEYWORD_NAME_WEIGHT / n
            found = True
        if word in category:
            score += config.KEYWORD_CATEGORY_WEIGHT / n
            found = True
        if word in description:
            score += config.KEYWORD_DESCRIPTION_WEIGHT / n
            found = True
        if found:
            matched += 1

    if n > 1 and matched == n:
        score += config.ALL_TERMS_BONUS

    # Uncapped: each keyword/concept hit adds the full boost.
    for word in keywords:
        for concept, synonyms in config.SEMANTIC_SYNONYMS.items():
            if word == concept or word in synonyms:
                if concept in name or concept in category:
                    score += config.SEMANTIC_BOOST

    return score


def engagement_score(item: Item) -> float:
    points = (
        item.order_count * config.ORDER_WEIGHT
        + item.cart_count * config.CART_WEIGHT
        + item.view_count * config.VIEW_WEIGHT
    )
    return float(min(config.ENGAGEMENT_CAP, points))


def freshness_score(item: Item, now: Optional[datetime] = None) -> float:
    now = utcnow(now)
    hours_created = _hours_since(item.created_at, now)
    for max_hours, points in config.FRESHNESS_CREATED_TIERS:
        if hours_created < max_hours:
            return points
    if _hours_since(item.updated_at, now) < config.FRESHNESS_UPDATED_HOURS:
        return config.FRESHNESS_UPDATED_SCORE
    return config.FRESHNESS_BASELINE


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def calculate_product_score(item: Item, query: str, now: Optional[datetime] = None) -> float:
    """
    Score one item against a query (higher is better).

    Returns 0 for queries with no usable keyword.  ``now`` is the only clock
    read; pass it explicitly to make the result reproducible.
    """
    phrase = normalize_query(query)
    if not phrase:
        return 0.0
    keywords = query_keywords(phrase)
    if not keywords:
        return 0.0

    now = utcnow(now)
    return (
        relevance_score(item, phrase, keywords)
        + engagement_score(item)
        + freshness_score(item, now)
    )


def score_products(
    items: Sequence[Item],
    query: str,
    now: Optional[datetime] = None,
) -> List[ScoredItem]:
    """
    Score every item, drop non-positive scores and sort by score descending.
    Ties keep catalog order.
    """
    now = utcnow(now)
    scored = [ScoredItem(item=item, score=calculate_product_score(item, query, now)) for item in items]
    kept = [s for s in scored if s.score > 0]
    kept.sort(key=lambda s: -s.score)
    logger.debug("Scored {} items for query {!r}; {} matched", len(scored), query, len(kept))
    return kept


def rank_products(
    items: Sequence[Item],
    query: str,
    now: Optional[datetime] = None,
) -> List[Item]:
    """
    Rank a catalog for a search query.

    A blank query returns ``items`` untouched (same order, nothing filtered).
    """
    if not query or not query.strip():
        return list(items)
    return [s.item for s in score_products(items, query, now)]
