# marketrank/recommend.py
from __future__ import annotations

"""
Lightweight recommendations from local view history and global popularity.

No collaborative filtering: an item's recommendation score is its category
affinity with what the shopper recently viewed, plus raw engagement, plus a
bonus for new listings.  "Similar products" compares one item against the
catalog on category, bucket and price band.
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple, Union

from loguru import logger

from . import config
from .config import Item
from .history import HistoryReadError, ViewHistory
from .ranking import utcnow

HistorySource = Union[ViewHistory, Sequence[str]]


def _read_history(history: HistorySource) -> List[str]:
    if isinstance(history, ViewHistory):
        return history.read()
    if isinstance(history, str) or not isinstance(history, Sequence):
        raise HistoryReadError(f"history must be a list of ids, got {type(history).__name__}")
    return [str(x) for x in history]


def _popularity_fallback(items: Sequence[Item]) -> List[Item]:
    ranked = sorted(items, key=lambda p: -p.order_count)
    return ranked[: config.RECOMMEND_MAX]


def _is_new(item: Item, now: datetime) -> bool:
    if item.created_at is None:
        return False
    return now - utcnow(item.created_at) < timedelta(days=config.RECOMMEND_NEW_DAYS)


def recommendation_score(item: Item, category_counts: Counter, now: datetime) -> float:
    score = config.CATEGORY_AFFINITY_WEIGHT * category_counts.get(item.category, 0)
    score += item.view_count * config.VIEW_WEIGHT
    score += item.order_count * config.ORDER_WEIGHT
    score += item.cart_count * config.CART_WEIGHT
    if _is_new(item, now):
        score += config.RECOMMEND_NEW_BONUS
    return float(score)


def get_recommendations(
    items: Sequence[Item],
    history: HistorySource,
    now: Optional[datetime] = None,
) -> List[Item]:
    """
    Up to RECOMMEND_MAX items the shopper has not viewed yet, best first.

    If the history cannot be read the shopper gets the catalog's best
    sellers instead (history exclusion does not apply then).
    """
    if not items:
        return []

    try:
        history_ids = _read_history(history)
    except HistoryReadError as e:
        logger.warning("View history unreadable, falling back to best sellers: {}", e)
        return _popularity_fallback(items)

    now = utcnow(now)
    seen = set(history_ids)
    category_counts = Counter(p.category for p in items if p.id in seen)

    scored: List[Tuple[Item, float]] = [
        (p, recommendation_score(p, category_counts, now)) for p in items if p.id not in seen
    ]
    scored.sort(key=lambda t: -t[1])

    logger.debug(
        "Recommendations from {} history ids over {} candidates",
        len(history_ids), len(scored),
    )
    return [p for p, _ in scored[: config.RECOMMEND_MAX]]


def similarity_score(candidate: Item, reference: Item) -> float:
    score = 0.0
    if candidate.category == reference.category:
        score += config.SIMILAR_CATEGORY_SCORE
    if reference.bucket_id and candidate.bucket_id == reference.bucket_id:
        score += config.SIMILAR_BUCKET_SCORE
    if abs(candidate.price - reference.price) < reference.price * config.SIMILAR_PRICE_BAND:
        score += config.SIMILAR_PRICE_SCORE
    return score


def get_similar_products(item: Item, items: Sequence[Item]) -> List[Item]:
    scored = [(p, similarity_score(p, item)) for p in items if p.id != item.id]
    scored = [t for t in scored if t[1] > 0]
    scored.sort(key=lambda t: -t[1])
    return [p for p, _ in scored[: config.SIMILAR_MAX]]


def track_product_view(history: ViewHistory, item_id: str) -> List[str]:
    """
    Move ``item_id`` to the front of the stored history and trim it.

    A corrupt stored value is replaced rather than blocking tracking forever.
    Returns the history as written.
    """
    try:
        current = history.read()
    except HistoryReadError as e:
        logger.warning("Resetting unreadable view history: {}", e)
        current = []

    updated = [item_id] + [i for i in current if i != item_id]
    return history.write(updated)
