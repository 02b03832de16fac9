"""Typed containers shared across pipeline modules."""

from __future__ import annotations

from dataclasses import dataclass

from .config import Item


@dataclass
class ScoredItem:
    """Catalog item paired with the score that ranked it."""

    item: Item
    score: float
