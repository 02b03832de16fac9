from __future__ import annotations

"""
"Did you mean?" support: edit-distance lookup against a small dictionary.

The dictionary is assembled per call from item names, categories, vendor
business names and a few curated labels (see :func:`build_dictionary`).  The
lookup scans the whole dictionary for every word, so keep it in the
hundreds of entries, not catalog-sized free text.
"""

from typing import Iterable, List, Optional, Sequence

from loguru import logger
from rapidfuzz.distance import Levenshtein

from . import config
from .config import Item, Vendor


def levenshtein_distance(a: str, b: str) -> int:
    """
    Classic edit distance (insert / delete / substitute, each cost 1).

    Called without a score cutoff, so the exact distance is returned even
    for words far apart.
    """
    return int(Levenshtein.distance(a, b))


def _correct_word(word: str, dictionary: Sequence[str], lowered: Sequence[str]) -> str:
    if len(word) < config.SPELLING_MIN_WORD_LEN:
        return word
    if word in lowered:
        return word

    best = word
    min_distance = config.SPELLING_MAX_DISTANCE
    for entry, entry_lower in zip(dictionary, lowered):
        dist = levenshtein_distance(word, entry_lower)
        if dist < min_distance:
            min_distance = dist
            best = entry
    return best


def get_spelling_correction(query: str, dictionary: Sequence[str]) -> Optional[str]:
    """
    Suggest a corrected query, word by word.

    Returns the corrected sentence only when at least one word was replaced,
    otherwise None.

    >>> get_spelling_correction("pone", ["phone"])
    'phone'
    """
    if not query or not query.strip():
        return None

    words = query.lower().split()
    entries = [str(d) for d in dictionary]
    lowered = [d.lower() for d in entries]

    result = [_correct_word(w, entries, lowered) for w in words]
    if result == words:
        return None

    corrected = " ".join(result)
    logger.debug("Spelling correction {!r} -> {!r}", query, corrected)
    return corrected


def build_dictionary(
    items: Iterable[Item],
    vendors: Iterable[Vendor] = (),
    extra: Iterable[str] = config.CURATED_CATEGORY_LABELS,
) -> List[str]:
    """
    Known-good terms for spelling correction: item names and categories,
    vendor business names and curated labels.  First-seen order, no blanks,
    no duplicates.
    """
    items = list(items)
    terms: List[str] = []
    terms.extend(i.name for i in items)
    terms.extend(i.category for i in items)
    terms.extend(v.business_name for v in vendors)
    terms.extend(extra)

    seen = set()
    out: List[str] = []
    for term in terms:
        if term and term not in seen:
            seen.add(term)
            out.append(term)
    return out
