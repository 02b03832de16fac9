from __future__ import annotations

"""
Text normalisation helpers shared across catalog building and search.

Catalog documents arrive from the store with whatever the vendor typed:
stray HTML, encoded entities (``Hostel &amp; Student Essentials``), odd
unicode quotes and runs of whitespace.  Queries arrive straight from the
search box.  Both go through the helpers below so matching sees the same
view of text on either side.

Public helpers:

* basic_clean(text) -> str
    Light-weight clean for display fields (keeps casing).

* normalize_query(text) -> str
    Lower-cased, trimmed query used for phrase matching.

* query_keywords(text) -> List[str]
    Whitespace keywords of a query, dropping one-letter noise.

* normalize_label(text) -> str
    Case-folded form of a category / bucket label for equality checks.
"""

import re
import unicodedata
from typing import List

from bs4 import BeautifulSoup

from . import config

MAX_INPUT_CHARS: int = 20_000


# ---------------------------------------------------------------------------
# Low-level helpers
# ---------------------------------------------------------------------------


def strip_html(text: str) -> str:
    """Remove tags and decode entities; plain text passes through untouched."""
    if not text:
        return ""
    if "<" not in text and "&" not in text:
        return text
    soup = BeautifulSoup(text, "html.parser")
    return soup.get_text(" ", strip=True)


def _normalise_unicode(text: str) -> str:
    text = unicodedata.normalize("NFKC", text)
    text = text.replace("‘", "'").replace("’", "'")
    text = text.replace("“", '"').replace("”", '"')
    text = text.replace("–", "-").replace("—", "-")
    return text


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def basic_clean(text: str | None) -> str:
    """Light-weight clean for catalog fields.

    * strips HTML and decodes entities
    * normalises unicode and whitespace
    * truncates excessively long inputs
    """
    if text is None:
        return ""
    if not isinstance(text, str):
        text = str(text)

    if len(text) > MAX_INPUT_CHARS:
        text = text[:MAX_INPUT_CHARS]

    text = strip_html(text)
    text = _normalise_unicode(text)
    text = re.sub(r"\s+", " ", text).strip()
    return text


def normalize_query(text: str | None) -> str:
    """Lower-case and trim a raw query. Inner whitespace is left alone."""
    if text is None:
        return ""
    return str(text).lower().strip()


def query_keywords(text: str | None) -> List[str]:
    norm = normalize_query(text)
    if not norm:
        return []
    return [k for k in norm.split() if len(k) >= config.MIN_KEYWORD_LEN]


def normalize_label(text: str | None) -> str:
    if text is None:
        return ""
    return str(text).lower().replace("&amp;", "&").strip()
