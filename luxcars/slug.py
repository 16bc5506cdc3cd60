from __future__ import annotations
"""Text helpers used to derive URL slugs from dealer, city and car names."""
import re
import unicodedata
from typing import Any

_RE_COMBINING = re.compile(r'[\u0300-\u036f]')
_RE_QUOTES = re.compile(r"['\"]")
_RE_NON_ALNUM = re.compile(r'[^a-z0-9]+')
_RE_EDGE_DASH = re.compile(r'^-+|-+$')
_RE_MULTI_DASH = re.compile(r'-{2,}')


def slugify(text: str | None) -> str:
    """Return a lowercase ASCII slug (``"Mercedes-Benz S 350"`` -> ``"mercedes-benz-s-350"``)."""
    s = unicodedata.normalize('NFKD', text or '')
    s = _RE_COMBINING.sub('', s)
    s = s.strip().lower()
    s = _RE_QUOTES.sub('', s)
    s = _RE_NON_ALNUM.sub('-', s)
    s = _RE_EDGE_DASH.sub('', s)
    return _RE_MULTI_DASH.sub('-', s)


def safe_text(value: Any, fallback: str = '') -> str:
    if isinstance(value, str):
        return value.strip()
    return fallback


__all__ = ["slugify", "safe_text"]
