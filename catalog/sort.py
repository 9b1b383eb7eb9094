"""
Sort Module
Deterministic product ordering with Turkish-aware natural name collation.
"""
import re
import unicodedata
from functools import cmp_to_key
from typing import Callable, List, Sequence

from .config import DEFAULT_SORT
from .schema import Product, finite_or_none

Comparator = Callable[[str, str], int]

# Turkish casing: I pairs with dotless ı, İ with dotted i
_TURKISH_CASEFOLD = str.maketrans({"I": "ı", "İ": "i"})

# Turkish letters sort right after their base letter (ı sits between h and i)
_TURKISH_LETTERS = {
    "ç": "c\x7f",
    "ğ": "g\x7f",
    "ı": "h\x7f",
    "ö": "o\x7f",
    "ş": "s\x7f",
    "ü": "u\x7f",
}

_DIGITS = re.compile(r'(\d+)')


def _fold(text: str) -> str:
    """Lowercase the Turkish way and strip non-Turkish accents (Ä -> a)."""
    out = []
    for ch in text.translate(_TURKISH_CASEFOLD).lower():
        if ch in _TURKISH_LETTERS:
            out.append(_TURKISH_LETTERS[ch])
            continue
        decomposed = unicodedata.normalize('NFKD', ch)
        out.append(''.join(c for c in decomposed if not unicodedata.combining(c)))
    return ''.join(out)


def collation_key(text: str) -> list:
    """
    Natural sort key: text chunks at even positions, integers at odd ones,
    so "model 2" < "model 10".
    """
    parts = _DIGITS.split(_fold(text))
    return [int(p) if i % 2 else p for i, p in enumerate(parts)]


def turkish_compare(a: str, b: str) -> int:
    ka, kb = collation_key(a), collation_key(b)
    return (ka > kb) - (ka < kb)


# sort option -> (product field, ascending)
_NUMERIC_SORTS = {
    "price-asc": ("price", True),
    "price-desc": ("price", False),
    "rating-asc": ("rating", True),
    "rating-desc": ("rating", False),
}


def sort_products(
    products: Sequence[Product],
    sort_by: str = DEFAULT_SORT,
    compare: Comparator = turkish_compare,
) -> List[Product]:
    """
    Return a sorted copy of products.

    Unknown options fall back to alphabetical. For numeric options, products
    without a finite value go last in both directions; ties and missing values
    are ordered by name, then id.
    """

    def by_name(a: Product, b: Product) -> int:
        return compare(a.name, b.name) or (a.id > b.id) - (a.id < b.id)

    numeric = _NUMERIC_SORTS.get(sort_by)
    if numeric is None:
        return sorted(products, key=cmp_to_key(by_name))

    field, ascending = numeric

    def by_number(a: Product, b: Product) -> int:
        av = finite_or_none(getattr(a, field))
        bv = finite_or_none(getattr(b, field))
        if av is None and bv is None:
            return by_name(a, b)
        if av is None:
            return 1
        if bv is None:
            return -1
        if av != bv:
            diff = -1 if av < bv else 1
            return diff if ascending else -diff
        return by_name(a, b)

    return sorted(products, key=cmp_to_key(by_number))
