"""
Free-text normalization for the natural-language filter translator.
Turkish shorthand and units are rewritten into plain numbers before the
text reaches the model.
"""
import re
from decimal import Decimal

_THOUSANDS_WORD = re.compile(r'(\d+(?:[.,]\d+)?)\s*(?:bin|k)\b')
_DECIMAL_COMMA = re.compile(r'(\d+),(\d+)')
_THOUSANDS_DOT = re.compile(r'(?<![\d.])\d{1,3}(?:\.\d{3})+(?!\d|\.\d)')
# "4g"/"5g" is a network generation, not a weight
_GRAMS = re.compile(r'(?<![\d.])(?![2-5]g\b)(\d+(?:\.\d+)?)\s*(?:gram|g)\b')
_INCH_MARK = re.compile(r'(\d+(?:\.\d+)?)\s*["”]')


def format_number(value) -> str:
    """0.5 -> "0.5", 2.0 -> "2", Decimal("4030.00") -> "4030"."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return format(value.normalize(), 'f')


def _times_thousand(match: re.Match) -> str:
    return format_number(Decimal(match.group(1).replace(',', '.')) * 1000)


def _strip_group_dots(match: re.Match) -> str:
    return match.group(0).replace('.', '')


def _grams_to_kg(match: re.Match) -> str:
    return f"{format_number(Decimal(match.group(1)) / 1000)} kg"


def normalize_text(text: str) -> str:
    """
    Lowercase and normalize numbers/units.

    "30 bin" / "30k" -> "30000", "15,6" -> "15.6", "1.000.000" -> "1000000",
    "500 g" -> "0.5 kg", 15" -> "15 inç". mAh and "5g" are left as is.
    """
    text = text.lower()
    text = _THOUSANDS_WORD.sub(_times_thousand, text)
    text = _DECIMAL_COMMA.sub(r'\1.\2', text)
    text = _THOUSANDS_DOT.sub(_strip_group_dots, text)
    text = _GRAMS.sub(_grams_to_kg, text)
    text = _INCH_MARK.sub(r'\1 inç', text)
    return text.strip()
