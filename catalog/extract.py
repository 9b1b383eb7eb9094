"""
JSON extraction from free-text model replies.

Models wrap JSON in markdown fences or surround it with prose. Each
strategy below proposes a candidate substring; extract_json tries them in
order and returns the first candidate that parses.
"""
import json
import logging
import re
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)

_FENCE = re.compile(r'```(?:json)?\s*([\s\S]*?)\s*```', re.IGNORECASE)

NOT_FOUND = object()


def from_fenced_block(text: str) -> Optional[str]:
    """Content of the first ``` / ```json block."""
    match = _FENCE.search(text)
    return match.group(1).strip() if match else None


def from_brace_span(text: str) -> Optional[str]:
    """Substring from the first '{' to the last '}'."""
    start = text.find('{')
    end = text.rfind('}')
    if start == -1 or end <= start:
        return None
    return text[start:end + 1].strip()


def from_whole_text(text: str) -> Optional[str]:
    return text.strip() or None


EXTRACTION_STRATEGIES: List[Callable[[str], Optional[str]]] = [
    from_fenced_block,
    from_brace_span,
    from_whole_text,
]


def extract_json(text: str, strategies=EXTRACTION_STRATEGIES) -> Any:
    """
    Return the first structurally parseable JSON value, or NOT_FOUND.
    NOT_FOUND (rather than None) keeps a literal `null` reply distinguishable.
    """
    if not isinstance(text, str):
        return NOT_FOUND

    for strategy in strategies:
        candidate = strategy(text)
        if candidate is None:
            continue
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            logger.debug(f"{strategy.__name__}: candidate did not parse")
    return NOT_FOUND
