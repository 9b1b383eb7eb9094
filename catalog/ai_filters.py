"""
Natural-Language Filter Translator
==================================
Turns free text such as "30 bin altı 16 GB RAM'li laptoplar" into a
validated AIParsedFilters object:

1. normalize the text (units, Turkish number shorthand)
2. build a whitelist of categories/brands/CPUs from live catalog stats
3. ask the model for JSON only
4. extract + schema-validate the reply (defaults on any failure)
5. drop values outside the whitelist, repair numeric ranges

The model is untrusted. This feature is best-effort: model or parse
failures resolve to an empty filter instead of an error.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .config import AI_TEMPERATURE
from .errors import RequestValidationFailed
from .extract import NOT_FOUND, extract_json
from .llm import ChatMessage
from .normalizer import normalize_text
from .schema import (
    AIParsedFilters,
    FilterCriteria,
    NumericRange,
    ProductStats,
    RangeSpec,
    StatRange,
    safe_parse,
)

logger = logging.getLogger(__name__)


@dataclass
class Whitelist:
    """Values the model is allowed to assert, taken from live data."""

    categories: List[str] = field(default_factory=list)
    brands: List[str] = field(default_factory=list)
    cpus: List[str] = field(default_factory=list)

    @classmethod
    def from_stats(cls, stats: ProductStats) -> "Whitelist":
        return cls(
            categories=list(stats.categories),
            brands=list(stats.brands),
            cpus=list(stats.cpu_values),
        )


# ============================================================================
# PROMPT
# ============================================================================

SYSTEM_PROMPT = """You convert a Turkish product search request into a filter JSON object.
Output ONLY valid JSON. No markdown, no explanation.

Schema:
{
  "categories": string[],
  "brands": string[],
  "price":       { "min": number | null, "max": number | null, "exact": number | null },
  "ram_gb":      { "min": number | null, "max": number | null, "exact": number | null },
  "storage_gb":  { "min": number | null, "max": number | null, "exact": number | null },
  "screen_inch": { "min": number | null, "max": number | null, "exact": number | null },
  "battery_wh":  { "min": number | null, "max": number | null, "exact": number | null },
  "weight_kg":   { "min": number | null, "max": number | null, "exact": number | null },
  "cpus":        string[],
  "sort": "alphabetical" | "price_asc" | "price_desc" | "rating_desc" | "rating_asc"
}

Rules:
- Convert money and GB/inch/kg/Wh amounts to plain numbers ("30000", "16gb" -> 16, "15.6 inç" -> 15.6, "2 kg" -> 2, "60 wh" -> 60).
- "altında", "altı", "en fazla", "under", "at most", "<=" -> use only "max" for that field.
- "üstünde", "üstü", "en az", "over", "at least", ">=" -> use only "min" for that field.
- "tam", "aynen", "exactly", "=" -> use "exact" (meaning min = max = exact).
- Do NOT convert "mAh" to Wh; the voltage is unknown, leave "battery_wh" empty.
- Use only the categories, brands and CPUs from the provided lists, written exactly as listed. If unsure, leave the array empty.
- If a bound is not stated, leave it null. Do not guess values or infer fields the text does not mention.
- Write nothing except the JSON object."""

_FEW_SHOTS = [
    ("30000 altı 16 gb ve üstü ram'li laptoplar", {
        "categories": ["laptop"], "price": {"max": 30000}, "ram_gb": {"min": 16}, "sort": "price_asc",
    }),
    ("15.6 inç tam, 1.8 kg altı, 60 wh üstü", {
        "screen_inch": {"exact": 15.6}, "weight_kg": {"max": 1.8}, "battery_wh": {"min": 60},
    }),
    ("512 gb depolama ve 16 gb ram", {
        "ram_gb": {"exact": 16}, "storage_gb": {"exact": 512},
    }),
    ("fiyat önemli değil, en yüksek puanlıları göster", {"sort": "rating_desc"}),
    ("puanı düşükten yükseğe sırala", {"sort": "rating_asc"}),
    ("5000 mah bataryalı telefon", {"categories": ["phone"]}),
    ("intel i7 ya da ryzen 7 olsun", {"cpus": ["<exactly as written in the CPU list>"]}),
]


def render_few_shots() -> str:
    lines = ["EXAMPLES:"]
    for i, (text, overrides) in enumerate(_FEW_SHOTS, 1):
        example = AIParsedFilters.model_validate(overrides).model_dump()
        lines.append(f'{i}) "{text}"')
        lines.append(json.dumps(example, ensure_ascii=False))
    return "\n".join(lines)


def build_messages(cleaned_text: str, whitelist: Whitelist) -> List[ChatMessage]:
    user_prompt = f"""Available categories: {", ".join(whitelist.categories)}
Available brands: {", ".join(whitelist.brands)}
Available CPUs: {", ".join(whitelist.cpus)}

{render_few_shots()}

Text: \"\"\"{cleaned_text}\"\"\"
Return only JSON that matches the schema:"""

    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


# ============================================================================
# PARSE / RECONCILE / REPAIR
# ============================================================================

def parse_ai_filters(reply: str) -> AIParsedFilters:
    """Extract and validate the model reply; all-default filters on failure."""
    data = extract_json(reply)
    if data is NOT_FOUND:
        logger.warning("AI filter reply contained no parseable JSON; using defaults")
        return AIParsedFilters()

    parsed = safe_parse(AIParsedFilters, data)
    if not parsed.ok:
        logger.warning(f"AI filter reply failed validation; using defaults: {parsed.errors}")
        return AIParsedFilters()
    return parsed.value


def canonical_cpus(values: Iterable, known: Iterable[str]) -> List[str]:
    """Map CPUs case-insensitively onto their canonical spelling, drop unknowns."""
    canon = {c.lower(): c for c in known}
    out: List[str] = []
    for value in values:
        if not isinstance(value, str) or not value.strip():
            continue
        match = canon.get(value.strip().lower())
        if match and match not in out:
            out.append(match)
    return out


def repair_range(spec: RangeSpec) -> RangeSpec:
    """
    Clamp negatives to 0, expand exact into min = max = exact, then swap an
    inverted min/max. Applying it twice gives the same result.
    """
    lo, hi, exact = spec.min, spec.max, spec.exact
    if lo is not None and lo < 0:
        lo = 0
    if hi is not None and hi < 0:
        hi = 0
    if exact is not None and exact < 0:
        exact = 0

    if exact is not None:
        lo = hi = exact

    if lo is not None and hi is not None and lo > hi:
        lo, hi = hi, lo
    return RangeSpec(min=lo, max=hi, exact=exact)


def reconcile(filters: AIParsedFilters, whitelist: Whitelist) -> AIParsedFilters:
    """Keep only whitelisted strings and repaired ranges."""
    categories = set(whitelist.categories)
    brands = set(whitelist.brands)

    update: Dict[str, object] = {
        'categories': [c for c in dict.fromkeys(filters.categories) if c in categories],
        'brands': [b for b in dict.fromkeys(filters.brands) if b in brands],
        'cpus': canonical_cpus(filters.cpus, whitelist.cpus),
    }
    for name, spec in filters.range_fields().items():
        update[name] = repair_range(spec)
    return filters.model_copy(update=update)


# ============================================================================
# ENTRY POINT
# ============================================================================

async def translate(text: Optional[str], store, llm) -> AIParsedFilters:
    """
    Translate free text into filters. Only blank input raises; every other
    failure (store, model, parse, validation) degrades to default filters.
    """
    if not isinstance(text, str) or not text.strip():
        raise RequestValidationFailed("Body must include a non-empty 'text' field.")

    cleaned = normalize_text(text)

    try:
        whitelist = Whitelist.from_stats(await store.get_product_stats())
        messages = build_messages(cleaned, whitelist)
        reply = await llm.invoke(messages, temperature=AI_TEMPERATURE)
    except Exception as e:
        logger.warning(f"AI filter translation degraded to defaults: {e}")
        return AIParsedFilters()

    logger.debug(f"AI filter raw reply: {reply}")
    return reconcile(parse_ai_filters(reply), whitelist)


# ============================================================================
# APPLY TO BROWSING CRITERIA
# ============================================================================

_AI_SORT_TO_SORT = {
    "price_asc": "price-asc",
    "price_desc": "price-desc",
    "rating_asc": "rating-asc",
    "rating_desc": "rating-desc",
    "alphabetical": "alphabetical",
}


def _clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


def _bounds(spec: RangeSpec, limits: Optional[StatRange]) -> NumericRange:
    """RangeSpec -> NumericRange clamped into the catalog's known bounds."""
    clamp = limits is not None and limits.max >= limits.min and (limits.min, limits.max) != (0, 0)

    if spec.exact is not None:
        x = _clamp(spec.exact, limits.min, limits.max) if clamp else spec.exact
        return NumericRange(min=x, max=x)

    lo, hi = spec.min, spec.max
    if clamp:
        lo = _clamp(lo, limits.min, limits.max) if lo is not None else None
        hi = _clamp(hi, limits.min, limits.max) if hi is not None else None
    if lo is not None and hi is not None and lo > hi:
        lo, hi = hi, lo
    return NumericRange(min=lo, max=hi)


def _discrete(spec: RangeSpec, known: List[int]) -> List[int]:
    """Exact picks one value; a min/max picks every known value inside it."""
    if spec.exact is not None:
        return [int(round(spec.exact))]
    if spec.min is None and spec.max is None:
        return []
    return [
        v for v in known
        if (spec.min is None or v >= spec.min) and (spec.max is None or v <= spec.max)
    ]


def ai_filters_to_criteria(parsed: AIParsedFilters, stats: ProductStats) -> FilterCriteria:
    """Apply translated filters as fresh browsing criteria (page 1)."""
    return FilterCriteria(
        categories=list(dict.fromkeys(parsed.categories)),
        brands=list(dict.fromkeys(parsed.brands)),
        ram=_discrete(parsed.ram_gb, stats.ram_values),
        storage=_discrete(parsed.storage_gb, stats.storage_values),
        cpus=canonical_cpus(parsed.cpus, stats.cpu_values),
        price=_bounds(parsed.price, StatRange(min=stats.min_price, max=stats.max_price)),
        screen=_bounds(parsed.screen_inch, stats.screen),
        battery=_bounds(parsed.battery_wh, stats.battery),
        weight=_bounds(parsed.weight_kg, stats.weight),
        sort=_AI_SORT_TO_SORT.get(parsed.sort, "alphabetical"),
    )
