"""
AI Summary / Compare
====================
One-product technical summary and two-product comparison.

Only a fixed subset of technical fields reaches the model, and the reply
is accepted only if it is JSON that validates against the result schema.
Unlike the filter translator, failures here are reported to the caller.
"""
import asyncio
import json
import logging
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, Field, StringConstraints

from .config import (
    AI_TEMPERATURE,
    COMPARE_ITEM_MAX_LEN,
    COMPARE_MAX_TOKENS,
    COMPARE_TLDR_MAX_LEN,
    SUMMARY_ITEM_MAX_LEN,
    SUMMARY_MAX_TOKENS,
    SUMMARY_TLDR_MAX_LEN,
)
from .errors import ProductNotFound, RequestValidationFailed, UpstreamInvalid
from .extract import NOT_FOUND, extract_json, from_fenced_block, from_whole_text
from .llm import ChatMessage
from .schema import (
    CompareReply,
    CompareResult,
    LLMProduct,
    Product,
    SummaryReply,
    SummaryResult,
    safe_parse,
)

logger = logging.getLogger(__name__)

# Whole reply first; a fenced block is the only wrapping tolerated
STRICT_STRATEGIES = [from_whole_text, from_fenced_block]


class ProductIdsBody(BaseModel):
    productIds: List[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]] = Field(
        default_factory=list
    )


def parse_product_ids(body: Any, expected: int) -> List[str]:
    """Validate {"productIds": [...]} with exactly `expected` non-empty ids."""
    parsed = safe_parse(ProductIdsBody, body if isinstance(body, dict) else {})
    if not parsed.ok:
        raise RequestValidationFailed("Invalid request body.", details=parsed.errors)

    ids = parsed.value.productIds
    if len(ids) != expected:
        noun = "id" if expected == 1 else "ids"
        raise RequestValidationFailed(
            "Invalid request body.",
            details={"productIds": [f"Exactly {expected} product {noun} required."]},
        )
    return ids


def pick_for_llm(product: Product) -> LLMProduct:
    """id and name are display-only; the rest are the technical fields judged."""
    return LLMProduct(
        id=product.id,
        name=product.name,
        price=product.price,
        cpu=product.cpu,
        ram_gb=product.ram_gb,
        storage_gb=product.storage_gb,
        screen_inch=product.screen_inch,
        battery_wh=product.battery_wh,
        rating=product.rating,
    )


# ============================================================================
# PROMPTS
# ============================================================================

_JSON_ONLY_RULES = """You are a JSON-only generator.

STRICT RULES:
- Output MUST be a single valid JSON object that matches the provided schema.
- No prose, no natural language, no markdown, no explanations.
- If you cannot produce valid JSON, return "{}".
- Do not add any commentary before or after the JSON."""

SUMMARY_SYSTEM_PROMPT = _JSON_ONLY_RULES + """

Task:
Given ONE product's structured fields, create a concise technical summary.
Evaluate ONLY using numeric/text fields (price/ram/storage/cpu/screen_inch/battery_wh/rating).
NEVER base the evaluation on the product "name" (it's display-only)."""

COMPARE_SYSTEM_PROMPT = _JSON_ONLY_RULES + """

Task:
Given TWO products' structured fields, produce a concise comparison:
- Return a "comparison" array with two items (one per product) including short pros/cons.
- Return a "summary.tldr" that highlights the key trade-offs.
- Evaluate ONLY using numeric/text fields (price/ram/storage/cpu/screen_inch/battery_wh/rating).
- NEVER base evaluation on the product "name" (display-only).
- Always include "name" for each comparison item, set exactly to the provided product name."""


def _item_hint(max_len: int) -> dict:
    return {
        "id": "string",
        "name": "string",
        "price": "number|null",
        "cpu": "string|null",
        "ram_gb": "number|null",
        "storage_gb": "number|null",
        "screen_inch": "number|null",
        "battery_wh": "number|null",
        "rating": "number|null",
        "pros": [f"short point (<={max_len} chars)", "... up to 5"],
        "cons": [f"short point (<={max_len} chars)", "... up to 5"],
    }


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def build_summary_messages(item: LLMProduct) -> List[ChatMessage]:
    schema_hint = {
        "item": _item_hint(SUMMARY_ITEM_MAX_LEN),
        "summary": {"tldr": f"max {SUMMARY_TLDR_MAX_LEN} chars", "value_for_money": "poor|average|good|excellent"},
    }
    user = f"""Produce a single JSON object exactly matching this schema (no extra fields):

{_dump(schema_hint)}

Notes:
- Evaluate using ONLY technical fields; ignore "name" for evaluation logic.
- Keep pros/cons factual and short.

Product:
{_dump(item.model_dump())}"""
    return [
        {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
        {"role": "user", "content": user},
    ]


def build_compare_messages(a: LLMProduct, b: LLMProduct) -> List[ChatMessage]:
    schema_hint = {
        "comparison": [_item_hint(COMPARE_ITEM_MAX_LEN), {"...": "second product, same shape"}],
        "summary": {"tldr": f"max {COMPARE_TLDR_MAX_LEN} chars", "value_for_money": "poor|average|good|excellent"},
    }
    user = f"""Produce a single JSON object exactly matching this schema (no extra fields):

{_dump(schema_hint)}

Notes:
- Evaluate using ONLY technical fields; ignore "name" for evaluation logic.
- For each comparison item, set "name" EXACTLY to the given product name.
- Keep pros/cons factual and short.

Products:
{_dump({"a": a.model_dump(), "b": b.model_dump()})}"""
    return [
        {"role": "system", "content": COMPARE_SYSTEM_PROMPT},
        {"role": "user", "content": user},
    ]


# ============================================================================
# GENERATION
# ============================================================================

def parse_model_reply(reply: str, model: type):
    """JSON-decode and validate a reply; UpstreamInvalid when either fails."""
    data = extract_json(reply, strategies=STRICT_STRATEGIES)
    if data is NOT_FOUND:
        raise UpstreamInvalid("Model returned invalid JSON.")

    parsed = safe_parse(model, data)
    if not parsed.ok:
        logger.warning(f"Model output failed {model.__name__} validation: {parsed.errors}")
        raise UpstreamInvalid("Model output failed schema validation.", details=parsed.errors)
    return parsed.value


async def _lookup(store, product_id: str) -> Product:
    product = await store.get_product_by_id(product_id)
    if product is None:
        raise ProductNotFound(f"Product with id={product_id} not found")
    return product


async def summarize(product_id: str, store, llm, request_id: Optional[str] = None) -> SummaryResult:
    product = await _lookup(store, product_id)

    reply = await llm.invoke(
        build_summary_messages(pick_for_llm(product)),
        temperature=AI_TEMPERATURE,
        max_tokens=SUMMARY_MAX_TOKENS,
    )
    logger.debug(f"[{request_id}] summarize raw reply: {reply}")

    parsed = parse_model_reply(reply, SummaryReply)
    return SummaryResult(item=parsed.item, summary=parsed.summary, request_id=request_id)


async def compare(product_ids: List[str], store, llm, request_id: Optional[str] = None) -> CompareResult:
    """Both products must exist before the model is called."""
    if len(product_ids) != 2:
        raise RequestValidationFailed("Exactly 2 product ids required.")

    found = await asyncio.gather(
        *(store.get_product_by_id(pid) for pid in product_ids)
    )
    missing = [pid for pid, product in zip(product_ids, found) if product is None]
    if missing:
        raise ProductNotFound("Product(s) not found", details=missing)

    a, b = (pick_for_llm(p) for p in found)
    reply = await llm.invoke(
        build_compare_messages(a, b),
        temperature=AI_TEMPERATURE,
        max_tokens=COMPARE_MAX_TOKENS,
    )
    logger.debug(f"[{request_id}] compare raw reply: {reply}")

    parsed = parse_model_reply(reply, CompareReply)
    return CompareResult(comparison=parsed.comparison, summary=parsed.summary, request_id=request_id)
