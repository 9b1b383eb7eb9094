"""
AI API Router
=============
Natural-language filter parsing, product summary and two-product compare.
Summary/compare responses and errors carry a request_id for correlation.
"""
import logging
import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from catalog.ai_filters import translate
from catalog.ai_summary import compare, parse_product_ids, summarize
from catalog.errors import CatalogError
from catalog.llm import GeminiClient, get_llm
from db import ProductStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])


async def read_json_body(request: Request) -> Any:
    """Request body as JSON; an unreadable body counts as empty."""
    try:
        return await request.json()
    except ValueError:
        return {}


@router.post("/parse-filters")
async def parse_filters(
    request: Request,
    store: ProductStore = Depends(get_store),
    llm: GeminiClient = Depends(get_llm),
):
    """
    Translate free text into structured filters.
    Body: {"text": "..."}. Best-effort: model problems yield empty filters.
    """
    body = await read_json_body(request)
    text = body.get("text") if isinstance(body, dict) else None

    try:
        filters = await translate(text, store, llm)
    except CatalogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    return filters.model_dump()


def _raise_http(e: Exception, request_id: str, action: str):
    if isinstance(e, CatalogError) and e.status_code != 500:
        logger.warning(f"[{request_id}] {action} failed: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.to_detail(request_id))
    logger.exception(f"[{request_id}] {action} failed unexpectedly: {e}")
    raise HTTPException(
        status_code=500,
        detail={"error": "Unexpected error", "request_id": request_id},
    )


@router.post("/summarize")
async def summarize_product(
    request: Request,
    store: ProductStore = Depends(get_store),
    llm: GeminiClient = Depends(get_llm),
):
    """Body: {"productIds": ["<id>"]}."""
    request_id = str(uuid.uuid4())
    body = await read_json_body(request)

    try:
        [product_id] = parse_product_ids(body, expected=1)
        result = await summarize(product_id, store, llm, request_id=request_id)
    except Exception as e:
        _raise_http(e, request_id, "summarize")
    return result.model_dump()


@router.post("/compare")
async def compare_products(
    request: Request,
    store: ProductStore = Depends(get_store),
    llm: GeminiClient = Depends(get_llm),
):
    """Body: {"productIds": ["<id>", "<id>"]}."""
    request_id = str(uuid.uuid4())
    body = await read_json_body(request)

    try:
        product_ids = parse_product_ids(body, expected=2)
        result = await compare(product_ids, store, llm, request_id=request_id)
    except Exception as e:
        _raise_http(e, request_id, "compare")
    return result.model_dump()
