"""
Products API Router
===================
Catalog browsing: filtered/sorted/paginated list, stats, single product.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from catalog.errors import CatalogError, RequestValidationFailed
from catalog.query import resolve
from db import ProductStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("")
async def list_products(request: Request, store: ProductStore = Depends(get_store)):
    """
    List products.

    Repeatable: category, brand, ram, storage, cpu.
    Ranges: minPrice/maxPrice, screenMin/screenMax, batteryMin/batteryMax,
    weightMin/weightMax. Paging: page, pageSize. Sort: sort.
    """
    try:
        result = await resolve(request.query_params, store)
    except CatalogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    return result.to_response()


@router.get("/stats")
async def product_stats(store: ProductStore = Depends(get_store)):
    """Catalog bounds and distinct values for building filter controls."""
    try:
        stats = await store.get_product_stats()
    except Exception as e:
        logger.exception(f"Stats computation failed: {e}")
        raise HTTPException(status_code=500, detail={"error": "Stats could not be computed"})
    return stats.model_dump(by_alias=True)


@router.get("/{product_id}")
async def get_product(product_id: str, store: ProductStore = Depends(get_store)):
    product_id = product_id.strip()
    if not product_id:
        error = RequestValidationFailed("Product id is required")
        raise HTTPException(status_code=error.status_code, detail=error.to_detail())

    try:
        product = await store.get_product_by_id(product_id)
    except Exception as e:
        logger.exception(f"Product lookup failed for id={product_id}: {e}")
        raise HTTPException(status_code=500, detail={"error": "Product could not be loaded"})

    if product is None:
        raise HTTPException(status_code=404, detail={"error": f"Product with id={product_id} not found"})
    return product.model_dump(exclude_none=True)
