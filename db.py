"""
Product Store
=============
Read-only access layer for the product catalog.
Backed by the bundled JSON file by default, or by the Supabase
products table when USE_DB=true. Both expose the same async contract:
get_all_products, get_product_by_id, get_product_stats.
"""
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from supabase import create_client, Client

from catalog.config import (
    DB_BATCH_SIZE,
    PRODUCTS_JSON,
    PRODUCTS_TABLE,
    SUPABASE_KEY,
    SUPABASE_URL,
    USE_DB,
)
from catalog.errors import CatalogError
from catalog.schema import Product, ProductStats
from catalog.stats import compute_stats

logger = logging.getLogger(__name__)

_client: Optional[Client] = None


def get_client() -> Client:
    """Get or create Supabase client (singleton)."""
    global _client
    if _client is None:
        if not SUPABASE_URL or not SUPABASE_KEY:
            raise ValueError("Missing SUPABASE_URL or SUPABASE_KEY in environment")
        _client = create_client(SUPABASE_URL, SUPABASE_KEY)
    return _client


def fetch_all_rows(table: str = PRODUCTS_TABLE) -> List[Dict[str, Any]]:
    """
    Fetch ALL product rows from Supabase.
    Handles pagination automatically to retrieve the full table.
    Blocking; run it in a thread.
    """
    client = get_client()
    all_rows = []
    offset = 0

    while True:
        try:
            response = client.table(table) \
                .select('*') \
                .range(offset, offset + DB_BATCH_SIZE - 1) \
                .execute()
        except Exception as e:
            logger.error(f"Error fetching products at offset {offset}: {e}")
            raise

        data = response.data
        if not data:
            break

        all_rows.extend(data)

        if len(data) < DB_BATCH_SIZE:
            break

        offset += DB_BATCH_SIZE
        logger.debug(f"Fetched {len(all_rows)} product rows so far...")

    logger.info(f"Product fetch complete. Total: {len(all_rows)} rows")
    return all_rows


def fetch_row_by_id(product_id: str, table: str = PRODUCTS_TABLE) -> Optional[Dict[str, Any]]:
    """Fetch a single product row by ID, None if absent."""
    client = get_client()
    response = client.table(table) \
        .select('*') \
        .eq('id', product_id) \
        .limit(1) \
        .execute()
    return response.data[0] if response.data else None


def parse_rows(rows: List[Dict[str, Any]]) -> List[Product]:
    """Validate DB rows; rows that fail validation are logged and skipped."""
    products = []
    for row in rows:
        try:
            products.append(Product.model_validate(row))
        except ValidationError as e:
            logger.warning(f"Skipping invalid product row id={row.get('id')}: {e.error_count()} errors")
    return products


class ProductStore(ABC):
    """Store contract. Subclasses provide get_all_products."""

    @abstractmethod
    async def get_all_products(self) -> List[Product]:
        ...

    async def get_product_by_id(self, product_id: str) -> Optional[Product]:
        for product in await self.get_all_products():
            if product.id == product_id:
                return product
        return None

    async def get_product_stats(self) -> ProductStats:
        """Recomputed on every call from the full collection."""
        return compute_stats(await self.get_all_products())


class JsonProductStore(ProductStore):
    """Flat file mode: the whole catalog lives in one JSON array."""

    def __init__(self, path: Path = PRODUCTS_JSON):
        self.path = Path(path)

    def _load(self) -> List[Product]:
        with open(self.path, 'r', encoding='utf-8') as f:
            raw = json.load(f)

        if not isinstance(raw, list):
            raise CatalogError("Products data is invalid", details="expected a JSON array")

        try:
            return [Product.model_validate(item) for item in raw]
        except ValidationError as e:
            logger.error(f"Product data validation failed: {e}")
            raise CatalogError("Products data is invalid") from e

    async def get_all_products(self) -> List[Product]:
        return await asyncio.to_thread(self._load)


class SupabaseProductStore(ProductStore):
    """Database mode: rows come from the Supabase products table."""

    def __init__(self, table: str = PRODUCTS_TABLE):
        self.table = table

    async def get_all_products(self) -> List[Product]:
        rows = await asyncio.to_thread(fetch_all_rows, self.table)
        return parse_rows(rows)

    async def get_product_by_id(self, product_id: str) -> Optional[Product]:
        row = await asyncio.to_thread(fetch_row_by_id, product_id, self.table)
        if row is None:
            return None
        products = parse_rows([row])
        return products[0] if products else None


@lru_cache()
def get_store() -> ProductStore:
    """Store selected by USE_DB (FastAPI dependency)."""
    if USE_DB:
        logger.info(f"Using Supabase product store (table={PRODUCTS_TABLE})")
        return SupabaseProductStore()
    logger.info(f"Using JSON product store ({PRODUCTS_JSON})")
    return JsonProductStore()
