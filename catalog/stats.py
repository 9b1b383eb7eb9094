"""
Catalog statistics: UI bounds and the whitelist used to reconcile AI filters.
"""
from functools import cmp_to_key
from typing import Iterable, List, Sequence

from .schema import Product, ProductStats, StatRange, finite_or_none, is_cpu_placeholder
from .sort import turkish_compare


def _numbers(values: Iterable) -> List[float]:
    return [v for v in (finite_or_none(x) for x in values) if v is not None]


def _range(values: List[float]) -> StatRange:
    if not values:
        return StatRange(min=0, max=0)
    return StatRange(min=min(values), max=max(values))


def unique_sorted_strings(values: Iterable[str]) -> List[str]:
    return sorted(sorted(set(values)), key=cmp_to_key(turkish_compare))


def compute_stats(products: Sequence[Product]) -> ProductStats:
    """Recompute stats from the full product list."""
    prices = _numbers(p.price for p in products)

    cpus = unique_sorted_strings(
        p.cpu.strip() for p in products
        if isinstance(p.cpu, str) and not is_cpu_placeholder(p.cpu)
    )

    return ProductStats(
        min_price=min(prices) if prices else 0,
        max_price=max(prices) if prices else 0,
        categories=unique_sorted_strings(p.category for p in products),
        brands=unique_sorted_strings(p.brand for p in products),
        ram_values=sorted({int(v) for v in _numbers(p.ram_gb for p in products)}),
        storage_values=sorted({int(v) for v in _numbers(p.storage_gb for p in products)}),
        cpu_values=cpus,
        screen=_range(_numbers(p.screen_inch for p in products)),
        battery=_range(_numbers(p.battery_wh for p in products)),
        weight=_range(_numbers(p.weight_kg for p in products)),
    )
