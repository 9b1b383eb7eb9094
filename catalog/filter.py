"""
Filter Module
Predicate composition over product attributes: AND across dimensions,
OR within a discrete dimension.
"""
from typing import Iterable, List, Sequence

from .schema import FavoriteMode, FilterCriteria, NumericRange, Product, finite_or_none


def _in_discrete(value, selected: set) -> bool:
    value = finite_or_none(value)
    return value is not None and value in selected


def _cpu_key(value) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def filter_by_range(products: Iterable[Product], field: str, bounds: NumericRange) -> List[Product]:
    """Inclusive range test; a missing value fails whenever a bound is set."""
    if not bounds.active:
        return list(products)
    return [p for p in products if bounds.contains(getattr(p, field))]


def apply_favorites(
    products: Sequence[Product],
    favorites: Iterable[str],
    mode: FavoriteMode = "all",
    hydrated: bool = False,
) -> List[Product]:
    """
    Keep or drop favorite products.

    Nothing is applied until hydrated is True, i.e. until the caller has
    actually loaded the persisted favorite ids.
    """
    if not hydrated or mode == "all":
        return list(products)
    ids = {str(f) for f in favorites}
    if mode == "only":
        return [p for p in products if p.id in ids]
    if mode == "non":
        return [p for p in products if p.id not in ids]
    return list(products)


def filter_products(
    products: Sequence[Product],
    criteria: FilterCriteria,
    *,
    favorites: Iterable[str] = (),
    favorite_mode: FavoriteMode = "all",
    hydrated: bool = False,
) -> List[Product]:
    """
    Return the products satisfying every active constraint of criteria.

    Inverted ranges are not repaired here; callers validate them first.
    """
    result = list(products)

    if criteria.categories:
        categories = set(criteria.categories)
        result = [p for p in result if p.category in categories]

    if criteria.brands:
        brands = set(criteria.brands)
        result = [p for p in result if p.brand in brands]

    result = filter_by_range(result, 'price', criteria.price)

    if criteria.ram:
        rams = set(criteria.ram)
        result = [p for p in result if _in_discrete(p.ram_gb, rams)]

    if criteria.storage:
        storages = set(criteria.storage)
        result = [p for p in result if _in_discrete(p.storage_gb, storages)]

    if criteria.cpus:
        cpus = {_cpu_key(c) for c in criteria.cpus}
        result = [p for p in result if p.cpu is not None and _cpu_key(p.cpu) in cpus]

    result = filter_by_range(result, 'screen_inch', criteria.screen)
    result = filter_by_range(result, 'battery_wh', criteria.battery)
    result = filter_by_range(result, 'weight_kg', criteria.weight)

    return apply_favorites(result, favorites, favorite_mode, hydrated)
