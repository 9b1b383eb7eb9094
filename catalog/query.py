"""
Query Resolution
================
Raw list query -> validated FilterCriteria -> filtered, sorted, paginated
result envelope.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import DEFAULT_PAGE_SIZE, DEFAULT_SORT, MAX_PAGE_SIZE
from .errors import CatalogError, InvalidRangeError, QueryValidationError
from .filter import filter_products
from .schema import FilterCriteria, NumericRange, ParseResult, Product, SortOption, safe_parse
from .sort import sort_products

logger = logging.getLogger(__name__)

LIST_PARAMS = ('category', 'brand', 'ram', 'storage', 'cpu')
INVALID_RANGE_MESSAGE = "Invalid range: min value cannot be greater than max value."


class ListQuery(BaseModel):
    """Wire shape of the product list query string."""

    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias='pageSize')

    category: List[str] = Field(default_factory=list)
    brand: List[str] = Field(default_factory=list)

    min_price: Optional[float] = Field(default=None, ge=0, alias='minPrice')
    max_price: Optional[float] = Field(default=None, ge=0, alias='maxPrice')

    ram: List[int] = Field(default_factory=list)
    storage: List[int] = Field(default_factory=list)
    cpu: List[str] = Field(default_factory=list)

    screen_min: Optional[float] = Field(default=None, ge=0, alias='screenMin')
    screen_max: Optional[float] = Field(default=None, ge=0, alias='screenMax')
    battery_min: Optional[float] = Field(default=None, ge=0, alias='batteryMin')
    battery_max: Optional[float] = Field(default=None, ge=0, alias='batteryMax')
    weight_min: Optional[float] = Field(default=None, ge=0, alias='weightMin')
    weight_max: Optional[float] = Field(default=None, ge=0, alias='weightMax')

    sort: SortOption = DEFAULT_SORT

    @field_validator(*LIST_PARAMS, mode='before')
    @classmethod
    def as_list(cls, v):
        """Accept a single value or repeated values"""
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return list(v)
        return [v]

    def to_criteria(self) -> FilterCriteria:
        return FilterCriteria(
            categories=self.category,
            brands=self.brand,
            ram=self.ram,
            storage=self.storage,
            cpus=self.cpu,
            price=NumericRange(min=self.min_price, max=self.max_price),
            screen=NumericRange(min=self.screen_min, max=self.screen_max),
            battery=NumericRange(min=self.battery_min, max=self.battery_max),
            weight=NumericRange(min=self.weight_min, max=self.weight_max),
            sort=self.sort,
            page=self.page,
            page_size=self.page_size,
        )


class ListResult(BaseModel):
    """Paginated envelope returned by the list endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    items: List[Product]
    total: int
    page: int
    page_size: int = Field(alias='pageSize')
    has_next_page: bool = Field(alias='hasNextPage')

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def collect_params(raw: Any) -> Dict[str, Any]:
    """
    Flatten a query mapping into {name: value}.
    List params keep every value; scalar params keep the last non-empty one.
    Accepts Starlette QueryParams or a plain dict of str / list[str].
    """
    if hasattr(raw, 'multi_items'):
        pairs = list(raw.multi_items())
    else:
        pairs = []
        for key, value in raw.items():
            if isinstance(value, (list, tuple)):
                pairs.extend((key, v) for v in value)
            else:
                pairs.append((key, value))

    data: Dict[str, Any] = {}
    for key, value in pairs:
        if key in LIST_PARAMS:
            data.setdefault(key, []).append(value)
        elif value is not None and value != "":
            data[key] = value
    return data


def parse_list_query(raw: Mapping) -> ParseResult:
    """Coerce and validate query params. Does not check range consistency."""
    parsed = safe_parse(ListQuery, collect_params(raw))
    if not parsed.ok:
        return parsed
    return ParseResult(ok=True, value=parsed.value.to_criteria())


_RANGE_PARAMS = {
    'price': ('minPrice', 'maxPrice'),
    'screen': ('screenMin', 'screenMax'),
    'battery': ('batteryMin', 'batteryMax'),
    'weight': ('weightMin', 'weightMax'),
}


def _param_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def criteria_to_params(criteria: FilterCriteria) -> Dict[str, Any]:
    """
    Inverse of parse_list_query: the query params that reproduce criteria.
    Defaults are omitted, so an untouched filter gives an empty dict.
    """
    params: Dict[str, Any] = {}
    lists = {
        'category': criteria.categories,
        'brand': criteria.brands,
        'ram': [str(v) for v in criteria.ram],
        'storage': [str(v) for v in criteria.storage],
        'cpu': criteria.cpus,
    }
    for key, values in lists.items():
        if values:
            params[key] = list(values)

    for name, bounds in criteria.ranges().items():
        lo_key, hi_key = _RANGE_PARAMS[name]
        if bounds.min is not None:
            params[lo_key] = _param_number(bounds.min)
        if bounds.max is not None:
            params[hi_key] = _param_number(bounds.max)

    if criteria.sort != DEFAULT_SORT:
        params['sort'] = criteria.sort
    if criteria.page != 1:
        params['page'] = str(criteria.page)
    if criteria.page_size != DEFAULT_PAGE_SIZE:
        params['pageSize'] = str(criteria.page_size)
    return params


def check_ranges(criteria: FilterCriteria) -> None:
    """Directly supplied ranges are never swapped; min > max is a caller error."""
    inverted = [name for name, bounds in criteria.ranges().items() if bounds.is_inverted()]
    if inverted:
        raise InvalidRangeError(INVALID_RANGE_MESSAGE, details=inverted)


def validate_list_query(raw: Mapping) -> FilterCriteria:
    parsed = parse_list_query(raw)
    if not parsed.ok:
        raise QueryValidationError("Invalid query parameters", details=parsed.errors)
    check_ranges(parsed.value)
    return parsed.value


def paginate(items: Sequence[Product], page: int, page_size: int) -> ListResult:
    """Slice one page. Pages past the end are empty, not an error."""
    total = len(items)
    start = (page - 1) * page_size
    end = start + page_size
    return ListResult(
        items=list(items[start:end]),
        total=total,
        page=page,
        page_size=page_size,
        has_next_page=end < total,
    )


def run_query(products: Sequence[Product], criteria: FilterCriteria) -> ListResult:
    """Filter, sort and paginate an already loaded collection."""
    matched = filter_products(products, criteria)
    ordered = sort_products(matched, criteria.sort)
    return paginate(ordered, criteria.page, criteria.page_size)


async def resolve(raw: Mapping, store) -> ListResult:
    """
    Resolve a raw list query against the store.

    Validation happens before the store is touched. Any fault after that is
    logged and reported as a generic CatalogError.
    """
    criteria = validate_list_query(raw)

    try:
        products = await store.get_all_products()
        return run_query(products, criteria)
    except Exception as e:
        logger.exception(f"Product list query failed: {e}")
        raise CatalogError("Products could not be loaded") from e
