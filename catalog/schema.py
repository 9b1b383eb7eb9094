"""
Schema Module
Contains: Product record, filter criteria, AI range/filter models, stats,
AI summary/compare payloads and the tagged parse result helper.
"""
import math
from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .config import (
    COMPARE_ITEM_MAX_LEN,
    COMPARE_TLDR_MAX_LEN,
    CPU_PLACEHOLDERS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT,
    MAX_PAGE_SIZE,
    MAX_PROS_CONS,
    SUMMARY_ITEM_MAX_LEN,
    SUMMARY_TLDR_MAX_LEN,
)

SortOption = Literal["alphabetical", "price-asc", "price-desc", "rating-asc", "rating-desc"]
AISortOption = Literal["alphabetical", "price_asc", "price_desc", "rating_asc", "rating_desc"]
FavoriteMode = Literal["all", "only", "non"]
ValueForMoney = Literal["poor", "average", "good", "excellent"]


def finite_or_none(value: Any) -> Optional[float]:
    """Return value if it is a real finite number, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if math.isfinite(value) else None


def is_cpu_placeholder(value: Optional[str]) -> bool:
    return value is None or value.strip().lower() in CPU_PLACEHOLDERS


# =========================================================================
# PRODUCT
# =========================================================================

class Product(BaseModel):
    """A catalog product as read from the store."""

    id: str
    name: str
    category: str
    brand: str
    price: float = Field(ge=0, allow_inf_nan=False)

    rating: Optional[float] = Field(default=None, ge=0, le=5)
    weight_kg: Optional[float] = None
    cpu: Optional[str] = None
    ram_gb: Optional[int] = None
    storage_gb: Optional[int] = None
    screen_inch: Optional[float] = None
    battery_wh: Optional[float] = None
    image_url: Optional[str] = None

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        """DB rows may carry integer ids"""
        return str(v) if isinstance(v, int) else v

    @field_validator('rating', 'weight_kg', 'ram_gb', 'storage_gb', 'screen_inch', 'battery_wh', mode='before')
    @classmethod
    def drop_non_finite(cls, v):
        if isinstance(v, float) and not math.isfinite(v):
            return None
        return v

    @field_validator('cpu', mode='before')
    @classmethod
    def normalize_cpu(cls, v):
        """The source data uses a dash placeholder for unknown CPUs"""
        if isinstance(v, str):
            v = v.strip()
            if is_cpu_placeholder(v):
                return None
        return v


# =========================================================================
# FILTER CRITERIA
# =========================================================================

class NumericRange(BaseModel):
    """Inclusive numeric bounds; a missing bound is unbounded on that side."""

    min: Optional[float] = None
    max: Optional[float] = None

    @property
    def active(self) -> bool:
        return self.min is not None or self.max is not None

    def is_inverted(self) -> bool:
        return self.min is not None and self.max is not None and self.min > self.max

    def contains(self, value: Any) -> bool:
        value = finite_or_none(value)
        if value is None:
            return False
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True


class FilterCriteria(BaseModel):
    """Request-scoped filter, sort and page selection."""

    categories: List[str] = Field(default_factory=list)
    brands: List[str] = Field(default_factory=list)
    ram: List[int] = Field(default_factory=list)
    storage: List[int] = Field(default_factory=list)
    cpus: List[str] = Field(default_factory=list)

    price: NumericRange = Field(default_factory=NumericRange)
    screen: NumericRange = Field(default_factory=NumericRange)
    battery: NumericRange = Field(default_factory=NumericRange)
    weight: NumericRange = Field(default_factory=NumericRange)

    sort: SortOption = DEFAULT_SORT
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    def ranges(self) -> Dict[str, NumericRange]:
        return {
            'price': self.price,
            'screen': self.screen,
            'battery': self.battery,
            'weight': self.weight,
        }


# =========================================================================
# AI-DERIVED FILTERS
# =========================================================================

class RangeSpec(BaseModel):
    """Numeric criterion as produced by the model: min/max or an exact value."""

    model_config = ConfigDict(allow_inf_nan=False)

    min: Optional[float] = None
    max: Optional[float] = None
    exact: Optional[float] = None


class AIParsedFilters(BaseModel):
    """Filter object produced by the NL translator."""

    model_config = ConfigDict(allow_inf_nan=False)

    categories: List[str] = Field(default_factory=list)
    brands: List[str] = Field(default_factory=list)

    price: RangeSpec = Field(default_factory=RangeSpec)
    ram_gb: RangeSpec = Field(default_factory=RangeSpec)
    storage_gb: RangeSpec = Field(default_factory=RangeSpec)
    screen_inch: RangeSpec = Field(default_factory=RangeSpec)
    battery_wh: RangeSpec = Field(default_factory=RangeSpec)
    weight_kg: RangeSpec = Field(default_factory=RangeSpec)

    cpus: List[str] = Field(default_factory=list)
    sort: AISortOption = "alphabetical"

    @field_validator('categories', 'brands', 'cpus', mode='before')
    @classmethod
    def null_list(cls, v):
        return [] if v is None else v

    @field_validator('price', 'ram_gb', 'storage_gb', 'screen_inch', 'battery_wh', 'weight_kg', mode='before')
    @classmethod
    def null_range(cls, v):
        return {} if v is None else v

    def range_fields(self) -> Dict[str, RangeSpec]:
        return {
            'price': self.price,
            'ram_gb': self.ram_gb,
            'storage_gb': self.storage_gb,
            'screen_inch': self.screen_inch,
            'battery_wh': self.battery_wh,
            'weight_kg': self.weight_kg,
        }


# =========================================================================
# STATS
# =========================================================================

class StatRange(BaseModel):
    min: float = 0
    max: float = 0


class ProductStats(BaseModel):
    """Bounds and distinct values of the whole catalog."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    min_price: float = 0
    max_price: float = 0
    categories: List[str] = Field(default_factory=list)
    brands: List[str] = Field(default_factory=list)
    ram_values: List[int] = Field(default_factory=list)
    storage_values: List[int] = Field(default_factory=list)
    cpu_values: List[str] = Field(default_factory=list)
    screen: StatRange = Field(default_factory=StatRange)
    battery: StatRange = Field(default_factory=StatRange)
    weight: StatRange = Field(default_factory=StatRange)


# =========================================================================
# AI SUMMARY / COMPARE
# =========================================================================

SummaryLine = Annotated[str, StringConstraints(max_length=SUMMARY_ITEM_MAX_LEN)]
CompareLine = Annotated[str, StringConstraints(max_length=COMPARE_ITEM_MAX_LEN)]


class LLMProduct(BaseModel):
    """The only product fields the model ever sees."""

    id: str
    name: str
    price: Optional[float] = None
    cpu: Optional[str] = None
    ram_gb: Optional[float] = None
    storage_gb: Optional[float] = None
    screen_inch: Optional[float] = None
    battery_wh: Optional[float] = None
    rating: Optional[float] = None


class SummaryItem(LLMProduct):
    pros: List[SummaryLine] = Field(default_factory=list, max_length=MAX_PROS_CONS)
    cons: List[SummaryLine] = Field(default_factory=list, max_length=MAX_PROS_CONS)


class CompareItem(LLMProduct):
    pros: List[CompareLine] = Field(default_factory=list, max_length=MAX_PROS_CONS)
    cons: List[CompareLine] = Field(default_factory=list, max_length=MAX_PROS_CONS)


class SummaryVerdict(BaseModel):
    tldr: Annotated[str, StringConstraints(max_length=SUMMARY_TLDR_MAX_LEN)]
    value_for_money: ValueForMoney = "average"


class CompareVerdict(BaseModel):
    tldr: Annotated[str, StringConstraints(max_length=COMPARE_TLDR_MAX_LEN)]
    value_for_money: ValueForMoney = "average"


class SummaryReply(BaseModel):
    """Model reply shape; server-side fields are not part of it."""
    item: SummaryItem
    summary: SummaryVerdict


class CompareReply(BaseModel):
    comparison: List[CompareItem] = Field(min_length=2, max_length=2)
    summary: CompareVerdict


class SummaryResult(SummaryReply):
    request_id: Optional[str] = None


class CompareResult(CompareReply):
    request_id: Optional[str] = None


# =========================================================================
# TAGGED PARSE RESULT
# =========================================================================

@dataclass
class ParseResult:
    """Success carries value; failure carries per-field error messages."""

    ok: bool
    value: Any = None
    errors: Dict[str, List[str]] = field(default_factory=dict)


def field_errors(exc: ValidationError) -> Dict[str, List[str]]:
    """Flatten pydantic errors into {field: [messages]}."""
    out: Dict[str, List[str]] = {}
    for err in exc.errors():
        key = ".".join(str(p) for p in err["loc"]) or "_root"
        out.setdefault(key, []).append(err["msg"])
    return out


def safe_parse(model: type, data: Any) -> ParseResult:
    try:
        return ParseResult(ok=True, value=model.model_validate(data))
    except ValidationError as exc:
        return ParseResult(ok=False, errors=field_errors(exc))
