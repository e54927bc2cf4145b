from __future__ import annotations
"""
Data models for the product selector.

Pydantic models cover everything that crosses the engine boundary: the
raw (Shopify-shaped) catalog records that get validated on load, the
normalized products held by the catalog store, search filters, and the
cards/results handed back to callers.  Per-request scoring structures
(:class:`ProductScore`, :class:`RankingResult`) are plain dataclasses
since they never leave the ranking step.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    field_validator,
)

from .config import DEFAULT_LIMIT, MAX_LIMIT, MIN_LIMIT


# ---------------------------
# Raw catalog records
# ---------------------------

class RawVariant(BaseModel):
    model_config = ConfigDict(extra="ignore")

    price: StrictStr
    id: Optional[StrictInt] = None
    product_id: Optional[StrictInt] = None
    title: Optional[StrictStr] = None
    sku: Optional[StrictStr] = None
    position: Optional[StrictInt] = None
    compare_at_price: Optional[StrictStr] = None
    available: Optional[StrictBool] = None
    created_at: Optional[StrictStr] = None
    updated_at: Optional[StrictStr] = None

    @field_validator("price")
    @classmethod
    def price_must_be_decimal(cls, value: str) -> str:
        try:
            float(value)
        except (TypeError, ValueError):
            raise ValueError(f"variant price is not a decimal: {value!r}")
        return value


class RawImage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    src: StrictStr
    alt: Optional[StrictStr] = None
    id: Optional[StrictInt] = None
    position: Optional[StrictInt] = None
    width: Optional[StrictInt] = None
    height: Optional[StrictInt] = None


class RawProduct(BaseModel):
    """One Shopify product record as exported by the storefront."""

    model_config = ConfigDict(extra="ignore")

    id: StrictInt
    title: StrictStr
    body_html: Optional[StrictStr] = None
    vendor: StrictStr
    product_type: StrictStr
    created_at: StrictStr
    updated_at: StrictStr
    published_at: Optional[StrictStr] = None
    handle: StrictStr
    tags: StrictStr
    variants: List[RawVariant] = Field(min_length=1)
    images: Optional[List[RawImage]] = None


# ---------------------------
# Normalized catalog
# ---------------------------

class ProductImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    src: str
    alt: Optional[str] = None


class ProductVariant(BaseModel):
    model_config = ConfigDict(frozen=True)

    sku: Optional[str] = None
    price: float
    available: bool = True
    title: Optional[str] = None


class NormalizedProduct(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    url: str
    vendor: str
    product_type: str
    tags: Tuple[str, ...] = ()
    available: bool
    price_min: float
    price_max: float
    images: Tuple[ProductImage, ...] = ()
    description_text: str = ""
    doc_text: str  # sole substrate for lexical + semantic scoring
    variants: Optional[Tuple[ProductVariant, ...]] = None
    attributes: Optional[Dict[str, Any]] = None
    embedding: Optional[Tuple[float, ...]] = None


class RejectedItem(BaseModel):
    index: int
    reason: str


class CatalogLoadReport(BaseModel):
    products: List[NormalizedProduct] = Field(default_factory=list)
    rejected: List[RejectedItem] = Field(default_factory=list)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)


# ---------------------------
# Filters
# ---------------------------

class PartialFilters(BaseModel):
    """Filter fields as supplied by a caller or inferred from text.

    ``None`` means "not given"; :func:`~product_selector.filters.validate_filters`
    turns this into a complete :class:`SearchFilters`.
    """

    query: Optional[str] = None
    max_price: Optional[float] = None
    min_price: Optional[float] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    tags: Optional[List[str]] = None
    exclude_tags: Optional[List[str]] = None
    available_only: Optional[bool] = None
    limit: Optional[int] = None


class SearchFilters(BaseModel):
    query: Optional[str] = None
    max_price: Optional[float] = None
    min_price: Optional[float] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    tags: Optional[List[str]] = None
    exclude_tags: Optional[List[str]] = None
    available_only: bool = True
    limit: int = Field(default=DEFAULT_LIMIT, ge=MIN_LIMIT, le=MAX_LIMIT)


# ---------------------------
# Scoring
# ---------------------------

ScoreSource = Literal["bm25", "semantic", "fused"]


@dataclass
class ProductScore:
    id: int
    score: float
    rank: int
    source: ScoreSource


@dataclass
class RankingResult:
    scores: List[ProductScore]
    total_candidates: int
    algorithm_used: str
    lexical: List[ProductScore] = field(default_factory=list)
    semantic: List[ProductScore] = field(default_factory=list)


# ---------------------------
# Output
# ---------------------------

class ProductCard(BaseModel):
    id: int
    title: str
    price: str
    vendor: str
    type: str
    tags: List[str]
    description: str
    url: str
    image: Optional[str] = None
    reason: Optional[str] = None


class SelectionDebug(BaseModel):
    bm25_top: Optional[List[int]] = None
    semantic_top: Optional[List[int]] = None
    fused_top: Optional[List[int]] = None
    filtered_count: Optional[int] = None


class ProductSelectionResult(BaseModel):
    products: List[ProductCard]
    total_found: int
    search_query: Optional[str] = None
    filters_applied: Optional[SearchFilters] = None
    debug: Optional[SelectionDebug] = None


class PriceRange(BaseModel):
    min: float
    max: float


class CatalogStats(BaseModel):
    total_products: int
    vendors: List[str]
    product_types: List[str]
    price_range: PriceRange


class HealthResponse(BaseModel):
    status: str
    products: int = 0
