from __future__ import annotations

"""
Structural filtering of catalog candidates.

Filters are a list of independent predicates, each switched on by the
matching :class:`~product_selector.schemas.SearchFilters` field.  They
compose by intersection, so order does not change the result; the
list is ordered cheapest-first.  This module also holds the heuristic
extraction of implicit filters from free text ("ladder under 200") and
the validation that turns partial filters into a complete set.
"""

import re
from typing import Callable, List, Optional, Sequence, Union

from loguru import logger

from .config import (
    AVAILABILITY_PHRASES,
    DEFAULT_LIMIT,
    MAX_LIMIT,
    MAX_PRICE_PATTERN,
    MIN_LIMIT,
    MIN_PRICE_PATTERN,
    PRODUCT_TYPE_KEYWORDS,
)
from .schemas import NormalizedProduct, PartialFilters, SearchFilters

Products = List[NormalizedProduct]
Predicate = Callable[[NormalizedProduct], bool]

_MAX_PRICE_RE = re.compile(MAX_PRICE_PATTERN)
_MIN_PRICE_RE = re.compile(MIN_PRICE_PATTERN)


# ---------------------------
# Predicates
# ---------------------------

def _any_tag_matches(wanted: Sequence[str], product: NormalizedProduct) -> bool:
    """True if any wanted tag is a substring of any product tag (case-insensitive)."""
    product_tags = [t.lower() for t in product.tags]
    return any(w in pt for w in wanted for pt in product_tags)


def _build_predicates(filters: SearchFilters) -> List[Predicate]:
    predicates: List[Predicate] = []
    if filters.available_only:
        predicates.append(lambda p: p.available)
    if filters.min_price is not None:
        min_price = filters.min_price
        # floor of the range must clear the minimum
        predicates.append(lambda p: p.price_min >= min_price)
    if filters.max_price is not None:
        max_price = filters.max_price
        # ceiling of the range must stay under the cap
        predicates.append(lambda p: p.price_max <= max_price)
    if filters.vendor:
        vendor = filters.vendor.lower()
        predicates.append(lambda p: vendor in p.vendor.lower())
    if filters.product_type:
        product_type = filters.product_type.lower()
        predicates.append(lambda p: product_type in p.product_type.lower())
    if filters.tags:
        include = [t.lower() for t in filters.tags]
        predicates.append(lambda p: _any_tag_matches(include, p))
    if filters.exclude_tags:
        exclude = [t.lower() for t in filters.exclude_tags]
        predicates.append(lambda p: not _any_tag_matches(exclude, p))
    return predicates


def apply_filters(products: Sequence[NormalizedProduct], filters: SearchFilters) -> Products:
    """Return the products that pass every active filter, in input order."""
    result = list(products)
    for predicate in _build_predicates(filters):
        result = [p for p in result if predicate(p)]
    logger.debug("Filters kept {} of {} products", len(result), len(products))
    return result


# ---------------------------
# Query extraction
# ---------------------------

def _extract_number(pattern: re.Pattern, text: str) -> Optional[int]:
    match = pattern.search(text)
    return int(match.group(1)) if match else None


def extract_filters_from_query(query: str) -> PartialFilters:
    """
    Best-effort extraction of implicit filters from free text.

    Never raises; fields with no match stay ``None``.  Availability is
    only ever inferred as ``True`` (the words "available" / "in stock"),
    never as ``False``.
    """
    lowered = (query or "").lower()
    product_type = next((t for t in PRODUCT_TYPE_KEYWORDS if t in lowered), None)
    wants_stock = any(phrase in lowered for phrase in AVAILABILITY_PHRASES)
    return PartialFilters(
        max_price=_extract_number(_MAX_PRICE_RE, lowered),
        min_price=_extract_number(_MIN_PRICE_RE, lowered),
        product_type=product_type,
        available_only=True if wants_stock else None,
    )


_MERGEABLE_FIELDS = ("max_price", "min_price", "product_type", "available_only")


def merge_extracted_filters(filters: SearchFilters, query: str) -> SearchFilters:
    """
    Fill gaps in ``filters`` with values inferred from ``query``.

    Explicit values always win: an inferred value is only used where the
    explicit field is ``None``.
    """
    extracted = extract_filters_from_query(query)
    updates = {}
    for name in _MERGEABLE_FIELDS:
        inferred = getattr(extracted, name)
        if getattr(filters, name) is None and inferred is not None:
            updates[name] = inferred
    if updates:
        logger.debug("Inferred filters from query {!r}: {}", query, updates)
        return filters.model_copy(update=updates)
    return filters


# ---------------------------
# Validation
# ---------------------------

def _sanitize_limit(limit: Optional[int]) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return min(max(int(limit), MIN_LIMIT), MAX_LIMIT)


def _sanitize_price(price: Optional[float]) -> Optional[float]:
    return price if price and price > 0 else None


def validate_filters(partial: Union[PartialFilters, dict, None] = None) -> SearchFilters:
    """Fill defaults, clamp ``limit`` to [1, 20] and drop non-positive prices."""
    if partial is None:
        partial = PartialFilters()
    elif isinstance(partial, dict):
        partial = PartialFilters.model_validate(partial)
    return SearchFilters(
        query=partial.query,
        max_price=_sanitize_price(partial.max_price),
        min_price=_sanitize_price(partial.min_price),
        vendor=partial.vendor,
        product_type=partial.product_type,
        tags=partial.tags,
        exclude_tags=partial.exclude_tags,
        available_only=True if partial.available_only is None else partial.available_only,
        limit=_sanitize_limit(partial.limit),
    )
