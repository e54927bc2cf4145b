from __future__ import annotations

"""
Product selection over a loaded catalog.

:class:`ProductSelector` runs one request through the pipeline

    prepare filters -> filter catalog -> rank (query) or slice (browse) -> cards

and also exposes direct id lookup, "similar products" and catalog
statistics.  It keeps no per-request state; everything it reads comes
from the :class:`~product_selector.catalog.CatalogStore` it wraps.
"""

import math
from typing import Dict, List, Optional, Sequence, Tuple, Union

from loguru import logger

from .catalog import CatalogStore
from .config import (
    DEBUG_TOP_N,
    DEFAULT_LIMIT,
    DEFAULT_SIMILAR_LIMIT,
    REASON_SIMILAR,
    SELECT_MAX_RESULTS,
    SIMILAR_PRICE_MAX_GAP,
    SIMILAR_PRICE_WEIGHT,
    SIMILAR_TAG_WEIGHT,
    SIMILAR_TYPE_WEIGHT,
    SIMILAR_VENDOR_WEIGHT,
)
from .filters import apply_filters, merge_extracted_filters, validate_filters
from .mapping import format_product_card, reason_by_rank
from .ranking import rank_products
from .schemas import (
    CatalogStats,
    NormalizedProduct,
    PartialFilters,
    PriceRange,
    ProductCard,
    ProductSelectionResult,
    SearchFilters,
    SelectionDebug,
)


# ---------------------------
# Similarity helpers
# ---------------------------

def type_score(a: str, b: str) -> int:
    return SIMILAR_TYPE_WEIGHT if a == b else 0


def vendor_score(a: str, b: str) -> int:
    return SIMILAR_VENDOR_WEIGHT if a == b else 0


def tag_score(tags: Sequence[str], ref_tags: Sequence[str]) -> int:
    return SIMILAR_TAG_WEIGHT * sum(1 for t in tags if t in ref_tags)


def price_score(p1: float, p2: float) -> int:
    highest = max(p1, p2)
    if highest > 0 and abs(p1 - p2) / highest < SIMILAR_PRICE_MAX_GAP:
        return SIMILAR_PRICE_WEIGHT
    return 0


def similarity(product: NormalizedProduct, ref: NormalizedProduct) -> int:
    return (
        type_score(product.product_type, ref.product_type)
        + vendor_score(product.vendor, ref.vendor)
        + tag_score(product.tags, ref.tags)
        + price_score(product.price_min, ref.price_min)
    )


def _dedup_preserve_order(values: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(values))


class ProductSelector:
    def __init__(self, catalog: CatalogStore) -> None:
        self.catalog = catalog

    # -----------------------------------------------------------------
    # Selection
    # -----------------------------------------------------------------

    def _prepare(
        self,
        query: Optional[str],
        filters: Union[PartialFilters, dict, None],
        max_results: int,
    ) -> SearchFilters:
        if filters is None:
            partial = PartialFilters()
        elif isinstance(filters, dict):
            partial = PartialFilters.model_validate(filters)
        else:
            partial = filters
        # max_results overrides any limit carried in the filters
        partial = partial.model_copy(
            update={"query": query, "limit": min(max_results, SELECT_MAX_RESULTS)}
        )
        search_filters = validate_filters(partial)
        if query:
            search_filters = merge_extracted_filters(search_filters, query)
        return search_filters

    def select_products(
        self,
        query: Optional[str] = None,
        filters: Union[PartialFilters, dict, None] = None,
        max_results: int = DEFAULT_LIMIT,
    ) -> ProductSelectionResult:
        """Select up to ``max_results`` (at most 10) products for a request.

        With a non-blank ``query`` the filtered candidates are ranked and
        each card carries a reason by position.  Without one the request
        is in browsing mode: the first filtered products in catalog order,
        no scoring and no reasons.
        """
        search_filters = self._prepare(query, filters, max_results)
        candidates = apply_filters(self.catalog.get_all(), search_filters)
        filtered_count = len(candidates)
        limit = search_filters.limit

        if not (query or "").strip():
            selected = candidates[:limit]
            cards = [format_product_card(p) for p in selected]
            debug = SelectionDebug(filtered_count=filtered_count)
        else:
            ranking = rank_products(query, candidates)
            top_ids = [s.id for s in ranking.scores[:limit]]
            selected = self.catalog.get_by_ids(top_ids)
            cards = [format_product_card(p, reason_by_rank(i)) for i, p in enumerate(selected)]
            debug = SelectionDebug(
                bm25_top=[s.id for s in ranking.lexical[:DEBUG_TOP_N]],
                semantic_top=[s.id for s in ranking.semantic[:DEBUG_TOP_N]],
                fused_top=top_ids,
                filtered_count=filtered_count,
            )

        logger.info(
            "Selected {} of {} filtered products (query={!r})",
            len(cards),
            filtered_count,
            query,
        )
        return ProductSelectionResult(
            products=cards,
            total_found=filtered_count,
            search_query=query,
            filters_applied=search_filters,
            debug=debug,
        )

    # -----------------------------------------------------------------
    # Lookups
    # -----------------------------------------------------------------

    def get_products_by_ids(self, ids: Sequence[int]) -> List[ProductCard]:
        products = self.catalog.get_by_ids(ids)
        if len(products) < len(ids):
            logger.warning("{} requested ids not in catalog; skipping", len(ids) - len(products))
        return [format_product_card(p) for p in products]

    def get_similar_products(self, product_id: int, limit: int = DEFAULT_SIMILAR_LIMIT) -> List[ProductCard]:
        """Products sharing type, vendor, tags or price band with ``product_id``.

        The reference product itself is never returned.  Unknown ids give
        an empty list.
        """
        ref = self.catalog.get_by_id(product_id)
        if ref is None:
            return []
        scored: List[Tuple[NormalizedProduct, int]] = []
        for product in self.catalog.get_all():
            if product.id == product_id:
                continue
            sim = similarity(product, ref)
            if sim > 0:
                scored.append((product, sim))
        # sorted() is stable with reverse=True
        scored = sorted(scored, key=lambda x: x[1], reverse=True)
        return [format_product_card(p, REASON_SIMILAR) for p, _ in scored[:limit]]

    def get_catalog_stats(self) -> CatalogStats:
        products = self.catalog.get_all()
        prices = [v for p in products for v in (p.price_min, p.price_max)]
        price_range: Dict[str, float] = {
            "min": min(prices) if prices else math.inf,
            "max": max(prices) if prices else -math.inf,
        }
        return CatalogStats(
            total_products=len(products),
            vendors=_dedup_preserve_order([p.vendor for p in products]),
            product_types=_dedup_preserve_order([p.product_type for p in products if p.product_type]),
            price_range=PriceRange(**price_range),
        )
