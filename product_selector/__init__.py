"""
Top-level package for the product selector.

This package normalizes a storefront catalog (Shopify product
exports), filters it by structural predicates, ranks candidates for a
free-text query with two lightweight scorers fused by Reciprocal Rank
Fusion, and renders the winners as compact cards for an LLM prompt.
There are no side-effects on import; the catalog lives in an explicit
:class:`~product_selector.catalog.CatalogStore` owned by the caller.
"""

from .catalog import CatalogStore, load_catalog, normalize_product
from .filters import apply_filters
from .ranking import rank_products
from .selector import ProductSelector

__all__ = [
    "CatalogStore",
    "ProductSelector",
    "apply_filters",
    "load_catalog",
    "normalize_product",
    "rank_products",
]
