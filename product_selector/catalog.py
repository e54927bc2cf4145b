from __future__ import annotations

"""
Catalog normalization and the in-memory catalog store.

Raw storefront records (Shopify product exports) are validated against
:class:`~product_selector.schemas.RawProduct`, normalized into
:class:`~product_selector.schemas.NormalizedProduct` and held by a
:class:`CatalogStore`.  Records that fail validation are skipped; the
load report lists them by position so callers can see what was
dropped without changing what gets accepted.
"""

import json
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from loguru import logger
from pydantic import ValidationError

from .config import CATALOG_PATH
from .normalize import build_doc_text, parse_tags, strip_html
from .schemas import (
    CatalogLoadReport,
    NormalizedProduct,
    ProductImage,
    ProductVariant,
    RawImage,
    RawProduct,
    RawVariant,
    RejectedItem,
)


class CatalogFileError(Exception):
    """Raised when a catalog file exists but cannot be used."""


# ---------------------------
# Field helpers
# ---------------------------

def _price_range(variants: Sequence[RawVariant]) -> Tuple[float, float]:
    prices = [float(v.price) for v in variants]
    return min(prices), max(prices)


def _normalize_images(images: Optional[Sequence[RawImage]]) -> Tuple[ProductImage, ...]:
    if not images:
        return ()
    return tuple(ProductImage(src=img.src, alt=img.alt or None) for img in images)


def _normalize_variants(variants: Sequence[RawVariant]) -> Tuple[ProductVariant, ...]:
    return tuple(
        ProductVariant(
            sku=v.sku or None,
            price=float(v.price),
            available=True if v.available is None else v.available,
            title=v.title or None,
        )
        for v in variants
    )


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    err = errors[0]
    loc = ".".join(str(part) for part in err.get("loc", ())) or "<root>"
    return f"{loc}: {err.get('msg', 'invalid')}"


# ---------------------------
# Normalization
# ---------------------------

def normalize_product(raw: RawProduct) -> NormalizedProduct:
    """Convert one validated Shopify record into a normalized product.

    Pure: the same input always gives an equal output.  ``raw.variants``
    must be non-empty, which schema validation already guarantees.
    """
    tags = parse_tags(raw.tags)
    price_min, price_max = _price_range(raw.variants)
    description_text = strip_html(raw.body_html)
    return NormalizedProduct(
        id=raw.id,
        title=raw.title,
        url=f"/products/{raw.handle}",
        vendor=raw.vendor,
        product_type=raw.product_type,
        tags=tags,
        available=len(raw.variants) > 0,
        price_min=price_min,
        price_max=price_max,
        images=_normalize_images(raw.images),
        description_text=description_text,
        doc_text=build_doc_text(
            raw.title, description_text, raw.vendor, raw.product_type, tags
        ),
        variants=_normalize_variants(raw.variants),
    )


CatalogItem = Union[NormalizedProduct, RawProduct, dict]


def load_catalog_report(items: Iterable[CatalogItem]) -> CatalogLoadReport:
    """Validate and normalize a batch of loosely-typed catalog records.

    Already-normalized products pass straight through.  Anything else is
    validated as a :class:`RawProduct`; failures are recorded in the
    report (index + first validation error) and skipped.
    """
    products: List[NormalizedProduct] = []
    rejected: List[RejectedItem] = []
    for index, item in enumerate(items):
        if isinstance(item, NormalizedProduct):
            products.append(item)
            continue
        try:
            raw = item if isinstance(item, RawProduct) else RawProduct.model_validate(item)
        except ValidationError as e:
            reason = _first_error(e)
            logger.warning("Skipping catalog item {}: {}", index, reason)
            rejected.append(RejectedItem(index=index, reason=reason))
            continue
        products.append(normalize_product(raw))
    logger.info(
        "Normalized {} catalog items ({} rejected)", len(products), len(rejected)
    )
    return CatalogLoadReport(products=products, rejected=rejected)


def load_catalog(items: Iterable[CatalogItem]) -> List[NormalizedProduct]:
    """Same as :func:`load_catalog_report` but returns only the products."""
    return load_catalog_report(items).products


def read_catalog_file(path: Optional[Path] = None) -> list:
    """
    Read a JSON array of raw catalog records from disk.

    A missing file raises ``FileNotFoundError``; anything that is not a
    JSON array raises :class:`CatalogFileError`.  Both are treated as
    fatal configuration errors by the API and CLI.
    """
    path = Path(path) if path is not None else CATALOG_PATH
    logger.info("Loading catalog file from {}", path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CatalogFileError(f"Catalog file {path} is not valid JSON: {e}") from e
    # Shopify's products.json wraps the array in {"products": [...]}
    if isinstance(data, dict) and isinstance(data.get("products"), list):
        data = data["products"]
    if not isinstance(data, list):
        raise CatalogFileError(f"Catalog file {path} must contain a JSON array")
    logger.info("Read {} raw records from {}", len(data), path)
    return data


# ---------------------------
# Store
# ---------------------------

class CatalogStore:
    """
    In-memory catalog: products in insertion order plus an id index.

    The store is replaced wholesale by :meth:`load`; there is no
    partial-update API.  ``load`` builds a new immutable snapshot and
    swaps it in under a lock, so readers always see either the old or
    the new catalog, never a half-built one.
    """

    def __init__(self, items: Optional[Iterable[CatalogItem]] = None) -> None:
        self._lock = threading.Lock()
        self._products: Tuple[NormalizedProduct, ...] = ()
        self._by_id: Dict[int, NormalizedProduct] = {}
        self.rejected_count = 0
        if items is not None:
            self.load(items)

    def load(self, items: Iterable[CatalogItem]) -> CatalogLoadReport:
        report = load_catalog_report(items)
        products = tuple(report.products)
        by_id = {p.id: p for p in products}
        with self._lock:
            self._products, self._by_id = products, by_id
            self.rejected_count = report.rejected_count
        logger.info("Catalog store loaded with {} products", len(products))
        return report

    @classmethod
    def from_file(cls, path: Optional[Path] = None) -> "CatalogStore":
        return cls(read_catalog_file(path))

    def get_all(self) -> List[NormalizedProduct]:
        return list(self._products)

    def get_by_id(self, product_id: int) -> Optional[NormalizedProduct]:
        return self._by_id.get(product_id)

    def get_by_ids(self, ids: Iterable[int]) -> List[NormalizedProduct]:
        """Look up ids in the given order; unknown ids are dropped."""
        by_id = self._by_id
        return [by_id[i] for i in ids if i in by_id]

    def count(self) -> int:
        return len(self._products)

    def search_text(self, query: str) -> List[NormalizedProduct]:
        """Plain substring match of the lowercased query against ``doc_text``."""
        term = (query or "").lower()
        return [p for p in self._products if term in p.doc_text]
