from __future__ import annotations

"""
FastAPI application for the product selector.

A thin HTTP wrapper around :class:`~product_selector.selector.ProductSelector`.
The catalog is read once at startup from ``CATALOG_PATH``; a bad
catalog file is fatal there, not on the first request.  Tests (or an
embedding service) can inject a ready selector with :func:`set_selector`.
"""

import math
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel, Field

from .catalog import CatalogStore
from .config import (
    API_HOST,
    API_PORT,
    CATALOG_PATH,
    DEFAULT_LIMIT,
    DEFAULT_SIMILAR_LIMIT,
    MAX_LIMIT,
)
from .schemas import HealthResponse, PartialFilters, ProductCard, ProductSelectionResult
from .selector import ProductSelector

_selector = None


def set_selector(selector: Optional[ProductSelector]) -> None:
    global _selector
    _selector = selector


def _require_selector():
    if _selector is None:
        raise HTTPException(status_code=503, detail="Catalog not loaded")
    return _selector


# =============================================================================
# Request models
# =============================================================================

class SelectRequest(BaseModel):
    query: Optional[str] = None
    filters: Optional[PartialFilters] = None
    max_results: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)


class LookupRequest(BaseModel):
    ids: List[int] = Field(default_factory=list)


# =============================================================================
# App
# =============================================================================

app = FastAPI(title="Product Selector")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_event() -> None:
    if _selector is not None:
        logger.info("Selector already configured; skipping catalog load.")
        return
    logger.info("Loading catalog from {}", CATALOG_PATH)
    store = CatalogStore.from_file(CATALOG_PATH)
    set_selector(ProductSelector(store))
    logger.info("Startup complete with {} products.", store.count())


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    if _selector is None:
        return HealthResponse(status="loading")
    return HealthResponse(status="healthy", products=_selector.catalog.count())


@app.post("/select", response_model=ProductSelectionResult)
def select(req: SelectRequest) -> ProductSelectionResult:
    selector = _require_selector()
    return selector.select_products(
        query=req.query, filters=req.filters, max_results=req.max_results
    )


@app.post("/products/lookup", response_model=List[ProductCard])
def lookup(req: LookupRequest) -> List[ProductCard]:
    return _require_selector().get_products_by_ids(req.ids)


@app.get("/products/{product_id}", response_model=ProductCard)
def product(product_id: int) -> ProductCard:
    cards = _require_selector().get_products_by_ids([product_id])
    if not cards:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return cards[0]


@app.get("/products/{product_id}/similar", response_model=List[ProductCard])
def similar(product_id: int, limit: int = Query(DEFAULT_SIMILAR_LIMIT, ge=1, le=MAX_LIMIT)) -> List[ProductCard]:
    selector = _require_selector()
    if selector.catalog.get_by_id(product_id) is None:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return selector.get_similar_products(product_id, limit=limit)


@app.get("/stats")
def stats() -> dict:
    data = _require_selector().get_catalog_stats().model_dump()
    # +/-inf (empty catalog) is not valid JSON
    data["price_range"] = {
        k: (v if math.isfinite(v) else None) for k, v in data["price_range"].items()
    }
    return data


# =============================================================================
# Server entry point
# =============================================================================

def main(host: str = API_HOST, port: int = API_PORT) -> None:
    logger.info("Serving product selector on {}:{}", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
