from typing import List, Optional, Sequence

import pytest

from product_selector.catalog import CatalogStore, normalize_product
from product_selector.schemas import NormalizedProduct, RawProduct
from product_selector.selector import ProductSelector


def make_raw(
    id: int = 1,
    title: str = "Test Product",
    body_html: Optional[str] = "<p>Test description</p>",
    vendor: str = "Test Vendor",
    product_type: str = "Test Type",
    tags: str = "test, product",
    handle: Optional[str] = None,
    prices: Sequence[str] = ("100.00",),
    images: Optional[List[dict]] = None,
) -> dict:
    record = {
        "id": id,
        "title": title,
        "body_html": body_html,
        "vendor": vendor,
        "product_type": product_type,
        "created_at": "2025-01-01T00:00:00Z",
        "updated_at": "2025-01-01T00:00:00Z",
        "handle": handle or title.lower().replace(" ", "-"),
        "tags": tags,
        "variants": [
            {
                "id": id * 100 + i,
                "product_id": id,
                "title": "Default",
                "price": price,
                "sku": f"SKU{id}{i}",
                "position": i + 1,
                "created_at": "2025-01-01T00:00:00Z",
                "updated_at": "2025-01-01T00:00:00Z",
            }
            for i, price in enumerate(prices)
        ],
    }
    if images is not None:
        record["images"] = images
    return record


def make_product(**kwargs) -> NormalizedProduct:
    return normalize_product(RawProduct.model_validate(make_raw(**kwargs)))


@pytest.fixture
def raw_factory():
    return make_raw


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def ladder_catalog() -> List[dict]:
    return [
        make_raw(id=1, title="Aluminium Ladder 3m", body_html="<p>Light step ladder</p>",
                 vendor="Acme", product_type="Ladder", tags="aluminium, safety", prices=("120.00",)),
        make_raw(id=2, title="Work Platform", body_html="<p>Mobile platform for height work</p>",
                 vendor="Zeta", product_type="Platform", tags="ladders, pro", prices=("300.00", "450.00")),
        make_raw(id=3, title="Tool Belt", body_html="<p>Leather belt</p>",
                 vendor="Acme", product_type="Tool", tags="accessories", prices=("25.00",)),
        make_raw(id=4, title="Telescopic Ladder", body_html="<p>Compact ladder, safe locking</p>",
                 vendor="Zeta", product_type="Ladder", tags="telescopic, safety", prices=("90.00", "110.00")),
        make_raw(id=5, title="Safety Harness", body_html="<p>Fall protection</p>",
                 vendor="Guard", product_type="", tags="safety", prices=("60.00",)),
    ]


@pytest.fixture
def store(ladder_catalog) -> CatalogStore:
    return CatalogStore(ladder_catalog)


@pytest.fixture
def selector(store) -> ProductSelector:
    return ProductSelector(store)
