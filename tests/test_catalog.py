import json

import pytest
from pydantic import ValidationError

from product_selector.catalog import (
    CatalogFileError,
    CatalogStore,
    load_catalog,
    load_catalog_report,
    normalize_product,
    read_catalog_file,
)
from product_selector.schemas import RawProduct


def test_normalize_product_scenario(raw_factory):
    raw = RawProduct.model_validate(
        raw_factory(
            id=1,
            title="Test Ladder 3.5m",
            body_html="<p>Pro <b>ladder</b></p>",
            vendor="V",
            product_type="Ladder",
            tags="a, b",
            handle="t",
            prices=("150.00",),
        )
    )
    product = normalize_product(raw)
    assert product.description_text == "Pro ladder"
    assert product.price_min == product.price_max == 150.0
    assert product.doc_text == "test ladder 3.5m pro ladder v ladder a b"
    assert product.url == "/products/t"
    assert product.tags == ("a", "b")
    assert product.available is True


def test_normalize_is_pure(raw_factory):
    raw = RawProduct.model_validate(raw_factory(prices=("10.00", "20.00")))
    assert normalize_product(raw) == normalize_product(raw)


def test_price_range_across_variants(product_factory):
    product = product_factory(prices=("30.00", "10.50", "20"))
    assert product.price_min == 10.5
    assert product.price_max == 30.0
    assert [v.price for v in product.variants] == [30.0, 10.5, 20.0]


def test_empty_tags_and_missing_html(product_factory):
    product = product_factory(title="Plain", tags="", body_html=None, vendor="", product_type="")
    assert product.tags == ()
    assert product.description_text == ""
    assert product.doc_text == "plain"


def test_tags_trimmed_duplicates_kept(product_factory):
    product = product_factory(tags=" Safety ,, ladder , Safety ")
    assert product.tags == ("Safety", "ladder", "Safety")


def test_description_whitespace_collapsed(product_factory):
    product = product_factory(body_html="<div>\n  Two\t\tlines<br/>\n here </div>")
    assert product.description_text == "Two lines here"


def test_images_mapped(product_factory):
    product = product_factory(images=[{"src": "a.jpg", "alt": ""}, {"src": "b.jpg", "alt": "Side"}])
    assert [i.src for i in product.images] == ["a.jpg", "b.jpg"]
    assert product.images[0].alt is None
    assert product.images[1].alt == "Side"
    assert product_factory().images == ()


def test_load_catalog_skips_invalid_records(raw_factory):
    no_title = raw_factory(id=2)
    del no_title["title"]
    no_variants = raw_factory(id=3)
    no_variants["variants"] = []
    bad_price = raw_factory(id=4, prices=("abc",))
    items = [raw_factory(id=1), no_title, no_variants, bad_price, "junk", raw_factory(id=5)]

    report = load_catalog_report(items)
    assert [p.id for p in report.products] == [1, 5]
    assert [r.index for r in report.rejected] == [1, 2, 3, 4]
    assert report.rejected_count == 4
    assert [p.id for p in load_catalog(items)] == [1, 5]


def test_load_catalog_rejects_coerced_scalars(raw_factory):
    bool_id = raw_factory(id=2)
    bool_id["id"] = True
    string_id = raw_factory(id=3)
    string_id["id"] = "3"
    numeric_price = raw_factory(id=4)
    numeric_price["variants"][0]["price"] = 150
    numeric_tags = raw_factory(id=5)
    numeric_tags["tags"] = 7
    items = [raw_factory(id=1), bool_id, string_id, numeric_price, numeric_tags]

    report = load_catalog_report(items)
    assert [p.id for p in report.products] == [1]
    assert [r.index for r in report.rejected] == [1, 2, 3, 4]
    assert report.rejected[0].reason.startswith("id:")
    assert report.rejected[2].reason.startswith("variants.0.price:")


def test_load_catalog_accepts_normalized_products(product_factory, raw_factory):
    ready = product_factory(id=7)
    products = load_catalog([ready, raw_factory(id=8)])
    assert products[0] is ready
    assert [p.id for p in products] == [7, 8]


def test_store_lookups(store):
    assert store.count() == 5
    assert store.get_by_id(3).title == "Tool Belt"
    assert store.get_by_id(999) is None
    assert [p.id for p in store.get_by_ids([4, 999, 1])] == [4, 1]


def test_store_get_all_returns_copy(store):
    products = store.get_all()
    products.clear()
    assert store.count() == 5
    assert len(store.get_all()) == 5


def test_store_products_cannot_be_mutated_in_place(store):
    product = store.get_all()[0]
    with pytest.raises(AttributeError):
        product.tags.append("hidden")
    with pytest.raises(ValidationError):
        product.tags = ("hidden",)
    assert store.get_by_id(product.id).tags == product.tags
    assert "hidden" not in store.get_by_id(product.id).tags


def test_normalized_images_and_variants_are_frozen(product_factory):
    product = product_factory(images=[{"src": "a.jpg", "alt": "Front"}])
    assert isinstance(product.images, tuple)
    assert isinstance(product.variants, tuple)
    with pytest.raises(ValidationError):
        product.images[0].alt = "changed"
    with pytest.raises(ValidationError):
        product.variants[0].price = 0.0
    assert product.images[0].alt == "Front"


def test_store_reload_replaces_everything(store, raw_factory):
    bad = raw_factory(id=11)
    bad["variants"] = []
    report = store.load([raw_factory(id=10), bad])
    assert store.count() == 1
    assert store.get_by_id(1) is None
    assert store.get_by_id(10) is not None
    assert report.rejected_count == 1
    assert store.rejected_count == 1


def test_store_search_text(store):
    assert [p.id for p in store.search_text("LADDER")] == [1, 2, 4]


def test_read_catalog_file(tmp_path, raw_factory):
    path = tmp_path / "products.json"
    path.write_text(json.dumps([raw_factory(id=1)]), encoding="utf-8")
    assert CatalogStore.from_file(path).count() == 1

    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"products": [raw_factory(id=2)]}), encoding="utf-8")
    assert read_catalog_file(wrapped)[0]["id"] == 2


def test_read_catalog_file_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_catalog_file(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(CatalogFileError):
        read_catalog_file(broken)

    scalar = tmp_path / "scalar.json"
    scalar.write_text("42", encoding="utf-8")
    with pytest.raises(CatalogFileError):
        read_catalog_file(scalar)
