from product_selector.filters import (
    apply_filters,
    extract_filters_from_query,
    merge_extracted_filters,
    validate_filters,
)
from product_selector.schemas import SearchFilters


def _ids(products):
    return [p.id for p in products]


def test_tag_include_is_substring_and_exclude_negates(product_factory):
    product = product_factory(tags="ladder, safety")
    assert _ids(apply_filters([product], SearchFilters(tags=["safe"]))) == [product.id]
    assert apply_filters([product], SearchFilters(exclude_tags=["safe"])) == []
    assert apply_filters([product], SearchFilters(tags=["SAFETY"])) == [product]


def test_max_price_checks_ceiling_of_range(product_factory):
    product = product_factory(prices=("100.00", "200.00"))
    assert apply_filters([product], SearchFilters(max_price=150)) == []
    assert apply_filters([product], SearchFilters(max_price=250)) == [product]


def test_min_price_checks_floor_of_range(product_factory):
    product = product_factory(prices=("100.00", "200.00"))
    assert apply_filters([product], SearchFilters(min_price=150)) == []
    assert apply_filters([product], SearchFilters(min_price=100)) == [product]


def test_availability_filter(product_factory):
    in_stock = product_factory(id=1)
    sold_out = product_factory(id=2).model_copy(update={"available": False})
    assert _ids(apply_filters([in_stock, sold_out], SearchFilters())) == [1]
    assert _ids(apply_filters([in_stock, sold_out], SearchFilters(available_only=False))) == [1, 2]


def test_vendor_and_type_are_case_insensitive_substrings(store):
    products = store.get_all()
    assert _ids(apply_filters(products, SearchFilters(vendor="acm"))) == [1, 3]
    assert _ids(apply_filters(products, SearchFilters(product_type="LADD"))) == [1, 4]


def test_filters_commute(store):
    products = store.get_all()
    a = SearchFilters(vendor="zeta")
    b = SearchFilters(max_price=200)
    both = SearchFilters(vendor="zeta", max_price=200)
    a_then_b = apply_filters(apply_filters(products, a), b)
    b_then_a = apply_filters(apply_filters(products, b), a)
    assert _ids(apply_filters(products, both)) == _ids(a_then_b) == _ids(b_then_a) == [4]


def test_apply_filters_keeps_input_order_and_does_not_mutate(store):
    products = store.get_all()
    reversed_products = list(reversed(products))
    assert _ids(apply_filters(reversed_products, SearchFilters())) == [5, 4, 3, 2, 1]
    assert len(reversed_products) == 5


def test_extract_filters_from_query():
    extracted = extract_filters_from_query("Ladder under 200 in stock")
    assert extracted.max_price == 200
    assert extracted.min_price is None
    assert extracted.product_type == "ladder"
    assert extracted.available_only is True

    extracted = extract_filters_from_query("escalera over 50")
    assert extracted.min_price == 50
    assert extracted.product_type == "escalera"


def test_extract_filters_no_matches():
    extracted = extract_filters_from_query("something nice")
    assert extracted.max_price is None
    assert extracted.min_price is None
    assert extracted.product_type is None
    assert extracted.available_only is None
    assert extract_filters_from_query("").product_type is None


def test_merge_prefers_explicit_values():
    explicit = validate_filters({"max_price": 100})
    merged = merge_extracted_filters(explicit, "ladder under 200")
    assert merged.max_price == 100
    assert merged.product_type == "ladder"

    merged = merge_extracted_filters(validate_filters({}), "ladder under 200")
    assert merged.max_price == 200


def test_validate_filters_defaults_and_clamps():
    filters = validate_filters({})
    assert filters.available_only is True
    assert filters.limit == 10
    assert validate_filters({"limit": 999}).limit == 20
    assert validate_filters({"limit": 0}).limit == 1
    assert validate_filters({"limit": -4}).limit == 1


def test_validate_filters_drops_non_positive_prices():
    filters = validate_filters({"max_price": 0, "min_price": -5})
    assert filters.max_price is None
    assert filters.min_price is None
    assert validate_filters({"max_price": 99.5}).max_price == 99.5
