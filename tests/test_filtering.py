import pytest
from pydantic import ValidationError

from app.schemas.filters import FilterState, SortKey
from app.services.filtering import (
    active_filter_count,
    apply_filters,
    apply_sort,
    filter_and_sort,
    matches_filters,
)
from app.services.normalizer import normalize_properties


@pytest.fixture
def properties(sample_records):
    return normalize_properties(sample_records)


FILTER_GRID = [
    FilterState(),
    FilterState(price_range=(0, 1_000_000)),
    FilterState(price_range=(850_000, 2_400_000), bedrooms="3"),
    FilterState(property_type="house"),
    FilterState(property_type="house", listing_type="owner"),
    FilterState(bathrooms="2", bedrooms="any"),
    FilterState(listing_type="agent", search_term="maun"),
    FilterState(search_term="GABORONE"),
    FilterState(property_type="land"),
]


def test_price_and_bedroom_scenario():
    props = normalize_properties([
        {"id": 1, "price": 400000, "bedrooms": 2},
        {"id": 2, "price": 900000, "bedrooms": 4},
    ])
    result = apply_filters(props, FilterState(price_range=(0, 500000), bedrooms="any"))
    assert [p.id for p in result] == [1]


@pytest.mark.parametrize("filters", FILTER_GRID)
def test_filters_return_subset_satisfying_every_predicate(properties, filters):
    result = apply_filters(properties, filters)
    assert all(p in properties for p in result)
    low, high = filters.price_range
    for p in result:
        assert low <= p.price <= high
        assert filters.property_type in ("all", p.property_type)
        assert filters.listing_type in ("all", p.listing_type)
        if filters.min_bedrooms is not None:
            assert p.bedrooms >= filters.min_bedrooms
        if filters.min_bathrooms is not None:
            assert p.bathrooms >= filters.min_bathrooms
        if filters.search_term:
            term = filters.search_term.lower()
            assert term in p.title.lower() or term in p.location.lower()
    # Nothing that passes every predicate is dropped
    assert len(result) == sum(matches_filters(p, filters) for p in properties)


@pytest.mark.parametrize("filters", FILTER_GRID)
def test_filters_are_idempotent(properties, filters):
    once = apply_filters(properties, filters)
    assert apply_filters(once, filters) == once


def test_filter_examples(properties):
    assert [p.id for p in apply_filters(properties, FilterState(property_type="house"))] == [1, 3]
    assert [p.id for p in apply_filters(properties, FilterState(bedrooms="3"))] == [1, 3]
    assert [p.id for p in apply_filters(properties, FilterState(search_term="phakalane"))] == [3]
    assert apply_filters(properties, FilterState(property_type="land")) == []


def test_price_bounds_are_inclusive(properties):
    result = apply_filters(properties, FilterState(price_range=(850_000, 1_250_000)))
    assert sorted(p.id for p in result) == [1, 2]


def test_empty_input_gives_empty_output():
    assert apply_filters([], FilterState()) == []
    assert apply_sort([], SortKey.price_high) == []


@pytest.mark.parametrize("sort_by", list(SortKey))
def test_sort_keeps_the_same_elements(properties, sort_by):
    original = list(properties)
    ordered = apply_sort(properties, sort_by)
    assert sorted(p.id for p in ordered) == sorted(p.id for p in properties)
    assert properties == original
    assert ordered is not properties


def test_price_low_is_non_decreasing(properties):
    ordered = apply_sort(properties, SortKey.price_low)
    for a, b in zip(ordered, ordered[1:]):
        assert a.price <= b.price
    assert [p.id for p in ordered] == [2, 1, 3, 4]


def test_descending_sorts_treat_missing_as_zero(properties):
    assert [p.id for p in apply_sort(properties, SortKey.price_high)] == [4, 3, 1, 2]
    # Property 3 has no square footage
    assert [p.id for p in apply_sort(properties, SortKey.sqft_large)] == [4, 1, 2, 3]
    # Property 4 has no bedroom count
    assert [p.id for p in apply_sort(properties, SortKey.bedrooms)] == [3, 1, 2, 4]


def test_newest_and_unknown_keys_keep_source_order(properties):
    assert [p.id for p in apply_sort(properties, SortKey.newest)] == [1, 2, 3, 4]
    assert [p.id for p in apply_sort(properties, "cheapest")] == [1, 2, 3, 4]


def test_sort_is_stable_for_ties():
    props = normalize_properties([
        {"id": "a", "price": 100, "bedrooms": 2},
        {"id": "b", "price": 100, "bedrooms": 2},
        {"id": "c", "price": 50, "bedrooms": 2},
    ])
    assert [p.id for p in apply_sort(props, SortKey.price_low)] == ["c", "a", "b"]
    assert [p.id for p in apply_sort(props, SortKey.bedrooms)] == ["a", "b", "c"]


def test_filter_and_sort(properties):
    result = filter_and_sort(properties, FilterState(listing_type="owner"), SortKey.price_high)
    assert [p.id for p in result] == [3, 2]


def test_active_filter_count():
    assert active_filter_count(FilterState()) == 0
    assert active_filter_count(FilterState(price_range=(0, 100000), bedrooms="2", search_term="Maun")) == 3


def test_filter_state_validation():
    assert FilterState(bedrooms="3+").bedrooms == "3"
    assert FilterState(bathrooms=2).bathrooms == "2"
    assert FilterState(property_type="House").property_type == "house"
    with pytest.raises(ValidationError):
        FilterState(property_type="castle")
    with pytest.raises(ValidationError):
        FilterState(listing_type="rent")
    with pytest.raises(ValidationError):
        FilterState(price_range=(500, 100))
    with pytest.raises(ValidationError):
        FilterState(price_range=(-1, 100))
    with pytest.raises(ValidationError):
        FilterState(bedrooms="lots")


@pytest.mark.parametrize("bounds", [(float("nan"), 100), (0, float("nan")), (0, float("inf"))])
def test_price_range_must_be_finite(bounds):
    with pytest.raises(ValidationError):
        FilterState(price_range=bounds)
