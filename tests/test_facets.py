import pytest

from restaurant_reviews.facets import (
    derive_cuisines,
    derive_facet,
    derive_neighborhoods,
    filter_by_cuisine,
    filter_by_facets,
    filter_by_neighborhood,
)
from restaurant_reviews.models import Restaurant
from restaurant_reviews.stream import Stream


def _records():
    return [
        Restaurant(id=1, name="A", neighborhood="Manhattan", cuisine_type="Italian"),
        Restaurant(id=2, name="B", neighborhood="Brooklyn", cuisine_type="Thai"),
        Restaurant(id=3, name="C", neighborhood="Manhattan", cuisine_type="Thai"),
        Restaurant(id=4, name="D", neighborhood="Queens", cuisine_type="Italian"),
    ]


def test_derive_neighborhoods_is_distinct_in_first_seen_order():
    assert derive_neighborhoods(_records()).to_list() == ["Manhattan", "Brooklyn", "Queens"]


def test_derive_cuisines_accepts_a_stream():
    assert derive_cuisines(Stream.from_iterable(_records())).to_list() == ["Italian", "Thai"]


def test_each_derivation_starts_with_an_empty_seen_set():
    records = _records()
    assert derive_cuisines(records).to_list() == ["Italian", "Thai"]
    assert derive_cuisines(records).to_list() == ["Italian", "Thai"]


def test_derive_facet_rejects_unknown_field():
    with pytest.raises(ValueError):
        derive_facet(_records(), "address")


def test_derive_on_empty_input():
    assert derive_neighborhoods([]).to_list() == []


@pytest.mark.parametrize(
    "cuisine,neighborhood,expected",
    [
        ("all", "all", [1, 2, 3, 4]),
        ("Thai", "all", [2, 3]),
        ("all", "Manhattan", [1, 3]),
        ("Thai", "Manhattan", [3]),
        ("Italian", "Brooklyn", []),
        ("Mexican", "all", []),
    ],
)
def test_filter_by_facets(cuisine, neighborhood, expected):
    ids = [r.id for r in filter_by_facets(_records(), cuisine, neighborhood)]
    assert ids == expected


def test_single_facet_filters():
    assert [r.id for r in filter_by_cuisine(_records(), "Italian")] == [1, 4]
    assert [r.id for r in filter_by_neighborhood(_records(), "Queens")] == [4]


def test_filter_is_case_sensitive():
    assert filter_by_cuisine(_records(), "thai").to_list() == []


def test_two_record_feed_end_to_end():
    records = [
        Restaurant(id=1, name="Trattoria", neighborhood="Manhattan", cuisine_type="Italian"),
        Restaurant(id=2, name="Thai Diner", neighborhood="Manhattan", cuisine_type="Thai"),
    ]
    assert derive_facet(records, "cuisine_type").to_list() == ["Italian", "Thai"]
    assert filter_by_facets(records, "Thai", "all").to_list() == [records[1]]
