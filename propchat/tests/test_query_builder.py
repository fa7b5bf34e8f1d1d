"""Tests for the criteria -> listings filter mapping."""

import re

import pytest

from propchat.chat.query_builder import build_query
from propchat.common.schemas import ListingStatus, PropertyType, SearchCriteria


class TestDefaults:
    def test_empty_criteria_only_constrains_status(self):
        assert build_query(SearchCriteria()) == {"status": "available"}

    def test_explicit_status_overrides_default(self):
        query = build_query(SearchCriteria(status=ListingStatus.RENTED))
        assert query == {"status": "rented"}

    @pytest.mark.parametrize("field_name,value,key", [
        ("location", "Pune", "location"),
        ("type", PropertyType.VILLA, "type"),
        ("min_price", 100, "price"),
        ("max_area", 900, "area"),
        ("bathrooms", 1, "bathrooms"),
        ("balcony", True, "balcony"),
        ("features", ["gym"], "features"),
    ])
    def test_single_field_adds_single_clause(self, field_name, value, key):
        query = build_query(SearchCriteria(**{field_name: value}))
        assert set(query) == {"status", key}


class TestTextFields:
    def test_location_is_case_insensitive_substring(self):
        query = build_query(SearchCriteria(location="Bandra"))
        assert query["location"] == {"$regex": "Bandra", "$options": "i"}

    def test_type_is_case_insensitive_substring(self):
        query = build_query(SearchCriteria(type=PropertyType.PENTHOUSE))
        assert query["type"] == {"$regex": "penthouse", "$options": "i"}

    @pytest.mark.parametrize("location", ["Andheri (W)", "Andheri (West", "Sector 5.*", "A+B [east]"])
    def test_location_metacharacters_are_literal(self, location):
        clause = build_query(SearchCriteria(location=location))["location"]
        assert clause["$options"] == "i"
        pattern = re.compile(clause["$regex"], re.IGNORECASE)
        assert pattern.search(f"Flat, {location.upper()}, Mumbai")

    def test_location_wildcards_do_not_widen_match(self):
        clause = build_query(SearchCriteria(location="Sector 5.*"))["location"]
        assert not re.search(clause["$regex"], "Sector 51 tower", re.IGNORECASE)


class TestRanges:
    def test_max_price_only_has_upper_bound(self):
        query = build_query(SearchCriteria(max_price=5_000_000))
        assert query["price"] == {"$lte": 5_000_000}
        assert "$gte" not in query["price"]

    def test_min_price_only_has_lower_bound(self):
        query = build_query(SearchCriteria(min_price=2_000_000))
        assert query["price"] == {"$gte": 2_000_000}

    def test_zero_min_price_is_a_bound(self):
        query = build_query(SearchCriteria(min_price=0, max_price=10))
        assert query["price"] == {"$gte": 0, "$lte": 10}

    def test_area_range(self):
        query = build_query(SearchCriteria(min_area=500, max_area=1200))
        assert query["area"] == {"$gte": 500, "$lte": 1200}

    def test_inverted_range_passes_through(self):
        query = build_query(SearchCriteria(min_price=9, max_price=1))
        assert query["price"] == {"$gte": 9, "$lte": 1}

    def test_no_bounds_no_clause(self):
        query = build_query(SearchCriteria(location="Goa"))
        assert "price" not in query
        assert "area" not in query


class TestExactMatches:
    def test_zero_bedrooms_produces_clause(self):
        query = build_query(SearchCriteria(bedrooms=0))
        assert "bedrooms" in query
        assert query["bedrooms"] == 0

    def test_room_counts(self):
        query = build_query(SearchCriteria(bedrooms=3, halls=1, bathrooms=2))
        assert query["bedrooms"] == 3
        assert query["halls"] == 1
        assert query["bathrooms"] == 2

    def test_false_booleans_produce_clauses(self):
        query = build_query(SearchCriteria(furnished=False, parking=False, balcony=False))
        assert query["furnished"] is False
        assert query["parking"] is False
        assert query["balcony"] is False

    def test_absent_booleans_produce_no_clause(self):
        query = build_query(SearchCriteria(furnished=True))
        assert query["furnished"] is True
        assert "parking" not in query
        assert "balcony" not in query


class TestFeatures:
    def test_features_match_any(self):
        query = build_query(SearchCriteria(features=["gym", "pool"]))
        assert query["features"] == {"$in": ["gym", "pool"]}

    def test_empty_features_no_clause(self):
        query = build_query(SearchCriteria(features=[]))
        assert "features" not in query


class TestDeterminism:
    def test_build_is_idempotent(self):
        criteria = SearchCriteria(
            location="Mumbai", type=PropertyType.APARTMENT, bedrooms=2,
            max_price=5_000_000, features=["parking"], furnished=True,
        )
        assert build_query(criteria) == build_query(criteria)

    def test_build_does_not_share_feature_list(self):
        criteria = SearchCriteria(features=["gym"])
        query = build_query(criteria)
        query["features"]["$in"].append("pool")
        assert criteria.features == ["gym"]

    def test_mumbai_apartment_example(self):
        criteria = SearchCriteria.from_payload(
            {"location": "Mumbai", "type": "apartment", "bedrooms": 2, "maxPrice": 5000000}
        )
        assert build_query(criteria) == {
            "status": "available",
            "location": {"$regex": "Mumbai", "$options": "i"},
            "type": {"$regex": "apartment", "$options": "i"},
            "bedrooms": 2,
            "price": {"$lte": 5000000},
        }
