"""
Tests for rulekit/engine/selection.py.

What we test
------------
find_source_products():
  - Result is a subset of the input, in input order, same objects.
  - Empty rule list → []; empty records → [].
  - ``[{}]`` selects every record.
  - Null / absent equality: ``{category: {eq: null}}`` selects both.
  - Range composition: gte 500 + lte 1000 over {500, 1200, 1000, 40}.
  - OR composition: union without duplicates.
  - Rule-list OR: a record matching several rules appears once.
  - Degenerate values (0, negative, inf, NaN) never raise.
  - Malformed rules raise even when there are no records.

find_recommended_products():
  - Filters candidates only; the source record does not change the result
    (self-exclusion is the composer's job).
"""

from __future__ import annotations

import pytest

from rulekit.engine.selection import find_recommended_products, find_source_products
from rulekit.errors import RuleStructureError


def _ids(records):
    return [r["id"] for r in records]


# ── find_source_products ──────────────────────────────────────────────────────

class TestFindSourceProducts:
    def test_single_condition(self, products):
        result = find_source_products(products, [{"category": {"eq": "Electronics"}}])
        assert _ids(result) == ["1", "4", "6"]

    def test_result_is_ordered_subset_of_same_objects(self, products):
        result = find_source_products(products, [{"price": {"gt": 100}}])
        positions = [products.index(r) for r in result]
        assert positions == sorted(positions)
        assert all(any(r is p for p in products) for r in result)

    def test_empty_rule_list_matches_nothing(self, products):
        assert find_source_products(products, []) == []

    def test_empty_records(self):
        assert find_source_products([], [{"category": {"eq": "Electronics"}}]) == []

    def test_empty_leaf_matches_all(self, products):
        assert find_source_products(products, [{}]) == products

    def test_null_matches_null_and_absent(self, edge_case_products):
        result = find_source_products(edge_case_products, [{"category": {"eq": None}}])
        assert _ids(result) == ["8", "9"]

    def test_range_composition(self):
        records = [{"id": str(p), "price": p} for p in (500, 1200, 1000, 40)]
        result = find_source_products(records, [{"price": {"gte": 500, "lte": 1000}}])
        assert [r["price"] for r in result] == [500, 1000]

    def test_or_composition_has_no_duplicates(self, products):
        rule = {"or": [{"brand": {"eq": "BrandA"}}, {"brand": {"eq": "BrandB"}}]}
        result = find_source_products(products, [rule])
        assert _ids(result) == ["1", "2", "3", "5", "6"]

    def test_rule_list_union_has_no_duplicates(self, products):
        rules = [{"brand": {"eq": "BrandA"}}, {"category": {"eq": "Accessories"}}]
        result = find_source_products(products, rules)
        assert _ids(result) == ["1", "2", "3", "5"]

    def test_mixed_operators(self, products):
        rules = [{
            "and": [
                {"price": {"gte": 100, "lte": 1000}},
                {"or": [{"category": {"eq": "Electronics"}},
                        {"brand": {"in": ["BrandA", "BrandB"]}}]},
            ]
        }]
        assert _ids(find_source_products(products, rules)) == ["4", "5", "6"]

    def test_not_in(self, products):
        rules = [{"brand": {"notIn": ["BrandA", "BrandB"]}}]
        assert _ids(find_source_products(products, rules)) == ["4"]

    def test_degenerate_prices(self, edge_case_products):
        assert _ids(find_source_products(edge_case_products, [{"price": {"gt": 0}}])) == ["9"]
        assert _ids(find_source_products(edge_case_products, [{"price": {"lte": 0}}])) == ["7", "8"]

    def test_special_characters_compare_by_value(self, edge_case_products):
        rules = [{"brand": {"eq": "Brand & Special < > \" ' Chars"}}]
        assert _ids(find_source_products(edge_case_products, rules)) == ["10"]

    def test_empty_string_is_a_value(self, edge_case_products):
        assert _ids(find_source_products(edge_case_products, [{"brand": {"eq": ""}}])) == ["9"]

    def test_malformed_rule_raises_without_records(self):
        with pytest.raises(RuleStructureError):
            find_source_products([], [{"or": {"brand": {"eq": "A"}}}])

    def test_accepts_generator(self, products):
        result = find_source_products((p for p in products), [{"brand": {"eq": "BrandC"}}])
        assert _ids(result) == ["4"]


# ── find_recommended_products ─────────────────────────────────────────────────

class TestFindRecommendedProducts:
    def test_filters_candidates(self, products):
        result = find_recommended_products(
            products[0], products, [{"category": {"eq": "Accessories"}}]
        )
        assert _ids(result) == ["2", "3", "5"]

    def test_source_does_not_alter_filtering(self, products):
        rules = [{"brand": {"eq": "BrandA"}}]
        with_laptop = find_recommended_products(products[0], products, rules)
        with_bag = find_recommended_products(products[1], products, rules)
        assert with_laptop == with_bag
        assert "1" in _ids(with_laptop)

    def test_empty_rules(self, products):
        assert find_recommended_products(products[0], products, []) == []
