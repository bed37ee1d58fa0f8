"""
Shared pytest fixtures for the rulekit test suite.

Provides:
  - ``products``: a small catalog of six products with price / category / brand.
  - ``edge_case_products``: zero, negative, infinite and NaN prices plus null,
    absent and special-character attributes.
  - ``laptop_rule_set``: a CrossSellingRuleSet suggesting cheap accessories
    for expensive electronics.
  - ``write_json``: helper writing a JSON payload under ``tmp_path``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from rulekit.models.ruleset import CrossSellingRuleSet


# ── Product catalogs ──────────────────────────────────────────────────────────

@pytest.fixture
def products() -> list[dict[str, Any]]:
    """Six well-formed products."""
    return [
        {"id": "1", "name": "High-end Laptop",    "price": 1200, "category": "Electronics", "brand": "BrandA"},
        {"id": "2", "name": "Laptop Bag",         "price": 80,   "category": "Accessories", "brand": "BrandB"},
        {"id": "3", "name": "Wireless Mouse",     "price": 40,   "category": "Accessories", "brand": "BrandA"},
        {"id": "4", "name": "Budget Laptop",      "price": 500,  "category": "Electronics", "brand": "BrandC"},
        {"id": "5", "name": "Premium Headphones", "price": 300,  "category": "Accessories", "brand": "BrandA"},
        {"id": "6", "name": "Smartphone",         "price": 800,  "category": "Electronics", "brand": "BrandB"},
    ]


@pytest.fixture
def edge_case_products() -> list[dict[str, Any]]:
    """Products with degenerate values. Product 9 has no ``category`` key."""
    return [
        {"id": "7",  "name": "",                  "price": 0,            "category": "Electronics", "brand": "BrandA"},
        {"id": "8",  "name": "Product with null", "price": -100,         "category": None,          "brand": "BrandB"},
        {"id": "9",  "name": "Product absent",    "price": float("inf"),                            "brand": ""},
        {"id": "10", "name": "Special chars",     "price": float("nan"),
         "category": "Category & Special < > \" ' Chars", "brand": "Brand & Special < > \" ' Chars",
         "extraAttribute": "something"},
    ]


# ── Rule sets ─────────────────────────────────────────────────────────────────

@pytest.fixture
def laptop_rule_set() -> CrossSellingRuleSet:
    """Electronics >= 500 → accessories under 100."""
    return CrossSellingRuleSet(
        sourceRules=[{"category": {"eq": "Electronics"}, "price": {"gte": 500}}],
        recommendationRules=[
            {"and": [{"category": {"eq": "Accessories"}}, {"price": {"lt": 100}}]},
        ],
    )


# ── File helpers ──────────────────────────────────────────────────────────────

@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Return a function writing ``payload`` to ``tmp_path / name``."""

    def _write(name: str, payload: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write
