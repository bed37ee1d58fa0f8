"""
Engine facade: the selection and recommendation operations bound to one
identifier field and one bulk strategy.

``RuleEngine`` is synchronous. ``AsyncRuleEngine`` exposes the same methods
as coroutines for callers whose surrounding API is async; each coroutine
runs the synchronous core to completion with no suspension point inside,
so there is nothing to cancel mid-evaluation.

Usage::

    from rulekit.engine.rule_engine import RuleEngine

    engine = RuleEngine()
    laptops = engine.find_source_products(products, [{"category": {"eq": "laptop"}}])
    recs    = engine.get_recommendations(laptops[0], products, rule_set)

Neither class holds state that changes between calls.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from rulekit.engine.matcher import matches, matches_any
from rulekit.engine.selection import find_recommended_products, find_source_products
from rulekit.models.record import DEFAULT_ID_FIELD, Record
from rulekit.models.ruleset import CrossSellingConfig, CrossSellingRuleSet
from rulekit.recommendations.composer import (
    MatchResult,
    get_bulk_recommendations,
    get_recommendations,
    process_config,
)

if TYPE_CHECKING:
    from rulekit.config import EngineConfig


class RuleEngine:
    """Synchronous rule evaluation and cross-selling engine.

    Args:
        id_field: Record key holding the stable identifier.
        share_candidate_matches: Bulk strategy, see
            ``rulekit.recommendations.composer``.
    """

    def __init__(
        self,
        id_field: str = DEFAULT_ID_FIELD,
        share_candidate_matches: bool = True,
    ) -> None:
        self.id_field = id_field
        self.share_candidate_matches = share_candidate_matches

    @classmethod
    def from_config(cls, config: "EngineConfig") -> "RuleEngine":
        return cls(
            id_field=config.id_field,
            share_candidate_matches=config.share_candidate_matches,
        )

    def matches(self, record: Record, rule: Any) -> bool:
        return matches(record, rule)

    def matches_any(self, record: Record, rules: Iterable[Any]) -> bool:
        return matches_any(record, rules)

    def find_source_products(self, products: Iterable[Record], rules: Any) -> list[Record]:
        return find_source_products(products, rules)

    def find_recommended_products(
        self,
        source_product: Record,
        candidates:     Iterable[Record],
        rules:          Any,
    ) -> list[Record]:
        return find_recommended_products(source_product, candidates, rules)

    def get_recommendations(
        self,
        product:    Record,
        candidates: Sequence[Record],
        rule_set:   CrossSellingRuleSet | dict[str, Any],
    ) -> list[Record]:
        return get_recommendations(product, candidates, rule_set, id_field=self.id_field)

    def get_bulk_recommendations(
        self,
        products:   Sequence[Record],
        candidates: Sequence[Record],
        rule_set:   CrossSellingRuleSet | dict[str, Any],
    ) -> dict[Any, list[Record]]:
        return get_bulk_recommendations(
            products,
            candidates,
            rule_set,
            id_field=self.id_field,
            share_candidate_matches=self.share_candidate_matches,
        )

    def process_config(
        self,
        config:   CrossSellingConfig,
        products: Sequence[Record],
    ) -> MatchResult:
        return process_config(config, products, id_field=self.id_field)


class AsyncRuleEngine:
    """Awaitable wrapper around a ``RuleEngine``."""

    def __init__(self, engine: RuleEngine | None = None) -> None:
        self.engine = engine or RuleEngine()

    async def find_source_products(self, products: Iterable[Record], rules: Any) -> list[Record]:
        return self.engine.find_source_products(products, rules)

    async def find_recommended_products(
        self,
        source_product: Record,
        candidates:     Iterable[Record],
        rules:          Any,
    ) -> list[Record]:
        return self.engine.find_recommended_products(source_product, candidates, rules)

    async def get_recommendations(
        self,
        product:    Record,
        candidates: Sequence[Record],
        rule_set:   CrossSellingRuleSet | dict[str, Any],
    ) -> list[Record]:
        return self.engine.get_recommendations(product, candidates, rule_set)

    async def get_bulk_recommendations(
        self,
        products:   Sequence[Record],
        candidates: Sequence[Record],
        rule_set:   CrossSellingRuleSet | dict[str, Any],
    ) -> dict[Any, list[Record]]:
        return self.engine.get_bulk_recommendations(products, candidates, rule_set)

    async def process_config(
        self,
        config:   CrossSellingConfig,
        products: Sequence[Record],
    ) -> MatchResult:
        return self.engine.process_config(config, products)
