"""
Recommendation composer: source rules + recommendation rules → suggestions.

Usage flow
----------
1. get_recommendations(source, candidates, rule_set)
   -> list[record]  (empty when the source does not qualify)

2. get_bulk_recommendations(sources, candidates, rule_set)
   -> dict[source_id, list[record]]  (one entry per source, in input order)

3. process_config(config, products)
   -> MatchResult  (all sources + all non-source recommendations for a
                    stored CrossSellingConfig)

Self-exclusion
--------------
A source is never recommended to itself: any candidate whose identifier
strictly equals the source's identifier is dropped. In bulk mode this is
per entry; a product that is both a source and a candidate still appears
in OTHER sources' lists.

Shared candidate matches
------------------------
Recommendation filtering does not depend on the source, so the bulk call
can evaluate ``recommendation_rules`` once per candidate and reuse the
result for every source (``share_candidate_matches=True``, the default).
Output is identical either way; only the number of rule evaluations
changes. Nothing is kept between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from rulekit.engine.matcher import matches_any
from rulekit.engine.operators import strict_equals
from rulekit.engine.selection import filter_records, find_recommended_products
from rulekit.models.record import DEFAULT_ID_FIELD, Record, get_record_id
from rulekit.models.ruleset import CrossSellingConfig, CrossSellingRuleSet

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """Outcome of applying a ``CrossSellingConfig`` to a product collection.

    Attributes:
        source_products:      Products matching the source rules.
        recommended_products: Products matching the recommendation rules that
                              are not themselves source products.
    """

    source_products:      list[Record] = field(default_factory=list)
    recommended_products: list[Record] = field(default_factory=list)


def _as_rule_set(rule_set: CrossSellingRuleSet | dict[str, Any]) -> CrossSellingRuleSet:
    if isinstance(rule_set, CrossSellingRuleSet):
        return rule_set
    return CrossSellingRuleSet.model_validate(rule_set)


def _exclude_id(records: Iterable[Record], record_id: Any, id_field: str) -> list[Record]:
    return [
        r for r in records
        if not strict_equals(get_record_id(r, id_field), record_id)
    ]


def get_recommendations(
    source_record: Record,
    candidates:    Sequence[Record],
    rule_set:      CrossSellingRuleSet | dict[str, Any],
    id_field:      str = DEFAULT_ID_FIELD,
) -> list[Record]:
    """Cross-selling suggestions for one source record.

    Args:
        source_record: The product being viewed / purchased.
        candidates:    Pool of products that may be recommended.
        rule_set:      Rule set model, or its dict form.
        id_field:      Record key holding the identifier.

    Returns:
        Candidates matching ``recommendation_rules``, in candidate order,
        without the source itself. ``[]`` when the source does not match
        ``source_rules``.

    Raises:
        RecordError: If the source or a matched candidate lacks ``id_field``.
    """
    rules = _as_rule_set(rule_set)
    source_id = get_record_id(source_record, id_field)

    if not matches_any(source_record, rules.source_rules):
        logger.debug("Source %r does not match source rules", source_id)
        return []

    recommended = find_recommended_products(
        source_record, candidates, rules.recommendation_rules
    )
    return _exclude_id(recommended, source_id, id_field)


def get_bulk_recommendations(
    sources:    Sequence[Record],
    candidates: Sequence[Record],
    rule_set:   CrossSellingRuleSet | dict[str, Any],
    id_field:   str = DEFAULT_ID_FIELD,
    share_candidate_matches: bool = True,
) -> dict[Any, list[Record]]:
    """Cross-selling suggestions for many sources against one candidate pool.

    Every source gets an entry, in ``sources`` order; sources that fail
    ``source_rules`` map to ``[]``. If two sources share an identifier the
    later one's entry wins and a warning is logged.

    The result is a plain dict, so ``1`` and ``True`` share one entry even
    though self-exclusion tells them apart. Such a collision is logged with
    both identifiers and the last source's list is kept under the first key.

    Args:
        sources:    Products to compute recommendations for.
        candidates: Shared pool of products that may be recommended.
        rule_set:   Rule set model, or its dict form.
        id_field:   Record key holding the identifier.
        share_candidate_matches: Evaluate recommendation rules once per
                    candidate instead of once per (source, candidate).

    Returns:
        Dict of source identifier → recommended records.
    """
    rules = _as_rule_set(rule_set)
    result: dict[Any, list[Record]] = {}

    shared: list[Record] | None = None
    if share_candidate_matches:
        shared = filter_records(candidates, rules.recommendation_rules)

    qualifying = 0
    for source in sources:
        source_id = get_record_id(source, id_field)
        if source_id in result:
            existing = next((k for k in result if k is source_id or k == source_id), source_id)
            if strict_equals(existing, source_id):
                logger.warning(
                    "Duplicate source identifier %r in bulk request; keeping the last entry",
                    source_id,
                )
            else:
                logger.warning(
                    "Source identifiers %r and %r share one result key; "
                    "keeping the last entry under %r",
                    existing, source_id, existing,
                )

        if not matches_any(source, rules.source_rules):
            result[source_id] = []
            continue

        qualifying += 1
        if shared is None:
            matched = find_recommended_products(
                source, candidates, rules.recommendation_rules
            )
        else:
            matched = shared
        result[source_id] = _exclude_id(matched, source_id, id_field)

    logger.debug(
        "Bulk recommendations: %d source(s), %d qualifying, %d candidate(s)",
        len(result), qualifying, len(candidates),
    )
    return result


def process_config(
    config:   CrossSellingConfig,
    products: Sequence[Record],
    id_field: str = DEFAULT_ID_FIELD,
) -> MatchResult:
    """Apply a stored configuration to a whole product collection.

    Inactive configurations match nothing. Otherwise the source products are
    selected first, and recommendations are drawn from the remaining
    (non-source) products.
    """
    if not config.is_active:
        logger.info("Config %s is inactive; skipping", config.id)
        return MatchResult()

    rule_set = config.rule_set
    source_products = filter_records(products, rule_set.source_rules)
    source_ids = [get_record_id(p, id_field) for p in source_products]

    remaining = [
        p for p in products
        if not any(strict_equals(get_record_id(p, id_field), sid) for sid in source_ids)
    ]
    recommended = filter_records(remaining, rule_set.recommendation_rules)

    logger.info(
        "Config %s: %d source product(s), %d recommended product(s)",
        config.id, len(source_products), len(recommended),
    )
    return MatchResult(source_products=source_products, recommended_products=recommended)
