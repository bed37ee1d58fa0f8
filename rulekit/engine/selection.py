"""
Selection engine: filter a record collection against a rule list.

Both functions preserve the input order and return the caller's own record
objects (no copies). Complexity is O(records × rule cost); nothing is
indexed or cached between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from rulekit.engine.matcher import matches_any
from rulekit.models.record import Record
from rulekit.models.rule import parse_rules

logger = logging.getLogger(__name__)


def filter_records(records: Iterable[Record], rules: Any) -> list[Record]:
    """Return every record matching at least one rule, in input order.

    ``rules`` is parsed once up front, so a malformed rule raises
    ``RuleStructureError`` even when ``records`` is empty.
    """
    parsed = parse_rules(rules)
    if not parsed:
        return []
    return [record for record in records if matches_any(record, parsed)]


def find_source_products(records: Iterable[Record], rules: Any) -> list[Record]:
    """Select the records eligible as cross-selling sources.

    Args:
        records: Product collection.
        rules:   Source rule list (OR across elements).

    Returns:
        Matching records in input order. Empty ``records`` or empty
        ``rules`` → ``[]``.
    """
    selected = filter_records(records, rules)
    logger.debug("Source selection matched %d record(s)", len(selected))
    return selected


def find_recommended_products(
    source_record: Record,
    candidates:    Iterable[Record],
    rules:         Any,
) -> list[Record]:
    """Select candidate recommendations.

    ``source_record`` is accepted for symmetry with the composer layer and
    does not change the result: filtering is ``candidates`` against
    ``rules`` only. Self-exclusion is the composer's job.
    """
    selected = filter_records(candidates, rules)
    logger.debug("Recommendation selection matched %d candidate(s)", len(selected))
    return selected
