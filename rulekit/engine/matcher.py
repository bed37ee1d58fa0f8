"""
Rule matcher and rule-set evaluator.

``matches(record, rule)``
    Recursive descent over the tagged rule union:
      AndRule  → every sub-rule, stop at the first miss   (empty: True)
      OrRule   → any sub-rule, stop at the first hit      (empty: False)
      LeafRule → every (attribute, operator) pair, stop at the first miss
                 (no conditions: True)

``matches_any(record, rules)``
    Implicit OR across a top-level rule list, stop at the first hit.
    An empty list matches NOTHING — "no rules" never means "everything".

Raw rule dicts are accepted and parsed on the way in, so a malformed rule
raises ``RuleStructureError`` from every entry point. Callers that evaluate
the same rules against many records should parse them once with
``rulekit.models.rule.parse_rules`` (the selection and composer layers do).

Recursion costs one interpreter frame per nesting level; ``parse_rule``
caps trees at ``MAX_RULE_DEPTH`` levels so evaluation never reaches the
recursion limit.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from rulekit.engine.operators import evaluate_operator
from rulekit.models.record import Record, get_attribute
from rulekit.models.rule import AndRule, LeafRule, OrRule, parse_rule


def matches(record: Record, rule: Any) -> bool:
    """Return ``True`` if ``record`` satisfies ``rule``."""
    node = parse_rule(rule)

    if isinstance(node, AndRule):
        for sub in node.rules:
            if not matches(record, sub):
                return False
        return True

    if isinstance(node, OrRule):
        for sub in node.rules:
            if matches(record, sub):
                return True
        return False

    return _matches_leaf(record, node)


def _matches_leaf(record: Record, leaf: LeafRule) -> bool:
    for attr, condition in leaf.conditions.items():
        actual = get_attribute(record, attr)
        for op, operand in condition.items():
            if not evaluate_operator(op, actual, operand):
                return False
    return True


def matches_any(record: Record, rules: Iterable[Any]) -> bool:
    """Return ``True`` if at least one rule in ``rules`` matches ``record``.

    An empty rule list returns ``False``.
    """
    return any(matches(record, rule) for rule in rules)
