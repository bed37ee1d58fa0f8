"""
Comparison operator taxonomy for rule leaf conditions.

Every leaf rule maps an attribute name to an operator condition, e.g.
``{"price": {"gte": 500, "lte": 1000}}``. The keys of that condition must
be ``ComparisonOperator`` values; anything else is rejected when the rule
is parsed (see ``rulekit.models.rule.parse_rule``).

Operators fall into three families:
  - equality   — ``eq``, ``ne``
  - ordering   — ``gt``, ``gte``, ``lt``, ``lte`` (numbers only)
  - membership — ``in``, ``notIn`` (operand is a list of scalars)

This module has NO imports from any other ``rulekit`` package.
"""

from enum import StrEnum


class ComparisonOperator(StrEnum):
    """Operator name as written in a rule's operator condition."""

    # ── Equality ──────────────────────────────────────────────────────────────
    EQ = "eq"
    """Strict equality. A ``None`` operand also matches an absent attribute."""

    NE = "ne"
    """Negation of ``eq`` under the same null/absent rule."""

    # ── Ordering ──────────────────────────────────────────────────────────────
    GT = "gt"
    """Strictly greater than. Non-numeric sides never match."""

    GTE = "gte"
    """Greater than or equal."""

    LT = "lt"
    """Strictly less than."""

    LTE = "lte"
    """Less than or equal."""

    # ── Membership ────────────────────────────────────────────────────────────
    IN = "in"
    """Actual value is strictly equal to one element of the operand list."""

    NOT_IN = "notIn"
    """Negation of ``in``. An empty operand list always matches."""


VALID_OPERATOR_NAMES: frozenset[str] = frozenset(op.value for op in ComparisonOperator)
