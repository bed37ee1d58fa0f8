"""
Operator evaluator: one (operator, actual value, operand) triple → bool.

Pure functions, no state. The dispatch table ``_OPERATORS`` is built once at
import time and is read-only.

Semantics
---------
eq / ne
    Strict equality: ``True`` never equals ``1``, ``"1"`` never equals ``1``,
    but ``1 == 1.0`` (one numeric domain). A ``None`` operand matches an
    actual value that is ``None`` OR absent from the record. ``ne`` is
    exactly ``not eq``.

gt / gte / lt / lte
    Both sides must be real numbers (``int``/``float``, never ``bool``),
    otherwise ``False``. IEEE-754 ordering applies: anything compared with
    ``NaN`` is ``False``; ``inf`` and ``-inf`` order normally.

in / notIn
    Operand must be a ``list`` or ``tuple``. ``in`` is ``True`` when the
    actual value strictly equals one element. ``notIn`` is its negation.
    A non-list operand is degenerate and makes BOTH operators ``False``.

Unknown operator names raise ``UnsupportedOperatorError``. Rules are
validated when parsed, so this only triggers on direct calls.
"""

from __future__ import annotations

import operator as _op
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from rulekit.errors import UnsupportedOperatorError
from rulekit.models.record import ABSENT, is_no_value
from rulekit.taxonomy.operators import ComparisonOperator


def is_number(value: Any) -> bool:
    """True for ``int`` and ``float`` values, excluding ``bool``."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without cross-type coercion.

    Numbers compare numerically regardless of ``int``/``float``; every other
    pair must share the exact same type to be equal.
    """
    if is_number(left) and is_number(right):
        return left == right
    if type(left) is not type(right):
        return False
    return bool(left == right)


def _eq(actual: Any, operand: Any) -> bool:
    if operand is None:
        return is_no_value(actual)
    if actual is ABSENT:
        return False
    return strict_equals(actual, operand)


def _ne(actual: Any, operand: Any) -> bool:
    return not _eq(actual, operand)


def _ordering(compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def evaluate(actual: Any, operand: Any) -> bool:
        if not (is_number(actual) and is_number(operand)):
            return False
        return compare(actual, operand)

    return evaluate


def _is_operand_list(operand: Any) -> bool:
    return isinstance(operand, (list, tuple))


def _in(actual: Any, operand: Any) -> bool:
    if not _is_operand_list(operand):
        return False
    return any(strict_equals(actual, candidate) for candidate in operand)


def _not_in(actual: Any, operand: Any) -> bool:
    if not _is_operand_list(operand):
        return False
    return not any(strict_equals(actual, candidate) for candidate in operand)


_OPERATORS: Mapping[str, Callable[[Any, Any], bool]] = MappingProxyType({
    ComparisonOperator.EQ:     _eq,
    ComparisonOperator.NE:     _ne,
    ComparisonOperator.GT:     _ordering(_op.gt),
    ComparisonOperator.GTE:    _ordering(_op.ge),
    ComparisonOperator.LT:     _ordering(_op.lt),
    ComparisonOperator.LTE:    _ordering(_op.le),
    ComparisonOperator.IN:     _in,
    ComparisonOperator.NOT_IN: _not_in,
})


def evaluate_operator(
    operator: ComparisonOperator | str,
    actual:   Any,
    operand:  Any,
) -> bool:
    """Apply one comparison operator.

    Args:
        operator: ``ComparisonOperator`` or its string value (``"notIn"`` …).
        actual:   The record's attribute value, or ``ABSENT`` if missing.
        operand:  The value written in the rule.

    Returns:
        Whether the condition holds. Never raises for odd value types.

    Raises:
        UnsupportedOperatorError: If ``operator`` is not a known operator.
    """
    evaluate = _OPERATORS.get(operator) if isinstance(operator, str) else None
    if evaluate is None:
        raise UnsupportedOperatorError(operator)
    return evaluate(actual, operand)
