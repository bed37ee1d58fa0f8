"""
Exception types raised by rulekit.

Evaluation itself never raises for odd values: a type-mismatched or
non-finite comparison simply does not match. Errors are reserved for
inputs that cannot be interpreted at all:

  RuleKitError
  ├── RuleStructureError        malformed rule tree (raised at parse time)
  │   └── UnsupportedOperatorError   unknown operator name
  └── RecordError               record lacks its identifier field

``RuleStructureError`` is not a ``ValueError``, so pydantic validators
re-raise it unchanged instead of wrapping it in a ``ValidationError``. A
malformed rule raises the same exception from ``parse_rule`` and from
``CrossSellingRuleSet``.
"""

from __future__ import annotations

from typing import Any


class RuleKitError(Exception):
    """Base class for all rulekit errors."""


class RuleStructureError(RuleKitError):
    """A rule tree does not have one of the three valid shapes.

    Attributes:
        path: Location of the offending node, e.g. ``"rules[0].and[2]"``.
    """

    def __init__(self, message: str, path: str = "rule") -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class UnsupportedOperatorError(RuleStructureError):
    """An operator condition names an operator that is not supported."""

    def __init__(self, operator: Any, path: str = "rule") -> None:
        self.operator = operator
        super().__init__(f"unsupported operator {operator!r}", path=path)


class RecordError(RuleKitError, KeyError):
    """A record is missing the field used as its identifier."""

    def __init__(self, id_field: str, record: Any = None) -> None:
        self.id_field = id_field
        self.record = record
        super().__init__(f"record has no identifier field '{id_field}'")

    def __str__(self) -> str:
        # KeyError.__str__ repr()-quotes the message.
        return str(self.args[0])
