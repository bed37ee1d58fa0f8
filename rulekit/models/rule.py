"""
Rule tree models: a closed tagged union of three node shapes.

Rules are authored as plain dicts (JSON, admin tools, tests)::

    {"price": {"gte": 500, "lte": 1000}}                 # leaf
    {"and": [{"brand": {"eq": "A"}}, {...}]}              # composite AND
    {"or":  [{"brand": {"eq": "A"}}, {...}]}              # composite OR

``parse_rule()`` decides the shape ONCE and returns one of:

  - ``LeafRule``  — attribute → operator condition; every (attribute,
                    operator) pair is AND-ed. No conditions = always true.
  - ``AndRule``   — all sub-rules must match. Empty = always true.
  - ``OrRule``    — at least one sub-rule must match. Empty = always false.

Evaluation code (``rulekit.engine.matcher``) only ever sees these types and
never inspects dict keys to guess composition.

Structural policy
-----------------
Malformed input fails fast with ``RuleStructureError`` (never a silent
non-match):
  - a node that is not a mapping;
  - ``and``/``or`` mixed with attribute keys, or both in one node;
  - an ``and``/``or`` value that is not a list;
  - an operator condition that is not a mapping;
  - an attribute name that is not a non-empty string.
An unknown operator name raises ``UnsupportedOperatorError``.

The keys ``and``, ``or`` and ``attributes`` are reserved. ``attributes``
introduces the nested leaf form ``{"attributes": {"price": {"gt": 1}}}``,
equivalent to ``{"price": {"gt": 1}}``. It is also how a leaf names an
attribute that is itself called ``and``, ``or`` or ``attributes``.

The tagged form written by ``model_dump()`` / ``model_dump_json()`` parses
too, so rule models round-trip through pydantic::

    {"kind": "and", "rules": [{"kind": "leaf", "conditions": {...}}]}

A mapping is read as tagged only when its ``kind`` value is a string; an
attribute called ``kind`` always has a mapping as its value.

Nesting is limited to ``MAX_RULE_DEPTH`` levels (a leaf is one level, each
``and``/``or`` adds one). Deeper trees raise ``RuleStructureError``.

Operand VALUES are not validated here: ``{"price": {"gt": "cheap"}}`` parses
fine and simply never matches.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from rulekit.errors import RuleStructureError, UnsupportedOperatorError
from rulekit.taxonomy.operators import VALID_OPERATOR_NAMES, ComparisonOperator

KIND_KEY = "kind"
COMPOSITE_KEYS: tuple[str, ...] = ("and", "or")
NESTED_LEAF_KEY = "attributes"
RESERVED_KEYS: frozenset[str] = frozenset({*COMPOSITE_KEYS, NESTED_LEAF_KEY})

# Parsing and matching recurse once per level; this keeps both well inside
# the interpreter's default recursion limit.
MAX_RULE_DEPTH = 256

OperatorCondition = dict[ComparisonOperator, Any]


class LeafRule(BaseModel):
    """Implicit AND over attribute conditions.

    Attributes:
        kind: Always ``"leaf"``.
        conditions: Attribute name → {operator: operand}. Insertion order is
            preserved and is the evaluation order.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["leaf"] = "leaf"
    conditions: dict[str, OperatorCondition] = Field(default_factory=dict)


class AndRule(BaseModel):
    """Explicit AND over sub-rules."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["and"] = "and"
    rules: tuple[Rule, ...] = ()


class OrRule(BaseModel):
    """Explicit OR over sub-rules."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["or"] = "or"
    rules: tuple[Rule, ...] = ()


Rule = Annotated[Union[LeafRule, AndRule, OrRule], Field(discriminator="kind")]

RULE_TYPES: tuple[type, ...] = (LeafRule, AndRule, OrRule)

AndRule.model_rebuild()
OrRule.model_rebuild()


# ── Parsing ───────────────────────────────────────────────────────────────────


def parse_rule(raw: Any, path: str = "rule") -> LeafRule | AndRule | OrRule:
    """Convert a raw rule mapping into its tagged form.

    Accepts the authored form, the tagged form produced by ``model_dump()``
    and already-parsed rules (returned unchanged).

    Args:
        raw:  Rule dict (or an existing ``LeafRule``/``AndRule``/``OrRule``).
        path: Location label used in error messages.

    Returns:
        The parsed rule node.

    Raises:
        RuleStructureError: If the node has no valid shape or nests deeper
            than ``MAX_RULE_DEPTH``.
        UnsupportedOperatorError: If a condition uses an unknown operator.
    """
    return _parse_node(raw, path, depth=1)


def parse_rules(raw: Any, path: str = "rules") -> list[LeafRule | AndRule | OrRule]:
    """Parse a rule list (OR semantics across its elements).

    Raises:
        RuleStructureError: If ``raw`` is not a list or any element is malformed.
    """
    if isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Sequence):
        raise RuleStructureError(
            f"rule list must be a list, got {type(raw).__name__}", path=path
        )
    return [parse_rule(item, path=f"{path}[{i}]") for i, item in enumerate(raw)]


def _parse_node(raw: Any, path: str, depth: int) -> LeafRule | AndRule | OrRule:
    if isinstance(raw, RULE_TYPES):
        return raw
    if not isinstance(raw, Mapping):
        raise RuleStructureError(
            f"rule must be a mapping, got {type(raw).__name__}", path=path
        )
    if depth > MAX_RULE_DEPTH:
        raise RuleStructureError(
            f"rule nests deeper than {MAX_RULE_DEPTH} levels", path=path
        )

    if isinstance(raw.get(KIND_KEY), str):
        return _parse_tagged(raw, path, depth)

    composite_keys = [k for k in COMPOSITE_KEYS if k in raw]
    if len(composite_keys) == 2:
        raise RuleStructureError("rule cannot contain both 'and' and 'or'", path=path)

    if composite_keys:
        key = composite_keys[0]
        _reject_extra_keys(raw, {key}, f"composite '{key}' rule", path)
        children = _parse_children(raw[key], key, path, depth)
        return AndRule(rules=children) if key == "and" else OrRule(rules=children)

    if NESTED_LEAF_KEY in raw:
        _reject_extra_keys(raw, {NESTED_LEAF_KEY}, f"'{NESTED_LEAF_KEY}' rule", path)
        nested = raw[NESTED_LEAF_KEY]
        if not isinstance(nested, Mapping):
            raise RuleStructureError(
                f"'{NESTED_LEAF_KEY}' must be a mapping, got {type(nested).__name__}",
                path=path,
            )
        return LeafRule(conditions=_parse_conditions(nested, f"{path}.{NESTED_LEAF_KEY}"))

    return LeafRule(conditions=_parse_conditions(raw, path))


def _parse_tagged(raw: Mapping[Any, Any], path: str, depth: int) -> LeafRule | AndRule | OrRule:
    """Parse ``{"kind": "leaf", "conditions": {...}}`` / ``{"kind": "and", "rules": [...]}``."""
    kind = raw[KIND_KEY]
    if kind == "leaf":
        _reject_extra_keys(raw, {KIND_KEY, "conditions"}, "'leaf' rule", path)
        conditions = raw.get("conditions", {})
        if not isinstance(conditions, Mapping):
            raise RuleStructureError(
                f"'conditions' must be a mapping, got {type(conditions).__name__}",
                path=path,
            )
        return LeafRule(conditions=_parse_conditions(conditions, f"{path}.conditions"))
    if kind in COMPOSITE_KEYS:
        _reject_extra_keys(raw, {KIND_KEY, "rules"}, f"'{kind}' rule", path)
        children = _parse_children(raw.get("rules", []), "rules", path, depth)
        return AndRule(rules=children) if kind == "and" else OrRule(rules=children)
    raise RuleStructureError(f"unknown rule kind {kind!r}", path=path)


def _reject_extra_keys(
    raw: Mapping[Any, Any], allowed: set[str], label: str, path: str
) -> None:
    extra = sorted(str(k) for k in raw if k not in allowed)
    if extra:
        raise RuleStructureError(f"{label} cannot also contain keys {extra}", path=path)


def _parse_children(
    children: Any, key: str, path: str, depth: int
) -> tuple[LeafRule | AndRule | OrRule, ...]:
    if isinstance(children, (str, bytes, Mapping)) or not isinstance(children, Sequence):
        raise RuleStructureError(
            f"'{key}' must be a list of rules, got {type(children).__name__}",
            path=path,
        )
    parsed = []
    for i, child in enumerate(children):
        parsed.append(_parse_node(child, f"{path}.{key}[{i}]", depth + 1))
    return tuple(parsed)


def _parse_conditions(raw: Mapping[Any, Any], path: str) -> dict[str, OperatorCondition]:
    conditions: dict[str, OperatorCondition] = {}
    for attr, condition in raw.items():
        if not isinstance(attr, str) or not attr:
            raise RuleStructureError(
                f"attribute name must be a non-empty string, got {attr!r}", path=path
            )
        attr_path = f"{path}.{attr}"
        if not isinstance(condition, Mapping):
            raise RuleStructureError(
                f"operator condition must be a mapping, got {type(condition).__name__}",
                path=attr_path,
            )
        ops: OperatorCondition = {}
        for op_name, operand in condition.items():
            if op_name not in VALID_OPERATOR_NAMES:
                raise UnsupportedOperatorError(op_name, path=attr_path)
            ops[ComparisonOperator(op_name)] = operand
        conditions[attr] = ops
    return conditions


# ── Inspection helpers ────────────────────────────────────────────────────────


def rule_to_dict(rule: LeafRule | AndRule | OrRule) -> dict[str, Any]:
    """Inverse of ``parse_rule``: back to the authored dict form.

    A leaf naming a reserved key as an attribute is written in the nested
    ``{"attributes": {...}}`` form so that it parses back to the same leaf.
    """
    if isinstance(rule, AndRule):
        return {"and": [rule_to_dict(r) for r in rule.rules]}
    if isinstance(rule, OrRule):
        return {"or": [rule_to_dict(r) for r in rule.rules]}
    flat = {
        attr: {op.value: operand for op, operand in ops.items()}
        for attr, ops in rule.conditions.items()
    }
    if RESERVED_KEYS.intersection(flat):
        return {NESTED_LEAF_KEY: flat}
    return flat


def count_conditions(rule: LeafRule | AndRule | OrRule) -> int:
    """Number of (attribute, operator) clauses in the tree.

    Every node counts for at least 1, so an empty leaf or an empty
    composite still adds to the total.
    """
    if isinstance(rule, (AndRule, OrRule)):
        return sum(count_conditions(r) for r in rule.rules) or 1
    return sum(len(ops) for ops in rule.conditions.values()) or 1


def rule_depth(rule: LeafRule | AndRule | OrRule) -> int:
    """Nesting depth: a leaf is 1, each composite level adds 1."""
    if isinstance(rule, (AndRule, OrRule)):
        return 1 + max((rule_depth(r) for r in rule.rules), default=0)
    return 1
