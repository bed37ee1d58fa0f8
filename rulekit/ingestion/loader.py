"""
File loaders for product catalogs and cross-selling rule configurations.

Products
--------
``load_products(path)`` accepts:
  - ``.json``    — an array of objects, or ``{"products": [...]}``
  - ``.parquet`` — one product per row (read with pyarrow)

Every product must carry the identifier field (default ``"id"``) and
identifiers must be unique. Attribute values are kept as decoded; a JSON
``null`` stays ``None`` and a key that is not written stays absent.
Parquet rows always carry every column, so a null cell is ``None``.

Rule configurations
-------------------
``load_rule_sets(path)`` reads a JSON array (or ``{"configs": [...]}``) of
``CrossSellingConfig`` objects::

    [{"id": "laptop-accessories",
      "name": "Laptop accessories",
      "isActive": true,
      "ruleSet": {
          "sourceRules":         [{"category": {"eq": "laptop"}}],
          "recommendationRules": [{"category": {"in": ["bag", "mouse"]}}]}}]

``load_rule_set(path)`` reads a single bare ``{"sourceRules", "recommendationRules"}``
object.

Field-level problems (missing id, bad timestamp, duplicate ids) are collected
and raised as one ``ValueError``. A malformed rule tree raises
``RuleStructureError`` with a note naming the config it came from.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pyarrow.parquet as pq
from pydantic import ValidationError

from rulekit.errors import RuleStructureError
from rulekit.models.record import DEFAULT_ID_FIELD
from rulekit.models.ruleset import CrossSellingConfig, CrossSellingRuleSet

logger = logging.getLogger(__name__)

_MAX_ERRORS_SHOWN = 10


# ── Products ──────────────────────────────────────────────────────────────────

def load_products(path: Path, id_field: str = DEFAULT_ID_FIELD) -> list[dict[str, Any]]:
    """Load a product catalog from JSON or Parquet.

    Args:
        path:     ``.json`` or ``.parquet`` file.
        id_field: Key every product must carry, unique across the file.

    Returns:
        List of product dicts in file order.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: Unsupported extension, non-object rows, missing or
            duplicate identifiers.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Product file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".json":
        rows = _read_json_list(path, container_key="products")
    elif suffix == ".parquet":
        rows = pq.read_table(path).to_pylist()
    else:
        raise ValueError(
            f"Unsupported product file type '{path.suffix}'. Use .json or .parquet."
        )

    _validate_products(rows, id_field, path)
    logger.info("Loaded %d products from %s", len(rows), path.name)
    return rows


def _validate_products(rows: list[Any], id_field: str, path: Path) -> None:
    """Raise ValueError listing every malformed product row."""
    errors: list[str] = []
    seen: set[Any] = set()
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            errors.append(f"Product at index {i} is not an object.")
            continue
        if id_field not in row or row[id_field] is None:
            errors.append(f"Product at index {i} is missing '{id_field}'.")
            continue
        pid = row[id_field]
        if isinstance(pid, (dict, list)):
            errors.append(f"Product at index {i} has a non-scalar '{id_field}'.")
            continue
        if pid in seen:
            errors.append(f"Duplicate product {id_field} {pid!r} at index {i}.")
        seen.add(pid)

    if errors:
        raise ValueError(_summarise(errors, f"{len(errors)} invalid product(s) in {path.name}"))


# ── Rule configurations ───────────────────────────────────────────────────────

def load_rule_sets(path: Path) -> list[CrossSellingConfig]:
    """Load and validate every ``CrossSellingConfig`` in a JSON file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If any config fails field validation or ids repeat.
        RuleStructureError: If any config contains a malformed rule.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Rule set file not found: {path}")

    raw_configs = _read_json_list(path, container_key="configs")

    configs: list[CrossSellingConfig] = []
    errors: list[str] = []
    seen_ids: set[str] = set()

    for i, raw in enumerate(raw_configs):
        try:
            config = CrossSellingConfig.model_validate(raw)
        except ValidationError as exc:
            errors.append(f"Config at index {i}: {exc}")
            continue
        except RuleStructureError as exc:
            exc.add_note(f"in config at index {i} of {path.name}")
            raise
        if config.id in seen_ids:
            errors.append(f"Duplicate config id '{config.id}' at index {i}.")
            continue
        seen_ids.add(config.id)
        configs.append(config)

    if errors:
        raise ValueError(_summarise(errors, f"{len(errors)} invalid config(s) in {path.name}"))

    logger.info("Loaded %d rule set config(s) from %s", len(configs), path.name)
    return configs


def load_rule_set(path: Path) -> CrossSellingRuleSet:
    """Load a single bare rule set object.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file is not a JSON object.
        RuleStructureError: If a rule is malformed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Rule set file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"Rule set file must contain a JSON object: {path}")

    return CrossSellingRuleSet.model_validate(raw)


# ── Private helpers ───────────────────────────────────────────────────────────

def _read_json_list(path: Path, container_key: str) -> list[Any]:
    """Read a JSON array, or the array under ``container_key`` of an object."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        if container_key not in data:
            raise ValueError(
                f"JSON object in {path.name} has no '{container_key}' key."
            )
        data = data[container_key]

    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array in {path.name}, got {type(data).__name__}.")
    return data


def _summarise(errors: list[str], headline: str) -> str:
    detail = "\n".join(f"  {msg}" for msg in errors[:_MAX_ERRORS_SHOWN])
    extra = len(errors) - _MAX_ERRORS_SHOWN
    suffix = f"\n  … and {extra} more" if extra > 0 else ""
    return f"{headline}:\n{detail}{suffix}"
