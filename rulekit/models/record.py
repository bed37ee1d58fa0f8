"""
Record access helpers.

A record (typically a product) is any ``Mapping[str, Any]`` supplied by the
caller: a dict decoded from JSON, a Parquet row, etc. Records are never
copied or mutated; the engine returns the caller's own objects.

An attribute can be in one of three "value" states:
  - present with a value      → that value
  - present with ``None``     → null
  - missing from the mapping  → ``ABSENT``

``ABSENT`` and ``None`` are equal for ``eq``/``ne`` purposes only (see
``rulekit.engine.operators``); everywhere else they stay distinct.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

from rulekit.errors import RecordError

Record = Mapping[str, Any]

DEFAULT_ID_FIELD: Final[str] = "id"


class _Absent:
    """Singleton marker for an attribute missing from a record."""

    _instance: "_Absent | None" = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "ABSENT"


ABSENT: Final = _Absent()


def is_no_value(value: Any) -> bool:
    """True for the two "no value" states: ``None`` and ``ABSENT``."""
    return value is None or value is ABSENT


def get_attribute(record: Record, name: str) -> Any:
    """Return ``record[name]``, or ``ABSENT`` when the key is missing."""
    return record.get(name, ABSENT)


def get_record_id(record: Record, id_field: str = DEFAULT_ID_FIELD) -> Any:
    """Return the record's identifier.

    Raises:
        RecordError: If the record has no ``id_field`` key.
    """
    try:
        return record[id_field]
    except KeyError:
        raise RecordError(id_field, record) from None
