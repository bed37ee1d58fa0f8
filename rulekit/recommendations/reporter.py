"""
Recommendation report writer: CSV and JSON output for bulk results.

All functions are pure I/O over an in-memory result from
``get_bulk_recommendations`` (source id → recommended records).

Output files
------------
  <output_dir>/
    recommendations_{config_id}_{date}.csv   -- one row per (source, recommendation)
    recommendations_{config_id}_{date}.json  -- same data, grouped by source

Sources with no recommendations are listed in the JSON (empty list) but
produce no CSV rows.

The JSON file is strict JSON: NaN and infinite attribute values (common in
Parquet catalogs) are written as null.
"""

from __future__ import annotations

import csv
import json
import logging
import math
from datetime import date
from pathlib import Path
from typing import Any

from rulekit.models.record import DEFAULT_ID_FIELD, Record, get_record_id

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "v1.0.0"


def _json_safe(value: Any) -> Any:
    """Replace non-finite floats with None, recursing into dicts and lists."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: _json_safe(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


def write_recommendations_csv(
    bulk:       dict[Any, list[Record]],
    output_dir: Path,
    config_id:  str,
    id_field:   str = DEFAULT_ID_FIELD,
    run_date:   date | None = None,
) -> Path:
    """Write bulk recommendations as flat CSV rows.

    Columns: source_id, rank, recommended_id.

    Args:
        bulk:       Output from get_bulk_recommendations().
        output_dir: Directory to write the file (created if missing).
        config_id:  Rule set config id (used in filename).
        id_field:   Record key holding the identifier.
        run_date:   Date label for the filename. Defaults to today.

    Returns:
        Path to the written CSV file.
    """
    if run_date is None:
        run_date = date.today()

    output_dir.mkdir(parents=True, exist_ok=True)
    csv_path = output_dir / f"recommendations_{config_id}_{run_date}.csv"

    rows_written = 0
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=["source_id", "rank", "recommended_id"])
        writer.writeheader()
        for source_id, recs in bulk.items():
            for rank, rec in enumerate(recs, start=1):
                writer.writerow(
                    {
                        "source_id":      source_id,
                        "rank":           rank,
                        "recommended_id": get_record_id(rec, id_field),
                    }
                )
                rows_written += 1

    logger.info("Recommendation CSV written: %s (%d rows)", csv_path, rows_written)
    return csv_path


def write_recommendations_json(
    bulk:       dict[Any, list[Record]],
    output_dir: Path,
    config_id:  str,
    id_field:   str = DEFAULT_ID_FIELD,
    run_date:   date | None = None,
) -> Path:
    """Write bulk recommendations to a structured JSON file.

    Each recommended record is written in full (all of its attributes).
    Non-finite floats become null.

    Returns:
        Path to the written JSON file.
    """
    if run_date is None:
        run_date = date.today()

    output_dir.mkdir(parents=True, exist_ok=True)
    json_path = output_dir / f"recommendations_{config_id}_{run_date}.json"

    payload: dict = {
        "schema_version": SCHEMA_VERSION,
        "config_id":      config_id,
        "generated_at":   run_date.isoformat(),
        "id_field":       id_field,
        "sources": [
            {
                "source_id":       _json_safe(source_id),
                "recommendations": [_json_safe(dict(rec)) for rec in recs],
            }
            for source_id, recs in bulk.items()
        ],
    }

    with json_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, allow_nan=False, default=str)

    logger.info("Recommendation JSON written: %s (%d sources)", json_path, len(bulk))
    return json_path
