"""Tests for rulekit.recommendations.reporter."""

from __future__ import annotations

import csv
import json
from datetime import date
from pathlib import Path

from rulekit.recommendations.reporter import (
    SCHEMA_VERSION,
    write_recommendations_csv,
    write_recommendations_json,
)

RUN_DATE = date(2026, 3, 1)


def _bulk() -> dict:
    return {
        "1": [{"id": "2", "price": 80}, {"id": "3", "price": 40}],
        "2": [],
        "4": [{"id": "3", "price": 40}],
    }


# ── write_recommendations_csv ─────────────────────────────────────────────────


def test_csv_rows_and_ranks(tmp_path: Path) -> None:
    """One row per (source, recommendation) pair, ranked from 1 per source."""
    path = write_recommendations_csv(_bulk(), tmp_path, "cfg", run_date=RUN_DATE)

    assert path == tmp_path / "recommendations_cfg_2026-03-01.csv"
    with path.open(encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert [(r["source_id"], r["rank"], r["recommended_id"]) for r in rows] == [
        ("1", "1", "2"),
        ("1", "2", "3"),
        ("4", "1", "3"),
    ]


def test_csv_creates_output_dir(tmp_path: Path) -> None:
    """Missing output directories are created."""
    out = tmp_path / "nested" / "reports"
    path = write_recommendations_csv({}, out, "cfg", run_date=RUN_DATE)
    assert path.exists()
    assert path.read_text(encoding="utf-8").strip() == "source_id,rank,recommended_id"


def test_csv_custom_id_field(tmp_path: Path) -> None:
    bulk = {10: [{"sku": 11}]}
    path = write_recommendations_csv(bulk, tmp_path, "cfg", id_field="sku", run_date=RUN_DATE)
    with path.open(encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert rows == [{"source_id": "10", "rank": "1", "recommended_id": "11"}]


# ── write_recommendations_json ────────────────────────────────────────────────


def test_json_payload(tmp_path: Path) -> None:
    """Every source is listed, including those without recommendations."""
    path = write_recommendations_json(_bulk(), tmp_path, "cfg", run_date=RUN_DATE)

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["schema_version"] == SCHEMA_VERSION
    assert payload["config_id"] == "cfg"
    assert payload["generated_at"] == "2026-03-01"
    assert payload["id_field"] == "id"
    assert [s["source_id"] for s in payload["sources"]] == ["1", "2", "4"]
    assert payload["sources"][1]["recommendations"] == []
    assert payload["sources"][0]["recommendations"][0] == {"id": "2", "price": 80}


def test_json_defaults_to_today(tmp_path: Path) -> None:
    path = write_recommendations_json({}, tmp_path, "cfg")
    assert path.name == f"recommendations_cfg_{date.today()}.json"


def _reject_constant(token: str) -> None:
    raise ValueError(f"non-standard JSON token {token}")


def test_json_non_finite_values_written_as_null(tmp_path: Path) -> None:
    """NaN and infinite prices are written as null, keeping the file strict JSON."""
    bulk = {
        "1": [
            {"id": "2", "price": float("nan")},
            {"id": "3", "price": float("inf"), "history": [1.5, float("-inf")]},
        ],
    }
    path = write_recommendations_json(bulk, tmp_path, "cfg", run_date=RUN_DATE)

    text = path.read_text(encoding="utf-8")
    payload = json.loads(text, parse_constant=_reject_constant)
    recs = payload["sources"][0]["recommendations"]
    assert recs[0] == {"id": "2", "price": None}
    assert recs[1] == {"id": "3", "price": None, "history": [1.5, None]}


def test_json_leaves_input_records_untouched(tmp_path: Path) -> None:
    record = {"id": "2", "price": float("nan")}
    write_recommendations_json({"1": [record]}, tmp_path, "cfg", run_date=RUN_DATE)
    assert record["price"] != record["price"]
