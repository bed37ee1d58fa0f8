"""
Tests for the rulekit CLI (rulekit/cli.py).

Every test points the commands at temporary files via --config, --products
and --rules, so nothing under the project's data/ directory is touched.
"""

from __future__ import annotations

import json
import logging

import pytest
from typer.testing import CliRunner

from rulekit.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def files(tmp_path, write_json, products, laptop_rule_set):
    """Config, products and rule set files under ``tmp_path``."""
    config = tmp_path / "app.toml"
    config.write_text('[logging]\nlevel = "WARNING"\n', encoding="utf-8")
    rules = [
        {"id": "laptop-accessories", "name": "Laptop accessories",
         "ruleSet": laptop_rule_set.to_dict()},
        {"id": "dormant", "name": "Dormant", "isActive": False,
         "ruleSet": {"sourceRules": [{}], "recommendationRules": [{}]}},
    ]
    return {
        "config": str(config),
        "products": str(write_json("products.json", products)),
        "rules": str(write_json("rules.json", rules)),
        "out": str(tmp_path / "out"),
    }


def _common(files, *extra):
    return [*extra, "--config", files["config"],
            "--products", files["products"], "--rules", files["rules"]]


# ── validate-config / validate-rules ──────────────────────────────────────────

def test_validate_config(files):
    result = runner.invoke(app, ["validate-config", "--config", files["config"], "--full"])
    assert result.exit_code == 0
    assert "Log level:        WARNING" in result.output
    assert "[OK] Config valid." in result.output


def test_validate_config_missing_file(tmp_path):
    result = runner.invoke(app, ["validate-config", "--config", str(tmp_path / "x.toml")])
    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_validate_rules(files):
    result = runner.invoke(
        app, ["validate-rules", "--rules", files["rules"], "--config", files["config"]]
    )
    assert result.exit_code == 0
    assert (
        "laptop-accessories [active] source_rules=1 recommendation_rules=1 "
        "conditions=4 max_depth=2"
    ) in result.output
    assert "dormant [inactive]" in result.output
    assert "[OK] Rules valid." in result.output


def test_validate_rules_reports_bad_operator(files, write_json):
    bad = write_json("bad.json", [
        {"id": "x", "name": "X", "ruleSet": {"sourceRules": [{"brand": {"like": "A"}}]}},
    ])
    result = runner.invoke(
        app, ["validate-rules", "--rules", str(bad), "--config", files["config"]]
    )
    assert result.exit_code == 1
    assert "unsupported operator 'like'" in result.output
    assert "in config at index 0 of bad.json" in result.output


# ── find-sources / recommend ──────────────────────────────────────────────────

def test_find_sources(files):
    result = runner.invoke(
        app, ["find-sources", *_common(files, "--config-id", "laptop-accessories")]
    )
    assert result.exit_code == 0
    assert "Source products for 'laptop-accessories': 3 of 6" in result.output


def test_config_id_required_with_several_configs(files):
    result = runner.invoke(app, ["find-sources", *_common(files)])
    assert result.exit_code == 1
    assert "--config-id is required" in result.output


def test_unknown_config_id(files):
    result = runner.invoke(app, ["find-sources", *_common(files, "--config-id", "nope")])
    assert result.exit_code == 1
    assert "Unknown config id 'nope'" in result.output


def test_recommend(files):
    result = runner.invoke(
        app, ["recommend", "1", *_common(files, "--config-id", "laptop-accessories")]
    )
    assert result.exit_code == 0
    assert "Recommendations for 1 ('laptop-accessories'): 2" in result.output
    assert "  1. 2" in result.output
    assert "  2. 3" in result.output


def test_recommend_unknown_product(files):
    result = runner.invoke(
        app, ["recommend", "99", *_common(files, "--config-id", "laptop-accessories")]
    )
    assert result.exit_code == 1
    assert "Product '99' not found" in result.output


def test_recommend_inactive_config(files):
    result = runner.invoke(app, ["recommend", "1", *_common(files, "--config-id", "dormant")])
    assert result.exit_code == 0
    assert "inactive" in result.output


# ── bulk-recommend ────────────────────────────────────────────────────────────

def test_bulk_recommend_writes_both_formats(files, tmp_path):
    result = runner.invoke(app, [
        "bulk-recommend",
        *_common(files, "--config-id", "laptop-accessories"),
        "--output-dir", files["out"], "--format", "both",
    ])
    assert result.exit_code == 0
    assert "6 product(s), 3 with recommendations" in result.output
    assert "[OK] Reports written." in result.output

    out = tmp_path / "out"
    json_files = list(out.glob("recommendations_laptop-accessories_*.json"))
    csv_files = list(out.glob("recommendations_laptop-accessories_*.csv"))
    assert len(json_files) == 1 and len(csv_files) == 1

    payload = json.loads(json_files[0].read_text(encoding="utf-8"))
    assert len(payload["sources"]) == 6


def test_bulk_recommend_bad_format(files):
    result = runner.invoke(app, [
        "bulk-recommend", *_common(files, "--config-id", "laptop-accessories"),
        "--format", "xml",
    ])
    assert result.exit_code == 1
    assert "--format must be one of" in result.output
