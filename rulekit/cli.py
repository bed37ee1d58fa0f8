"""
rulekit — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Load the product catalog and rule set configs.
  4. Run the engine.
  5. Report result to stdout.

Install and run::

    pip install -e .
    rulekit --help
    rulekit validate-config
    rulekit validate-rules --rules config/rule_sets.json
    rulekit find-sources --config-id laptop-accessories
    rulekit recommend p-100 --config-id laptop-accessories
    rulekit bulk-recommend --config-id laptop-accessories --format both
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="rulekit",
    help="Declarative rule evaluation and cross-selling recommendations.",
    add_completion=False,
)

_FORMATS = ("json", "csv", "both")


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from rulekit.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from rulekit.utils.logging import configure_logging
    configure_logging(config.logging)


def _load_rule_sets_or_exit(rules_path: Path):
    from rulekit.errors import RuleStructureError
    from rulekit.ingestion.loader import load_rule_sets

    try:
        return load_rule_sets(rules_path)
    except (FileNotFoundError, ValueError, RuleStructureError) as exc:
        typer.echo(f"[ERROR] Rule sets could not be loaded:\n{exc}", err=True)
        for note in getattr(exc, "__notes__", []):
            typer.echo(f"  ({note})", err=True)
        raise typer.Exit(code=1)


def _load_products_or_exit(products_path: Path, id_field: str):
    from rulekit.ingestion.loader import load_products

    try:
        return load_products(products_path, id_field=id_field)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"[ERROR] Products could not be loaded:\n{exc}", err=True)
        raise typer.Exit(code=1)


def _select_config_or_exit(configs, config_id: Optional[str]):
    """Pick the config named ``config_id``; with no id, the file must hold exactly one."""
    if config_id is None:
        if len(configs) == 1:
            return configs[0]
        typer.echo(
            f"[ERROR] --config-id is required when the file holds {len(configs)} configs. "
            f"Available: {', '.join(c.id for c in configs) or '(none)'}",
            err=True,
        )
        raise typer.Exit(code=1)

    for cfg in configs:
        if cfg.id == config_id:
            return cfg
    typer.echo(f"[ERROR] Unknown config id '{config_id}'.", err=True)
    raise typer.Exit(code=1)


def _resolve(path_opt: Optional[str], default: str) -> Path:
    return Path(path_opt) if path_opt else Path(default)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Identifier field: {config.engine.id_field}")
    typer.echo(f"  Shared matches:   {config.engine.share_candidate_matches}")
    typer.echo(f"  Products file:    {config.data.products_file}")
    typer.echo(f"  Rule sets file:   {config.data.rule_sets_file}")
    typer.echo(f"  Output dir:       {config.data.output_dir}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("validate-rules")
def validate_rules(
    rules_file: Optional[str] = typer.Option(
        None, "--rules", help="Rule set JSON file (default from config).",
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file.",
    ),
) -> None:
    """Parse every rule set config and print a summary of its rule trees."""
    from rulekit.models.rule import count_conditions, rule_depth

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    rules_path = _resolve(rules_file, config.data.rule_sets_file)
    configs = _load_rule_sets_or_exit(rules_path)

    typer.echo(f"Rule sets in {rules_path}: {len(configs)}")
    for cfg in configs:
        rs = cfg.rule_set
        all_rules = [*rs.source_rules, *rs.recommendation_rules]
        conditions = sum(count_conditions(r) for r in all_rules)
        depth = max((rule_depth(r) for r in all_rules), default=0)
        status = "active" if cfg.is_active else "inactive"
        typer.echo(
            f"  {cfg.id} [{status}] source_rules={len(rs.source_rules)} "
            f"recommendation_rules={len(rs.recommendation_rules)} "
            f"conditions={conditions} max_depth={depth}"
        )
    typer.echo("[OK] Rules valid.")


@app.command("find-sources")
def find_sources(
    config_id: Optional[str] = typer.Option(
        None, "--config-id", help="Rule set config to apply.",
    ),
    products_file: Optional[str] = typer.Option(
        None, "--products", help="Product catalog (.json or .parquet).",
    ),
    rules_file: Optional[str] = typer.Option(
        None, "--rules", help="Rule set JSON file.",
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file.",
    ),
) -> None:
    """List the products that qualify as cross-selling sources."""
    from rulekit.engine.rule_engine import RuleEngine
    from rulekit.utils.logging import log_context

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    engine = RuleEngine.from_config(config.engine)
    products = _load_products_or_exit(
        _resolve(products_file, config.data.products_file), engine.id_field
    )
    configs = _load_rule_sets_or_exit(_resolve(rules_file, config.data.rule_sets_file))
    cfg = _select_config_or_exit(configs, config_id)

    with log_context(config_id=cfg.id, id_field=engine.id_field):
        sources = engine.find_source_products(products, cfg.rule_set.source_rules)
    typer.echo(f"Source products for '{cfg.id}': {len(sources)} of {len(products)}")
    for product in sources:
        typer.echo(f"  {product[engine.id_field]}")


@app.command("recommend")
def recommend(
    product_id: str = typer.Argument(..., help="Identifier of the source product."),
    config_id: Optional[str] = typer.Option(
        None, "--config-id", help="Rule set config to apply.",
    ),
    products_file: Optional[str] = typer.Option(
        None, "--products", help="Product catalog (.json or .parquet).",
    ),
    rules_file: Optional[str] = typer.Option(
        None, "--rules", help="Rule set JSON file.",
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file.",
    ),
) -> None:
    """Print cross-selling recommendations for one product.

    Product ids are compared as text, so numeric ids can be given as-is.
    """
    from rulekit.engine.rule_engine import RuleEngine
    from rulekit.utils.logging import log_context

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    engine = RuleEngine.from_config(config.engine)
    products = _load_products_or_exit(
        _resolve(products_file, config.data.products_file), engine.id_field
    )
    configs = _load_rule_sets_or_exit(_resolve(rules_file, config.data.rule_sets_file))
    cfg = _select_config_or_exit(configs, config_id)

    source = next((p for p in products if str(p[engine.id_field]) == product_id), None)
    if source is None:
        typer.echo(f"[ERROR] Product '{product_id}' not found.", err=True)
        raise typer.Exit(code=1)

    if not cfg.is_active:
        typer.echo(f"Config '{cfg.id}' is inactive; no recommendations.")
        return

    with log_context(config_id=cfg.id, id_field=engine.id_field):
        recs = engine.get_recommendations(source, products, cfg.rule_set)
    typer.echo(f"Recommendations for {product_id} ('{cfg.id}'): {len(recs)}")
    for rank, rec in enumerate(recs, start=1):
        typer.echo(f"  {rank}. {rec[engine.id_field]}")


@app.command("bulk-recommend")
def bulk_recommend(
    config_id: Optional[str] = typer.Option(
        None, "--config-id", help="Rule set config to apply.",
    ),
    products_file: Optional[str] = typer.Option(
        None, "--products", help="Product catalog (.json or .parquet).",
    ),
    rules_file: Optional[str] = typer.Option(
        None, "--rules", help="Rule set JSON file.",
    ),
    output_dir: Optional[str] = typer.Option(
        None, "--output-dir", help="Report directory (default from config).",
    ),
    fmt: str = typer.Option(
        "json", "--format", help="Report format: json, csv or both.",
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file.",
    ),
) -> None:
    """Compute recommendations for every product and write report files.

    Every product is both a source and a candidate.
    """
    from rulekit.engine.rule_engine import RuleEngine
    from rulekit.utils.logging import log_context
    from rulekit.recommendations.reporter import (
        write_recommendations_csv,
        write_recommendations_json,
    )

    if fmt not in _FORMATS:
        typer.echo(f"[ERROR] --format must be one of {', '.join(_FORMATS)}.", err=True)
        raise typer.Exit(code=1)

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    engine = RuleEngine.from_config(config.engine)
    products = _load_products_or_exit(
        _resolve(products_file, config.data.products_file), engine.id_field
    )
    configs = _load_rule_sets_or_exit(_resolve(rules_file, config.data.rule_sets_file))
    cfg = _select_config_or_exit(configs, config_id)

    if not cfg.is_active:
        typer.echo(f"Config '{cfg.id}' is inactive; nothing written.")
        return

    out = _resolve(output_dir, config.data.output_dir)
    with log_context(config_id=cfg.id, id_field=engine.id_field):
        bulk = engine.get_bulk_recommendations(products, products, cfg.rule_set)
        with_recs = sum(1 for recs in bulk.values() if recs)
        typer.echo(
            f"Bulk recommendations for '{cfg.id}': {len(bulk)} product(s), "
            f"{with_recs} with recommendations."
        )
        if fmt in ("json", "both"):
            path = write_recommendations_json(bulk, out, cfg.id, id_field=engine.id_field)
            typer.echo(f"  JSON: {path}")
        if fmt in ("csv", "both"):
            path = write_recommendations_csv(bulk, out, cfg.id, id_field=engine.id_field)
            typer.echo(f"  CSV:  {path}")
    typer.echo("[OK] Reports written.")


if __name__ == "__main__":
    app()
