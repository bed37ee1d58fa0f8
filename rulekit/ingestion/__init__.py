"""
Ingestion layer — product catalogs and rule set configurations from disk.

Submodules:
  loader — load_products() (.json / .parquet), load_rule_sets(), load_rule_set()
"""
