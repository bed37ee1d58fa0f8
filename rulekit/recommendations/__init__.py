"""
Cross-selling layer built on the rule evaluation core.

Modules
-------
composer : get_recommendations() + get_bulk_recommendations() +
           process_config() — pure functions, no I/O.
reporter : write_recommendations_csv() + write_recommendations_json() — file output.
"""
