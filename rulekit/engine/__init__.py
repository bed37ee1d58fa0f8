"""
Rule evaluation core: pure, synchronous, no I/O.

Modules
-------
operators   : evaluate_operator() — one comparison, dispatch table.
matcher     : matches() + matches_any() — recursive rule-tree evaluation.
selection   : find_source_products() + find_recommended_products().
rule_engine : RuleEngine / AsyncRuleEngine facades bound to an id field.
"""
