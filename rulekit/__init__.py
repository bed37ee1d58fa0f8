"""rulekit — declarative rule evaluation and cross-selling recommendations."""

__version__ = "1.0.0"
