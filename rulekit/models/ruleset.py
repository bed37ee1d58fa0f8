"""
Cross-selling rule sets and their stored configurations.

``CrossSellingRuleSet`` pairs two rule lists:
  - ``source_rules``         — which products qualify as a source
  - ``recommendation_rules`` — which candidates to suggest for a source

``CrossSellingConfig`` wraps a rule set with identity and an on/off switch,
as authored in an admin tool and loaded by ``rulekit.ingestion.loader``.

Both models accept the camelCase keys used in JSON files
(``sourceRules``, ``recommendationRules``, ``ruleSet``, ``isActive``,
``createdAt``, ``updatedAt``) as well as the snake_case field names.
Rules are parsed into the tagged union during validation, so a malformed
rule raises ``RuleStructureError`` at construction time.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from rulekit.models.rule import Rule, parse_rules, rule_to_dict


class CrossSellingRuleSet(BaseModel):
    """Source rules + recommendation rules.

    Either list may be empty; an empty list matches nothing.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source_rules: list[Rule] = Field(default_factory=list, alias="sourceRules")
    recommendation_rules: list[Rule] = Field(
        default_factory=list, alias="recommendationRules"
    )

    @field_validator("source_rules", "recommendation_rules", mode="before")
    @classmethod
    def parse_rule_lists(cls, v: Any, info: ValidationInfo) -> list:
        return parse_rules(v, path=info.field_name)

    def to_dict(self) -> dict[str, Any]:
        """Authored (camelCase) dict form, suitable for JSON export."""
        return {
            "sourceRules": [rule_to_dict(r) for r in self.source_rules],
            "recommendationRules": [rule_to_dict(r) for r in self.recommendation_rules],
        }


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class CrossSellingConfig(BaseModel):
    """A named, switchable cross-selling rule set.

    Attributes:
        id: Stable configuration identifier.
        name: Human-readable name.
        description: Optional free text.
        rule_set: The rules to apply.
        is_active: Inactive configs produce no matches at all.
        created_at: Creation timestamp.
        updated_at: Last modification; must not precede ``created_at``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    description: Optional[str] = None
    rule_set: CrossSellingRuleSet = Field(alias="ruleSet")
    is_active: bool = Field(True, alias="isActive")
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=_utcnow, alias="updatedAt")

    @field_validator("id", "name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Must be a non-empty string.")
        return v

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # Naive timestamps from JSON are taken as UTC.
        return v if v.tzinfo is not None else v.replace(tzinfo=timezone.utc)

    @model_validator(mode="after")
    def validate_timestamps(self) -> "CrossSellingConfig":
        """Ensure updated_at is not before created_at."""
        if self.updated_at < self.created_at:
            raise ValueError(
                f"updated_at ({self.updated_at}) must be >= created_at ({self.created_at})."
            )
        return self
