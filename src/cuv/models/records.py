"""Input record models for exported usage-metrics NDJSON."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PluginVersion(BaseModel):
    """Last plugin version reported for an IDE."""

    sampled_at: str = ""
    plugin: str = ""
    plugin_version: str = ""


class IdeTotal(BaseModel):
    """Per-IDE counters for one user-day."""

    ide: str = ""
    user_initiated_interaction_count: int = 0
    code_generation_activity_count: int = 0
    code_acceptance_activity_count: int = 0
    loc_added_sum: int = 0
    loc_deleted_sum: int = 0
    loc_suggested_to_add_sum: int = 0
    loc_suggested_to_delete_sum: int = 0
    last_known_plugin_version: PluginVersion | None = None


class FeatureTotal(BaseModel):
    """Per-feature counters for one user-day."""

    feature: str = ""
    user_initiated_interaction_count: int = 0
    code_generation_activity_count: int = 0
    code_acceptance_activity_count: int = 0
    loc_added_sum: int = 0
    loc_deleted_sum: int = 0
    loc_suggested_to_add_sum: int = 0
    loc_suggested_to_delete_sum: int = 0


class LanguageFeatureTotal(BaseModel):
    """Per language x feature counters for one user-day."""

    language: str = ""
    feature: str = ""
    code_generation_activity_count: int = 0
    code_acceptance_activity_count: int = 0
    loc_added_sum: int = 0
    loc_deleted_sum: int = 0
    loc_suggested_to_add_sum: int = 0
    loc_suggested_to_delete_sum: int = 0


class LanguageModelTotal(BaseModel):
    """Per language x model counters for one user-day."""

    language: str = ""
    model: str = ""
    code_generation_activity_count: int = 0
    code_acceptance_activity_count: int = 0
    loc_added_sum: int = 0
    loc_deleted_sum: int = 0
    loc_suggested_to_add_sum: int = 0
    loc_suggested_to_delete_sum: int = 0


class ModelFeatureTotal(BaseModel):
    """Per model x feature counters for one user-day."""

    model: str = ""
    feature: str = ""
    user_initiated_interaction_count: int = 0
    code_generation_activity_count: int = 0
    code_acceptance_activity_count: int = 0
    loc_added_sum: int = 0
    loc_deleted_sum: int = 0
    loc_suggested_to_add_sum: int = 0
    loc_suggested_to_delete_sum: int = 0


class UsageRecord(BaseModel):
    """One user's activity summary for one calendar day.

    Root counters are not guaranteed to equal the sum of any breakdown list;
    feature-specific views always sum from the breakdowns.
    """

    report_start_day: str = ""
    report_end_day: str = ""
    day: str
    enterprise_id: str = ""
    user_id: int
    user_login: str = ""
    user_initiated_interaction_count: int = 0
    code_generation_activity_count: int = 0
    code_acceptance_activity_count: int = 0
    loc_added_sum: int = 0
    loc_deleted_sum: int = 0
    loc_suggested_to_add_sum: int = 0
    loc_suggested_to_delete_sum: int = 0
    totals_by_ide: list[IdeTotal] = Field(default_factory=list)
    totals_by_feature: list[FeatureTotal] = Field(default_factory=list)
    totals_by_language_feature: list[LanguageFeatureTotal] = Field(default_factory=list)
    totals_by_language_model: list[LanguageModelTotal] = Field(default_factory=list)
    totals_by_model_feature: list[ModelFeatureTotal] = Field(default_factory=list)
    used_chat: bool = False
    used_agent: bool = False
    used_cli: bool = False
