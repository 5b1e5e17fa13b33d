"""Derived analytics models produced by one aggregation pass."""

from __future__ import annotations

from pydantic import BaseModel, Field

from cuv.models.records import (
    FeatureTotal,
    IdeTotal,
    LanguageFeatureTotal,
    ModelFeatureTotal,
    PluginVersion,
    UsageRecord,
)


class TopEntry(BaseModel):
    """Highest-ranked language or model by engagements."""

    name: str = "N/A"
    engagements: int = 0


class TopIde(BaseModel):
    """Highest-ranked IDE by unique users."""

    name: str = "N/A"
    entries: int = 0


class MetricsStats(BaseModel):
    """Headline statistics for the reporting window."""

    unique_users: int = 0
    chat_users: int = 0
    agent_users: int = 0
    cli_users: int = 0
    completion_only_users: int = 0
    report_start_day: str = ""
    report_end_day: str = ""
    total_records: int = 0
    top_language: TopEntry = Field(default_factory=TopEntry)
    top_ide: TopIde = Field(default_factory=TopIde)
    top_model: TopEntry = Field(default_factory=TopEntry)


class UserSummary(BaseModel):
    """Per-user rollup of root-level counters."""

    user_login: str
    user_id: int
    total_user_initiated_interactions: int = 0
    total_code_generation_activities: int = 0
    total_code_acceptance_activities: int = 0
    total_loc_added: int = 0
    total_loc_deleted: int = 0
    total_loc_suggested_to_add: int = 0
    total_loc_suggested_to_delete: int = 0
    days_active: int = 0
    used_agent: bool = False
    used_chat: bool = False
    used_cli: bool = False


class DailyEngagement(BaseModel):
    """Active users for one day relative to the whole population."""

    date: str
    active_users: int = 0
    total_users: int = 0
    engagement_percentage: float = 0.0


class DailyChatUsers(BaseModel):
    date: str
    ask_mode_users: int = 0
    agent_mode_users: int = 0
    edit_mode_users: int = 0
    inline_mode_users: int = 0


class DailyChatRequests(BaseModel):
    date: str
    ask_mode_requests: int = 0
    agent_mode_requests: int = 0
    edit_mode_requests: int = 0
    inline_mode_requests: int = 0


class LanguageStats(BaseModel):
    """Per-language generation, acceptance and LOC totals."""

    language: str
    total_generations: int = 0
    total_acceptances: int = 0
    total_engagements: int = 0
    unique_users: int = 0
    loc_added: int = 0
    loc_deleted: int = 0
    loc_suggested_to_add: int = 0
    loc_suggested_to_delete: int = 0


class DailyModelUsage(BaseModel):
    """Interactions per day bucketed into premium, standard and unknown models."""

    date: str
    pru_models: int = 0
    standard_models: int = 0
    unknown_models: int = 0
    total_prus: float = 0.0
    service_value: float = 0.0


class ModelRequestStats(BaseModel):
    name: str
    requests: int = 0
    prus: float = 0.0
    is_premium: bool = False
    multiplier: float = 0.0


class DailyPRUAnalysis(BaseModel):
    """Premium vs standard requests for one day, with a per-model breakdown."""

    date: str
    pru_requests: int = 0
    standard_requests: int = 0
    pru_percentage: float = 0.0
    total_prus: float = 0.0
    service_value: float = 0.0
    top_model: str = "unknown"
    top_model_prus: float = 0.0
    top_model_is_premium: bool = False
    models: list[ModelRequestStats] = Field(default_factory=list)


class AgentModeHeatmap(BaseModel):
    """Agent-mode activity for one day; intensity is 0-5 relative to the busiest day."""

    date: str
    agent_mode_requests: int = 0
    unique_users: int = 0
    intensity: int = 0
    service_value: float = 0.0


class FeatureBuckets(BaseModel):
    agent_mode: int = 0
    ask_mode: int = 0
    edit_mode: int = 0
    inline_mode: int = 0
    code_completion: int = 0
    code_review: int = 0
    other: int = 0


class ModelFeatureDistribution(BaseModel):
    """Interactions of one model split across features."""

    model: str
    model_display_name: str
    multiplier: float = 0.0
    features: FeatureBuckets = Field(default_factory=FeatureBuckets)
    total_interactions: int = 0
    total_prus: float = 0.0
    service_value: float = 0.0


class FeatureAdoption(BaseModel):
    """Adoption funnel counts; categories overlap except completion-only."""

    total_users: int = 0
    completion_users: int = 0
    completion_only_users: int = 0
    chat_users: int = 0
    agent_mode_users: int = 0
    ask_mode_users: int = 0
    edit_mode_users: int = 0
    inline_mode_users: int = 0
    code_review_users: int = 0
    cli_users: int = 0
    advanced_users: int = 0


class ImpactData(BaseModel):
    """Lines-of-code impact attributable to one mode on one day."""

    date: str
    loc_added: int = 0
    loc_deleted: int = 0
    net_change: int = 0
    user_count: int = 0
    total_unique_users: int = 0


class IDEStats(BaseModel):
    ide: str
    unique_users: int = 0
    total_engagements: int = 0
    total_generations: int = 0
    total_acceptances: int = 0
    loc_added: int = 0
    loc_deleted: int = 0
    loc_suggested_to_add: int = 0
    loc_suggested_to_delete: int = 0


class IDEStatsResult(BaseModel):
    ide_stats: list[IDEStats] = Field(default_factory=list)
    multi_ide_users_count: int = 0
    total_unique_ide_users: int = 0


class PluginVersionEntry(BaseModel):
    version: str
    user_count: int = 0
    usernames: list[str] = Field(default_factory=list)


class PluginVersionAnalysis(BaseModel):
    """Users per plugin version for the JetBrains and VS Code families."""

    jetbrains: list[PluginVersionEntry] = Field(default_factory=list)
    vscode: list[PluginVersionEntry] = Field(default_factory=list)
    total_unique_intellij_users: int = 0
    total_unique_vscode_users: int = 0


class LanguageFeatureImpactRow(BaseModel):
    language: str
    total: int = 0
    features: dict[str, int] = Field(default_factory=dict)


class LanguageFeatureImpact(BaseModel):
    rows: list[LanguageFeatureImpactRow] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)


class DailyLanguageChart(BaseModel):
    """Per-day values for the top languages, keyed date -> language -> value."""

    dates: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    data: dict[str, dict[str, int]] = Field(default_factory=dict)
    totals: dict[str, int] = Field(default_factory=dict)


class ModelDailyUsageEntry(BaseModel):
    model: str
    total: int = 0
    daily_data: dict[str, int] = Field(default_factory=dict)


class ModelBreakdown(BaseModel):
    premium_models: list[ModelDailyUsageEntry] = Field(default_factory=list)
    standard_models: list[ModelDailyUsageEntry] = Field(default_factory=list)
    dates: list[str] = Field(default_factory=list)
    premium_total: int = 0
    standard_total: int = 0
    unknown_total: int = 0


class DataQualityUser(BaseModel):
    """A user flagged ``used_agent`` whose records never report an agent feature."""

    user_login: str
    user_id: int
    used_agent: bool = False
    used_modes: list[str] = Field(default_factory=list)
    plugins_used: list[str] = Field(default_factory=list)


class UnknownModelTrendPoint(BaseModel):
    day: str
    count: int = 0


class IdeQualitySummary(BaseModel):
    """IDEs seen on records that carry unknown-model entries."""

    ide: str
    occurrences: int = 0
    unique_users: int = 0
    plugin_versions: list[str] = Field(default_factory=list)


class DataQualityAnalysis(BaseModel):
    users_with_issues: list[DataQualityUser] = Field(default_factory=list)
    unknown_model_trend: list[UnknownModelTrendPoint] = Field(default_factory=list)
    ide_summary: list[IdeQualitySummary] = Field(default_factory=list)
    total_unknown_model_entries: int = 0


class UserDetailedMetrics(BaseModel):
    """Drill-down for a single user, including day-level views scoped to that user."""

    user_id: int
    user_login: str = ""
    total_standard_model_requests: int = 0
    total_premium_model_requests: int = 0
    feature_aggregates: list[FeatureTotal] = Field(default_factory=list)
    ide_aggregates: list[IdeTotal] = Field(default_factory=list)
    language_feature_aggregates: list[LanguageFeatureTotal] = Field(default_factory=list)
    model_feature_aggregates: list[ModelFeatureTotal] = Field(default_factory=list)
    plugin_versions: list[PluginVersion] = Field(default_factory=list)
    daily_pru_analysis: list[DailyPRUAnalysis] = Field(default_factory=list)
    daily_combined_impact: list[ImpactData] = Field(default_factory=list)
    daily_model_usage: list[DailyModelUsage] = Field(default_factory=list)
    daily_agent_impact: list[ImpactData] = Field(default_factory=list)
    daily_ask_mode_impact: list[ImpactData] = Field(default_factory=list)
    daily_completion_impact: list[ImpactData] = Field(default_factory=list)
    daily_cli_impact: list[ImpactData] = Field(default_factory=list)
    days: list[UsageRecord] = Field(default_factory=list)
    report_start_day: str = ""
    report_end_day: str = ""


class AggregatedMetrics(BaseModel):
    """Combined result of one aggregation pass over a record array."""

    stats: MetricsStats = Field(default_factory=MetricsStats)
    user_summaries: list[UserSummary] = Field(default_factory=list)
    engagement_data: list[DailyEngagement] = Field(default_factory=list)
    chat_users_data: list[DailyChatUsers] = Field(default_factory=list)
    chat_requests_data: list[DailyChatRequests] = Field(default_factory=list)
    language_stats: list[LanguageStats] = Field(default_factory=list)
    model_usage_data: list[DailyModelUsage] = Field(default_factory=list)
    feature_adoption_data: FeatureAdoption = Field(default_factory=FeatureAdoption)
    pru_analysis_data: list[DailyPRUAnalysis] = Field(default_factory=list)
    agent_mode_heatmap_data: list[AgentModeHeatmap] = Field(default_factory=list)
    model_feature_distribution_data: list[ModelFeatureDistribution] = Field(
        default_factory=list
    )
    agent_impact_data: list[ImpactData] = Field(default_factory=list)
    code_completion_impact_data: list[ImpactData] = Field(default_factory=list)
    edit_mode_impact_data: list[ImpactData] = Field(default_factory=list)
    inline_mode_impact_data: list[ImpactData] = Field(default_factory=list)
    ask_mode_impact_data: list[ImpactData] = Field(default_factory=list)
    cli_impact_data: list[ImpactData] = Field(default_factory=list)
    joined_impact_data: list[ImpactData] = Field(default_factory=list)
    ide_stats: list[IDEStats] = Field(default_factory=list)
    multi_ide_users_count: int = 0
    total_unique_ide_users: int = 0
    plugin_version_data: PluginVersionAnalysis = Field(default_factory=PluginVersionAnalysis)
    language_feature_impact_data: LanguageFeatureImpact = Field(
        default_factory=LanguageFeatureImpact
    )
    daily_language_generations_data: DailyLanguageChart = Field(
        default_factory=DailyLanguageChart
    )
    daily_language_loc_data: DailyLanguageChart = Field(default_factory=DailyLanguageChart)
    model_breakdown_data: ModelBreakdown = Field(default_factory=ModelBreakdown)
    data_quality_data: DataQualityAnalysis = Field(default_factory=DataQualityAnalysis)
