"""Streaming accumulators, one per derived view."""

from cuv.domain.calculators.chat import (
    ChatAccumulator,
    calculate_chat_requests,
    calculate_chat_users,
)
from cuv.domain.calculators.data_quality import DataQualityAccumulator, calculate_data_quality
from cuv.domain.calculators.engagement import EngagementAccumulator, calculate_engagement
from cuv.domain.calculators.feature_adoption import (
    FeatureAdoptionAccumulator,
    calculate_feature_adoption,
)
from cuv.domain.calculators.ide_stats import IDEStatsAccumulator, calculate_ide_stats
from cuv.domain.calculators.impact import (
    ImpactAccumulator,
    ImpactMode,
    accumulate_impact_records,
    calculate_impact,
)
from cuv.domain.calculators.language import (
    LanguageAccumulator,
    calculate_language_stats,
    should_filter_language,
)
from cuv.domain.calculators.language_feature_impact import (
    ChartVariant,
    LanguageFeatureImpactAccumulator,
    calculate_daily_language_chart,
    calculate_language_feature_impact,
)
from cuv.domain.calculators.model_breakdown import (
    ModelBreakdownAccumulator,
    calculate_model_breakdown,
)
from cuv.domain.calculators.model_usage import (
    ModelUsageAccumulator,
    calculate_agent_heatmap,
    calculate_daily_model_usage,
    calculate_daily_pru_analysis,
    calculate_model_feature_distribution,
)
from cuv.domain.calculators.plugin_versions import (
    PluginVersionAccumulator,
    calculate_plugin_versions,
)
from cuv.domain.calculators.stats import StatsAccumulator, calculate_stats
from cuv.domain.calculators.user_detail import (
    UserDetailAccumulator,
    build_user_details,
    calculate_user_details,
)
from cuv.domain.calculators.user_summary import UserSummaryAccumulator, calculate_user_summaries

__all__ = [
    "ChartVariant",
    "ChatAccumulator",
    "DataQualityAccumulator",
    "EngagementAccumulator",
    "FeatureAdoptionAccumulator",
    "IDEStatsAccumulator",
    "ImpactAccumulator",
    "ImpactMode",
    "LanguageAccumulator",
    "LanguageFeatureImpactAccumulator",
    "ModelBreakdownAccumulator",
    "ModelUsageAccumulator",
    "PluginVersionAccumulator",
    "StatsAccumulator",
    "UserDetailAccumulator",
    "UserSummaryAccumulator",
    "accumulate_impact_records",
    "build_user_details",
    "calculate_agent_heatmap",
    "calculate_chat_requests",
    "calculate_chat_users",
    "calculate_daily_language_chart",
    "calculate_daily_model_usage",
    "calculate_daily_pru_analysis",
    "calculate_data_quality",
    "calculate_engagement",
    "calculate_feature_adoption",
    "calculate_ide_stats",
    "calculate_impact",
    "calculate_language_feature_impact",
    "calculate_language_stats",
    "calculate_model_breakdown",
    "calculate_model_feature_distribution",
    "calculate_plugin_versions",
    "calculate_stats",
    "calculate_user_details",
    "calculate_user_summaries",
    "should_filter_language",
]
