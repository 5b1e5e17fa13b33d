"""Single-pass aggregation of usage records into every derived view."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from cuv.domain.calculators import (
    ChartVariant,
    ChatAccumulator,
    DataQualityAccumulator,
    EngagementAccumulator,
    FeatureAdoptionAccumulator,
    IDEStatsAccumulator,
    ImpactAccumulator,
    ImpactMode,
    LanguageAccumulator,
    LanguageFeatureImpactAccumulator,
    ModelBreakdownAccumulator,
    ModelUsageAccumulator,
    PluginVersionAccumulator,
    StatsAccumulator,
    UserDetailAccumulator,
    UserSummaryAccumulator,
    should_filter_language,
)
from cuv.models.analytics import AggregatedMetrics
from cuv.models.records import UsageRecord

logger = logging.getLogger(__name__)


@dataclass
class AggregationPass:
    """Result of one pass plus the per-user state needed for later drill-downs."""

    result: AggregatedMetrics
    user_details: UserDetailAccumulator


def run_aggregation(
    records: Sequence[UsageRecord],
    remove_unknown_languages: bool = False,
) -> AggregationPass:
    """Feed every record once into fresh accumulators, then finalize them all.

    Exceptions propagate: there is no partial result.
    """
    stats = StatsAccumulator()
    user_summary = UserSummaryAccumulator()
    engagement = EngagementAccumulator()
    chat = ChatAccumulator()
    language = LanguageAccumulator()
    model_usage = ModelUsageAccumulator()
    adoption = FeatureAdoptionAccumulator()
    impact = ImpactAccumulator()
    ide_stats = IDEStatsAccumulator()
    plugin_versions = PluginVersionAccumulator()
    language_impact = LanguageFeatureImpactAccumulator()
    model_breakdown = ModelBreakdownAccumulator()
    user_details = UserDetailAccumulator()
    data_quality = DataQualityAccumulator()

    if records:
        first = records[0]
        stats.set_report_window(first.report_start_day, first.report_end_day)
        user_details.set_report_window(first.report_start_day, first.report_end_day)

    for record in records:
        day = record.day
        user_id = record.user_id

        user_summary.accumulate(record)
        user_details.accumulate(record)
        data_quality.accumulate(record)
        stats.accumulate_user_usage(user_id, record.used_chat, record.used_agent, record.used_cli)
        engagement.accumulate(day, user_id)
        impact.ensure_dates(day)

        for ide_total in record.totals_by_ide:
            stats.accumulate_ide_user(ide_total.ide, user_id)
            ide_stats.accumulate(user_id, ide_total)
            plugin_versions.accumulate(record.user_login, ide_total)

        for lang in record.totals_by_language_feature:
            language_impact.accumulate_impact(lang)
            if remove_unknown_languages and should_filter_language(lang.language):
                continue
            stats.accumulate_language_engagement(
                lang.language,
                lang.code_generation_activity_count + lang.code_acceptance_activity_count,
            )
            language.accumulate(user_id, lang)
            language_impact.accumulate_daily(day, lang)

        for mf in record.totals_by_model_feature:
            stats.accumulate_model_engagement(
                mf.model, mf.code_generation_activity_count + mf.code_acceptance_activity_count
            )
            model_usage.accumulate_model_feature(
                day, mf.model, mf.feature, mf.user_initiated_interaction_count
            )
            model_breakdown.accumulate(day, mf)

        for feature in record.totals_by_feature:
            interactions = feature.user_initiated_interaction_count
            adoption.accumulate(
                user_id, feature.feature, interactions, feature.code_generation_activity_count
            )
            chat.accumulate(day, user_id, feature.feature, interactions)
            model_usage.accumulate_agent_heatmap(day, user_id, feature.feature, interactions)
        impact.accumulate_features(day, user_id, record.totals_by_feature)

    ide_result = ide_stats.compute()
    result = AggregatedMetrics(
        stats=stats.compute(len(records)),
        user_summaries=user_summary.compute(),
        engagement_data=engagement.compute(),
        chat_users_data=chat.compute_users(),
        chat_requests_data=chat.compute_requests(),
        language_stats=language.compute(),
        model_usage_data=model_usage.compute_daily_model_usage(),
        feature_adoption_data=adoption.compute(),
        pru_analysis_data=model_usage.compute_pru_analysis(),
        agent_mode_heatmap_data=model_usage.compute_agent_heatmap(),
        model_feature_distribution_data=model_usage.compute_model_feature_distribution(),
        agent_impact_data=impact.compute(ImpactMode.AGENT),
        code_completion_impact_data=impact.compute(ImpactMode.CODE_COMPLETION),
        edit_mode_impact_data=impact.compute(ImpactMode.EDIT),
        inline_mode_impact_data=impact.compute(ImpactMode.INLINE),
        ask_mode_impact_data=impact.compute(ImpactMode.ASK),
        cli_impact_data=impact.compute(ImpactMode.CLI),
        joined_impact_data=impact.compute(ImpactMode.JOINED),
        ide_stats=ide_result.ide_stats,
        multi_ide_users_count=ide_result.multi_ide_users_count,
        total_unique_ide_users=ide_result.total_unique_ide_users,
        plugin_version_data=plugin_versions.compute(),
        language_feature_impact_data=language_impact.compute_impact(),
        daily_language_generations_data=language_impact.compute_daily_chart(
            ChartVariant.GENERATIONS
        ),
        daily_language_loc_data=language_impact.compute_daily_chart(ChartVariant.LOC),
        model_breakdown_data=model_breakdown.compute(),
        data_quality_data=data_quality.compute(),
    )
    logger.debug(
        "Aggregated %d records for %d users", len(records), result.stats.unique_users
    )
    return AggregationPass(result=result, user_details=user_details)


def aggregate_metrics(
    records: Sequence[UsageRecord],
    remove_unknown_languages: bool = False,
) -> AggregatedMetrics:
    return run_aggregation(records, remove_unknown_languages).result
