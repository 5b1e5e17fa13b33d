"""Per-user drill-down.

The accumulator only keeps each user's records. Rollups are built on demand,
and the day-level views replay those records through the same calculators
used for the whole dataset.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from cuv.domain.calculators.impact import ImpactMode, accumulate_impact_records
from cuv.domain.calculators.model_usage import (
    calculate_daily_model_usage,
    calculate_daily_pru_analysis,
)
from cuv.domain.model_config import get_model_multiplier, is_unknown_model
from cuv.models.analytics import UserDetailedMetrics
from cuv.models.records import (
    FeatureTotal,
    IdeTotal,
    LanguageFeatureTotal,
    ModelFeatureTotal,
    PluginVersion,
    UsageRecord,
)

_COUNTERS = (
    "code_generation_activity_count",
    "code_acceptance_activity_count",
    "loc_added_sum",
    "loc_deleted_sum",
    "loc_suggested_to_add_sum",
    "loc_suggested_to_delete_sum",
)
_COUNTERS_WITH_INTERACTIONS = ("user_initiated_interaction_count", *_COUNTERS)


@dataclass
class UserDetailAccumulator:
    user_records: dict[int, list[UsageRecord]] = field(default_factory=dict)
    report_start_day: str = ""
    report_end_day: str = ""

    def set_report_window(self, start_day: str, end_day: str) -> None:
        self.report_start_day = start_day
        self.report_end_day = end_day

    def accumulate(self, record: UsageRecord) -> None:
        self.user_records.setdefault(record.user_id, []).append(record)

    def has_user(self, user_id: int) -> bool:
        return user_id in self.user_records

    def compute_user(self, user_id: int) -> UserDetailedMetrics | None:
        records = self.user_records.get(user_id)
        if records is None:
            return None
        return build_user_details(
            user_id, records, self.report_start_day, self.report_end_day
        )

    def compute(self) -> dict[int, UserDetailedMetrics]:
        return {
            user_id: build_user_details(
                user_id, records, self.report_start_day, self.report_end_day
            )
            for user_id, records in self.user_records.items()
        }


def build_user_details(
    user_id: int,
    records: Sequence[UsageRecord],
    report_start_day: str = "",
    report_end_day: str = "",
) -> UserDetailedMetrics:
    """Roll up one user's records and replay them through the day-level calculators."""
    standard_requests = 0
    premium_requests = 0
    features: dict[str, FeatureTotal] = {}
    ides: dict[str, IdeTotal] = {}
    language_features: dict[tuple[str, str], LanguageFeatureTotal] = {}
    model_features: dict[tuple[str, str], ModelFeatureTotal] = {}
    plugin_versions: dict[tuple[str, str], PluginVersion] = {}

    for record in records:
        for mf in record.totals_by_model_feature:
            if is_unknown_model(mf.model):
                continue
            if get_model_multiplier(mf.model) == 0:
                standard_requests += mf.user_initiated_interaction_count
            else:
                premium_requests += mf.user_initiated_interaction_count

        for total in record.totals_by_feature:
            _merge(features, total.feature, total, _COUNTERS_WITH_INTERACTIONS)

        for ide_total in record.totals_by_ide:
            _merge(ides, ide_total.ide, ide_total, _COUNTERS_WITH_INTERACTIONS)
            plugin = ide_total.last_known_plugin_version
            if plugin is not None:
                key = (plugin.plugin, plugin.plugin_version)
                seen = plugin_versions.get(key)
                if seen is None or _sampled_at(plugin) > _sampled_at(seen):
                    plugin_versions[key] = plugin.model_copy()

        for lf in record.totals_by_language_feature:
            _merge(language_features, (lf.language, lf.feature), lf, _COUNTERS)

        for mf in record.totals_by_model_feature:
            _merge(model_features, (mf.model, mf.feature), mf, _COUNTERS_WITH_INTERACTIONS)

    impact = accumulate_impact_records(records)
    # Aggregated IDE rows describe totals, not a single sample.
    ide_aggregates = [
        ide.model_copy(update={"last_known_plugin_version": None}) for ide in ides.values()
    ]

    return UserDetailedMetrics(
        user_id=user_id,
        user_login=records[0].user_login if records else "",
        total_standard_model_requests=standard_requests,
        total_premium_model_requests=premium_requests,
        feature_aggregates=list(features.values()),
        ide_aggregates=ide_aggregates,
        language_feature_aggregates=list(language_features.values()),
        model_feature_aggregates=list(model_features.values()),
        plugin_versions=sorted(plugin_versions.values(), key=_sampled_at, reverse=True),
        daily_pru_analysis=calculate_daily_pru_analysis(records),
        daily_combined_impact=impact.compute(ImpactMode.JOINED),
        daily_model_usage=calculate_daily_model_usage(records),
        daily_agent_impact=impact.compute(ImpactMode.AGENT),
        daily_ask_mode_impact=impact.compute(ImpactMode.ASK),
        daily_completion_impact=impact.compute(ImpactMode.CODE_COMPLETION),
        daily_cli_impact=impact.compute(ImpactMode.CLI),
        days=list(records),
        report_start_day=report_start_day,
        report_end_day=report_end_day,
    )


def calculate_user_details(records: Sequence[UsageRecord]) -> dict[int, UserDetailedMetrics]:
    acc = UserDetailAccumulator()
    if records:
        acc.set_report_window(records[0].report_start_day, records[0].report_end_day)
    for record in records:
        acc.accumulate(record)
    return acc.compute()


def _merge[K, T: FeatureTotal | IdeTotal | LanguageFeatureTotal | ModelFeatureTotal](
    rollup: dict[K, T], key: K, total: T, counters: tuple[str, ...]
) -> None:
    existing = rollup.get(key)
    if existing is None:
        rollup[key] = total.model_copy()
        return
    for name in counters:
        setattr(existing, name, getattr(existing, name) + getattr(total, name))


_EPOCH = datetime.min.replace(tzinfo=UTC)


def _sampled_at(plugin: PluginVersion) -> datetime:
    try:
        parsed = datetime.fromisoformat(plugin.sampled_at)
    except ValueError:
        return _EPOCH
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
