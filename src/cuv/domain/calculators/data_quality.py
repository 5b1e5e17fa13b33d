"""Data-quality checks: agent flags without agent features, and unknown models."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from cuv.domain.features import AGENT_FEATURES, CHAT_MODE_FEATURES
from cuv.domain.model_config import UNKNOWN_MODEL
from cuv.models.analytics import (
    DataQualityAnalysis,
    DataQualityUser,
    IdeQualitySummary,
    UnknownModelTrendPoint,
)
from cuv.models.records import IdeTotal, UsageRecord

UNKNOWN_IDE = "Unknown IDE"


@dataclass
class _UserEntry:
    user_id: int
    user_login: str
    modes: set[str] = field(default_factory=set)
    used_agent: bool = False
    has_agent_feature: bool = False
    # plugin -> last version seen
    plugins: dict[str, str] = field(default_factory=dict)


@dataclass
class _IdeEntry:
    occurrences: int = 0
    users: set[int] = field(default_factory=set)
    plugin_versions: set[str] = field(default_factory=set)


def _plugin_label(total: IdeTotal) -> str | None:
    plugin = total.last_known_plugin_version
    if plugin is None or not plugin.plugin or not plugin.plugin_version:
        return None
    return f"{plugin.plugin} (v{plugin.plugin_version})"


@dataclass
class DataQualityAccumulator:
    users: dict[tuple[int, str], _UserEntry] = field(default_factory=dict)
    unknown_by_day: dict[str, int] = field(default_factory=dict)
    ides: dict[str, _IdeEntry] = field(default_factory=dict)

    def accumulate(self, record: UsageRecord) -> None:
        key = (record.user_id, record.user_login)
        entry = self.users.get(key)
        if entry is None:
            entry = self.users[key] = _UserEntry(record.user_id, record.user_login)
        entry.used_agent = entry.used_agent or record.used_agent

        for feature in record.totals_by_feature:
            if feature.feature in CHAT_MODE_FEATURES:
                entry.modes.add(feature.feature)
                if feature.feature in AGENT_FEATURES:
                    entry.has_agent_feature = True

        for total in record.totals_by_ide:
            plugin = total.last_known_plugin_version
            if plugin is not None and plugin.plugin and plugin.plugin_version:
                entry.plugins[plugin.plugin] = plugin.plugin_version

        unknown = sum(
            1 for lm in record.totals_by_language_model if lm.model.lower() == UNKNOWN_MODEL
        )
        if not unknown:
            return
        self.unknown_by_day[record.day] = self.unknown_by_day.get(record.day, 0) + unknown
        for total in record.totals_by_ide:
            ide = self.ides.setdefault(total.ide or UNKNOWN_IDE, _IdeEntry())
            ide.occurrences += 1
            ide.users.add(record.user_id)
            label = _plugin_label(total)
            if label:
                ide.plugin_versions.add(label)

    def compute(self) -> DataQualityAnalysis:
        flagged = [
            DataQualityUser(
                user_login=entry.user_login,
                user_id=entry.user_id,
                used_agent=entry.used_agent,
                used_modes=sorted(entry.modes),
                plugins_used=sorted(
                    f"{plugin} (v{version})" for plugin, version in entry.plugins.items()
                ),
            )
            for entry in self.users.values()
            if entry.used_agent and not entry.has_agent_feature
        ]
        flagged.sort(key=lambda user: (user.user_login, user.user_id))
        trend = [
            UnknownModelTrendPoint(day=day, count=count)
            for day, count in sorted(self.unknown_by_day.items())
        ]
        return DataQualityAnalysis(
            users_with_issues=flagged,
            unknown_model_trend=trend,
            ide_summary=[
                IdeQualitySummary(
                    ide=name,
                    occurrences=entry.occurrences,
                    unique_users=len(entry.users),
                    plugin_versions=sorted(entry.plugin_versions),
                )
                for name, entry in sorted(self.ides.items())
            ],
            total_unknown_model_entries=sum(point.count for point in trend),
        )


def calculate_data_quality(records: Sequence[UsageRecord]) -> DataQualityAnalysis:
    acc = DataQualityAccumulator()
    for record in records:
        acc.accumulate(record)
    return acc.compute()
