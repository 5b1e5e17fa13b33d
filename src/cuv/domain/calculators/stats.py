"""Headline statistics: user categories and top language, IDE and model."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from cuv.domain.calculators._helpers import top_entry
from cuv.models.analytics import MetricsStats, TopEntry, TopIde
from cuv.models.records import UsageRecord


@dataclass
class _UserUsage:
    used_chat: bool = False
    used_agent: bool = False
    used_cli: bool = False


@dataclass
class StatsAccumulator:
    """Per-user usage flags plus language, IDE and model rankings."""

    user_usage: dict[int, _UserUsage] = field(default_factory=dict)
    language_engagements: dict[str, int] = field(default_factory=dict)
    ide_users: dict[str, set[int]] = field(default_factory=dict)
    model_engagements: dict[str, int] = field(default_factory=dict)
    report_start_day: str = ""
    report_end_day: str = ""

    def set_report_window(self, start_day: str, end_day: str) -> None:
        self.report_start_day = start_day
        self.report_end_day = end_day

    def accumulate_user_usage(
        self, user_id: int, used_chat: bool, used_agent: bool, used_cli: bool
    ) -> None:
        usage = self.user_usage.setdefault(user_id, _UserUsage())
        usage.used_chat = usage.used_chat or used_chat
        usage.used_agent = usage.used_agent or used_agent
        usage.used_cli = usage.used_cli or used_cli

    def accumulate_ide_user(self, ide: str, user_id: int) -> None:
        self.ide_users.setdefault(ide, set()).add(user_id)

    def accumulate_language_engagement(self, language: str, engagements: int) -> None:
        self.language_engagements[language] = (
            self.language_engagements.get(language, 0) + engagements
        )

    def accumulate_model_engagement(self, model: str, engagements: int) -> None:
        self.model_engagements[model] = self.model_engagements.get(model, 0) + engagements

    def compute(self, total_records: int) -> MetricsStats:
        chat_users = agent_users = cli_users = completion_only = 0
        for usage in self.user_usage.values():
            chat_users += usage.used_chat
            agent_users += usage.used_agent
            cli_users += usage.used_cli
            if not (usage.used_chat or usage.used_agent or usage.used_cli):
                completion_only += 1

        top_language = top_entry(self.language_engagements)
        top_ide = top_entry({ide: len(users) for ide, users in self.ide_users.items()})
        top_model = top_entry(self.model_engagements)

        return MetricsStats(
            unique_users=len(self.user_usage),
            chat_users=chat_users,
            agent_users=agent_users,
            cli_users=cli_users,
            completion_only_users=completion_only,
            report_start_day=self.report_start_day,
            report_end_day=self.report_end_day,
            total_records=total_records,
            top_language=(
                TopEntry(name=top_language[0], engagements=top_language[1])
                if top_language
                else TopEntry()
            ),
            top_ide=TopIde(name=top_ide[0], entries=top_ide[1]) if top_ide else TopIde(),
            top_model=(
                TopEntry(name=top_model[0], engagements=top_model[1]) if top_model else TopEntry()
            ),
        )


def calculate_stats(
    records: Sequence[UsageRecord],
    filter_language: Callable[[str], bool] | None = None,
) -> MetricsStats:
    """Compute stats for ``records``; languages matching ``filter_language`` are skipped."""
    acc = StatsAccumulator()
    if records:
        acc.set_report_window(records[0].report_start_day, records[0].report_end_day)

    for record in records:
        acc.accumulate_user_usage(
            record.user_id, record.used_chat, record.used_agent, record.used_cli
        )
        for ide_total in record.totals_by_ide:
            acc.accumulate_ide_user(ide_total.ide, record.user_id)
        for lang in record.totals_by_language_feature:
            if filter_language and filter_language(lang.language):
                continue
            acc.accumulate_language_engagement(
                lang.language,
                lang.code_generation_activity_count + lang.code_acceptance_activity_count,
            )
        for mf in record.totals_by_model_feature:
            acc.accumulate_model_engagement(
                mf.model, mf.code_generation_activity_count + mf.code_acceptance_activity_count
            )

    return acc.compute(len(records))
