"""Per-user rollups of root-level counters."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from cuv.domain.calculators._helpers import rank_desc
from cuv.models.analytics import UserSummary
from cuv.models.records import UsageRecord


@dataclass
class UserSummaryAccumulator:
    users: dict[int, UserSummary] = field(default_factory=dict)
    active_days: dict[int, set[str]] = field(default_factory=dict)

    def accumulate(self, record: UsageRecord) -> None:
        summary = self.users.get(record.user_id)
        if summary is None:
            summary = UserSummary(user_login=record.user_login, user_id=record.user_id)
            self.users[record.user_id] = summary
            self.active_days[record.user_id] = set()

        summary.total_user_initiated_interactions += record.user_initiated_interaction_count
        summary.total_code_generation_activities += record.code_generation_activity_count
        summary.total_code_acceptance_activities += record.code_acceptance_activity_count
        summary.total_loc_added += record.loc_added_sum
        summary.total_loc_deleted += record.loc_deleted_sum
        summary.total_loc_suggested_to_add += record.loc_suggested_to_add_sum
        summary.total_loc_suggested_to_delete += record.loc_suggested_to_delete_sum
        summary.used_agent = summary.used_agent or record.used_agent
        summary.used_chat = summary.used_chat or record.used_chat
        summary.used_cli = summary.used_cli or record.used_cli
        # Distinct days, so duplicate records for one day count once.
        self.active_days[record.user_id].add(record.day)

    def compute(self) -> list[UserSummary]:
        rows = [
            summary.model_copy(update={"days_active": len(self.active_days[user_id])})
            for user_id, summary in self.users.items()
        ]
        return rank_desc(rows, key=lambda row: row.total_user_initiated_interactions)


def calculate_user_summaries(records: Sequence[UsageRecord]) -> list[UserSummary]:
    acc = UserSummaryAccumulator()
    for record in records:
        acc.accumulate(record)
    return acc.compute()
