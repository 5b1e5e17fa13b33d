"""Daily active users relative to the whole population."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from cuv.domain.calculators._helpers import sort_by_date
from cuv.domain.model_config import round_cents
from cuv.models.analytics import DailyEngagement
from cuv.models.records import UsageRecord


@dataclass
class EngagementAccumulator:
    daily_users: dict[str, set[int]] = field(default_factory=dict)
    all_users: set[int] = field(default_factory=set)

    def accumulate(self, day: str, user_id: int) -> None:
        self.daily_users.setdefault(day, set()).add(user_id)
        self.all_users.add(user_id)

    def compute(self) -> list[DailyEngagement]:
        total_users = len(self.all_users)
        rows = [
            DailyEngagement(
                date=day,
                active_users=len(users),
                total_users=total_users,
                engagement_percentage=(
                    round_cents(len(users) / total_users * 100) if total_users else 0.0
                ),
            )
            for day, users in self.daily_users.items()
        ]
        return sort_by_date(rows)


def calculate_engagement(records: Sequence[UsageRecord]) -> list[DailyEngagement]:
    acc = EngagementAccumulator()
    for record in records:
        acc.accumulate(record.day, record.user_id)
    return acc.compute()
