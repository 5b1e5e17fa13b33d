"""Daily chat-mode users and requests."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from cuv.domain.calculators._helpers import sort_by_date
from cuv.domain.features import CHAT_AGENT_MODE, CHAT_ASK_MODE, CHAT_EDIT_MODE, CHAT_INLINE
from cuv.models.analytics import DailyChatRequests, DailyChatUsers
from cuv.models.records import UsageRecord

CHAT_MODES: tuple[str, ...] = (CHAT_ASK_MODE, CHAT_AGENT_MODE, CHAT_EDIT_MODE, CHAT_INLINE)


@dataclass
class _ModeDay:
    users: set[int] = field(default_factory=set)
    requests: int = 0


@dataclass
class ChatAccumulator:
    """Per day, per chat mode: distinct users and summed requests."""

    daily: dict[str, dict[str, _ModeDay]] = field(default_factory=dict)

    def ensure_date(self, day: str) -> dict[str, _ModeDay]:
        modes = self.daily.get(day)
        if modes is None:
            modes = {mode: _ModeDay() for mode in CHAT_MODES}
            self.daily[day] = modes
        return modes

    def accumulate(self, day: str, user_id: int, feature: str, interactions: int) -> None:
        if feature not in CHAT_MODES or interactions <= 0:
            return
        entry = self.ensure_date(day)[feature]
        entry.users.add(user_id)
        entry.requests += interactions

    def compute_users(self) -> list[DailyChatUsers]:
        return sort_by_date(
            DailyChatUsers(
                date=day,
                ask_mode_users=len(modes[CHAT_ASK_MODE].users),
                agent_mode_users=len(modes[CHAT_AGENT_MODE].users),
                edit_mode_users=len(modes[CHAT_EDIT_MODE].users),
                inline_mode_users=len(modes[CHAT_INLINE].users),
            )
            for day, modes in self.daily.items()
        )

    def compute_requests(self) -> list[DailyChatRequests]:
        return sort_by_date(
            DailyChatRequests(
                date=day,
                ask_mode_requests=modes[CHAT_ASK_MODE].requests,
                agent_mode_requests=modes[CHAT_AGENT_MODE].requests,
                edit_mode_requests=modes[CHAT_EDIT_MODE].requests,
                inline_mode_requests=modes[CHAT_INLINE].requests,
            )
            for day, modes in self.daily.items()
        )


def _accumulate_records(records: Sequence[UsageRecord]) -> ChatAccumulator:
    acc = ChatAccumulator()
    for record in records:
        for feature in record.totals_by_feature:
            acc.accumulate(
                record.day,
                record.user_id,
                feature.feature,
                feature.user_initiated_interaction_count,
            )
    return acc


def calculate_chat_users(records: Sequence[UsageRecord]) -> list[DailyChatUsers]:
    return _accumulate_records(records).compute_users()


def calculate_chat_requests(records: Sequence[UsageRecord]) -> list[DailyChatRequests]:
    return _accumulate_records(records).compute_requests()
