"""Lines-of-code impact per mode.

Only feature entries with LOC activity count: a feature with interactions but
no added or deleted lines has no impact. Every day seen gets a row in every
series, zeros included.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from cuv.domain.calculators._helpers import sort_by_date
from cuv.domain.features import (
    AGENT_FEATURES,
    CHAT_ASK_MODE,
    CHAT_EDIT_MODE,
    CHAT_INLINE,
    CLI_FEATURES,
    CODE_COMPLETION,
    JOINED_IMPACT_FEATURES,
)
from cuv.models.analytics import ImpactData
from cuv.models.records import FeatureTotal, UsageRecord


class ImpactMode(StrEnum):
    AGENT = "agent"
    CODE_COMPLETION = "code_completion"
    EDIT = "edit"
    INLINE = "inline"
    ASK = "ask"
    CLI = "cli"
    JOINED = "joined"


# Modes fed by exactly one feature, one entry at a time.
_SINGLE_FEATURE_MODES: dict[str, ImpactMode] = {
    CODE_COMPLETION: ImpactMode.CODE_COMPLETION,
    CHAT_EDIT_MODE: ImpactMode.EDIT,
    CHAT_INLINE: ImpactMode.INLINE,
    CHAT_ASK_MODE: ImpactMode.ASK,
}

# Modes whose features are summed per user-day before counting the user once.
_SUMMED_MODES: dict[ImpactMode, frozenset[str]] = {
    ImpactMode.AGENT: AGENT_FEATURES,
    ImpactMode.CLI: CLI_FEATURES,
    ImpactMode.JOINED: JOINED_IMPACT_FEATURES,
}


@dataclass
class _DayImpact:
    loc_added: int = 0
    loc_deleted: int = 0
    user_ids: set[int] = field(default_factory=set)

    def add(self, user_id: int, loc_added: int, loc_deleted: int) -> None:
        self.loc_added += loc_added
        self.loc_deleted += loc_deleted
        self.user_ids.add(user_id)


@dataclass
class ImpactAccumulator:
    daily: dict[ImpactMode, dict[str, _DayImpact]] = field(
        default_factory=lambda: {mode: {} for mode in ImpactMode}
    )
    all_users: set[int] = field(default_factory=set)

    def ensure_dates(self, day: str) -> None:
        for series in self.daily.values():
            series.setdefault(day, _DayImpact())

    def accumulate_features(
        self, day: str, user_id: int, features: Sequence[FeatureTotal]
    ) -> None:
        """Fold one user-day's feature breakdown into every mode series."""
        self.all_users.add(user_id)
        summed: dict[ImpactMode, list[int]] = {}

        for total in features:
            added = total.loc_added_sum
            deleted = total.loc_deleted_sum
            if added <= 0 and deleted <= 0:
                continue

            mode = _SINGLE_FEATURE_MODES.get(total.feature)
            if mode is not None:
                self._day(mode, day).add(user_id, added, deleted)

            for summed_mode, members in _SUMMED_MODES.items():
                if total.feature in members:
                    sums = summed.setdefault(summed_mode, [0, 0])
                    sums[0] += added
                    sums[1] += deleted

        for mode, (added, deleted) in summed.items():
            self._day(mode, day).add(user_id, added, deleted)

    def compute(self, mode: ImpactMode) -> list[ImpactData]:
        total_users = len(self.all_users)
        return sort_by_date(
            ImpactData(
                date=day,
                loc_added=impact.loc_added,
                loc_deleted=impact.loc_deleted,
                net_change=impact.loc_added - impact.loc_deleted,
                user_count=len(impact.user_ids),
                total_unique_users=total_users,
            )
            for day, impact in self.daily[mode].items()
        )

    def _day(self, mode: ImpactMode, day: str) -> _DayImpact:
        return self.daily[mode].setdefault(day, _DayImpact())


def accumulate_impact_records(records: Sequence[UsageRecord]) -> ImpactAccumulator:
    acc = ImpactAccumulator()
    for record in records:
        acc.ensure_dates(record.day)
        acc.accumulate_features(record.day, record.user_id, record.totals_by_feature)
    return acc


def calculate_impact(records: Sequence[UsageRecord], mode: ImpactMode) -> list[ImpactData]:
    return accumulate_impact_records(records).compute(mode)
