"""Per-IDE usage and multi-IDE users."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from cuv.models.analytics import IDEStats, IDEStatsResult
from cuv.models.records import IdeTotal, UsageRecord


@dataclass
class _IdeEntry:
    users: set[int] = field(default_factory=set)
    engagements: int = 0
    generations: int = 0
    acceptances: int = 0
    loc_added: int = 0
    loc_deleted: int = 0
    loc_suggested_to_add: int = 0
    loc_suggested_to_delete: int = 0


@dataclass
class IDEStatsAccumulator:
    ides: dict[str, _IdeEntry] = field(default_factory=dict)
    user_ides: dict[int, set[str]] = field(default_factory=dict)

    def accumulate(self, user_id: int, total: IdeTotal) -> None:
        entry = self.ides.setdefault(total.ide, _IdeEntry())
        entry.users.add(user_id)
        entry.engagements += total.user_initiated_interaction_count
        entry.generations += total.code_generation_activity_count
        entry.acceptances += total.code_acceptance_activity_count
        entry.loc_added += total.loc_added_sum
        entry.loc_deleted += total.loc_deleted_sum
        entry.loc_suggested_to_add += total.loc_suggested_to_add_sum
        entry.loc_suggested_to_delete += total.loc_suggested_to_delete_sum
        self.user_ides.setdefault(user_id, set()).add(total.ide)

    def compute(self) -> IDEStatsResult:
        return IDEStatsResult(
            ide_stats=[
                IDEStats(
                    ide=ide,
                    unique_users=len(entry.users),
                    total_engagements=entry.engagements,
                    total_generations=entry.generations,
                    total_acceptances=entry.acceptances,
                    loc_added=entry.loc_added,
                    loc_deleted=entry.loc_deleted,
                    loc_suggested_to_add=entry.loc_suggested_to_add,
                    loc_suggested_to_delete=entry.loc_suggested_to_delete,
                )
                for ide, entry in self.ides.items()
            ],
            multi_ide_users_count=sum(1 for ides in self.user_ides.values() if len(ides) > 1),
            total_unique_ide_users=len(self.user_ides),
        )


def calculate_ide_stats(records: Sequence[UsageRecord]) -> IDEStatsResult:
    acc = IDEStatsAccumulator()
    for record in records:
        for total in record.totals_by_ide:
            acc.accumulate(record.user_id, total)
    return acc.compute()
