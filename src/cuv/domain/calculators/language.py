"""Per-language generation, acceptance and LOC totals."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from cuv.domain.calculators._helpers import rank_desc
from cuv.models.analytics import LanguageStats
from cuv.models.records import LanguageFeatureTotal, UsageRecord

UNKNOWN_LANGUAGE = "unknown"


def should_filter_language(language: str) -> bool:
    """True for languages that carry no attribution (empty or ``unknown``)."""
    normalized = language.strip().lower()
    return not normalized or normalized == UNKNOWN_LANGUAGE


@dataclass
class _LanguageEntry:
    users: set[int] = field(default_factory=set)
    generations: int = 0
    acceptances: int = 0
    loc_added: int = 0
    loc_deleted: int = 0
    loc_suggested_to_add: int = 0
    loc_suggested_to_delete: int = 0


@dataclass
class LanguageAccumulator:
    languages: dict[str, _LanguageEntry] = field(default_factory=dict)

    def accumulate(self, user_id: int, total: LanguageFeatureTotal) -> None:
        entry = self.languages.setdefault(total.language, _LanguageEntry())
        entry.users.add(user_id)
        entry.generations += total.code_generation_activity_count
        entry.acceptances += total.code_acceptance_activity_count
        entry.loc_added += total.loc_added_sum
        entry.loc_deleted += total.loc_deleted_sum
        entry.loc_suggested_to_add += total.loc_suggested_to_add_sum
        entry.loc_suggested_to_delete += total.loc_suggested_to_delete_sum

    def compute(self) -> list[LanguageStats]:
        rows = [
            LanguageStats(
                language=language,
                total_generations=entry.generations,
                total_acceptances=entry.acceptances,
                total_engagements=entry.generations + entry.acceptances,
                unique_users=len(entry.users),
                loc_added=entry.loc_added,
                loc_deleted=entry.loc_deleted,
                loc_suggested_to_add=entry.loc_suggested_to_add,
                loc_suggested_to_delete=entry.loc_suggested_to_delete,
            )
            for language, entry in self.languages.items()
        ]
        return rank_desc(rows, key=lambda row: row.total_engagements)


def calculate_language_stats(
    records: Sequence[UsageRecord], remove_unknown_languages: bool = False
) -> list[LanguageStats]:
    acc = LanguageAccumulator()
    for record in records:
        for total in record.totals_by_language_feature:
            if remove_unknown_languages and should_filter_language(total.language):
                continue
            acc.accumulate(record.user_id, total)
    return acc.compute()
