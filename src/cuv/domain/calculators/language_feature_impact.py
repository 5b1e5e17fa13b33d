"""Language x feature LOC impact and daily per-language charts."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from cuv.domain.calculators._helpers import rank_desc
from cuv.domain.calculators.language import should_filter_language
from cuv.models.analytics import (
    DailyLanguageChart,
    LanguageFeatureImpact,
    LanguageFeatureImpactRow,
)
from cuv.models.records import LanguageFeatureTotal, UsageRecord

TOP_LANGUAGES = 10


class ChartVariant(StrEnum):
    GENERATIONS = "generations"
    LOC = "loc"


@dataclass
class LanguageFeatureImpactAccumulator:
    language_features: dict[str, dict[str, int]] = field(default_factory=dict)
    all_features: set[str] = field(default_factory=set)
    language_totals: dict[str, int] = field(default_factory=dict)
    daily_generations: dict[str, dict[str, int]] = field(default_factory=dict)
    daily_loc: dict[str, dict[str, int]] = field(default_factory=dict)
    generation_totals: dict[str, int] = field(default_factory=dict)
    loc_totals: dict[str, int] = field(default_factory=dict)

    def accumulate_impact(self, total: LanguageFeatureTotal) -> None:
        if should_filter_language(total.language):
            return
        impact = total.loc_added_sum + total.loc_deleted_sum
        self.all_features.add(total.feature)
        features = self.language_features.setdefault(total.language, {})
        features[total.feature] = features.get(total.feature, 0) + impact
        self.language_totals[total.language] = (
            self.language_totals.get(total.language, 0) + impact
        )

    def accumulate_daily(self, day: str, total: LanguageFeatureTotal) -> None:
        generations = total.code_generation_activity_count
        loc = total.loc_added_sum + total.loc_deleted_sum
        _add(self.daily_generations, self.generation_totals, day, total.language, generations)
        _add(self.daily_loc, self.loc_totals, day, total.language, loc)

    def compute_impact(self) -> LanguageFeatureImpact:
        features = sorted(self.all_features)
        rows = [
            LanguageFeatureImpactRow(
                language=language,
                total=total,
                features={
                    feature: self.language_features[language].get(feature, 0)
                    for feature in features
                },
            )
            for language, total in _top(self.language_totals)
        ]
        return LanguageFeatureImpact(rows=rows, features=features)

    def compute_daily_chart(self, variant: ChartVariant) -> DailyLanguageChart:
        if variant == ChartVariant.GENERATIONS:
            daily, totals = self.daily_generations, self.generation_totals
        else:
            daily, totals = self.daily_loc, self.loc_totals

        top = _top(totals)
        languages = [language for language, _ in top]
        dates = sorted(daily)
        return DailyLanguageChart(
            dates=dates,
            languages=languages,
            data={
                day: {language: daily[day].get(language, 0) for language in languages}
                for day in dates
            },
            totals=dict(top),
        )


def _add(
    daily: dict[str, dict[str, int]],
    totals: dict[str, int],
    day: str,
    language: str,
    value: int,
) -> None:
    values = daily.setdefault(day, {})
    values[language] = values.get(language, 0) + value
    totals[language] = totals.get(language, 0) + value


def _top(totals: dict[str, int]) -> list[tuple[str, int]]:
    return rank_desc(totals.items(), key=lambda item: item[1])[:TOP_LANGUAGES]


def _accumulate_records(
    records: Sequence[UsageRecord], remove_unknown_languages: bool = False
) -> LanguageFeatureImpactAccumulator:
    acc = LanguageFeatureImpactAccumulator()
    for record in records:
        for total in record.totals_by_language_feature:
            acc.accumulate_impact(total)
            if remove_unknown_languages and should_filter_language(total.language):
                continue
            acc.accumulate_daily(record.day, total)
    return acc


def calculate_language_feature_impact(records: Sequence[UsageRecord]) -> LanguageFeatureImpact:
    return _accumulate_records(records).compute_impact()


def calculate_daily_language_chart(
    records: Sequence[UsageRecord],
    variant: ChartVariant,
    remove_unknown_languages: bool = False,
) -> DailyLanguageChart:
    return _accumulate_records(records, remove_unknown_languages).compute_daily_chart(variant)
