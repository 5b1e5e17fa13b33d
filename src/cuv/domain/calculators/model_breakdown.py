"""Premium vs standard model interactions with per-day values."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from cuv.domain.calculators._helpers import rank_desc
from cuv.domain.model_config import MODELS_BY_NAME, normalize_model_name
from cuv.models.analytics import ModelBreakdown, ModelDailyUsageEntry
from cuv.models.records import ModelFeatureTotal, UsageRecord


@dataclass
class _ModelDays:
    total: int = 0
    daily: dict[str, int] = field(default_factory=dict)

    def add(self, day: str, count: int) -> None:
        self.total += count
        self.daily[day] = self.daily.get(day, 0) + count


@dataclass
class ModelBreakdownAccumulator:
    """Classifies by exact table match only; anything else is unknown."""

    premium: dict[str, _ModelDays] = field(default_factory=dict)
    standard: dict[str, _ModelDays] = field(default_factory=dict)
    premium_total: int = 0
    standard_total: int = 0
    unknown_total: int = 0
    dates: set[str] = field(default_factory=set)

    def accumulate(self, day: str, total: ModelFeatureTotal) -> None:
        count = total.user_initiated_interaction_count
        if not count:
            return
        self.dates.add(day)
        name = normalize_model_name(total.model)
        model = MODELS_BY_NAME.get(name)

        if model is None:
            self.unknown_total += count
        elif model.is_premium:
            self.premium_total += count
            self.premium.setdefault(name, _ModelDays()).add(day, count)
        else:
            self.standard_total += count
            self.standard.setdefault(name, _ModelDays()).add(day, count)

    def compute(self) -> ModelBreakdown:
        return ModelBreakdown(
            premium_models=_entries(self.premium),
            standard_models=_entries(self.standard),
            dates=sorted(self.dates),
            premium_total=self.premium_total,
            standard_total=self.standard_total,
            unknown_total=self.unknown_total,
        )


def _entries(models: dict[str, _ModelDays]) -> list[ModelDailyUsageEntry]:
    entries = [
        ModelDailyUsageEntry(model=name, total=days.total, daily_data=dict(days.daily))
        for name, days in models.items()
    ]
    return rank_desc(entries, key=lambda entry: entry.total)


def calculate_model_breakdown(records: Sequence[UsageRecord]) -> ModelBreakdown:
    acc = ModelBreakdownAccumulator()
    for record in records:
        for total in record.totals_by_model_feature:
            acc.accumulate(record.day, total)
    return acc.compute()
