"""Model usage and premium request unit (PRU) views.

One shared state feeds four views: daily model usage buckets, daily PRU
analysis, the agent-mode heatmap and the per-model feature distribution.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from cuv.domain.calculators._helpers import rank_desc, sort_by_date
from cuv.domain.features import (
    CHAT_AGENT_MODE,
    CHAT_ASK_MODE,
    CHAT_EDIT_MODE,
    CHAT_INLINE,
    CODE_COMPLETION,
    CODE_REVIEW,
)
from cuv.domain.model_config import (
    estimate_service_value,
    get_model_multiplier,
    is_premium_model,
    is_unknown_model,
    model_display_name,
    normalize_model_name,
    round_cents,
)
from cuv.models.analytics import (
    AgentModeHeatmap,
    DailyModelUsage,
    DailyPRUAnalysis,
    FeatureBuckets,
    ModelFeatureDistribution,
    ModelRequestStats,
)
from cuv.models.records import UsageRecord

MAX_INTENSITY = 5


@dataclass
class _DayModelUsage:
    pru_models: int = 0
    standard_models: int = 0
    unknown_models: int = 0
    total_prus: float = 0.0


@dataclass
class _ModelStat:
    multiplier: float
    is_premium: bool
    requests: int = 0
    prus: float = 0.0


@dataclass
class _DayPRU:
    pru_requests: int = 0
    standard_requests: int = 0
    total_prus: float = 0.0
    models: dict[str, _ModelStat] = field(default_factory=dict)


@dataclass
class _DayAgent:
    requests: int = 0
    users: set[int] = field(default_factory=set)
    total_prus: float = 0.0


@dataclass
class _ModelFeatures:
    features: dict[str, int] = field(default_factory=dict)
    total_interactions: int = 0


@dataclass
class ModelUsageAccumulator:
    daily_model_usage: dict[str, _DayModelUsage] = field(default_factory=dict)
    daily_pru: dict[str, _DayPRU] = field(default_factory=dict)
    daily_agent: dict[str, _DayAgent] = field(default_factory=dict)
    model_features: dict[str, _ModelFeatures] = field(default_factory=dict)

    def accumulate_model_feature(
        self, day: str, model: str, feature: str, interactions: int
    ) -> None:
        """Fold one (model, feature, interactions) entry into every day and model view."""
        name = normalize_model_name(model)
        multiplier = get_model_multiplier(name)
        prus = interactions * multiplier

        usage = self.daily_model_usage.setdefault(day, _DayModelUsage())
        usage.total_prus += prus
        if is_unknown_model(name):
            usage.unknown_models += interactions
        elif multiplier == 0:
            usage.standard_models += interactions
        else:
            usage.pru_models += interactions

        pru = self.daily_pru.setdefault(day, _DayPRU())
        pru.total_prus += prus
        if multiplier == 0:
            pru.standard_requests += interactions
        else:
            pru.pru_requests += interactions
        stat = pru.models.get(name)
        if stat is None:
            stat = _ModelStat(multiplier=multiplier, is_premium=is_premium_model(name))
            pru.models[name] = stat
        stat.requests += interactions
        stat.prus += prus

        if feature == CHAT_AGENT_MODE:
            self.daily_agent.setdefault(day, _DayAgent()).total_prus += prus

        dist = self.model_features.setdefault(name, _ModelFeatures())
        dist.total_interactions += interactions
        dist.features[feature] = dist.features.get(feature, 0) + interactions

    def accumulate_agent_heatmap(
        self, day: str, user_id: int, feature: str, interactions: int
    ) -> None:
        """Count agent-mode requests and users from the per-feature breakdown."""
        if feature != CHAT_AGENT_MODE or interactions <= 0:
            return
        agent = self.daily_agent.setdefault(day, _DayAgent())
        agent.requests += interactions
        agent.users.add(user_id)

    def compute_daily_model_usage(self) -> list[DailyModelUsage]:
        return sort_by_date(
            DailyModelUsage(
                date=day,
                pru_models=usage.pru_models,
                standard_models=usage.standard_models,
                unknown_models=usage.unknown_models,
                total_prus=round_cents(usage.total_prus),
                service_value=estimate_service_value(usage.total_prus),
            )
            for day, usage in self.daily_model_usage.items()
        )

    def compute_pru_analysis(self) -> list[DailyPRUAnalysis]:
        rows: list[DailyPRUAnalysis] = []
        for day, pru in self.daily_pru.items():
            models = sorted(
                (
                    ModelRequestStats(
                        name=name,
                        requests=stat.requests,
                        prus=round_cents(stat.prus),
                        is_premium=stat.is_premium,
                        multiplier=stat.multiplier,
                    )
                    for name, stat in pru.models.items()
                ),
                key=lambda model: (-model.prus, -model.requests),
            )
            total = pru.pru_requests + pru.standard_requests
            top = models[0] if models else None
            rows.append(
                DailyPRUAnalysis(
                    date=day,
                    pru_requests=pru.pru_requests,
                    standard_requests=pru.standard_requests,
                    pru_percentage=round_cents(pru.pru_requests / total * 100) if total else 0.0,
                    total_prus=round_cents(pru.total_prus),
                    service_value=estimate_service_value(pru.total_prus),
                    top_model=top.name if top else "unknown",
                    top_model_prus=top.prus if top else 0.0,
                    top_model_is_premium=top.is_premium if top else False,
                    models=models,
                )
            )
        return sort_by_date(rows)

    def compute_agent_heatmap(self) -> list[AgentModeHeatmap]:
        max_requests = max((agent.requests for agent in self.daily_agent.values()), default=0)
        denominator = max(max_requests, 1)
        return sort_by_date(
            AgentModeHeatmap(
                date=day,
                agent_mode_requests=agent.requests,
                unique_users=len(agent.users),
                intensity=math.ceil(agent.requests / denominator * MAX_INTENSITY),
                service_value=estimate_service_value(agent.total_prus),
            )
            for day, agent in self.daily_agent.items()
        )

    def compute_model_feature_distribution(self) -> list[ModelFeatureDistribution]:
        rows: list[ModelFeatureDistribution] = []
        for model, dist in self.model_features.items():
            if dist.total_interactions <= 0:
                continue
            multiplier = get_model_multiplier(model)
            total_prus = dist.total_interactions * multiplier
            buckets = FeatureBuckets(
                agent_mode=dist.features.get(CHAT_AGENT_MODE, 0),
                ask_mode=dist.features.get(CHAT_ASK_MODE, 0),
                edit_mode=dist.features.get(CHAT_EDIT_MODE, 0),
                inline_mode=dist.features.get(CHAT_INLINE, 0),
                code_completion=dist.features.get(CODE_COMPLETION, 0),
                code_review=dist.features.get(CODE_REVIEW, 0),
            )
            named = (
                buckets.agent_mode
                + buckets.ask_mode
                + buckets.edit_mode
                + buckets.inline_mode
                + buckets.code_completion
                + buckets.code_review
            )
            buckets.other = max(0, dist.total_interactions - named)
            rows.append(
                ModelFeatureDistribution(
                    model=model,
                    model_display_name=model_display_name(model),
                    multiplier=multiplier,
                    features=buckets,
                    total_interactions=dist.total_interactions,
                    total_prus=round_cents(total_prus),
                    service_value=estimate_service_value(total_prus),
                )
            )
        return rank_desc(rows, key=lambda row: row.total_prus)


def _accumulate_model_features(records: Sequence[UsageRecord]) -> ModelUsageAccumulator:
    acc = ModelUsageAccumulator()
    for record in records:
        for mf in record.totals_by_model_feature:
            acc.accumulate_model_feature(
                record.day, mf.model, mf.feature, mf.user_initiated_interaction_count
            )
    return acc


def calculate_daily_pru_analysis(records: Sequence[UsageRecord]) -> list[DailyPRUAnalysis]:
    return _accumulate_model_features(records).compute_pru_analysis()


def calculate_daily_model_usage(records: Sequence[UsageRecord]) -> list[DailyModelUsage]:
    return _accumulate_model_features(records).compute_daily_model_usage()


def calculate_agent_heatmap(records: Sequence[UsageRecord]) -> list[AgentModeHeatmap]:
    acc = _accumulate_model_features(records)
    for record in records:
        for feature in record.totals_by_feature:
            acc.accumulate_agent_heatmap(
                record.day,
                record.user_id,
                feature.feature,
                feature.user_initiated_interaction_count,
            )
    return acc.compute_agent_heatmap()


def calculate_model_feature_distribution(
    records: Sequence[UsageRecord],
) -> list[ModelFeatureDistribution]:
    return _accumulate_model_features(records).compute_model_feature_distribution()
