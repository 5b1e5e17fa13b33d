"""Feature adoption funnel."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from cuv.domain.features import (
    AGENT_FEATURES,
    CHAT_ASK_MODE,
    CHAT_EDIT_MODE,
    CHAT_FEATURES,
    CHAT_INLINE,
    CLI_FEATURES,
    CODE_COMPLETION,
    CODE_REVIEW,
)
from cuv.models.analytics import FeatureAdoption
from cuv.models.records import UsageRecord


@dataclass
class FeatureAdoptionAccumulator:
    """Per user, the set of features with any activity."""

    user_features: dict[int, set[str]] = field(default_factory=dict)

    def accumulate(self, user_id: int, feature: str, interactions: int, generations: int) -> None:
        if interactions <= 0 and generations <= 0:
            return
        self.user_features.setdefault(user_id, set()).add(feature)

    def compute(self) -> FeatureAdoption:
        adoption = FeatureAdoption(total_users=len(self.user_features))
        for features in self.user_features.values():
            chat = not features.isdisjoint(CHAT_FEATURES)
            agent = not features.isdisjoint(AGENT_FEATURES)
            cli = not features.isdisjoint(CLI_FEATURES)
            completion = CODE_COMPLETION in features

            adoption.completion_users += completion
            adoption.chat_users += chat
            adoption.agent_mode_users += agent
            adoption.ask_mode_users += CHAT_ASK_MODE in features
            adoption.edit_mode_users += CHAT_EDIT_MODE in features
            adoption.inline_mode_users += CHAT_INLINE in features
            adoption.code_review_users += CODE_REVIEW in features
            adoption.cli_users += cli
            adoption.advanced_users += agent or cli
            if completion and not (chat or agent or cli):
                adoption.completion_only_users += 1
        return adoption


def calculate_feature_adoption(records: Sequence[UsageRecord]) -> FeatureAdoption:
    acc = FeatureAdoptionAccumulator()
    for record in records:
        for feature in record.totals_by_feature:
            acc.accumulate(
                record.user_id,
                feature.feature,
                feature.user_initiated_interaction_count,
                feature.code_generation_activity_count,
            )
    return acc.compute()
