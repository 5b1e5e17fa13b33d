"""Shared fixtures and record factories for CUV tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from cuv.config import Config
from cuv.models.records import (
    FeatureTotal,
    IdeTotal,
    LanguageFeatureTotal,
    ModelFeatureTotal,
    PluginVersion,
    UsageRecord,
)

DATA_DIR = Path(__file__).parent / "data"
SAMPLE_METRICS_PATH = DATA_DIR / "sample_metrics.ndjson"
DEPRECATED_METRICS_PATH = DATA_DIR / "deprecated_metrics.ndjson"

REPORT_START = "2025-10-01"
REPORT_END = "2025-10-28"


def make_record(
    user_id: int = 1,
    day: str = "2025-10-01",
    *,
    user_login: str | None = None,
    features: list[FeatureTotal] | None = None,
    ides: list[IdeTotal] | None = None,
    languages: list[LanguageFeatureTotal] | None = None,
    models: list[ModelFeatureTotal] | None = None,
    **fields: Any,
) -> UsageRecord:
    """Build a UsageRecord inside the default report window."""
    values: dict[str, Any] = {
        "report_start_day": REPORT_START,
        "report_end_day": REPORT_END,
        "enterprise_id": "ent-1",
    }
    values.update(fields)
    return UsageRecord(
        day=day,
        user_id=user_id,
        user_login=user_login if user_login is not None else f"user{user_id}_acme",
        totals_by_feature=features or [],
        totals_by_ide=ides or [],
        totals_by_language_feature=languages or [],
        totals_by_model_feature=models or [],
        **values,
    )


def feature(
    name: str,
    interactions: int = 0,
    generations: int = 0,
    added: int = 0,
    deleted: int = 0,
    acceptances: int = 0,
) -> FeatureTotal:
    return FeatureTotal(
        feature=name,
        user_initiated_interaction_count=interactions,
        code_generation_activity_count=generations,
        code_acceptance_activity_count=acceptances,
        loc_added_sum=added,
        loc_deleted_sum=deleted,
    )


def ide(
    name: str,
    interactions: int = 0,
    plugin: str | None = None,
    version: str | None = None,
    sampled_at: str = "2025-10-01T00:00:00Z",
) -> IdeTotal:
    plugin_version = None
    if plugin is not None:
        plugin_version = PluginVersion(
            sampled_at=sampled_at, plugin=plugin, plugin_version=version or ""
        )
    return IdeTotal(
        ide=name,
        user_initiated_interaction_count=interactions,
        last_known_plugin_version=plugin_version,
    )


def language(
    name: str,
    feature_name: str = "code_completion",
    generations: int = 0,
    acceptances: int = 0,
    added: int = 0,
    deleted: int = 0,
) -> LanguageFeatureTotal:
    return LanguageFeatureTotal(
        language=name,
        feature=feature_name,
        code_generation_activity_count=generations,
        code_acceptance_activity_count=acceptances,
        loc_added_sum=added,
        loc_deleted_sum=deleted,
    )


def model(
    name: str,
    feature_name: str = "chat_panel_agent_mode",
    interactions: int = 0,
    generations: int = 0,
    acceptances: int = 0,
) -> ModelFeatureTotal:
    return ModelFeatureTotal(
        model=name,
        feature=feature_name,
        user_initiated_interaction_count=interactions,
        code_generation_activity_count=generations,
        code_acceptance_activity_count=acceptances,
    )


@pytest.fixture
def sample_metrics_path() -> Path:
    """Path to a small valid NDJSON export."""
    return SAMPLE_METRICS_PATH


@pytest.fixture
def deprecated_metrics_path() -> Path:
    """NDJSON export written with the old LOC schema."""
    return DEPRECATED_METRICS_PATH


@pytest.fixture
def test_config() -> Config:
    return Config(chunk_size=64)


@pytest.fixture
def mixed_records() -> list[UsageRecord]:
    """Three users over two days exercising most breakdowns."""
    return [
        make_record(
            1,
            "2025-10-01",
            features=[
                feature("code_completion", interactions=0, generations=20, added=10, deleted=2),
                feature("chat_panel_agent_mode", interactions=5, added=30, deleted=4),
            ],
            ides=[ide("vscode", 5, "copilot-chat", "0.30.0")],
            languages=[language("python", generations=20, acceptances=8, added=10, deleted=2)],
            models=[model("claude-4.0-sonnet", interactions=5, generations=3)],
            used_agent=True,
            used_chat=True,
        ),
        make_record(
            2,
            "2025-10-01",
            features=[
                feature("code_completion", generations=4, added=3),
                feature("chat_panel_ask_mode", interactions=2),
            ],
            ides=[ide("intellij", 2, "copilot-intellij", "1.5.0")],
            languages=[language("java", generations=4, acceptances=1, added=3)],
            models=[model("gpt-4o", "chat_panel_ask_mode", interactions=2, generations=1)],
            used_chat=True,
        ),
        make_record(
            1,
            "2025-10-02",
            features=[feature("cli_agent", interactions=3, added=7, deleted=1)],
            ides=[ide("vscode", 1), ide("intellij", 1)],
            models=[model("gpt-5", "cli_agent", interactions=3)],
            used_cli=True,
        ),
        make_record(
            3,
            "2025-10-02",
            features=[feature("code_completion", generations=6, added=5, deleted=1)],
            ides=[ide("neovim")],
            languages=[language("unknown", generations=6, added=5, deleted=1)],
        ),
    ]
