"""Tests for model classification, pricing and feature labels."""

from __future__ import annotations

import pytest

from cuv.domain.features import (
    CHAT_FEATURES,
    CLI_AGENT,
    CODE_REVIEW,
    JOINED_IMPACT_FEATURES,
    all_feature_translations,
    translate_feature,
)
from cuv.domain.model_config import (
    estimate_service_value,
    get_model_multiplier,
    is_premium_model,
    is_unknown_model,
    model_display_name,
    resolve_model,
    round_cents,
)


@pytest.mark.parametrize(
    ("name", "multiplier", "premium"),
    [
        ("gpt-4o", 0, False),
        ("GPT-4o", 0, False),
        ("  gpt-4.1  ", 0, False),
        ("claude-opus-4", 10, True),
        ("Claude-Opus-4", 10, True),
        ("o3-mini", 0.33, True),
        ("gemini-2.0-flash", 0.25, True),
    ],
)
def test_known_models(name: str, multiplier: float, premium: bool) -> None:
    assert get_model_multiplier(name) == multiplier
    assert is_premium_model(name) is premium


def test_partial_match_prefers_longest_name() -> None:
    model = resolve_model("gpt-4o-mini-2024-07-18")
    assert model is not None
    assert model.name == "gpt-4o-mini"
    assert get_model_multiplier("azure-claude-opus-4.1-preview") == 10


@pytest.mark.parametrize("name", ["", "unknown", "mystery-model-9000"])
def test_unclassified_models_are_free_and_standard(name: str) -> None:
    assert get_model_multiplier(name) == 0
    assert is_premium_model(name) is False


def test_is_unknown_model() -> None:
    assert is_unknown_model("")
    assert is_unknown_model("  Unknown ")
    assert not is_unknown_model("gpt-4o")


def test_service_value_rounding() -> None:
    assert estimate_service_value(10) == 0.4
    assert estimate_service_value(0.33 * 3) == 0.04
    assert round_cents(0.125) == 0.13
    assert round_cents(2.0) == 2.0


def test_model_display_name() -> None:
    assert model_display_name("unknown") == "Unknown Model"
    assert model_display_name("claude-4.0-sonnet") == "Claude 4.0 sonnet"
    assert model_display_name("") == ""


def test_translate_feature() -> None:
    assert translate_feature("chat_panel_agent_mode") == "Chat: Agent Mode"
    assert translate_feature("brand_new_feature") == "brand_new_feature"
    names = [name for name, _ in all_feature_translations()]
    assert CLI_AGENT in names
    assert len(names) == len(set(names))


def test_feature_groups() -> None:
    assert CLI_AGENT not in JOINED_IMPACT_FEATURES
    assert CODE_REVIEW not in JOINED_IMPACT_FEATURES
    assert len(JOINED_IMPACT_FEATURES) == 6
    assert "chat_inline" in CHAT_FEATURES
