"""Model classification table and premium request unit (PRU) pricing."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class ModelInfo:
    """A known model with its PRU multiplier and premium flag."""

    name: str
    multiplier: float
    is_premium: bool


# Keep in sync with the published premium request multipliers.
KNOWN_MODELS: tuple[ModelInfo, ...] = (
    # Included models (0 PRUs on paid plans)
    ModelInfo("gpt-4.0", 0, False),
    ModelInfo("gpt-4.1", 0, False),
    ModelInfo("gpt-3.5", 0, False),
    ModelInfo("gpt-4o", 0, False),
    ModelInfo("gpt-4o-mini", 0, False),
    ModelInfo("gpt-4o-latest", 0, False),
    ModelInfo("gpt-5-mini", 0, False),
    ModelInfo("grok-code-fast", 0, False),
    ModelInfo("grok-code-fast-1", 0, False),
    # Premium models
    ModelInfo("gpt-5", 1, True),
    ModelInfo("gpt-5.0", 1, True),
    ModelInfo("gpt-5.1", 1, True),
    ModelInfo("gpt-5.0-codex", 1, True),
    ModelInfo("gpt-5.1-codex", 1, True),
    ModelInfo("gpt-5.1-codex-mini", 0.33, True),
    ModelInfo("o3", 1, True),
    ModelInfo("o3-mini", 0.33, True),
    ModelInfo("o4-mini", 0.33, True),
    ModelInfo("claude-3.5-sonnet", 1, True),
    ModelInfo("claude-3.7-sonnet", 1, True),
    ModelInfo("claude-3.7-sonnet-thought", 1.25, True),
    ModelInfo("claude-4.0-sonnet", 1, True),
    ModelInfo("claude-4.5-sonnet", 1, True),
    ModelInfo("claude-opus-4", 10, True),
    ModelInfo("claude-opus-4.1", 10, True),
    ModelInfo("claude-haiku-4.5", 0.33, True),
    ModelInfo("gemini-2.0-flash", 0.25, True),
    ModelInfo("gemini-2.5-pro", 1, True),
    ModelInfo("gemini-3.0-pro", 1, True),
)

# Dollar value of one premium request unit.
SERVICE_VALUE_RATE = 0.04

UNKNOWN_MODEL = "unknown"

MODELS_BY_NAME: dict[str, ModelInfo] = {model.name.lower(): model for model in KNOWN_MODELS}

# Longest names first so "gpt-4o-mini-2024" resolves to gpt-4o-mini, not gpt-4o.
_PARTIAL_MATCH_ORDER: tuple[ModelInfo, ...] = tuple(
    sorted(KNOWN_MODELS, key=lambda model: len(model.name), reverse=True)
)


def normalize_model_name(name: str) -> str:
    return name.strip().lower()


def is_unknown_model(name: str) -> bool:
    """True for an empty model name or the literal ``unknown``."""
    normalized = normalize_model_name(name)
    return normalized in ("", UNKNOWN_MODEL)


def resolve_model(name: str) -> ModelInfo | None:
    """Find the table entry for a model name, exact match first, then partial."""
    normalized = normalize_model_name(name)
    if not normalized:
        return None
    direct = MODELS_BY_NAME.get(normalized)
    if direct is not None:
        return direct
    for model in _PARTIAL_MATCH_ORDER:
        if model.name.lower() in normalized:
            return model
    return None


def get_model_multiplier(name: str) -> float:
    """PRU multiplier for a model. Unclassified models count as free (0)."""
    model = resolve_model(name)
    return model.multiplier if model is not None else 0


def is_premium_model(name: str) -> bool:
    """Premium flag for a model. Unclassified models are never premium."""
    model = resolve_model(name)
    return model.is_premium if model is not None else False


def estimate_service_value(prus: float) -> float:
    """Convert PRUs into dollars, rounded to cents."""
    return round_cents(prus * SERVICE_VALUE_RATE)


def round_cents(value: float) -> float:
    """Round half up to two decimals."""
    return math.floor(value * 100 + 0.5) / 100


def model_display_name(model: str) -> str:
    if model == UNKNOWN_MODEL:
        return "Unknown Model"
    if not model:
        return model
    return model[0].upper() + model[1:].replace("-", " ")
