"""Feature names, display labels and the fixed feature groupings."""

from __future__ import annotations

CODE_COMPLETION = "code_completion"
CHAT_ASK_MODE = "chat_panel_ask_mode"
CHAT_EDIT_MODE = "chat_panel_edit_mode"
CHAT_AGENT_MODE = "chat_panel_agent_mode"
CHAT_UNKNOWN_MODE = "chat_panel_unknown_mode"
CHAT_CUSTOM_MODE = "chat_panel_custom_mode"
CHAT_INLINE = "chat_inline"
AGENT_EDIT = "agent_edit"
CLI_AGENT = "cli_agent"
CODE_REVIEW = "code_review"

FEATURE_LABELS: dict[str, str] = {
    CHAT_EDIT_MODE: "Chat: Edit Mode",
    CHAT_ASK_MODE: "Chat: Ask Mode",
    CHAT_AGENT_MODE: "Chat: Agent Mode",
    CODE_COMPLETION: "Code Completion",
    CHAT_UNKNOWN_MODE: "Chat: Unknown Mode",
    CHAT_INLINE: "Chat: Inline",
    AGENT_EDIT: "Agent Edit",
    CLI_AGENT: "CLI Agent",
    CODE_REVIEW: "Code Review",
}

CHAT_FEATURES: frozenset[str] = frozenset(
    {CHAT_UNKNOWN_MODE, CHAT_ASK_MODE, CHAT_AGENT_MODE, CHAT_EDIT_MODE, CHAT_INLINE}
)
AGENT_FEATURES: frozenset[str] = frozenset({CHAT_AGENT_MODE, AGENT_EDIT})
CLI_FEATURES: frozenset[str] = frozenset({CLI_AGENT})
# Interaction modes a record can report; custom mode has no label of its own.
CHAT_MODE_FEATURES: frozenset[str] = CHAT_FEATURES | AGENT_FEATURES | {CHAT_CUSTOM_MODE}

# CLI agent and code review do not report LOC deltas, so they stay out of the joined view.
JOINED_IMPACT_FEATURES: frozenset[str] = frozenset(
    {CODE_COMPLETION, CHAT_ASK_MODE, CHAT_EDIT_MODE, CHAT_INLINE, CHAT_AGENT_MODE, AGENT_EDIT}
)


def translate_feature(feature: str) -> str:
    """Human-readable label for a feature, or the raw name if none is known."""
    return FEATURE_LABELS.get(feature, feature)


def all_feature_translations() -> list[tuple[str, str]]:
    """(technical name, label) pairs in table order."""
    return list(FEATURE_LABELS.items())
