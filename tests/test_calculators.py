"""Tests for the per-view calculators."""

from __future__ import annotations

from conftest import feature, ide, language, make_record, model

from cuv.domain.calculators import (
    ChartVariant,
    ImpactMode,
    calculate_agent_heatmap,
    calculate_chat_requests,
    calculate_chat_users,
    calculate_daily_language_chart,
    calculate_daily_model_usage,
    calculate_daily_pru_analysis,
    calculate_data_quality,
    calculate_engagement,
    calculate_feature_adoption,
    calculate_ide_stats,
    calculate_impact,
    calculate_language_feature_impact,
    calculate_language_stats,
    calculate_model_breakdown,
    calculate_model_feature_distribution,
    calculate_plugin_versions,
    calculate_stats,
    calculate_user_summaries,
    should_filter_language,
)
from cuv.models.records import LanguageModelTotal, UsageRecord


class TestStats:
    def test_empty_input(self) -> None:
        stats = calculate_stats([])
        assert stats.unique_users == 0
        assert stats.total_records == 0
        assert stats.top_language.name == "N/A"
        assert stats.top_ide.entries == 0
        assert stats.top_model.engagements == 0

    def test_user_categories(self, mixed_records: list[UsageRecord]) -> None:
        stats = calculate_stats(mixed_records)
        assert stats.unique_users == 3
        assert stats.chat_users == 2
        assert stats.agent_users == 1
        assert stats.cli_users == 1
        # User 3 has no chat, agent or CLI flag.
        assert stats.completion_only_users == 1
        assert stats.total_records == 4
        assert stats.report_start_day == "2025-10-01"
        assert stats.report_end_day == "2025-10-28"

    def test_categories_are_mutually_exclusive(self, mixed_records: list[UsageRecord]) -> None:
        stats = calculate_stats(mixed_records)
        users = {r.user_id for r in mixed_records}
        flagged = {r.user_id for r in mixed_records if r.used_chat or r.used_agent or r.used_cli}
        assert stats.completion_only_users == len(users - flagged)
        assert stats.completion_only_users + len(flagged) == stats.unique_users

    def test_cli_user_is_not_completion_only(self) -> None:
        stats = calculate_stats([make_record(1, used_cli=True)])
        assert stats.cli_users == 1
        assert stats.completion_only_users == 0

    def test_top_entries(self, mixed_records: list[UsageRecord]) -> None:
        stats = calculate_stats(mixed_records)
        assert stats.top_language.name == "python"
        assert stats.top_language.engagements == 28
        assert stats.top_ide.name == "intellij"
        assert stats.top_ide.entries == 2
        assert stats.top_model.name == "claude-4.0-sonnet"

    def test_language_filter(self) -> None:
        records = [make_record(languages=[language("unknown", generations=50)])]
        assert calculate_stats(records).top_language.name == "unknown"
        filtered = calculate_stats(records, filter_language=should_filter_language)
        assert filtered.top_language.name == "N/A"


class TestUserSummaries:
    def test_rollup_and_order(self) -> None:
        records = [
            make_record(1, "2025-10-01", user_initiated_interaction_count=2, loc_added_sum=5),
            make_record(2, "2025-10-01", user_initiated_interaction_count=9),
            make_record(1, "2025-10-02", user_initiated_interaction_count=3, used_agent=True),
            make_record(1, "2025-10-02", user_initiated_interaction_count=1),
        ]
        summaries = calculate_user_summaries(records)
        assert [s.user_id for s in summaries] == [2, 1]
        first = summaries[1]
        assert first.total_user_initiated_interactions == 6
        assert first.total_loc_added == 5
        assert first.days_active == 2
        assert first.used_agent is True

    def test_ties_keep_first_seen_order(self) -> None:
        records = [make_record(5), make_record(3), make_record(4)]
        assert [s.user_id for s in calculate_user_summaries(records)] == [5, 3, 4]


class TestEngagement:
    def test_daily_percentage(self) -> None:
        records = [
            make_record(1, "2025-10-02"),
            make_record(2, "2025-10-02"),
            make_record(3, "2025-10-01"),
            make_record(1, "2025-10-01"),
            make_record(1, "2025-10-01"),
        ]
        rows = calculate_engagement(records)
        assert [row.date for row in rows] == ["2025-10-01", "2025-10-02"]
        assert rows[0].active_users == 2
        assert rows[0].total_users == 3
        assert rows[0].engagement_percentage == 66.67


class TestChat:
    def test_users_and_requests(self, mixed_records: list[UsageRecord]) -> None:
        users = calculate_chat_users(mixed_records)
        requests = calculate_chat_requests(mixed_records)
        assert [row.date for row in users] == ["2025-10-01"]
        assert users[0].agent_mode_users == 1
        assert users[0].ask_mode_users == 1
        assert users[0].edit_mode_users == 0
        assert requests[0].agent_mode_requests == 5
        assert requests[0].ask_mode_requests == 2

    def test_zero_interactions_are_ignored(self) -> None:
        records = [make_record(features=[feature("chat_inline", interactions=0, added=5)])]
        assert calculate_chat_users(records) == []


class TestLanguageStats:
    def test_sorted_by_engagements(self, mixed_records: list[UsageRecord]) -> None:
        stats = calculate_language_stats(mixed_records)
        assert [s.language for s in stats] == ["python", "unknown", "java"]
        assert stats[0].total_engagements == 28
        assert stats[0].unique_users == 1

    def test_remove_unknown(self, mixed_records: list[UsageRecord]) -> None:
        stats = calculate_language_stats(mixed_records, remove_unknown_languages=True)
        assert "unknown" not in [s.language for s in stats]

    def test_should_filter_language(self) -> None:
        assert should_filter_language("")
        assert should_filter_language(" Unknown ")
        assert not should_filter_language("rust")


class TestModelUsage:
    def test_premium_and_standard_days(self) -> None:
        records = [
            make_record(
                models=[
                    model("GPT-4o", "chat_panel_ask_mode", interactions=10),
                    model("claude-opus-4", "chat_panel_agent_mode", interactions=2),
                    model("", "chat_panel_ask_mode", interactions=4),
                ]
            )
        ]
        usage = calculate_daily_model_usage(records)[0]
        assert usage.standard_models == 10
        assert usage.pru_models == 2
        assert usage.unknown_models == 4
        assert usage.total_prus == 20
        assert usage.service_value == 0.8

        pru = calculate_daily_pru_analysis(records)[0]
        assert pru.pru_requests == 2
        assert pru.standard_requests == 14
        assert pru.pru_percentage == 12.5
        assert pru.top_model == "claude-opus-4"
        assert pru.top_model_prus == 20
        assert pru.top_model_is_premium is True
        standard = next(m for m in pru.models if m.name == "gpt-4o")
        assert standard.is_premium is False
        assert standard.multiplier == 0

    def test_pru_models_sorted_by_prus_then_requests(self) -> None:
        records = [
            make_record(
                models=[
                    model("gpt-4.1", interactions=3),
                    model("gpt-4o", interactions=8),
                    model("gpt-5", interactions=1),
                ]
            )
        ]
        pru = calculate_daily_pru_analysis(records)[0]
        assert [m.name for m in pru.models] == ["gpt-5", "gpt-4o", "gpt-4.1"]

    def test_records_without_models_have_no_rows(self) -> None:
        assert calculate_daily_pru_analysis([make_record()]) == []

    def test_heatmap_intensity_bounds(self) -> None:
        records = [
            make_record(1, "2025-10-01", features=[feature("chat_panel_agent_mode", 10)]),
            make_record(2, "2025-10-01", features=[feature("chat_panel_agent_mode", 10)]),
            make_record(1, "2025-10-02", features=[feature("chat_panel_agent_mode", 1)]),
            make_record(
                1,
                "2025-10-03",
                models=[model("claude-opus-4", interactions=0)],
            ),
        ]
        rows = calculate_agent_heatmap(records)
        assert [row.intensity for row in rows] == [5, 1, 0]
        assert rows[0].unique_users == 2
        assert rows[0].agent_mode_requests == 20
        assert all(0 <= row.intensity <= 5 for row in rows)

    def test_heatmap_service_value(self) -> None:
        records = [
            make_record(
                features=[feature("chat_panel_agent_mode", 5)],
                models=[model("claude-opus-4", interactions=5)],
            )
        ]
        row = calculate_agent_heatmap(records)[0]
        assert row.service_value == 2.0

    def test_model_feature_distribution(self) -> None:
        records = [
            make_record(
                models=[
                    model("gpt-4o", "code_completion", interactions=4),
                    model("gpt-4o", "agent_edit", interactions=1),
                    model("gpt-5", "chat_panel_edit_mode", interactions=2),
                    model("o3", "chat_inline", interactions=0),
                ]
            )
        ]
        rows = calculate_model_feature_distribution(records)
        assert [row.model for row in rows] == ["gpt-5", "gpt-4o"]
        assert rows[0].features.edit_mode == 2
        assert rows[0].total_prus == 2
        assert rows[0].model_display_name == "Gpt 5"
        assert rows[1].features.code_completion == 4
        assert rows[1].features.other == 1


class TestFeatureAdoption:
    def test_funnel(self, mixed_records: list[UsageRecord]) -> None:
        adoption = calculate_feature_adoption(mixed_records)
        assert adoption.total_users == 3
        assert adoption.completion_users == 3
        assert adoption.chat_users == 2
        assert adoption.agent_mode_users == 1
        assert adoption.ask_mode_users == 1
        assert adoption.cli_users == 1
        assert adoption.advanced_users == 1
        assert adoption.completion_only_users == 1

    def test_generations_alone_count(self) -> None:
        records = [make_record(features=[feature("code_review", generations=1)])]
        adoption = calculate_feature_adoption(records)
        assert adoption.code_review_users == 1
        assert adoption.completion_only_users == 0

    def test_completion_and_cli_is_not_completion_only(self) -> None:
        records = [
            make_record(
                features=[feature("code_completion", generations=1), feature("cli_agent", 1)]
            )
        ]
        assert calculate_feature_adoption(records).completion_only_users == 0


class TestImpact:
    def test_completion_scenario(self) -> None:
        completion = feature("code_completion", generations=3, added=10, deleted=2)
        records = [make_record(1, features=[completion])]
        rows = calculate_impact(records, ImpactMode.CODE_COMPLETION)
        assert len(rows) == 1
        assert rows[0].loc_added == 10
        assert rows[0].loc_deleted == 2
        assert rows[0].net_change == 8
        assert rows[0].user_count == 1
        assert rows[0].total_unique_users == 1

    def test_agent_sums_per_user_day(self) -> None:
        records = [
            make_record(
                1,
                features=[
                    feature("chat_panel_agent_mode", 2, added=5),
                    feature("agent_edit", 1, added=3, deleted=1),
                ],
            )
        ]
        row = calculate_impact(records, ImpactMode.AGENT)[0]
        assert (row.loc_added, row.loc_deleted, row.user_count) == (8, 1, 1)

    def test_zero_rows_are_kept(self) -> None:
        records = [
            make_record(1, "2025-10-01", features=[feature("chat_inline", 1, added=4)]),
            make_record(2, "2025-10-02", features=[feature("chat_inline", 3)]),
        ]
        rows = calculate_impact(records, ImpactMode.INLINE)
        assert [row.date for row in rows] == ["2025-10-01", "2025-10-02"]
        assert rows[1].loc_added == 0
        assert rows[1].user_count == 0
        assert rows[1].total_unique_users == 2
        assert [row.date for row in calculate_impact(records, ImpactMode.CLI)] == [
            "2025-10-01",
            "2025-10-02",
        ]

    def test_joined_excludes_cli_and_review(self) -> None:
        records = [
            make_record(
                1,
                features=[
                    feature("cli_agent", 1, added=100),
                    feature("code_review", 1, added=50),
                    feature("chat_panel_edit_mode", 1, added=2, deleted=2),
                ],
            )
        ]
        joined = calculate_impact(records, ImpactMode.JOINED)[0]
        assert joined.loc_added == 2
        cli = calculate_impact(records, ImpactMode.CLI)[0]
        assert cli.loc_added == 100
        edit = calculate_impact(records, ImpactMode.EDIT)[0]
        assert edit.net_change == 0
        assert edit.user_count == 1


class TestIdeStats:
    def test_multi_ide_user(self) -> None:
        records = [make_record(1, ides=[ide("vscode", 2), ide("intellij", 1)])]
        result = calculate_ide_stats(records)
        assert result.multi_ide_users_count == 1
        assert result.total_unique_ide_users == 1
        assert {s.ide: s.total_engagements for s in result.ide_stats} == {
            "vscode": 2,
            "intellij": 1,
        }

    def test_across_days(self, mixed_records: list[UsageRecord]) -> None:
        result = calculate_ide_stats(mixed_records)
        assert result.multi_ide_users_count == 1
        assert result.total_unique_ide_users == 3


class TestPluginVersions:
    def test_families_and_exclusions(self) -> None:
        records = [
            make_record(1, ides=[ide("intellij", plugin="copilot-intellij", version="1.5.0")]),
            make_record(2, ides=[ide("intellij", plugin="copilot-intellij", version="1.5.0")]),
            make_record(
                3, ides=[ide("intellij", plugin="copilot-intellij", version="1.6.0-nightly")]
            ),
            make_record(4, ides=[ide("vscode", plugin="copilot-chat", version="0.30.0")]),
            make_record(5, ides=[ide("vscode", plugin="copilot", version="1.300.0")]),
            make_record(6, ides=[ide("vscode", plugin="copilot-chat", version="0.31.0-insider")]),
            make_record(7, ides=[ide("vscode")]),
        ]
        result = calculate_plugin_versions(records)
        assert [entry.version for entry in result.jetbrains] == ["1.5.0"]
        assert result.jetbrains[0].usernames == ["user1_acme", "user2_acme"]
        assert result.total_unique_intellij_users == 2
        assert [entry.version for entry in result.vscode] == ["0.30.0"]
        assert result.total_unique_vscode_users == 1

    def test_sorted_by_user_count(self) -> None:
        records = [
            make_record(1, ides=[ide("vscode", plugin="copilot-chat", version="0.29.0")]),
            make_record(2, ides=[ide("vscode", plugin="copilot-chat", version="0.30.0")]),
            make_record(3, ides=[ide("vscode", plugin="copilot-chat", version="0.30.0")]),
        ]
        result = calculate_plugin_versions(records)
        assert [entry.version for entry in result.vscode] == ["0.30.0", "0.29.0"]
        assert result.total_unique_vscode_users == 3


class TestLanguageFeatureImpact:
    def test_matrix(self) -> None:
        records = [
            make_record(
                languages=[
                    language("python", "code_completion", added=10, deleted=2),
                    language("python", "chat_panel_agent_mode", added=5),
                    language("go", "code_completion", added=1),
                    language("unknown", "code_completion", added=500),
                    language("", "code_completion", added=500),
                ]
            )
        ]
        impact = calculate_language_feature_impact(records)
        assert impact.features == ["chat_panel_agent_mode", "code_completion"]
        assert [row.language for row in impact.rows] == ["python", "go"]
        assert impact.rows[0].total == 17
        assert impact.rows[1].features == {"chat_panel_agent_mode": 0, "code_completion": 1}

    def test_top_ten_languages(self) -> None:
        records = [
            make_record(languages=[language(f"lang{i}", added=i + 1) for i in range(12)])
        ]
        impact = calculate_language_feature_impact(records)
        assert len(impact.rows) == 10
        assert impact.rows[0].language == "lang11"

    def test_daily_charts(self) -> None:
        records = [
            make_record(1, "2025-10-02", languages=[language("rust", generations=3, added=4)]),
            make_record(2, "2025-10-01", languages=[language("go", generations=1, deleted=9)]),
            make_record(2, "2025-10-01", languages=[language("unknown", generations=7)]),
        ]
        generations = calculate_daily_language_chart(records, ChartVariant.GENERATIONS)
        assert generations.dates == ["2025-10-01", "2025-10-02"]
        assert generations.languages == ["unknown", "rust", "go"]
        assert generations.data["2025-10-01"] == {"unknown": 7, "rust": 0, "go": 1}

        loc = calculate_daily_language_chart(
            records, ChartVariant.LOC, remove_unknown_languages=True
        )
        assert loc.languages == ["go", "rust"]
        assert loc.totals == {"go": 9, "rust": 4}


class TestModelBreakdown:
    def test_exact_match_only(self) -> None:
        records = [
            make_record(
                1,
                "2025-10-01",
                models=[
                    model("claude-opus-4", interactions=2),
                    model("GPT-4o", interactions=5),
                    model("gpt-4o-2024-05-13", interactions=3),
                    model("gpt-5", interactions=0),
                ],
            ),
            make_record(2, "2025-10-02", models=[model("claude-opus-4", interactions=1)]),
        ]
        breakdown = calculate_model_breakdown(records)
        assert breakdown.premium_total == 3
        assert breakdown.standard_total == 5
        assert breakdown.unknown_total == 3
        assert breakdown.dates == ["2025-10-01", "2025-10-02"]
        premium = breakdown.premium_models[0]
        assert premium.model == "claude-opus-4"
        assert premium.daily_data == {"2025-10-01": 2, "2025-10-02": 1}
        assert [entry.model for entry in breakdown.standard_models] == ["gpt-4o"]


def _unknown_models(count: int) -> list[LanguageModelTotal]:
    return [LanguageModelTotal(language=f"lang{i}", model="Unknown") for i in range(count)]


class TestDataQuality:
    def test_empty_input(self) -> None:
        analysis = calculate_data_quality([])
        assert analysis.users_with_issues == []
        assert analysis.total_unknown_model_entries == 0

    def test_agent_flag_without_agent_feature(self) -> None:
        records = [
            make_record(
                1,
                used_agent=True,
                features=[feature("chat_panel_ask_mode", 2), feature("code_completion")],
                ides=[ide("vscode", plugin="copilot-chat", version="0.30.0")],
            ),
            make_record(
                1,
                "2025-10-02",
                ides=[ide("vscode", plugin="copilot-chat", version="0.31.0")],
            ),
            make_record(2, used_agent=True, features=[feature("agent_edit", 1)]),
            make_record(3, user_login="a_acme", used_agent=True),
        ]
        analysis = calculate_data_quality(records)
        assert [(u.user_login, u.user_id) for u in analysis.users_with_issues] == [
            ("a_acme", 3),
            ("user1_acme", 1),
        ]
        flagged = analysis.users_with_issues[1]
        assert flagged.used_modes == ["chat_panel_ask_mode"]
        assert flagged.plugins_used == ["copilot-chat (v0.31.0)"]
        assert analysis.users_with_issues[0].plugins_used == []

    def test_unknown_model_trend_and_ide_summary(self) -> None:
        records = [
            make_record(
                1,
                "2025-10-02",
                totals_by_language_model=_unknown_models(2),
                ides=[ide("vscode", plugin="copilot-chat", version="0.31.0"), ide("")],
            ),
            make_record(
                2,
                "2025-10-01",
                totals_by_language_model=_unknown_models(1),
                ides=[ide("vscode", plugin="copilot-chat", version="0.30.0")],
            ),
            make_record(
                3,
                "2025-10-01",
                totals_by_language_model=[LanguageModelTotal(language="go", model="gpt-4o")],
                ides=[ide("intellij")],
            ),
        ]
        analysis = calculate_data_quality(records)
        assert [(p.day, p.count) for p in analysis.unknown_model_trend] == [
            ("2025-10-01", 1),
            ("2025-10-02", 2),
        ]
        assert analysis.total_unknown_model_entries == 3
        assert [s.ide for s in analysis.ide_summary] == ["Unknown IDE", "vscode"]
        vscode = analysis.ide_summary[1]
        assert vscode.occurrences == 2
        assert vscode.unique_users == 2
        assert vscode.plugin_versions == ["copilot-chat (v0.30.0)", "copilot-chat (v0.31.0)"]
