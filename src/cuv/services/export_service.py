"""Export service — CSV and JSON renderings of the current aggregation."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel
from result import Err, Ok, Result

from cuv.services.metrics_service import NO_DATA

if TYPE_CHECKING:
    from cuv.models.analytics import AggregatedMetrics
    from cuv.services.metrics_service import MetricsService

type Columns = Sequence[tuple[str, str]]


class ExportKind(StrEnum):
    SUMMARY = "summary"
    USERS = "users"
    ENGAGEMENT = "engagement"
    LANGUAGES = "languages"
    CHAT_USERS = "chat-users"
    CHAT_REQUESTS = "chat-requests"
    FULL = "full"
    JSON = "json"


_FILE_PREFIXES: dict[ExportKind, str] = {
    ExportKind.SUMMARY: "summary-stats",
    ExportKind.USERS: "user-summaries",
    ExportKind.ENGAGEMENT: "daily-engagement",
    ExportKind.LANGUAGES: "language-stats",
    ExportKind.CHAT_USERS: "daily-chat-users",
    ExportKind.CHAT_REQUESTS: "daily-chat-requests",
    ExportKind.FULL: "full-report",
    ExportKind.JSON: "metrics",
}

USER_COLUMNS: Columns = (
    ("user_login", "Username"),
    ("user_id", "User ID"),
    ("days_active", "Days Active"),
    ("total_user_initiated_interactions", "Total Interactions"),
    ("total_code_generation_activities", "Code Generations"),
    ("total_code_acceptance_activities", "Code Acceptances"),
    ("total_loc_added", "LOC Added"),
    ("total_loc_deleted", "LOC Deleted"),
    ("total_loc_suggested_to_add", "LOC Suggested to Add"),
    ("total_loc_suggested_to_delete", "LOC Suggested to Delete"),
    ("used_chat", "Used Chat"),
    ("used_agent", "Used Agent"),
)
ENGAGEMENT_COLUMNS: Columns = (
    ("date", "Date"),
    ("active_users", "Active Users"),
    ("total_users", "Total Users"),
    ("engagement_percentage", "Engagement %"),
)
LANGUAGE_COLUMNS: Columns = (
    ("language", "Language"),
    ("total_generations", "Total Generations"),
    ("total_acceptances", "Total Acceptances"),
    ("loc_added", "LOC Added"),
    ("loc_deleted", "LOC Deleted"),
    ("loc_suggested_to_add", "LOC Suggested to Add"),
    ("loc_suggested_to_delete", "LOC Suggested to Delete"),
)
CHAT_USER_COLUMNS: Columns = (
    ("date", "Date"),
    ("ask_mode_users", "Ask Mode Users"),
    ("agent_mode_users", "Agent Mode Users"),
    ("edit_mode_users", "Edit Mode Users"),
    ("inline_mode_users", "Inline Mode Users"),
)
CHAT_REQUEST_COLUMNS: Columns = (
    ("date", "Date"),
    ("ask_mode_requests", "Ask Mode Requests"),
    ("agent_mode_requests", "Agent Mode Requests"),
    ("edit_mode_requests", "Edit Mode Requests"),
    ("inline_mode_requests", "Inline Mode Requests"),
)


def export_filename(kind: ExportKind, start_day: str, end_day: str) -> str:
    """Default file name for an export, e.g. ``copilot-user-summaries_<start>_to_<end>.csv``."""
    extension = "json" if kind == ExportKind.JSON else "csv"
    window = f"{start_day or 'start'}_to_{end_day or 'end'}"
    return f"copilot-{_FILE_PREFIXES[kind]}_{window}.{extension}"


def csv_value(value: object) -> str:
    """Render one cell, quoting it when it holds a comma, quote or newline."""
    if value is None:
        return ""
    if isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = str(value)
    if any(char in text for char in ',"\n'):
        return '"' + text.replace('"', '""') + '"'
    return text


def rows_to_csv(rows: Sequence[BaseModel], columns: Columns) -> str:
    lines = [",".join(csv_value(label) for _, label in columns)]
    for row in rows:
        lines.append(",".join(csv_value(getattr(row, name)) for name, _ in columns))
    return "\n".join(lines)


class ExportService:
    """Service for exporting the loaded aggregation."""

    def __init__(self, metrics_service: MetricsService) -> None:
        self._metrics = metrics_service

    def export(self, kind: ExportKind) -> Result[str, str]:
        match kind:
            case ExportKind.SUMMARY:
                return self.export_summary_csv()
            case ExportKind.USERS:
                return self.export_user_summaries_csv()
            case ExportKind.ENGAGEMENT:
                return self.export_engagement_csv()
            case ExportKind.LANGUAGES:
                return self.export_language_stats_csv()
            case ExportKind.CHAT_USERS:
                return self.export_chat_users_csv()
            case ExportKind.CHAT_REQUESTS:
                return self.export_chat_requests_csv()
            case ExportKind.FULL:
                return self.export_full_report_csv()
            case ExportKind.JSON:
                return self.export_json()

    def export_summary_csv(self) -> Result[str, str]:
        """Headline statistics as ``Metric,Value`` rows."""
        metrics = self._current()
        if isinstance(metrics, Err):
            return metrics
        stats = metrics.ok_value.stats
        rows = [
            ("Enterprise", self._metrics.enterprise_name or "N/A"),
            ("Report Start Date", stats.report_start_day),
            ("Report End Date", stats.report_end_day),
            ("Total Records", stats.total_records),
            ("Unique Users", stats.unique_users),
            ("Chat Users", stats.chat_users),
            ("Agent Users", stats.agent_users),
            ("CLI Users", stats.cli_users),
            ("Completion Only Users", stats.completion_only_users),
            ("Top Language", stats.top_language.name),
            ("Top Language Engagements", stats.top_language.engagements),
            ("Top IDE", stats.top_ide.name),
            ("Top IDE Users", stats.top_ide.entries),
            ("Top Model", stats.top_model.name),
            ("Top Model Engagements", stats.top_model.engagements),
        ]
        lines = ["Metric,Value"]
        lines.extend(f"{csv_value(metric)},{csv_value(value)}" for metric, value in rows)
        return Ok("\n".join(lines))

    def export_user_summaries_csv(self) -> Result[str, str]:
        return self._table(lambda m: m.user_summaries, USER_COLUMNS)

    def export_engagement_csv(self) -> Result[str, str]:
        return self._table(lambda m: m.engagement_data, ENGAGEMENT_COLUMNS)

    def export_language_stats_csv(self) -> Result[str, str]:
        return self._table(lambda m: m.language_stats, LANGUAGE_COLUMNS)

    def export_chat_users_csv(self) -> Result[str, str]:
        return self._table(lambda m: m.chat_users_data, CHAT_USER_COLUMNS)

    def export_chat_requests_csv(self) -> Result[str, str]:
        return self._table(lambda m: m.chat_requests_data, CHAT_REQUEST_COLUMNS)

    def export_full_report_csv(self) -> Result[str, str]:
        """Every table in one document, each under a ``=== TITLE ===`` banner."""
        metrics_result = self._current()
        if isinstance(metrics_result, Err):
            return metrics_result
        metrics = metrics_result.ok_value
        stats = metrics.stats

        sections = [
            "=== SUMMARY STATISTICS ===",
            f"Enterprise,{csv_value(self._metrics.enterprise_name or 'N/A')}",
            f"Report Period,{stats.report_start_day} to {stats.report_end_day}",
            f"Total Records,{stats.total_records}",
            f"Unique Users,{stats.unique_users}",
            f"Chat Users,{stats.chat_users}",
            f"Agent Users,{stats.agent_users}",
            f"Completion Only Users,{stats.completion_only_users}",
            f"Top Language,{csv_value(stats.top_language.name)}",
            f"Top IDE,{csv_value(stats.top_ide.name)}",
            f"Top Model,{csv_value(stats.top_model.name)}",
            "",
            "=== USER SUMMARIES ===",
            rows_to_csv(metrics.user_summaries, USER_COLUMNS),
            "",
            "=== LANGUAGE STATISTICS ===",
            rows_to_csv(metrics.language_stats, LANGUAGE_COLUMNS),
            "",
            "=== DAILY ENGAGEMENT ===",
            rows_to_csv(metrics.engagement_data, ENGAGEMENT_COLUMNS),
            "",
        ]
        # Chat sections are left out entirely when nobody used chat.
        if metrics.chat_users_data:
            sections += [
                "=== DAILY CHAT USERS ===",
                rows_to_csv(metrics.chat_users_data, CHAT_USER_COLUMNS),
                "",
            ]
        if metrics.chat_requests_data:
            sections += [
                "=== DAILY CHAT REQUESTS ===",
                rows_to_csv(metrics.chat_requests_data, CHAT_REQUEST_COLUMNS),
            ]
        return Ok("\n".join(sections))

    def export_json(self) -> Result[str, str]:
        """The full aggregation as JSON."""
        metrics = self._current()
        if isinstance(metrics, Err):
            return metrics
        return Ok(metrics.ok_value.model_dump_json(indent=2))

    def _current(self) -> Result[AggregatedMetrics, str]:
        metrics = self._metrics.metrics
        if metrics is None:
            return Err(NO_DATA)
        return Ok(metrics)

    def _table(
        self, select: Callable[[AggregatedMetrics], Sequence[BaseModel]], columns: Columns
    ) -> Result[str, str]:
        metrics = self._current()
        if isinstance(metrics, Err):
            return metrics
        return Ok(rows_to_csv(select(metrics.ok_value), columns))
