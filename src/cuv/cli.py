"""Typer CLI for CUV — summary, per-user, export and data-quality commands."""

from __future__ import annotations

import asyncio
import functools
import logging
from pathlib import Path
from typing import Annotated

import typer
from result import Err

from cuv.config import Config
from cuv.domain.features import translate_feature
from cuv.domain.filters import DateRange, get_filtered_date_range
from cuv.models.analytics import AggregatedMetrics, DataQualityAnalysis, UserDetailedMetrics
from cuv.models.parsing import MultiFileProgress
from cuv.services.export_service import ExportKind, ExportService, export_filename
from cuv.services.metrics_service import LoadedReport, MetricsService
from cuv.worker.client import MetricsWorkerClient
from cuv.worker.transport import ThreadTransport

app = typer.Typer(
    name="cuv",
    help="Copilot Usage Viewer — usage-metrics analytics for NDJSON exports.",
    no_args_is_help=True,
)

FilesArgument = Annotated[
    list[Path],
    typer.Argument(help="NDJSON metrics files (.json or .ndjson)", exists=True, dir_okay=False),
]


def _configure_logging(verbose: bool, config: Config) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _build_service(config: Config) -> MetricsService:
    client = MetricsWorkerClient(functools.partial(ThreadTransport, config.chunk_size))
    return MetricsService(client, config)


@app.command()
def summary(
    files: FilesArgument,
    date_range: Annotated[
        DateRange,
        typer.Option("--range", help="Reporting window ending on the report's last day"),
    ] = DateRange.ALL,
    remove_unknown_languages: Annotated[
        bool,
        typer.Option("--remove-unknown-languages", help="Skip unattributed languages"),
    ] = False,
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the full aggregation as JSON")
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Parse metrics files and print headline statistics."""
    config = Config(
        default_date_range=date_range, remove_unknown_languages=remove_unknown_languages
    )
    _configure_logging(verbose, config)
    report = asyncio.run(_load(config, files, show_progress=not as_json))

    if as_json:
        typer.echo(report.metrics.model_dump_json(indent=2))
        return
    _print_summary(report)


@app.command()
def user(
    files: FilesArgument,
    user_id: Annotated[int, typer.Option("--user-id", help="User id to drill into")],
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the drill-down as JSON")
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Print one user's detailed metrics."""
    config = Config()
    _configure_logging(verbose, config)
    details = asyncio.run(_load_user(config, files, user_id))

    if as_json:
        typer.echo(details.model_dump_json(indent=2))
        return
    _print_user(details)


@app.command()
def export(
    files: FilesArgument,
    kind: Annotated[
        ExportKind, typer.Option("--kind", "-k", help="Which table to export")
    ] = ExportKind.FULL,
    date_range: Annotated[
        DateRange,
        typer.Option("--range", help="Reporting window ending on the report's last day"),
    ] = DateRange.ALL,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output", "-o", help="Output file, or a directory for the default file name"
        ),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Export the aggregation as CSV or JSON."""
    config = Config(default_date_range=date_range)
    _configure_logging(verbose, config)
    report, content = asyncio.run(_export(config, files, kind))

    if output is None:
        typer.echo(content)
        return
    if output.is_dir():
        start, end = get_filtered_date_range(
            report.date_range, report.report_start_day, report.report_end_day
        )
        output = output / export_filename(kind, start, end)
    output.write_text(content + "\n", encoding="utf-8")
    typer.echo(f"Wrote {output}", err=True)


@app.command()
def quality(
    files: FilesArgument,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Report agent flags without agent features, and unknown-model entries."""
    config = Config()
    _configure_logging(verbose, config)
    report = asyncio.run(_load(config, files, show_progress=False))
    _print_quality(report.metrics.data_quality_data)


async def _load(config: Config, files: list[Path], show_progress: bool = True) -> LoadedReport:
    service = _build_service(config)
    try:
        return await _load_with(service, files, show_progress)
    finally:
        service.close()


async def _load_with(
    service: MetricsService, files: list[Path], show_progress: bool
) -> LoadedReport:
    def progress(update: MultiFileProgress) -> None:
        typer.echo(
            f"  [{update.current_file}/{update.total_files}] {update.file_name}: "
            f"{update.records_processed} records",
            err=True,
        )

    result = await service.load_files(files, progress if show_progress else None)
    if isinstance(result, Err):
        typer.echo(f"Error: {result.err_value}", err=True)
        raise typer.Exit(code=1)
    return result.ok_value


async def _load_user(config: Config, files: list[Path], user_id: int) -> UserDetailedMetrics:
    service = _build_service(config)
    try:
        await _load_with(service, files, show_progress=False)
        result = await service.get_user_details(user_id)
    finally:
        service.close()
    if isinstance(result, Err):
        typer.echo(f"Error: {result.err_value}", err=True)
        raise typer.Exit(code=1)
    return result.ok_value


async def _export(
    config: Config, files: list[Path], kind: ExportKind
) -> tuple[LoadedReport, str]:
    service = _build_service(config)
    try:
        report = await _load_with(service, files, show_progress=False)
    finally:
        service.close()
    result = ExportService(service).export(kind)
    if isinstance(result, Err):
        typer.echo(f"Error: {result.err_value}", err=True)
        raise typer.Exit(code=1)
    return report, result.ok_value


def _print_summary(report: LoadedReport) -> None:
    metrics: AggregatedMetrics = report.metrics
    stats = metrics.stats
    start, end = get_filtered_date_range(
        report.date_range, report.report_start_day, report.report_end_day
    )

    title = report.enterprise_name or "Copilot usage"
    typer.echo(f"{title}: {start} to {end} ({report.record_count} records loaded)")
    for error in report.errors:
        typer.echo(f"  skipped file {error.file_name}: {error.error}")
    typer.echo(f"Users:            {stats.unique_users}")
    typer.echo(f"  chat:           {stats.chat_users}")
    typer.echo(f"  agent:          {stats.agent_users}")
    typer.echo(f"  cli:            {stats.cli_users}")
    typer.echo(f"  completion only: {stats.completion_only_users}")
    typer.echo(f"Top language:     {stats.top_language.name} ({stats.top_language.engagements})")
    typer.echo(f"Top IDE:          {stats.top_ide.name} ({stats.top_ide.entries} users)")
    typer.echo(f"Top model:        {stats.top_model.name} ({stats.top_model.engagements})")

    total_prus = sum(day.total_prus for day in metrics.pru_analysis_data)
    total_value = sum(day.service_value for day in metrics.pru_analysis_data)
    typer.echo(f"PRUs:             {total_prus:.2f} (${total_value:.2f})")
    typer.echo(f"Multi-IDE users:  {metrics.multi_ide_users_count}")


def _print_user(details: UserDetailedMetrics) -> None:
    typer.echo(f"{details.user_login or details.user_id} ({len(details.days)} days)")
    typer.echo(f"Standard model requests: {details.total_standard_model_requests}")
    typer.echo(f"Premium model requests:  {details.total_premium_model_requests}")
    for feature in details.feature_aggregates:
        typer.echo(
            f"  {translate_feature(feature.feature)}: "
            f"{feature.user_initiated_interaction_count} interactions, "
            f"+{feature.loc_added_sum}/-{feature.loc_deleted_sum} LOC"
        )
    for plugin in details.plugin_versions:
        typer.echo(f"  {plugin.plugin} {plugin.plugin_version} (seen {plugin.sampled_at})")


def _print_quality(analysis: DataQualityAnalysis) -> None:
    flagged_count = len(analysis.users_with_issues)
    typer.echo(f"Agent users without agent features: {flagged_count}")
    for flagged in analysis.users_with_issues:
        modes = ", ".join(flagged.used_modes) or "none"
        plugins = ", ".join(flagged.plugins_used) or "None"
        typer.echo(f"  {flagged.user_login} ({flagged.user_id}): modes {modes}; plugins {plugins}")
    typer.echo(f"Unknown model entries: {analysis.total_unknown_model_entries}")
    for point in analysis.unknown_model_trend:
        typer.echo(f"  {point.day}: {point.count}")
    for ide in analysis.ide_summary:
        versions = ", ".join(ide.plugin_versions) or "None"
        typer.echo(
            f"  {ide.ide}: {ide.occurrences} records, {ide.unique_users} users ({versions})"
        )
