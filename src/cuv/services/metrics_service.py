"""Metrics service — loading, date-range re-aggregation and user drill-down."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from result import Err, Ok, Result

from cuv.domain.filters import DateRange, derive_enterprise_name, filter_records_by_date_range
from cuv.models.analytics import AggregatedMetrics, UserDetailedMetrics
from cuv.models.parsing import FileError
from cuv.models.records import UsageRecord
from cuv.worker.client import ProgressHandler, WorkerError
from cuv.worker.protocol import FilePayload

if TYPE_CHECKING:
    from cuv.config import Config
    from cuv.worker.client import MetricsWorkerClient

logger = logging.getLogger(__name__)

SUPERSEDED = "Superseded by a newer request"
NO_DATA = "No metrics loaded"


class LoadedReport(BaseModel):
    """Outcome of a successful load."""

    metrics: AggregatedMetrics
    enterprise_name: str | None = None
    record_count: int = 0
    errors: list[FileError] = Field(default_factory=list)
    report_start_day: str = ""
    report_end_day: str = ""
    date_range: DateRange = DateRange.ALL


class MetricsService:
    """Holds the loaded records and the current aggregation.

    Each operation bumps a generation counter. A response that arrives after a
    newer operation started is discarded with ``Err(SUPERSEDED)``.
    """

    def __init__(self, client: MetricsWorkerClient, config: Config) -> None:
        self._client = client
        self._config = config
        self._generation = 0
        self._records: list[UsageRecord] = []
        self._metrics: AggregatedMetrics | None = None
        self._enterprise_name: str | None = None
        self._date_range = config.default_date_range

    @property
    def has_data(self) -> bool:
        return self._metrics is not None

    @property
    def records(self) -> list[UsageRecord]:
        return self._records

    @property
    def metrics(self) -> AggregatedMetrics | None:
        return self._metrics

    @property
    def date_range(self) -> DateRange:
        return self._date_range

    @property
    def enterprise_name(self) -> str | None:
        return self._enterprise_name

    async def load_files(
        self,
        files: Sequence[Path | FilePayload],
        on_progress: ProgressHandler | None = None,
    ) -> Result[LoadedReport, str]:
        """Parse files, then aggregate the configured date range."""
        generation = self._begin()
        payloads = [
            item if isinstance(item, FilePayload) else FilePayload.from_path(item)
            for item in files
            if isinstance(item, FilePayload) or self._config.is_supported_file(item.name)
        ]
        if not payloads:
            return Err("No supported files (.json, .ndjson) were provided")

        try:
            parsed = await self._client.parse_files(payloads, on_progress)
        except WorkerError as exc:
            if generation != self._generation:
                return Err(SUPERSEDED)
            self._reset()
            return Err(f"Failed to read files: {exc}")
        if generation != self._generation:
            return Err(SUPERSEDED)

        for error in parsed.errors:
            logger.warning(
                "File %d (%s) failed: %s", error.file_index, error.file_name, error.error
            )
        if not parsed.metrics:
            self._reset()
            message = "No metrics found in the uploaded files"
            if parsed.errors:
                message += ": " + "; ".join(error.error for error in parsed.errors)
            return Err(message)

        records = parsed.metrics
        date_range = self._config.default_date_range
        aggregated = await self._aggregate(generation, records, date_range)
        if isinstance(aggregated, Err):
            return aggregated

        self._records = records
        self._date_range = date_range
        self._enterprise_name = derive_enterprise_name(records[0])
        return Ok(
            LoadedReport(
                metrics=aggregated.ok_value,
                enterprise_name=self._enterprise_name,
                record_count=len(records),
                errors=parsed.errors,
                report_start_day=records[0].report_start_day,
                report_end_day=records[0].report_end_day,
                date_range=date_range,
            )
        )

    async def apply_date_range(self, date_range: DateRange) -> Result[AggregatedMetrics, str]:
        """Re-aggregate the loaded records restricted to ``date_range``."""
        if not self._records:
            return Err(NO_DATA)
        generation = self._begin()
        result = await self._aggregate(generation, self._records, date_range)
        if isinstance(result, Ok):
            self._date_range = date_range
        return result

    async def get_user_details(self, user_id: int) -> Result[UserDetailedMetrics, str]:
        """Drill down into one user of the current aggregation."""
        if self._metrics is None:
            return Err(NO_DATA)
        generation = self._generation
        try:
            details = await self._client.compute_user_details(user_id)
        except WorkerError as exc:
            return Err(str(exc))
        if generation != self._generation:
            return Err(SUPERSEDED)
        return Ok(details)

    def close(self) -> None:
        self._client.release()

    async def _aggregate(
        self, generation: int, records: list[UsageRecord], date_range: DateRange
    ) -> Result[AggregatedMetrics, str]:
        report_end_day = records[0].report_end_day if records else ""
        filtered = filter_records_by_date_range(records, date_range, report_end_day)
        try:
            metrics = await self._client.aggregate(
                filtered, remove_unknown_languages=self._config.remove_unknown_languages
            )
        except WorkerError as exc:
            if generation != self._generation:
                return Err(SUPERSEDED)
            logger.error("Aggregation failed: %s", exc)
            self._reset()
            return Err(f"Aggregation failed: {exc}")
        if generation != self._generation:
            return Err(SUPERSEDED)
        self._metrics = metrics
        return Ok(metrics)

    def _begin(self) -> int:
        self._generation += 1
        return self._generation

    def _reset(self) -> None:
        self._records = []
        self._metrics = None
        self._enterprise_name = None
        self._date_range = self._config.default_date_range
