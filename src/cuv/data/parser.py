"""NDJSON parser for exported usage-metrics records."""

from __future__ import annotations

import asyncio
import codecs
import json
import logging
import math
from collections.abc import AsyncIterator, Callable, Generator, Sequence
from dataclasses import dataclass
from pathlib import Path

from cuv.models.parsing import FileError, MultiFileProgress, MultiFileResult
from cuv.models.records import (
    FeatureTotal,
    IdeTotal,
    LanguageFeatureTotal,
    LanguageModelTotal,
    ModelFeatureTotal,
    PluginVersion,
    UsageRecord,
)

logger = logging.getLogger(__name__)

type ProgressCallback = Callable[[int], None]
type MultiFileProgressCallback = Callable[[MultiFileProgress], None]

DEFAULT_CHUNK_SIZE = 64 * 1024

# Old-schema LOC fields; their meaning changed, so such lines cannot be mixed in.
DEPRECATED_FIELDS: tuple[str, ...] = ("generated_loc_sum", "accepted_loc_sum")
REQUIRED_ROOT_FIELDS: tuple[str, ...] = (
    "loc_added_sum",
    "loc_deleted_sum",
    "loc_suggested_to_add_sum",
    "loc_suggested_to_delete_sum",
)
SUPPORTED_EXTENSIONS: tuple[str, ...] = (".json", ".ndjson")


def is_supported_file(name: str, extensions: tuple[str, ...] = SUPPORTED_EXTENSIONS) -> bool:
    return name.lower().endswith(extensions)


def parse_metrics_line(line: str) -> UsageRecord | None:
    """Parse one NDJSON line, or return None if it must be dropped."""
    try:
        raw = json.loads(line)
    except json.JSONDecodeError:
        logger.warning("Invalid JSON line: %.200s", line)
        return None

    if not isinstance(raw, dict):
        logger.warning("Skipping non-object JSON line")
        return None

    if _has_deprecated_fields(raw):
        logger.warning(
            "Skipping line with deprecated LOC fields (old schema not supported): %.200s", line
        )
        return None

    missing = [name for name in REQUIRED_ROOT_FIELDS if name not in raw]
    if missing:
        logger.warning("Skipping line missing LOC fields: %s", ",".join(missing))
        return None

    return _build_record(raw)


def parse_metrics_text(text: str) -> list[UsageRecord]:
    """Parse a whole NDJSON document held in memory."""
    records: list[UsageRecord] = []
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        record = parse_metrics_line(line)
        if record is not None:
            records.append(record)
    return records


def parse_metrics_file(path: Path) -> Generator[UsageRecord]:
    """Stream-parse an NDJSON file line by line."""
    with open(path, encoding="utf-8", errors="replace") as file:
        for line in file:
            line = line.strip()
            if not line:
                continue
            record = parse_metrics_line(line)
            if record is not None:
                yield record


class LineAssembler:
    """Turn arbitrary byte chunks into complete text lines.

    Multi-byte UTF-8 sequences split across chunks are held by an incremental
    decoder; a partial trailing line is carried over to the next chunk.
    Invalid bytes decode to U+FFFD so only the line holding them is affected.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[str]:
        self._buffer += self._decoder.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return lines

    def flush(self) -> list[str]:
        self._buffer += self._decoder.decode(b"", final=True)
        tail, self._buffer = self._buffer, ""
        return [tail] if tail.strip() else []


async def _consume_stream(
    chunks: AsyncIterator[bytes],
    records: list[UsageRecord],
    on_chunk: ProgressCallback | None = None,
    initial_count: int = 0,
) -> int:
    """Parse every line of a chunk stream into ``records``; return the running count."""
    assembler = LineAssembler()
    count = initial_count

    async for chunk in chunks:
        for line in assembler.feed(chunk):
            line = line.strip()
            if not line:
                continue
            record = parse_metrics_line(line)
            if record is not None:
                records.append(record)
                count += 1
        if on_chunk:
            on_chunk(count)

    for line in assembler.flush():
        record = parse_metrics_line(line.strip())
        if record is not None:
            records.append(record)
            count += 1
            if on_chunk:
                on_chunk(count)

    return count


async def parse_metrics_stream(
    chunks: AsyncIterator[bytes],
    on_progress: ProgressCallback | None = None,
) -> list[UsageRecord]:
    """Parse an async byte stream; ``on_progress`` gets the record count after each chunk."""
    records: list[UsageRecord] = []
    await _consume_stream(chunks, records, on_progress)
    return records


@dataclass(frozen=True)
class MetricsFile:
    """A named source of NDJSON bytes."""

    name: str
    path: Path | None = None
    data: bytes | None = None
    chunk_size: int = DEFAULT_CHUNK_SIZE

    @classmethod
    def from_path(cls, path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> MetricsFile:
        return cls(name=path.name, path=path, chunk_size=chunk_size)

    @classmethod
    def from_bytes(
        cls, name: str, data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> MetricsFile:
        return cls(name=name, data=data, chunk_size=chunk_size)

    async def chunks(self) -> AsyncIterator[bytes]:
        """Yield the file content in ``chunk_size`` pieces."""
        if self.data is not None:
            for start in range(0, len(self.data), self.chunk_size):
                yield self.data[start : start + self.chunk_size]
                await asyncio.sleep(0)
            return
        if self.path is None:
            raise ValueError(f"Metrics file {self.name!r} has neither a path nor data")
        with open(self.path, "rb") as file:
            while chunk := await asyncio.to_thread(file.read, self.chunk_size):
                yield chunk


async def parse_multiple_metrics_streams(
    files: Sequence[MetricsFile],
    on_progress: MultiFileProgressCallback | None = None,
) -> MultiFileResult:
    """Parse files one after another; a failing file is recorded and skipped."""
    result = MultiFileResult()
    total_processed = 0

    for file_index, metrics_file in enumerate(files, 1):
        on_chunk: ProgressCallback | None = None
        if on_progress:

            def on_chunk(
                count: int, index: int = file_index, name: str = metrics_file.name
            ) -> None:
                on_progress(
                    MultiFileProgress(
                        current_file=index,
                        total_files=len(files),
                        file_name=name,
                        records_processed=count,
                    )
                )

        try:
            total_processed = await _consume_stream(
                metrics_file.chunks(), result.metrics, on_chunk, total_processed
            )
        except Exception as exc:
            logger.exception("Failed to parse %s", metrics_file.name)
            result.errors.append(
                FileError(file_index=file_index, file_name=metrics_file.name, error=str(exc))
            )
            total_processed = len(result.metrics)

    return result


def _has_deprecated_fields(raw: dict[str, object]) -> bool:
    if any(name in raw for name in DEPRECATED_FIELDS):
        return True
    features = raw.get("totals_by_feature")
    if not isinstance(features, list):
        return False
    return any(
        isinstance(item, dict) and any(name in item for name in DEPRECATED_FIELDS)
        for item in features
    )


def _build_record(raw: dict[str, object]) -> UsageRecord:
    return UsageRecord(
        report_start_day=_as_str(raw.get("report_start_day")),
        report_end_day=_as_str(raw.get("report_end_day")),
        day=_as_str(raw.get("day")),
        enterprise_id=_as_str(raw.get("enterprise_id")),
        user_id=_int(raw.get("user_id")),
        user_login=_as_str(raw.get("user_login")),
        user_initiated_interaction_count=_int(raw.get("user_initiated_interaction_count")),
        code_generation_activity_count=_int(raw.get("code_generation_activity_count")),
        code_acceptance_activity_count=_int(raw.get("code_acceptance_activity_count")),
        loc_added_sum=_int(raw.get("loc_added_sum")),
        loc_deleted_sum=_int(raw.get("loc_deleted_sum")),
        loc_suggested_to_add_sum=_int(raw.get("loc_suggested_to_add_sum")),
        loc_suggested_to_delete_sum=_int(raw.get("loc_suggested_to_delete_sum")),
        totals_by_ide=[_parse_ide_total(item) for item in _as_dicts(raw.get("totals_by_ide"))],
        totals_by_feature=[
            FeatureTotal(feature=_as_str(item.get("feature")), **_counters(item))
            for item in _as_dicts(raw.get("totals_by_feature"))
        ],
        totals_by_language_feature=[
            LanguageFeatureTotal(
                language=_as_str(item.get("language")),
                feature=_as_str(item.get("feature")),
                **_counters(item, interactions=False),
            )
            for item in _as_dicts(raw.get("totals_by_language_feature"))
        ],
        totals_by_language_model=[
            LanguageModelTotal(
                language=_as_str(item.get("language")),
                model=_as_str(item.get("model")),
                **_counters(item, interactions=False),
            )
            for item in _as_dicts(raw.get("totals_by_language_model"))
        ],
        totals_by_model_feature=[
            ModelFeatureTotal(
                model=_as_str(item.get("model")),
                feature=_as_str(item.get("feature")),
                **_counters(item),
            )
            for item in _as_dicts(raw.get("totals_by_model_feature"))
        ],
        used_chat=_bool(raw.get("used_chat")),
        used_agent=_bool(raw.get("used_agent")),
        used_cli=_bool(raw.get("used_cli")),
    )


def _parse_ide_total(item: dict[str, object]) -> IdeTotal:
    plugin = item.get("last_known_plugin_version")
    plugin_version: PluginVersion | None = None
    if isinstance(plugin, dict):
        plugin_version = PluginVersion(
            sampled_at=_as_str(plugin.get("sampled_at")),
            plugin=_as_str(plugin.get("plugin")),
            plugin_version=_as_str(plugin.get("plugin_version")),
        )
    return IdeTotal(
        ide=_as_str(item.get("ide")),
        last_known_plugin_version=plugin_version,
        **_counters(item),
    )


def _counters(item: dict[str, object], *, interactions: bool = True) -> dict[str, int]:
    counters = {
        "code_generation_activity_count": _int(item.get("code_generation_activity_count")),
        "code_acceptance_activity_count": _int(item.get("code_acceptance_activity_count")),
        "loc_added_sum": _int(item.get("loc_added_sum")),
        "loc_deleted_sum": _int(item.get("loc_deleted_sum")),
        "loc_suggested_to_add_sum": _int(item.get("loc_suggested_to_add_sum")),
        "loc_suggested_to_delete_sum": _int(item.get("loc_suggested_to_delete_sum")),
    }
    if interactions:
        counters["user_initiated_interaction_count"] = _int(
            item.get("user_initiated_interaction_count")
        )
    return counters


def _as_dicts(value: object) -> list[dict[str, object]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _as_str(value: object) -> str:
    return value if isinstance(value, str) else ""


def _bool(value: object) -> bool:
    return value if isinstance(value, bool) else False


def _int(val: object) -> int:
    if isinstance(val, bool):
        return int(val)
    if isinstance(val, int):
        return val
    if isinstance(val, str):
        try:
            val = float(val)
        except ValueError:
            return 0
    if isinstance(val, float):
        # NaN and +/-Infinity are accepted by json.loads but have no int value.
        if not math.isfinite(val):
            return 0
        return int(val)
    return 0
