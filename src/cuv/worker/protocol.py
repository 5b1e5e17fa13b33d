"""Request and response messages exchanged with the metrics worker.

Every request carries an ``id``; the worker answers with zero or more
``parseProgress`` messages and exactly one terminal response for that id.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from cuv.data.parser import DEFAULT_CHUNK_SIZE, MetricsFile
from cuv.models.analytics import AggregatedMetrics, UserDetailedMetrics
from cuv.models.parsing import FileError, MultiFileProgress, MultiFileResult
from cuv.models.records import UsageRecord


class FilePayload(BaseModel):
    """A file handed to the worker, either by path or as raw bytes."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: Path | None = None
    data: bytes | None = None

    @classmethod
    def from_path(cls, path: Path) -> FilePayload:
        return cls(name=path.name, path=path)

    def to_metrics_file(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> MetricsFile:
        if self.data is not None:
            return MetricsFile.from_bytes(self.name, self.data, chunk_size)
        if self.path is None:
            raise ValueError(f"File {self.name!r} has neither a path nor data")
        return MetricsFile(name=self.name, path=self.path, chunk_size=chunk_size)


# -- requests --


class ParseFilesRequest(BaseModel):
    type: Literal["parseFiles"] = "parseFiles"
    id: str
    files: list[FilePayload]


class AggregateRequest(BaseModel):
    type: Literal["aggregate"] = "aggregate"
    id: str
    metrics: list[UsageRecord]
    remove_unknown_languages: bool = False


class ParseAndAggregateRequest(BaseModel):
    type: Literal["parseAndAggregate"] = "parseAndAggregate"
    id: str
    files: list[FilePayload]
    remove_unknown_languages: bool = False


class ComputeUserDetailsRequest(BaseModel):
    type: Literal["computeUserDetails"] = "computeUserDetails"
    id: str
    user_id: int


WorkerRequest = Annotated[
    ParseFilesRequest | AggregateRequest | ParseAndAggregateRequest | ComputeUserDetailsRequest,
    Field(discriminator="type"),
]


# -- responses --


class ParseProgressResponse(BaseModel):
    type: Literal["parseProgress"] = "parseProgress"
    id: str
    progress: MultiFileProgress


class ParseResultResponse(BaseModel):
    type: Literal["parseResult"] = "parseResult"
    id: str
    result: MultiFileResult


class AggregateResultResponse(BaseModel):
    type: Literal["aggregateResult"] = "aggregateResult"
    id: str
    result: AggregatedMetrics


class ParseAndAggregateResultResponse(BaseModel):
    type: Literal["parseAndAggregateResult"] = "parseAndAggregateResult"
    id: str
    result: AggregatedMetrics
    enterprise_name: str | None = None
    record_count: int = 0
    errors: list[FileError] = Field(default_factory=list)
    # Raw records come back so the caller can re-filter without re-parsing.
    metrics: list[UsageRecord] = Field(default_factory=list)


class UserDetailsResultResponse(BaseModel):
    type: Literal["userDetailsResult"] = "userDetailsResult"
    id: str
    result: UserDetailedMetrics


class ErrorResponse(BaseModel):
    type: Literal["error"] = "error"
    id: str
    error: str


WorkerResponse = Annotated[
    ParseProgressResponse
    | ParseResultResponse
    | AggregateResultResponse
    | ParseAndAggregateResultResponse
    | UserDetailsResultResponse
    | ErrorResponse,
    Field(discriminator="type"),
]

TERMINAL_RESPONSE_TYPES: frozenset[str] = frozenset(
    {"parseResult", "aggregateResult", "parseAndAggregateResult", "userDetailsResult", "error"}
)
