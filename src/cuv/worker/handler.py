"""Request handler that runs inside the worker context."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from cuv.data.parser import DEFAULT_CHUNK_SIZE, parse_multiple_metrics_streams
from cuv.domain.aggregator import run_aggregation
from cuv.domain.calculators import UserDetailAccumulator
from cuv.domain.filters import derive_enterprise_name
from cuv.models.parsing import MultiFileProgress, MultiFileResult
from cuv.worker.protocol import (
    AggregateRequest,
    AggregateResultResponse,
    ComputeUserDetailsRequest,
    ErrorResponse,
    FilePayload,
    ParseAndAggregateRequest,
    ParseAndAggregateResultResponse,
    ParseFilesRequest,
    ParseProgressResponse,
    ParseResultResponse,
    UserDetailsResultResponse,
    WorkerRequest,
)

logger = logging.getLogger(__name__)

type PostResponse = Callable[[BaseModel], None]

_REQUEST_ADAPTER: TypeAdapter[WorkerRequest] = TypeAdapter(WorkerRequest)
_REQUEST_TYPES = (
    ParseFilesRequest,
    AggregateRequest,
    ParseAndAggregateRequest,
    ComputeUserDetailsRequest,
)
_REQUEST_TYPE_NAMES = frozenset(cls.model_fields["type"].default for cls in _REQUEST_TYPES)

NO_METRICS_ERROR = "No metrics found in the uploaded files"
NO_AGGREGATION_ERROR = "No aggregation available; aggregate metrics before requesting user details"


class MetricsWorker:
    """Processes one request at a time and keeps the latest per-user state."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._chunk_size = chunk_size
        self._user_details: UserDetailAccumulator | None = None

    @property
    def has_aggregation(self) -> bool:
        return self._user_details is not None

    async def handle(self, request: BaseModel | Mapping[str, Any], post: PostResponse) -> None:
        """Handle one request, posting progress messages and exactly one terminal response."""
        parsed = self._validate(request, post)
        if parsed is None:
            return

        match parsed:
            case ParseFilesRequest():
                await self._parse_files(parsed, post)
            case AggregateRequest():
                self._aggregate(parsed, post)
            case ParseAndAggregateRequest():
                await self._parse_and_aggregate(parsed, post)
            case ComputeUserDetailsRequest():
                self._compute_user_details(parsed, post)

    def _validate(
        self, request: BaseModel | Mapping[str, Any], post: PostResponse
    ) -> WorkerRequest | None:
        if isinstance(request, _REQUEST_TYPES):
            return request
        if isinstance(request, BaseModel):
            request = request.model_dump()
        try:
            return _REQUEST_ADAPTER.validate_python(request)
        except ValidationError as exc:
            request_id = request.get("id")
            request_type = request.get("type") or "unknown"
            if not request_id:
                logger.warning("Dropping message with no id and type '%s'", request_type)
                return None
            if request_type not in _REQUEST_TYPE_NAMES:
                error = f"Unknown request type '{request_type}'"
            else:
                error = f"Invalid {request_type} request: {exc.error_count()} validation error(s)"
            post(ErrorResponse(id=str(request_id), error=error))
            return None

    async def _parse(
        self, request_id: str, files: list[FilePayload], post: PostResponse
    ) -> MultiFileResult:
        def on_progress(progress: MultiFileProgress) -> None:
            post(ParseProgressResponse(id=request_id, progress=progress))

        return await parse_multiple_metrics_streams(
            [payload.to_metrics_file(self._chunk_size) for payload in files], on_progress
        )

    async def _parse_files(self, request: ParseFilesRequest, post: PostResponse) -> None:
        try:
            result = await self._parse(request.id, request.files, post)
        except Exception as exc:
            logger.exception("Parse request %s failed", request.id)
            post(ErrorResponse(id=request.id, error=str(exc) or "Parse failed"))
            return
        post(ParseResultResponse(id=request.id, result=result))

    def _aggregate(self, request: AggregateRequest, post: PostResponse) -> None:
        try:
            aggregation = run_aggregation(request.metrics, request.remove_unknown_languages)
        except Exception as exc:
            logger.exception("Aggregate request %s failed", request.id)
            post(ErrorResponse(id=request.id, error=str(exc) or "Aggregation failed"))
            return
        self._user_details = aggregation.user_details
        post(AggregateResultResponse(id=request.id, result=aggregation.result))

    async def _parse_and_aggregate(
        self, request: ParseAndAggregateRequest, post: PostResponse
    ) -> None:
        try:
            parsed = await self._parse(request.id, request.files, post)
            if not parsed.metrics:
                error = "; ".join(e.error for e in parsed.errors) or NO_METRICS_ERROR
                post(ErrorResponse(id=request.id, error=error))
                return
            aggregation = run_aggregation(parsed.metrics, request.remove_unknown_languages)
        except Exception as exc:
            logger.exception("Parse-and-aggregate request %s failed", request.id)
            post(ErrorResponse(id=request.id, error=str(exc) or "Parse and aggregate failed"))
            return

        self._user_details = aggregation.user_details
        post(
            ParseAndAggregateResultResponse(
                id=request.id,
                result=aggregation.result,
                enterprise_name=derive_enterprise_name(parsed.metrics[0]),
                record_count=len(parsed.metrics),
                errors=parsed.errors,
                metrics=parsed.metrics,
            )
        )

    def _compute_user_details(
        self, request: ComputeUserDetailsRequest, post: PostResponse
    ) -> None:
        if self._user_details is None:
            post(ErrorResponse(id=request.id, error=NO_AGGREGATION_ERROR))
            return
        details = self._user_details.compute_user(request.user_id)
        if details is None:
            post(ErrorResponse(id=request.id, error=f"User {request.user_id} not found"))
            return
        post(UserDetailsResultResponse(id=request.id, result=details))
