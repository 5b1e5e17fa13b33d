"""Async client that correlates worker requests with their responses."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from pydantic import BaseModel

from cuv.models.analytics import AggregatedMetrics, UserDetailedMetrics
from cuv.models.parsing import MultiFileProgress, MultiFileResult
from cuv.models.records import UsageRecord
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
)
from cuv.worker.transport import WorkerTransport

logger = logging.getLogger(__name__)

type TransportFactory = Callable[[], WorkerTransport]
type ProgressHandler = Callable[[MultiFileProgress], None]


class WorkerError(RuntimeError):
    """A request failed in the worker, or the worker itself went away."""


@dataclass
class _Pending:
    future: asyncio.Future[BaseModel]
    on_progress: ProgressHandler | None = None


class MetricsWorkerClient:
    """Posts requests to a lazily created worker transport.

    One transport at a time: it is created on the first request, dropped on
    error or release, and recreated on the next request.
    """

    def __init__(self, transport_factory: TransportFactory) -> None:
        self._transport_factory = transport_factory
        self._transport: WorkerTransport | None = None
        self._pending: dict[str, _Pending] = {}
        self._ids = itertools.count(1)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_running(self) -> bool:
        return self._transport is not None

    async def parse_files(
        self, files: Sequence[FilePayload], on_progress: ProgressHandler | None = None
    ) -> MultiFileResult:
        response = await self._request(
            lambda request_id: ParseFilesRequest(id=request_id, files=list(files)),
            ParseResultResponse,
            on_progress,
        )
        return response.result

    async def aggregate(
        self, metrics: list[UsageRecord], remove_unknown_languages: bool = False
    ) -> AggregatedMetrics:
        response = await self._request(
            lambda request_id: AggregateRequest(
                id=request_id, metrics=metrics, remove_unknown_languages=remove_unknown_languages
            ),
            AggregateResultResponse,
        )
        return response.result

    async def parse_and_aggregate(
        self,
        files: Sequence[FilePayload],
        on_progress: ProgressHandler | None = None,
        remove_unknown_languages: bool = False,
    ) -> ParseAndAggregateResultResponse:
        return await self._request(
            lambda request_id: ParseAndAggregateRequest(
                id=request_id,
                files=list(files),
                remove_unknown_languages=remove_unknown_languages,
            ),
            ParseAndAggregateResultResponse,
            on_progress,
        )

    async def compute_user_details(self, user_id: int) -> UserDetailedMetrics:
        response = await self._request(
            lambda request_id: ComputeUserDetailsRequest(id=request_id, user_id=user_id),
            UserDetailsResultResponse,
        )
        return response.result

    def release(self) -> None:
        """Tear the worker down; the next request starts a fresh one."""
        self.terminate()

    def terminate(self) -> None:
        transport, self._transport = self._transport, None
        if transport is not None:
            transport.terminate()
        self._reject_all("Worker terminated")

    def _acquire(self) -> WorkerTransport:
        if self._transport is not None:
            return self._transport
        transport = self._transport_factory()
        transport.start(
            lambda message: self._on_message(transport, message),
            lambda exc: self._on_error(transport, exc),
        )
        self._transport = transport
        return transport

    def _next_id(self) -> str:
        return f"req-{next(self._ids)}"

    async def _request[R: BaseModel](
        self,
        build: Callable[[str], BaseModel],
        expected: type[R],
        on_progress: ProgressHandler | None = None,
    ) -> R:
        request_id = self._next_id()
        future: asyncio.Future[BaseModel] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = _Pending(future=future, on_progress=on_progress)
        try:
            self._acquire().post(build(request_id))
        except Exception as exc:
            self._pending.pop(request_id, None)
            raise WorkerError(f"Failed to post request {request_id}: {exc}") from exc

        response = await future
        if not isinstance(response, expected):
            raise WorkerError(
                f"Unexpected response type '{getattr(response, 'type', '?')}' for {request_id}"
            )
        return response

    def _on_message(self, transport: WorkerTransport, message: BaseModel) -> None:
        if transport is not self._transport:
            return
        request_id = getattr(message, "id", None)
        pending = self._pending.get(request_id) if request_id else None
        if pending is None:
            logger.debug("Ignoring response for unknown request %s", request_id)
            return

        if isinstance(message, ParseProgressResponse):
            if pending.on_progress is not None:
                pending.on_progress(message.progress)
            return

        del self._pending[request_id]
        if pending.future.done():
            return
        if isinstance(message, ErrorResponse):
            pending.future.set_exception(WorkerError(message.error))
        else:
            pending.future.set_result(message)

    def _on_error(self, transport: WorkerTransport, exc: BaseException) -> None:
        if transport is not self._transport:
            return
        logger.error("Worker transport failed: %s", exc)
        self._transport = None
        self._reject_all(f"Worker error: {exc}")
        transport.terminate()

    def _reject_all(self, reason: str) -> None:
        pending, self._pending = self._pending, {}
        for entry in pending.values():
            if not entry.future.done():
                entry.future.set_exception(WorkerError(reason))
