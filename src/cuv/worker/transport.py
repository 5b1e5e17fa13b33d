"""Transports that carry requests to a MetricsWorker and responses back.

Requests are processed one at a time in the order posted. Requests and
responses are deep-copied as they cross a transport, so neither side holds
objects the other can mutate.
"""

from __future__ import annotations

import asyncio
import logging
import queue
import threading
from collections.abc import Callable
from typing import Protocol

from pydantic import BaseModel

from cuv.data.parser import DEFAULT_CHUNK_SIZE
from cuv.worker.handler import MetricsWorker

logger = logging.getLogger(__name__)

type MessageHandler = Callable[[BaseModel], None]
type ErrorHandler = Callable[[BaseException], None]

DEFAULT_JOIN_TIMEOUT = 2.0


class WorkerTransport(Protocol):
    """Interface between a client and one worker instance."""

    def start(self, on_message: MessageHandler, on_error: ErrorHandler) -> None: ...

    def post(self, request: BaseModel) -> None: ...

    def terminate(self) -> None: ...


class InlineTransport:
    """Runs the worker as a task on the caller's event loop."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._worker = MetricsWorker(chunk_size)
        self._queue: asyncio.Queue[BaseModel] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None

    def start(self, on_message: MessageHandler, on_error: ErrorHandler) -> None:
        if self._task is not None:
            raise RuntimeError("Transport already started")
        self._task = asyncio.get_running_loop().create_task(self._serve(on_message, on_error))

    def post(self, request: BaseModel) -> None:
        if self._task is None or self._task.done():
            raise RuntimeError("Transport is not running")
        self._queue.put_nowait(request.model_copy(deep=True))

    def terminate(self) -> None:
        if self._task is not None:
            self._task.cancel()

    async def _serve(self, on_message: MessageHandler, on_error: ErrorHandler) -> None:
        def deliver(response: BaseModel) -> None:
            on_message(response.model_copy(deep=True))

        while True:
            request = await self._queue.get()
            try:
                await self._worker.handle(request, deliver)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.exception("Inline worker crashed")
                on_error(exc)
                return


class ThreadTransport:
    """Runs the worker on a dedicated thread with its own event loop.

    Requests go through a thread-safe queue; responses are marshalled back to
    the loop that called ``start``.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        join_timeout: float = DEFAULT_JOIN_TIMEOUT,
    ) -> None:
        self._worker = MetricsWorker(chunk_size)
        self._join_timeout = join_timeout
        self._requests: queue.Queue[BaseModel | None] = queue.Queue()
        self._thread: threading.Thread | None = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, on_message: MessageHandler, on_error: ErrorHandler) -> None:
        if self._thread is not None:
            raise RuntimeError("Transport already started")
        caller_loop = asyncio.get_running_loop()

        def deliver(response: BaseModel) -> None:
            try:
                caller_loop.call_soon_threadsafe(on_message, response.model_copy(deep=True))
            except RuntimeError:
                logger.debug("Caller loop closed, dropping %s", getattr(response, "type", "?"))

        def fail(exc: BaseException) -> None:
            try:
                caller_loop.call_soon_threadsafe(on_error, exc)
            except RuntimeError:
                logger.debug("Caller loop closed, dropping worker error: %s", exc)

        self._thread = threading.Thread(
            target=self._run, args=(deliver, fail), name="cuv-metrics-worker", daemon=True
        )
        self._thread.start()

    def post(self, request: BaseModel) -> None:
        if not self.is_alive:
            raise RuntimeError("Transport is not running")
        self._requests.put(request.model_copy(deep=True))

    def terminate(self) -> None:
        thread = self._thread
        if thread is None:
            return
        self._requests.put(None)
        if thread is threading.current_thread():
            return
        thread.join(timeout=self._join_timeout)
        if thread.is_alive():
            # Work already running finishes in the background; its output is dropped.
            logger.debug("Worker thread still busy after %.1fs", self._join_timeout)

    def _run(self, deliver: MessageHandler, fail: ErrorHandler) -> None:
        loop = asyncio.new_event_loop()
        try:
            while (request := self._requests.get()) is not None:
                loop.run_until_complete(self._worker.handle(request, deliver))
        except Exception as exc:
            logger.exception("Worker thread crashed")
            fail(exc)
        finally:
            loop.run_until_complete(loop.shutdown_default_executor())
            loop.close()
