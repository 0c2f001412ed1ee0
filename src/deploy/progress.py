"""Push-based progress stream for a single deploy.

The producer (the deploy coroutine) offers lines into an unbounded queue;
the single consumer iterates the stream. The stream always ends with an
explicit terminal event, ``COMPLETE`` or ``FAILED`` carrying the error.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Optional

from common.errors import DeployError

logger = logging.getLogger(__name__)


class EventKind(Enum):
    LINE = "line"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class ProgressEvent:
    kind: EventKind
    message: str = ""
    error: Optional[BaseException] = None

    @property
    def is_terminal(self) -> bool:
        return self.kind != EventKind.LINE


class ProgressQueue:
    """Producer side of a progress stream."""

    def __init__(self) -> None:
        self._queue: "asyncio.Queue[ProgressEvent]" = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def offer(self, line: str) -> None:
        """Append a progress line; ignored once the stream has terminated."""
        if self._closed:
            logger.debug("Dropping progress line after termination: %s", line)
            return
        logger.debug("Progress: %s", line)
        self._queue.put_nowait(ProgressEvent(EventKind.LINE, line))

    def complete(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(ProgressEvent(EventKind.COMPLETE))

    def fail(self, error: BaseException) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(ProgressEvent(EventKind.FAILED, str(error), error))

    async def get(self) -> ProgressEvent:
        return await self._queue.get()


Producer = Callable[[ProgressQueue], Awaitable[None]]


class ProgressStream:
    """Consumer side: starts the producer on first iteration.

    A stream can be consumed once. Leaving the iteration early, or calling
    ``cancel()``, cancels the producer task.
    """

    def __init__(self, producer: Producer):
        self._producer = producer
        self._queue: Optional[ProgressQueue] = None
        self._task: Optional["asyncio.Task[None]"] = None

    async def _run(self, queue: ProgressQueue) -> None:
        try:
            await self._producer(queue)
        except asyncio.CancelledError:
            queue.fail(asyncio.CancelledError("Deploy cancelled"))
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            # terminal failure is reported through the stream, not raised here
            queue.fail(exc)
        else:
            queue.complete()

    def _start(self) -> ProgressQueue:
        if self._queue is not None:
            raise RuntimeError("A progress stream can only be consumed once")
        self._queue = ProgressQueue()
        self._task = asyncio.get_running_loop().create_task(self._run(self._queue))
        return self._queue

    def cancel(self) -> None:
        """Stop the underlying deploy."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def events(self) -> AsyncIterator[ProgressEvent]:
        """Every event including the terminal one."""
        queue = self._start()
        try:
            while True:
                event = await queue.get()
                yield event
                if event.is_terminal:
                    break
        finally:
            self.cancel()

    def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        return self.events()

    async def lines(self) -> AsyncIterator[str]:
        """Progress lines; raises the terminal error if the deploy failed."""
        async for event in self.events():
            if event.kind == EventKind.LINE:
                yield event.message
            elif event.kind == EventKind.FAILED:
                if event.error is None:
                    raise DeployError(event.message or "Deploy failed")
                raise event.error

    async def run(self, on_line: Optional[Callable[[str], None]] = None) -> None:
        """Consume the whole stream, passing each line to ``on_line``."""
        async for line in self.lines():
            if on_line is not None:
                on_line(line)
