"""InMemoryContinuationQueue — a process-local FIFO of continuation requests."""

import asyncio

from qbank_eval.evaluation.domain.continuation import BatchRequest


class InMemoryContinuationQueue:
    """Continuation requests held in an asyncio.Queue.

    ``dequeue`` never waits: it returns None once the queue is drained.

    Does NOT inherit from ContinuationQueue (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[BatchRequest] = asyncio.Queue()

    async def enqueue(self, request: BatchRequest) -> None:
        await self._queue.put(request)

    async def dequeue(self) -> BatchRequest | None:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def __len__(self) -> int:
        return self._queue.qsize()
