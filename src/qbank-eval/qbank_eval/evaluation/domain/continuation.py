"""Continuation port — hands the next chunk of a job to a later invocation."""

from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field


class BatchRequest(BaseModel):
    """A request to process a job from ``start_index`` onwards."""

    model_config = ConfigDict(frozen=True)

    job_id: str = Field(min_length=1)
    start_index: int = Field(default=0, ge=0)
    batch_size: int | None = Field(default=None, ge=0)
    process_all_remaining: bool = True


class ContinuationQueue(Protocol):
    """Structural interface for the queue that carries continuation requests.

    Delivery may repeat a request; processing a request twice is safe
    because terminal jobs are never reprocessed.
    """

    async def enqueue(self, request: BatchRequest) -> None: ...

    async def dequeue(self) -> BatchRequest | None: ...
