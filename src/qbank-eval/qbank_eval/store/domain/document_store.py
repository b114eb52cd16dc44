"""DocumentStore Protocol — the document database primitives the core relies on."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal, Protocol

type Document = dict[str, Any]
type FilterOp = Literal["==", "!=", "<", "<=", ">", ">=", "in"]


@dataclass(frozen=True)
class Filter:
    """A single field predicate; ``field`` may be a dotted path into the document."""

    field: str
    op: FilterOp
    value: Any


class DocumentStore(Protocol):
    """Structural interface satisfied by any document database adapter.

    Collections are addressed by slash-separated paths, so a sub-collection
    of a job is ``"evaluationJobs/<job_id>/testResults"``. Documents are plain
    JSON-compatible dicts. Mutating operations that take ``require`` apply
    atomically only when the current document matches every filter and
    return whether they were applied.
    """

    async def get(self, collection: str, doc_id: str) -> Document | None: ...

    async def set(
        self, collection: str, doc_id: str, data: Document, merge: bool = False
    ) -> None: ...

    async def create(self, collection: str, doc_id: str, data: Document) -> None: ...

    async def add(self, collection: str, data: Document) -> str: ...

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: Document,
        require: Sequence[Filter] = (),
    ) -> bool: ...

    async def increment(
        self,
        collection: str,
        doc_id: str,
        field: str,
        amount: int = 1,
        require: Sequence[Filter] = (),
    ) -> bool: ...

    async def array_append(
        self,
        collection: str,
        doc_id: str,
        field: str,
        values: Sequence[Any],
        require: Sequence[Filter] = (),
    ) -> bool: ...

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[tuple[str, Document]]: ...
