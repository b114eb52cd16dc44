"""InMemoryDocumentStore — a process-local DocumentStore for tests and the CLI."""

import asyncio
import copy
import operator
import uuid
from collections.abc import Callable, Sequence
from typing import Any

from qbank_eval.store.domain.document_store import Document, Filter
from qbank_eval.store.infrastructure.errors import (
    DocumentExistsError,
    DocumentNotFoundError,
)

_MISSING = object()

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda value, options: value in options,
}


class InMemoryDocumentStore:
    """Keeps every collection in a dict of deep-copied documents.

    All mutations run under one asyncio.Lock so that increments and
    conditional updates are atomic with respect to other coroutines. A
    mutation builds a new version of the document and hands it to
    ``_commit``; stored documents are never changed in place. Reads and
    writes copy documents, so callers never share state with the store.

    Does NOT inherit from DocumentStore (structural typing via Protocol).
    """

    def __init__(self, data: dict[str, dict[str, Document]] | None = None) -> None:
        self._collections: dict[str, dict[str, Document]] = copy.deepcopy(data or {})
        self._lock = asyncio.Lock()

    async def get(self, collection: str, doc_id: str) -> Document | None:
        doc = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def set(
        self, collection: str, doc_id: str, data: Document, merge: bool = False
    ) -> None:
        async with self._lock:
            current = self._collections.get(collection, {}).get(doc_id)
            if merge and current is not None:
                doc = copy.deepcopy(current)
                _deep_merge(doc, copy.deepcopy(data))
            else:
                doc = copy.deepcopy(data)
            await self._commit(collection, doc_id, doc)

    async def create(self, collection: str, doc_id: str, data: Document) -> None:
        async with self._lock:
            if doc_id in self._collections.get(collection, {}):
                raise DocumentExistsError(collection=collection, doc_id=doc_id)
            await self._commit(collection, doc_id, copy.deepcopy(data))

    async def add(self, collection: str, data: Document) -> str:
        doc_id = uuid.uuid4().hex[:20]
        await self.create(collection=collection, doc_id=doc_id, data=data)
        return doc_id

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: Document,
        require: Sequence[Filter] = (),
    ) -> bool:
        async with self._lock:
            doc = copy.deepcopy(self._existing(collection, doc_id))
            if not _matches(doc, require):
                return False
            for path, value in fields.items():
                _set_path(doc, path, copy.deepcopy(value))
            await self._commit(collection, doc_id, doc)
            return True

    async def increment(
        self,
        collection: str,
        doc_id: str,
        field: str,
        amount: int = 1,
        require: Sequence[Filter] = (),
    ) -> bool:
        async with self._lock:
            doc = copy.deepcopy(self._existing(collection, doc_id))
            if not _matches(doc, require):
                return False
            current = _get_path(doc, field)
            base = 0 if current is _MISSING or current is None else current
            _set_path(doc, field, base + amount)
            await self._commit(collection, doc_id, doc)
            return True

    async def array_append(
        self,
        collection: str,
        doc_id: str,
        field: str,
        values: Sequence[Any],
        require: Sequence[Filter] = (),
    ) -> bool:
        async with self._lock:
            doc = copy.deepcopy(self._existing(collection, doc_id))
            if not _matches(doc, require):
                return False
            current = _get_path(doc, field)
            items = [] if current is _MISSING or current is None else list(current)
            items.extend(copy.deepcopy(list(values)))
            _set_path(doc, field, items)
            await self._commit(collection, doc_id, doc)
            return True

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[tuple[str, Document]]:
        rows = [
            (doc_id, copy.deepcopy(doc))
            for doc_id, doc in self._collections.get(collection, {}).items()
            if _matches(doc, filters)
        ]
        if order_by is not None:
            rows.sort(key=lambda row: _sort_key(row[1], order_by), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    def _existing(self, collection: str, doc_id: str) -> Document:
        doc = self._collections.get(collection, {}).get(doc_id)
        if doc is None:
            raise DocumentNotFoundError(collection=collection, doc_id=doc_id)
        return doc

    async def _commit(self, collection: str, doc_id: str, doc: Document) -> None:
        """Install the new version of a document; called with the lock held."""
        self._collections.setdefault(collection, {})[doc_id] = doc


def _get_path(doc: Document, path: str) -> Any:
    node: Any = doc
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _set_path(doc: Document, path: str, value: Any) -> None:
    parts = path.split(".")
    node = doc
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value


def _deep_merge(target: Document, source: Document) -> None:
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value


def _matches(doc: Document, filters: Sequence[Filter]) -> bool:
    for flt in filters:
        value = _get_path(doc, flt.field)
        if value is _MISSING:
            if flt.op != "!=":
                return False
            continue
        try:
            if not _OPERATORS[flt.op](value, flt.value):
                return False
        except TypeError:
            return False
    return True


def _sort_key(doc: Document, path: str) -> tuple[bool, Any]:
    value = _get_path(doc, path)
    missing = value is _MISSING or value is None
    return (missing, None if missing else value)
