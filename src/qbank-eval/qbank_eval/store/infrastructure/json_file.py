"""JsonFileDocumentStore — InMemoryDocumentStore persisted to a single JSON file."""

import asyncio
import json
import os
import tempfile
from pathlib import Path

from qbank_eval.store.domain.document_store import Document
from qbank_eval.store.infrastructure.errors import StoreError
from qbank_eval.store.infrastructure.memory import InMemoryDocumentStore


class JsonFileDocumentStore(InMemoryDocumentStore):
    """Durable store for CLI use: every mutation rewrites the file atomically.

    A fresh process pointed at the same file sees every job, result and log
    written by earlier invocations, which is what resumption relies on.

    The file is written in a worker thread so in-flight test cases keep
    running. A mutation becomes visible in memory only after its write
    succeeded; a failed write raises StoreError and leaves both copies at
    the previous version.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        super().__init__(data=_read(path))

    async def _commit(self, collection: str, doc_id: str, doc: Document) -> None:
        snapshot = {name: dict(docs) for name, docs in self._collections.items()}
        snapshot.setdefault(collection, {})[doc_id] = doc
        await asyncio.to_thread(_write, self._path, snapshot)
        await super()._commit(collection, doc_id, doc)


def _read(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise StoreError(reason=f"cannot read {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise StoreError(reason=f"{path} does not contain a collection mapping")
    return raw


def _write(path: Path, snapshot: dict[str, dict[str, Document]]) -> None:
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(snapshot, fh, indent=2, sort_keys=True)
        os.replace(tmp_name, path)
    except (OSError, TypeError, ValueError) as exc:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise StoreError(reason=f"cannot write {path}: {exc}") from exc
