"""Error types raised by document store adapters."""

from qbank_eval.core.errors import QbankEvalError


class StoreError(QbankEvalError):
    """Raised when the document store cannot be read or written."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Document store failure: {reason}", retriable=True)


class DocumentNotFoundError(QbankEvalError):
    """Raised when an update targets a document that does not exist."""

    def __init__(self, collection: str, doc_id: str) -> None:
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document not found: {collection}/{doc_id}")


class DocumentExistsError(QbankEvalError):
    """Raised when a create targets a document id that is already taken."""

    def __init__(self, collection: str, doc_id: str) -> None:
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document already exists: {collection}/{doc_id}")
