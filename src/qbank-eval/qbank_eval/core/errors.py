"""Base exception class for all qbank-eval-specific errors."""


class QbankEvalError(Exception):
    """Base class for all qbank-eval errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable
