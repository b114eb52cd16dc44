"""Error types raised by scoring infrastructure."""

from qbank_eval.core.errors import QbankEvalError


class ScoringError(QbankEvalError):
    """Raised when the scorer cannot be invoked or returns an unparseable response."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to score question: {reason}", retriable=True)
