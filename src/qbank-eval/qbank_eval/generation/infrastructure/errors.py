"""Error types raised by generation infrastructure."""

from qbank_eval.core.errors import QbankEvalError


class UnknownPipelineError(QbankEvalError):
    """Raised when a test case names a pipeline that is not configured."""

    def __init__(self, pipeline: str) -> None:
        self.pipeline = pipeline
        super().__init__(f"Unknown generation pipeline: '{pipeline}'")


class GenerationError(QbankEvalError):
    """Raised when a pipeline call fails or returns an unparseable draft."""

    def __init__(self, pipeline: str, reason: str) -> None:
        self.pipeline = pipeline
        super().__init__(
            f"Failed to generate question with pipeline '{pipeline}': {reason}",
            retriable=True,
        )
