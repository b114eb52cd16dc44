"""Error types raised while processing and finalizing evaluation jobs."""

from qbank_eval.core.errors import QbankEvalError


class PermissionDeniedError(QbankEvalError):
    """Raised when a caller may not act on a job."""

    def __init__(self, job_id: str, user_id: str) -> None:
        self.job_id = job_id
        self.user_id = user_id
        super().__init__(
            f"User '{user_id}' may not cancel evaluation job '{job_id}': "
            "only the job owner or an admin can cancel it"
        )


class FinalizationError(QbankEvalError):
    """Raised when a job's results cannot be aggregated and written."""

    def __init__(self, job_id: str, reason: str) -> None:
        self.job_id = job_id
        super().__init__(f"Failed to finalize evaluation job '{job_id}': {reason}")


class BatchProcessingError(QbankEvalError):
    """Raised when a chunk fails at job level; the job has been marked failed."""

    def __init__(self, job_id: str, reason: str) -> None:
        self.job_id = job_id
        super().__init__(f"Failed to process evaluation job '{job_id}': {reason}")
