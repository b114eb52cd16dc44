"""Error types raised by the job repository."""

from qbank_eval.core.errors import QbankEvalError


class JobNotFoundError(QbankEvalError):
    """Raised when a job id does not resolve to a stored job."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Evaluation job not found: {job_id}")


class TerminalJobError(QbankEvalError):
    """Raised when a mutation targets a job that already reached a terminal status."""

    def __init__(self, job_id: str, status: str) -> None:
        self.job_id = job_id
        self.status = status
        super().__init__(f"Evaluation job '{job_id}' is already {status}")


class TestResultExistsError(QbankEvalError):
    """Raised when a test result is written a second time."""

    def __init__(self, job_id: str, test_index: int) -> None:
        self.job_id = job_id
        self.test_index = test_index
        super().__init__(
            f"Test result {test_index} of job '{job_id}' has already been stored"
        )
