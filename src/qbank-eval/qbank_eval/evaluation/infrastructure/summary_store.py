"""SummaryRepository — evaluation summaries stored as documents keyed by job id."""

from qbank_eval.evaluation.domain.summary import EvaluationSummary
from qbank_eval.store.domain.document_store import DocumentStore

SUMMARIES = "evaluationSummaries"


class SummaryRepository:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def write(self, summary: EvaluationSummary) -> None:
        await self._store.set(SUMMARIES, summary.job_id, summary.model_dump(mode="json"))

    async def get(self, job_id: str) -> EvaluationSummary | None:
        document = await self._store.get(SUMMARIES, job_id)
        if document is None:
            return None
        return EvaluationSummary.model_validate(document)
