"""QuestionDraft — the multiple-choice question returned by a generation pipeline."""

import string

from pydantic import BaseModel, ConfigDict, Field

OPTION_LETTERS = string.ascii_uppercase[:5]


class QuestionDraft(BaseModel):
    """Immutable draft as produced by a pipeline.

    Pipelines disagree on shape: ``options`` may be a list or a mapping of
    letter to text, and ``correct_answer`` may be an index or a letter. Use
    ``options_array`` and ``correct_answer_index`` for a normalized view.
    """

    model_config = ConfigDict(frozen=True)

    stem: str = ""
    lead_in: str = ""
    options: list[str] | dict[str, str] = Field(default_factory=list)
    correct_answer: int | str | None = None
    explanation: str = ""

    @property
    def options_array(self) -> list[str]:
        if isinstance(self.options, dict):
            return [self.options[key] for key in OPTION_LETTERS if key in self.options]
        return list(self.options)

    @property
    def option_count(self) -> int:
        return len(self.options)

    @property
    def correct_answer_index(self) -> int | None:
        answer = self.correct_answer
        if isinstance(answer, int):
            return answer
        if isinstance(answer, str) and len(answer.strip()) == 1:
            letter = answer.strip().upper()
            if letter.isalpha():
                return ord(letter) - ord("A")
        return None

    @property
    def correct_answer_letter(self) -> str | None:
        index = self.correct_answer_index
        if index is None or index < 0:
            return None
        return chr(ord("A") + index)

    @property
    def has_correct_answer(self) -> bool:
        return self.correct_answer is not None and self.correct_answer != ""
