"""Quiz models: generated questions and scored answers."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator


class QuizQuestion(BaseModel):
    """A multiple-choice question with exactly four options."""

    model_config = ConfigDict(frozen=True)

    question: StrictStr = Field(min_length=1)
    options: list[StrictStr] = Field(min_length=4, max_length=4)
    correct_answer: StrictInt = Field(ge=0, le=3, description="Index into ``options``.")
    explanation: StrictStr | None = None

    @field_validator("question")
    @classmethod
    def _question_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("question must not be blank")
        return value


class QuizResult(BaseModel):
    """Questions generated from one document."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    document_name: str
    questions: list[QuizQuestion]


class AnswerResult(BaseModel):
    """Outcome for one answered question."""

    model_config = ConfigDict(frozen=True)

    question_index: int
    user_answer: int
    correct_answer: int
    is_correct: bool
    explanation: str | None = None


class QuizScore(BaseModel):
    """Aggregate score for a set of answers."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0)
    total_questions: int = Field(ge=0)
    percentage: int = Field(ge=0, le=100)
    results: list[AnswerResult] = Field(default_factory=list)
