"""
Data Schemas for MCQ Examiner
Pydantic models for the question/answer data model, the exam session and scoring output.
"""
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ExamPhase(str, Enum):
    """Finite set of phases an exam session moves through."""
    SETUP = "setup"
    AWAITING_SOURCE = "awaiting_source"
    EXAM = "exam"
    RESULTS = "results"


class SourceKind(str, Enum):
    """Which question source call an AWAITING_SOURCE session is waiting on."""
    PARSE = "parse"
    GENERATE = "generate"


class Outcome(str, Enum):
    """Per-question classification after scoring."""
    CORRECT = "correct"
    WRONG = "wrong"
    UNATTEMPTED = "unattempted"


class Question(BaseModel):
    """Represents a single multiple-choice question with exactly one correct option."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    question: str = Field(..., description="The question text")
    options: Tuple[str, ...] = Field(..., description="Ordered answer choices")
    correct_answer: str = Field(
        ...,
        alias="correctAnswer",
        description="The correct answer, which must match one of the options exactly"
    )

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("question text must not be empty")
        return value

    @field_validator("options")
    @classmethod
    def options_well_formed(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if len(value) < 2:
            raise ValueError("a question needs at least 2 options")
        trimmed = [option.strip() for option in value]
        if not all(trimmed):
            raise ValueError("options must not be blank")
        if len(set(trimmed)) != len(trimmed):
            raise ValueError("options must be unique")
        return value

    @model_validator(mode="after")
    def correct_answer_in_options(self) -> "Question":
        if self.correct_answer not in self.options:
            raise ValueError(
                f"correct answer {self.correct_answer!r} is not one of the options"
            )
        return self


class SourceFile(BaseModel):
    """Opaque file handle passed through to the question source."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Original file name")
    mime_type: str = Field("application/octet-stream", description="MIME type of the content")
    data: bytes = Field(..., repr=False, description="Raw file content")


class ExamSession(BaseModel):
    """
    The complete in-memory state of one exam attempt.

    Sessions are immutable; every transition builds a new one, so the
    answer/question length invariant is checked on each construction.
    """
    model_config = ConfigDict(frozen=True)

    phase: ExamPhase = ExamPhase.SETUP
    source_kind: Optional[SourceKind] = None
    questions: Tuple[Question, ...] = ()
    answers: Tuple[Optional[str], ...] = ()
    cursor: int = 0
    error: Optional[str] = None
    files: Tuple[SourceFile, ...] = ()

    @model_validator(mode="after")
    def check_invariants(self) -> "ExamSession":
        if len(self.answers) != len(self.questions):
            raise ValueError("answers must have one slot per question")
        for question, answer in zip(self.questions, self.answers):
            if answer is not None and answer not in question.options:
                raise ValueError(f"answer {answer!r} is not an option of {question.question!r}")
        if (self.phase == ExamPhase.AWAITING_SOURCE) != (self.source_kind is not None):
            raise ValueError("source_kind is set exactly while awaiting a source")
        if self.phase == ExamPhase.EXAM:
            if not self.questions:
                raise ValueError("an exam needs at least one question")
            if not 0 <= self.cursor < len(self.questions):
                raise ValueError("cursor out of range")
        return self

    @property
    def current_question(self) -> Optional[Question]:
        if self.phase != ExamPhase.EXAM:
            return None
        return self.questions[self.cursor]


class QuestionResult(BaseModel):
    """Scored view of one question, annotated with the right answer."""
    number: int = Field(..., description="1-based question number")
    question: str
    options: List[str]
    user_answer: Optional[str] = None
    correct_answer: str
    outcome: Outcome


class ScoreReport(BaseModel):
    """Aggregate statistics for a finished exam."""
    total: int
    correct_count: int
    wrong_count: int
    attempted_count: int
    unattempted_count: int
    percentage: int
    results: List[QuestionResult] = Field(default_factory=list)


class DraftQuestion(BaseModel):
    """Loose question shape requested from the AI model before validation."""
    question: str = Field(..., description="The question text.")
    options: List[str] = Field(..., description="An array of possible answers.")
    correct_answer: str = Field(
        ..., description="The correct answer, which must match one of the options."
    )


class QuestionBatch(BaseModel):
    """Structured output schema for a question source call."""
    items: List[DraftQuestion] = Field(..., description="List of questions")


class QuestionView(BaseModel):
    """The question under the cursor, without its correct answer."""
    number: int
    question: str
    options: List[str]
    selected: Optional[str] = None


class SessionView(BaseModel):
    """Read-only projection of an ExamSession for rendering."""
    phase: ExamPhase
    source_kind: Optional[SourceKind] = None
    error: Optional[str] = None
    question_count: int = 0
    answered_count: int = 0
    current: Optional[QuestionView] = None
    selected_files: List[str] = Field(default_factory=list)

    @classmethod
    def from_session(cls, session: ExamSession) -> "SessionView":
        current = None
        question = session.current_question
        if question is not None:
            current = QuestionView(
                number=session.cursor + 1,
                question=question.question,
                options=list(question.options),
                selected=session.answers[session.cursor],
            )
        return cls(
            phase=session.phase,
            source_kind=session.source_kind,
            error=session.error,
            question_count=len(session.questions),
            answered_count=sum(1 for answer in session.answers if answer is not None),
            current=current,
            selected_files=[file.name for file in session.files],
        )
