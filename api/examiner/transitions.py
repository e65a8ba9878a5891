"""
Exam Transitions
Pure functions that take a whole ExamSession and return the whole next one.
"""
from typing import Any, Iterable, Optional, Sequence, Tuple

from pydantic import BaseModel, ValidationError

from examiner.errors import (
    GenerationError,
    InputValidationError,
    InvalidTransitionError,
    MalformedResultError,
    ParseError,
)
from examiner.schemas import ExamPhase, ExamSession, Question, SourceFile, SourceKind

EMPTY_RESULT_MESSAGES = {
    SourceKind.PARSE: "Could not parse the questions. Please check the format and try again.",
    SourceKind.GENERATE: "Could not generate questions from the provided files.",
}


def _evolve(session: ExamSession, **changes: Any) -> ExamSession:
    # Rebuild through the constructor so the session invariants are re-checked.
    return ExamSession(**{**dict(session), **changes})


def require_phase(session: ExamSession, *phases: ExamPhase) -> None:
    """Raise InvalidTransitionError unless the session is in one of phases."""
    if session.phase in phases:
        return
    if session.phase == ExamPhase.AWAITING_SOURCE:
        raise InvalidTransitionError("A question request is already in progress.")
    allowed = ", ".join(phase.value for phase in phases)
    raise InvalidTransitionError(
        f"Not allowed while in {session.phase.value} (expected {allowed})."
    )


def new_session() -> ExamSession:
    """Fresh SETUP session with no questions, answers, files or error."""
    return ExamSession()


def select_files(session: ExamSession, files: Sequence[SourceFile]) -> ExamSession:
    """Record the user's pending file selection."""
    require_phase(session, ExamPhase.SETUP)
    return _evolve(session, files=tuple(files))


def reject_input(session: ExamSession, message: str) -> ExamSession:
    """Stay in SETUP with a synchronous input validation message."""
    require_phase(session, ExamPhase.SETUP)
    return _evolve(session, error=message)


def begin_request(
    session: ExamSession,
    kind: SourceKind,
    files: Optional[Sequence[SourceFile]] = None
) -> ExamSession:
    """SETUP -> AWAITING_SOURCE; clears any previous error."""
    require_phase(session, ExamPhase.SETUP)
    changes = {"phase": ExamPhase.AWAITING_SOURCE, "source_kind": kind, "error": None}
    if files is not None:
        changes["files"] = tuple(files)
    return _evolve(session, **changes)


def accept_questions(session: ExamSession, questions: Sequence[Question]) -> ExamSession:
    """AWAITING_SOURCE -> EXAM with a fresh all-unattempted answer log."""
    require_phase(session, ExamPhase.AWAITING_SOURCE)
    return _evolve(
        session,
        phase=ExamPhase.EXAM,
        source_kind=None,
        questions=tuple(questions),
        answers=(None,) * len(questions),
        cursor=0,
        error=None,
    )


def reject_request(session: ExamSession, message: str) -> ExamSession:
    """AWAITING_SOURCE -> SETUP with the failure message attached."""
    require_phase(session, ExamPhase.AWAITING_SOURCE)
    return _evolve(
        session,
        phase=ExamPhase.SETUP,
        source_kind=None,
        questions=(),
        answers=(),
        cursor=0,
        error=message,
    )


def start_exam(session: ExamSession, questions: Sequence[Question]) -> ExamSession:
    """SETUP -> EXAM directly with an already validated question set."""
    require_phase(session, ExamPhase.SETUP)
    if not questions:
        raise InputValidationError("An exam needs at least one question.")
    return _evolve(
        session,
        phase=ExamPhase.EXAM,
        questions=tuple(questions),
        answers=(None,) * len(questions),
        cursor=0,
        error=None,
    )


def select_answer(session: ExamSession, choice: str) -> ExamSession:
    """Record (or overwrite) the answer for the question under the cursor."""
    require_phase(session, ExamPhase.EXAM)
    question = session.questions[session.cursor]
    if choice not in question.options:
        raise InputValidationError(f"{choice!r} is not an option for this question.")
    answers = list(session.answers)
    answers[session.cursor] = choice
    return _evolve(session, answers=tuple(answers))


def next_question(session: ExamSession) -> ExamSession:
    require_phase(session, ExamPhase.EXAM)
    if session.cursor >= len(session.questions) - 1:
        return session
    return _evolve(session, cursor=session.cursor + 1)


def previous_question(session: ExamSession) -> ExamSession:
    require_phase(session, ExamPhase.EXAM)
    if session.cursor <= 0:
        return session
    return _evolve(session, cursor=session.cursor - 1)


def finish(session: ExamSession) -> ExamSession:
    """EXAM -> RESULTS; unattempted questions are allowed."""
    require_phase(session, ExamPhase.EXAM)
    return _evolve(session, phase=ExamPhase.RESULTS)


def restart(session: ExamSession) -> ExamSession:
    """Discard everything and return to SETUP. Rejected while a request is in flight."""
    require_phase(session, ExamPhase.SETUP, ExamPhase.EXAM, ExamPhase.RESULTS)
    return new_session()


def validate_question_set(
    items: Optional[Iterable[Any]],
    kind: SourceKind
) -> Tuple[Question, ...]:
    """
    Re-validates a question source result before it enters a session.

    Args:
        items: Questions, dicts or draft models returned by the source.
        kind: Which source call produced the items.

    Returns:
        Tuple of validated Question objects.

    Raises:
        ParseError / GenerationError: If the result is empty.
        MalformedResultError: If any item fails validation (whole batch rejected).
    """
    items = list(items or [])
    if not items:
        failure = ParseError if kind == SourceKind.PARSE else GenerationError
        raise failure(EMPTY_RESULT_MESSAGES[kind])

    validated = []
    for index, item in enumerate(items, start=1):
        data = item.model_dump() if isinstance(item, BaseModel) else item
        try:
            validated.append(Question.model_validate(data))
        except ValidationError as e:
            detail = e.errors()[0]["msg"] if e.errors() else str(e)
            raise MalformedResultError(
                f"Question {index} in the result is malformed: {detail}"
            ) from e
    return tuple(validated)
