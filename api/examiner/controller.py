"""
Exam Controller
Owns the single ExamSession and drives it through the exam state machine.
"""
import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence

from examiner import transitions
from examiner.config import SAMPLE_QUESTIONS
from examiner.errors import InputValidationError, QuestionSourceError
from examiner.schemas import ExamPhase, ExamSession, Question, ScoreReport, SourceFile, SourceKind
from examiner.scoring import score_exam
from examiner.services.ai_engine import QuestionSource

UNKNOWN_ERROR_MESSAGES = {
    SourceKind.PARSE: "An unknown error occurred during parsing.",
    SourceKind.GENERATE: "An unknown error occurred during generation.",
}
TIMEOUT_MESSAGE = "The question source did not respond in time. Please try again."
CANCELLED_MESSAGE = "The question request was cancelled. Please try again."


class ExamController:
    """
    Drives one exam session.

    Only the two submit operations suspend (on the question source call). While
    a call is outstanding the session sits in AWAITING_SOURCE and every other
    mutating operation raises InvalidTransitionError.
    """

    def __init__(self, source: QuestionSource, timeout: Optional[float] = None):
        self.source = source
        self.timeout = timeout
        self.session: ExamSession = transitions.new_session()

    async def submit_pasted_text(self, raw: str) -> ExamSession:
        """
        Parse pasted MCQ text into a new exam.

        Raises:
            InputValidationError: If the text is blank (session stays in SETUP).
            InvalidTransitionError: If not in SETUP.
        """
        if not (raw or "").strip():
            self._reject_input("Please enter some multiple choice questions.")
        self.session = transitions.begin_request(self.session, SourceKind.PARSE)
        return await self._complete(SourceKind.PARSE, lambda: self.source.parse(raw))

    async def submit_generation_request(
        self,
        files: Optional[Sequence[SourceFile]],
        count: int
    ) -> ExamSession:
        """
        Generate a new exam from uploaded files.

        Args:
            files: Files to generate from; None reuses the pending selection.
            count: Number of questions requested (>= 1).

        Raises:
            InputValidationError: If no files are given or count < 1.
            InvalidTransitionError: If not in SETUP.
        """
        selected = list(files) if files is not None else list(self.session.files)
        if not selected:
            self._reject_input("Please select at least one file.")
        if count < 1:
            self._reject_input("Please request at least one question.")
        self.session = transitions.begin_request(self.session, SourceKind.GENERATE, selected)
        return await self._complete(
            SourceKind.GENERATE, lambda: self.source.generate(selected, count)
        )

    async def _complete(
        self,
        kind: SourceKind,
        request: Callable[[], Awaitable[List[Question]]]
    ) -> ExamSession:
        try:
            call = request()
            if self.timeout is not None:
                result = await asyncio.wait_for(call, timeout=self.timeout)
            else:
                result = await call
            questions = transitions.validate_question_set(result, kind)
        except QuestionSourceError as e:
            return self._fail(e.message)
        except asyncio.TimeoutError:
            return self._fail(TIMEOUT_MESSAGE)
        except asyncio.CancelledError:
            self._fail(CANCELLED_MESSAGE)
            raise
        except Exception as e:
            print(f"[Controller] Unexpected {kind.value} failure: {e!r}")
            return self._fail(str(e) or UNKNOWN_ERROR_MESSAGES[kind])

        self.session = transitions.accept_questions(self.session, questions)
        print(f"[Controller] Exam ready with {len(questions)} questions")
        return self.session

    def _fail(self, message: str) -> ExamSession:
        print(f"[Controller] Request failed: {message}")
        self.session = transitions.reject_request(self.session, message)
        return self.session

    def _reject_input(self, message: str) -> None:
        self.session = transitions.reject_input(self.session, message)
        raise InputValidationError(message)

    def select_files(self, files: Sequence[SourceFile]) -> ExamSession:
        self.session = transitions.select_files(self.session, files)
        return self.session

    def start_sample_exam(self) -> ExamSession:
        """Start the built-in four question exam without calling the source."""
        questions = [Question(**item) for item in SAMPLE_QUESTIONS]
        self.session = transitions.start_exam(self.session, questions)
        return self.session

    def select_answer(self, choice: str) -> ExamSession:
        self.session = transitions.select_answer(self.session, choice)
        return self.session

    def next_question(self) -> ExamSession:
        self.session = transitions.next_question(self.session)
        return self.session

    def previous_question(self) -> ExamSession:
        self.session = transitions.previous_question(self.session)
        return self.session

    def finish(self) -> ExamSession:
        self.session = transitions.finish(self.session)
        return self.session

    def restart(self) -> ExamSession:
        self.session = transitions.restart(self.session)
        return self.session

    def score(self) -> ScoreReport:
        """Score the session; only available once the exam is finished."""
        transitions.require_phase(self.session, ExamPhase.RESULTS)
        return score_exam(self.session.questions, self.session.answers)
