"""
Pytest Configuration & Shared Fixtures
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from examiner.config import SAMPLE_QUESTIONS
from examiner.schemas import DraftQuestion, Question, QuestionBatch, SourceFile


class FakeQuestionSource:
    """In-memory QuestionSource; set result/error, or a gate to hold calls in flight."""

    def __init__(self):
        self.result = None
        self.error = None
        self.gate = None
        self.parse_calls = []
        self.generate_calls = []

    async def parse(self, raw_text):
        self.parse_calls.append(raw_text)
        return await self._respond()

    async def generate(self, files, count):
        self.generate_calls.append((list(files), count))
        return await self._respond()

    async def _respond(self):
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def sample_questions():
    """The four built-in questions (Paris / 4 / Mars / Pacific Ocean)."""
    return [Question(**item) for item in SAMPLE_QUESTIONS]


@pytest.fixture
def fake_source(sample_questions):
    """QuestionSource double that returns the sample questions by default."""
    source = FakeQuestionSource()
    source.result = sample_questions
    return source


@pytest.fixture
def sample_file():
    """A small text file handle for generation requests."""
    return SourceFile(name="notes.txt", mime_type="text/plain", data=b"Photosynthesis makes glucose.")


@pytest.fixture
def sample_pdf_file():
    """A dummy PDF file handle (not a real PDF, but sufficient for testing)."""
    return SourceFile(name="test.pdf", mime_type="application/pdf", data=b"%PDF-1.4\n%%EOF")


def _make_response(drafts):
    """Mock Gemini response whose parsed payload is a QuestionBatch."""
    response = MagicMock()
    response.parsed = QuestionBatch(items=drafts)
    return response


def _make_draft(question, options=("A", "B", "C", "D"), correct="A"):
    return DraftQuestion(question=question, options=list(options), correct_answer=correct)


@pytest.fixture
def mock_gemini_client():
    """Mock Gemini client to avoid real API calls."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(
        return_value=_make_response([
            _make_draft("What is the capital of France?", ["Berlin", "Madrid", "Paris", "Rome"], "Paris"),
            _make_draft("What is 2 + 2?", ["3", "4", "5", "6"], "4"),
        ])
    )
    return client
