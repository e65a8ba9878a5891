"""
Test AI Engine
Tests the Gemini question source against a mocked client.
"""
import asyncio
import os
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from examiner.config import DEFAULT_MCQ_TEXT, MODEL_NAME
from examiner.errors import GenerationError, MalformedResultError, ParseError
from examiner.schemas import DraftQuestion, Question, QuestionBatch
from examiner.services.ai_engine import (
    GENERATE_FAILURE_MESSAGE,
    PARSE_FAILURE_MESSAGE,
    GeminiQuestionSource,
)


def response_with(*drafts):
    response = MagicMock()
    response.parsed = QuestionBatch(items=list(drafts))
    return response


def draft(question, correct="A"):
    return DraftQuestion(question=question, options=["A", "B", "C", "D"], correct_answer=correct)


def test_parse_returns_validated_questions(mock_gemini_client):
    source = GeminiQuestionSource(client=mock_gemini_client)

    questions = asyncio.run(source.parse(DEFAULT_MCQ_TEXT))

    assert all(isinstance(question, Question) for question in questions)
    assert [question.correct_answer for question in questions] == ["Paris", "4"]

    call = mock_gemini_client.aio.models.generate_content.call_args
    assert call.kwargs["model"] == MODEL_NAME
    assert DEFAULT_MCQ_TEXT in call.kwargs["contents"][0]
    assert call.kwargs["config"].response_mime_type == "application/json"


def test_parse_empty_response(mock_gemini_client):
    empty = MagicMock()
    empty.parsed = None
    mock_gemini_client.aio.models.generate_content = AsyncMock(return_value=empty)
    source = GeminiQuestionSource(client=mock_gemini_client)

    with pytest.raises(ParseError, match=PARSE_FAILURE_MESSAGE):
        asyncio.run(source.parse("1. Q?"))


def test_parse_wraps_api_errors(mock_gemini_client):
    mock_gemini_client.aio.models.generate_content = AsyncMock(side_effect=RuntimeError("quota"))
    source = GeminiQuestionSource(client=mock_gemini_client)

    with pytest.raises(ParseError) as excinfo:
        asyncio.run(source.parse("1. Q?"))

    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_parse_rejects_malformed_question(mock_gemini_client):
    mock_gemini_client.aio.models.generate_content = AsyncMock(
        return_value=response_with(draft("Q1?"), draft("Q2?", correct="E"))
    )
    source = GeminiQuestionSource(client=mock_gemini_client)

    with pytest.raises(MalformedResultError):
        asyncio.run(source.parse("1. Q?"))


def test_parse_with_no_questions(mock_gemini_client):
    mock_gemini_client.aio.models.generate_content = AsyncMock(return_value=response_with())
    source = GeminiQuestionSource(client=mock_gemini_client)

    with pytest.raises(ParseError):
        asyncio.run(source.parse("not questions"))


def test_missing_api_key_surfaces_as_parse_error():
    """The client is created lazily, so a missing key fails the call, not startup."""
    source = GeminiQuestionSource()
    with patch.dict(os.environ, {}, clear=True):
        with patch("examiner.config.load_dotenv"):
            with pytest.raises(ParseError) as excinfo:
                asyncio.run(source.parse("1. Q?"))

    assert isinstance(excinfo.value.__cause__, ValueError)


def test_generate_batches_and_deduplicates(mock_gemini_client, sample_pdf_file):
    mock_gemini_client.aio.models.generate_content = AsyncMock(side_effect=[
        response_with(draft("Question 1?"), draft("Question 2?")),
        response_with(draft("  question 1? "), draft("Question 3?")),
        response_with(draft("Question 4?")),
    ])
    source = GeminiQuestionSource(client=mock_gemini_client, max_batch=2)

    questions = asyncio.run(source.generate([sample_pdf_file], 5))

    assert [question.question for question in questions] == [
        "Question 1?", "Question 2?", "Question 3?", "Question 4?"
    ]
    calls = mock_gemini_client.aio.models.generate_content.call_args_list
    assert len(calls) == 3

    first_contents = calls[0].kwargs["contents"]
    assert first_contents[0].inline_data.mime_type == "application/pdf"
    assert first_contents[0].inline_data.data == sample_pdf_file.data
    assert "Batch 1/3 (size 2)" in first_contents[-1]

    second_prompt = calls[1].kwargs["contents"][-1]
    assert "question 1?" in second_prompt
    assert "Batch 2/3 (size 2)" in second_prompt


def test_generate_wraps_api_errors(mock_gemini_client, sample_file):
    mock_gemini_client.aio.models.generate_content = AsyncMock(side_effect=RuntimeError("boom"))
    source = GeminiQuestionSource(client=mock_gemini_client)

    with pytest.raises(GenerationError, match=GENERATE_FAILURE_MESSAGE):
        asyncio.run(source.generate([sample_file], 3))


def test_generate_invalid_count(mock_gemini_client, sample_file):
    source = GeminiQuestionSource(client=mock_gemini_client)

    with pytest.raises(GenerationError):
        asyncio.run(source.generate([sample_file], 0))

    mock_gemini_client.aio.models.generate_content.assert_not_called()
