"""
AI Engine Service
Question sources backed by Google Gemini: parsing pasted MCQs and generating MCQs from files.
"""
from typing import List, Optional, Protocol, Sequence, Set

from google import genai
from google.genai import types

from examiner.config import MAX_BATCH_SIZE, MODEL_NAME, get_api_key, get_prompt
from examiner.errors import GenerationError, ParseError
from examiner.schemas import DraftQuestion, Question, QuestionBatch, SourceFile, SourceKind
from examiner.transitions import validate_question_set

PARSE_FAILURE_MESSAGE = (
    "Failed to parse questions. The AI model could not understand the input format."
)
GENERATE_FAILURE_MESSAGE = (
    "Failed to generate questions. The AI model could not process the provided files."
)


class QuestionSource(Protocol):
    """Turns raw input (text or files) into a validated question set."""

    async def parse(self, raw_text: str) -> List[Question]:
        ...

    async def generate(self, files: Sequence[SourceFile], count: int) -> List[Question]:
        ...


def calculate_batches(total_count: int, max_batch: int = MAX_BATCH_SIZE) -> List[int]:
    """
    Splits total_count into batch sizes capped by max_batch.

    Args:
        total_count: Total number of questions requested.
        max_batch: Maximum number of questions per batch.

    Returns:
        A list of batch sizes (e.g., 25 -> [10, 10, 5]).

    Raises:
        ValueError: If total_count or max_batch is not positive.
    """
    if total_count <= 0:
        raise ValueError("total_count must be positive")
    if max_batch <= 0:
        raise ValueError("max_batch must be positive")

    batches: List[int] = []
    remaining = total_count
    while remaining > 0:
        batch_size = min(max_batch, remaining)
        batches.append(batch_size)
        remaining -= batch_size
    return batches


def normalize_topic(text: str) -> str:
    """Normalize question text for deduplication across batches."""
    return " ".join(text.strip().lower().split())


def get_client(api_key: Optional[str] = None) -> genai.Client:
    """
    Creates and returns a configured Gemini API client.

    Returns:
        genai.Client: Authenticated Gemini client.

    Raises:
        ValueError: If API key is not configured.
    """
    resolved_key = api_key.strip() if api_key else ""
    if not resolved_key:
        resolved_key = get_api_key()
    return genai.Client(api_key=resolved_key)


def to_part(file: SourceFile) -> types.Part:
    """Wrap an uploaded file as an inline Gemini content part."""
    return types.Part.from_bytes(data=file.data, mime_type=file.mime_type)


def _structured_config() -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        response_mime_type="application/json",
        response_schema=QuestionBatch,
    )


class GeminiQuestionSource:
    """QuestionSource that delegates parsing and generation to Gemini."""

    def __init__(
        self,
        client: Optional[genai.Client] = None,
        api_key: Optional[str] = None,
        max_batch: int = MAX_BATCH_SIZE
    ):
        self._client = client
        self._api_key = api_key
        self.max_batch = max_batch

    @property
    def client(self) -> genai.Client:
        # Created on first use so the app can start without GEMINI_API_KEY.
        if self._client is None:
            self._client = get_client(self._api_key)
        return self._client

    async def _request_batch(self, contents: list) -> List[DraftQuestion]:
        response = await self.client.aio.models.generate_content(
            model=MODEL_NAME,
            contents=contents,
            config=_structured_config(),
        )
        parsed = response.parsed
        if parsed is None:
            raise ValueError("Empty response from Gemini")
        return list(parsed.items)

    async def parse(self, raw_text: str) -> List[Question]:
        """
        Parses pasted MCQ text (correct option marked with '*') into questions.

        Raises:
            ParseError: If the model call fails or returns nothing usable.
            MalformedResultError: If any returned question is invalid.
        """
        print("\n[Parser] Parsing pasted questions...")
        prompt = get_prompt("parser", text=raw_text)

        try:
            drafts = await self._request_batch([prompt])
        except Exception as e:
            print(f"[Parser] Error: {e}")
            raise ParseError(PARSE_FAILURE_MESSAGE) from e

        questions = list(validate_question_set(drafts, SourceKind.PARSE))
        print(f"[Parser] Parsed {len(questions)} questions")
        return questions

    async def generate(self, files: Sequence[SourceFile], count: int) -> List[Question]:
        """
        Generates count questions from the given files, in batches.

        Args:
            files: Uploaded source material.
            count: Number of questions requested.

        Returns:
            Validated questions; duplicates across batches are dropped, so
            fewer than count may come back.

        Raises:
            GenerationError: If the model call fails or returns nothing usable.
            MalformedResultError: If any returned question is invalid.
        """
        print(f"\n[Generator] Generating {count} questions from {len(files)} file(s)...")

        try:
            batch_sizes = calculate_batches(count, self.max_batch)
            parts = [to_part(file) for file in files]
        except ValueError as e:
            raise GenerationError(GENERATE_FAILURE_MESSAGE) from e

        aggregated: List[DraftQuestion] = []
        existing_topics: Set[str] = set()

        for index, batch_size in enumerate(batch_sizes, start=1):
            batch_info = f"Batch {index}/{len(batch_sizes)} (size {batch_size})"
            avoid_topics = "; ".join(sorted(existing_topics)) if existing_topics else "none"
            prompt = get_prompt(
                "generator",
                question_count=batch_size,
                batch_info=batch_info,
                avoid_topics=avoid_topics,
            )

            try:
                drafts = await self._request_batch([*parts, prompt])
            except Exception as e:
                print(f"[Generator] Error in {batch_info}: {e}")
                raise GenerationError(GENERATE_FAILURE_MESSAGE) from e

            for draft in drafts:
                normalized = normalize_topic(draft.question)
                if normalized in existing_topics:
                    continue
                existing_topics.add(normalized)
                aggregated.append(draft)

        questions = list(validate_question_set(aggregated, SourceKind.GENERATE))
        if len(questions) < count:
            print(
                f"[Generator] Generated {len(questions)} of {count} questions. "
                "Partial success due to model output variability."
            )
        return questions
