"""
Configuration Module for MCQ Examiner
Centralizes environment variables, API settings, prompt templates and the sample exam.
"""
import os
from typing import Optional

from dotenv import load_dotenv

# --- API Configuration ---
MODEL_NAME = "gemini-2.0-flash"
MAX_BATCH_SIZE = 10
DEFAULT_QUESTION_COUNT = 5


def get_api_key() -> str:
    """
    Validates and returns the Gemini API Key.

    Raises:
        ValueError: If GEMINI_API_KEY is not found in environment.
    """
    # Load environment variables fresh (for testing and reload scenarios)
    load_dotenv()
    api_key = os.getenv("GEMINI_API_KEY")

    if not api_key:
        raise ValueError(
            "GEMINI_API_KEY not found. "
            "Please create a .env file with your API key."
        )
    return api_key


def get_source_timeout() -> Optional[float]:
    """
    Returns the question source timeout in seconds, or None to wait indefinitely.

    Raises:
        ValueError: If EXAM_SOURCE_TIMEOUT is set but not a positive number.
    """
    load_dotenv()
    raw = os.getenv("EXAM_SOURCE_TIMEOUT", "").strip()
    if not raw:
        return None
    timeout = float(raw)
    if timeout <= 0:
        raise ValueError("EXAM_SOURCE_TIMEOUT must be positive")
    return timeout


# --- Sample Exam ---
DEFAULT_MCQ_TEXT = """1. What is the capital of France?
a) Berlin
b) Madrid
c) Paris*
d) Rome

2. What is 2 + 2?
a) 3
b) 4*
c) 5
d) 6

3. Which planet is known as the Red Planet?
a) Earth
b) Mars*
c) Jupiter
d) Saturn

4. What is the largest ocean on Earth?
a) Atlantic Ocean
b) Indian Ocean
c) Arctic Ocean
d) Pacific Ocean*
"""

SAMPLE_QUESTIONS = [
    {
        "question": "What is the capital of France?",
        "options": ["Berlin", "Madrid", "Paris", "Rome"],
        "correct_answer": "Paris",
    },
    {
        "question": "What is 2 + 2?",
        "options": ["3", "4", "5", "6"],
        "correct_answer": "4",
    },
    {
        "question": "Which planet is known as the Red Planet?",
        "options": ["Earth", "Mars", "Jupiter", "Saturn"],
        "correct_answer": "Mars",
    },
    {
        "question": "What is the largest ocean on Earth?",
        "options": ["Atlantic Ocean", "Indian Ocean", "Arctic Ocean", "Pacific Ocean"],
        "correct_answer": "Pacific Ocean",
    },
]

# --- Prompt Templates ---
PROMPT_TEMPLATES = {
    "parser": """Parse the following text which contains multiple choice questions. For each question, identify the question itself, all the possible options, and the correct answer.
The correct answer is typically indicated by an asterisk (*) at the end of the option. The option text in the output should not include the asterisk.
Each item must have 'question' (string), 'options' (an array of strings), and 'correct_answer' (a string that exactly matches one of the options).
Do not include the letter prefix (e.g., "a)", "b)") in the option text.

Here is the text:
---
{text}
---""",

    "generator": """You are an expert in creating educational content. Based on the content of the provided files (which can be text, images, or documents), generate {question_count} multiple-choice questions (MCQs).

Batch context: {batch_info}
Questions already written (do not repeat them): {avoid_topics}

Rules:
1. Each question must test a key concept from the provided materials.
2. Each question has exactly 4 distinct options.
3. 'correct_answer' must be a string that exactly matches one of the options.
4. Do not include letter prefixes (e.g., "a)", "b)") in the option text.

Output JSON following the schema only."""
}


def get_prompt(kind: str, **kwargs) -> str:
    """
    Retrieves a formatted prompt template for a question source call.

    Args:
        kind: Type of prompt ("parser" or "generator").
        **kwargs: Variables to format into the template.

    Returns:
        Formatted prompt string.

    Raises:
        KeyError: If kind is not found in templates.
    """
    if kind not in PROMPT_TEMPLATES:
        raise KeyError(f"Prompt template '{kind}' not found.")

    return PROMPT_TEMPLATES[kind].format(**kwargs)
