"""MCQ Examiner: exam state machine, scoring and Gemini question sources."""

__version__ = "1.0.0"
