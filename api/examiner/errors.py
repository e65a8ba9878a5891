"""
Error Taxonomy for MCQ Examiner
Every error carries a single human-readable message shown to the user.
"""


class ExamError(Exception):
    """Base class for all exam errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputValidationError(ExamError):
    """Input rejected before any question source call (empty text, no files, bad choice)."""


class InvalidTransitionError(ExamError):
    """Operation not allowed in the current exam phase."""


class QuestionSourceError(ExamError):
    """The question source could not produce a usable question set."""


class ParseError(QuestionSourceError):
    """Pasted text could not be decomposed into well-formed questions."""


class GenerationError(QuestionSourceError):
    """Uploaded files could not be turned into well-formed questions."""


class MalformedResultError(QuestionSourceError):
    """A returned question set failed structural validation."""
