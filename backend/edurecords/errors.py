"""Exception types raised by records, services and the content codec.

Every failure surfaces to the caller unchanged; only the HTTP layer in
`main.py` translates these into responses.
"""

from typing import Optional


class RecordError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(RecordError, ValueError):
    """An input violates a record invariant.

    `field` names the invariant that failed so callers can report it
    without parsing the message.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class BoundsError(RecordError, IndexError):
    """An operation addressed a position past a fixed limit."""


class RecordNotFoundError(RecordError, LookupError):
    """No student or test is registered under the requested key."""


class QuestionNotFoundError(RecordError, LookupError):
    """The test has no content entry for the requested question number."""


class AnswerKeyMissingError(RecordError, LookupError):
    """A content entry exists but holds no question/answer pair."""


class DuplicateRecordError(RecordError):
    """A record with the same key is already registered."""
