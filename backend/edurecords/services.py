"""Business logic services used by HTTP controllers and scripts.

This module holds the fallible construction helpers and small service
classes that coordinate the repositories. Services are intentionally
thin: records validate themselves, services register them and log the
outcome.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Generic, List, Optional, TypeVar

from . import models, questions, repositories
from .errors import RecordNotFoundError, ValidationError

logger = logging.getLogger('edurecords.services')

T = TypeVar('T')


class BuildResult(Generic[T]):
    """Outcome of a record construction: either a value or the first violation.

    Attributes:
        ok (bool): Whether construction succeeded.
        value (T | None): The record on success.
        error (ValidationError | None): The first violated invariant on failure.
    """

    def __init__(self, ok: bool, value: Optional[T] = None, error: Optional[ValidationError] = None):
        self._ok = ok
        self._value = value
        self._error = error

    @property
    def ok(self) -> bool:
        return self._ok

    @property
    def value(self) -> Optional[T]:
        return self._value

    @property
    def error(self) -> Optional[ValidationError]:
        return self._error

    @classmethod
    def succeed(cls, value: T) -> BuildResult[T]:
        return cls(ok=True, value=value)

    @classmethod
    def fail(cls, error: ValidationError) -> BuildResult[T]:
        return cls(ok=False, error=error)

    def unwrap(self) -> T:
        """Return the value or raise the stored error."""
        if not self._ok:
            raise self._error
        return self._value

    def __repr__(self) -> str:
        if self._ok:
            return f'BuildResult(ok, {self._value!r})'
        return f'BuildResult(failed, {self._error.field}: {self._error})'


def build_student(**fields: Any) -> BuildResult[models.Student]:
    """Construct a `Student` without raising on invalid input."""
    try:
        return BuildResult.succeed(models.Student(**fields))
    except ValidationError as exc:
        return BuildResult.fail(exc)


def build_test(**fields: Any) -> BuildResult[models.Test]:
    """Construct a `Test` without raising on invalid input."""
    try:
        return BuildResult.succeed(models.Test(**fields))
    except ValidationError as exc:
        return BuildResult.fail(exc)


class StudentService:
    """Register students and apply grade and status changes."""
    def __init__(self, repo: repositories.StudentRepository):
        self.repo = repo

    def register(self, **fields: Any) -> str:
        """Validate and store a student, returning its id.

        Raises ValidationError for the first invariant the input violates.
        """
        result = build_student(**fields)
        if not result.ok:
            logger.warning('student_rejected field=%s reason=%s', result.error.field, result.error)
        student = result.unwrap()
        student_id = self.repo.add(student)
        logger.info('student_registered id=%s class=%s', student_id, student.class_label)
        return student_id

    def get(self, student_id: str) -> models.Student:
        student = self.repo.get(student_id)
        if student is None:
            raise RecordNotFoundError(f'student not found: {student_id}')
        return student

    def advance_grade(self, student_id: str) -> models.Student:
        """Advance a stored student by one grade; BoundsError at the last grade."""
        def _advance(student: models.Student) -> models.Student:
            student.advance_grade()
            return student
        student = self.repo.update(student_id, _advance)
        logger.info('student_advanced id=%s grade=%s', student_id, student.grade)
        return student

    def set_status(self, student_id: str, status: str) -> models.Student:
        """Replace a stored student's status; the old status stays on failure."""
        def _set(student: models.Student) -> models.Student:
            student.status = status
            return student
        student = self.repo.update(student_id, _set)
        logger.info('student_status_changed id=%s status=%s', student_id, student.status.value)
        return student


class TestService:
    """Register tests and answer questions about their contents."""
    __test__ = False

    def __init__(self, repo: repositories.TestRepository):
        self.repo = repo

    def register(self, **fields: Any) -> models.Test:
        """Validate and store a test.

        Raises ValidationError for the first invariant the input violates
        and DuplicateRecordError when the test id is already taken.
        """
        result = build_test(**fields)
        if not result.ok:
            logger.warning('test_rejected field=%s reason=%s', result.error.field, result.error)
        test = self.repo.add(result.unwrap())
        logger.info('test_registered id=%s course=%s questions=%d', test.test_id, test.course.value, len(test.contents))
        return test

    def get(self, test_id: str) -> models.Test:
        test = self.repo.get(test_id)
        if test is None:
            raise RecordNotFoundError(f'test not found: {test_id}')
        return test

    def question(self, test_id: str, question_number: int) -> questions.Question:
        return self.get(test_id).get_question(question_number)

    def question_summary(self, test_id: str) -> List[Dict[str, Any]]:
        """Return number, kind and stem for every question of a test."""
        out = []
        for number, q in sorted(self.get(test_id).all_questions().items()):
            out.append({'question_number': number, 'kind': q.kind, 'stem': q.stem})
        return out
