"""In-memory registries for students and tests.

Each repository is small and focused on a single record type. Records
live for the lifetime of the process; every read and mutation runs under
the repository lock so concurrent requests see whole updates.
"""

import threading
import uuid
from typing import Callable, Dict, List, Optional, TypeVar

from . import models
from .errors import DuplicateRecordError, RecordNotFoundError

T = TypeVar('T')


class StudentRepository:
    """Store `Student` records under generated ids."""
    def __init__(self):
        self._students: Dict[str, models.Student] = {}
        self._lock = threading.Lock()

    def add(self, student: models.Student) -> str:
        """Register a student and return its new id."""
        student_id = uuid.uuid4().hex
        with self._lock:
            self._students[student_id] = student
        return student_id

    def get(self, student_id: str) -> Optional[models.Student]:
        """Return a `Student` by id or `None` if not found."""
        with self._lock:
            return self._students.get(student_id)

    def update(self, student_id: str, action: Callable[[models.Student], T]) -> T:
        """Run `action` on the stored student while holding the lock.

        Raises RecordNotFoundError when the id is unknown; errors raised by
        `action` propagate unchanged.
        """
        with self._lock:
            student = self._students.get(student_id)
            if student is None:
                raise RecordNotFoundError(f'student not found: {student_id}')
            return action(student)

    def list_ids(self) -> List[str]:
        with self._lock:
            return list(self._students)


class TestRepository:
    """Store `Test` records keyed by their test id."""
    __test__ = False

    def __init__(self):
        self._tests: Dict[str, models.Test] = {}
        self._lock = threading.Lock()

    def add(self, test: models.Test) -> models.Test:
        """Register a test; a second test with the same id is refused."""
        with self._lock:
            if test.test_id in self._tests:
                raise DuplicateRecordError(f'test already exists: {test.test_id}')
            self._tests[test.test_id] = test
        return test

    def get(self, test_id: str) -> Optional[models.Test]:
        """Return a `Test` by id or `None` if not found."""
        with self._lock:
            return self._tests.get(test_id)
