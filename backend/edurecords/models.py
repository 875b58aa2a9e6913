"""Student and test records.

Both records validate every field in the constructor and raise
`ValidationError` for the first invariant that fails, before anything is
assigned. Enum-like fields accept either the enum member or its string
value; strings are converted here, at the boundary, and stored as enums.
"""

from __future__ import annotations

import copy
import re
import string
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict

from . import questions
from .errors import BoundsError, QuestionNotFoundError, ValidationError
from .serialization import to_indented_json

MIN_GRADE = 1
MAX_GRADE = 12

TEST_ID_PATTERN = re.compile(r'T-\d+', re.ASCII)
# Labels of the form "12B" or "9Z" are refused as test grades.
REJECTED_GRADE_PATTERNS = (
    re.compile(r'\d\w[A-Z]', re.ASCII),
    re.compile(r'\d[A-Z]', re.ASCII),
)


class Gender(str, Enum):
    MALE = 'M'
    FEMALE = 'F'


class StudentStatus(str, Enum):
    ACTIVE = 'active'
    ABSENT = 'absent'
    ON_VACATION = 'on_vacation'
    GRADUATED = 'graduated'


class Course(str, Enum):
    GEOGRAPHY = 'Geo'
    PHYSICS = 'Phi'
    INFORMATICS = 'Info'
    MATHEMATICS = 'Math'


class Account(BaseModel):
    """Credential pair owned by the account system; held, never checked here."""
    model_config = ConfigDict(frozen=True)

    username: str
    password: str


def _non_empty(value: Any) -> bool:
    return isinstance(value, str) and value != ''


def _coerce(enum_cls, value, message: str, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(message, field=field) from None


def _is_aware(moment: datetime) -> bool:
    return moment.tzinfo is not None and moment.utcoffset() is not None


def _now_like(moment: datetime) -> datetime:
    """Current time, naive or aware to match `moment`."""
    if not _is_aware(moment):
        return datetime.now()
    return datetime.now(timezone.utc)


def _contents_shape_ok(contents: Any) -> bool:
    """True for `{int: {str: str}}`; entries may be empty or hold several pairs."""
    if not isinstance(contents, Mapping):
        return False
    for number, entry in contents.items():
        if isinstance(number, bool) or not isinstance(number, int) or not isinstance(entry, Mapping):
            return False
        if not all(isinstance(k, str) and isinstance(v, str) for k, v in entry.items()):
            return False
    return True


class Student:
    """A student identified by name, father's initial and class.

    Only `grade` (through `advance_grade`) and `status` change after
    construction. Mutation is not synchronized; callers sharing a student
    across threads must lock around it.
    """

    def __init__(
        self,
        first_name: str,
        fathers_initial: str,
        last_name: str,
        gender: Gender | str,
        grade: int,
        grade_letter: str,
        status: StudentStatus | str,
        account: Account,
    ):
        if not _non_empty(first_name):
            raise ValidationError('Student must have a first name', field='first_name')
        if not _non_empty(fathers_initial):
            raise ValidationError("Student must have their father's initial given", field='fathers_initial')
        if not _non_empty(last_name):
            raise ValidationError('Student must have a last name', field='last_name')
        gender = _coerce(Gender, gender, 'Student gender must be either M or F', 'gender')
        if isinstance(grade, bool) or not isinstance(grade, int) or not MIN_GRADE <= grade <= MAX_GRADE:
            raise ValidationError(f'Student grade must be between {MIN_GRADE} and {MAX_GRADE}', field='grade')
        if not (isinstance(grade_letter, str) and len(grade_letter) == 1 and grade_letter in string.ascii_uppercase):
            raise ValidationError('Grade letter must be a single letter between A and Z', field='grade_letter')
        status = Student.validate_status_input(status)

        self._first_name = first_name
        self._fathers_initial = fathers_initial
        self._last_name = last_name
        self._gender: Gender = gender
        self._grade: int = grade
        self._grade_letter = grade_letter
        self._status: StudentStatus = status
        self._account = account

    @classmethod
    def placeholder(cls) -> Student:
        """Fixed sample student attached to answer keys. Skips validation."""
        student = cls.__new__(cls)
        student._first_name = 'Dexter'
        student._fathers_initial = 'Z'
        student._last_name = 'Iftode'
        student._gender = Gender.MALE
        student._grade = MAX_GRADE
        student._grade_letter = 'Z'
        student._status = StudentStatus.GRADUATED
        student._account = Account(username='IfDex22', password='parolasecreta')
        return student

    # === properties ===

    @property
    def first_name(self) -> str:
        return self._first_name

    @property
    def fathers_initial(self) -> str:
        return self._fathers_initial

    @property
    def last_name(self) -> str:
        return self._last_name

    @property
    def full_name(self) -> str:
        return f'{self._first_name} {self._fathers_initial}. {self._last_name}'

    @property
    def gender(self) -> Gender:
        return self._gender

    @property
    def grade(self) -> int:
        return self._grade

    @property
    def grade_letter(self) -> str:
        return self._grade_letter

    @property
    def class_label(self) -> str:
        return f'{self._grade}{self._grade_letter}'

    @property
    def status(self) -> StudentStatus:
        return self._status

    @status.setter
    def status(self, status: StudentStatus | str) -> None:
        self._status = Student.validate_status_input(status)

    @property
    def account(self) -> Account:
        return self._account

    # === data manipulators ===

    def advance_grade(self) -> None:
        """Move the student up one grade.

        Raises:
            BoundsError: If the student is already in the last grade. Use
                the `status` setter to graduate them instead.
        """
        if self._grade >= MAX_GRADE:
            raise BoundsError(f'Cannot advance a student past grade {MAX_GRADE}; set their status to graduated instead')
        self._grade += 1

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            'first_name': self._first_name,
            'fathers_initial': self._fathers_initial,
            'last_name': self._last_name,
            'gender': self._gender.value,
            'grade': self._grade,
            'grade_letter': self._grade_letter,
            'status': self._status.value,
            'account': self._account.model_dump(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Student:
        return cls(
            first_name=data['first_name'],
            fathers_initial=data['fathers_initial'],
            last_name=data['last_name'],
            gender=data['gender'],
            grade=data['grade'],
            grade_letter=data['grade_letter'],
            status=data['status'],
            account=Account.model_validate(data['account']),
        )

    # === dunder methods ===

    def __repr__(self) -> str:
        return f'Student({self.full_name}, {self.class_label}, {self._status.value})'

    def __str__(self) -> str:
        return to_indented_json(self)

    # === data validators ===

    @staticmethod
    def validate_status_input(status: Any) -> StudentStatus:
        """
        Validates a student status against the known statuses.

        Args:
            status: A `StudentStatus` member or its string value.

        Returns:
            The matching `StudentStatus`.

        Raises:
            ValidationError: If the value names no known status.
        """
        return _coerce(
            StudentStatus,
            status,
            'Student must be either active, absent, on_vacation, or graduated',
            'status',
        )


class Test:
    """A scheduled test for one class, with its questions and answer key.

    `contents` maps a question number to a single-entry mapping of
    question text to tagged answer (see `questions`). The record is
    read-only once built.
    """

    # keeps pytest from collecting this class when a test module imports it
    __test__ = False

    def __init__(
        self,
        test_id: str,
        test_name: str,
        course: Course | str,
        start_time: datetime,
        end_time: datetime,
        grade: str,
        contents: Mapping[int, Mapping[str, str]],
    ):
        if not (isinstance(test_id, str) and TEST_ID_PATTERN.fullmatch(test_id)):
            raise ValidationError('Test ID must look like T-000001', field='test_id')
        if not _non_empty(test_name):
            raise ValidationError('Test name must not be empty', field='test_name')
        course = _coerce(Course, course, 'Course must be one of Geo, Phi, Info or Math', 'course')
        if not isinstance(start_time, datetime):
            raise ValidationError('Start time must be a datetime', field='start_time')
        if start_time < _now_like(start_time):
            raise ValidationError('Cannot schedule a test in the past', field='start_time')
        if not isinstance(end_time, datetime):
            raise ValidationError('End time must be a datetime', field='end_time')
        if _is_aware(end_time) != _is_aware(start_time):
            raise ValidationError('Start and end time must both carry a timezone or both omit it', field='end_time')
        if end_time < start_time:
            raise ValidationError('A test cannot end before it starts', field='end_time')
        if not isinstance(grade, str) or any(p.fullmatch(grade) for p in REJECTED_GRADE_PATTERNS):
            raise ValidationError(f'{grade!r} is not an accepted class label for a test', field='grade')
        if not _contents_shape_ok(contents):
            raise ValidationError('Contents must map question numbers to {question text: answer} pairs', field='contents')

        self._test_id = test_id
        self._test_name = test_name
        self._course: Course = course
        self._start_time = start_time
        self._end_time = end_time
        self._grade = grade
        self._contents: Dict[int, Dict[str, str]] = {
            number: dict(entry) for number, entry in contents.items()
        }

    # === properties ===

    @property
    def test_id(self) -> str:
        return self._test_id

    @property
    def test_name(self) -> str:
        return self._test_name

    @property
    def course(self) -> Course:
        return self._course

    @property
    def start_time(self) -> datetime:
        return self._start_time

    @property
    def end_time(self) -> datetime:
        return self._end_time

    @property
    def grade(self) -> str:
        return self._grade

    @property
    def contents(self) -> Dict[int, Dict[str, str]]:
        return copy.deepcopy(self._contents)

    # === data accessors ===

    def _entry(self, question_number: int) -> Dict[str, str]:
        try:
            return self._contents[question_number]
        except KeyError:
            raise QuestionNotFoundError(f'Test {self._test_id} has no question {question_number}') from None

    def is_multiple_answer(self, question_number: int) -> bool:
        """Return True when the question's answer carries the multiple-answer tag."""
        _, answer = questions.split_entry(self._entry(question_number))
        return questions.is_multiple_answer(answer)

    def get_multiple_choices(self, question_number: int) -> List[str]:
        """Return the choice lines of a question, each stripped of its tag and terminator.

        Questions tagged `[MULTIPLE_ANSWER]` are refused with ValidationError;
        use `get_question` to read their choices. A choice line shorter than
        18 characters raises BoundsError.
        """
        if self.is_multiple_answer(question_number):
            raise ValidationError(f'Question {question_number} is not a multiple-choice question', field='contents')
        text, _ = questions.split_entry(self._entry(question_number))
        choices = []
        for fragment in text.splitlines()[1:]:
            if len(fragment) < questions.TAG_LENGTH + 1:
                raise BoundsError(f'Choice line {fragment!r} of question {question_number} is too short')
            choices.append(fragment[questions.TAG_LENGTH:-1])
        return choices

    def get_question(self, question_number: int) -> questions.Question:
        return questions.decode_question(self._entry(question_number))

    def all_questions(self) -> Dict[int, questions.Question]:
        return questions.decode_contents(self._contents)

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            'test_id': self._test_id,
            'test_name': self._test_name,
            'course': self._course.value,
            'start_time': self._start_time.isoformat(),
            'end_time': self._end_time.isoformat(),
            'grade': self._grade,
            'contents': self.contents,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Test:
        """Build a test from `to_dict` output; JSON object keys become ints again."""
        return cls(
            test_id=data['test_id'],
            test_name=data['test_name'],
            course=data['course'],
            start_time=datetime.fromisoformat(data['start_time']),
            end_time=datetime.fromisoformat(data['end_time']),
            grade=data['grade'],
            contents={int(k): v for k, v in data['contents'].items()},
        )

    # === dunder methods ===

    def __repr__(self) -> str:
        return f'Test({self._test_id}, {self._test_name}, {self._course.value}, {self._grade})'

    def __str__(self) -> str:
        return to_indented_json(self)
