"""Pydantic request/response schemas used by the API.

Schemas only fix the JSON shape of a request; the records in `models.py`
enforce the domain invariants and report them as `ValidationError`.
"""

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel


class AccountIn(BaseModel):
    """Credential pair attached to a student."""
    username: str
    password: str


class StudentIn(BaseModel):
    """Payload for registering a student."""
    first_name: str
    fathers_initial: str
    last_name: str
    gender: str
    grade: int
    grade_letter: str
    status: str
    account: AccountIn


class StatusIn(BaseModel):
    """Payload for changing a student's status."""
    status: str


class StudentOut(BaseModel):
    """A registered student and the id it is stored under."""
    id: str
    student: Dict


class TestIn(BaseModel):
    """Payload for scheduling a test.

    `contents` maps question numbers to a single `{question_text: answer}`
    pair; JSON object keys such as "1" are accepted as numbers.
    """
    test_id: str
    test_name: str
    course: str
    start_time: datetime
    end_time: datetime
    grade: str
    contents: Dict[int, Dict[str, str]]


class MultipleAnswerOut(BaseModel):
    question_number: int
    multiple_answer: bool


class ChoicesOut(BaseModel):
    question_number: int
    choices: List[str]
