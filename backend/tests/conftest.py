from datetime import datetime, timedelta, timezone

import pytest

from edurecords.models import Account, Student, Test

MC_QUESTION = 'What is 2+2?\n[MULTIPLE_CHOICE]3;\n[MULTIPLE_CHOICE]4;\n[MULTIPLE_CHOICE]5;'


@pytest.fixture
def sample_account():
    return Account(username='ipopescu', password='secret')


@pytest.fixture
def student_fields(sample_account):
    return {
        'first_name': 'Ioana',
        'fathers_initial': 'M',
        'last_name': 'Popescu',
        'gender': 'F',
        'grade': 11,
        'grade_letter': 'B',
        'status': 'active',
        'account': sample_account,
    }


@pytest.fixture
def sample_student(student_fields):
    return Student(**student_fields)


@pytest.fixture
def sample_contents():
    return {
        1: {MC_QUESTION: '[MULTIPLE_ANSWER]4'},
        2: {'Name the capital of France.': '[SINGLE_ANSWER]Paris'},
        3: {'Explain erosion.': 'Wind and water wear rock away.'},
    }


@pytest.fixture
def test_fields(sample_contents):
    start = datetime.now(timezone.utc) + timedelta(hours=1)
    return {
        'test_id': 'T-000001',
        'test_name': 'Midterm',
        'course': 'Math',
        'start_time': start,
        'end_time': start + timedelta(hours=1),
        'grade': '12',
        'contents': sample_contents,
    }


@pytest.fixture
def sample_test(test_fields):
    return Test(**test_fields)
