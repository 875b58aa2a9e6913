"""File parsing utilities that turn authored question files into test contents.

Supported input types: JSON, CSV and TXT. Every parser returns the
mapping a `Test` expects, `{question_number: {question_text: answer}}`,
built through the question codec so the tags are always well formed.
"""

import csv
import io
import json
import logging
import re
from typing import Dict, List, Tuple

from pydantic import ValidationError as SchemaError

from ..config import settings
from ..errors import ValidationError
from ..questions import (
    FreeResponseQuestion,
    MultipleChoiceQuestion,
    SingleAnswerQuestion,
    encode_question,
    question_adapter,
)

logger = logging.getLogger('edurecords.contents')

Contents = Dict[int, Dict[str, str]]


def parse_file_to_contents(file_bytes: bytes, filename: str) -> Contents:
    """Dispatch to the appropriate parser based on file extension."""
    if len(file_bytes) > settings.MAX_CONTENTS_BYTES:
        raise ValidationError(f'Contents file exceeds {settings.MAX_CONTENTS_BYTES} bytes', field='contents')
    name = filename.lower()
    if name.endswith('.json'):
        contents = parse_json(file_bytes)
    elif name.endswith('.csv'):
        contents = parse_csv(file_bytes)
    elif name.endswith('.txt'):
        contents = parse_txt(file_bytes)
    else:
        raise ValidationError('Unsupported file type', field='contents')
    logger.info('contents_parsed file=%s questions=%d', filename, len(contents))
    return contents


def parse_json(b: bytes) -> Contents:
    """Parse either a raw contents object or an array of structured questions.

    A raw object looks like `{"1": {"question text": "answer"}}`. An array
    holds question objects tagged by `kind` (see `questions.Question`),
    each optionally carrying a `question_number`; unnumbered questions are
    numbered by position starting at 1.
    """
    try:
        data = json.loads(_decode_text(b))
    except json.JSONDecodeError as exc:
        raise ValidationError(f'Invalid JSON contents: {exc}', field='contents') from exc
    if isinstance(data, dict):
        out = {}
        for key, entry in data.items():
            number = _coerce_int(key)
            if number is None or not isinstance(entry, dict):
                raise ValidationError(f'Invalid contents entry for key {key!r}', field='contents')
            _store(out, number, {str(k): str(v) for k, v in entry.items()})
        return out
    if not isinstance(data, list):
        raise ValidationError('JSON contents must be an object or an array', field='contents')
    out = {}
    for idx, item in enumerate(data, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f'Question {idx} must be an object', field='contents')
        number = _coerce_int(item.get('question_number'))
        if number is None:
            number = idx
        fields = {k: v for k, v in item.items() if k != 'question_number'}
        try:
            question = question_adapter.validate_python(fields)
        except SchemaError as exc:
            raise ValidationError(f'Question {idx} is malformed: {exc.errors()[0]["msg"]}', field='contents') from exc
        _store(out, number, encode_question(question))
    return out


def parse_csv(b: bytes) -> Contents:
    """Parse a CSV with one question per row.

    Expected columns: `question` or `question_text`, optional
    `question_number`/`qnum`, optional `choices` (pipe separated) and
    `correct` (pipe separated when several choices are correct). Rows with
    choices become multiple-choice questions, rows with only `correct`
    become single-answer questions and the rest free response with an
    `answer` column.
    """
    out = {}
    sio = io.StringIO(_decode_text(b))
    reader = csv.DictReader(sio)
    try:
        rows = list(reader)
    except csv.Error as exc:
        raise ValidationError(f'Invalid CSV contents: {exc}', field='contents') from exc
    for idx, row in enumerate(rows, start=1):
        stem = str(row.get('question') or row.get('question_text') or '').strip()
        if not stem:
            raise ValidationError(f'Row {idx} has no question text', field='contents')
        number = _coerce_int(row.get('question_number') or row.get('qnum'))
        if number is None:
            number = idx
        choices = _split_pipes(row.get('choices') or '')
        correct = _split_pipes(row.get('correct') or '')
        if choices:
            question = MultipleChoiceQuestion(stem=stem, choices=choices, correct_answers=correct)
        elif correct:
            question = SingleAnswerQuestion(stem=stem, correct_answer=correct[0])
        else:
            question = FreeResponseQuestion(stem=stem, reference_answer=str(row.get('answer') or ''))
        _store(out, number, encode_question(question))
    return out


def parse_txt(b: bytes) -> Contents:
    """Parse a plaintext format where questions are separated by blank
    lines, the first line is the stem and the rest are choices.

    Choices marked with a leading '*' or a trailing '(correct)' are the
    correct ones; when none is marked the first choice is treated as
    correct.
    """
    s = _decode_text(b).replace('\r\n', '\n').replace('\r', '\n')
    sections = [sec.strip() for sec in re.split(r'\n[ \t]*\n', s) if sec.strip()]
    out = {}
    for number, sec in enumerate(sections, start=1):
        lines = [l.strip() for l in sec.splitlines() if l.strip()]
        stem = lines[0]
        choices = []
        correct = []
        for l in lines[1:]:
            text, is_correct = _parse_answer_line(l)
            choices.append(text)
            if is_correct:
                correct.append(text)
        if choices and not correct:
            correct = [choices[0]]
        if choices:
            question = MultipleChoiceQuestion(stem=stem, choices=choices, correct_answers=correct)
        else:
            question = FreeResponseQuestion(stem=stem, reference_answer='')
        out[number] = encode_question(question)
    return out


def _parse_answer_line(text: str) -> Tuple[str, bool]:
    """Detect simple correctness markers in an answer line.

    Supports leading '*' or trailing markers like '(correct)'; falls back to False.
    """
    is_correct = False
    cleaned = text.strip()
    lower = cleaned.lower()
    for marker in ('(correct)', '[correct]', '{correct}'):
        if lower.endswith(marker):
            is_correct = True
            cleaned = cleaned[: -len(marker)].strip()
            break
    if cleaned.startswith('*'):
        is_correct = True
        cleaned = cleaned.lstrip('*').strip()
    return cleaned, is_correct


def _split_pipes(raw: str) -> List[str]:
    return [p.strip() for p in raw.split('|') if p.strip()]


def _coerce_int(val):
    try:
        return int(val) if val is not None and str(val).strip() != '' else None
    except (TypeError, ValueError):
        return None


def _decode_text(b: bytes) -> str:
    try:
        return b.decode('utf-8')
    except UnicodeDecodeError as exc:
        raise ValidationError(f'Contents file is not valid UTF-8: {exc}', field='contents') from exc


def _store(out: Contents, number: int, entry: Dict[str, str]) -> None:
    if number in out:
        raise ValidationError(f'Question number {number} appears more than once', field='contents')
    out[number] = entry
