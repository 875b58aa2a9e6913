"""Question content codec.

A test stores each question as a single-entry mapping from the question
text to a tagged answer string. This module turns those entries into
typed question objects and back:

- answer starting with `[MULTIPLE_ANSWER]`: multiple choice. The rest of
  the answer lists the correct choices separated by `|`; the question
  text is the stem followed by one `[MULTIPLE_CHOICE]<choice>;` line per
  choice.
- answer starting with `[SINGLE_ANSWER]`: a single correct answer.
- anything else: free response, the whole answer is the reference.
"""

from typing import Annotated, Dict, List, Literal, Mapping, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .errors import AnswerKeyMissingError, ValidationError

TAG_LENGTH = 17
MULTIPLE_ANSWER_TAG = '[MULTIPLE_ANSWER]'
SINGLE_ANSWER_TAG = '[SINGLE_ANSWER]'
CHOICE_TAG = '[MULTIPLE_CHOICE]'
CHOICE_TERMINATOR = ';'
ANSWER_SEPARATOR = '|'


class MultipleChoiceQuestion(BaseModel):
    """A question with listed choices; one or more of them are correct."""
    model_config = ConfigDict(frozen=True)

    kind: Literal['multiple_choice'] = 'multiple_choice'
    stem: str
    choices: List[str]
    correct_answers: List[str]


class SingleAnswerQuestion(BaseModel):
    """A question with exactly one expected answer."""
    model_config = ConfigDict(frozen=True)

    kind: Literal['single_answer'] = 'single_answer'
    stem: str
    correct_answer: str


class FreeResponseQuestion(BaseModel):
    """An open question graded against a reference answer."""
    model_config = ConfigDict(frozen=True)

    kind: Literal['free_response'] = 'free_response'
    stem: str
    reference_answer: str


Question = Annotated[
    Union[MultipleChoiceQuestion, SingleAnswerQuestion, FreeResponseQuestion],
    Field(discriminator='kind'),
]

question_adapter = TypeAdapter(Question)


def split_entry(entry: Mapping[str, str]) -> Tuple[str, str]:
    """Return the (question text, answer) pair of a content entry.

    Raises AnswerKeyMissingError for an empty entry and ValidationError
    when the entry holds more than one pair.
    """
    if not entry:
        raise AnswerKeyMissingError('Question has no answer key')
    if len(entry) > 1:
        raise ValidationError('A question entry must hold exactly one question/answer pair', field='contents')
    (text, answer), = entry.items()
    return text, answer


def is_multiple_answer(answer: str) -> bool:
    return answer[:TAG_LENGTH] == MULTIPLE_ANSWER_TAG


def _decode_choice_line(line: str) -> str:
    if not line.startswith(CHOICE_TAG) or not line.endswith(CHOICE_TERMINATOR) or len(line) < TAG_LENGTH + 1:
        raise ValidationError(f'Malformed choice line: {line!r}', field='contents')
    return line[TAG_LENGTH:-1]


def _is_single_line(value: str) -> bool:
    # splitlines also breaks on \x0b, \x1c, \x85 and \u2028
    return value.splitlines() in ([], [value])


def _decode_correct_answers(listed: str) -> List[str]:
    if not listed:
        return []
    parts = listed.split(ANSWER_SEPARATOR)
    if '' in parts:
        raise ValidationError(f'Empty correct answer in {listed!r}', field='contents')
    return parts


def decode_question(entry: Mapping[str, str]) -> Question:
    """Decode one `{question_text: answer}` entry into a typed question."""
    text, answer = split_entry(entry)
    if is_multiple_answer(answer):
        lines = text.splitlines()
        stem = lines[0] if lines else ''
        # blank lines between choices carry nothing
        choices = [_decode_choice_line(line) for line in lines[1:] if line.strip()]
        correct = _decode_correct_answers(answer[TAG_LENGTH:])
        return MultipleChoiceQuestion(stem=stem, choices=choices, correct_answers=correct)
    if answer.startswith(SINGLE_ANSWER_TAG):
        return SingleAnswerQuestion(stem=text, correct_answer=answer[len(SINGLE_ANSWER_TAG):])
    return FreeResponseQuestion(stem=text, reference_answer=answer)


def encode_question(question: Question) -> Dict[str, str]:
    """Encode a typed question into its `{question_text: answer}` entry.

    Raises ValidationError for values the wire format cannot carry.
    """
    if isinstance(question, MultipleChoiceQuestion):
        if not _is_single_line(question.stem):
            raise ValidationError('A multiple-choice stem must be a single line', field='stem')
        for choice in question.choices:
            if not _is_single_line(choice):
                raise ValidationError('A choice must be a single line', field='choices')
        for correct in question.correct_answers:
            if not correct:
                raise ValidationError('A correct answer cannot be empty', field='correct_answers')
            if ANSWER_SEPARATOR in correct:
                raise ValidationError(f'A correct answer cannot contain {ANSWER_SEPARATOR!r}', field='correct_answers')
        lines = [question.stem] + [f'{CHOICE_TAG}{c}{CHOICE_TERMINATOR}' for c in question.choices]
        answer = MULTIPLE_ANSWER_TAG + ANSWER_SEPARATOR.join(question.correct_answers)
        return {'\n'.join(lines): answer}
    if isinstance(question, SingleAnswerQuestion):
        return {question.stem: SINGLE_ANSWER_TAG + question.correct_answer}
    if question.reference_answer.startswith((MULTIPLE_ANSWER_TAG, SINGLE_ANSWER_TAG)):
        raise ValidationError('A free-response answer cannot start with a question tag', field='reference_answer')
    return {question.stem: question.reference_answer}


def decode_contents(contents: Mapping[int, Mapping[str, str]]) -> Dict[int, Question]:
    """Decode every entry of a test's contents, keyed by question number."""
    return {number: decode_question(entry) for number, entry in contents.items()}


def encode_contents(questions: Mapping[int, Question]) -> Dict[int, Dict[str, str]]:
    return {number: encode_question(q) for number, q in questions.items()}
