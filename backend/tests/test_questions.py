import pydantic
import pytest

from edurecords.errors import AnswerKeyMissingError, ValidationError
from edurecords.questions import (
    CHOICE_TAG,
    MULTIPLE_ANSWER_TAG,
    TAG_LENGTH,
    FreeResponseQuestion,
    MultipleChoiceQuestion,
    SingleAnswerQuestion,
    decode_contents,
    decode_question,
    encode_contents,
    encode_question,
    question_adapter,
)


def test_tags_are_seventeen_characters():
    assert len(MULTIPLE_ANSWER_TAG) == TAG_LENGTH == 17
    assert len(CHOICE_TAG) == TAG_LENGTH


def test_decode_multiple_choice_with_several_correct_answers():
    entry = {'Which are prime?\n[MULTIPLE_CHOICE]2;\n\n[MULTIPLE_CHOICE]4;\n[MULTIPLE_CHOICE]5;': '[MULTIPLE_ANSWER]2|5'}
    q = decode_question(entry)
    assert isinstance(q, MultipleChoiceQuestion)
    assert q.stem == 'Which are prime?'
    assert q.choices == ['2', '4', '5']
    assert q.correct_answers == ['2', '5']


def test_decode_rejects_malformed_choice_line():
    entry = {'Which?\nA) yes': '[MULTIPLE_ANSWER]A'}
    with pytest.raises(ValidationError):
        decode_question(entry)


def test_decode_empty_entry():
    with pytest.raises(AnswerKeyMissingError):
        decode_question({})


def test_decode_entry_with_two_pairs():
    with pytest.raises(ValidationError):
        decode_question({'Q1': 'a', 'Q2': 'b'})


def test_single_answer_round_trip():
    q = SingleAnswerQuestion(stem='Capital of Romania?', correct_answer='Bucharest')
    entry = encode_question(q)
    assert entry == {'Capital of Romania?': '[SINGLE_ANSWER]Bucharest'}
    assert decode_question(entry) == q


def test_multiple_choice_round_trip():
    q = MultipleChoiceQuestion(stem='Largest planet?', choices=['Mars', 'Jupiter'], correct_answers=['Jupiter'])
    entry = encode_question(q)
    assert entry == {
        'Largest planet?\n[MULTIPLE_CHOICE]Mars;\n[MULTIPLE_CHOICE]Jupiter;': '[MULTIPLE_ANSWER]Jupiter',
    }
    assert decode_question(entry) == q


def test_free_response_keeps_multiline_stem():
    q = FreeResponseQuestion(stem='Describe:\n- the water cycle', reference_answer='Evaporation, rain.')
    assert decode_question(encode_question(q)) == q


@pytest.mark.parametrize('question', [
    MultipleChoiceQuestion(stem='Two\nlines', choices=['a'], correct_answers=['a']),
    MultipleChoiceQuestion(stem='Q', choices=['a\nb'], correct_answers=['a']),
    MultipleChoiceQuestion(stem='Q', choices=['a|b'], correct_answers=['a|b']),
    FreeResponseQuestion(stem='Q', reference_answer='[SINGLE_ANSWER]x'),
])
def test_encode_rejects_values_the_format_cannot_carry(question):
    with pytest.raises(ValidationError):
        encode_question(question)


def test_contents_round_trip(sample_contents):
    decoded = decode_contents(sample_contents)
    assert sorted(decoded) == [1, 2, 3]
    assert encode_contents(decoded) == sample_contents


def test_question_adapter_uses_kind():
    q = question_adapter.validate_python({'kind': 'single_answer', 'stem': 'Q', 'correct_answer': 'A'})
    assert isinstance(q, SingleAnswerQuestion)
    assert question_adapter.dump_python(q) == {'kind': 'single_answer', 'stem': 'Q', 'correct_answer': 'A'}


def test_questions_are_frozen():
    q = SingleAnswerQuestion(stem='Q', correct_answer='A')
    with pytest.raises(pydantic.ValidationError):
        q.stem = 'other'


@pytest.mark.parametrize('question', [
    MultipleChoiceQuestion(stem='Pick', choices=[' x', 'y '], correct_answers=[' x', 'y ']),
    MultipleChoiceQuestion(stem='  padded stem  ', choices=['', ' '], correct_answers=[' ']),
    MultipleChoiceQuestion(stem='', choices=['a;b', '[MULTIPLE_CHOICE]c;'], correct_answers=['a;b']),
    MultipleChoiceQuestion(stem='No choices yet', choices=[], correct_answers=[]),
    MultipleChoiceQuestion(stem='Tabs\tinside', choices=['café', 'über'], correct_answers=['café', 'über']),
    SingleAnswerQuestion(stem='Two\nlines', correct_answer=' spaced '),
    SingleAnswerQuestion(stem='Q', correct_answer=''),
    FreeResponseQuestion(stem='', reference_answer='line one\r\nline two'),
])
def test_encoded_questions_decode_to_the_same_question(question):
    assert decode_question(encode_question(question)) == question


@pytest.mark.parametrize('breaking', ['\n', '\r', '\r\n', '\x0b', '\x0c', '\x1c', '\x1d', '\x1e', '\x85', '\u2028', '\u2029'])
def test_encode_rejects_every_line_break_in_stem_and_choices(breaking):
    with pytest.raises(ValidationError):
        encode_question(MultipleChoiceQuestion(stem=f'Q{breaking}x', choices=['a'], correct_answers=['a']))
    with pytest.raises(ValidationError):
        encode_question(MultipleChoiceQuestion(stem='Q', choices=[f'a{breaking}'], correct_answers=['a']))


def test_encode_rejects_empty_correct_answer():
    with pytest.raises(ValidationError):
        encode_question(MultipleChoiceQuestion(stem='Q', choices=['a', ''], correct_answers=['']))


@pytest.mark.parametrize('answer', ['[MULTIPLE_ANSWER]a||b', '[MULTIPLE_ANSWER]|a', '[MULTIPLE_ANSWER]a|'])
def test_decode_rejects_empty_correct_answer(answer):
    with pytest.raises(ValidationError):
        decode_question({'Q\n[MULTIPLE_CHOICE]a;\n[MULTIPLE_CHOICE]b;': answer})


def test_decode_keeps_whitespace_around_correct_answers():
    q = decode_question({'Q\n[MULTIPLE_CHOICE] a;': '[MULTIPLE_ANSWER] a'})
    assert q.correct_answers == [' a']
