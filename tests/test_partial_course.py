from course_studio.domain.course import CourseSentence
from course_studio.domain.partial_course import (
    extract_complete_sentences,
    extract_partial_course,
)

SENTENCE_ONE = '{"chinese": "你好", "english": "Hello", "phonetic": "/həˈloʊ/", "difficulty": "easy"}'
SENTENCE_TWO = '{"chinese": "谢谢", "english": "Thanks", "phonetic": "/θæŋks/", "difficulty": "easy"}'


def test_extract_partial_course_returns_none_before_any_field():
    assert extract_partial_course("{") is None
    assert extract_partial_course('{"tit') is None
    assert extract_partial_course('{"title": "Unfinished') is None


def test_extract_partial_course_reads_closed_string_fields():
    partial = extract_partial_course(
        '{"title": "Greetings", "description": "Say \\"hi\\"\\nplease", "level": "intermediate", '
    )

    assert partial is not None
    assert partial.title == "Greetings"
    assert partial.description == 'Say "hi"\nplease'
    assert partial.level == "intermediate"
    assert partial.sentences == []


def test_extract_partial_course_ignores_unknown_level():
    partial = extract_partial_course('{"title": "T", "level": "expert"')

    assert partial.title == "T"
    assert partial.level is None


def test_extract_partial_course_keeps_only_closed_sentence_objects():
    text = '{"title": "T", "sentences": [' + SENTENCE_ONE + ", " + SENTENCE_TWO[:30]

    partial = extract_partial_course(text)

    assert partial.sentences == [
        CourseSentence(chinese="你好", english="Hello", phonetic="/həˈloʊ/", difficulty="easy")
    ]


def test_extract_partial_course_handles_braces_inside_strings():
    tricky = '{"chinese": "{括号}", "english": "a } b", "phonetic": "/x/", "difficulty": "hard"}'
    text = '{"title": "T", "sentences": [' + tricky + ", " + SENTENCE_ONE + "]"

    partial = extract_partial_course(text)

    assert [sentence.english for sentence in partial.sentences] == ["a } b", "Hello"]
    assert partial.sentences[0].chinese == "{括号}"


def test_extract_complete_sentences_stops_at_first_incomplete_object():
    missing_phonetic = '{"chinese": "再见", "english": "Bye", "difficulty": "easy"}'
    body = SENTENCE_ONE + ", " + missing_phonetic + ", " + SENTENCE_TWO

    sentences = extract_complete_sentences(body)

    assert [sentence.english for sentence in sentences] == ["Hello"]


def test_extract_partial_course_does_not_read_past_sentences_array():
    text = '{"sentences": [' + SENTENCE_ONE + '], "extra": [' + SENTENCE_TWO + "]}"

    partial = extract_partial_course(text)

    assert [sentence.english for sentence in partial.sentences] == ["Hello"]
