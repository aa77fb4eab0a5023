import json

import pytest

from course_studio.domain.course import CourseSentence, GeneratedCourse, PartialCourse
from course_studio.domain.course_stream import (
    CourseAccumulator,
    CourseStreamParser,
    EmissionTracker,
)
from course_studio.domain.envelope import EnvelopeDeltas
from course_studio.domain.events import (
    CompleteEvent,
    DescriptionEvent,
    SentenceEvent,
    ThinkingEvent,
    TitleEvent,
    sentence_progress,
)

COURSE = {
    "title": "At the Market",
    "description": "Buying fruit",
    "level": "beginner",
    "sentences": [
        {"chinese": "多少钱？", "english": "How much?", "phonetic": "/haʊ mʌtʃ/", "difficulty": "easy"},
        {"chinese": "太贵了。", "english": "Too expensive.", "phonetic": "/tuː/", "difficulty": "medium"},
        {"chinese": "我要两个。", "english": "I want two.", "phonetic": "/aɪ/", "difficulty": "easy"},
    ],
}


def _content_frame(text):
    return json.dumps({"choices": [{"delta": {"content": text}}]}, ensure_ascii=False)


def _feed_in_pieces(parser, text, size):
    events = []
    for start in range(0, len(text), size):
        events.extend(parser.feed_payload(_content_frame(text[start : start + size])))
    return events


def test_accumulator_counts_braces_only_after_first_open_brace():
    accumulator = CourseAccumulator()

    accumulator.append("} noise ")
    assert accumulator.started is False
    assert accumulator.depth == 0
    assert accumulator.parse_document() is None

    accumulator.append('{"a": {"b": 1}')
    assert accumulator.depth == 1
    assert accumulator.balanced is False

    accumulator.append("}")
    assert accumulator.balanced is True
    assert accumulator.parse_document() == {"a": {"b": 1}}
    assert accumulator.open_document() == '{"a": {"b": 1}}'


def test_accumulator_strips_prose_around_document():
    accumulator = CourseAccumulator()
    accumulator.append('Sure! {"title": "T"} Hope this helps.')

    assert accumulator.parse_document() == {"title": "T"}


def test_accumulator_balanced_but_invalid_json_does_not_parse():
    accumulator = CourseAccumulator()
    accumulator.append('{"title": "T",}')

    assert accumulator.balanced is True
    assert accumulator.parse_document() is None


def test_scenario_whole_document_in_one_frame():
    parser = CourseStreamParser(requested_sentence_count=20)
    frame = json.dumps(
        {
            "choices": [
                {
                    "delta": {
                        "content": '{"title":"T","sentences":[{"chinese":"x","english":"y",'
                        '"phonetic":"/y/","difficulty":"easy"}]}'
                    }
                }
            ]
        }
    )

    events = parser.feed_payload(frame)

    sentence = CourseSentence(chinese="x", english="y", phonetic="/y/", difficulty="easy")
    assert events == [
        TitleEvent("T", progress=10),
        SentenceEvent(sentence, progress=sentence_progress(1, 20)),
        CompleteEvent(
            GeneratedCourse(title="T", description="", level="beginner", sentences=(sentence,)),
            progress=100,
        ),
    ]
    assert events[1].progress == pytest.approx(33.0)
    assert parser.finished is True


def test_thinking_only_frame_emits_one_thinking_event():
    parser = CourseStreamParser()

    events = parser.feed_payload(
        json.dumps({"choices": [{"delta": {"reasoning_content": "Let me plan."}}]})
    )

    assert events == [ThinkingEvent("Let me plan.", progress=5)]
    assert parser.finished is False


def test_unbalanced_document_never_completes():
    parser = CourseStreamParser(requested_sentence_count=3)
    text = json.dumps(COURSE, ensure_ascii=False)
    events = _feed_in_pieces(parser, "{" + text, 9)

    assert not any(isinstance(event, CompleteEvent) for event in events)
    assert parser.finished is False
    assert parser.course is None
    assert [event.kind for event in events] == [
        "title",
        "description",
        "sentence",
        "sentence",
        "sentence",
    ]


def test_streamed_document_emits_each_field_once_with_rising_progress():
    parser = CourseStreamParser(requested_sentence_count=3)
    text = json.dumps(COURSE, ensure_ascii=False)

    events = _feed_in_pieces(parser, text, 5)

    kinds = [event.kind for event in events]
    assert kinds == ["title", "description", "sentence", "sentence", "sentence", "complete"]
    assert events[0].text == "At the Market"
    assert events[1].text == "Buying fruit"
    assert [event.sentence.english for event in events[2:5]] == [
        "How much?",
        "Too expensive.",
        "I want two.",
    ]
    assert [event.progress for event in events[2:5]] == pytest.approx([50.0, 70.0, 90.0])
    progresses = [event.progress for event in events]
    assert progresses == sorted(progresses)
    assert events[-1].course.sentences == tuple(event.sentence for event in events[2:5])


def test_event_sequence_is_independent_of_delta_boundaries():
    text = json.dumps(COURSE, ensure_ascii=False)
    reference = _feed_in_pieces(CourseStreamParser(requested_sentence_count=3), text, len(text))

    for size in (1, 2, 3, 17, 64):
        events = _feed_in_pieces(CourseStreamParser(requested_sentence_count=3), text, size)
        # Partial extraction may surface fields earlier, never different ones.
        assert [event.kind for event in events] == [event.kind for event in reference]
        assert events[-1] == reference[-1]


def test_complete_flushes_fields_that_never_surfaced_partially():
    parser = CourseStreamParser(requested_sentence_count=2)
    document = {
        "title": "Weather",
        "description": "Talking about rain",
        "sentences": [{"chinese": "下雨了", "english": "It rains"}],
    }

    events = parser.feed_payload(_content_frame(json.dumps(document, ensure_ascii=False)))

    assert [event.kind for event in events] == ["title", "description", "sentence", "complete"]
    course = events[-1].course
    assert course.sentences[0].phonetic == ""
    assert course.sentences[0].difficulty == "easy"
    assert course.level == "beginner"


def test_parser_uses_requested_level_when_document_has_none():
    parser = CourseStreamParser(requested_sentence_count=1, default_level="advanced")

    events = parser.feed_payload(_content_frame('{"title": "T", "sentences": []}'))

    assert events[-1].course.level == "advanced"


def test_parser_skips_malformed_frames_and_ignores_input_after_completion():
    parser = CourseStreamParser(requested_sentence_count=1)

    assert parser.feed_payload("{not json") == []
    assert parser.feed_payload("[]") == []
    events = parser.feed_payload(_content_frame('{"title": "T"}'))
    assert [event.kind for event in events] == ["title", "complete"]

    assert parser.feed_payload(_content_frame('{"title": "Other"}')) == []
    assert parser.feed_deltas(EnvelopeDeltas(thinking="late")) == []


def test_thinking_events_carry_cumulative_text_and_never_lower_progress():
    parser = CourseStreamParser(requested_sentence_count=1)

    first = parser.feed_deltas(EnvelopeDeltas(thinking="Plan ", content='{"title": "T", '))
    second = parser.feed_deltas(EnvelopeDeltas(thinking="more"))

    assert first == [ThinkingEvent("Plan ", progress=5), TitleEvent("T", progress=10)]
    assert second == [ThinkingEvent("Plan more", progress=10)]
    assert parser.tracker.thinking_text == "Plan more"


def test_thinking_after_sentence_keeps_sentence_progress():
    parser = CourseStreamParser(requested_sentence_count=2)
    content = (
        '{"title": "T", "sentences": ['
        '{"chinese": "一", "english": "one", "phonetic": "/w/", "difficulty": "easy"}, '
    )

    first = parser.feed_deltas(EnvelopeDeltas(content=content))
    second = parser.feed_deltas(EnvelopeDeltas(thinking="more"))

    assert [event.kind for event in first] == ["title", "sentence"]
    assert first[-1].progress == 60.0
    assert second == [ThinkingEvent("more", progress=60.0)]


def test_closed_fields_surface_before_any_closing_brace():
    parser = CourseStreamParser(requested_sentence_count=2)

    events = parser.feed_deltas(
        EnvelopeDeltas(
            content='{"title": "T", "description": "D", "sentences": [{"chinese": "一"'
        )
    )

    assert events == [TitleEvent("T", progress=10), DescriptionEvent("D", progress=20)]
    assert not parser.finished


def test_emission_tracker_does_not_reemit_known_fields():
    tracker = EmissionTracker(requested_sentence_count=4)
    sentence = CourseSentence(chinese="一", english="one")
    first = tracker.diff(PartialCourse(title="T", sentences=[sentence]))
    again = tracker.diff(PartialCourse(title="T", description="D", sentences=[sentence]))

    assert [event.kind for event in first] == ["title", "sentence"]
    assert again == [DescriptionEvent("D", progress=45.0)]
    assert tracker.last_sentence_count == 1


def test_sentence_progress_is_capped():
    assert sentence_progress(1, 4) == 45.0
    assert sentence_progress(4, 4) == 90.0
    assert sentence_progress(9, 4) == 90.0
    assert sentence_progress(1, 0) == 90.0
