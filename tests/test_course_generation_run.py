import http.client
import io
import json

import pytest

from course_studio.application.course_generation import (
    STATE_FAILED,
    STATE_FINALIZED,
    STATE_IDLE,
    CourseGenerationRun,
)
from course_studio.domain.events import CompleteEvent, ErrorEvent, ThinkingEvent
from course_studio.integrations.llm_client import CourseRequest, LlmClientError

COURSE_TEXT = json.dumps(
    {
        "title": "Greetings",
        "description": "Saying hello",
        "level": "beginner",
        "sentences": [
            {"chinese": "你好", "english": "Hello", "phonetic": "/həˈloʊ/", "difficulty": "easy"},
            {"chinese": "早上好", "english": "Good morning", "phonetic": "/ɡʊd/", "difficulty": "easy"},
        ],
    },
    ensure_ascii=False,
)


class _Logger:
    def __init__(self):
        self.infos = []
        self.warnings = []
        self.errors = []

    def info(self, message, *args):
        self.infos.append(message % args if args else message)

    def warning(self, message, *args):
        self.warnings.append(message % args if args else message)

    def error(self, message, *args):
        self.errors.append(message % args if args else message)


class _Response(io.BytesIO):
    """In-memory HTTP body; records whether it was closed."""

    def __init__(self, body: bytes):
        super().__init__(body)
        self.was_closed = False

    def close(self):
        self.was_closed = True
        super().close()


class _BrokenResponse(_Response):
    fail_after = 3
    reads = 0

    def read1(self, size=-1):
        self.reads += 1
        if self.reads > self.fail_after:
            raise ConnectionResetError("peer reset")
        return super().read1(size)


class _TruncatedResponse(_Response):
    """Body whose server closes the connection before Content-Length is met."""

    reads = 0

    def read1(self, size=-1):
        self.reads += 1
        if self.reads > 1:
            raise http.client.IncompleteRead(b"", 10)
        return super().read1(size)


def _sse(*envelopes, done=True) -> bytes:
    lines = [f"data: {json.dumps(item, ensure_ascii=False)}\n\n" for item in envelopes]
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


def _content_envelopes(text, size):
    return [
        {"choices": [{"delta": {"content": text[start : start + size]}}]}
        for start in range(0, len(text), size)
    ]


def _run(body, *, chunk_size=1024, sentence_count=2, logger=None):
    response = _Response(body) if isinstance(body, bytes) else body
    run = CourseGenerationRun(
        CourseRequest(topic="greetings", level="beginner", sentence_count=sentence_count),
        lambda: response,
        chunk_size=chunk_size,
        logger_instance=logger or _Logger(),
    )
    return run, response


def test_run_streams_course_and_closes_response():
    body = _sse(*_content_envelopes(COURSE_TEXT, 12))
    run, response = _run(body)
    assert run.state == STATE_IDLE

    events = list(run)

    assert [event.kind for event in events] == [
        "title",
        "description",
        "sentence",
        "sentence",
        "complete",
    ]
    assert run.state == STATE_FINALIZED
    assert run.course.title == "Greetings"
    assert run.truncated is False
    assert response.was_closed is True


def test_run_events_do_not_depend_on_read_chunk_size():
    body = _sse(
        {"choices": [{"delta": {"reasoning_content": "思考"}}]},
        *_content_envelopes(COURSE_TEXT, 7),
    )
    reference = list(_run(body, chunk_size=len(body))[0])

    for chunk_size in (1, 2, 5, 33):
        assert list(_run(body, chunk_size=chunk_size)[0]) == reference


def test_run_with_thinking_only_emits_single_thinking_event():
    logger = _Logger()
    run, _ = _run(_sse({"thinking": "Considering the topic."}), logger=logger)

    events = list(run)

    assert events == [ThinkingEvent("Considering the topic.")]
    assert run.state == STATE_FINALIZED
    assert run.truncated is True
    assert run.thinking_text == "Considering the topic."
    assert any("without a complete document" in message for message in logger.warnings)


def test_run_with_unbalanced_document_ends_without_terminal_event():
    body = _sse(*_content_envelopes("{" + COURSE_TEXT, 10))
    run, response = _run(body)

    events = list(run)

    assert not any(isinstance(event, (CompleteEvent, ErrorEvent)) for event in events)
    assert run.course is None
    assert run.truncated is True
    assert response.was_closed is True


def test_run_reports_open_failure_as_single_error_event():
    def _open():
        raise LlmClientError("Failed to reach LLM endpoint: http://x/chat/completions")

    run = CourseGenerationRun(
        CourseRequest(topic="t"),
        _open,
        logger_instance=_Logger(),
    )

    events = list(run)

    assert events == [ErrorEvent("Failed to reach LLM endpoint: http://x/chat/completions")]
    assert events[0].progress == 0
    assert run.state == STATE_FAILED
    assert run.error.startswith("Failed to reach")
    assert run.truncated is False


def test_run_reports_missing_body_as_error():
    run = CourseGenerationRun(CourseRequest(topic="t"), lambda: None, logger_instance=_Logger())

    assert list(run) == [ErrorEvent("LLM response has no body.")]


def test_run_reports_mid_stream_failure_as_error():
    body = _sse(*_content_envelopes(COURSE_TEXT, 4))
    response = _BrokenResponse(body)
    logger = _Logger()
    run, _ = _run(response, chunk_size=64, logger=logger)

    events = list(run)

    assert isinstance(events[-1], ErrorEvent)
    assert "peer reset" in events[-1].message
    assert not any(isinstance(event, CompleteEvent) for event in events)
    assert run.state == STATE_FAILED
    assert response.was_closed is True
    assert logger.errors


def test_run_reports_short_body_as_error():
    body = _sse(*_content_envelopes(COURSE_TEXT, 4))
    response = _TruncatedResponse(body)
    logger = _Logger()
    run, _ = _run(response, chunk_size=64, logger=logger)

    events = list(run)

    assert isinstance(events[-1], ErrorEvent)
    assert events[-1].message.startswith("LLM stream interrupted")
    assert "IncompleteRead" in events[-1].message
    assert not any(isinstance(event, CompleteEvent) for event in events)
    assert run.state == STATE_FAILED
    assert response.was_closed is True
    assert logger.errors


def test_run_stops_reading_after_done_marker():
    body = _sse({"choices": [{"delta": {"content": "{"}}]}) + b"data: garbage\n\n"
    run, _ = _run(body)

    assert list(run) == []
    assert run.truncated is True


def test_closing_iterator_early_closes_response():
    body = _sse(*_content_envelopes(COURSE_TEXT, 3))
    run, response = _run(body, chunk_size=8)

    events = iter(run)
    first = next(events)
    events.close()

    assert first.kind == "title"
    assert response.was_closed is True
    assert run.course is None


def test_run_can_only_be_iterated_once():
    run, _ = _run(_sse({"thinking": "x"}))
    list(run)

    with pytest.raises(RuntimeError, match="only be iterated once"):
        iter(run)
