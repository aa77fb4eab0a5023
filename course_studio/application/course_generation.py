"""Streaming course generation runs."""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator

from ..domain.course import GeneratedCourse
from ..domain.course_stream import CourseStreamParser
from ..domain.events import CourseStreamEvent, ErrorEvent
from ..domain.sse import SseLineFramer
from ..integrations.llm_client import CourseRequest, LlmClientError, iter_response_chunks

STATE_IDLE = "idle"
STATE_STREAMING = "streaming"
STATE_FINALIZED = "finalized"
STATE_FAILED = "failed"

TERMINAL_STATES = (STATE_FINALIZED, STATE_FAILED)

StreamOpener = Callable[[], object]

logger = logging.getLogger(__name__)


class CourseGenerationRun:
    """One streamed course generation, consumed as an iterator of events.

    The HTTP stream is opened lazily on the first pull and is closed on every
    exit path: completion, transport failure, or the caller closing or
    abandoning the iterator. Iteration ends after Complete or Error; a stream
    that ends without a balanced document finishes silently and leaves
    ``truncated`` set.
    """

    def __init__(
        self,
        request: CourseRequest,
        open_stream: StreamOpener,
        *,
        chunk_size: int = 1024,
        logger_instance=None,
    ) -> None:
        self.request = request
        self.chunk_size = max(1, int(chunk_size))
        self.logger = logger_instance or logger
        self.state = STATE_IDLE
        self.error: str | None = None
        self._open_stream = open_stream
        self._parser = CourseStreamParser(
            requested_sentence_count=request.sentence_count,
            default_level=request.level,
        )
        self._consumed = False

    @property
    def course(self) -> GeneratedCourse | None:
        return self._parser.course

    @property
    def truncated(self) -> bool:
        return self.state == STATE_FINALIZED and self._parser.course is None

    @property
    def thinking_text(self) -> str:
        return self._parser.tracker.thinking_text

    def __iter__(self) -> Iterator[CourseStreamEvent]:
        if self._consumed:
            raise RuntimeError("A course generation run can only be iterated once.")
        self._consumed = True
        return self._events()

    def _events(self) -> Iterator[CourseStreamEvent]:
        self.logger.info(
            "Course generation started: topic=%r level=%s sentences=%s",
            self.request.topic,
            self.request.level,
            self.request.sentence_count,
        )
        try:
            response = self._open_stream()
        except LlmClientError as exc:
            yield self._fail(str(exc))
            return
        if response is None:
            yield self._fail("LLM response has no body.")
            return
        with response:
            try:
                yield from self._consume(response)
            except LlmClientError as exc:
                yield self._fail(str(exc))
                return
        self._finish()

    def _consume(self, response) -> Iterator[CourseStreamEvent]:
        framer = SseLineFramer()
        for chunk in iter_response_chunks(response, self.chunk_size):
            self.state = STATE_STREAMING
            yield from self._parse(framer.feed(chunk))
            if self._parser.finished or framer.done:
                return
        yield from self._parse(framer.flush())

    def _parse(self, payloads: Iterable[str]) -> Iterator[CourseStreamEvent]:
        for payload in payloads:
            yield from self._parser.feed_payload(payload)
            if self._parser.finished:
                return

    def _fail(self, message: str) -> ErrorEvent:
        self.state = STATE_FAILED
        self.error = message
        self.logger.error("Course generation failed: %s", message)
        return ErrorEvent(message)

    def _finish(self) -> None:
        self.state = STATE_FINALIZED
        course = self._parser.course
        if course is None:
            self.logger.warning(
                "Course stream ended without a complete document: received=%s chars sentences=%s",
                len(self._parser.accumulator.text),
                self._parser.tracker.last_sentence_count,
            )
            return
        self.logger.info(
            "Course generation finished: title=%r sentences=%s",
            course.title,
            len(course.sentences),
        )
