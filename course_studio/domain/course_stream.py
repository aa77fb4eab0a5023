"""Incremental reconstruction of a generated course from streamed deltas."""
from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any

from .course import GeneratedCourse, PartialCourse, course_from_payload
from .envelope import EnvelopeDeltas, extract_deltas, parse_envelope
from .events import (
    CompleteEvent,
    CourseStreamEvent,
    DescriptionEvent,
    SentenceEvent,
    ThinkingEvent,
    TitleEvent,
    sentence_progress,
)
from .partial_course import extract_partial_course

logger = logging.getLogger(__name__)


class CourseAccumulator:
    """Append-only content buffer with brace balance tracking."""

    def __init__(self) -> None:
        self.text = ""
        self.depth = 0
        self.started = False

    def append(self, delta: str) -> None:
        for char in delta:
            if char == "{":
                self.depth += 1
                self.started = True
            elif char == "}" and self.started:
                self.depth -= 1
        self.text += delta

    @property
    def balanced(self) -> bool:
        return self.started and self.depth == 0

    def parse_document(self) -> dict[str, Any] | None:
        """Strictly parse the first ``{`` .. last ``}`` span once braces balance."""
        if not self.balanced:
            return None
        text = self.text
        start = text.find("{")
        end = text.rfind("}")
        if start < 0 or end < start:
            return None
        try:
            document = json.loads(text[start : end + 1])
        except json.JSONDecodeError:
            return None
        return document if isinstance(document, dict) else None

    def open_document(self) -> str | None:
        """Everything from the first ``{``; used for partial extraction."""
        if not self.started:
            return None
        text = self.text
        return text[text.find("{"):]


class EmissionTracker:
    """Turns newly visible course fields into deduplicated events."""

    def __init__(self, requested_sentence_count: int) -> None:
        self.requested_sentence_count = max(1, int(requested_sentence_count))
        self.last_sentence_count = 0
        self.title_emitted = False
        self.description_emitted = False
        self.thinking_text = ""
        self.progress: float = 0

    def _stamp(self, event):
        # Progress never moves backwards inside one run.
        progress = max(event.progress, self.progress)
        self.progress = progress
        if progress != event.progress:
            return dataclasses.replace(event, progress=progress)
        return event

    def thinking(self, delta: str) -> list[CourseStreamEvent]:
        if not delta:
            return []
        self.thinking_text += delta
        return [self._stamp(ThinkingEvent(self.thinking_text))]

    def diff(self, partial: PartialCourse) -> list[CourseStreamEvent]:
        events: list[CourseStreamEvent] = []
        if partial.title and not self.title_emitted:
            self.title_emitted = True
            events.append(self._stamp(TitleEvent(partial.title)))
        if partial.description and not self.description_emitted:
            self.description_emitted = True
            events.append(self._stamp(DescriptionEvent(partial.description)))
        count = len(partial.sentences)
        if count > self.last_sentence_count:
            for index in range(self.last_sentence_count, count):
                progress = sentence_progress(index + 1, self.requested_sentence_count)
                events.append(
                    self._stamp(SentenceEvent(partial.sentences[index], progress=progress))
                )
            self.last_sentence_count = count
        return events

    def complete(self, course: GeneratedCourse) -> CompleteEvent:
        return self._stamp(CompleteEvent(course))


class CourseStreamParser:
    """Feed stream frames in, get course events out.

    After a balanced, parseable document has been seen the parser is
    ``finished``; later input is ignored.
    """

    def __init__(self, requested_sentence_count: int = 20, default_level: str = "beginner") -> None:
        self.default_level = default_level
        self.accumulator = CourseAccumulator()
        self.tracker = EmissionTracker(requested_sentence_count)
        self.course: GeneratedCourse | None = None

    @property
    def finished(self) -> bool:
        return self.course is not None

    def feed_payload(self, payload: str) -> list[CourseStreamEvent]:
        if self.finished:
            return []
        envelope = parse_envelope(payload)
        if envelope is None:
            return []
        return self.feed_deltas(extract_deltas(envelope))

    def feed_deltas(self, deltas: EnvelopeDeltas) -> list[CourseStreamEvent]:
        if self.finished:
            return []
        events = self.tracker.thinking(deltas.thinking)
        if deltas.content:
            self.accumulator.append(deltas.content)
            events.extend(self._absorb())
        return events

    def _absorb(self) -> list[CourseStreamEvent]:
        document = self.accumulator.parse_document()
        if document is not None:
            course = course_from_payload(document, default_level=self.default_level)
            # Fields that never surfaced as partial events go out before Complete.
            events = self.tracker.diff(
                PartialCourse(
                    title=course.title,
                    description=course.description,
                    level=course.level,
                    sentences=list(course.sentences),
                )
            )
            events.append(self.tracker.complete(course))
            self.course = course
            logger.debug(
                "Course document complete: title=%r sentences=%s",
                course.title,
                len(course.sentences),
            )
            return events
        open_text = self.accumulator.open_document()
        if open_text is None:
            return []
        partial = extract_partial_course(open_text)
        if partial is None:
            return []
        return self.tracker.diff(partial)
