"""Events produced while a course is being generated."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from .course import CourseSentence, GeneratedCourse

THINKING_PROGRESS = 5
TITLE_PROGRESS = 10
DESCRIPTION_PROGRESS = 20
SENTENCE_BASE_PROGRESS = 30
SENTENCE_SPAN_PROGRESS = 60
SENTENCE_MAX_PROGRESS = 90
COMPLETE_PROGRESS = 100
ERROR_PROGRESS = 0


@dataclass(frozen=True)
class ThinkingEvent:
    text: str
    progress: float = THINKING_PROGRESS
    kind: Literal["thinking"] = "thinking"


@dataclass(frozen=True)
class TitleEvent:
    text: str
    progress: float = TITLE_PROGRESS
    kind: Literal["title"] = "title"


@dataclass(frozen=True)
class DescriptionEvent:
    text: str
    progress: float = DESCRIPTION_PROGRESS
    kind: Literal["description"] = "description"


@dataclass(frozen=True)
class SentenceEvent:
    sentence: CourseSentence
    progress: float = SENTENCE_BASE_PROGRESS
    kind: Literal["sentence"] = "sentence"


@dataclass(frozen=True)
class CompleteEvent:
    course: GeneratedCourse
    progress: int = COMPLETE_PROGRESS
    kind: Literal["complete"] = "complete"


@dataclass(frozen=True)
class ErrorEvent:
    message: str
    progress: int = ERROR_PROGRESS
    kind: Literal["error"] = "error"


CourseStreamEvent = Union[
    ThinkingEvent,
    TitleEvent,
    DescriptionEvent,
    SentenceEvent,
    CompleteEvent,
    ErrorEvent,
]


def sentence_progress(running_count: int, requested_count: int) -> float:
    requested = max(1, int(requested_count))
    return min(
        float(SENTENCE_MAX_PROGRESS),
        SENTENCE_BASE_PROGRESS + (running_count / requested) * SENTENCE_SPAN_PROGRESS,
    )
