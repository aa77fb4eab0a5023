"""Pure domain logic: course model, stream framing and incremental parsing."""

from .course import (
    COURSE_LEVELS,
    SENTENCE_DIFFICULTIES,
    CourseSentence,
    GeneratedCourse,
    PartialCourse,
    course_from_payload,
)
from .course_stream import CourseAccumulator, CourseStreamParser, EmissionTracker
from .envelope import EnvelopeDeltas, extract_deltas, parse_envelope
from .events import (
    CompleteEvent,
    CourseStreamEvent,
    DescriptionEvent,
    ErrorEvent,
    SentenceEvent,
    ThinkingEvent,
    TitleEvent,
)
from .library import (
    CourseDocument,
    LearningProgress,
    Lesson,
    SavedCourse,
    SentencePair,
    build_course_document,
)
from .llm_settings import LlmSettings, settings_from_payload
from .partial_course import extract_partial_course
from .prompts import build_course_prompt, build_sentences_prompt
from .sse import SseLineFramer

__all__ = [
    "COURSE_LEVELS",
    "SENTENCE_DIFFICULTIES",
    "CompleteEvent",
    "CourseAccumulator",
    "CourseDocument",
    "CourseSentence",
    "CourseStreamEvent",
    "CourseStreamParser",
    "DescriptionEvent",
    "EmissionTracker",
    "EnvelopeDeltas",
    "ErrorEvent",
    "GeneratedCourse",
    "LearningProgress",
    "Lesson",
    "LlmSettings",
    "PartialCourse",
    "SavedCourse",
    "SentenceEvent",
    "SentencePair",
    "SseLineFramer",
    "ThinkingEvent",
    "TitleEvent",
    "build_course_document",
    "build_course_prompt",
    "build_sentences_prompt",
    "course_from_payload",
    "extract_deltas",
    "extract_partial_course",
    "parse_envelope",
    "settings_from_payload",
]
