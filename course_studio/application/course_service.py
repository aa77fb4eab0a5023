"""Course generation and persistence flows."""

from __future__ import annotations

from typing import Callable

from ..domain.course import COURSE_LEVELS, GeneratedCourse, normalize_level
from ..domain.library import SavedCourse, build_course_document
from ..integrations.llm_client import CourseRequest
from ..storage.course_repository import CourseRepository
from .course_generation import CourseGenerationRun
from .session import LlmSession

SessionProvider = Callable[[], LlmSession]


class CourseService:
    def __init__(
        self,
        session_provider: SessionProvider,
        repository: CourseRepository,
        logger,
        *,
        default_level: str = "beginner",
        default_sentence_count: int = 20,
        lesson_count: int = 5,
        sentences_per_lesson: int = 10,
    ) -> None:
        self.session_provider = session_provider
        self.repository = repository
        self.logger = logger
        self.default_level = normalize_level(default_level)
        self.default_sentence_count = max(1, int(default_sentence_count))
        self.lesson_count = max(1, int(lesson_count))
        self.sentences_per_lesson = max(1, int(sentences_per_lesson))

    def build_request(
        self,
        topic: str,
        level: str | None = None,
        sentence_count: int | None = None,
    ) -> CourseRequest:
        topic = (topic or "").strip()
        if not topic:
            raise ValueError("Course topic is empty.")
        if level is not None and level not in COURSE_LEVELS:
            raise ValueError(f"Unknown course level: {level}")
        count = self.default_sentence_count if sentence_count is None else int(sentence_count)
        if count < 1:
            raise ValueError("Sentence count must be at least 1.")
        return CourseRequest(
            topic=topic,
            level=level or self.default_level,
            sentence_count=count,
        )

    def stream_course(
        self,
        topic: str,
        level: str | None = None,
        sentence_count: int | None = None,
    ) -> CourseGenerationRun:
        request = self.build_request(topic, level, sentence_count)
        return self.session_provider().stream_course(request)

    def generate_course(
        self,
        topic: str,
        level: str | None = None,
        sentence_count: int | None = None,
    ) -> GeneratedCourse:
        request = self.build_request(topic, level, sentence_count)
        return self.session_provider().generate_course(request)

    def save_course(
        self,
        course: GeneratedCourse,
        *,
        topic: str,
        level: str | None = None,
        description: str = "",
        lesson_count: int | None = None,
        sentences_per_lesson: int | None = None,
    ) -> SavedCourse:
        """Split a finished course into lessons and store it."""
        if not (course.title or "").strip():
            raise ValueError("Generated course has no title.")
        if not course.sentences:
            raise ValueError("Generated course has no sentences.")
        document = build_course_document(
            course,
            topic=topic,
            level=level,
            description=description,
            lesson_count=self.lesson_count if lesson_count is None else lesson_count,
            sentences_per_lesson=(
                self.sentences_per_lesson if sentences_per_lesson is None else sentences_per_lesson
            ),
        )
        dropped = len(course.sentences) - sum(len(lesson.sentences) for lesson in document.lessons)
        if dropped > 0:
            self.logger.warning(
                "Course %r has more sentences than fit in %s lessons; dropped=%s",
                course.title,
                document.total_lessons,
                dropped,
            )
        return self.repository.create_course(document)

    def list_courses(self) -> list[SavedCourse]:
        return self.repository.list_courses()
