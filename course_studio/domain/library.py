"""Saved course records and lesson grouping."""
from __future__ import annotations

from dataclasses import dataclass, field

from .course import GeneratedCourse, normalize_level


@dataclass(frozen=True)
class SentencePair:
    id: int
    english: str
    chinese: str
    phonetic: str = ""
    difficulty: str = "easy"
    lesson_id: int | None = None


@dataclass(frozen=True)
class Lesson:
    id: int
    title: str
    description: str = ""
    sentences: tuple[SentencePair, ...] = ()
    course_id: int | None = None


@dataclass(frozen=True)
class CourseDocument:
    """A course ready to be persisted; ids are assigned by the repository."""

    name: str
    description: str
    difficulty: str
    category: str
    lessons: tuple[Lesson, ...] = ()
    tags: tuple[str, ...] = ()

    @property
    def total_lessons(self) -> int:
        return len(self.lessons)


@dataclass(frozen=True)
class SavedCourse:
    id: int
    name: str
    description: str
    difficulty: str
    category: str
    lessons: tuple[Lesson, ...]
    tags: tuple[str, ...]
    created_at: str
    updated_at: str

    @property
    def total_lessons(self) -> int:
        return len(self.lessons)

    @property
    def total_sentences(self) -> int:
        return sum(len(lesson.sentences) for lesson in self.lessons)


@dataclass
class LearningProgress:
    course_id: int
    lesson_id: int
    completed_sentences: list[int] = field(default_factory=list)
    total_sentences: int = 0
    accuracy: float | None = None
    attempts: int = 0
    completed_at: str | None = None


def build_course_document(
    course: GeneratedCourse,
    *,
    topic: str,
    level: str | None = None,
    description: str = "",
    lesson_count: int = 5,
    sentences_per_lesson: int = 10,
) -> CourseDocument:
    """Split a generated course into lessons of ``sentences_per_lesson``.

    At most ``lesson_count`` lessons are built; sentences beyond that are
    dropped. Sentence ids run across the whole course starting at 1.
    """
    per_lesson = max(1, int(sentences_per_lesson))
    lessons: list[Lesson] = []
    index = 0
    for lesson_number in range(1, max(1, int(lesson_count)) + 1):
        chunk = course.sentences[index : index + per_lesson]
        if not chunk:
            break
        pairs = tuple(
            SentencePair(
                id=index + offset + 1,
                english=sentence.english,
                chinese=sentence.chinese,
                phonetic=sentence.phonetic,
                difficulty=sentence.difficulty,
            )
            for offset, sentence in enumerate(chunk)
        )
        index += len(chunk)
        lessons.append(
            Lesson(
                id=lesson_number,
                title=f"Lesson {lesson_number}",
                description=f"{course.title} - Lesson {lesson_number}",
                sentences=pairs,
            )
        )
    return CourseDocument(
        name=course.title,
        description=(description or "").strip() or course.description,
        difficulty=normalize_level(level or course.level),
        category=(topic or "").strip(),
        lessons=tuple(lessons),
    )
