"""Generated course document and its canonical construction."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

COURSE_LEVELS = ("beginner", "intermediate", "advanced")
SENTENCE_DIFFICULTIES = ("easy", "medium", "hard")
SENTENCE_FIELDS = ("chinese", "english", "phonetic", "difficulty")

DEFAULT_DIFFICULTY = "easy"


@dataclass(frozen=True)
class CourseSentence:
    chinese: str
    english: str
    phonetic: str = ""
    difficulty: str = DEFAULT_DIFFICULTY

    def to_dict(self) -> dict[str, str]:
        return {
            "chinese": self.chinese,
            "english": self.english,
            "phonetic": self.phonetic,
            "difficulty": self.difficulty,
        }


@dataclass(frozen=True)
class GeneratedCourse:
    title: str
    description: str
    level: str
    sentences: tuple[CourseSentence, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "level": self.level,
            "sentences": [sentence.to_dict() for sentence in self.sentences],
        }


@dataclass
class PartialCourse:
    """Best current knowledge of a course that is still streaming."""

    title: str | None = None
    description: str | None = None
    level: str | None = None
    sentences: list[CourseSentence] = field(default_factory=list)


def normalize_level(value: object, default: str = "beginner") -> str:
    text = str(value or "").strip().lower()
    if text in COURSE_LEVELS:
        return text
    return default


def _text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def sentence_from_payload(payload: object) -> CourseSentence | None:
    """Build a sentence from a decoded object; None when it is not an object."""
    if not isinstance(payload, dict):
        return None
    return CourseSentence(
        chinese=_text(payload.get("chinese")),
        english=_text(payload.get("english")),
        phonetic=_text(payload.get("phonetic")),
        difficulty=_text(payload.get("difficulty")) or DEFAULT_DIFFICULTY,
    )


def course_from_payload(payload: dict[str, Any], default_level: str = "beginner") -> GeneratedCourse:
    """Canonical course from a fully parsed document.

    Missing description becomes an empty string, a missing or unknown level
    falls back to default_level and entries of ``sentences`` that are not
    objects are skipped. Nothing else is validated.
    """
    raw_sentences = payload.get("sentences")
    if not isinstance(raw_sentences, list):
        raw_sentences = []
    sentences = []
    for item in raw_sentences:
        sentence = sentence_from_payload(item)
        if sentence is not None:
            sentences.append(sentence)
    return GeneratedCourse(
        title=_text(payload.get("title")),
        description=_text(payload.get("description")),
        level=normalize_level(payload.get("level"), default=default_level),
        sentences=tuple(sentences),
    )
