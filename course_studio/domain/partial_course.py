"""Best-effort field extraction from a course document that is still streaming."""
from __future__ import annotations

import json
import re
from typing import Iterator

from .course import (
    COURSE_LEVELS,
    SENTENCE_FIELDS,
    CourseSentence,
    PartialCourse,
    sentence_from_payload,
)

_STRING_VALUE = r'"((?:[^"\\]|\\.)*)"'
TITLE_RE = re.compile(r'"title"\s*:\s*' + _STRING_VALUE, re.DOTALL)
DESCRIPTION_RE = re.compile(r'"description"\s*:\s*' + _STRING_VALUE, re.DOTALL)
LEVEL_RE = re.compile(r'"level"\s*:\s*' + _STRING_VALUE, re.DOTALL)
SENTENCES_RE = re.compile(r'"sentences"\s*:\s*\[')


def _decode_string(raw: str) -> str:
    try:
        return json.loads(f'"{raw}"', strict=False)
    except json.JSONDecodeError:
        return raw


def _match_string(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    if match is None:
        return None
    return _decode_string(match.group(1))


class _StringTracker:
    """Tracks whether a character scan is inside a JSON string literal."""

    def __init__(self) -> None:
        self.in_string = False
        self._escaped = False

    def consume(self, char: str) -> bool:
        """Feed one character; True when it is part of a string literal."""
        if self.in_string:
            if self._escaped:
                self._escaped = False
            elif char == "\\":
                self._escaped = True
            elif char == '"':
                self.in_string = False
            return True
        if char == '"':
            self.in_string = True
            return True
        return False


def _sentences_body(text: str) -> str | None:
    """Array body after ``"sentences": [`` up to its matching ``]`` or the end."""
    match = SENTENCES_RE.search(text)
    if match is None:
        return None
    start = match.end()
    strings = _StringTracker()
    depth = 0
    for index in range(start, len(text)):
        char = text[index]
        if strings.consume(char):
            continue
        if char == "[":
            depth += 1
        elif char == "]":
            if depth == 0:
                return text[start:index]
            depth -= 1
    return text[start:]


def _closed_objects(body: str) -> Iterator[str]:
    strings = _StringTracker()
    depth = 0
    start = 0
    for index, char in enumerate(body):
        if strings.consume(char):
            continue
        if char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield body[start : index + 1]


def _complete_sentence(raw_object: str) -> CourseSentence | None:
    try:
        payload = json.loads(raw_object, strict=False)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    if not all(isinstance(payload.get(name), str) for name in SENTENCE_FIELDS):
        return None
    return sentence_from_payload(payload)


def extract_complete_sentences(body: str) -> list[CourseSentence]:
    # Stops at the first closed object lacking a field so the list stays a
    # prefix of the sentences of the finished document.
    sentences: list[CourseSentence] = []
    for raw_object in _closed_objects(body):
        sentence = _complete_sentence(raw_object)
        if sentence is None:
            break
        sentences.append(sentence)
    return sentences


def extract_partial_course(text: str) -> PartialCourse | None:
    """Mine title, description, level and closed sentences from ``text``.

    Returns None when none of the fields can be found yet.
    """
    title = _match_string(TITLE_RE, text)
    description = _match_string(DESCRIPTION_RE, text)
    level = _match_string(LEVEL_RE, text)
    if level not in COURSE_LEVELS:
        level = None
    body = _sentences_body(text)
    if title is None and description is None and level is None and body is None:
        return None
    return PartialCourse(
        title=title,
        description=description,
        level=level,
        sentences=extract_complete_sentences(body) if body is not None else [],
    )
