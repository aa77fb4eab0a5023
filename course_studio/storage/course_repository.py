"""SQLite persistence for saved courses, lessons and learning progress."""
from __future__ import annotations

from datetime import datetime
import json
import logging
import os
import sqlite3
import threading

from ..domain.library import (
    CourseDocument,
    LearningProgress,
    Lesson,
    SavedCourse,
    SentencePair,
)

logger = logging.getLogger(__name__)


class CourseRepository:
    def __init__(self, db_path: str, logger_instance=None) -> None:
        self.logger = logger_instance or logger
        self.db_path = str(db_path or "").strip()
        self._db_lock = threading.Lock()
        self._schema_ready = False

    def ensure_schema(self) -> None:
        """Create course tables when missing."""
        if not self.db_path:
            raise RuntimeError("Course DB path is empty.")
        self._ensure_parent_dir()
        with self._db_lock:
            connection = self._connect()
            try:
                with connection:
                    self._ensure_schema_with_connection(connection)
            finally:
                connection.close()

    def create_course(self, document: CourseDocument) -> SavedCourse:
        name = (document.name or "").strip()
        if not name:
            raise ValueError("Course name is empty.")
        self.ensure_schema()
        now = _now_iso()
        with self._db_lock:
            connection = self._connect()
            try:
                with connection:
                    cursor = connection.execute(
                        "INSERT INTO courses "
                        "(name, description, difficulty, category, tags_json, created_at, updated_at) "
                        "VALUES (?, ?, ?, ?, ?, ?, ?)",
                        (
                            name,
                            document.description or "",
                            document.difficulty,
                            document.category or "",
                            json.dumps(list(document.tags), ensure_ascii=False),
                            now,
                            now,
                        ),
                    )
                    course_id = int(cursor.lastrowid)
                    for lesson in document.lessons:
                        connection.execute(
                            "INSERT INTO lessons (course_id, lesson_id, title, description) "
                            "VALUES (?, ?, ?, ?)",
                            (course_id, lesson.id, lesson.title, lesson.description or ""),
                        )
                        connection.executemany(
                            "INSERT INTO sentences "
                            "(course_id, lesson_id, sentence_id, position, english, chinese, "
                            "phonetic, difficulty) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                            [
                                (
                                    course_id,
                                    lesson.id,
                                    sentence.id,
                                    position,
                                    sentence.english,
                                    sentence.chinese,
                                    sentence.phonetic or "",
                                    sentence.difficulty or "easy",
                                )
                                for position, sentence in enumerate(lesson.sentences)
                            ],
                        )
                saved = self._load_course(connection, course_id)
            finally:
                connection.close()
        if saved is None:
            raise RuntimeError(f"Course {course_id} vanished after insert.")
        self.logger.info(
            "Saved course: id=%s name=%r lessons=%s sentences=%s",
            saved.id,
            saved.name,
            saved.total_lessons,
            saved.total_sentences,
        )
        return saved

    def get_course(self, course_id: int) -> SavedCourse | None:
        self.ensure_schema()
        with self._db_lock:
            connection = self._connect()
            try:
                return self._load_course(connection, int(course_id))
            finally:
                connection.close()

    def list_courses(self) -> list[SavedCourse]:
        self.ensure_schema()
        with self._db_lock:
            connection = self._connect()
            try:
                ids = [
                    int(row[0])
                    for row in connection.execute("SELECT id FROM courses ORDER BY id")
                ]
                courses = [self._load_course(connection, course_id) for course_id in ids]
            finally:
                connection.close()
        return [course for course in courses if course is not None]

    def delete_course(self, course_id: int) -> bool:
        self.ensure_schema()
        with self._db_lock:
            connection = self._connect()
            try:
                with connection:
                    for table in ("learning_progress", "sentences", "lessons"):
                        connection.execute(
                            f'DELETE FROM "{table}" WHERE course_id = ?', (int(course_id),)
                        )
                    cursor = connection.execute(
                        "DELETE FROM courses WHERE id = ?", (int(course_id),)
                    )
                    deleted = cursor.rowcount > 0
            finally:
                connection.close()
        if deleted:
            self.logger.info("Deleted course: id=%s", course_id)
        return deleted

    def get_lessons_by_course(self, course_id: int) -> list[Lesson]:
        self.ensure_schema()
        with self._db_lock:
            connection = self._connect()
            try:
                return self._load_lessons(connection, int(course_id))
            finally:
                connection.close()

    def get_sentences_by_lesson(self, course_id: int, lesson_id: int) -> list[SentencePair]:
        self.ensure_schema()
        with self._db_lock:
            connection = self._connect()
            try:
                return self._load_sentences(connection, int(course_id), int(lesson_id))
            finally:
                connection.close()

    def save_learning_progress(self, progress: LearningProgress) -> None:
        self.ensure_schema()
        completed = sorted({int(item) for item in progress.completed_sentences})
        accuracy = None
        if progress.accuracy is not None:
            accuracy = max(0.0, min(1.0, float(progress.accuracy)))
        with self._db_lock:
            connection = self._connect()
            try:
                with connection:
                    connection.execute(
                        "INSERT INTO learning_progress "
                        "(course_id, lesson_id, completed_json, total_sentences, accuracy, "
                        "attempts, completed_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?) "
                        "ON CONFLICT(course_id, lesson_id) DO UPDATE SET "
                        "completed_json = excluded.completed_json, "
                        "total_sentences = excluded.total_sentences, "
                        "accuracy = excluded.accuracy, "
                        "attempts = excluded.attempts, "
                        "completed_at = excluded.completed_at, "
                        "updated_at = excluded.updated_at",
                        (
                            int(progress.course_id),
                            int(progress.lesson_id),
                            json.dumps(completed),
                            max(0, int(progress.total_sentences)),
                            accuracy,
                            max(0, int(progress.attempts)),
                            progress.completed_at,
                            _now_iso(),
                        ),
                    )
            finally:
                connection.close()

    def get_learning_progress(self, course_id: int, lesson_id: int) -> LearningProgress | None:
        self.ensure_schema()
        with self._db_lock:
            connection = self._connect()
            try:
                row = connection.execute(
                    "SELECT completed_json, total_sentences, accuracy, attempts, completed_at "
                    "FROM learning_progress WHERE course_id = ? AND lesson_id = ?",
                    (int(course_id), int(lesson_id)),
                ).fetchone()
            finally:
                connection.close()
        if row is None:
            return None
        return LearningProgress(
            course_id=int(course_id),
            lesson_id=int(lesson_id),
            completed_sentences=_json_to_int_list(row[0]),
            total_sentences=int(row[1] or 0),
            accuracy=row[2],
            attempts=int(row[3] or 0),
            completed_at=row[4],
        )

    def reset_learning_progress(self, course_id: int, lesson_id: int) -> None:
        self.ensure_schema()
        with self._db_lock:
            connection = self._connect()
            try:
                with connection:
                    connection.execute(
                        "DELETE FROM learning_progress WHERE course_id = ? AND lesson_id = ?",
                        (int(course_id), int(lesson_id)),
                    )
            finally:
                connection.close()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _ensure_parent_dir(self) -> None:
        parent = os.path.dirname(os.path.abspath(self.db_path))
        if parent:
            os.makedirs(parent, exist_ok=True)

    def _ensure_schema_with_connection(self, connection: sqlite3.Connection) -> None:
        if self._schema_ready:
            return
        for statement in _SCHEMA:
            connection.execute(statement)
        self._schema_ready = True

    def _load_course(self, connection: sqlite3.Connection, course_id: int) -> SavedCourse | None:
        row = connection.execute(
            "SELECT id, name, description, difficulty, category, tags_json, created_at, updated_at "
            "FROM courses WHERE id = ?",
            (course_id,),
        ).fetchone()
        if row is None:
            return None
        return SavedCourse(
            id=int(row[0]),
            name=row[1],
            description=row[2] or "",
            difficulty=row[3],
            category=row[4] or "",
            lessons=tuple(self._load_lessons(connection, course_id)),
            tags=tuple(_json_to_str_list(row[5])),
            created_at=row[6],
            updated_at=row[7],
        )

    def _load_lessons(self, connection: sqlite3.Connection, course_id: int) -> list[Lesson]:
        rows = connection.execute(
            "SELECT lesson_id, title, description FROM lessons "
            "WHERE course_id = ? ORDER BY lesson_id",
            (course_id,),
        ).fetchall()
        return [
            Lesson(
                id=int(lesson_id),
                title=title,
                description=description or "",
                sentences=tuple(self._load_sentences(connection, course_id, int(lesson_id))),
                course_id=course_id,
            )
            for lesson_id, title, description in rows
        ]

    def _load_sentences(
        self,
        connection: sqlite3.Connection,
        course_id: int,
        lesson_id: int,
    ) -> list[SentencePair]:
        rows = connection.execute(
            "SELECT sentence_id, english, chinese, phonetic, difficulty FROM sentences "
            "WHERE course_id = ? AND lesson_id = ? ORDER BY position",
            (course_id, lesson_id),
        ).fetchall()
        return [
            SentencePair(
                id=int(sentence_id),
                english=english,
                chinese=chinese,
                phonetic=phonetic or "",
                difficulty=difficulty or "easy",
                lesson_id=lesson_id,
            )
            for sentence_id, english, chinese, phonetic, difficulty in rows
        ]


_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS courses (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        difficulty TEXT NOT NULL,
        category TEXT NOT NULL DEFAULT '',
        tags_json TEXT NOT NULL DEFAULT '[]',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS lessons (
        course_id INTEGER NOT NULL,
        lesson_id INTEGER NOT NULL,
        title TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        PRIMARY KEY (course_id, lesson_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS sentences (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        course_id INTEGER NOT NULL,
        lesson_id INTEGER NOT NULL,
        sentence_id INTEGER NOT NULL,
        position INTEGER NOT NULL,
        english TEXT NOT NULL,
        chinese TEXT NOT NULL,
        phonetic TEXT NOT NULL DEFAULT '',
        difficulty TEXT NOT NULL DEFAULT 'easy'
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_sentences_lesson
    ON sentences(course_id, lesson_id, position)
    """,
    """
    CREATE TABLE IF NOT EXISTS learning_progress (
        course_id INTEGER NOT NULL,
        lesson_id INTEGER NOT NULL,
        completed_json TEXT NOT NULL DEFAULT '[]',
        total_sentences INTEGER NOT NULL DEFAULT 0,
        accuracy REAL,
        attempts INTEGER NOT NULL DEFAULT 0,
        completed_at TEXT,
        updated_at TEXT NOT NULL,
        PRIMARY KEY (course_id, lesson_id)
    )
    """,
)


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


def _json_to_int_list(value: object) -> list[int]:
    try:
        payload = json.loads(str(value or "[]"))
    except json.JSONDecodeError:
        return []
    if not isinstance(payload, list):
        return []
    out: list[int] = []
    for item in payload:
        try:
            out.append(int(item))
        except (TypeError, ValueError):
            continue
    return out


def _json_to_str_list(value: object) -> list[str]:
    try:
        payload = json.loads(str(value or "[]"))
    except json.JSONDecodeError:
        return []
    if not isinstance(payload, list):
        return []
    return [str(item) for item in payload if str(item).strip()]
