"""Storage layer for saved courses and LLM settings."""

from .course_repository import CourseRepository
from .settings_repository import SettingsRepository

__all__ = [
    "CourseRepository",
    "SettingsRepository",
]
