"""Runtime dependency container for the application."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..config import AppConfig
    from .bootstrap import AppServices


@dataclass
class AppContext:
    """Holds runtime dependencies assembled at startup."""

    config: "AppConfig"
    logger: Any
    course_repository: Any = None
    settings_repository: Any = None
    settings_service: Any = None
    course_service: Any = None

    def bind_services(self, services: "AppServices") -> None:
        self.course_repository = services.course_repository
        self.settings_repository = services.settings_repository
        self.settings_service = services.settings_service
        self.course_service = services.course_service
