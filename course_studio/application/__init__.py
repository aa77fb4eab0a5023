"""Application layer orchestration."""

from .bootstrap import AppServices, build_env_endpoint, initialize_app_services
from .context import AppContext
from .course_generation import (
    STATE_FAILED,
    STATE_FINALIZED,
    STATE_IDLE,
    STATE_STREAMING,
    CourseGenerationRun,
)
from .course_service import CourseService
from .llm_settings import LlmSettingsService
from .session import LlmSession, LlmSessionError

__all__ = [
    "AppContext",
    "AppServices",
    "CourseGenerationRun",
    "CourseService",
    "LlmSession",
    "LlmSessionError",
    "LlmSettingsService",
    "STATE_FAILED",
    "STATE_FINALIZED",
    "STATE_IDLE",
    "STATE_STREAMING",
    "build_env_endpoint",
    "initialize_app_services",
]
