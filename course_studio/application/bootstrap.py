"""Application bootstrap assembly for storage, LLM session and course services."""
from __future__ import annotations

from dataclasses import dataclass

from ..config import AppConfig
from ..integrations.llm_client import LlmEndpoint
from ..storage.course_repository import CourseRepository
from ..storage.settings_repository import SettingsRepository
from .course_service import CourseService
from .llm_settings import LlmSettingsService


@dataclass(frozen=True)
class AppServices:
    course_repository: CourseRepository
    settings_repository: SettingsRepository
    settings_service: LlmSettingsService
    course_service: CourseService


def build_env_endpoint(config: AppConfig) -> LlmEndpoint | None:
    """Endpoint from LLM_BASE_URL/LLM_API_KEY/LLM_MODEL, when a base URL is set."""
    if not config.llm_base_url:
        return None
    return LlmEndpoint(
        base_url=config.llm_base_url,
        api_key=config.llm_api_key,
        model=config.llm_model,
        timeout_seconds=config.llm_timeout_seconds,
        temperature=config.llm_temperature,
        request_thinking=config.llm_request_thinking,
    )


def initialize_app_services(*, config: AppConfig, logger) -> AppServices:
    """Construct all runtime services and return a typed service bundle."""
    course_repository = CourseRepository(config.course_db_path, logger_instance=logger)
    settings_repository = SettingsRepository(config.llm_settings_path, logger_instance=logger)
    settings_service = LlmSettingsService(
        settings_repository,
        logger,
        timeout_seconds=config.llm_timeout_seconds,
        temperature=config.llm_temperature,
        chunk_size=config.llm_stream_chunk_bytes,
        request_thinking=config.llm_request_thinking,
    )
    logger.info(
        "LLM settings path: %s (entries=%s selected=%s)",
        config.llm_settings_path,
        len(settings_service.settings),
        settings_service.selected_id or "-",
    )

    env_endpoint = build_env_endpoint(config)
    if env_endpoint is not None:
        settings_service.use_endpoint(env_endpoint)
        logger.info(
            "Using LLM endpoint from environment: base_url=%s model=%s",
            env_endpoint.base_url,
            env_endpoint.model,
        )
    elif settings_service.session is None:
        logger.warning(
            "No connected LLM endpoint; set LLM_BASE_URL or select saved settings before generating."
        )

    course_service = CourseService(
        settings_service.require_session,
        course_repository,
        logger,
        default_level=config.course_default_level,
        default_sentence_count=config.course_sentence_count,
        lesson_count=config.course_lesson_count,
        sentences_per_lesson=config.course_sentences_per_lesson,
    )
    return AppServices(
        course_repository=course_repository,
        settings_repository=settings_repository,
        settings_service=settings_service,
        course_service=course_service,
    )
