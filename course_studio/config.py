"""Configuration loading from environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .domain.course import COURSE_LEVELS
from .utils import (
    parse_choice_env,
    parse_flag_env,
    parse_float_env,
    parse_int_env,
    resolve_path,
)

DEFAULT_LLM_MODEL = "gpt-3.5-turbo"


@dataclass(frozen=True)
class AppConfig:
    log_level: str
    file_log_level: str
    log_dir: str
    log_file: str
    course_db_path: str
    llm_settings_path: str
    llm_base_url: str
    llm_api_key: str
    llm_model: str
    llm_timeout_seconds: int
    llm_temperature: float
    llm_stream_chunk_bytes: int = 1024
    llm_request_thinking: bool = True
    course_sentence_count: int = 20
    course_lesson_count: int = 5
    course_sentences_per_lesson: int = 10
    course_default_level: str = "beginner"
    log_module_levels: str = ""


def load_config() -> AppConfig:
    base_dir = str(Path(__file__).resolve().parents[1])
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    file_log_level = os.getenv("FILE_LOG_LEVEL", "DEBUG").upper()
    # e.g. "domain=INFO,integrations=DEBUG"
    log_module_levels = os.getenv("LOG_MODULE_LEVELS", "").strip()
    log_dir = resolve_path(os.getenv("LOG_DIR", "logs"), base_dir)
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(
        log_dir, f"app_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}.log"
    )
    course_db_path = resolve_path(
        os.getenv("COURSE_DB_PATH", "data/courses.sqlite3").strip(),
        base_dir,
    )
    llm_settings_path = resolve_path(
        os.getenv("LLM_SETTINGS_PATH", "data/llm_settings.json").strip(),
        base_dir,
    )
    llm_base_url = os.getenv("LLM_BASE_URL", "").strip()
    llm_api_key = os.getenv("LLM_API_KEY", "").strip()
    llm_model = os.getenv("LLM_MODEL", DEFAULT_LLM_MODEL).strip() or DEFAULT_LLM_MODEL
    # 0 leaves the socket without a timeout.
    llm_timeout_seconds = parse_int_env(
        "LLM_TIMEOUT_SECONDS", 120, min_value=0, max_value=3600
    )
    llm_temperature = parse_float_env(
        "LLM_TEMPERATURE", 0.7, min_value=0.0, max_value=2.0
    )
    llm_stream_chunk_bytes = parse_int_env(
        "LLM_STREAM_CHUNK_BYTES", 1024, min_value=1, max_value=65536
    )
    llm_request_thinking = parse_flag_env("LLM_REQUEST_THINKING", "1")
    course_sentence_count = parse_int_env(
        "COURSE_SENTENCE_COUNT", 20, min_value=1, max_value=200
    )
    course_lesson_count = parse_int_env(
        "COURSE_LESSON_COUNT", 5, min_value=1, max_value=50
    )
    course_sentences_per_lesson = parse_int_env(
        "COURSE_SENTENCES_PER_LESSON", 10, min_value=1, max_value=100
    )
    course_default_level = parse_choice_env(
        "COURSE_DEFAULT_LEVEL", "beginner", COURSE_LEVELS
    )
    return AppConfig(
        log_level=log_level,
        file_log_level=file_log_level,
        log_dir=log_dir,
        log_file=log_file,
        course_db_path=course_db_path,
        llm_settings_path=llm_settings_path,
        llm_base_url=llm_base_url,
        llm_api_key=llm_api_key,
        llm_model=llm_model,
        llm_timeout_seconds=llm_timeout_seconds,
        llm_temperature=llm_temperature,
        llm_stream_chunk_bytes=llm_stream_chunk_bytes,
        llm_request_thinking=llm_request_thinking,
        course_sentence_count=course_sentence_count,
        course_lesson_count=course_lesson_count,
        course_sentences_per_lesson=course_sentences_per_lesson,
        course_default_level=course_default_level,
        log_module_levels=log_module_levels,
    )
