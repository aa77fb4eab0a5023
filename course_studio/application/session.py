"""Live LLM session bound to one selected endpoint."""

from __future__ import annotations

import logging

from ..domain.course import CourseSentence, GeneratedCourse
from ..domain.prompts import build_course_prompt
from ..integrations import llm_client
from ..integrations.llm_client import CourseRequest, LlmEndpoint
from .course_generation import CourseGenerationRun

logger = logging.getLogger(__name__)


class LlmSessionError(RuntimeError):
    """Raised when an operation needs an LLM session and none is selected."""


class LlmSession:
    """Immutable handle on one endpoint; switching settings creates a new session."""

    def __init__(
        self,
        endpoint: LlmEndpoint,
        *,
        settings_id: str = "",
        chunk_size: int = 1024,
        logger_instance=None,
    ) -> None:
        self.endpoint = endpoint
        self.settings_id = settings_id
        self.chunk_size = max(1, int(chunk_size))
        self.logger = logger_instance or logger

    def stream_course(self, request: CourseRequest) -> CourseGenerationRun:
        prompt = build_course_prompt(request.topic, request.level, request.sentence_count)
        endpoint = self.endpoint

        def _open_stream():
            return llm_client.open_chat_stream(endpoint, prompt)

        return CourseGenerationRun(
            request,
            _open_stream,
            chunk_size=self.chunk_size,
            logger_instance=self.logger,
        )

    def generate_course(self, request: CourseRequest) -> GeneratedCourse:
        return llm_client.generate_course(self.endpoint, request)

    def generate_sentences(
        self,
        topic: str,
        count: int = 10,
        difficulty: str = "medium",
    ) -> list[CourseSentence]:
        return llm_client.generate_sentences(self.endpoint, topic, count, difficulty)

    def check_connection(self) -> bool:
        connected = llm_client.check_connection(self.endpoint)
        self.logger.info(
            "LLM connection check: base_url=%s model=%s connected=%s",
            self.endpoint.base_url,
            self.endpoint.model,
            connected,
        )
        return connected
