"""Integrations for external services."""

from .llm_client import (
    CourseRequest,
    LlmClientError,
    LlmEndpoint,
    check_connection,
    generate_course,
    generate_sentences,
    iter_response_chunks,
    open_chat_stream,
)

__all__ = [
    "CourseRequest",
    "LlmClientError",
    "LlmEndpoint",
    "check_connection",
    "generate_course",
    "generate_sentences",
    "iter_response_chunks",
    "open_chat_stream",
]
