"""OpenAI-compatible Chat Completions client used for course generation."""
from __future__ import annotations

import http.client
import json
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Iterator

from ..domain.course import (
    CourseSentence,
    GeneratedCourse,
    course_from_payload,
    sentence_from_payload,
)
from ..domain.prompts import COURSE_SYSTEM_PROMPT, build_course_prompt, build_sentences_prompt

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_TEMPERATURE = 0.7
CONNECTION_TEST_PROMPT = 'Reply with "connected".'


@dataclass(frozen=True)
class LlmEndpoint:
    base_url: str
    api_key: str
    model: str = DEFAULT_MODEL
    timeout_seconds: int = 120
    temperature: float = DEFAULT_TEMPERATURE
    request_thinking: bool = True


@dataclass(frozen=True)
class CourseRequest:
    topic: str
    level: str = "beginner"
    sentence_count: int = 20


class LlmClientError(RuntimeError):
    """Raised when the LLM endpoint fails or returns an invalid payload."""


def _normalize_base_url(base_url: str) -> str:
    normalized = (base_url or "").strip().rstrip("/")
    if not normalized:
        raise LlmClientError("LLM base URL is empty.")
    return normalized


def _request_timeout(timeout_seconds: object) -> float | None:
    try:
        request_timeout = float(timeout_seconds)
    except (TypeError, ValueError):
        return None
    if request_timeout <= 0:
        return None
    return request_timeout


def _build_messages(prompt: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": COURSE_SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


def _open_chat_completion(endpoint: LlmEndpoint, payload: dict[str, object]):
    """POST to ``/chat/completions`` and return the open HTTP response."""
    url = f"{_normalize_base_url(endpoint.base_url)}/chat/completions"
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {(endpoint.api_key or '').strip()}",
    }
    request_timeout = _request_timeout(endpoint.timeout_seconds)
    try:
        http_request = urllib.request.Request(
            url,
            data=body,
            headers=headers,
            method="POST",
        )
        if request_timeout is None:
            return urllib.request.urlopen(http_request)
        return urllib.request.urlopen(http_request, timeout=request_timeout)
    except urllib.error.HTTPError as exc:
        error_payload = exc.read().decode("utf-8", errors="replace").strip()
        snippet = error_payload[:500] if error_payload else "No body"
        raise LlmClientError(f"LLM HTTP {exc.code}: {snippet}") from exc
    except urllib.error.URLError as exc:
        raise LlmClientError(f"Failed to reach LLM endpoint: {url}") from exc
    except TimeoutError as exc:
        raise LlmClientError("LLM request timed out.") from exc
    except OSError as exc:
        raise LlmClientError(f"LLM connection error: {exc}") from exc
    except (http.client.HTTPException, ValueError) as exc:
        raise LlmClientError(f"LLM request rejected: {exc}") from exc


def _post_chat_completion(
    *,
    endpoint: LlmEndpoint,
    payload: dict[str, object],
) -> dict[str, Any]:
    response_ctx = _open_chat_completion(endpoint, payload)
    try:
        with response_ctx as response:
            raw_response = response.read().decode("utf-8")
    except TimeoutError as exc:
        raise LlmClientError("LLM request timed out.") from exc
    except OSError as exc:
        raise LlmClientError(f"LLM connection error: {exc}") from exc
    except http.client.HTTPException as exc:
        raise LlmClientError(f"LLM connection error: {exc!r}") from exc

    try:
        return json.loads(raw_response)
    except json.JSONDecodeError as exc:
        raise LlmClientError("LLM returned invalid JSON.") from exc


def open_chat_stream(endpoint: LlmEndpoint, prompt: str):
    """Start a streamed completion; the caller owns (and must close) the response."""
    payload: dict[str, object] = {
        "model": endpoint.model or DEFAULT_MODEL,
        "messages": _build_messages(prompt),
        "temperature": float(endpoint.temperature),
        "stream": True,
    }
    if endpoint.request_thinking:
        payload["thinking"] = {"type": "enabled"}
    return _open_chat_completion(endpoint, payload)


def iter_response_chunks(response, chunk_size: int = 1024) -> Iterator[bytes]:
    """Yield raw body chunks as they arrive until the body is exhausted."""
    read = getattr(response, "read1", None) or response.read
    size = max(1, int(chunk_size))
    while True:
        try:
            chunk = read(size)
        except TimeoutError as exc:
            raise LlmClientError("LLM stream timed out.") from exc
        except OSError as exc:
            raise LlmClientError(f"LLM stream interrupted: {exc}") from exc
        except http.client.HTTPException as exc:
            raise LlmClientError(f"LLM stream interrupted: {exc!r}") from exc
        if not chunk:
            return
        yield chunk


def _extract_text_from_content(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        chunks: list[str] = []
        for item in content:
            if isinstance(item, dict):
                if str(item.get("type", "")) == "text" and isinstance(item.get("text"), str):
                    chunks.append(item["text"])
            elif isinstance(item, str):
                chunks.append(item)
        return "\n".join(chunk for chunk in chunks if chunk)
    return ""


def _parse_chat_response(data: dict[str, Any]) -> str:
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        raise LlmClientError("LLM response has no choices.")
    first_choice = choices[0]
    if not isinstance(first_choice, dict):
        raise LlmClientError("LLM response has invalid choice format.")
    message = first_choice.get("message")
    if not isinstance(message, dict):
        raise LlmClientError("LLM response has no message in the first choice.")
    result = _extract_text_from_content(message.get("content")).strip()
    if not result:
        raise LlmClientError("LLM returned an empty message.")
    return result


def _extract_first_json_value(raw: str, opening: str) -> Any:
    """Decode ``raw`` or, failing that, the first JSON value starting at ``opening``."""
    text = (raw or "").strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    decoder = json.JSONDecoder()
    for index, char in enumerate(text):
        if char != opening:
            continue
        try:
            payload, _ = decoder.raw_decode(text[index:])
        except json.JSONDecodeError:
            continue
        return payload
    raise LlmClientError("LLM response is not valid JSON.")


def _chat(endpoint: LlmEndpoint, prompt: str) -> str:
    payload = {
        "model": endpoint.model or DEFAULT_MODEL,
        "messages": _build_messages(prompt),
        "temperature": float(endpoint.temperature),
    }
    return _parse_chat_response(_post_chat_completion(endpoint=endpoint, payload=payload))


def generate_course(endpoint: LlmEndpoint, request: CourseRequest) -> GeneratedCourse:
    """Generate a whole course in one non-streamed completion."""
    topic = (request.topic or "").strip()
    if not topic:
        raise LlmClientError("Course topic is empty.")
    content = _chat(endpoint, build_course_prompt(topic, request.level, request.sentence_count))
    payload = _extract_first_json_value(content, "{")
    if not isinstance(payload, dict):
        raise LlmClientError("LLM course response must be a JSON object.")
    return course_from_payload(payload, default_level=request.level)


def generate_sentences(
    endpoint: LlmEndpoint,
    topic: str,
    count: int = 10,
    difficulty: str = "medium",
) -> list[CourseSentence]:
    topic = (topic or "").strip()
    if not topic:
        raise LlmClientError("Sentence topic is empty.")
    content = _chat(endpoint, build_sentences_prompt(topic, count, difficulty))
    payload = _extract_first_json_value(content, "[")
    if not isinstance(payload, list):
        raise LlmClientError("LLM sentence response must be a JSON array.")
    sentences: list[CourseSentence] = []
    for item in payload:
        sentence = sentence_from_payload(item)
        if sentence is None:
            continue
        if not isinstance(item.get("difficulty"), str) or not item.get("difficulty"):
            sentence = CourseSentence(
                chinese=sentence.chinese,
                english=sentence.english,
                phonetic=sentence.phonetic,
                difficulty=difficulty,
            )
        sentences.append(sentence)
    return sentences


def check_connection(endpoint: LlmEndpoint) -> bool:
    try:
        _chat(endpoint, CONNECTION_TEST_PROMPT)
    except LlmClientError:
        return False
    return True
