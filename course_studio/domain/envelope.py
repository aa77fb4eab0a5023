"""Delta extraction from OpenAI-compatible streaming envelopes."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnvelopeDeltas:
    thinking: str = ""
    content: str = ""


def _as_dict(value: object) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _first_choice(envelope: dict[str, Any]) -> dict[str, Any]:
    choices = envelope.get("choices")
    if not isinstance(choices, list) or not choices:
        return {}
    return _as_dict(choices[0])


def _non_empty_text(value: object) -> str:
    if isinstance(value, str) and value:
        return value
    return ""


def _message_reasoning(message: dict[str, Any]) -> str:
    thinking = message.get("thinking")
    if isinstance(thinking, dict):
        return _non_empty_text(thinking.get("reasoning_content"))
    return _non_empty_text(thinking) or _non_empty_text(message.get("reasoning_content"))


def parse_envelope(payload: str) -> dict[str, Any] | None:
    """Strictly decode one frame payload; None when it is not a JSON object."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        logger.debug("Skipping malformed stream frame: %.200s", payload)
        return None
    if not isinstance(data, dict):
        logger.debug("Skipping non-object stream frame: %.200s", payload)
        return None
    return data


def extract_deltas(envelope: dict[str, Any]) -> EnvelopeDeltas:
    """Pull the thinking and content deltas out of one decoded envelope.

    Thinking text is taken from the first non-empty of: top-level
    ``thinking``, ``delta.thinking``, ``delta.reasoning_content`` /
    ``delta.reasoning`` and the reasoning nested under ``message.thinking``.
    """
    choice = _first_choice(envelope)
    delta = _as_dict(choice.get("delta"))
    message = _as_dict(choice.get("message"))

    thinking = (
        _non_empty_text(envelope.get("thinking"))
        or _non_empty_text(delta.get("thinking"))
        or _non_empty_text(delta.get("reasoning_content"))
        or _non_empty_text(delta.get("reasoning"))
        or _message_reasoning(message)
    )
    content = _non_empty_text(delta.get("content"))
    return EnvelopeDeltas(thinking=thinking, content=content)
