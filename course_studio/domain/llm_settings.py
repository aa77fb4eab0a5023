"""Saved LLM endpoint settings."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class LlmSettings:
    id: str
    name: str
    base_url: str
    api_key: str
    model: str
    created_at: str
    is_connected: bool = False
    last_tested_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def settings_from_payload(payload: object) -> LlmSettings | None:
    """Build settings from a stored mapping; None when id or base_url is missing."""
    if not isinstance(payload, dict):
        return None
    settings_id = str(payload.get("id") or "").strip()
    base_url = str(payload.get("base_url") or "").strip()
    if not settings_id or not base_url:
        return None
    last_tested_at = payload.get("last_tested_at")
    return LlmSettings(
        id=settings_id,
        name=str(payload.get("name") or settings_id).strip(),
        base_url=base_url,
        api_key=str(payload.get("api_key") or "").strip(),
        model=str(payload.get("model") or "").strip(),
        created_at=str(payload.get("created_at") or "").strip(),
        is_connected=bool(payload.get("is_connected", False)),
        last_tested_at=str(last_tested_at) if last_tested_at else None,
    )
