"""Persistent list of LLM endpoint settings."""

from __future__ import annotations

import json
import logging
import os
import threading

from ..domain.llm_settings import LlmSettings, settings_from_payload

logger = logging.getLogger(__name__)


class SettingsRepository:
    """JSON file holding saved endpoint settings and the selected id."""

    def __init__(self, path: str, logger_instance=None) -> None:
        self.path = str(path or "").strip()
        self.logger = logger_instance or logger
        self._lock = threading.Lock()

    def load(self) -> tuple[list[LlmSettings], str]:
        if not self.path:
            return [], ""
        with self._lock:
            return self._read_locked()

    def save(self, settings: list[LlmSettings], selected_id: str) -> None:
        if not self.path:
            raise ValueError("LLM settings path is not configured.")
        payload = {
            "settings": [item.to_dict() for item in settings],
            "selected_id": str(selected_id or ""),
        }
        parent = os.path.dirname(os.path.abspath(self.path))
        if parent:
            os.makedirs(parent, exist_ok=True)
        with self._lock:
            with open(self.path, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, ensure_ascii=False, indent=2)
                handle.write("\n")

    def _read_locked(self) -> tuple[list[LlmSettings], str]:
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError:
            return [], ""
        except (OSError, json.JSONDecodeError):
            self.logger.exception("Failed to load LLM settings: %s", self.path)
            return [], ""
        if not isinstance(payload, dict):
            self.logger.warning("Ignoring LLM settings file with unexpected layout: %s", self.path)
            return [], ""

        raw_items = payload.get("settings")
        settings: list[LlmSettings] = []
        seen: set[str] = set()
        for raw_item in raw_items if isinstance(raw_items, list) else []:
            item = settings_from_payload(raw_item)
            if item is None:
                self.logger.warning("Skipping invalid LLM settings entry: %r", raw_item)
                continue
            if item.id in seen:
                continue
            seen.add(item.id)
            settings.append(item)
        selected_id = str(payload.get("selected_id") or "").strip()
        return settings, selected_id
