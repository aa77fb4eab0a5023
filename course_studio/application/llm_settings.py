"""Saved endpoint settings and the currently selected LLM session."""

from __future__ import annotations

import dataclasses
from datetime import datetime
import threading
import uuid

from ..domain.llm_settings import LlmSettings
from ..integrations.llm_client import DEFAULT_MODEL, LlmEndpoint
from ..storage.settings_repository import SettingsRepository
from .session import LlmSession, LlmSessionError


class LlmSettingsService:
    """Owns the saved settings list and replaces the live session on selection.

    The selected session is last-write-wins: runs already started keep the
    session they were created from.
    """

    def __init__(
        self,
        repository: SettingsRepository,
        logger,
        *,
        timeout_seconds: int = 120,
        temperature: float = 0.7,
        chunk_size: int = 1024,
        request_thinking: bool = True,
    ) -> None:
        self.repository = repository
        self.logger = logger
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.chunk_size = chunk_size
        self.request_thinking = request_thinking
        self._lock = threading.Lock()
        self._session: LlmSession | None = None
        self.settings, self.selected_id = repository.load()
        self._restore_selection()

    @property
    def session(self) -> LlmSession | None:
        return self._session

    @property
    def current_settings(self) -> LlmSettings | None:
        return self._find(self.selected_id)

    def require_session(self) -> LlmSession:
        session = self._session
        if session is None:
            raise LlmSessionError("No LLM endpoint is selected. Configure and connect one first.")
        return session

    def create_settings(
        self,
        *,
        name: str,
        base_url: str,
        api_key: str,
        model: str = DEFAULT_MODEL,
    ) -> LlmSettings:
        base_url = (base_url or "").strip()
        if not base_url:
            raise ValueError("Base URL is empty.")
        settings = LlmSettings(
            id=uuid.uuid4().hex,
            name=(name or "").strip() or base_url,
            base_url=base_url,
            api_key=(api_key or "").strip(),
            model=(model or "").strip() or DEFAULT_MODEL,
            created_at=_now_iso(),
        )
        self.save_settings(settings)
        return settings

    def save_settings(self, settings: LlmSettings) -> None:
        with self._lock:
            replaced = False
            updated: list[LlmSettings] = []
            for item in self.settings:
                if item.id == settings.id:
                    updated.append(settings)
                    replaced = True
                else:
                    updated.append(item)
            if not replaced:
                updated.append(settings)
            self.settings = updated
            if replaced and settings.id == self.selected_id and self._session is not None:
                self._session = self._build_session(settings)
            self._persist_locked()
        self.logger.info("Saved LLM settings: id=%s name=%r", settings.id, settings.name)

    def delete_settings(self, settings_id: str) -> bool:
        with self._lock:
            remaining = [item for item in self.settings if item.id != settings_id]
            if len(remaining) == len(self.settings):
                return False
            self.settings = remaining
            if settings_id == self.selected_id:
                self._session = None
                self.selected_id = remaining[0].id if remaining else ""
            self._persist_locked()
        self.logger.info("Deleted LLM settings: id=%s", settings_id)
        return True

    def select_settings(self, settings_id: str) -> LlmSession:
        with self._lock:
            settings = self._find(settings_id)
            if settings is None:
                raise LlmSessionError(f"Unknown LLM settings id: {settings_id}")
            self.selected_id = settings.id
            self._session = self._build_session(settings)
            self._persist_locked()
            session = self._session
        self.logger.info("Selected LLM settings: id=%s model=%s", settings.id, settings.model)
        return session

    def use_endpoint(self, endpoint: LlmEndpoint) -> LlmSession:
        """Install an unsaved endpoint (environment or command line) as the session."""
        with self._lock:
            self._session = LlmSession(
                endpoint,
                chunk_size=self.chunk_size,
                logger_instance=self.logger,
            )
            return self._session

    def test_settings(self, settings_id: str) -> bool:
        settings = self._find(settings_id)
        if settings is None:
            raise LlmSessionError(f"Unknown LLM settings id: {settings_id}")
        connected = self._build_session(settings).check_connection()
        updated = dataclasses.replace(
            settings,
            is_connected=connected,
            last_tested_at=_now_iso(),
        )
        with self._lock:
            self.settings = [updated if item.id == updated.id else item for item in self.settings]
            if connected and updated.id == self.selected_id:
                self._session = self._build_session(updated)
            self._persist_locked()
        return connected

    def endpoint_for(self, settings: LlmSettings) -> LlmEndpoint:
        return LlmEndpoint(
            base_url=settings.base_url,
            api_key=settings.api_key,
            model=settings.model or DEFAULT_MODEL,
            timeout_seconds=self.timeout_seconds,
            temperature=self.temperature,
            request_thinking=self.request_thinking,
        )

    def _build_session(self, settings: LlmSettings) -> LlmSession:
        return LlmSession(
            self.endpoint_for(settings),
            settings_id=settings.id,
            chunk_size=self.chunk_size,
            logger_instance=self.logger,
        )

    def _find(self, settings_id: str) -> LlmSettings | None:
        for item in self.settings:
            if item.id == settings_id:
                return item
        return None

    def _restore_selection(self) -> None:
        if not self.settings:
            self.selected_id = ""
            return
        target = self._find(self.selected_id) or self.settings[0]
        self.selected_id = target.id
        if target.is_connected:
            self._session = self._build_session(target)
            self.logger.info("Restored LLM session: id=%s model=%s", target.id, target.model)

    def _persist_locked(self) -> None:
        try:
            self.repository.save(self.settings, self.selected_id)
        except (OSError, ValueError):
            self.logger.exception("Failed to persist LLM settings")


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")
