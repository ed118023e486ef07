"""Tracked registrations persisted between runs."""

from __future__ import annotations

import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field

from cluster_registration.models import RegistrationRecord, RegistrationRequest

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class TrackedRegistration(BaseModel):
    """A registration this tool created or imported and keeps in sync."""

    id: str
    record: RegistrationRecord
    request: RegistrationRequest | None = Field(
        default=None,
        description="Configuration it was created from; None for imported registrations",
    )
    tracked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TrackedState(BaseModel):
    """On-disk document: registration id -> tracked entry."""

    version: int = STATE_VERSION
    registrations: dict[str, TrackedRegistration] = Field(default_factory=dict)


class StateStore:
    """JSON-file store of tracked registrations; memory-only when `path` is None."""

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._lock = threading.Lock()
        self._state = self._load()

    def _load(self) -> TrackedState:
        if self.path is None or not self.path.exists():
            return TrackedState()
        state = TrackedState.model_validate_json(self.path.read_text(encoding="utf-8"))
        logger.debug("Loaded %d tracked registrations from %s", len(state.registrations), self.path)
        return state

    def _commit(self, registrations: dict[str, TrackedRegistration]) -> None:
        """Persist `registrations`, then make them current; memory is untouched if the write fails."""
        state = TrackedState(version=self._state.version, registrations=registrations)
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_name(self.path.name + ".tmp")
            try:
                tmp.write_text(state.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
                os.replace(tmp, self.path)
            except OSError:
                tmp.unlink(missing_ok=True)
                raise
        self._state = state

    def get(self, id: str) -> TrackedRegistration | None:
        with self._lock:
            return self._state.registrations.get(id)

    def entries(self) -> list[TrackedRegistration]:
        with self._lock:
            return sorted(self._state.registrations.values(), key=lambda t: t.id)

    def put(self, entry: TrackedRegistration) -> None:
        with self._lock:
            self._commit({**self._state.registrations, entry.id: entry})

    def remove(self, id: str) -> bool:
        """Forget `id`; return whether it was tracked."""
        with self._lock:
            if id not in self._state.registrations:
                return False
            self._commit({k: v for k, v in self._state.registrations.items() if k != id})
            return True
