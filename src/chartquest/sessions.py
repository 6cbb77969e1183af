"""Session stores for processed charts.

A session keeps a chart's values and question set around so the questions
can be edited and exported later. Two stores are provided:

- ``MemorySessionStore`` keeps sessions in the current process.
- ``LocalSessionStore`` writes one YAML file per session, so sessions
  survive between CLI invocations.
"""

from __future__ import annotations

import copy
import logging
import re
import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from chartquest.errors import SessionNotFoundError
from chartquest.models import ConfigurationTree, QuestionSet, Session

if TYPE_CHECKING:
    from collections.abc import Generator

    from chartquest.config import ChartQuestConfig

logger = logging.getLogger(__name__)

SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9-]*$")


class ReadWriteLock:
    """Many readers or one writer."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    @contextmanager
    def read(self) -> Generator[None]:
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Generator[None]:
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


def _copy_session(session: Session) -> Session:
    return replace(
        session,
        values=copy.deepcopy(session.values),
        questions=session.questions.model_copy(deep=True),
    )


class SessionStore(ABC):
    """Abstract base class for session stores.

    Returned sessions are copies; changes go through ``update``.
    """

    def __init__(self):
        self._lock = ReadWriteLock()

    @abstractmethod
    def _load(self, session_id: str) -> Session | None:
        """Load a session. Returns None if not found."""
        pass

    @abstractmethod
    def _save(self, session: Session) -> None:
        """Persist a session."""
        pass

    @abstractmethod
    def _remove(self, session_id: str) -> bool:
        """Remove a session. Returns False if it did not exist."""
        pass

    @abstractmethod
    def _load_all(self) -> list[Session]:
        """Load every stored session."""
        pass

    def create(
        self,
        chart_reference: str,
        values: ConfigurationTree | None = None,
        questions: QuestionSet | None = None,
    ) -> Session:
        session = Session(
            id=str(uuid.uuid4()),
            chart_reference=chart_reference,
            values=copy.deepcopy(values) if values else {},
            questions=questions.model_copy(deep=True) if questions else QuestionSet(),
        )
        with self._lock.write():
            self._save(session)
        logger.debug("Created session %s", session.id)
        return _copy_session(session)

    def get(self, session_id: str) -> Session:
        """Get a session by id.

        Raises:
            SessionNotFoundError: if the id is unknown.
        """
        with self._lock.read():
            session: Session | None = self._load(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return _copy_session(session)

    def update(self, session_id: str, questions: QuestionSet) -> Session:
        """Replace a session's questions and bump ``updated_at``."""
        with self._lock.write():
            session: Session | None = self._load(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            session.questions = questions.model_copy(deep=True)
            session.updated_at = max(datetime.now(UTC), session.updated_at)
            self._save(session)
        logger.debug("Updated session %s", session_id)
        return _copy_session(session)

    def delete(self, session_id: str) -> None:
        with self._lock.write():
            if not self._remove(session_id):
                raise SessionNotFoundError(session_id)
        logger.debug("Deleted session %s", session_id)

    def list_sessions(self) -> list[Session]:
        """List sessions, oldest first."""
        with self._lock.read():
            sessions: list[Session] = self._load_all()
        return sorted(
            (_copy_session(s) for s in sessions), key=lambda s: s.created_at
        )


class MemorySessionStore(SessionStore):
    """In-process session store."""

    def __init__(self):
        super().__init__()
        self._sessions: dict[str, Session] = {}

    def _load(self, session_id: str) -> Session | None:
        session: Session | None = self._sessions.get(session_id)
        return _copy_session(session) if session else None

    def _save(self, session: Session) -> None:
        self._sessions[session.id] = _copy_session(session)

    def _remove(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def _load_all(self) -> list[Session]:
        return list(self._sessions.values())


class LocalSessionStore(SessionStore):
    """Filesystem session store: ``<base_path>/<id>.yaml`` per session."""

    def __init__(self, base_path: Path):
        super().__init__()
        self.base_path: Path = base_path

    def _get_path(self, session_id: str) -> Path | None:
        if not SESSION_ID_PATTERN.match(session_id):
            return None
        return self.base_path / f"{session_id}.yaml"

    def _read(self, path: Path) -> Session | None:
        try:
            data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
            return Session.from_dict(data)
        except (OSError, yaml.YAMLError, KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping unreadable session file %s: %s", path.name, e)
            return None

    def _load(self, session_id: str) -> Session | None:
        path: Path | None = self._get_path(session_id)
        if path is None or not path.exists():
            return None
        return self._read(path)

    def _save(self, session: Session) -> None:
        path: Path | None = self._get_path(session.id)
        if path is None:
            raise ValueError(f"Invalid session id: {session.id!r}")
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path: Path = path.with_suffix(".yaml.tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(session.to_dict(), f, default_flow_style=False, sort_keys=False)
        tmp_path.replace(path)

    def _remove(self, session_id: str) -> bool:
        path: Path | None = self._get_path(session_id)
        if path is None or not path.exists():
            return False
        path.unlink()
        return True

    def _load_all(self) -> list[Session]:
        if not self.base_path.exists():
            return []
        sessions: list[Session] = []
        for yaml_file in sorted(self.base_path.glob("*.yaml")):
            session: Session | None = self._read(yaml_file)
            if session is not None:
                sessions.append(session)
        return sessions


def create_session_store(config: ChartQuestConfig) -> SessionStore:
    """Create the session store selected by configuration."""
    if config.sessions.type == "memory":
        return MemorySessionStore()
    return LocalSessionStore(Path(config.sessions.path))
